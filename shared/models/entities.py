"""SQLAlchemy ORM database models."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Text, DateTime, Boolean, ForeignKey, Index, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Trainee(Base):
    """Teacher trainee on a teaching-practice placement."""
    __tablename__ = "trainees"

    id = Column(String, primary_key=True)
    reg_no = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    surname = Column(String, nullable=False)
    email = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    lesson_plans = relationship("LessonPlan", back_populates="trainee")

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


class Supervisor(Base):
    """Reviewer who approves lesson plans and observes trainees."""
    __tablename__ = "supervisors"

    id = Column(String, primary_key=True)
    staff_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    surname = Column(String, nullable=False)
    email = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


class School(Base):
    __tablename__ = "schools"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class TPAssignment(Base):
    """Placement linking a trainee, a school and a supervisor for a period."""
    __tablename__ = "tp_assignments"

    id = Column(String, primary_key=True)
    trainee_id = Column(String, ForeignKey("trainees.id", ondelete="CASCADE"), nullable=False)
    supervisor_id = Column(String, ForeignKey("supervisors.id", ondelete="CASCADE"), nullable=False)
    school_id = Column(String, ForeignKey("schools.id", ondelete="SET NULL"), nullable=True)
    start_date = Column(String, nullable=False)  # YYYY-MM-DD
    end_date = Column(String, nullable=False)    # YYYY-MM-DD
    created_at = Column(DateTime, default=datetime.utcnow)

    trainee = relationship("Trainee")
    supervisor = relationship("Supervisor")
    school = relationship("School")

    __table_args__ = (
        Index("idx_tp_assignment_pair", "supervisor_id", "trainee_id"),
    )


class LessonPlan(Base):
    """Trainee-authored lesson plan awaiting or past supervisor review."""
    __tablename__ = "lesson_plans"

    id = Column(String, primary_key=True)
    trainee_id = Column(String, ForeignKey("trainees.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    class_name = Column("class", String, nullable=False)
    date = Column(String, nullable=False)           # YYYY-MM-DD
    start_time = Column(String, nullable=True)      # HH:MM
    end_time = Column(String, nullable=True)        # HH:MM
    objectives = Column(Text, nullable=False)
    activities = Column(Text, nullable=False)
    resources = Column(Text, nullable=False)
    ai_generated = Column(Boolean, default=False, nullable=False)
    pdf_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default="PENDING")  # PENDING, APPROVED, REJECTED
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trainee = relationship("Trainee", back_populates="lesson_plans")
    observations = relationship("Observation", back_populates="lesson_plan")

    __table_args__ = (
        # At most one pending lesson plan per trainee
        Index("uq_lesson_plan_trainee_pending", "trainee_id", unique=True,
              postgresql_where=text("status = 'PENDING'"),
              sqlite_where=text("status = 'PENDING'")),
        Index("idx_lesson_plan_trainee_created", "trainee_id", "created_at"),
    )


class Observation(Base):
    """Scheduled in-person observation of an approved lesson plan."""
    __tablename__ = "observations"

    id = Column(String, primary_key=True)
    supervisor_id = Column(String, ForeignKey("supervisors.id", ondelete="CASCADE"), nullable=False)
    trainee_id = Column(String, ForeignKey("trainees.id", ondelete="CASCADE"), nullable=False)
    lesson_plan_id = Column(String, ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=False)
    date = Column(String, nullable=False)
    start_time = Column(String, nullable=False)
    end_time = Column(String, nullable=False)
    status = Column(String, nullable=False, default="SCHEDULED")  # SCHEDULED, ONGOING, COMPLETED
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    lesson_plan = relationship("LessonPlan", back_populates="observations")
    trainee = relationship("Trainee")

    __table_args__ = (
        Index("idx_observation_supervisor_status", "supervisor_id", "status"),
    )


class Feedback(Base):
    """
    Supervisor score + comments.

    Lesson-plan review feedback has observation_id NULL; observation feedback
    carries both ids so listings can join the plan title.
    """
    __tablename__ = "feedback"

    id = Column(String, primary_key=True)
    lesson_plan_id = Column(String, ForeignKey("lesson_plans.id", ondelete="SET NULL"), nullable=True)
    observation_id = Column(String, ForeignKey("observations.id", ondelete="SET NULL"), nullable=True)
    trainee_id = Column(String, ForeignKey("trainees.id", ondelete="CASCADE"), nullable=False)
    supervisor_id = Column(String, ForeignKey("supervisors.id", ondelete="CASCADE"), nullable=False)
    score = Column(Integer, nullable=True)  # 0-10
    comments = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_feedback_observation", "observation_id"),
        Index("idx_feedback_lesson_plan", "lesson_plan_id"),
    )


class StudentEvaluation(Base):
    """Overall placement grade on the 0-100 scale."""
    __tablename__ = "student_evaluations"

    id = Column(String, primary_key=True)
    tp_assignment_id = Column(String, ForeignKey("tp_assignments.id", ondelete="CASCADE"), nullable=False)
    trainee_id = Column(String, ForeignKey("trainees.id", ondelete="CASCADE"), nullable=False)
    supervisor_id = Column(String, ForeignKey("supervisors.id", ondelete="CASCADE"), nullable=False)
    score = Column(Integer, nullable=False)
    comments = Column(Text, nullable=True)
    submitted_at = Column(DateTime, default=datetime.utcnow)

    trainee = relationship("Trainee")
    supervisor = relationship("Supervisor")


class Notification(Base):
    """In-app notification raised after a workflow transition."""
    __tablename__ = "notifications"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)       # recipient
    initiator_id = Column(String, nullable=True)
    type = Column(String, nullable=False)          # e.g. LESSON_PLAN_REVIEWED
    message = Column(Text, nullable=False)
    priority = Column(String, nullable=False, default="normal")
    read_status = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_notification_user_read", "user_id", "read_status"),
    )
