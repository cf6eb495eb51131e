"""Feedback and student evaluation data access layer. Both are append-only."""
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Query
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import (
    Feedback,
    LessonPlan,
    StudentEvaluation,
    TPAssignment,
    Trainee,
)


class FeedbackRepository:
    """Repository for supervisor feedback rows."""

    def __init__(self, db: DBSession):
        self.db = db

    def add(self, feedback: Feedback) -> None:
        self.db.add(feedback)
        self.db.flush()

    def count_for_observation(self, observation_id: str) -> int:
        count = (
            self.db.query(func.count(Feedback.id))
            .filter(Feedback.observation_id == observation_id)
            .scalar()
        )
        return count or 0

    def search(
        self,
        trainee_id: Optional[str] = None,
        supervisor_id: Optional[str] = None,
        lesson_plan_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Query:
        """Newest-first feedback, optionally narrowed to one party, plan or search term."""
        query = (
            self.db.query(Feedback)
            .outerjoin(LessonPlan, LessonPlan.id == Feedback.lesson_plan_id)
            .outerjoin(Trainee, Trainee.id == Feedback.trainee_id)
        )
        if trainee_id:
            query = query.filter(Feedback.trainee_id == trainee_id)
        if supervisor_id:
            query = query.filter(Feedback.supervisor_id == supervisor_id)
        if lesson_plan_id:
            query = query.filter(Feedback.lesson_plan_id == lesson_plan_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                LessonPlan.title.ilike(pattern),
                Feedback.comments.ilike(pattern),
                Trainee.name.ilike(pattern),
                Trainee.surname.ilike(pattern),
            ))
        return query.order_by(Feedback.created_at.desc(), Feedback.id)


class EvaluationRepository:
    """Repository for student evaluations (0-100 placement grades)."""

    def __init__(self, db: DBSession):
        self.db = db

    def add(self, evaluation: StudentEvaluation) -> None:
        self.db.add(evaluation)
        self.db.flush()

    def search(self, supervisor_id: Optional[str] = None, search: Optional[str] = None) -> Query:
        query = self.db.query(StudentEvaluation).outerjoin(
            Trainee, Trainee.id == StudentEvaluation.trainee_id
        )
        if supervisor_id:
            query = query.filter(StudentEvaluation.supervisor_id == supervisor_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Trainee.name.ilike(pattern),
                Trainee.surname.ilike(pattern),
                Trainee.reg_no.ilike(pattern),
                StudentEvaluation.comments.ilike(pattern),
            ))
        return query.order_by(StudentEvaluation.submitted_at.desc(), StudentEvaluation.id)

    def assignments_awaiting_evaluation(self, today: str) -> list[TPAssignment]:
        """TP assignments whose period ended before ``today`` and have no evaluation yet."""
        evaluated = select(StudentEvaluation.tp_assignment_id)
        return (
            self.db.query(TPAssignment)
            .filter(
                TPAssignment.end_date < today,
                TPAssignment.id.notin_(evaluated),
            )
            .order_by(TPAssignment.end_date, TPAssignment.id)
            .all()
        )

