"""Placement data access layer (trainees, supervisors, schools, TP assignments)."""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import (
    Feedback,
    LessonPlan,
    Observation,
    School,
    Supervisor,
    TPAssignment,
    Trainee,
)

logger = logging.getLogger(__name__)


class PlacementRepository:
    """Repository for placement lookups. Writes are committed by the service."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_trainee(self, trainee_id: str) -> Optional[Trainee]:
        return self.db.query(Trainee).filter(Trainee.id == trainee_id).first()

    def get_supervisor(self, supervisor_id: str) -> Optional[Supervisor]:
        return self.db.query(Supervisor).filter(Supervisor.id == supervisor_id).first()

    def get_school(self, school_id: str) -> Optional[School]:
        return self.db.query(School).filter(School.id == school_id).first()

    def get_assignment(self, assignment_id: str) -> Optional[TPAssignment]:
        return self.db.query(TPAssignment).filter(TPAssignment.id == assignment_id).first()

    def find_assignment(self, supervisor_id: str, trainee_id: str) -> Optional[TPAssignment]:
        """Latest assignment linking this supervisor to this trainee, if any."""
        return (
            self.db.query(TPAssignment)
            .filter(
                TPAssignment.supervisor_id == supervisor_id,
                TPAssignment.trainee_id == trainee_id,
            )
            .order_by(TPAssignment.start_date.desc())
            .first()
        )

    def latest_assignment_for_trainee(self, trainee_id: str) -> Optional[TPAssignment]:
        return (
            self.db.query(TPAssignment)
            .filter(TPAssignment.trainee_id == trainee_id)
            .order_by(TPAssignment.start_date.desc(), TPAssignment.created_at.desc())
            .first()
        )

    def trainee_ids_for_supervisor(self, supervisor_id: str) -> list[str]:
        rows = (
            self.db.query(TPAssignment.trainee_id)
            .filter(TPAssignment.supervisor_id == supervisor_id)
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    def supervised_trainees(self, supervisor_id: str) -> list[Trainee]:
        return (
            self.db.query(Trainee)
            .join(TPAssignment, TPAssignment.trainee_id == Trainee.id)
            .filter(TPAssignment.supervisor_id == supervisor_id)
            .distinct()
            .order_by(Trainee.surname, Trainee.name)
            .all()
        )

    def trainee_activity(self, supervisor_id: str, trainee_id: str) -> dict:
        """Lesson plan count, observation count and mean feedback score for one trainee."""
        lesson_plans = (
            self.db.query(func.count(LessonPlan.id))
            .filter(LessonPlan.trainee_id == trainee_id)
            .scalar()
        )
        observations = (
            self.db.query(func.count(Observation.id))
            .filter(
                Observation.trainee_id == trainee_id,
                Observation.supervisor_id == supervisor_id,
            )
            .scalar()
        )
        average = (
            self.db.query(func.avg(Feedback.score))
            .filter(
                Feedback.trainee_id == trainee_id,
                Feedback.supervisor_id == supervisor_id,
                Feedback.score.isnot(None),
            )
            .scalar()
        )
        return {
            "lesson_plan_count": lesson_plans or 0,
            "observation_count": observations or 0,
            "average_score": round(float(average), 2) if average is not None else 0.0,
        }

    def add(self, entity) -> None:
        self.db.add(entity)
