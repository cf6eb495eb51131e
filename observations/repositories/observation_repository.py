"""Observation data access layer."""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Query
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Observation


class ObservationRepository:
    """Repository for observations. Writes are committed by the service."""

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, observation_id: str) -> Optional[Observation]:
        return self.db.query(Observation).filter(Observation.id == observation_id).first()

    def add(self, observation: Observation) -> None:
        self.db.add(observation)
        self.db.flush()

    def count_for_lesson_plan(self, lesson_plan_id: str) -> int:
        count = (
            self.db.query(func.count(Observation.id))
            .filter(Observation.lesson_plan_id == lesson_plan_id)
            .scalar()
        )
        return count or 0

    def set_status_if(self, observation_id: str, expected: str, new_status: str) -> int:
        """Conditional status write; returns the number of rows changed (0 or 1)."""
        result = self.db.execute(
            update(Observation)
            .where(Observation.id == observation_id, Observation.status == expected)
            .values(status=new_status, updated_at=datetime.utcnow())
        )
        return result.rowcount

    def for_supervisor(self, supervisor_id: str, status: Optional[str] = None) -> Query:
        query = self.db.query(Observation).filter(Observation.supervisor_id == supervisor_id)
        if status:
            query = query.filter(Observation.status == status)
        return query.order_by(Observation.date.desc(), Observation.start_time.desc(), Observation.id)

    def for_trainee(self, trainee_id: str) -> Query:
        return (
            self.db.query(Observation)
            .filter(Observation.trainee_id == trainee_id)
            .order_by(Observation.date.desc(), Observation.start_time.desc(), Observation.id)
        )
