"""Lesson plan data access layer."""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.orm import Query
from sqlalchemy.orm import Session as DBSession

from shared.models.domain import LessonPlanStatus
from shared.models.entities import LessonPlan, Trainee

logger = logging.getLogger(__name__)

# Draft field name -> mapped attribute, used for guarded UPDATEs
DRAFT_COLUMNS = {
    "title": LessonPlan.title,
    "subject": LessonPlan.subject,
    "class_name": LessonPlan.class_name,
    "date": LessonPlan.date,
    "start_time": LessonPlan.start_time,
    "end_time": LessonPlan.end_time,
    "objectives": LessonPlan.objectives,
    "activities": LessonPlan.activities,
    "resources": LessonPlan.resources,
    "ai_generated": LessonPlan.ai_generated,
    "pdf_url": LessonPlan.pdf_url,
}


class LessonPlanRepository:
    """
    Repository for lesson plans.

    Status-changing writes are conditional on the status the caller observed
    and return the affected row count; the service decides what a zero means.
    """

    def __init__(self, db: DBSession):
        self.db = db

    def get_by_id(self, lesson_plan_id: str) -> Optional[LessonPlan]:
        return self.db.query(LessonPlan).filter(LessonPlan.id == lesson_plan_id).first()

    def get_for_update(self, lesson_plan_id: str) -> Optional[LessonPlan]:
        """Re-read the plan with a row lock (no-op on SQLite)."""
        return (
            self.db.query(LessonPlan)
            .filter(LessonPlan.id == lesson_plan_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def find_pending(self, trainee_id: str) -> Optional[LessonPlan]:
        return (
            self.db.query(LessonPlan)
            .filter(
                LessonPlan.trainee_id == trainee_id,
                LessonPlan.status == LessonPlanStatus.PENDING.value,
            )
            .first()
        )

    def add(self, plan: LessonPlan) -> None:
        self.db.add(plan)
        self.db.flush()

    def set_status_if(self, lesson_plan_id: str, expected: str, new_status: str) -> int:
        """UPDATE ... SET status = new WHERE id = ? AND status = expected."""
        result = self.db.execute(
            update(LessonPlan)
            .where(LessonPlan.id == lesson_plan_id, LessonPlan.status == expected)
            .values(status=new_status, updated_at=datetime.utcnow())
        )
        return result.rowcount

    def update_draft_if_pending(self, lesson_plan_id: str, values: dict[str, Any]) -> int:
        changes = {DRAFT_COLUMNS[key]: value for key, value in values.items() if key in DRAFT_COLUMNS}
        changes[LessonPlan.updated_at] = datetime.utcnow()
        result = self.db.execute(
            update(LessonPlan)
            .where(
                LessonPlan.id == lesson_plan_id,
                LessonPlan.status == LessonPlanStatus.PENDING.value,
            )
            .values(changes)
        )
        return result.rowcount

    def delete_if_pending(self, lesson_plan_id: str) -> int:
        result = self.db.execute(
            delete(LessonPlan)
            .where(
                LessonPlan.id == lesson_plan_id,
                LessonPlan.status == LessonPlanStatus.PENDING.value,
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def search(
        self,
        trainee_ids: Iterable[str],
        statuses: Optional[Iterable[str]] = None,
        search: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> Query:
        """Newest-first query over the given trainees' plans."""
        query = (
            self.db.query(LessonPlan)
            .outerjoin(Trainee, Trainee.id == LessonPlan.trainee_id)
            .filter(LessonPlan.trainee_id.in_(list(trainee_ids)))
        )
        if statuses:
            query = query.filter(LessonPlan.status.in_(list(statuses)))
        if subject:
            query = query.filter(LessonPlan.subject == subject)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                LessonPlan.title.ilike(pattern),
                LessonPlan.subject.ilike(pattern),
                Trainee.name.ilike(pattern),
                Trainee.surname.ilike(pattern),
            ))
        return query.order_by(LessonPlan.created_at.desc(), LessonPlan.id)
