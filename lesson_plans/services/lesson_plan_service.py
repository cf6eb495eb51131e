"""
Lesson plan lifecycle.

State machine: PENDING → APPROVED | REJECTED (both terminal)
A PENDING plan may also be revised or deleted by its owner.

Every status change is a compare-and-set on PENDING, so of two racing
reviewers exactly one wins and the other gets InvalidStateError. A trainee
owns at most one PENDING plan; the partial unique index
``uq_lesson_plan_trainee_pending`` backs the service-level check.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from lesson_plans.repositories.lesson_plan_repository import LessonPlanRepository
from placements.services.placement_service import PlacementService
from shared.models.domain import (
    LESSON_PLAN_STATUSES,
    REVIEW_OUTCOMES,
    LessonPlanStatus,
    TransitionEvent,
)
from shared.models.entities import Feedback, LessonPlan
from shared.models.schemas import (
    LessonPlanDraft,
    LessonPlanPage,
    LessonPlanResponse,
    ReviewDecision,
)
from shared.services.event_bus import EventBus
from shared.utils.constants import (
    LESSON_PLAN_DELETED,
    OBSERVATION_SCORE_MAX,
    OBSERVATION_SCORE_MIN,
    PENDING_PLAN_EXISTS,
)
from shared.utils.exceptions import (
    ConflictError,
    DatabaseException,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from shared.utils.normalization import lesson_plan_display_defaults
from shared.utils.pagination import paginate
from shared.utils.validation import FieldErrors, parse_payload

logger = logging.getLogger(__name__)

DEFAULT_SUPERVISOR_STATUSES = "PENDING,APPROVED"


@dataclass
class ReviewResult:
    lesson_plan: LessonPlan
    feedback: Feedback


class LessonPlanService:
    """Submit, revise, review and delete lesson plans."""

    def __init__(self, db: DBSession, event_bus: Optional[EventBus] = None):
        self.db = db
        self.repo = LessonPlanRepository(db)
        self.placements = PlacementService(db)
        self.event_bus = event_bus

    # ---- commands ---------------------------------------------------------

    def submit(self, trainee_id: str, draft: Union[LessonPlanDraft, Mapping[str, Any]]) -> LessonPlan:
        """
        Create a PENDING lesson plan for ``trainee_id``.

        Raises:
            ValidationError: draft fields missing or malformed
            NotFoundError: unknown trainee
            ConflictError: trainee already owns a PENDING plan
        """
        values = self._validate_draft(draft)
        self.placements.require_trainee(trainee_id)

        if self.repo.find_pending(trainee_id):
            logger.warning(f"Trainee {trainee_id} tried to submit a second pending lesson plan")
            raise ConflictError(PENDING_PLAN_EXISTS)

        plan = LessonPlan(
            id=str(uuid.uuid4()),
            trainee_id=trainee_id,
            status=LessonPlanStatus.PENDING.value,
            **values,
        )
        try:
            self.repo.add(plan)
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent submit
            self.db.rollback()
            logger.warning(f"Concurrent pending lesson plan insert for trainee {trainee_id}")
            raise ConflictError(PENDING_PLAN_EXISTS)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("insert", e)

        self.db.refresh(plan)
        logger.info(f"Lesson plan {plan.id} submitted by trainee {trainee_id}")
        self._publish(plan, "submitted", None, LessonPlanStatus.PENDING.value,
                      actor_id=trainee_id, recipient_id=self._supervisor_of(trainee_id))
        return plan

    def update(
        self,
        lesson_plan_id: str,
        trainee_id: str,
        draft: Union[LessonPlanDraft, Mapping[str, Any]],
    ) -> LessonPlan:
        """Revise a PENDING plan. Reviewed plans are frozen."""
        values = self._validate_draft(draft)
        plan = self._get_owned(lesson_plan_id, trainee_id)

        try:
            updated = self.repo.update_draft_if_pending(lesson_plan_id, values)
            if updated == 0:
                self.db.rollback()
                raise self._not_pending(lesson_plan_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("update", e)

        self.db.refresh(plan)
        logger.info(f"Lesson plan {lesson_plan_id} revised by trainee {trainee_id}")
        self._publish(plan, "updated", LessonPlanStatus.PENDING.value, LessonPlanStatus.PENDING.value,
                      actor_id=trainee_id, recipient_id=self._supervisor_of(trainee_id))
        return plan

    def review(
        self,
        lesson_plan_id: str,
        supervisor_id: str,
        decision: Union[ReviewDecision, Mapping[str, Any]],
    ) -> ReviewResult:
        """
        Approve or reject a PENDING plan and record the review feedback.

        The status change and the Feedback row commit together or not at all.

        Raises:
            ValidationError: bad status, empty comments, score outside 0-10
            NotFoundError: unknown plan or supervisor
            PermissionDeniedError: supervisor not assigned to the plan's trainee
            InvalidStateError: plan already reviewed
        """
        payload = parse_payload(ReviewDecision, decision)
        errors = FieldErrors()
        outcome = errors.check_choice(
            "status", payload.status, REVIEW_OUTCOMES, "Status must be APPROVED or REJECTED"
        )
        comments = errors.require_text("comments", payload.comments)
        score = errors.check_score(
            "score", payload.score, OBSERVATION_SCORE_MIN, OBSERVATION_SCORE_MAX, required=False
        )
        errors.raise_if_any()

        plan = self.repo.get_by_id(lesson_plan_id)
        if not plan:
            raise NotFoundError("lesson_plan", lesson_plan_id)
        self.placements.require_supervisor(supervisor_id)
        if not self.placements.supervises(supervisor_id, plan.trainee_id):
            logger.warning(
                f"Supervisor {supervisor_id} denied review of lesson plan {lesson_plan_id}: "
                f"not assigned to trainee {plan.trainee_id}"
            )
            raise PermissionDeniedError("You are not assigned to supervise this trainee")

        feedback = Feedback(
            id=str(uuid.uuid4()),
            lesson_plan_id=plan.id,
            observation_id=None,
            trainee_id=plan.trainee_id,
            supervisor_id=supervisor_id,
            score=score,
            comments=comments,
            created_at=datetime.utcnow(),
        )
        try:
            updated = self.repo.set_status_if(
                lesson_plan_id, LessonPlanStatus.PENDING.value, outcome.value
            )
            if updated == 0:
                self.db.rollback()
                raise self._not_pending(lesson_plan_id)
            self.db.add(feedback)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("review", e)

        self.db.refresh(plan)
        self.db.refresh(feedback)
        logger.info(
            f"Lesson plan {lesson_plan_id} transitioned PENDING → {outcome.value} "
            f"by supervisor {supervisor_id} (score={score})"
        )
        self._publish(plan, "reviewed", LessonPlanStatus.PENDING.value, outcome.value,
                      actor_id=supervisor_id, recipient_id=plan.trainee_id)
        return ReviewResult(lesson_plan=plan, feedback=feedback)

    def delete(self, lesson_plan_id: str, trainee_id: str) -> str:
        """Delete the owner's PENDING plan and return a confirmation message."""
        plan = self._get_owned(lesson_plan_id, trainee_id)
        observed_status = plan.status

        try:
            deleted = self.repo.delete_if_pending(lesson_plan_id)
            if deleted == 0:
                self.db.rollback()
                raise self._not_pending(lesson_plan_id, fallback=observed_status)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("delete", e)

        logger.info(f"Lesson plan {lesson_plan_id} deleted by trainee {trainee_id}")
        self.publish_event(TransitionEvent(
            entity="lesson_plan",
            entity_id=lesson_plan_id,
            action="deleted",
            from_status=LessonPlanStatus.PENDING.value,
            to_status=None,
            actor_id=trainee_id,
            recipient_id=self._supervisor_of(trainee_id),
        ))
        return LESSON_PLAN_DELETED

    # ---- queries ----------------------------------------------------------

    def get(self, lesson_plan_id: str) -> LessonPlanResponse:
        plan = self.repo.get_by_id(lesson_plan_id)
        if not plan:
            raise NotFoundError("lesson_plan", lesson_plan_id)
        return self.present(plan)

    def list_for_trainee(
        self,
        trainee_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        subject: Optional[str] = None,
        status: Optional[str] = None,
    ) -> LessonPlanPage:
        self.placements.require_trainee(trainee_id)
        statuses = self._parse_statuses(status) if status else None
        query = self.repo.search([trainee_id], statuses=statuses, search=search, subject=subject)
        return self._page(query, page, limit)

    def list_for_supervisor(
        self,
        supervisor_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        subject: Optional[str] = None,
        statuses: Optional[str] = DEFAULT_SUPERVISOR_STATUSES,
    ) -> LessonPlanPage:
        """Plans of every trainee the supervisor is assigned to."""
        self.placements.require_supervisor(supervisor_id)
        wanted = self._parse_statuses(statuses or DEFAULT_SUPERVISOR_STATUSES)
        trainee_ids = self.placements.repo.trainee_ids_for_supervisor(supervisor_id)
        query = self.repo.search(trainee_ids, statuses=wanted, search=search, subject=subject)
        return self._page(query, page, limit)

    def present(self, plan: LessonPlan, names: Optional[dict] = None) -> LessonPlanResponse:
        record = {
            "id": plan.id,
            "trainee_id": plan.trainee_id,
            "title": plan.title,
            "subject": plan.subject,
            "class_name": plan.class_name,
            "date": plan.date,
            "start_time": plan.start_time,
            "end_time": plan.end_time,
            "objectives": plan.objectives,
            "activities": plan.activities,
            "resources": plan.resources,
            "ai_generated": plan.ai_generated,
            "pdf_url": plan.pdf_url,
            "status": plan.status,
            "created_at": plan.created_at,
            **(names if names is not None else self.placements.placement_names(plan.trainee_id)),
        }
        return LessonPlanResponse(**lesson_plan_display_defaults(record))

    # ---- helpers ----------------------------------------------------------

    def _page(self, query, page: Optional[int], limit: Optional[int]) -> LessonPlanPage:
        rows, meta = paginate(query, page, limit)
        names_by_trainee: dict[str, dict] = {}
        items = []
        for plan in rows:
            if plan.trainee_id not in names_by_trainee:
                names_by_trainee[plan.trainee_id] = self.placements.placement_names(plan.trainee_id)
            items.append(self.present(plan, names_by_trainee[plan.trainee_id]))
        return LessonPlanPage(lesson_plans=items, **meta)

    @staticmethod
    def _parse_statuses(raw: str) -> list[str]:
        wanted = [part.strip() for part in raw.split(",") if part.strip()]
        known = {member.value for member in LESSON_PLAN_STATUSES}
        unknown = [value for value in wanted if value not in known]
        if unknown or not wanted:
            raise ValidationError({"status": f"Unknown lesson plan status: {', '.join(unknown) or raw}"})
        return wanted

    @staticmethod
    def _validate_draft(draft: Union[LessonPlanDraft, Mapping[str, Any]]) -> dict[str, Any]:
        payload = parse_payload(LessonPlanDraft, draft)
        errors = FieldErrors()
        values = {
            "title": errors.require_text("title", payload.title),
            "subject": errors.require_text("subject", payload.subject),
            "class_name": errors.require_text("class_name", payload.class_name, "Class"),
            "date": errors.check_date("date", payload.date),
            "start_time": errors.check_time("start_time", payload.start_time, required=False),
            "end_time": errors.check_time("end_time", payload.end_time, required=False),
            "objectives": errors.require_text("objectives", payload.objectives),
            "activities": errors.require_text("activities", payload.activities),
            "resources": errors.require_text("resources", payload.resources),
            "ai_generated": bool(payload.ai_generated),
            "pdf_url": (payload.pdf_url or "").strip() or None,
        }
        errors.check_time_range("start_time", values["start_time"], "end_time", values["end_time"])
        errors.raise_if_any()
        return values

    def _get_owned(self, lesson_plan_id: str, trainee_id: str) -> LessonPlan:
        plan = self.repo.get_by_id(lesson_plan_id)
        if not plan:
            raise NotFoundError("lesson_plan", lesson_plan_id)
        if plan.trainee_id != trainee_id:
            logger.warning(f"Trainee {trainee_id} denied access to lesson plan {lesson_plan_id}")
            raise PermissionDeniedError("You can only modify your own lesson plans")
        return plan

    def _not_pending(self, lesson_plan_id: str, fallback: Optional[str] = None) -> InvalidStateError:
        """Build the error for a lost compare-and-set, reporting the committed status."""
        current = self.repo.get_by_id(lesson_plan_id)
        status = current.status if current else (fallback or "missing")
        logger.warning(f"Lesson plan {lesson_plan_id} is {status}, expected PENDING")
        return InvalidStateError("lesson_plan", lesson_plan_id, status, LessonPlanStatus.PENDING.value)

    def _supervisor_of(self, trainee_id: str) -> Optional[str]:
        assignment = self.placements.repo.latest_assignment_for_trainee(trainee_id)
        return assignment.supervisor_id if assignment else None

    def _publish(self, plan: LessonPlan, action: str, from_status, to_status, actor_id, recipient_id) -> None:
        self.publish_event(TransitionEvent(
            entity="lesson_plan",
            entity_id=plan.id,
            action=action,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            recipient_id=recipient_id,
        ))

    def publish_event(self, event: TransitionEvent) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)
