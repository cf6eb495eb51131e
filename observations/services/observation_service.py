"""
Observation scheduling and lifecycle.

State machine: SCHEDULED → ONGOING → COMPLETED (forward only)
SCHEDULED → COMPLETED is allowed only when ``allow_direct_completion`` is set.

Only an APPROVED lesson plan can be scheduled. Status writes are
compare-and-set on the status the caller observed.
"""
import logging
import uuid
from typing import Any, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from config import get_settings
from lesson_plans.repositories.lesson_plan_repository import LessonPlanRepository
from observations.repositories.observation_repository import ObservationRepository
from placements.services.placement_service import PlacementService
from shared.models.domain import (
    ADVANCE_TARGETS,
    OBSERVATION_STATUSES,
    LessonPlanStatus,
    ObservationStatus,
    TransitionEvent,
    allowed_observation_targets,
)
from shared.models.entities import Observation
from shared.models.schemas import (
    ObservationPage,
    ObservationRequest,
    ObservationResponse,
    ObservationStatusUpdate,
)
from shared.services.event_bus import EventBus
from shared.utils.constants import ONLY_APPROVED_CAN_BE_SCHEDULED
from shared.utils.exceptions import (
    DatabaseException,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
)
from shared.utils.normalization import normalize_observation_status, observation_display_defaults
from shared.utils.pagination import paginate
from shared.utils.validation import FieldErrors, parse_payload

logger = logging.getLogger(__name__)


class ObservationService:
    """Schedule observations of approved lesson plans and move them forward."""

    def __init__(
        self,
        db: DBSession,
        event_bus: Optional[EventBus] = None,
        allow_direct_completion: Optional[bool] = None,
    ):
        self.db = db
        self.repo = ObservationRepository(db)
        self.lesson_plans = LessonPlanRepository(db)
        self.placements = PlacementService(db)
        self.event_bus = event_bus
        if allow_direct_completion is None:
            allow_direct_completion = get_settings().allow_direct_completion
        self.allow_direct_completion = allow_direct_completion

    def schedule(
        self,
        supervisor_id: str,
        request: Union[ObservationRequest, Mapping[str, Any]],
    ) -> Observation:
        """
        Schedule an observation of an approved lesson plan.

        Raises:
            ValidationError: missing ids or malformed date/time fields
            NotFoundError: unknown supervisor or lesson plan
            PermissionDeniedError: trainee does not own the plan, or the
                supervisor is not assigned to the trainee
            PreconditionError: lesson plan is not APPROVED
        """
        payload = parse_payload(ObservationRequest, request)
        errors = FieldErrors()
        lesson_plan_id = errors.require_text("lesson_plan_id", payload.lesson_plan_id, "Lesson plan id")
        trainee_id = errors.require_text("trainee_id", payload.trainee_id, "Trainee id")
        date = errors.check_date("date", payload.date)
        start_time = errors.check_time("start_time", payload.start_time)
        end_time = errors.check_time("end_time", payload.end_time)
        errors.check_time_range("start_time", start_time, "end_time", end_time)
        errors.raise_if_any()

        self.placements.require_supervisor(supervisor_id)

        # Re-read inside this transaction so the APPROVED check and the insert agree
        plan = self.lesson_plans.get_for_update(lesson_plan_id)
        if not plan:
            raise NotFoundError("lesson_plan", lesson_plan_id)
        if plan.trainee_id != trainee_id:
            self.db.rollback()
            logger.warning(f"Lesson plan {lesson_plan_id} does not belong to trainee {trainee_id}")
            raise PermissionDeniedError("Lesson plan does not belong to this trainee")
        if not self.placements.supervises(supervisor_id, trainee_id):
            self.db.rollback()
            logger.warning(f"Supervisor {supervisor_id} is not assigned to trainee {trainee_id}")
            raise PermissionDeniedError("You are not assigned to supervise this trainee")
        if plan.status != LessonPlanStatus.APPROVED.value:
            self.db.rollback()
            logger.warning(
                f"Refused to schedule observation for lesson plan {lesson_plan_id} in status {plan.status}"
            )
            raise PreconditionError(ONLY_APPROVED_CAN_BE_SCHEDULED)

        existing = self.repo.count_for_lesson_plan(lesson_plan_id)
        if existing:
            logger.info(f"Lesson plan {lesson_plan_id} already has {existing} observation(s)")

        observation = Observation(
            id=str(uuid.uuid4()),
            supervisor_id=supervisor_id,
            trainee_id=trainee_id,
            lesson_plan_id=lesson_plan_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
            status=ObservationStatus.SCHEDULED.value,
        )
        try:
            self.repo.add(observation)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("insert", e)

        self.db.refresh(observation)
        logger.info(
            f"Observation {observation.id} scheduled by supervisor {supervisor_id} "
            f"for lesson plan {lesson_plan_id} on {date} {start_time}-{end_time}"
        )
        self._publish(observation, "scheduled", None, ObservationStatus.SCHEDULED.value, supervisor_id)
        return observation

    def advance_status(
        self,
        observation_id: str,
        supervisor_id: str,
        request: Union[ObservationStatusUpdate, Mapping[str, Any], str],
    ) -> Observation:
        """
        Move an observation one step forward.

        Raises:
            ValidationError: status is not an observation status
            NotFoundError: unknown observation
            PermissionDeniedError: observation belongs to another supervisor
            InvalidTransitionError: target not reachable from the current status
        """
        if isinstance(request, str):
            request = {"status": request}
        payload = parse_payload(ObservationStatusUpdate, request)
        errors = FieldErrors()
        target = errors.check_choice(
            "status", payload.status, OBSERVATION_STATUSES,
            "Status must be one of SCHEDULED, ONGOING, COMPLETED",
        )
        errors.raise_if_any()

        observation = self.repo.get_by_id(observation_id)
        if not observation:
            raise NotFoundError("observation", observation_id)
        if observation.supervisor_id != supervisor_id:
            logger.warning(f"Supervisor {supervisor_id} denied update of observation {observation_id}")
            raise PermissionDeniedError("You can only update your own observations")

        current = normalize_observation_status(observation.status)
        # SCHEDULED is never a target, whatever the current status
        if target not in ADVANCE_TARGETS or target not in allowed_observation_targets(
            current, self.allow_direct_completion
        ):
            logger.warning(
                f"Rejected observation {observation_id} transition {current.value} → {target.value}"
            )
            raise InvalidTransitionError("observation", current.value, target.value)

        try:
            updated = self.repo.set_status_if(observation_id, current.value, target.value)
            if updated == 0:
                self.db.rollback()
                latest = self.repo.get_by_id(observation_id)
                actual = latest.status if latest else current.value
                logger.warning(f"Observation {observation_id} moved to {actual} concurrently")
                raise InvalidTransitionError("observation", actual, target.value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("update", e)

        self.db.refresh(observation)
        logger.info(f"Observation {observation_id} transitioned {current.value} → {target.value}")
        self._publish(observation, "advanced", current.value, target.value, supervisor_id)
        return observation

    def get(self, observation_id: str) -> ObservationResponse:
        observation = self.repo.get_by_id(observation_id)
        if not observation:
            raise NotFoundError("observation", observation_id)
        return self.present(observation)

    def list_for_supervisor(
        self,
        supervisor_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
    ) -> ObservationPage:
        if status:
            errors = FieldErrors()
            errors.check_choice(
                "status", status, OBSERVATION_STATUSES,
                "Status must be one of SCHEDULED, ONGOING, COMPLETED",
            )
            errors.raise_if_any()
        rows, meta = paginate(self.repo.for_supervisor(supervisor_id, status), page, limit)
        return ObservationPage(observations=[self.present(o) for o in rows], **meta)

    def list_for_trainee(
        self,
        trainee_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ObservationPage:
        rows, meta = paginate(self.repo.for_trainee(trainee_id), page, limit)
        return ObservationPage(observations=[self.present(o) for o in rows], **meta)

    @staticmethod
    def present(observation: Observation) -> ObservationResponse:
        """Join lesson plan title and trainee name; dangling joins degrade to defaults."""
        record = {
            "id": observation.id,
            "supervisor_id": observation.supervisor_id,
            "trainee_id": observation.trainee_id,
            "lesson_plan_id": observation.lesson_plan_id,
            "date": observation.date,
            "start_time": observation.start_time,
            "end_time": observation.end_time,
            "status": observation.status,
            "created_at": observation.created_at,
            "lesson_plan_title": observation.lesson_plan.title if observation.lesson_plan else None,
            "trainee_name": observation.trainee.display_name if observation.trainee else None,
        }
        return ObservationResponse(**observation_display_defaults(record))

    def _publish(self, observation: Observation, action: str, from_status, to_status, actor_id: str) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(TransitionEvent(
            entity="observation",
            entity_id=observation.id,
            action=action,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            recipient_id=observation.trainee_id,
        ))
