"""
Observation feedback.

Feedback is append-only. It can only be recorded once the observation is
COMPLETED; more than one row per observation is allowed and logged.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from feedback.repositories.feedback_repository import FeedbackRepository
from lesson_plans.repositories.lesson_plan_repository import LessonPlanRepository
from observations.repositories.observation_repository import ObservationRepository
from placements.services.placement_service import PlacementService
from shared.models.domain import FeedbackRole, ObservationStatus, TransitionEvent
from shared.models.entities import Feedback
from shared.models.schemas import FeedbackPage, FeedbackResponse, ObservationFeedbackInput
from shared.services.event_bus import EventBus
from shared.utils.constants import (
    FEEDBACK_REQUIRES_COMPLETED,
    OBSERVATION_SCORE_MAX,
    OBSERVATION_SCORE_MIN,
)
from shared.utils.exceptions import (
    DatabaseException,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
)
from shared.utils.normalization import feedback_display_defaults
from shared.utils.pagination import paginate
from shared.utils.validation import FieldErrors, parse_payload

logger = logging.getLogger(__name__)


class FeedbackService:
    """Record and list supervisor feedback."""

    def __init__(self, db: DBSession, event_bus: Optional[EventBus] = None):
        self.db = db
        self.repo = FeedbackRepository(db)
        self.observations = ObservationRepository(db)
        self.lesson_plans = LessonPlanRepository(db)
        self.placements = PlacementService(db)
        self.event_bus = event_bus

    def submit_observation_feedback(
        self,
        observation_id: str,
        supervisor_id: str,
        data: Union[ObservationFeedbackInput, Mapping[str, Any]],
    ) -> Feedback:
        """
        Record scored feedback for a completed observation.

        Raises:
            ValidationError: score outside 0-10 or empty comments
            NotFoundError: unknown observation
            PermissionDeniedError: observation belongs to another supervisor
            PreconditionError: observation is not COMPLETED
        """
        payload = parse_payload(ObservationFeedbackInput, data)
        errors = FieldErrors()
        score = errors.check_score("score", payload.score, OBSERVATION_SCORE_MIN, OBSERVATION_SCORE_MAX)
        comments = errors.require_text("comments", payload.comments)
        errors.raise_if_any()

        observation = self.observations.get_by_id(observation_id)
        if not observation:
            raise NotFoundError("observation", observation_id)
        if observation.supervisor_id != supervisor_id:
            logger.warning(f"Supervisor {supervisor_id} denied feedback on observation {observation_id}")
            raise PermissionDeniedError("You can only give feedback on your own observations")
        if observation.status != ObservationStatus.COMPLETED.value:
            logger.warning(
                f"Refused feedback for observation {observation_id} in status {observation.status}"
            )
            raise PreconditionError(FEEDBACK_REQUIRES_COMPLETED)

        previous = self.repo.count_for_observation(observation_id)
        if previous:
            logger.warning(f"Observation {observation_id} already has {previous} feedback row(s)")

        feedback = Feedback(
            id=str(uuid.uuid4()),
            lesson_plan_id=observation.lesson_plan_id,
            observation_id=observation.id,
            trainee_id=observation.trainee_id,
            supervisor_id=supervisor_id,
            score=score,
            comments=comments,
            created_at=datetime.utcnow(),
        )
        try:
            self.repo.add(feedback)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("insert", e)

        self.db.refresh(feedback)
        logger.info(f"Feedback {feedback.id} recorded for observation {observation_id} (score={score})")
        if self.event_bus is not None:
            self.event_bus.publish(TransitionEvent(
                entity="feedback",
                entity_id=feedback.id,
                action="recorded",
                from_status=None,
                to_status=None,
                actor_id=supervisor_id,
                recipient_id=feedback.trainee_id,
            ))
        return feedback

    def list_feedback(
        self,
        user_id: str,
        role: Union[FeedbackRole, str],
        page: Optional[int] = None,
        limit: Optional[int] = None,
        lesson_plan_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> FeedbackPage:
        """Feedback given by a supervisor or received by a trainee."""
        errors = FieldErrors()
        errors.require_text("user_id", user_id, "User id")
        role = errors.check_choice("role", role, FeedbackRole, "Role must be supervisor or trainee")
        errors.raise_if_any()

        if role == FeedbackRole.SUPERVISOR:
            query = self.repo.search(supervisor_id=user_id, lesson_plan_id=lesson_plan_id, search=search)
        else:
            query = self.repo.search(trainee_id=user_id, lesson_plan_id=lesson_plan_id, search=search)
        rows, meta = paginate(query, page, limit)
        return FeedbackPage(feedback=[self.present(f) for f in rows], **meta)

    def present(self, feedback: Feedback) -> FeedbackResponse:
        plan = self.lesson_plans.get_by_id(feedback.lesson_plan_id) if feedback.lesson_plan_id else None
        record = {
            "id": feedback.id,
            "lesson_plan_id": feedback.lesson_plan_id,
            "observation_id": feedback.observation_id,
            "trainee_id": feedback.trainee_id,
            "supervisor_id": feedback.supervisor_id,
            "score": feedback.score,
            "comments": feedback.comments,
            "created_at": feedback.created_at,
            "lesson_plan_title": plan.title if plan else None,
            "trainee_name": self.placements.trainee_name(feedback.trainee_id),
            "supervisor_name": self.placements.supervisor_name(feedback.supervisor_id),
        }
        return FeedbackResponse(**feedback_display_defaults(record))
