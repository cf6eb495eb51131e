"""Student evaluations: the overall 0-100 grade for a TP placement."""
import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from feedback.repositories.feedback_repository import EvaluationRepository
from placements.services.placement_service import PlacementService
from shared.models.domain import TransitionEvent
from shared.models.entities import StudentEvaluation
from shared.models.schemas import (
    PendingEvaluationsResponse,
    StudentEvaluationInput,
    StudentEvaluationPage,
    StudentEvaluationResponse,
)
from shared.services.event_bus import EventBus
from shared.utils.constants import EVALUATION_SCORE_MAX, EVALUATION_SCORE_MIN, UNKNOWN
from shared.utils.exceptions import DatabaseException, PermissionDeniedError, ValidationError
from shared.utils.normalization import normalize_date, today as current_day
from shared.utils.pagination import paginate
from shared.utils.validation import FieldErrors, parse_payload

logger = logging.getLogger(__name__)


class EvaluationService:
    """Submit and list student evaluations."""

    def __init__(self, db: DBSession, event_bus: Optional[EventBus] = None):
        self.db = db
        self.repo = EvaluationRepository(db)
        self.placements = PlacementService(db)
        self.event_bus = event_bus

    def submit_student_evaluation(
        self,
        data: Union[StudentEvaluationInput, Mapping[str, Any]],
    ) -> StudentEvaluation:
        """
        Grade a trainee's placement.

        Raises:
            ValidationError: missing ids or score outside 0-100
            NotFoundError: unknown TP assignment
            PermissionDeniedError: trainee or supervisor not on the assignment
        """
        payload = parse_payload(StudentEvaluationInput, data)
        errors = FieldErrors()
        assignment_id = errors.require_text("tp_assignment_id", payload.tp_assignment_id, "TP assignment id")
        trainee_id = errors.require_text("trainee_id", payload.trainee_id, "Trainee id")
        supervisor_id = errors.require_text("supervisor_id", payload.supervisor_id, "Supervisor id")
        score = errors.check_score("score", payload.score, EVALUATION_SCORE_MIN, EVALUATION_SCORE_MAX)
        errors.raise_if_any()

        assignment = self.placements.require_assignment(assignment_id)
        if assignment.trainee_id != trainee_id or assignment.supervisor_id != supervisor_id:
            logger.warning(
                f"Evaluation rejected: assignment {assignment_id} does not link "
                f"trainee {trainee_id} and supervisor {supervisor_id}"
            )
            raise PermissionDeniedError("Trainee and supervisor do not match this TP assignment")

        evaluation = StudentEvaluation(
            id=str(uuid.uuid4()),
            tp_assignment_id=assignment_id,
            trainee_id=trainee_id,
            supervisor_id=supervisor_id,
            score=score,
            comments=(payload.comments or "").strip() or None,
            submitted_at=datetime.utcnow(),
        )
        try:
            self.repo.add(evaluation)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("insert", e)

        self.db.refresh(evaluation)
        logger.info(
            f"Student evaluation {evaluation.id} submitted for trainee {trainee_id} "
            f"by supervisor {supervisor_id} (score={score})"
        )
        if self.event_bus is not None:
            self.event_bus.publish(TransitionEvent(
                entity="student_evaluation",
                entity_id=evaluation.id,
                action="recorded",
                actor_id=supervisor_id,
                recipient_id=trainee_id,
            ))
        return evaluation

    def list_for_supervisor(
        self,
        supervisor_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> StudentEvaluationPage:
        self.placements.require_supervisor(supervisor_id)
        return self._page(self.repo.search(supervisor_id=supervisor_id, search=search), page, limit)

    def list_all(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> StudentEvaluationPage:
        return self._page(self.repo.search(search=search), page, limit)

    def pending_evaluations(self, today: Optional[str] = None) -> PendingEvaluationsResponse:
        """Placements that ended before ``today`` and still have no evaluation."""
        day = normalize_date(today) if today else current_day()
        if not day:
            raise ValidationError({"today": "Invalid date format, expected YYYY-MM-DD"})
        assignments = self.repo.assignments_awaiting_evaluation(day)
        if assignments:
            logger.info(f"{len(assignments)} TP assignment(s) ended before {day} without evaluation")
        return PendingEvaluationsResponse(
            pending_evaluations=len(assignments),
            assignment_ids=[a.id for a in assignments],
        )

    def present(self, evaluation: StudentEvaluation) -> StudentEvaluationResponse:
        return StudentEvaluationResponse(
            id=evaluation.id,
            tp_assignment_id=evaluation.tp_assignment_id,
            trainee_id=evaluation.trainee_id,
            supervisor_id=evaluation.supervisor_id,
            score=evaluation.score,
            comments=evaluation.comments,
            submitted_at=(evaluation.submitted_at or datetime.utcnow()).isoformat(),
            trainee_name=evaluation.trainee.display_name if evaluation.trainee else UNKNOWN,
            supervisor_name=evaluation.supervisor.display_name if evaluation.supervisor else UNKNOWN,
        )

    def _page(self, query, page: Optional[int], limit: Optional[int]) -> StudentEvaluationPage:
        rows, meta = paginate(query, page, limit)
        return StudentEvaluationPage(evaluations=[self.present(e) for e in rows], **meta)
