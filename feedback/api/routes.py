"""Feedback and student evaluation API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session as DBSession

from database import get_db
from feedback.services.evaluation_service import EvaluationService
from feedback.services.feedback_service import FeedbackService
from shared.api.dependencies import get_event_bus
from shared.api.errors import internal_error
from shared.models.schemas import (
    FeedbackEnvelope,
    FeedbackPage,
    ObservationFeedbackInput,
    PendingEvaluationsResponse,
    StudentEvaluationEnvelope,
    StudentEvaluationInput,
    StudentEvaluationPage,
)
from shared.services.event_bus import EventBus
from shared.utils.exceptions import TeachingPracticeException

router = APIRouter(prefix="/api", tags=["feedback"])


@router.post(
    "/supervisors/{supervisor_id}/observations/{observation_id}/feedback",
    response_model=FeedbackEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def submit_observation_feedback(
    supervisor_id: str,
    observation_id: str,
    request: ObservationFeedbackInput,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Score a completed observation."""
    try:
        service = FeedbackService(db, bus)
        feedback = service.submit_observation_feedback(observation_id, supervisor_id, request)
        return FeedbackEnvelope(
            message="Feedback submitted successfully",
            feedback=service.present(feedback),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("submitting feedback", e)


@router.get("/feedback", response_model=FeedbackPage)
def list_feedback(
    user_id: str,
    role: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    lesson_plan_id: Optional[str] = None,
    search: Optional[str] = None,
    db: DBSession = Depends(get_db),
):
    """Feedback given by a supervisor (role=supervisor) or received by a trainee (role=trainee)."""
    try:
        return FeedbackService(db).list_feedback(user_id, role, page, limit, lesson_plan_id, search)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing feedback", e)


@router.post(
    "/student-evaluations",
    response_model=StudentEvaluationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def submit_student_evaluation(
    request: StudentEvaluationInput,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    try:
        service = EvaluationService(db, bus)
        evaluation = service.submit_student_evaluation(request)
        return StudentEvaluationEnvelope(
            message="Student evaluation submitted successfully",
            evaluation=service.present(evaluation),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("submitting student evaluation", e)


@router.get("/student-evaluations/pending", response_model=PendingEvaluationsResponse)
def pending_evaluations(today: Optional[str] = None, db: DBSession = Depends(get_db)):
    """TP placements that have ended without a student evaluation."""
    try:
        return EvaluationService(db).pending_evaluations(today)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("checking pending evaluations", e)


@router.get("/student-evaluations", response_model=StudentEvaluationPage)
def list_student_evaluations(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    db: DBSession = Depends(get_db),
):
    try:
        return EvaluationService(db).list_all(page, limit, search)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing student evaluations", e)


@router.get("/supervisors/{supervisor_id}/student-evaluations", response_model=StudentEvaluationPage)
def list_supervisor_evaluations(
    supervisor_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    db: DBSession = Depends(get_db),
):
    try:
        return EvaluationService(db).list_for_supervisor(supervisor_id, page, limit, search)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing supervisor evaluations", e)
