"""Lesson plan API endpoints (trainee authoring and supervisor review)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session as DBSession

from database import get_db
from feedback.services.feedback_service import FeedbackService
from lesson_plans.services.lesson_plan_service import (
    DEFAULT_SUPERVISOR_STATUSES,
    LessonPlanService,
)
from shared.api.dependencies import get_event_bus
from shared.api.errors import internal_error
from shared.models.schemas import (
    LessonPlanDraft,
    LessonPlanEnvelope,
    LessonPlanPage,
    LessonPlanResponse,
    MessageResponse,
    ReviewDecision,
    ReviewResponse,
)
from shared.services.event_bus import EventBus
from shared.utils.exceptions import TeachingPracticeException

router = APIRouter(prefix="/api", tags=["lesson-plans"])


@router.post(
    "/trainees/{trainee_id}/lesson-plans",
    response_model=LessonPlanEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def submit_lesson_plan(
    trainee_id: str,
    request: LessonPlanDraft,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Submit a new lesson plan for review."""
    try:
        service = LessonPlanService(db, bus)
        plan = service.submit(trainee_id, request)
        return LessonPlanEnvelope(
            message="Lesson plan submitted successfully",
            lesson_plan=service.present(plan),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("submitting lesson plan", e)


@router.put("/trainees/{trainee_id}/lesson-plans/{lesson_plan_id}", response_model=LessonPlanEnvelope)
def update_lesson_plan(
    trainee_id: str,
    lesson_plan_id: str,
    request: LessonPlanDraft,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Revise a lesson plan that is still pending review."""
    try:
        service = LessonPlanService(db, bus)
        plan = service.update(lesson_plan_id, trainee_id, request)
        return LessonPlanEnvelope(
            message="Lesson plan updated successfully",
            lesson_plan=service.present(plan),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("updating lesson plan", e)


@router.delete("/trainees/{trainee_id}/lesson-plans/{lesson_plan_id}", response_model=MessageResponse)
def delete_lesson_plan(
    trainee_id: str,
    lesson_plan_id: str,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    try:
        message = LessonPlanService(db, bus).delete(lesson_plan_id, trainee_id)
        return MessageResponse(message=message)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("deleting lesson plan", e)


@router.get("/trainees/{trainee_id}/lesson-plans", response_model=LessonPlanPage)
def list_trainee_lesson_plans(
    trainee_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    subject: Optional[str] = None,
    status: Optional[str] = None,
    db: DBSession = Depends(get_db),
):
    try:
        return LessonPlanService(db).list_for_trainee(trainee_id, page, limit, search, subject, status)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing lesson plans", e)


@router.get("/lesson-plans/{lesson_plan_id}", response_model=LessonPlanResponse)
def get_lesson_plan(lesson_plan_id: str, db: DBSession = Depends(get_db)):
    try:
        return LessonPlanService(db).get(lesson_plan_id)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("fetching lesson plan", e)


@router.get("/supervisors/{supervisor_id}/lesson-plans", response_model=LessonPlanPage)
def list_supervisor_lesson_plans(
    supervisor_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    subject: Optional[str] = None,
    status: str = DEFAULT_SUPERVISOR_STATUSES,
    db: DBSession = Depends(get_db),
):
    """Lesson plans of the supervisor's trainees; ``status`` is a comma-separated filter."""
    try:
        return LessonPlanService(db).list_for_supervisor(
            supervisor_id, page, limit, search, subject, status
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing supervisor lesson plans", e)


@router.put(
    "/supervisors/{supervisor_id}/lesson-plans/{lesson_plan_id}/review",
    response_model=ReviewResponse,
)
def review_lesson_plan(
    supervisor_id: str,
    lesson_plan_id: str,
    request: ReviewDecision,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Approve or reject a pending lesson plan with comments and an optional score."""
    try:
        service = LessonPlanService(db, bus)
        result = service.review(lesson_plan_id, supervisor_id, request)
        return ReviewResponse(
            message=f"Lesson plan {result.lesson_plan.status.lower()} successfully",
            lesson_plan=service.present(result.lesson_plan),
            feedback=FeedbackService(db).present(result.feedback),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("reviewing lesson plan", e)
