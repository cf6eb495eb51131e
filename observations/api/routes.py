"""Observation API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session as DBSession

from database import get_db
from observations.services.observation_service import ObservationService
from shared.api.dependencies import get_event_bus
from shared.api.errors import internal_error
from shared.models.schemas import (
    ObservationEnvelope,
    ObservationPage,
    ObservationRequest,
    ObservationStatusUpdate,
)
from shared.services.event_bus import EventBus
from shared.utils.exceptions import TeachingPracticeException

router = APIRouter(prefix="/api", tags=["observations"])


@router.post(
    "/supervisors/{supervisor_id}/observations",
    response_model=ObservationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def schedule_observation(
    supervisor_id: str,
    request: ObservationRequest,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """Schedule an observation of an approved lesson plan."""
    try:
        service = ObservationService(db, bus)
        observation = service.schedule(supervisor_id, request)
        return ObservationEnvelope(
            message="Observation scheduled successfully",
            observation=service.present(observation),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("scheduling observation", e)


@router.put(
    "/supervisors/{supervisor_id}/observations/{observation_id}/status",
    response_model=ObservationEnvelope,
)
def update_observation_status(
    supervisor_id: str,
    observation_id: str,
    request: ObservationStatusUpdate,
    db: DBSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    try:
        service = ObservationService(db, bus)
        observation = service.advance_status(observation_id, supervisor_id, request)
        return ObservationEnvelope(
            message=f"Observation marked {observation.status}",
            observation=service.present(observation),
        )
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("updating observation status", e)


@router.get("/supervisors/{supervisor_id}/observations", response_model=ObservationPage)
def list_supervisor_observations(
    supervisor_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[str] = None,
    db: DBSession = Depends(get_db),
):
    try:
        return ObservationService(db).list_for_supervisor(supervisor_id, page, limit, status)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing observations", e)


@router.get("/trainees/{trainee_id}/observations", response_model=ObservationPage)
def list_trainee_observations(
    trainee_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: DBSession = Depends(get_db),
):
    try:
        return ObservationService(db).list_for_trainee(trainee_id, page, limit)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing trainee observations", e)
