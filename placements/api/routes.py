"""Placement API endpoints: trainees, supervisors, schools and TP assignments."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session as DBSession

from database import get_db
from placements.services.placement_service import PlacementService
from shared.api.errors import internal_error
from shared.models.schemas import (
    SchoolCreate,
    SchoolResponse,
    SupervisedTraineeSummary,
    SupervisorCreate,
    SupervisorResponse,
    TPAssignmentCreate,
    TPAssignmentResponse,
    TraineeCreate,
    TraineeResponse,
)
from shared.utils.exceptions import TeachingPracticeException

router = APIRouter(prefix="/api", tags=["placements"])


@router.post("/trainees", response_model=TraineeResponse, status_code=status.HTTP_201_CREATED)
def create_trainee(request: TraineeCreate, db: DBSession = Depends(get_db)):
    try:
        return PlacementService(db).create_trainee(request)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("creating trainee", e)


@router.post("/supervisors", response_model=SupervisorResponse, status_code=status.HTTP_201_CREATED)
def create_supervisor(request: SupervisorCreate, db: DBSession = Depends(get_db)):
    try:
        return PlacementService(db).create_supervisor(request)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("creating supervisor", e)


@router.post("/schools", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
def create_school(request: SchoolCreate, db: DBSession = Depends(get_db)):
    try:
        return PlacementService(db).create_school(request)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("creating school", e)


@router.post("/tp-assignments", response_model=TPAssignmentResponse, status_code=status.HTTP_201_CREATED)
def create_assignment(request: TPAssignmentCreate, db: DBSession = Depends(get_db)):
    """Place a trainee at a school under a supervisor."""
    try:
        return PlacementService(db).assign(request)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("creating TP assignment", e)


@router.get("/supervisors/{supervisor_id}/trainees", response_model=List[SupervisedTraineeSummary])
def list_supervised_trainees(supervisor_id: str, db: DBSession = Depends(get_db)):
    """Trainees assigned to a supervisor, with activity counts."""
    try:
        return PlacementService(db).list_supervised_trainees(supervisor_id)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing supervised trainees", e)
