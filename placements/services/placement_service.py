"""
Placement directory: who is placed where, and who supervises whom.

A supervisor is permitted to review a trainee's work exactly when a
TP assignment links the two.
"""
import logging
import uuid
from typing import Any, Mapping, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from placements.repositories.placement_repository import PlacementRepository
from shared.models.entities import School, Supervisor, TPAssignment, Trainee
from shared.models.schemas import (
    SchoolCreate,
    SupervisedTraineeSummary,
    SupervisorCreate,
    TPAssignmentCreate,
    TraineeCreate,
)
from shared.utils.constants import UNKNOWN
from shared.utils.exceptions import (
    ConflictError,
    DatabaseException,
    NotFoundError,
)
from shared.utils.validation import FieldErrors, parse_payload

logger = logging.getLogger(__name__)

Payload = Union[Mapping[str, Any], Any]


class PlacementService:
    """Creates placement records and answers supervision questions."""

    def __init__(self, db: DBSession):
        self.db = db
        self.repo = PlacementRepository(db)

    # ---- lookups ----------------------------------------------------------

    def require_trainee(self, trainee_id: str) -> Trainee:
        trainee = self.repo.get_trainee(trainee_id)
        if not trainee:
            raise NotFoundError("trainee", trainee_id)
        return trainee

    def require_supervisor(self, supervisor_id: str) -> Supervisor:
        supervisor = self.repo.get_supervisor(supervisor_id)
        if not supervisor:
            raise NotFoundError("supervisor", supervisor_id)
        return supervisor

    def require_assignment(self, assignment_id: str) -> TPAssignment:
        assignment = self.repo.get_assignment(assignment_id)
        if not assignment:
            raise NotFoundError("tp_assignment", assignment_id)
        return assignment

    def supervises(self, supervisor_id: str, trainee_id: str) -> bool:
        return self.repo.find_assignment(supervisor_id, trainee_id) is not None

    def trainee_name(self, trainee_id: Optional[str]) -> Optional[str]:
        trainee = self.repo.get_trainee(trainee_id) if trainee_id else None
        return trainee.display_name if trainee else None

    def supervisor_name(self, supervisor_id: Optional[str]) -> Optional[str]:
        supervisor = self.repo.get_supervisor(supervisor_id) if supervisor_id else None
        return supervisor.display_name if supervisor else None

    def placement_names(self, trainee_id: str) -> dict[str, Optional[str]]:
        """Trainee, supervisor and school names from the trainee's latest placement."""
        names = {
            "trainee_name": self.trainee_name(trainee_id),
            "supervisor_name": None,
            "school_name": None,
        }
        assignment = self.repo.latest_assignment_for_trainee(trainee_id)
        if assignment:
            if assignment.supervisor:
                names["supervisor_name"] = assignment.supervisor.display_name
            if assignment.school:
                names["school_name"] = assignment.school.name
        return names

    def list_supervised_trainees(self, supervisor_id: str) -> list[SupervisedTraineeSummary]:
        self.require_supervisor(supervisor_id)
        summaries = []
        for trainee in self.repo.supervised_trainees(supervisor_id):
            activity = self.repo.trainee_activity(supervisor_id, trainee.id)
            summaries.append(SupervisedTraineeSummary(
                id=trainee.id,
                name=trainee.name or UNKNOWN,
                surname=trainee.surname or "",
                reg_no=trainee.reg_no,
                email=trainee.email,
                **activity,
            ))
        return summaries

    # ---- writes -----------------------------------------------------------

    def create_trainee(self, data: Payload) -> Trainee:
        payload = parse_payload(TraineeCreate, data)
        errors = FieldErrors()
        reg_no = errors.require_text("reg_no", payload.reg_no, "Registration number")
        name = errors.require_text("name", payload.name)
        surname = errors.require_text("surname", payload.surname)
        errors.raise_if_any()

        trainee = Trainee(
            id=str(uuid.uuid4()),
            reg_no=reg_no,
            name=name,
            surname=surname,
            email=(payload.email or "").strip() or None,
        )
        self._insert(trainee, f"Trainee with registration number {reg_no} already exists")
        logger.info(f"Trainee {trainee.id} created (reg_no={reg_no})")
        return trainee

    def create_supervisor(self, data: Payload) -> Supervisor:
        payload = parse_payload(SupervisorCreate, data)
        errors = FieldErrors()
        staff_id = errors.require_text("staff_id", payload.staff_id, "Staff id")
        name = errors.require_text("name", payload.name)
        surname = errors.require_text("surname", payload.surname)
        errors.raise_if_any()

        supervisor = Supervisor(
            id=str(uuid.uuid4()),
            staff_id=staff_id,
            name=name,
            surname=surname,
            email=(payload.email or "").strip() or None,
        )
        self._insert(supervisor, f"Supervisor with staff id {staff_id} already exists")
        logger.info(f"Supervisor {supervisor.id} created (staff_id={staff_id})")
        return supervisor

    def create_school(self, data: Payload) -> School:
        payload = parse_payload(SchoolCreate, data)
        errors = FieldErrors()
        name = errors.require_text("name", payload.name)
        errors.raise_if_any()

        school = School(
            id=str(uuid.uuid4()),
            name=name,
            address=(payload.address or "").strip() or None,
        )
        self._insert(school, f"School {name} already exists")
        logger.info(f"School {school.id} created ({name})")
        return school

    def assign(self, data: Payload) -> TPAssignment:
        """Place a trainee at a school under a supervisor for a date range."""
        payload = parse_payload(TPAssignmentCreate, data)
        errors = FieldErrors()
        trainee_id = errors.require_text("trainee_id", payload.trainee_id, "Trainee id")
        supervisor_id = errors.require_text("supervisor_id", payload.supervisor_id, "Supervisor id")
        start_date = errors.check_date("start_date", payload.start_date)
        end_date = errors.check_date("end_date", payload.end_date)
        errors.check_date_range("start_date", start_date, "end_date", end_date)
        errors.raise_if_any()

        self.require_trainee(trainee_id)
        self.require_supervisor(supervisor_id)
        school_id = (payload.school_id or "").strip() or None
        if school_id and not self.repo.get_school(school_id):
            raise NotFoundError("school", school_id)

        assignment = TPAssignment(
            id=str(uuid.uuid4()),
            trainee_id=trainee_id,
            supervisor_id=supervisor_id,
            school_id=school_id,
            start_date=start_date,
            end_date=end_date,
        )
        self._insert(assignment, "Conflicting TP assignment")
        logger.info(
            f"TP assignment {assignment.id}: trainee={trainee_id} supervisor={supervisor_id} "
            f"school={school_id} {start_date}..{end_date}"
        )
        return assignment

    def _insert(self, entity, conflict_message: str) -> None:
        try:
            self.repo.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        except IntegrityError:
            self.db.rollback()
            logger.warning(conflict_message)
            raise ConflictError(conflict_message)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("insert", e)
