"""Tests for PlacementService: directory writes and supervision lookups."""
import pytest

from placements.services.placement_service import PlacementService
from shared.models.entities import Feedback, TPAssignment
from shared.utils.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def service(db_session):
    return PlacementService(db_session)


class TestCreate:

    def test_create_trainee(self, service):
        trainee = service.create_trainee({"reg_no": " TP-9 ", "name": "Lena", "surname": "Ode"})

        assert trainee.id
        assert trainee.reg_no == "TP-9"
        assert trainee.display_name == "Lena Ode"

    def test_duplicate_reg_no_conflicts(self, service):
        service.create_trainee({"reg_no": "TP-9", "name": "Lena", "surname": "Ode"})

        with pytest.raises(ConflictError):
            service.create_trainee({"reg_no": "TP-9", "name": "Other", "surname": "Person"})

    def test_missing_fields_reported_together(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create_supervisor({"name": "Ruth"})
        assert exc_info.value.fields == ["staff_id", "surname"]

    def test_create_school(self, service):
        school = service.create_school({"name": "Hillside", "address": ""})
        assert school.name == "Hillside"
        assert school.address is None


class TestAssign:

    def test_assign_links_trainee_and_supervisor(self, service, trainee, supervisor, school):
        assignment = service.assign({
            "trainee_id": trainee.id,
            "supervisor_id": supervisor.id,
            "school_id": school.id,
            "start_date": "2025-01-06",
            "end_date": "2025-03-28",
        })

        assert isinstance(assignment, TPAssignment)
        assert service.supervises(supervisor.id, trainee.id)

    def test_end_before_start_rejected(self, service, trainee, supervisor):
        with pytest.raises(ValidationError) as exc_info:
            service.assign({
                "trainee_id": trainee.id,
                "supervisor_id": supervisor.id,
                "start_date": "2025-03-01",
                "end_date": "2025-02-01",
            })
        assert exc_info.value.fields == ["end_date"]

    def test_unknown_trainee(self, service, supervisor):
        with pytest.raises(NotFoundError):
            service.assign({
                "trainee_id": "ghost",
                "supervisor_id": supervisor.id,
                "start_date": "2025-01-01",
                "end_date": "2025-02-01",
            })

    def test_unknown_school(self, service, trainee, supervisor):
        with pytest.raises(NotFoundError):
            service.assign({
                "trainee_id": trainee.id,
                "supervisor_id": supervisor.id,
                "school_id": "nowhere",
                "start_date": "2025-01-01",
                "end_date": "2025-02-01",
            })


class TestLookups:

    def test_supervises_requires_assignment(self, service, assignment, other_supervisor, other_trainee):
        assert service.supervises("supervisor-1", "trainee-1")
        assert not service.supervises(other_supervisor.id, "trainee-1")
        assert not service.supervises("supervisor-1", other_trainee.id)

    def test_placement_names(self, service, assignment):
        names = service.placement_names("trainee-1")
        assert names == {
            "trainee_name": "Amara Okafor",
            "supervisor_name": "Ruth Mensah",
            "school_name": "Greenfield Primary",
        }

    def test_placement_names_without_assignment(self, service, other_trainee):
        names = service.placement_names(other_trainee.id)
        assert names["trainee_name"] == "Jonas Berg"
        assert names["supervisor_name"] is None

    def test_require_supervisor_missing(self, service):
        with pytest.raises(NotFoundError):
            service.require_supervisor("nobody")

    def test_list_supervised_trainees_with_activity(self, service, db_session, assignment, make_plan):
        plan = make_plan(status="APPROVED")
        db_session.add_all([
            Feedback(id="f1", lesson_plan_id=plan.id, trainee_id="trainee-1",
                     supervisor_id="supervisor-1", score=6, comments="ok"),
            Feedback(id="f2", lesson_plan_id=plan.id, trainee_id="trainee-1",
                     supervisor_id="supervisor-1", score=9, comments="good"),
        ])
        db_session.commit()

        summaries = service.list_supervised_trainees("supervisor-1")

        assert len(summaries) == 1
        assert summaries[0].reg_no == "TP2025-001"
        assert summaries[0].lesson_plan_count == 1
        assert summaries[0].observation_count == 0
        assert summaries[0].average_score == 7.5
