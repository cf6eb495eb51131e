"""Tests for observation feedback and student evaluations."""
import pytest

from feedback.services.evaluation_service import EvaluationService
from feedback.services.feedback_service import FeedbackService
from shared.models.entities import Feedback, StudentEvaluation, TPAssignment
from shared.utils.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)


@pytest.fixture
def feedback_service(db_session, event_log):
    return FeedbackService(db_session, event_log)


@pytest.fixture
def evaluation_service(db_session, event_log):
    return EvaluationService(db_session, event_log)


@pytest.fixture
def completed(approved_plan, make_observation):
    return make_observation(approved_plan.id, status="COMPLETED", id="obs-done")


class TestObservationFeedback:

    @pytest.mark.parametrize("status", ["SCHEDULED", "ONGOING"])
    def test_requires_completed(self, feedback_service, db_session, approved_plan, make_observation, status):
        observation = make_observation(approved_plan.id, status=status)

        with pytest.raises(PreconditionError) as exc_info:
            feedback_service.submit_observation_feedback(
                observation.id, "supervisor-1", {"score": 7, "comments": "Nice pacing"}
            )

        assert str(exc_info.value) == "Feedback can only be submitted for completed observations"
        assert db_session.query(Feedback).count() == 0

    def test_completed_accepts_feedback(self, feedback_service, completed):
        feedback = feedback_service.submit_observation_feedback(
            completed.id, "supervisor-1", {"score": 7, "comments": "Nice pacing"}
        )

        assert feedback.observation_id == completed.id
        assert feedback.lesson_plan_id == completed.lesson_plan_id
        assert feedback.trainee_id == "trainee-1"
        assert feedback.score == 7

    def test_second_submission_creates_second_row(self, feedback_service, db_session, completed, caplog):
        body = {"score": 7, "comments": "Nice pacing"}
        feedback_service.submit_observation_feedback(completed.id, "supervisor-1", body)
        feedback_service.submit_observation_feedback(completed.id, "supervisor-1", {**body, "score": 8})

        assert db_session.query(Feedback).filter(Feedback.observation_id == completed.id).count() == 2
        assert "already has 1 feedback" in caplog.text

    @pytest.mark.parametrize("body, field", [
        ({"score": 11, "comments": "ok"}, "score"),
        ({"score": None, "comments": "ok"}, "score"),
        ({"score": True, "comments": "ok"}, "score"),
        ({"score": 7.5, "comments": "ok"}, "score"),
        ({"score": 5, "comments": ""}, "comments"),
    ])
    def test_validation(self, feedback_service, completed, body, field):
        with pytest.raises(ValidationError) as exc_info:
            feedback_service.submit_observation_feedback(completed.id, "supervisor-1", body)
        assert field in exc_info.value.fields

    def test_other_supervisor(self, feedback_service, completed, other_supervisor):
        with pytest.raises(PermissionDeniedError):
            feedback_service.submit_observation_feedback(
                completed.id, other_supervisor.id, {"score": 5, "comments": "ok"}
            )

    def test_missing_observation(self, feedback_service, assignment):
        with pytest.raises(NotFoundError):
            feedback_service.submit_observation_feedback("nope", "supervisor-1", {"score": 5, "comments": "ok"})

    def test_event_published(self, feedback_service, event_log, completed):
        feedback = feedback_service.submit_observation_feedback(
            completed.id, "supervisor-1", {"score": 5, "comments": "ok"}
        )
        assert event_log.events[-1].entity == "feedback"
        assert event_log.events[-1].entity_id == feedback.id


class TestListFeedback:

    def test_trainee_and_supervisor_views(self, feedback_service, completed):
        feedback_service.submit_observation_feedback(completed.id, "supervisor-1", {"score": 5, "comments": "ok"})

        trainee_page = feedback_service.list_feedback("trainee-1", "trainee")
        supervisor_page = feedback_service.list_feedback("supervisor-1", "supervisor")

        assert trainee_page.total_count == 1
        assert supervisor_page.total_count == 1
        item = trainee_page.feedback[0]
        assert item.lesson_plan_title == "Fractions"
        assert item.trainee_name == "Amara Okafor"
        assert item.supervisor_name == "Ruth Mensah"

    def test_search_and_plan_filter(self, feedback_service, completed):
        feedback_service.submit_observation_feedback(completed.id, "supervisor-1", {"score": 5, "comments": "Great questioning"})

        assert feedback_service.list_feedback("trainee-1", "trainee", search="question").total_count == 1
        assert feedback_service.list_feedback("trainee-1", "trainee", search="zzz").total_count == 0
        assert feedback_service.list_feedback(
            "trainee-1", "trainee", lesson_plan_id="other-plan"
        ).total_count == 0

    def test_bad_role(self, feedback_service):
        with pytest.raises(ValidationError) as exc_info:
            feedback_service.list_feedback("trainee-1", "admin")
        assert exc_info.value.fields == ["role"]


class TestStudentEvaluation:

    def _body(self, **overrides):
        body = {
            "tp_assignment_id": "tp-1",
            "trainee_id": "trainee-1",
            "supervisor_id": "supervisor-1",
            "score": 78,
            "comments": "Steady improvement",
        }
        body.update(overrides)
        return body

    def test_submit(self, evaluation_service, assignment):
        evaluation = evaluation_service.submit_student_evaluation(self._body())

        assert isinstance(evaluation, StudentEvaluation)
        assert evaluation.score == 78

    @pytest.mark.parametrize("score", [-1, 101, 50.5, None, True, "90"])
    def test_score_range(self, evaluation_service, assignment, score):
        with pytest.raises(ValidationError) as exc_info:
            evaluation_service.submit_student_evaluation(self._body(score=score))
        assert exc_info.value.fields == ["score"]

    def test_hundred_scale_is_separate(self, evaluation_service, assignment):
        """A score that would be invalid on the 0-10 review scale is fine here."""
        assert evaluation_service.submit_student_evaluation(self._body(score=100)).score == 100

    def test_comments_optional(self, evaluation_service, assignment):
        assert evaluation_service.submit_student_evaluation(self._body(comments=None)).comments is None

    def test_missing_assignment(self, evaluation_service, assignment):
        with pytest.raises(NotFoundError):
            evaluation_service.submit_student_evaluation(self._body(tp_assignment_id="tp-404"))

    def test_mismatched_parties(self, evaluation_service, assignment, other_supervisor):
        with pytest.raises(PermissionDeniedError):
            evaluation_service.submit_student_evaluation(self._body(supervisor_id=other_supervisor.id))

    def test_listings(self, evaluation_service, assignment):
        evaluation_service.submit_student_evaluation(self._body())

        assert evaluation_service.list_all().total_count == 1
        page = evaluation_service.list_for_supervisor("supervisor-1", search="amara")
        assert page.total_count == 1
        assert page.evaluations[0].trainee_name == "Amara Okafor"


class TestPendingEvaluations:

    def test_ended_placements_without_evaluation(self, evaluation_service, db_session, assignment, other_trainee):
        db_session.add(TPAssignment(
            id="tp-2", trainee_id=other_trainee.id, supervisor_id="supervisor-1",
            start_date="2025-04-01", end_date="2025-06-30",
        ))
        db_session.commit()

        result = evaluation_service.pending_evaluations("2025-04-15")

        assert result.pending_evaluations == 1
        assert result.assignment_ids == ["tp-1"]

    def test_evaluated_placements_excluded(self, evaluation_service, assignment):
        evaluation_service.submit_student_evaluation({
            "tp_assignment_id": "tp-1", "trainee_id": "trainee-1",
            "supervisor_id": "supervisor-1", "score": 70,
        })
        assert evaluation_service.pending_evaluations("2025-04-15").pending_evaluations == 0

    def test_bad_date(self, evaluation_service):
        with pytest.raises(ValidationError):
            evaluation_service.pending_evaluations("15/04/2025")
