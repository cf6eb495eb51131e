"""Unit tests for shared/utils/validation.py."""
import pytest

from shared.models.schemas import ReviewDecision
from shared.utils.exceptions import ValidationError
from shared.utils.validation import FieldErrors, errors_by_field, parse_payload


class TestParsePayload:

    def test_mapping_is_parsed(self):
        decision = parse_payload(ReviewDecision, {"status": "APPROVED", "comments": "ok", "score": 8})
        assert decision.score == 8

    def test_model_instance_passes_through(self):
        decision = ReviewDecision(status="REJECTED", comments="no")
        assert parse_payload(ReviewDecision, decision) is decision

    def test_type_error_becomes_field_error(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(ReviewDecision, {"status": "APPROVED", "comments": "ok", "score": "lots"})
        assert exc_info.value.fields == ["score"]

    @pytest.mark.parametrize("score", [True, False, 8.0, "8"])
    def test_score_is_not_coerced(self, score):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(ReviewDecision, {"status": "APPROVED", "comments": "ok", "score": score})
        assert exc_info.value.fields == ["score"]


class TestErrorsByField:

    def test_request_location_dropped(self):
        errors = [
            {"loc": ("body", "score"), "msg": "Input should be a valid integer"},
            {"loc": ("query", "page"), "msg": "Input should be a valid integer"},
            {"loc": ("body",), "msg": "Input should be a valid dictionary"},
        ]
        assert errors_by_field(errors) == {
            "score": "Input should be a valid integer",
            "page": "Input should be a valid integer",
            "body": "Input should be a valid dictionary",
        }

    def test_first_message_per_field_wins(self):
        errors = [{"loc": ("score",), "msg": "first"}, {"loc": ("score",), "msg": "second"}]
        assert errors_by_field(errors) == {"score": "first"}

    def test_empty_loc(self):
        assert errors_by_field([{"loc": (), "msg": "bad"}]) == {"__root__": "bad"}


class TestFieldErrors:

    def test_collects_every_offending_field(self):
        errors = FieldErrors()
        errors.require_text("title", None)
        errors.require_text("subject", "  ")
        errors.check_date("date", "10/02/2025")

        with pytest.raises(ValidationError) as exc_info:
            errors.raise_if_any()

        assert exc_info.value.fields == ["date", "subject", "title"]
        assert exc_info.value.errors["title"] == "Title is required"

    def test_no_errors_does_not_raise(self):
        errors = FieldErrors()
        assert errors.require_text("title", "  Fractions ") == "Fractions"
        errors.raise_if_any()
        assert not errors

    def test_impossible_calendar_day(self):
        errors = FieldErrors()
        assert errors.check_date("date", "2025-02-30") is None
        assert "date" in errors.errors

    @pytest.mark.parametrize("value", ["9:00", "24:00", "09:60", "0900", "09:00:00"])
    def test_bad_times(self, value):
        errors = FieldErrors()
        assert errors.check_time("start_time", value) is None
        assert "start_time" in errors.errors

    def test_optional_time_may_be_missing(self):
        errors = FieldErrors()
        assert errors.check_time("start_time", None, required=False) is None
        assert not errors

    def test_end_must_follow_start(self):
        errors = FieldErrors()
        errors.check_time_range("start_time", "10:00", "end_time", "10:00")
        assert errors.errors == {"end_time": "End time must be after start time"}

    def test_end_after_start_ok(self):
        errors = FieldErrors()
        errors.check_time_range("start_time", "09:00", "end_time", "09:45")
        assert not errors

    def test_date_range(self):
        errors = FieldErrors()
        errors.check_date_range("start_date", "2025-03-01", "end_date", "2025-02-01")
        assert "end_date" in errors.errors

    @pytest.mark.parametrize("value", [-1, 11, True, 7.5, "8"])
    def test_score_rejected(self, value):
        errors = FieldErrors()
        assert errors.check_score("score", value, 0, 10) is None
        assert "score" in errors.errors

    @pytest.mark.parametrize("value", [0, 10, 5])
    def test_score_bounds_inclusive(self, value):
        errors = FieldErrors()
        assert errors.check_score("score", value, 0, 10) == value
        assert not errors

    def test_optional_score(self):
        errors = FieldErrors()
        assert errors.check_score("score", None, 0, 10, required=False) is None
        assert not errors

    def test_choice(self):
        errors = FieldErrors()
        assert errors.check_choice("status", "B", ["A", "B"], "bad") == "B"
        assert errors.check_choice("role", "C", ["A", "B"], "bad") is None
        assert errors.errors == {"role": "bad"}
