"""
Boundary normalization for dates, times, statuses and display fields.

Every function here is total (never raises) and idempotent: feeding a
function its own output returns the same value. Services call these before
storing a value and again before returning one, so consumers only ever see
``YYYY-MM-DD`` dates, ``HH:MM`` times, known status members and non-null
display strings.
"""
import re
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping, Optional, TypeVar

from shared.models.domain import LESSON_PLAN_STATUSES, OBSERVATION_STATUSES, LessonPlanStatus, ObservationStatus
from shared.utils.constants import (
    DATE_FORMAT,
    TIME_FORMAT,
    UNKNOWN,
    UNKNOWN_LESSON_PLAN,
    UNKNOWN_TRAINEE,
    UNTITLED,
)

S = TypeVar("S")

_BARE_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d(\.\d+)?)?$", re.ASCII)
_BARE_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)


def _as_utc(value: datetime) -> Optional[datetime]:
    """Shift an aware datetime to UTC; None when the shift leaves year 1..9999."""
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _parse_timestamp(raw: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; aware values are converted to UTC."""
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return _as_utc(parsed)


def normalize_time(raw: Any) -> str:
    """
    Canonicalize a time-of-day to ``HH:MM``.

    Accepts ``HH:MM``, ``HH:MM:SS[.fff]``, a full timestamp
    (``2025-01-01T09:00:00.000Z``), or a ``datetime``/``time`` object.
    Returns ``""`` for None or anything unparsable.
    """
    if raw is None:
        return ""
    if isinstance(raw, datetime):
        shifted = _as_utc(raw)
        return shifted.strftime(TIME_FORMAT) if shifted is not None else ""
    if isinstance(raw, time):
        return raw.strftime(TIME_FORMAT)
    if not isinstance(raw, str):
        return ""

    value = raw.strip()
    if _BARE_TIME.match(value):
        return value[:5]
    if "T" in value or " " in value:
        parsed = _parse_timestamp(value)
        if parsed is not None:
            return parsed.strftime(TIME_FORMAT)
    return ""


def normalize_date(raw: Any) -> str:
    """
    Canonicalize a calendar day to ``YYYY-MM-DD``.

    Accepts a bare date, a full timestamp, or a ``date``/``datetime`` object.
    Returns ``""`` for None or anything unparsable (including impossible
    days such as ``2025-02-30``).
    """
    if raw is None:
        return ""
    if isinstance(raw, datetime):
        shifted = _as_utc(raw)
        return shifted.date().isoformat() if shifted is not None else ""
    if isinstance(raw, date):
        return raw.isoformat()
    if not isinstance(raw, str):
        return ""

    value = raw.strip()
    if _BARE_DATE.match(value):
        try:
            return datetime.strptime(value, DATE_FORMAT).date().isoformat()
        except ValueError:
            return ""
    parsed = _parse_timestamp(value)
    if parsed is not None:
        return parsed.date().isoformat()
    return ""


def normalize_status(raw: Any, allowed: Iterable[S], fallback: S) -> S:
    """
    Return the allowed member equal to ``raw``, otherwise ``fallback``.

    Matching is literal and case-sensitive: ``"approved"`` is not
    ``APPROVED``. Guards readers against status values they do not know.
    """
    for member in allowed:
        if raw == member:
            return member
    return fallback


def normalize_lesson_plan_status(raw: Any) -> LessonPlanStatus:
    return normalize_status(raw, LESSON_PLAN_STATUSES, LessonPlanStatus.PENDING)


def normalize_observation_status(raw: Any) -> ObservationStatus:
    return normalize_status(raw, OBSERVATION_STATUSES, ObservationStatus.SCHEDULED)


def _text_or(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value)
    return text if text.strip() else default


def _timestamp_or_now(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str) and value.strip():
        return value
    return datetime.utcnow().isoformat()


def today() -> str:
    return date.today().strftime(DATE_FORMAT)


def lesson_plan_display_defaults(record: Mapping[str, Any]) -> dict[str, Any]:
    """Fill every display-bound lesson plan field with its documented fallback."""
    out = dict(record)
    out["title"] = _text_or(record.get("title"), UNTITLED)
    out["subject"] = _text_or(record.get("subject"), UNKNOWN)
    out["class_name"] = _text_or(record.get("class_name"), UNKNOWN)
    out["date"] = normalize_date(record.get("date")) or today()
    out["start_time"] = normalize_time(record.get("start_time"))
    out["end_time"] = normalize_time(record.get("end_time"))
    for field in ("objectives", "activities", "resources"):
        out[field] = _text_or(record.get(field), "")
    out["ai_generated"] = bool(record.get("ai_generated") or False)
    out["pdf_url"] = record.get("pdf_url") or None
    out["status"] = normalize_lesson_plan_status(record.get("status")).value
    out["created_at"] = _timestamp_or_now(record.get("created_at"))
    for field in ("trainee_name", "supervisor_name", "school_name"):
        out[field] = _text_or(record.get(field), UNKNOWN)
    return out


def observation_display_defaults(record: Mapping[str, Any]) -> dict[str, Any]:
    """Fill observation display fields; a dangling join never yields None."""
    out = dict(record)
    trainee_id = _text_or(record.get("trainee_id"), UNKNOWN_TRAINEE)
    out["trainee_id"] = trainee_id
    out["lesson_plan_title"] = _text_or(record.get("lesson_plan_title"), UNKNOWN_LESSON_PLAN)
    out["trainee_name"] = _text_or(record.get("trainee_name"), trainee_id)
    out["date"] = normalize_date(record.get("date")) or today()
    out["start_time"] = normalize_time(record.get("start_time"))
    out["end_time"] = normalize_time(record.get("end_time"))
    out["status"] = normalize_observation_status(record.get("status")).value
    out["created_at"] = _timestamp_or_now(record.get("created_at"))
    return out


def feedback_display_defaults(record: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(record)
    out["comments"] = _text_or(record.get("comments"), "")
    out["lesson_plan_title"] = _text_or(record.get("lesson_plan_title"), UNKNOWN_LESSON_PLAN)
    out["trainee_name"] = _text_or(record.get("trainee_name"), UNKNOWN)
    out["supervisor_name"] = _text_or(record.get("supervisor_name"), UNKNOWN)
    out["created_at"] = _timestamp_or_now(record.get("created_at"))
    return out
