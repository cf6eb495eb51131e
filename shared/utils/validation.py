"""Field-level validation that reports every offending field at once."""
import re
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Type, TypeVar, Union

import pydantic

from shared.utils.constants import DATE_FORMAT, TIME_FORMAT
from shared.utils.exceptions import ValidationError
from shared.utils.normalization import normalize_date, normalize_time

M = TypeVar("M", bound=pydantic.BaseModel)

_STRICT_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_STRICT_TIME = re.compile(r"^\d{2}:\d{2}$", re.ASCII)

# Leading loc entries FastAPI adds to request validation errors
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def errors_by_field(errors: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Collapse pydantic error dicts to ``{field: first message}``."""
    fields: dict[str, str] = {}
    for err in errors:
        loc = list(err.get("loc") or ())
        if len(loc) > 1 and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or "__root__"
        fields.setdefault(field, err.get("msg", "Invalid value"))
    return fields


def parse_payload(model: Type[M], data: Union[M, Mapping[str, Any]]) -> M:
    """
    Coerce ``data`` into ``model``.

    Pydantic type errors are re-raised as ValidationError keyed by field name
    so callers see a single error taxonomy.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(errors_by_field(e.errors())) from e


class FieldErrors:
    """
    Collects field errors while checking a payload.

    Each ``check_*`` returns the normalized value (or None) so a service can
    validate and canonicalize in one pass, then call ``raise_if_any``.
    """

    def __init__(self):
        self.errors: dict[str, str] = {}

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def __bool__(self) -> bool:
        return bool(self.errors)

    def require_text(self, field: str, value: Optional[str], label: Optional[str] = None) -> str:
        if value is None or not str(value).strip():
            self.add(field, f"{label or field.replace('_', ' ').capitalize()} is required")
            return ""
        return str(value).strip()

    def check_date(self, field: str, value: Optional[str], required: bool = True) -> Optional[str]:
        """Validate a ``YYYY-MM-DD`` calendar day."""
        if value is None or value == "":
            if required:
                self.add(field, "Date is required")
            return None
        if not isinstance(value, str) or not _STRICT_DATE.match(value.strip()):
            self.add(field, "Invalid date format, expected YYYY-MM-DD")
            return None
        normalized = normalize_date(value)
        if not normalized:
            self.add(field, f"{value} is not a valid calendar date")
            return None
        return normalized

    def check_time(self, field: str, value: Optional[str], required: bool = True) -> Optional[str]:
        """Validate an ``HH:MM`` time of day."""
        if value is None or value == "":
            if required:
                self.add(field, "Time is required")
            return None
        if not isinstance(value, str) or not _STRICT_TIME.match(value.strip()):
            self.add(field, "Invalid time format, expected HH:MM")
            return None
        normalized = normalize_time(value)
        if not normalized:
            self.add(field, f"{value} is not a valid time of day")
            return None
        return normalized

    def check_time_range(
        self,
        start_field: str,
        start: Optional[str],
        end_field: str,
        end: Optional[str],
    ) -> None:
        """End must be strictly after start when both are present and valid."""
        if not start or not end:
            return
        if datetime.strptime(end, TIME_FORMAT) <= datetime.strptime(start, TIME_FORMAT):
            self.add(end_field, "End time must be after start time")

    def check_date_range(
        self,
        start_field: str,
        start: Optional[str],
        end_field: str,
        end: Optional[str],
    ) -> None:
        if not start or not end:
            return
        if datetime.strptime(end, DATE_FORMAT) < datetime.strptime(start, DATE_FORMAT):
            self.add(end_field, "End date must not be before start date")

    def check_score(
        self,
        field: str,
        value: Any,
        low: int,
        high: int,
        required: bool = True,
    ) -> Optional[int]:
        """Integer score within ``[low, high]``; booleans are rejected."""
        if value is None:
            if required:
                self.add(field, "Score is required")
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            self.add(field, f"Score must be an integer between {low} and {high}")
            return None
        if value < low or value > high:
            self.add(field, f"Score must be between {low} and {high}")
            return None
        return value

    def check_choice(self, field: str, value: Any, allowed, message: str):
        for member in allowed:
            if value == member:
                return member
        self.add(field, message)
        return None

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)
