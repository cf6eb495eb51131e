"""
Custom exception hierarchy for the teaching-practice workflow.

Exception Hierarchy:
    TeachingPracticeException (base)
    ├── ValidationError          malformed or missing field
    ├── ConflictError            at-most-one / uniqueness rule violated
    ├── PreconditionError        referenced entity is in the wrong state
    ├── InvalidTransitionError   requested status not reachable
    ├── InvalidStateError        entity already left the required state
    ├── NotFoundError            id does not exist or is not visible
    ├── PermissionDeniedError    caller does not own/supervise the entity
    └── DatabaseException        storage failure (safe to retry)

Every workflow error leaves stored entities unchanged. Only DatabaseException
is a transport-level failure that a caller may retry automatically.
"""
from typing import Optional

from fastapi import HTTPException, status


class TeachingPracticeException(Exception):
    """Base exception for all workflow errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> dict:
        return {"error": self.message, "type": self.kind}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail())


class ValidationError(TeachingPracticeException):
    """Raised when one or more input fields are malformed or missing."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "ValidationError"

    def __init__(self, errors: dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None:
            message = "Invalid fields: " + ", ".join(sorted(self.errors))
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return sorted(self.errors)

    def detail(self) -> dict:
        return {**super().detail(), "errors": self.errors}


class ConflictError(TeachingPracticeException):
    """Raised when an at-most-one rule would be violated."""

    status_code = status.HTTP_409_CONFLICT
    kind = "ConflictError"


class PreconditionError(TeachingPracticeException):
    """Raised when a referenced entity's state does not permit the operation."""

    status_code = 422  # Unprocessable: request is well-formed, state forbids it
    kind = "PreconditionError"


class InvalidTransitionError(TeachingPracticeException):
    """Raised when a status change is not reachable from the current status."""

    status_code = status.HTTP_409_CONFLICT
    kind = "InvalidTransitionError"

    def __init__(self, entity: str, from_status: str, to_status: str):
        self.entity = entity
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid {entity} status transition from '{from_status}' to '{to_status}'"
        )

    def detail(self) -> dict:
        return {**super().detail(), "from": self.from_status, "to": self.to_status}


class InvalidStateError(TeachingPracticeException):
    """Raised when an entity is no longer in the state an operation requires."""

    status_code = status.HTTP_409_CONFLICT
    kind = "InvalidStateError"

    def __init__(self, entity: str, entity_id: str, current: str, expected: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.expected = expected
        super().__init__(
            f"{entity.replace('_', ' ').capitalize()} {entity_id} is {current}, expected {expected}"
        )

    def detail(self) -> dict:
        return {**super().detail(), "current": self.current, "expected": self.expected}


class NotFoundError(TeachingPracticeException):
    """Raised when a referenced id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFoundError"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.replace('_', ' ').capitalize()} {entity_id} not found")


class PermissionDeniedError(TeachingPracticeException):
    """Raised when the caller does not own or supervise the referenced entity."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "PermissionError"


class DatabaseException(TeachingPracticeException):
    """Raised when database operations fail."""

    kind = "DatabaseError"

    def __init__(self, operation: str, original_error: Exception):
        self.operation = operation
        self.original_error = original_error
        super().__init__(f"Database {operation} failed: {str(original_error)}")

    def to_http_exception(self) -> HTTPException:
        # Never leak driver messages to clients
        return HTTPException(
            status_code=self.status_code,
            detail={"error": "Database operation failed", "type": self.kind},
        )
