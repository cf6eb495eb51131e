"""Shared data models: domain enums, ORM entities and API schemas."""
from .domain import (
    LessonPlanStatus,
    ObservationStatus,
    FeedbackRole,
    TransitionEvent,
)
from .entities import (
    Base,
    Trainee,
    Supervisor,
    School,
    TPAssignment,
    LessonPlan,
    Observation,
    Feedback,
    StudentEvaluation,
    Notification,
)
from .schemas import (
    LessonPlanDraft,
    ReviewDecision,
    ObservationRequest,
    ObservationStatusUpdate,
    ObservationFeedbackInput,
    StudentEvaluationInput,
)
