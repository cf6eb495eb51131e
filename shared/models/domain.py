"""Domain enums, transition tables and the transition event model."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LessonPlanStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ObservationStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"


class FeedbackRole(str, Enum):
    """Whose feedback list is being read."""
    SUPERVISOR = "supervisor"
    TRAINEE = "trainee"


LESSON_PLAN_STATUSES = frozenset(LessonPlanStatus)
OBSERVATION_STATUSES = frozenset(ObservationStatus)

# A review decision is one of the two terminal lesson plan states
REVIEW_OUTCOMES = frozenset({LessonPlanStatus.APPROVED, LessonPlanStatus.REJECTED})

# Statuses a supervisor may request through advance_status
ADVANCE_TARGETS = frozenset({ObservationStatus.ONGOING, ObservationStatus.COMPLETED})

# Forward-only observation lifecycle
OBSERVATION_TRANSITIONS: dict[ObservationStatus, frozenset[ObservationStatus]] = {
    ObservationStatus.SCHEDULED: frozenset({ObservationStatus.ONGOING}),
    ObservationStatus.ONGOING: frozenset({ObservationStatus.COMPLETED}),
    ObservationStatus.COMPLETED: frozenset(),
}


def allowed_observation_targets(
    current: ObservationStatus, allow_direct_completion: bool = False
) -> frozenset[ObservationStatus]:
    """Statuses reachable in one step from ``current``."""
    targets = OBSERVATION_TRANSITIONS[current]
    if allow_direct_completion and current == ObservationStatus.SCHEDULED:
        targets = targets | {ObservationStatus.COMPLETED}
    return targets


class TransitionEvent(BaseModel):
    """
    Signal published after a committed workflow transition.

    Consumers (notifications, cache invalidation, UI refresh) subscribe to
    these; the workflow itself never depends on what they do with it.
    """
    entity: str  # lesson_plan, observation, feedback, student_evaluation
    entity_id: str
    action: str  # submitted, updated, deleted, reviewed, scheduled, advanced, recorded
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    actor_id: str
    recipient_id: Optional[str] = None
    occurred_at: datetime = Field(default_factory=datetime.utcnow)
