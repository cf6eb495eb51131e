"""Application constants - all magic numbers and fallback values centralized."""

# Wire formats
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

# Scoring scales (two independent review contexts, do not unify)
OBSERVATION_SCORE_MIN = 0
OBSERVATION_SCORE_MAX = 10  # lesson-plan review and observation feedback
EVALUATION_SCORE_MIN = 0
EVALUATION_SCORE_MAX = 100  # student evaluation (overall placement grade)

# Display fallbacks
UNTITLED = "Untitled"
UNKNOWN = "Unknown"
UNKNOWN_LESSON_PLAN = "Unknown Lesson Plan"
UNKNOWN_TRAINEE = "Unknown Trainee"

# User-facing messages
PENDING_PLAN_EXISTS = "You already have a pending lesson plan. Please submit or delete it first."
ONLY_APPROVED_CAN_BE_SCHEDULED = "Only approved lesson plans can be scheduled for observation"
FEEDBACK_REQUIRES_COMPLETED = "Feedback can only be submitted for completed observations"
LESSON_PLAN_DELETED = "Lesson plan deleted successfully"

# Notification priorities
PRIORITY_LOW = "low"
PRIORITY_NORMAL = "normal"
PRIORITY_HIGH = "high"
