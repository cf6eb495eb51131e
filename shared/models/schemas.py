"""Pydantic API request/response schemas.

Each (entity, operation) pair gets its own payload type. Request fields are
typed loosely (mostly Optional[str]) so that domain validation, not the
parser, reports which fields are missing or malformed. Scores are StrictInt:
lax parsing would turn ``true`` into 1 and ``7.0`` into 7.
"""
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class LessonPlanDraft(BaseModel):
    """Trainee-authored fields of a lesson plan (create and update)."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    subject: Optional[str] = None
    class_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("class_name", "class")
    )
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    objectives: Optional[str] = None
    activities: Optional[str] = None
    resources: Optional[str] = None
    ai_generated: bool = False
    pdf_url: Optional[str] = None


class ReviewDecision(BaseModel):
    """Supervisor verdict on a pending lesson plan."""
    status: Optional[str] = None  # APPROVED or REJECTED
    comments: Optional[str] = None
    score: Optional[StrictInt] = None   # 0-10


class ObservationRequest(BaseModel):
    lesson_plan_id: Optional[str] = None
    trainee_id: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class ObservationStatusUpdate(BaseModel):
    status: Optional[str] = None  # ONGOING or COMPLETED


class ObservationFeedbackInput(BaseModel):
    score: Optional[StrictInt] = None   # 0-10
    comments: Optional[str] = None


class StudentEvaluationInput(BaseModel):
    tp_assignment_id: Optional[str] = None
    trainee_id: Optional[str] = None
    supervisor_id: Optional[str] = None
    score: Optional[StrictInt] = None   # 0-100
    comments: Optional[str] = None


class TraineeCreate(BaseModel):
    reg_no: Optional[str] = None
    name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None


class SupervisorCreate(BaseModel):
    staff_id: Optional[str] = None
    name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None


class SchoolCreate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None


class TPAssignmentCreate(BaseModel):
    trainee_id: Optional[str] = None
    supervisor_id: Optional[str] = None
    school_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class NotificationUpdate(BaseModel):
    read_status: bool


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class LessonPlanResponse(BaseModel):
    id: str
    trainee_id: str
    title: str
    subject: str
    class_name: str
    date: str
    start_time: str
    end_time: str
    objectives: str
    activities: str
    resources: str
    ai_generated: bool
    pdf_url: Optional[str] = None
    status: str
    created_at: str
    trainee_name: str
    supervisor_name: str
    school_name: str


class FeedbackResponse(BaseModel):
    id: str
    lesson_plan_id: Optional[str] = None
    observation_id: Optional[str] = None
    trainee_id: str
    supervisor_id: str
    score: Optional[int] = None
    comments: str
    created_at: str
    lesson_plan_title: Optional[str] = None
    trainee_name: Optional[str] = None
    supervisor_name: Optional[str] = None


class ObservationResponse(BaseModel):
    id: str
    supervisor_id: str
    trainee_id: str
    lesson_plan_id: str
    date: str
    start_time: str
    end_time: str
    status: str
    created_at: str
    lesson_plan_title: str
    trainee_name: str


class StudentEvaluationResponse(BaseModel):
    id: str
    tp_assignment_id: str
    trainee_id: str
    supervisor_id: str
    score: int
    comments: Optional[str] = None
    submitted_at: str
    trainee_name: str
    supervisor_name: str


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    initiator_id: Optional[str] = None
    type: str
    message: str
    priority: str
    read_status: bool
    created_at: str


class TraineeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reg_no: str
    name: str
    surname: str
    email: Optional[str] = None


class SupervisorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    staff_id: str
    name: str
    surname: str
    email: Optional[str] = None


class SchoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: Optional[str] = None


class TPAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    trainee_id: str
    supervisor_id: str
    school_id: Optional[str] = None
    start_date: str
    end_date: str


class SupervisedTraineeSummary(BaseModel):
    id: str
    name: str
    surname: str
    reg_no: str
    email: Optional[str] = None
    lesson_plan_count: int
    observation_count: int
    average_score: float


# Envelopes

class MessageResponse(BaseModel):
    message: str


class LessonPlanEnvelope(BaseModel):
    message: str
    lesson_plan: LessonPlanResponse


class ReviewResponse(BaseModel):
    message: str
    lesson_plan: LessonPlanResponse
    feedback: FeedbackResponse


class ObservationEnvelope(BaseModel):
    message: str
    observation: ObservationResponse


class FeedbackEnvelope(BaseModel):
    message: str
    feedback: FeedbackResponse


class StudentEvaluationEnvelope(BaseModel):
    message: str
    evaluation: StudentEvaluationResponse


class PendingEvaluationsResponse(BaseModel):
    pending_evaluations: int
    assignment_ids: List[str]


# Pages

class Page(BaseModel):
    total_count: int
    total_pages: int
    current_page: int


class LessonPlanPage(Page):
    lesson_plans: List[LessonPlanResponse]


class ObservationPage(Page):
    observations: List[ObservationResponse]


class FeedbackPage(Page):
    feedback: List[FeedbackResponse]


class StudentEvaluationPage(Page):
    evaluations: List[StudentEvaluationResponse]


class NotificationPage(Page):
    notifications: List[NotificationResponse]
