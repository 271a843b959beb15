from typing import Optional, List
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field


class TaskType(str, Enum):
    """Coarse label of a daily task; fine-grained stage lives in TaskProgress."""
    THEORY = "theory"
    QUIZ = "quiz"
    PRACTICE = "practice"
    REVIEW = "review"


class PlanSource(str, Enum):
    """Which path produced the plan."""
    REMOTE = "remote"
    LOCAL = "local"
    EXISTING = "existing"


# ============================================================================
# DRAFTS (before persistence)
# ============================================================================

class PlannerTask(BaseModel):
    """One day of study as authored by the AI planner."""
    day_number: int = Field(description="1-based day index within the plan")
    title: str = Field(description="Short title for the day's study unit")
    description: str = Field(description="What the learner should do that day")
    task_type: TaskType = Field(description="theory, quiz, practice or review")


class PlannerResponse(BaseModel):
    """Create a day-by-day learning plan for a math topic."""
    tasks: List[PlannerTask] = Field(default_factory=list)


class TaskDraft(BaseModel):
    """A task ready to insert: day number and date already resolved."""
    day_number: int = Field(ge=1)
    scheduled_date: date
    title: str
    description: str
    task_type: TaskType = TaskType.PRACTICE


# ============================================================================
# STORED DOCUMENTS
# ============================================================================

class LearningPlanCreate(BaseModel):
    session_id: str
    grade: str
    topic_id: str
    topic_name: str
    test_date: date
    source: PlanSource = PlanSource.LOCAL


class LearningPlan(LearningPlanCreate):
    key: str = Field(alias="_key", serialization_alias="key")
    created_at: datetime

    model_config = {
        "populate_by_name": True,
        "extra": "ignore"
    }


class LearningTask(BaseModel):
    key: str = Field(alias="_key", serialization_alias="key")
    plan_id: str
    day_number: int
    scheduled_date: date
    title: str
    description: str
    task_type: TaskType
    is_completed: bool = False
    completed_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "extra": "ignore"
    }


# ============================================================================
# GENERATION REQUEST / RESULT
# ============================================================================

class PlanGenerationRequest(BaseModel):
    """
    Input of a plan generation run.

    Every field is optional at the type level so that absence is reported
    as ``MissingFields`` rather than a schema error.
    """
    grade: Optional[str] = None
    topic_id: Optional[str] = None
    topic_name: Optional[str] = None
    test_date: Optional[date] = None
    session_id: Optional[str] = None
    replace_existing: bool = False


class PlanGenerationBody(BaseModel):
    """HTTP body for POST /plans (session comes from the request)."""
    grade: Optional[str] = None
    topic_id: Optional[str] = None
    test_date: Optional[date] = None
    replace_existing: bool = False


class PlanGenerationResult(BaseModel):
    source: PlanSource
    plan_id: str
    task_count: int
    plan_attempts: int = 0
    task_attempts: int = 0
    message: str = ""


class PlanGenerationResponse(PlanGenerationResult):
    session_id: str


class PlanView(BaseModel):
    plan: LearningPlan
    tasks: List[LearningTask]


class TaskBuckets(BaseModel):
    """Home-screen partition of a plan's tasks."""
    today: List[LearningTask] = Field(default_factory=list)
    completed_today: List[LearningTask] = Field(default_factory=list)
    past_done: List[LearningTask] = Field(default_factory=list)
    past_missed: List[LearningTask] = Field(default_factory=list)
    upcoming: List[LearningTask] = Field(default_factory=list)
    next_task: Optional[LearningTask] = None
