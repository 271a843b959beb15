from typing import Optional, List
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field


class TaskStage(str, Enum):
    """Per-task learning stage, derived from TaskProgress and the task flag."""
    NOT_STARTED = "not_started"
    QUIZ_PASSED = "quiz_passed"
    EXERCISES_IN_PROGRESS = "exercises_in_progress"
    COMPLETE = "complete"


class NavigationTarget(str, Enum):
    THEORY = "theory"
    EXERCISES = "exercises"


class TaskProgress(BaseModel):
    key: Optional[str] = Field(default=None, alias="_key", serialization_alias="key")
    task_id: str
    session_id: str
    quiz_passed: bool = False
    exercises_completed: int = Field(default=0, ge=0)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "extra": "ignore"
    }


class QuizSubmission(BaseModel):
    """Chosen option index per quiz question, in quiz order."""
    answers: List[int]


class QuizResultCounts(BaseModel):
    """Quiz graded on the client: only the totals are reported."""
    total: int = Field(ge=1)
    wrong: int = Field(ge=0)


class QuizOutcome(BaseModel):
    passed: bool
    total: int
    wrong: int
    score: int
    next: NavigationTarget
    stage: TaskStage


class ExerciseOutcome(BaseModel):
    exercises_completed: int
    task_completed: bool
    stage: TaskStage


class EntryDecision(BaseModel):
    target: NavigationTarget
    stage: TaskStage


class StepFlagSubmission(BaseModel):
    """Solution steps the learner marked as the ones they got wrong."""
    problem_id: str
    incorrect_steps: List[int] = Field(min_length=1)


class TaskProgressView(BaseModel):
    progress: TaskProgress
    stage: TaskStage
