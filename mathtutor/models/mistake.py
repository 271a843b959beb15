from typing import Optional, List, Dict
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field


class MistakeKind(str, Enum):
    QUIZ = "quiz"
    EXERCISE = "exercise"
    PRACTICE = "practice"


class StepDetail(BaseModel):
    step: str
    explanation: str = ""


class MistakeCreate(BaseModel):
    """
    A wrong answer or flagged solution step.

    Records are keyed by the stable ``topic_id``; ``topic_label`` is display
    metadata only, so renaming a topic does not orphan history.
    """
    kind: MistakeKind
    problem: str
    topic_id: str
    topic_label: Optional[str] = None

    # quiz: chosen vs correct option
    user_answer: Optional[str] = None
    correct_answer: Optional[str] = None

    # exercise: flagged step indices and their text
    incorrect_steps: Optional[List[int]] = None
    step_details: Optional[List[StepDetail]] = None

    # practice: failed attempts before the correct answer
    attempts: Optional[int] = None


class MistakeRecord(MistakeCreate):
    key: str = Field(alias="_key", serialization_alias="key")
    timestamp: datetime
    session_id: Optional[str] = None

    model_config = {
        "populate_by_name": True,
        "extra": "ignore"
    }


class ImprovementRate(BaseModel):
    this_week: int
    last_week: int
    percent_change: float


class ExercisePatterns(BaseModel):
    common_keywords: List[str] = Field(default_factory=list)
    problematic_step: Optional[int] = None
    step_counts: Dict[int, int] = Field(default_factory=dict)


class DailyMistakeCount(BaseModel):
    day: date
    quiz: int = 0
    exercise: int = 0
    practice: int = 0


class MistakeStats(BaseModel):
    total: int
    by_kind: Dict[str, int]
    last_7_days: int
    improvement: ImprovementRate
    days_since_last_mistake: int
    patterns: ExercisePatterns
    daily_counts: List[DailyMistakeCount]
