from typing import Optional, List, Literal
from pydantic import BaseModel, Field

from mathtutor.models.curriculum import QuizQuestion


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class TutorQuestion(BaseModel):
    """A learner question about one lesson or solution step."""
    step_content: str
    step_explanation: str = ""
    step_example: Optional[str] = None
    user_question: str = Field(min_length=1)
    topic: str
    grade_level: str
    conversation_history: List[ChatMessage] = Field(default_factory=list)
    stream: bool = True


class TutorAnswer(BaseModel):
    answer: str


class GraphDataRequest(BaseModel):
    context: Optional[str] = None
    topic: str
    grade_level: str
    step: Optional[str] = None
    example: Optional[str] = None


class ParabolaParameters(BaseModel):
    a: float
    b: float
    c: float
    discriminant: Optional[float] = None
    roots: List[float] = Field(default_factory=list)
    label: Optional[str] = None


class GraphData(BaseModel):
    type: Literal["parabola"]
    parameters: ParabolaParameters


class QuizRequest(BaseModel):
    topic: str
    grade_level: str
    count: int = Field(default=5, ge=1, le=10)


class GeneratedQuiz(BaseModel):
    """Multiple-choice questions for a math topic."""
    questions: List[QuizQuestion] = Field(default_factory=list)
