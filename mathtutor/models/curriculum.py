from typing import Optional, List
from pydantic import BaseModel, Field


class CurriculumTopic(BaseModel):
    id: str
    name: str
    grade: str
    # Ordered sub-lesson titles; when absent the plan builder derives them from the name
    subtopics: Optional[List[str]] = None


class QuizQuestion(BaseModel):
    question: str
    options: List[str] = Field(min_length=2)
    correct_answer: int = Field(ge=0, description="Index into options")
    explanation: str = ""


class LessonStep(BaseModel):
    title: str
    explanation: str
    example: Optional[str] = None
    tip: Optional[str] = None
    quiz_question: QuizQuestion


class Lesson(BaseModel):
    topic_id: str
    title: str
    introduction: str
    steps: List[LessonStep]


class DetailedStep(BaseModel):
    step: str
    explanation: str


class Problem(BaseModel):
    id: str
    question: str
    answer: str
    hint: str = ""
    detailed_solution: List[DetailedStep] = Field(default_factory=list)


class ProblemSet(BaseModel):
    topic_id: str
    problems: List[Problem]


class TranscriptSegment(BaseModel):
    timestamp: str
    seconds: int = Field(ge=0)
    text: str


class VideoLesson(BaseModel):
    id: str
    title: str
    youtube_id: str
    description: str
    transcript: List[TranscriptSegment] = Field(default_factory=list)


class AnswerCheckRequest(BaseModel):
    topic_id: str
    problem_id: str
    answer: str
    failed_attempts: int = Field(default=0, ge=0)


class AnswerCheckResult(BaseModel):
    correct: bool
    expected: Optional[str] = None
    hint: Optional[str] = None
    mistake_logged: bool = False
