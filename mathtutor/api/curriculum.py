"""
Curriculum endpoints: topics, lessons, quizzes, exercises, practice and videos.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from arango.database import StandardDatabase

from mathtutor.core.session import optional_session
from mathtutor.crud.mistake import MistakeCRUD
from mathtutor.data import curriculum
from mathtutor.db.database import get_db
from mathtutor.models.curriculum import (
    AnswerCheckRequest, AnswerCheckResult, CurriculumTopic, Lesson,
    ProblemSet, QuizQuestion, VideoLesson
)
from mathtutor.models.mistake import MistakeCreate, MistakeKind

router = APIRouter(tags=["curriculum"])


def get_mistake_crud(db: StandardDatabase = Depends(get_db)) -> MistakeCRUD:
    """Dependency to get mistake CRUD instance."""
    return MistakeCRUD(db)


def _not_found(what: str, topic_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"No {what} available for topic '{topic_id}'"
    )


@router.get("/grades/{grade}/topics", response_model=List[CurriculumTopic])
async def list_topics(grade: str):
    """Topics offered for a grade."""
    return curriculum.get_topics(grade)


@router.get("/topics/{topic_id}/lesson", response_model=Lesson)
async def get_lesson(topic_id: str):
    lesson = curriculum.get_lesson(topic_id)
    if lesson is None:
        raise _not_found("lesson", topic_id)
    return lesson


@router.get("/topics/{topic_id}/quiz", response_model=List[QuizQuestion])
async def get_quiz(topic_id: str):
    """One question per lesson step, in lesson order."""
    quiz = curriculum.get_quiz(topic_id)
    if not quiz:
        raise _not_found("quiz", topic_id)
    return quiz


@router.get("/topics/{topic_id}/exercises", response_model=ProblemSet)
async def get_exercises(topic_id: str):
    exercises = curriculum.get_exercises(topic_id)
    if exercises is None:
        raise _not_found("exercises", topic_id)
    return exercises


@router.get("/topics/{topic_id}/practice", response_model=ProblemSet)
async def get_practice(topic_id: str):
    practice = curriculum.get_practice(topic_id)
    if practice is None:
        raise _not_found("practice problems", topic_id)
    return practice


@router.get("/topics/{topic_id}/videos", response_model=List[VideoLesson])
async def get_videos(topic_id: str):
    """Video lessons with timestamped transcripts; empty for topics without videos."""
    if curriculum.find_topic_by_id(topic_id) is None:
        raise _not_found("videos", topic_id)
    return curriculum.get_videos(topic_id)


@router.post("/practice/check", response_model=AnswerCheckResult)
async def check_practice_answer(
    check: AnswerCheckRequest,
    session_id: Optional[str] = Depends(optional_session),
    mistake_crud: MistakeCRUD = Depends(get_mistake_crud)
):
    """
    Check a practice answer (case and whitespace insensitive).

    A correct answer reached after failed attempts is logged as a practice
    mistake carrying the attempt count.
    """
    problem = curriculum.find_problem(curriculum.get_practice(check.topic_id), check.problem_id)
    if problem is None:
        problem = curriculum.find_problem(curriculum.get_exercises(check.topic_id), check.problem_id)
    if problem is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Problem '{check.problem_id}' not found for topic '{check.topic_id}'"
        )

    if not curriculum.answers_match(check.answer, problem.answer):
        return AnswerCheckResult(correct=False, hint=problem.hint or None)

    logged = False
    if check.failed_attempts > 0:
        topic = curriculum.find_topic_by_id(check.topic_id)
        record = mistake_crud.add(
            MistakeCreate(
                kind=MistakeKind.PRACTICE,
                problem=problem.question,
                topic_id=check.topic_id,
                topic_label=topic.name if topic else None,
                correct_answer=problem.answer,
                attempts=check.failed_attempts
            ),
            session_id=session_id
        )
        logged = record is not None

    return AnswerCheckResult(correct=True, expected=problem.answer, mistake_logged=logged)
