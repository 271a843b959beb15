"""
Task progress endpoints.

Drive the per-task state machine (quiz → exercises → complete) and the
home-screen task buckets.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from arango.database import StandardDatabase

from mathtutor.agents.plan_orchestrator import PlanOrchestrator
from mathtutor.api.plans import get_plan_orchestrator
from mathtutor.core.exceptions import MathTutorError
from mathtutor.core.session import require_session
from mathtutor.db.database import get_db
from mathtutor.models.plan import LearningTask, TaskBuckets
from mathtutor.models.progress import (
    EntryDecision, ExerciseOutcome, QuizOutcome, QuizResultCounts,
    QuizSubmission, StepFlagSubmission, TaskProgressView
)
from mathtutor.services.progress_tracker import (
    ProgressTracker, bucket_tasks, create_progress_tracker
)

router = APIRouter(tags=["tasks"])


def get_progress_tracker(db: StandardDatabase = Depends(get_db)) -> ProgressTracker:
    """Dependency to get a progress tracker bound to the database."""
    return create_progress_tracker(db)


def _http_error(e: MathTutorError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/buckets", response_model=TaskBuckets)
async def get_task_buckets(
    today: Optional[date] = Query(None, description="Learner's local date; defaults to server date"),
    session_id: str = Depends(require_session),
    orchestrator: PlanOrchestrator = Depends(get_plan_orchestrator)
):
    """Today / past (done, missed) / upcoming tasks and the next task to do."""
    try:
        view = await orchestrator.fetch_plan(session_id)
    except MathTutorError as e:
        raise _http_error(e)
    return bucket_tasks(view.tasks, today or date.today())


@router.get("/{task_id}/progress", response_model=TaskProgressView)
async def get_task_progress(
    task_id: str,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    try:
        progress, stage = tracker.get_progress(task_id, session_id)
    except MathTutorError as e:
        raise _http_error(e)
    return TaskProgressView(progress=progress, stage=stage)


@router.get("/{task_id}/entry", response_model=EntryDecision)
async def get_task_entry(
    task_id: str,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """
    Where opening the task should land: theory/quiz or straight to exercises.

    Never fails; lookup errors route to theory.
    """
    return tracker.resolve_entry(task_id, session_id)


@router.post("/{task_id}/quiz", response_model=QuizOutcome)
async def submit_quiz(
    task_id: str,
    submission: QuizSubmission,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """Grade the topic quiz; at most 2 wrong answers unlocks exercises."""
    try:
        return tracker.submit_quiz(task_id, session_id, submission.answers)
    except MathTutorError as e:
        raise _http_error(e)


@router.post("/{task_id}/quiz/result", response_model=QuizOutcome)
async def record_quiz_result(
    task_id: str,
    result: QuizResultCounts,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """Apply a quiz the client graded itself."""
    try:
        return tracker.record_quiz_result(task_id, session_id, result.total, result.wrong)
    except MathTutorError as e:
        raise _http_error(e)


@router.post("/{task_id}/exercises/complete", response_model=ExerciseOutcome)
async def complete_exercise(
    task_id: str,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """Count one finished exercise; the 4th completes the task."""
    try:
        return tracker.complete_exercise(task_id, session_id)
    except MathTutorError as e:
        raise _http_error(e)


@router.post("/{task_id}/exercises/flag-steps")
async def flag_solution_steps(
    task_id: str,
    submission: StepFlagSubmission,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """Record which solution steps the learner got wrong."""
    try:
        record = tracker.flag_solution_steps(task_id, session_id, submission)
    except MathTutorError as e:
        raise _http_error(e)
    return {"logged": record is not None, "mistake_id": record.key if record else None}


@router.post("/{task_id}/complete", response_model=LearningTask)
async def complete_task(
    task_id: str,
    session_id: str = Depends(require_session),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    """Mark a review task done."""
    try:
        return tracker.mark_task_complete(task_id, session_id)
    except MathTutorError as e:
        raise _http_error(e)
