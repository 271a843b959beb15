"""
Progress Tracker.

Per-task learning state machine:

    NotStarted → QuizPassed → ExercisesInProgress(1..3) → Complete

- NotStarted → QuizPassed: topic quiz finished with at most
  QUIZ_MAX_MISTAKES wrong answers (upserts ``quiz_passed``)
- QuizPassed → ExercisesInProgress(n+1): one exercise completed
- ExercisesInProgress(4) → Complete: the 4th exercise also flags the task
  ``is_completed`` with a timestamp

No transition goes backwards. A failed quiz retry never resets a task.
Navigation reads degrade to the theory stage on any error.
"""

from typing import Callable, List, Optional, Tuple
from datetime import date, datetime, timezone
import logging

from mathtutor.core.config import settings
from mathtutor.core.exceptions import (
    TaskNotFound, ProgressGateError, QuizUnavailable, ProblemNotFound
)
from mathtutor.core.logging import short_session
from mathtutor.crud.plan import PlanCRUD
from mathtutor.crud.progress import ProgressCRUD
from mathtutor.crud.mistake import MistakeCRUD
from mathtutor.data import curriculum
from mathtutor.models.mistake import MistakeCreate, MistakeKind, MistakeRecord, StepDetail
from mathtutor.models.plan import LearningPlan, LearningTask, TaskBuckets, TaskType
from mathtutor.models.progress import (
    TaskProgress, TaskStage, NavigationTarget, QuizOutcome,
    ExerciseOutcome, EntryDecision, StepFlagSubmission
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stage_for(
    progress: Optional[TaskProgress],
    task: Optional[LearningTask] = None,
    exercises_per_task: int = settings.EXERCISES_PER_TASK
) -> TaskStage:
    """Derive the stage from the progress row and the task's own flag."""
    if task is not None and task.is_completed:
        return TaskStage.COMPLETE
    if progress is None or not progress.quiz_passed:
        return TaskStage.NOT_STARTED
    if progress.exercises_completed >= exercises_per_task:
        return TaskStage.COMPLETE
    if progress.exercises_completed > 0:
        return TaskStage.EXERCISES_IN_PROGRESS
    return TaskStage.QUIZ_PASSED


def bucket_tasks(tasks: List[LearningTask], today: date) -> TaskBuckets:
    """
    Partition tasks for the home screen.

    Args:
        tasks: Every task of the plan
        today: Learner's current calendar day

    Returns:
        Buckets by scheduled date, plus the next actionable task (lowest
        day number among incomplete tasks)
    """
    buckets = TaskBuckets()
    ordered = sorted(tasks, key=lambda task: task.day_number)

    for task in ordered:
        if task.scheduled_date == today:
            if task.is_completed:
                buckets.completed_today.append(task)
            else:
                buckets.today.append(task)
        elif task.scheduled_date < today:
            if task.is_completed:
                buckets.past_done.append(task)
            else:
                buckets.past_missed.append(task)
        else:
            buckets.upcoming.append(task)

    buckets.next_task = next((task for task in ordered if not task.is_completed), None)
    return buckets


class ProgressTracker:
    """Advances per-task progress for one learner session."""

    def __init__(
        self,
        plan_crud: PlanCRUD,
        progress_crud: ProgressCRUD,
        mistake_crud: MistakeCRUD,
        max_quiz_mistakes: int = settings.QUIZ_MAX_MISTAKES,
        exercises_per_task: int = settings.EXERCISES_PER_TASK,
        now: Callable[[], datetime] = _utcnow
    ):
        self.plan_crud = plan_crud
        self.progress_crud = progress_crud
        self.mistake_crud = mistake_crud
        self.max_quiz_mistakes = max_quiz_mistakes
        self.exercises_per_task = exercises_per_task
        self.now = now

    def _load_task(self, task_id: str, session_id: str) -> Tuple[LearningTask, LearningPlan]:
        """Task and its plan, only if the plan belongs to the session."""
        task = self.plan_crud.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        plan = self.plan_crud.get_plan(task.plan_id)
        if plan is None or plan.session_id != session_id:
            raise TaskNotFound(task_id)
        return task, plan

    # ========================================================================
    # READS
    # ========================================================================

    def get_progress(self, task_id: str, session_id: str) -> Tuple[TaskProgress, TaskStage]:
        task, _ = self._load_task(task_id, session_id)
        progress = self.progress_crud.get(task_id, session_id)
        stage = stage_for(progress, task, self.exercises_per_task)
        return progress or TaskProgress(task_id=task_id, session_id=session_id), stage

    def resolve_entry(self, task_id: str, session_id: str) -> EntryDecision:
        """
        Where to land when the learner opens a task.

        Mid-task resumption follows the progress row, not the task flag.
        Any lookup error routes to theory, the safe starting point.
        """
        try:
            task, _ = self._load_task(task_id, session_id)
            progress = self.progress_crud.get(task_id, session_id)
        except Exception as e:
            logger.warning(f"⚠️ Progress check failed for task {task_id}, routing to theory: {e}")
            return EntryDecision(target=NavigationTarget.THEORY, stage=TaskStage.NOT_STARTED)

        stage = stage_for(progress, task, self.exercises_per_task)
        if progress is not None and progress.quiz_passed:
            return EntryDecision(target=NavigationTarget.EXERCISES, stage=stage)
        return EntryDecision(target=NavigationTarget.THEORY, stage=stage)

    # ========================================================================
    # QUIZ
    # ========================================================================

    def submit_quiz(self, task_id: str, session_id: str, answers: List[int]) -> QuizOutcome:
        """
        Grade a quiz attempt against the plan topic's quiz.

        Unanswered questions count as wrong. Each wrong answer is logged to
        the mistake log.
        """
        _, plan = self._load_task(task_id, session_id)
        quiz = curriculum.get_quiz(plan.topic_id)
        if not quiz:
            raise QuizUnavailable(plan.topic_id)

        wrong = 0
        for index, question in enumerate(quiz):
            chosen = answers[index] if index < len(answers) else None
            if chosen == question.correct_answer:
                continue

            wrong += 1
            user_answer = None
            if chosen is not None and 0 <= chosen < len(question.options):
                user_answer = question.options[chosen]
            self.mistake_crud.add(
                MistakeCreate(
                    kind=MistakeKind.QUIZ,
                    problem=question.question,
                    topic_id=plan.topic_id,
                    topic_label=plan.topic_name,
                    user_answer=user_answer,
                    correct_answer=question.options[question.correct_answer]
                ),
                session_id=session_id,
                now=self.now()
            )

        return self.record_quiz_result(task_id, session_id, total=len(quiz), wrong=wrong)

    def record_quiz_result(self, task_id: str, session_id: str, total: int, wrong: int) -> QuizOutcome:
        """Apply a graded quiz attempt to the state machine."""
        task, _ = self._load_task(task_id, session_id)
        wrong = max(0, min(wrong, total))
        passed = wrong <= self.max_quiz_mistakes

        progress = self.progress_crud.get(task_id, session_id)
        if passed and not (progress and progress.quiz_passed):
            progress = self.progress_crud.mark_quiz_passed(task_id, session_id)
            logger.info(f"✅ Quiz passed for task {task_id} ({wrong}/{total} wrong, session {short_session(session_id)})")
        elif not passed:
            logger.info(f"📖 Quiz failed for task {task_id} ({wrong}/{total} wrong), back to theory")

        return QuizOutcome(
            passed=passed,
            total=total,
            wrong=wrong,
            score=total - wrong,
            next=NavigationTarget.EXERCISES if passed else NavigationTarget.THEORY,
            stage=stage_for(progress, task, self.exercises_per_task)
        )

    # ========================================================================
    # EXERCISES
    # ========================================================================

    def complete_exercise(self, task_id: str, session_id: str) -> ExerciseOutcome:
        """
        Count one finished exercise.

        Raises:
            ProgressGateError: If the quiz has not been passed yet
        """
        task, _ = self._load_task(task_id, session_id)
        progress = self.progress_crud.get(task_id, session_id)
        if progress is None or not progress.quiz_passed:
            raise ProgressGateError(task_id)

        count = min(self.exercises_per_task, progress.exercises_completed + 1)
        if count != progress.exercises_completed:
            progress = self.progress_crud.set_exercises_completed(task_id, session_id, count)

        if count >= self.exercises_per_task and not task.is_completed:
            task = self.plan_crud.mark_task_complete(task_id, self.now())
            logger.info(f"🏁 Task {task_id} complete after {count} exercises")

        return ExerciseOutcome(
            exercises_completed=progress.exercises_completed,
            task_completed=task.is_completed,
            stage=stage_for(progress, task, self.exercises_per_task)
        )

    def mark_task_complete(self, task_id: str, session_id: str) -> LearningTask:
        """
        Explicit completion for review days, which have no exercise stage.

        Other task types only complete through their 4th exercise.

        Raises:
            ProgressGateError: For a non-review task
        """
        task, _ = self._load_task(task_id, session_id)
        if task.is_completed:
            return task
        if task.task_type != TaskType.REVIEW:
            raise ProgressGateError(task_id, "Finish the exercises to complete this task")
        logger.info(f"🏁 Review task {task_id} marked complete")
        return self.plan_crud.mark_task_complete(task_id, self.now())

    def flag_solution_steps(self, task_id: str, session_id: str, submission: StepFlagSubmission) -> Optional[MistakeRecord]:
        """Log the solution steps a learner marked as wrong on an exercise."""
        _, plan = self._load_task(task_id, session_id)
        problem = curriculum.find_problem(curriculum.get_exercises(plan.topic_id), submission.problem_id)
        if problem is None:
            raise ProblemNotFound(plan.topic_id, submission.problem_id)

        steps = [i for i in submission.incorrect_steps if 0 <= i < len(problem.detailed_solution)]
        details = [
            StepDetail(
                step=problem.detailed_solution[i].step,
                explanation=problem.detailed_solution[i].explanation
            )
            for i in steps
        ]

        return self.mistake_crud.add(
            MistakeCreate(
                kind=MistakeKind.EXERCISE,
                problem=problem.question,
                topic_id=plan.topic_id,
                topic_label=plan.topic_name,
                incorrect_steps=steps,
                step_details=details
            ),
            session_id=session_id,
            now=self.now()
        )


def create_progress_tracker(db, **kwargs) -> ProgressTracker:
    """Factory wiring the tracker to a database."""
    return ProgressTracker(PlanCRUD(db), ProgressCRUD(db), MistakeCRUD(db), **kwargs)
