from datetime import timedelta

import pytest

from mathtutor.core.exceptions import (
    ProblemNotFound, ProgressGateError, TaskNotFound
)
from mathtutor.data import curriculum
from mathtutor.models.mistake import MistakeKind
from mathtutor.models.plan import LearningPlanCreate, PlanSource, TaskType
from mathtutor.models.progress import NavigationTarget, StepFlagSubmission, TaskStage
from mathtutor.services import plan_builder
from mathtutor.services.progress_tracker import bucket_tasks

from tests.conftest import NOW, SESSION, TODAY

QUADRATICS_ANSWERS = [1, 1, 0, 0, 2, 2]


@pytest.fixture
def tasks(plan_crud):
    topic = curriculum.find_topic("9", "9-quadratics")
    test_date = TODAY + timedelta(days=6)
    plan = plan_crud.create_plan(LearningPlanCreate(
        session_id=SESSION,
        grade="9",
        topic_id=topic.id,
        topic_name=topic.name,
        test_date=test_date,
        source=PlanSource.LOCAL
    ))
    drafts = plan_builder.build_local_tasks(
        topic.name, plan_builder.resolve_subtopics(topic), TODAY, test_date
    )
    return plan_crud.insert_tasks(plan.key, drafts)


def answers_with_wrong(count):
    answers = list(QUADRATICS_ANSWERS)
    for index in range(count):
        answers[index] = (answers[index] + 1) % 4
    return answers


def test_new_task_starts_at_theory(tracker, tasks):
    progress, stage = tracker.get_progress(tasks[0].key, SESSION)

    assert stage == TaskStage.NOT_STARTED
    assert progress.quiz_passed is False
    assert tracker.resolve_entry(tasks[0].key, SESSION).target == NavigationTarget.THEORY


def test_three_wrong_answers_fail_the_quiz(tracker, tasks, mistake_crud):
    outcome = tracker.submit_quiz(tasks[0].key, SESSION, answers_with_wrong(3))

    assert outcome.passed is False
    assert outcome.total == 6
    assert outcome.score == 3
    assert outcome.next == NavigationTarget.THEORY
    assert outcome.stage == TaskStage.NOT_STARTED

    mistakes = mistake_crud.list_mistakes(session_id=SESSION, kind=MistakeKind.QUIZ)
    assert len(mistakes) == 3
    assert all(mistake.topic_id == "9-quadratics" for mistake in mistakes)


def test_two_wrong_then_four_exercises_complete_the_task(tracker, tasks, plan_crud):
    task_id = tasks[0].key

    outcome = tracker.submit_quiz(task_id, SESSION, answers_with_wrong(2))
    assert outcome.passed is True
    assert outcome.stage == TaskStage.QUIZ_PASSED
    assert tracker.resolve_entry(task_id, SESSION).target == NavigationTarget.EXERCISES

    for expected in (1, 2, 3):
        result = tracker.complete_exercise(task_id, SESSION)
        assert result.exercises_completed == expected
        assert result.task_completed is False
        assert result.stage == TaskStage.EXERCISES_IN_PROGRESS

    final = tracker.complete_exercise(task_id, SESSION)
    assert final.exercises_completed == 4
    assert final.task_completed is True
    assert final.stage == TaskStage.COMPLETE

    task = plan_crud.get_task(task_id)
    assert task.is_completed is True
    assert task.completed_at == NOW


def test_exercise_counter_saturates(tracker, tasks, plan_crud):
    task_id = tasks[0].key
    tracker.record_quiz_result(task_id, SESSION, total=6, wrong=0)
    for _ in range(6):
        result = tracker.complete_exercise(task_id, SESSION)

    assert result.exercises_completed == 4
    assert plan_crud.get_task(task_id).completed_at == NOW


def test_exercises_locked_until_quiz_passed(tracker, tasks):
    with pytest.raises(ProgressGateError):
        tracker.complete_exercise(tasks[0].key, SESSION)


def test_failed_retake_keeps_quiz_passed(tracker, tasks):
    task_id = tasks[0].key
    tracker.record_quiz_result(task_id, SESSION, total=6, wrong=1)

    retake = tracker.record_quiz_result(task_id, SESSION, total=6, wrong=5)

    assert retake.passed is False
    assert retake.stage == TaskStage.QUIZ_PASSED
    assert tracker.resolve_entry(task_id, SESSION).target == NavigationTarget.EXERCISES


def test_progress_is_per_session(tracker, tasks, progress_crud):
    progress_crud.mark_quiz_passed(tasks[0].key, "someone-else")

    _, stage = tracker.get_progress(tasks[0].key, SESSION)

    assert stage == TaskStage.NOT_STARTED


def test_other_session_cannot_touch_task(tracker, tasks):
    with pytest.raises(TaskNotFound):
        tracker.complete_exercise(tasks[0].key, "someone-else")


def test_entry_routes_to_theory_on_lookup_error(tracker, fake_db, tasks):
    fake_db.collection('learning_tasks').fail_reads = 1

    decision = tracker.resolve_entry(tasks[0].key, SESSION)

    assert decision.target == NavigationTarget.THEORY


def test_only_review_tasks_complete_explicitly(tracker, tasks):
    review = tasks[-1]
    assert review.task_type == TaskType.REVIEW

    completed = tracker.mark_task_complete(review.key, SESSION)
    assert completed.is_completed is True

    with pytest.raises(ProgressGateError):
        tracker.mark_task_complete(tasks[0].key, SESSION)


def test_flag_solution_steps(tracker, tasks, mistake_crud):
    record = tracker.flag_solution_steps(
        tasks[0].key, SESSION, StepFlagSubmission(problem_id="ex2", incorrect_steps=[0, 2, 9])
    )

    assert record.kind == MistakeKind.EXERCISE
    assert record.incorrect_steps == [0, 2]
    assert [detail.explanation for detail in record.step_details] == [
        "Distribute every term", "Combine like terms"
    ]

    with pytest.raises(ProblemNotFound):
        tracker.flag_solution_steps(
            tasks[0].key, SESSION, StepFlagSubmission(problem_id="nope", incorrect_steps=[0])
        )


def test_bucket_tasks(tasks, plan_crud):
    plan_crud.mark_task_complete(tasks[0].key, NOW)
    all_tasks = plan_crud.get_tasks(tasks[0].plan_id)
    today = TODAY + timedelta(days=1)

    buckets = bucket_tasks(all_tasks, today)

    assert [task.day_number for task in buckets.past_done] == [1]
    assert buckets.past_missed == []
    assert [task.day_number for task in buckets.today] == [2]
    assert [task.day_number for task in buckets.upcoming] == [3, 4, 6]
    assert buckets.next_task.day_number == 2


def test_bucket_tasks_missed_and_completed_today(tasks, plan_crud):
    plan_crud.mark_task_complete(tasks[2].key, NOW)
    all_tasks = plan_crud.get_tasks(tasks[0].plan_id)

    buckets = bucket_tasks(all_tasks, TODAY + timedelta(days=2))

    assert [task.day_number for task in buckets.past_missed] == [1, 2]
    assert [task.day_number for task in buckets.completed_today] == [3]
    assert buckets.next_task.day_number == 1
