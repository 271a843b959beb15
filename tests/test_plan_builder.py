from datetime import date, timedelta

import pytest

from mathtutor.core.exceptions import InvalidDate
from mathtutor.data import curriculum
from mathtutor.models.plan import PlannerTask, TaskType
from mathtutor.services import plan_builder

from tests.conftest import TODAY


def test_quadratics_catalog_six_days_out():
    topic = curriculum.find_topic("9", "9-quadratics")
    test_date = TODAY + timedelta(days=6)

    tasks = plan_builder.build_local_tasks(
        topic.name, plan_builder.resolve_subtopics(topic), TODAY, test_date
    )

    assert [task.day_number for task in tasks] == [1, 2, 3, 4, 6]
    assert [task.task_type for task in tasks[:4]] == [TaskType.PRACTICE] * 4
    assert tasks[0].title == "Quadratic Equations Basics"
    assert tasks[0].scheduled_date == TODAY

    review = tasks[-1]
    assert review.task_type == TaskType.REVIEW
    assert review.title == "Quadratic Equations – Final Review"
    assert review.scheduled_date == test_date - timedelta(days=1)


def test_keyword_fallback_when_catalog_has_no_subtopics():
    assert len(plan_builder.subtopics_for_topic_name("Quadratic Equations")) == 6
    assert plan_builder.subtopics_for_topic_name("Intro to Trig")[0] == "Basic Trigonometric Ratios"
    assert plan_builder.subtopics_for_topic_name("Geometry") == plan_builder.generic_subtopics("Geometry")


def test_catalog_subtopics_take_precedence():
    topic = curriculum.find_topic("9", "9-quadratics")
    assert plan_builder.resolve_subtopics(topic) == topic.subtopics

    polynomials = curriculum.find_topic("9", "9-polynomials")
    assert plan_builder.resolve_subtopics(polynomials)[0] == "Polynomial Basics"


@pytest.mark.parametrize("count, days, expected", [
    (6, 1, 3),
    (6, 4, 3),
    (6, 5, 4),
    (6, 30, 6),
    (2, 10, 2),
])
def test_usable_subtopic_count(count, days, expected):
    assert plan_builder.usable_subtopic_count(count, days) == expected


def test_short_window_has_no_review_and_may_pass_test_date():
    # 2 days out still lays out the minimum of 3 subtopics
    tasks = plan_builder.build_local_tasks(
        "Polynomials", ["A", "B", "C", "D"], TODAY, TODAY + timedelta(days=2)
    )
    assert [task.day_number for task in tasks] == [1, 2, 3]
    assert all(task.task_type == TaskType.PRACTICE for task in tasks)


def test_long_window_ends_with_review_on_last_day():
    test_date = TODAY + timedelta(days=30)
    tasks = plan_builder.build_local_tasks("Functions", ["A", "B", "C"], TODAY, test_date)

    day_numbers = [task.day_number for task in tasks]
    assert day_numbers == sorted(day_numbers)
    assert len(set(day_numbers)) == len(day_numbers)
    assert tasks[-1].day_number == 30
    assert tasks[-1].task_type == TaskType.REVIEW


def test_test_date_today_is_rejected():
    with pytest.raises(InvalidDate):
        plan_builder.build_local_tasks("Functions", ["A"], TODAY, TODAY)


def test_schedule_planner_tasks_assigns_dates():
    tasks = [
        PlannerTask(day_number=2, title="Quiz", description="", task_type=TaskType.QUIZ),
        PlannerTask(day_number=1, title=" Theory ", description="", task_type=TaskType.THEORY),
    ]
    drafts = plan_builder.schedule_planner_tasks(tasks, TODAY, 5)

    assert [draft.day_number for draft in drafts] == [1, 2]
    assert drafts[0].title == "Theory"
    assert drafts[1].scheduled_date == TODAY + timedelta(days=1)


@pytest.mark.parametrize("tasks", [
    [],
    [PlannerTask(day_number=1, title="A", description="", task_type=TaskType.THEORY),
     PlannerTask(day_number=1, title="B", description="", task_type=TaskType.QUIZ)],
    [PlannerTask(day_number=9, title="A", description="", task_type=TaskType.THEORY)],
    [PlannerTask(day_number=1, title="  ", description="", task_type=TaskType.THEORY)],
])
def test_schedule_planner_tasks_rejects_unusable_responses(tasks):
    assert plan_builder.schedule_planner_tasks(tasks, TODAY, 5) is None


def test_days_until_test():
    assert plan_builder.days_until_test(date(2026, 10, 18), date(2026, 10, 24)) == 6
