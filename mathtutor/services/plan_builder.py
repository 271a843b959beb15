"""
Local study plan builder.

Deterministic fallback used whenever the AI planner is unavailable. Pure
functions only: no I/O, the current day is always passed in.
"""

from typing import List, Optional, Sequence
from datetime import date, timedelta

from mathtutor.core.exceptions import InvalidDate
from mathtutor.models.curriculum import CurriculumTopic
from mathtutor.models.plan import TaskDraft, TaskType


MIN_SUBTOPIC_TASKS = 3

REVIEW_TITLE = "{topic} – Final Review"
REVIEW_DESCRIPTION = (
    "Comprehensive review of all {topic} concepts. Review notes, practice "
    "mixed problems, and prepare for your test."
)
SUBTOPIC_DESCRIPTION = (
    "Complete theory, practice problems, and quiz on {subtopic}. Start with "
    "understanding the concepts, then practice with examples, and test your knowledge."
)

# Checked in order; the first keyword found in the lowercased topic name wins
KEYWORD_SUBTOPICS = [
    (("quadratic",), [
        "Quadratic Equations Basics",
        "Factoring Quadratics",
        "Quadratic Formula",
        "Graphing Parabolas",
        "Word Problems with Quadratics",
        "Advanced Applications",
    ]),
    (("polynomial",), [
        "Polynomial Basics",
        "Adding and Subtracting Polynomials",
        "Multiplying Polynomials",
        "Factoring Polynomials",
        "Polynomial Division",
        "Advanced Polynomial Problems",
    ]),
    (("pythagorean",), [
        "Pythagorean Theorem Basics",
        "Finding Missing Sides",
        "Pythagorean Triples",
        "Word Problems",
        "Distance Formula",
    ]),
    (("trigonometry", "trig"), [
        "Basic Trigonometric Ratios",
        "Sine, Cosine, and Tangent",
        "Special Angles",
        "Solving Right Triangles",
        "Trigonometric Applications",
        "Advanced Trigonometry",
    ]),
    (("function",), [
        "Understanding Functions",
        "Function Notation",
        "Linear Functions",
        "Function Transformations",
        "Composite Functions",
    ]),
]


def days_until_test(today: date, test_date: date) -> int:
    """Whole calendar days from today to the test date."""
    return (test_date - today).days


def generic_subtopics(topic_name: str) -> List[str]:
    return [
        f"{topic_name} Fundamentals",
        f"{topic_name} Problem Solving",
        f"{topic_name} Applications",
        f"Advanced {topic_name}",
        f"{topic_name} Review",
    ]


def subtopics_for_topic_name(topic_name: str) -> List[str]:
    """
    Ordered subtopic curriculum matched on keywords in the topic name.

    Args:
        topic_name: Display name, e.g. "Quadratic Equations"

    Returns:
        Subtopic titles in teaching order (generic 5-item list when no
        keyword matches)
    """
    lowered = topic_name.lower()
    for keywords, subtopics in KEYWORD_SUBTOPICS:
        if any(keyword in lowered for keyword in keywords):
            return list(subtopics)
    return generic_subtopics(topic_name)


def resolve_subtopics(topic: CurriculumTopic) -> List[str]:
    """Catalog-defined subtopics take precedence over keyword matching."""
    if topic.subtopics:
        return list(topic.subtopics)
    return subtopics_for_topic_name(topic.name)


def usable_subtopic_count(subtopic_count: int, days: int) -> int:
    """Subtopics that fit, keeping one trailing day for review when possible."""
    return min(subtopic_count, max(MIN_SUBTOPIC_TASKS, days - 1))


def build_local_tasks(
    topic_name: str,
    subtopics: Sequence[str],
    today: date,
    test_date: date
) -> List[TaskDraft]:
    """
    Lay subtopics out one per day, followed by a final review.

    Args:
        topic_name: Display name used in the review task
        subtopics: Ordered subtopic titles
        today: Plan creation day (day 1)
        test_date: Exam day

    Returns:
        Task drafts sorted by day number

    Raises:
        InvalidDate: If the test is not at least one day away
    """
    days = days_until_test(today, test_date)
    if days < 1:
        raise InvalidDate("Please select a test date that's at least 1 day in the future.")

    usable = usable_subtopic_count(len(subtopics), days)

    tasks = [
        TaskDraft(
            day_number=index + 1,
            scheduled_date=today + timedelta(days=index),
            title=subtopic,
            description=SUBTOPIC_DESCRIPTION.format(subtopic=subtopic),
            task_type=TaskType.PRACTICE
        )
        for index, subtopic in enumerate(subtopics[:usable])
    ]

    if days > usable:
        tasks.append(TaskDraft(
            day_number=days,
            scheduled_date=test_date - timedelta(days=1),
            title=REVIEW_TITLE.format(topic=topic_name),
            description=REVIEW_DESCRIPTION.format(topic=topic_name),
            task_type=TaskType.REVIEW
        ))

    return tasks


def schedule_planner_tasks(
    tasks: Sequence,
    today: date,
    days: int
) -> Optional[List[TaskDraft]]:
    """
    Convert AI-authored tasks into drafts, or None if they are unusable.

    A usable response is non-empty, has unique day numbers within
    ``1..days`` and only known task types. Dates are ``today + day - 1``.
    """
    if not tasks:
        return None

    seen = set()
    drafts = []
    for task in sorted(tasks, key=lambda t: t.day_number):
        if task.day_number < 1 or task.day_number > days or task.day_number in seen:
            return None
        if not task.title or not task.title.strip():
            return None
        seen.add(task.day_number)
        drafts.append(TaskDraft(
            day_number=task.day_number,
            scheduled_date=today + timedelta(days=task.day_number - 1),
            title=task.title.strip(),
            description=task.description,
            task_type=TaskType(task.task_type)
        ))
    return drafts
