from datetime import timedelta

import pytest

from mathtutor.models.mistake import MistakeCreate, MistakeKind, MistakeRecord, StepDetail
from mathtutor.services import mistake_analytics

from tests.conftest import NOW, SESSION


def record(kind=MistakeKind.QUIZ, days_ago=0.0, **fields) -> MistakeRecord:
    fields.setdefault("problem", "Solve $x^2 = 4$")
    fields.setdefault("topic_id", "9-quadratics")
    return MistakeRecord(
        key=f"mistake-{days_ago}-{kind.value}",
        kind=kind,
        timestamp=NOW - timedelta(days=days_ago),
        **fields
    )


@pytest.mark.parametrize("this_week, last_week, expected", [
    (2, 4, 50.0),
    (6, 4, -50.0),
    (3, 0, 0.0),
    (4, 4, 0.0),
])
def test_improvement_rate(this_week, last_week, expected):
    records = [record(days_ago=1) for _ in range(this_week)]
    records += [record(days_ago=10) for _ in range(last_week)]

    rate = mistake_analytics.improvement_rate(records, NOW)

    assert rate.this_week == this_week
    assert rate.last_week == last_week
    assert rate.percent_change == expected
    assert str(rate.percent_change) != "-0.0"


def test_days_since_last_mistake():
    assert mistake_analytics.days_since_last_mistake([], NOW) == 0
    records = [record(days_ago=9.5), record(days_ago=3.2)]
    assert mistake_analytics.days_since_last_mistake(records, NOW) == 3


def test_daily_counts_cover_the_window_oldest_first():
    records = [
        record(MistakeKind.QUIZ, days_ago=0),
        record(MistakeKind.PRACTICE, days_ago=0),
        record(MistakeKind.EXERCISE, days_ago=2),
        record(MistakeKind.QUIZ, days_ago=30),
    ]

    counts = mistake_analytics.daily_counts(records, 7, NOW)

    assert len(counts) == 7
    assert counts[-1].day == NOW.date()
    assert counts[0].day == NOW.date() - timedelta(days=6)
    assert (counts[-1].quiz, counts[-1].practice, counts[-1].exercise) == (1, 1, 0)
    assert counts[-3].exercise == 1
    assert sum(c.quiz + c.exercise + c.practice for c in counts) == 3


def test_exercise_patterns():
    records = [
        record(
            MistakeKind.EXERCISE,
            incorrect_steps=[1, 2],
            step_details=[
                StepDetail(step="$x^2 - 2x + 3x - 6$", explanation="Multiply each term"),
                StepDetail(step="$x^2 + x - 6$", explanation="Combine like terms, watch the sign"),
            ]
        ),
        record(
            MistakeKind.EXERCISE,
            days_ago=1,
            incorrect_steps=[2],
            step_details=[StepDetail(step="$(x+3)(x+4)$", explanation="Factor and combine")],
        ),
        record(MistakeKind.QUIZ),
    ]

    patterns = mistake_analytics.analyze_exercise_patterns(records)

    assert patterns.common_keywords[0] == "combine"
    assert set(patterns.common_keywords) <= {"combine", "multiply", "sign", "factor"}
    assert len(patterns.common_keywords) == 3
    assert patterns.problematic_step == 2
    assert patterns.step_counts == {1: 1, 2: 2}


def test_problematic_step_ties_go_to_earliest():
    records = [
        record(MistakeKind.EXERCISE, incorrect_steps=[3], step_details=[StepDetail(step="a")]),
        record(MistakeKind.EXERCISE, incorrect_steps=[1], step_details=[StepDetail(step="b")]),
    ]
    assert mistake_analytics.analyze_exercise_patterns(records).problematic_step == 1


def test_summarize():
    records = [
        record(MistakeKind.QUIZ, days_ago=1),
        record(MistakeKind.PRACTICE, days_ago=2, attempts=3),
        record(MistakeKind.QUIZ, days_ago=12),
    ]

    stats = mistake_analytics.summarize(records, NOW)

    assert stats.total == 3
    assert stats.by_kind == {"quiz": 2, "exercise": 0, "practice": 1}
    assert stats.last_7_days == 2
    assert stats.improvement.percent_change == -100.0
    assert stats.days_since_last_mistake == 1
    assert len(stats.daily_counts) == 7


def test_mistake_log_crud(mistake_crud):
    create = MistakeCreate(kind=MistakeKind.PRACTICE, problem="p1", topic_id="9-quadratics", attempts=2)
    older = mistake_crud.add(create, session_id=SESSION, now=NOW - timedelta(days=3))
    newer = mistake_crud.add(create, session_id=SESSION, now=NOW)
    mistake_crud.add(create, session_id="someone-else", now=NOW)

    assert older.key.startswith("mistake-")
    listed = mistake_crud.list_mistakes(session_id=SESSION)
    assert [m.key for m in listed] == [newer.key, older.key]
    assert mistake_crud.list_mistakes(session_id=SESSION, since=NOW - timedelta(days=1)) == [newer]

    assert mistake_crud.delete(older.key, session_id="someone-else") is False
    assert mistake_crud.delete(older.key, session_id=SESSION) is True
    assert mistake_crud.clear(session_id=SESSION) == 1


def test_mistake_log_failures_never_raise(mistake_crud, fake_db):
    collection = fake_db.collection('mistake_records')
    collection.fail_inserts = 1
    collection.fail_reads = 1

    create = MistakeCreate(kind=MistakeKind.QUIZ, problem="q", topic_id="9-quadratics")
    assert mistake_crud.add(create, session_id=SESSION) is None
    assert mistake_crud.list_mistakes(session_id=SESSION) == []
