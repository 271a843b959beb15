"""
Read-side mistake analytics.

Pure functions over the mistake log, recomputed on every read. ``now`` is
always passed in and must be timezone-aware.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from mathtutor.models.mistake import (
    MistakeRecord, MistakeKind, ImprovementRate, ExercisePatterns,
    DailyMistakeCount, MistakeStats
)


PATTERN_KEYWORDS = [
    "factor", "distribute", "simplify", "sign",
    "multiply", "divide", "exponent", "combine"
]
TOP_KEYWORDS = 3
DAILY_WINDOW_DAYS = 7


def from_last_days(records: Sequence[MistakeRecord], days: int, now: datetime) -> List[MistakeRecord]:
    """Records within the trailing ``days`` window."""
    cutoff = now - timedelta(days=days)
    return [record for record in records if record.timestamp >= cutoff]


def improvement_rate(records: Sequence[MistakeRecord], now: datetime) -> ImprovementRate:
    """
    Week-over-week change in mistake count.

    The sign is inverted so fewer mistakes reads as positive improvement.
    Defined as 0 when the previous week had no mistakes.
    """
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    this_week = sum(1 for r in records if r.timestamp >= week_ago)
    last_week = sum(1 for r in records if two_weeks_ago <= r.timestamp < week_ago)

    if last_week == 0:
        percent_change = 0.0
    else:
        percent_change = -((this_week - last_week) / last_week) * 100
        percent_change = percent_change or 0.0  # no negative zero

    return ImprovementRate(
        this_week=this_week,
        last_week=last_week,
        percent_change=percent_change
    )


def days_since_last_mistake(records: Sequence[MistakeRecord], now: datetime) -> int:
    if not records:
        return 0
    latest = max(record.timestamp for record in records)
    return int(abs((now - latest).total_seconds()) // 86400)


def daily_counts(
    records: Sequence[MistakeRecord],
    days: int,
    now: datetime
) -> List[DailyMistakeCount]:
    """Per-day counts by kind for the last ``days`` UTC days, oldest first."""
    today = now.astimezone(timezone.utc).date()
    buckets = {
        today - timedelta(days=offset): DailyMistakeCount(day=today - timedelta(days=offset))
        for offset in range(days)
    }

    for record in records:
        bucket = buckets.get(record.timestamp.astimezone(timezone.utc).date())
        if bucket is not None:
            field = record.kind.value
            setattr(bucket, field, getattr(bucket, field) + 1)

    return [buckets[day] for day in sorted(buckets)]


def analyze_exercise_patterns(records: Sequence[MistakeRecord]) -> ExercisePatterns:
    """
    Mine flagged exercise steps for recurring trouble.

    Keywords are counted once per flagged step whose text mentions them;
    step positions come from ``incorrect_steps`` (falling back to the
    detail's own index).
    """
    keyword_counts: Counter = Counter()
    step_counts: Counter = Counter()

    for record in records:
        if record.kind != MistakeKind.EXERCISE or not record.step_details:
            continue

        flagged = record.incorrect_steps or []
        for index, detail in enumerate(record.step_details):
            text = f"{detail.step} {detail.explanation}".lower()
            for keyword in PATTERN_KEYWORDS:
                if keyword in text:
                    keyword_counts[keyword] += 1

            position = flagged[index] if index < len(flagged) else index
            step_counts[position] += 1

    problematic_step: Optional[int] = None
    if step_counts:
        # ties resolve to the earliest position
        problematic_step = max(sorted(step_counts), key=lambda position: step_counts[position])

    return ExercisePatterns(
        common_keywords=[keyword for keyword, _ in keyword_counts.most_common(TOP_KEYWORDS)],
        problematic_step=problematic_step,
        step_counts=dict(sorted(step_counts.items()))
    )


def summarize(records: Sequence[MistakeRecord], now: datetime) -> MistakeStats:
    """Everything the mistakes dashboard shows, in one pass per metric."""
    by_kind = {kind.value: 0 for kind in MistakeKind}
    for record in records:
        by_kind[record.kind.value] += 1

    return MistakeStats(
        total=len(records),
        by_kind=by_kind,
        last_7_days=len(from_last_days(records, 7, now)),
        improvement=improvement_rate(records, now),
        days_since_last_mistake=days_since_last_mistake(records, now),
        patterns=analyze_exercise_patterns(records),
        daily_counts=daily_counts(records, DAILY_WINDOW_DAYS, now)
    )
