"""Dashboard analytics derived from the local record list."""

from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List

from jobtracker.schemas import APPLICATION_STATUSES


@dataclass(frozen=True)
class StatusSlice:
    status: str
    count: int


@dataclass(frozen=True)
class WeeklyCount:
    week_start: date
    label: str
    applications: int


@dataclass(frozen=True)
class Summary:
    total: int
    interview_rate: float
    offer_rate: float
    by_status: List[StatusSlice]
    per_week: List[WeeklyCount]


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _rate(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


def summarize(records: Iterable) -> Summary:
    records = list(records)
    total = len(records)
    counts = Counter(r.status for r in records)

    weeks = Counter(week_start(r.date_applied) for r in records if r.date_applied)
    per_week = [
        WeeklyCount(week_start=start, label=f"{start:%b} {start.day}", applications=weeks[start])
        for start in sorted(weeks)
    ]

    return Summary(
        total=total,
        interview_rate=_rate(counts["interview"] + counts["offer"], total),
        offer_rate=_rate(counts["offer"], total),
        by_status=[StatusSlice(status, counts[status]) for status in APPLICATION_STATUSES],
        per_week=per_week,
    )
