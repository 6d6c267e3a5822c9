"""Contribution calendar layout.

Turns the sparse day/count records of the contributions feed into the
53-week grid the profile view renders, plus month label anchors.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

WEEKS = 53
DAYS_PER_WEEK = 7
LOOKBACK_DAYS = 370
MAX_LEVEL = 4

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(frozen=True)
class ContributionDay:
    date: str  # ISO yyyy-mm-dd
    count: int = 0
    level: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> ContributionDay | None:
        """Parse one feed record; returns None if the date is unusable."""
        if not isinstance(data, dict):
            return None
        raw_date = data.get("date")
        try:
            day = datetime.date.fromisoformat(str(raw_date))
        except ValueError:
            return None
        try:
            count = max(0, int(data.get("count") or 0))
            level = min(MAX_LEVEL, max(0, int(data.get("level") or 0)))
        except (TypeError, ValueError):
            count, level = 0, 0
        return cls(date=day.isoformat(), count=count, level=level)

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "count": self.count, "level": self.level}


@dataclass(frozen=True)
class MonthLabel:
    name: str
    index: int  # week column

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "index": self.index}


@dataclass
class ContributionCalendar:
    weeks: list[list[ContributionDay]] = field(default_factory=list)
    month_labels: list[MonthLabel] = field(default_factory=list)

    @property
    def days(self) -> list[ContributionDay]:
        return [day for week in self.weeks for day in week]

    @property
    def total_count(self) -> int:
        return sum(day.count for day in self.days)

    def to_dict(self) -> dict[str, Any]:
        return {
            "weeks": [[day.to_dict() for day in week] for week in self.weeks],
            "monthLabels": [label.to_dict() for label in self.month_labels],
        }


def _days_since_sunday(day: datetime.date) -> int:
    # date.weekday() is Monday=0; the grid's rows start on Sunday.
    return (day.weekday() + 1) % 7


def calendar_bounds(today: datetime.date) -> tuple[datetime.date, datetime.date]:
    """Return (first Sunday, last Saturday) of the grid ending this week."""
    end = today + datetime.timedelta(days=6 - _days_since_sunday(today))
    start = end - datetime.timedelta(days=LOOKBACK_DAYS)
    start -= datetime.timedelta(days=_days_since_sunday(start))
    return start, end


def total_contributions(days: Iterable[ContributionDay]) -> int:
    return sum(day.count for day in days)


def build_calendar(
    days: Iterable[ContributionDay],
    today: datetime.date | None = None,
) -> ContributionCalendar:
    """Lay out ``days`` on a 53x7 grid ending on the Saturday on/after ``today``.

    Dates missing from ``days`` become zero-count cells. A month label is
    anchored on a week whose Sunday falls in the first seven days of a
    month, unless the previous label already names that month.
    """
    today = today or datetime.date.today()
    by_date = {day.date: day for day in days}
    start, _ = calendar_bounds(today)

    weeks: list[list[ContributionDay]] = []
    current = start
    for _ in range(WEEKS):
        week = []
        for _ in range(DAYS_PER_WEEK):
            key = current.isoformat()
            week.append(by_date.get(key) or ContributionDay(date=key))
            current += datetime.timedelta(days=1)
        weeks.append(week)

    labels: list[MonthLabel] = []
    for index, week in enumerate(weeks):
        first = datetime.date.fromisoformat(week[0].date)
        name = MONTH_ABBR[first.month - 1]
        if first.day <= 7 and (not labels or labels[-1].name != name):
            labels.append(MonthLabel(name=name, index=index))

    return ContributionCalendar(weeks=weeks, month_labels=labels)
