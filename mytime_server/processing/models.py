# mytime_server/processing/models.py
"""
Plain data carriers used by the timeline, aggregation and day editing logic.
They are independent of the database so the same algorithms run over rows
loaded from SQLAlchemy or over an in-memory list.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import List, Optional

MINUTES_PER_DAY = 1440


@dataclass(frozen=True)
class LoggedActivity:
    """One stored activity start, joined with its category."""
    id: int
    category_id: int
    category_name: str
    color: str
    day: date
    instant: Optional[datetime]
    description: str = ""


@dataclass(frozen=True)
class TimelineEntry:
    """An activity placed on a day's timeline."""
    activity: LoggedActivity
    minutes: Optional[int]
    absolute_minutes: Optional[int]
    duration_minutes: Optional[int]
    is_anchor: bool = False

    @property
    def time(self) -> str:
        if self.minutes is None:
            return ""
        return f"{self.minutes // 60:02d}:{self.minutes % 60:02d}"

    def with_duration(self, duration_minutes: Optional[int]) -> "TimelineEntry":
        return replace(self, duration_minutes=duration_minutes)


@dataclass(frozen=True)
class DayTimeline:
    day: date
    entries: List[TimelineEntry] = field(default_factory=list)
    day_start_minutes: int = 0
    day_end_minutes: int = MINUTES_PER_DAY

    @property
    def anchor(self) -> Optional[TimelineEntry]:
        return next((entry for entry in self.entries if entry.is_anchor), None)

    @property
    def activities(self) -> List[TimelineEntry]:
        """Non-anchor entries that have a position on the timeline."""
        return [e for e in self.entries if not e.is_anchor and e.absolute_minutes is not None]


@dataclass(frozen=True)
class CategoryTotal:
    name: str
    color: str
    value: float
