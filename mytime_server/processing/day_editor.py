# mytime_server/processing/day_editor.py
"""
Whole-day edits.

A day is always edited as a complete list of (time, activity type) entries.
The list is cleaned, put in timeline order around the wake entry, checked
for the minimum activity length and then swapped in for the day's stored
activities in a single transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service.core import repository
from mytime_server.api_service.core.errors import EntryValidationError
from mytime_server.api_service.core.models import normalize_name_key
from mytime_server.api_service.core.settings import settings as app_settings, Settings
from mytime_server.processing.timeline import absolute_minutes, minutes_since_midnight

log = logging.getLogger(__name__)

TIME_FORMATS = ("%H:%M", "%H:%M:%S")
MIN_LENGTH_MESSAGE = "Minimum activity length is {minutes} minute{plural}. Check the start times."


@dataclass(frozen=True)
class ProposedEntry:
    """One row of a day edit as submitted by the client."""
    time: Optional[str]
    category_name: Optional[str]
    is_wakeup: bool = False
    color: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class PreparedEntry:
    category_name: str
    start: time
    is_anchor: bool
    absolute_minutes: int
    color: Optional[str] = None
    description: Optional[str] = None

    @property
    def category_key(self) -> str:
        return normalize_name_key(self.category_name)


def parse_wall_clock(value: str) -> time:
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).time().replace(second=0)
        except ValueError:
            continue
    raise EntryValidationError(f"Invalid start time '{value}'. Use the HH:MM format.")


def normalize_entries(entries: Iterable[ProposedEntry], wake_category_name: str) -> List[PreparedEntry]:
    """
    Drops incomplete rows, parses times and marks wake entries.

    Rows with an empty time or activity type are dropped silently. The
    absolute minutes are computed against the earliest wake entry.
    """
    wake_key = normalize_name_key(wake_category_name)
    parsed = []
    for entry in entries:
        name = (entry.category_name or "").strip()
        raw_time = (entry.time or "").strip()
        if not name or not raw_time:
            continue
        start = parse_wall_clock(raw_time)
        named_wake = normalize_name_key(name) == wake_key
        if entry.is_wakeup and not named_wake:
            raise EntryValidationError(
                f"The wake-up entry must use the '{wake_category_name}' activity type, got '{name}'."
            )
        parsed.append((name, start, entry.is_wakeup or named_wake, entry))

    wake_minutes = min((minutes_since_midnight(start) for _, start, is_anchor, _ in parsed if is_anchor), default=None)

    return [
        PreparedEntry(
            category_name=name,
            start=start,
            is_anchor=is_anchor,
            absolute_minutes=absolute_minutes(minutes_since_midnight(start), wake_minutes, is_anchor),
            color=entry.color or None,
            description=entry.description,
        )
        for name, start, is_anchor, entry in parsed
    ]


def order_and_validate(entries: List[PreparedEntry], min_activity_minutes: int = 1) -> List[PreparedEntry]:
    """
    Sorts entries along the day axis and enforces the minimum activity length.

    Wake entries reset the reference point but are never measured themselves.

    Raises:
        EntryValidationError: if two consecutive activities start less than
            min_activity_minutes apart.
    """
    # Wake entries come first among entries starting at the same minute
    ordered = sorted(entries, key=lambda e: (e.absolute_minutes, not e.is_anchor))
    previous_absolute: Optional[int] = None
    for entry in ordered:
        if entry.is_anchor:
            previous_absolute = entry.absolute_minutes
            continue
        if previous_absolute is not None and entry.absolute_minutes - previous_absolute < min_activity_minutes:
            raise EntryValidationError(MIN_LENGTH_MESSAGE.format(
                minutes=min_activity_minutes,
                plural="" if min_activity_minutes == 1 else "s",
            ))
        previous_absolute = entry.absolute_minutes
    return ordered


def prepare_day_entries(
    entries: Iterable[ProposedEntry],
    wake_category_name: str,
    min_activity_minutes: int = 1,
) -> List[PreparedEntry]:
    """Pure form of a day edit: cleaned, ordered and validated entries."""
    return order_and_validate(normalize_entries(entries, wake_category_name), min_activity_minutes)


async def replace_day(
    db: AsyncSession,
    day: date,
    entries: Iterable[ProposedEntry],
    settings: Settings = app_settings,
) -> List[PreparedEntry]:
    """
    Validates a full-day edit and stores it in place of the day's activities.

    Activity types referenced by the edit are created first and stay
    created even if validation then fails.

    Returns:
        The entries that were stored, in timeline order.
    """
    if not isinstance(day, date):
        raise EntryValidationError("A day in YYYY-MM-DD format is required.")

    normalized = normalize_entries(entries, settings.WAKE_CATEGORY_NAME)

    category_ids: Dict[str, int] = {}
    for entry in normalized:
        if entry.category_key in category_ids:
            continue
        category = await repository.upsert_category_by_name(
            db, entry.category_name, color=entry.color, description=entry.description
        )
        category_ids[entry.category_key] = category.id

    ordered = order_and_validate(normalized, settings.MIN_ACTIVITY_MINUTES)

    records = [
        (category_ids[entry.category_key], datetime.combine(day, entry.start))
        for entry in ordered
    ]
    await repository.replace_day_events(db, day, records, max_retries=settings.DB_WRITE_MAX_RETRIES)
    log.info(f"Replaced activities for {day.isoformat()} with {len(records)} entries")
    return ordered
