# mytime_server/processing/timeline.py
"""
Timeline derivation for a single day of logged activities.

Activities are stored as bare start instants. This module orders them,
places them on a minutes-since-day-start axis anchored at the wake event
(activities logged earlier than the wake time belong after midnight) and
infers each activity's duration as the distance to the next one.

The entry with no successor is left open (duration None); callers decide
how to close it with close_open_entry. This differs from
aggregation.aggregate_category_totals, which measures plain wall-clock
deltas and uses a fixed fallback.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Union
import logging

from mytime_server.processing.models import (
    MINUTES_PER_DAY,
    DayTimeline,
    LoggedActivity,
    TimelineEntry,
)

log = logging.getLogger(__name__)

# Trailing margin after an activity that starts past midnight
PAST_MIDNIGHT_MARGIN_MINUTES = 60


def minutes_since_midnight(value: Optional[Union[datetime, time]]) -> Optional[int]:
    if value is None:
        return None
    return value.hour * 60 + value.minute


def absolute_minutes(minutes: Optional[int], wake_minutes: Optional[int], is_anchor: bool = False) -> Optional[int]:
    """
    Position of a wall-clock time on the day axis.

    Times strictly earlier than the wake time are shifted by a full day, so
    an activity at 01:00 after waking at 08:00 lands at 1500.
    """
    if minutes is None:
        return None
    if is_anchor or wake_minutes is None:
        return minutes
    return minutes + MINUTES_PER_DAY if minutes < wake_minutes else minutes


def _missing_last(value: Optional[Union[int, datetime]]):
    return (value is None, value if value is not None else 0)


def derive_day_timeline(
    day: date,
    activities: Iterable[LoggedActivity],
    anchor_category_id: Optional[int],
) -> DayTimeline:
    """
    Builds the ordered, duration-annotated timeline of one day.

    Args:
        day: The calendar day the activities belong to.
        activities: The day's activities in storage (id) order.
        anchor_category_id: Id of the wake category, or None if unknown.

    Returns:
        A DayTimeline whose last non-anchor entry has duration None.
    """
    ordered = sorted(activities, key=lambda a: _missing_last(a.instant))
    if not ordered:
        return DayTimeline(day=day)

    anchor = next((a for a in ordered if a.category_id == anchor_category_id), None)
    wake_minutes = minutes_since_midnight(anchor.instant) if anchor is not None else None

    positioned: List[TimelineEntry] = []
    for activity in ordered:
        is_anchor = activity is anchor
        minutes = minutes_since_midnight(activity.instant)
        positioned.append(TimelineEntry(
            activity=activity,
            minutes=minutes,
            absolute_minutes=absolute_minutes(minutes, wake_minutes, is_anchor),
            duration_minutes=None,
            is_anchor=is_anchor,
        ))
    positioned.sort(key=lambda e: _missing_last(e.absolute_minutes))

    day_start = wake_minutes if wake_minutes is not None else 0
    day_end = MINUTES_PER_DAY
    if wake_minutes is not None:
        day_end = max(day_end, wake_minutes + 1)
    for entry in positioned:
        if entry.is_anchor or entry.absolute_minutes is None:
            continue
        if entry.absolute_minutes >= MINUTES_PER_DAY:
            day_end = max(day_end, entry.absolute_minutes + PAST_MIDNIGHT_MARGIN_MINUTES)
        else:
            day_end = max(day_end, entry.absolute_minutes + 1)
    day_end = max(day_end, day_start + 1)

    # Single backward pass: next_start is the start of the nearest following activity
    entries: List[TimelineEntry] = []
    next_start: Optional[int] = None
    for entry in reversed(positioned):
        if entry.is_anchor:
            duration = 0
        elif entry.absolute_minutes is None:
            duration = None
        else:
            duration = None if next_start is None else max(next_start - entry.absolute_minutes, 1)
            next_start = entry.absolute_minutes
        entries.append(entry.with_duration(duration))
    entries.reverse()

    return DayTimeline(
        day=day,
        entries=entries,
        day_start_minutes=day_start,
        day_end_minutes=day_end,
    )


def derive_timelines(
    activities: Iterable[LoggedActivity],
    anchor_category_id: Optional[int],
) -> Dict[date, DayTimeline]:
    """Derives the timeline of every day present in a snapshot of activities."""
    by_day: Dict[date, List[LoggedActivity]] = defaultdict(list)
    for activity in activities:
        by_day[activity.day].append(activity)
    return {
        day: derive_day_timeline(day, by_day[day], anchor_category_id)
        for day in sorted(by_day)
    }


def now_absolute_minutes(timeline: DayTimeline, now: datetime) -> int:
    """Where 'now' falls on the timeline's axis, clamped into its window."""
    minutes = minutes_since_midnight(now)
    if minutes < timeline.day_start_minutes:
        minutes += MINUTES_PER_DAY
    return max(timeline.day_start_minutes, min(minutes, timeline.day_end_minutes))


def close_open_entry(
    timeline: DayTimeline,
    now: Optional[datetime] = None,
    fallback_minutes: Optional[int] = None,
) -> DayTimeline:
    """
    Gives the last activity of a day a concrete duration.

    For the current day (now falls on timeline.day) the activity runs until
    now. Otherwise it lasts fallback_minutes when given, or until the end of
    the day window.
    """
    open_index = next(
        (
            i for i in range(len(timeline.entries) - 1, -1, -1)
            if not timeline.entries[i].is_anchor
            and timeline.entries[i].absolute_minutes is not None
            and timeline.entries[i].duration_minutes is None
        ),
        None,
    )
    if open_index is None:
        return timeline

    entry = timeline.entries[open_index]
    start = entry.absolute_minutes
    if now is not None and now.date() == timeline.day:
        duration = max(now_absolute_minutes(timeline, now) - start, 0)
    elif fallback_minutes is not None:
        duration = fallback_minutes
    else:
        duration = max(timeline.day_end_minutes - start, 1)

    entries = list(timeline.entries)
    entries[open_index] = entry.with_duration(duration)
    log.debug(f"Closed open entry on {timeline.day} at {entry.time} with {duration} minutes")
    return replace(timeline, entries=entries)
