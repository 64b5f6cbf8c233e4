from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service import schemas
from mytime_server.api_service.api_v1.deps import get_now, get_wake_category_id, parse_date_string
from mytime_server.api_service.core import repository
from mytime_server.api_service.core.database import get_db
from mytime_server.processing.models import DayTimeline
from mytime_server.processing.timeline import close_open_entry, derive_day_timeline, now_absolute_minutes

router = APIRouter()


def to_day_timeline_schema(timeline: DayTimeline, now: datetime) -> schemas.DayTimeline:
    is_today = now.date() == timeline.day
    return schemas.DayTimeline(
        date=timeline.day,
        entries=[
            schemas.TimelineEntry(
                id=entry.activity.id,
                activity_type_id=entry.activity.category_id,
                name=entry.activity.category_name,
                color=entry.activity.color,
                start_time=entry.activity.instant,
                time=entry.time,
                is_wakeup=entry.is_anchor,
                absolute_minutes=entry.absolute_minutes,
                duration_minutes=entry.duration_minutes,
            )
            for entry in timeline.entries
        ],
        day_start_minutes=timeline.day_start_minutes,
        day_end_minutes=timeline.day_end_minutes,
        is_today=is_today,
        now_minutes=now_absolute_minutes(timeline, now) if is_today else None,
    )


@router.get("/{date_string}", response_model=schemas.DayTimeline)
async def read_day_timeline(
    date_string: str,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Derived timeline of one day. The last activity of today runs until now;
    on other days it runs until the end of the day window.
    """
    target_date = parse_date_string(date_string)
    wake_id = await get_wake_category_id(db)
    activities = await repository.list_events_for_day(db, target_date)
    timeline = close_open_entry(derive_day_timeline(target_date, activities, wake_id), now=now)
    return to_day_timeline_schema(timeline, now)
