import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service import schemas
from mytime_server.api_service.api_v1.deps import get_wake_category_id, parse_date_string
from mytime_server.api_service.core import repository
from mytime_server.api_service.core.database import get_db
from mytime_server.api_service.core.errors import EntryValidationError
from mytime_server.api_service.core.settings import settings
from mytime_server.processing import day_editor
from mytime_server.processing.models import LoggedActivity
from mytime_server.processing.timeline import derive_day_timeline

logger = logging.getLogger(__name__)

router = APIRouter()


def to_time_log(
    activity: LoggedActivity,
    wake_category_id: Optional[int],
    duration_minutes: Optional[int] = None,
) -> schemas.TimeLog:
    return schemas.TimeLog(
        id=activity.id,
        activity_type_id=activity.category_id,
        name=activity.category_name,
        color=activity.color,
        description=activity.description,
        day=activity.day,
        start_time=activity.instant,
        is_wakeup=activity.category_id == wake_category_id,
        duration_minutes=duration_minutes,
    )


@router.get("", response_model=List[schemas.TimeLog])
async def read_time_logs(db: AsyncSession = Depends(get_db)):
    wake_id = await get_wake_category_id(db)
    activities = await repository.list_all_events(db)
    return [to_time_log(activity, wake_id) for activity in activities]


@router.get("/{date_string}", response_model=List[schemas.TimeLog])
async def read_time_logs_for_day(date_string: str, db: AsyncSession = Depends(get_db)):
    """The day's time logs in start order, each with its derived duration (None for the last activity)."""
    target_date = parse_date_string(date_string)
    wake_id = await get_wake_category_id(db)
    activities = await repository.list_events_for_day(db, target_date)
    timeline = derive_day_timeline(target_date, activities, wake_id)
    durations = {entry.activity.id: entry.duration_minutes for entry in timeline.entries}
    return [to_time_log(activity, wake_id, durations.get(activity.id)) for activity in activities]


@router.put("/{date_string}", response_model=schemas.ReplaceDayResult, status_code=status.HTTP_201_CREATED)
async def replace_time_logs_for_day(
    date_string: str,
    payload: schemas.DayEntriesUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Replaces every time log of the day with the submitted entries. An empty list clears the day."""
    target_date = parse_date_string(date_string)
    entries = [
        day_editor.ProposedEntry(
            time=entry.time,
            category_name=entry.activity_type,
            is_wakeup=entry.is_wakeup,
            color=entry.color,
            description=entry.description,
        )
        for entry in payload.entries
    ]
    try:
        saved = await day_editor.replace_day(db, target_date, entries, settings)
    except EntryValidationError as e:
        logger.info(f"Rejected edit for {target_date.isoformat()}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return schemas.ReplaceDayResult(day=target_date, saved_entries=len(saved))
