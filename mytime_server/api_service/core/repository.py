"""
Storage operations for activity types and time logs.

Activity types are looked up and created by name regardless of case; the
uniqueness itself is enforced by the name_key column, so a concurrent
creator shows up as an IntegrityError that is resolved by re-reading.
Time logs are only ever written a whole day at a time.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mytime_server.api_service.core.errors import (
    CategoryConflictError,
    CategoryNotFoundError,
    EntryValidationError,
    StorageError,
)
from mytime_server.api_service.core.models import ActivityType, TimeLog, normalize_name_key
from mytime_server.api_service.core.utils import with_db_write_retry
from mytime_server.processing.models import LoggedActivity
from mytime_server.processing.palette import palette_color

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    ("Praca", "#3b82f6", "Time spent working"),
    ("Sport", "#10b981", "Physical activity"),
    ("Nauka", "#8b5cf6", "Learning and self-development"),
    ("Odpoczynek", "#f59e0b", "Rest and recovery"),
)
WAKE_COLOR = "#ef4444"
WAKE_DESCRIPTION = "Start of the day"


# ── Activity types ──────────────────────────────────────────────────────────

async def list_categories(db: AsyncSession) -> List[ActivityType]:
    result = await db.execute(select(ActivityType).order_by(ActivityType.name))
    return list(result.scalars().all())


async def count_categories(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(ActivityType))
    return int(result.scalar_one())


async def get_category(db: AsyncSession, category_id: int) -> ActivityType:
    category = await db.get(ActivityType, category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


async def get_category_by_name(db: AsyncSession, name: str) -> Optional[ActivityType]:
    result = await db.execute(
        select(ActivityType).where(ActivityType.name_key == normalize_name_key(name))
    )
    return result.scalar_one_or_none()


async def upsert_category_by_name(
    db: AsyncSession,
    name: str,
    color: Optional[str] = None,
    description: Optional[str] = None,
) -> ActivityType:
    """
    Returns the activity type with this name, creating it if needed.

    A new type without an explicit color gets the palette color for the
    current number of types. Existing types are returned unchanged.
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise EntryValidationError("Activity type name is required.")

    existing = await get_category_by_name(db, clean_name)
    if existing is not None:
        return existing

    if not color:
        color = palette_color(await count_categories(db))
    category = ActivityType(
        name=clean_name,
        name_key=normalize_name_key(clean_name),
        color=color,
        description=description or "",
    )
    db.add(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info(f"Activity type '{clean_name}' was created concurrently, re-reading it")
        winner = await get_category_by_name(db, clean_name)
        if winner is None:
            raise CategoryConflictError(f"Activity type '{clean_name}' conflicted but could not be re-read")
        return winner
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to create activity type '{clean_name}': {e}", exc_info=True)
        raise StorageError(f"Failed to create activity type '{clean_name}'") from e

    logger.info(f"Created activity type '{clean_name}' (id={category.id}, color={color})")
    return category


async def seed_default_categories(
    db: AsyncSession,
    wake_category_name: str,
    seed_defaults: bool = True,
) -> ActivityType:
    """
    Fills an empty activity_types table with the default types and makes
    sure the wake category exists.

    Returns:
        The wake category.
    """
    if seed_defaults and await count_categories(db) == 0:
        wake_key = normalize_name_key(wake_category_name)
        db.add_all([
            ActivityType(name=name, name_key=normalize_name_key(name), color=color, description=description)
            for name, color, description in DEFAULT_CATEGORIES
            if normalize_name_key(name) != wake_key
        ])
        try:
            await db.commit()
            logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default activity types")
        except IntegrityError:
            await db.rollback()
            logger.info("Default activity types were seeded concurrently")

    return await upsert_category_by_name(
        db, wake_category_name, color=WAKE_COLOR, description=WAKE_DESCRIPTION
    )


async def get_wake_category(db: AsyncSession, wake_category_name: str) -> Optional[ActivityType]:
    return await get_category_by_name(db, wake_category_name)


# ── Time logs ───────────────────────────────────────────────────────────────

def to_logged_activity(time_log: TimeLog) -> LoggedActivity:
    return LoggedActivity(
        id=time_log.id,
        category_id=time_log.activity_type_id,
        category_name=time_log.activity_type.name,
        color=time_log.activity_type.color,
        description=time_log.activity_type.description or "",
        day=time_log.day,
        instant=time_log.start_time,
    )


async def list_events_for_day(db: AsyncSession, day: date) -> List[LoggedActivity]:
    result = await db.execute(
        select(TimeLog)
        .options(selectinload(TimeLog.activity_type))
        .where(TimeLog.day == day)
        .order_by(TimeLog.start_time, TimeLog.id)
    )
    return [to_logged_activity(time_log) for time_log in result.scalars().all()]


async def list_all_events(db: AsyncSession) -> List[LoggedActivity]:
    result = await db.execute(
        select(TimeLog)
        .options(selectinload(TimeLog.activity_type))
        .order_by(TimeLog.day, TimeLog.start_time, TimeLog.id)
    )
    return [to_logged_activity(time_log) for time_log in result.scalars().all()]


async def list_days_with_events(db: AsyncSession, anchor_category_id: Optional[int]) -> List[date]:
    """Days that have at least one activity other than the wake event."""
    query = select(TimeLog.day).distinct().order_by(TimeLog.day)
    if anchor_category_id is not None:
        query = query.where(TimeLog.activity_type_id != anchor_category_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _replace_day_events_once(
    db: AsyncSession,
    day: date,
    records: Sequence[Tuple[int, datetime]],
) -> None:
    try:
        await db.execute(delete(TimeLog).where(TimeLog.day == day))
        db.add_all([
            TimeLog(activity_type_id=category_id, start_time=start_time, day=day)
            for category_id, start_time in records
        ])
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise


async def replace_day_events(
    db: AsyncSession,
    day: date,
    records: Sequence[Tuple[int, datetime]],
    max_retries: int = 5,
) -> None:
    """
    Atomically replaces all time logs of a day.

    The delete and the inserts run in one transaction, so readers see either
    the old set or the new one. An empty records list clears the day.

    Raises:
        CategoryNotFoundError: if a record references an unknown activity type.
        StorageError: if the transaction could not be committed.
    """
    category_ids = {category_id for category_id, _ in records}
    if category_ids:
        result = await db.execute(select(ActivityType.id).where(ActivityType.id.in_(category_ids)))
        missing = category_ids - set(result.scalars().all())
        if missing:
            missing_id = min(missing)
            logger.error(f"Refusing to store {day.isoformat()}: activity type {missing_id} does not exist")
            raise CategoryNotFoundError(missing_id)

    replace_once = with_db_write_retry(max_retries=max_retries)(_replace_day_events_once)
    try:
        await replace_once(db, day, records)
    except SQLAlchemyError as e:
        logger.error(f"Failed to replace time logs for {day.isoformat()}: {e}", exc_info=True)
        raise StorageError(f"Failed to save activities for {day.isoformat()}") from e
