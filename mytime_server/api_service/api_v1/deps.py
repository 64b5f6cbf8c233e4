from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service.core import repository
from mytime_server.api_service.core.settings import settings


def parse_date_string(date_string: str) -> date:
    try:
        return date.fromisoformat(date_string)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date format. Please use YYYY-MM-DD."
        )


def get_now() -> datetime:
    """Dependency returning the local wall-clock time; overridden in tests."""
    return datetime.now()


async def get_wake_category_id(db: AsyncSession) -> Optional[int]:
    wake = await repository.get_wake_category(db, settings.WAKE_CATEGORY_NAME)
    return wake.id if wake is not None else None
