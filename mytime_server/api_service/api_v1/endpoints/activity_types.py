from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service import schemas
from mytime_server.api_service.core import repository
from mytime_server.api_service.core.database import get_db

router = APIRouter()


@router.get("", response_model=List[schemas.ActivityType])
async def read_activity_types(db: AsyncSession = Depends(get_db)):
    categories = await repository.list_categories(db)
    return [schemas.ActivityType.model_validate(category) for category in categories]


@router.post("", response_model=schemas.ActivityType, status_code=status.HTTP_201_CREATED)
async def create_activity_type(
    type_in: schemas.ActivityTypeCreate,
    db: AsyncSession = Depends(get_db),
):
    """Returns the activity type with this name (any case), creating it if it does not exist."""
    if not type_in.name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Activity type name is required"
        )
    category = await repository.upsert_category_by_name(
        db, type_in.name, color=type_in.color, description=type_in.description
    )
    return schemas.ActivityType.model_validate(category)
