from datetime import date
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mytime_server.api_service import schemas
from mytime_server.api_service.api_v1.deps import get_wake_category_id
from mytime_server.api_service.api_v1.endpoints.time_logs import to_time_log
from mytime_server.api_service.core import repository
from mytime_server.api_service.core.database import get_db
from mytime_server.api_service.core.settings import settings
from mytime_server.processing.aggregation import aggregate_category_totals, summarize_totals

router = APIRouter()


@router.get("/dates-with-data", response_model=List[date])
async def read_dates_with_data(db: AsyncSession = Depends(get_db)):
    wake_id = await get_wake_category_id(db)
    return await repository.list_days_with_events(db, wake_id)


@router.get("/analysis", response_model=schemas.AnalysisSummary)
async def read_analysis(db: AsyncSession = Depends(get_db)):
    wake_id = await get_wake_category_id(db)
    activities = await repository.list_all_events(db)
    days = await repository.list_days_with_events(db, wake_id)
    totals = aggregate_category_totals(activities, wake_id, settings.AGGREGATE_FALLBACK_MINUTES)
    summary = summarize_totals(totals, len(days))
    return schemas.AnalysisSummary(
        ranking=[schemas.CategoryTotal.model_validate(total) for total in summary["ranking"]],
        total_hours=summary["total_hours"],
        average_per_day=summary["average_per_day"],
        days_with_data=len(days),
    )


@router.get("/initial-data", response_model=schemas.InitialData)
async def read_initial_data(db: AsyncSession = Depends(get_db)):
    """Activity types, all time logs, category totals and days with data in one response."""
    wake_id = await get_wake_category_id(db)
    categories = await repository.list_categories(db)
    activities = await repository.list_all_events(db)
    totals = aggregate_category_totals(activities, wake_id, settings.AGGREGATE_FALLBACK_MINUTES)
    days = await repository.list_days_with_events(db, wake_id)
    return schemas.InitialData(
        activity_types=[schemas.ActivityType.model_validate(category) for category in categories],
        time_logs=[to_time_log(activity, wake_id) for activity in activities],
        analysis=[schemas.CategoryTotal.model_validate(total) for total in totals],
        dates_with_data=days,
    )
