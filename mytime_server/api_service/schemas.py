from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime, date


# Base schemas
class BaseSchema(BaseModel):
    """Base schema for all Pydantic models to inherit from."""
    model_config = ConfigDict(from_attributes=True)


# Activity type schemas
class ActivityTypeBase(BaseSchema):
    """Base schema for activity type properties."""
    name: str
    color: Optional[str] = None
    description: Optional[str] = ""


class ActivityTypeCreate(ActivityTypeBase):
    """Schema for getting or creating an activity type by name."""

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class ActivityType(ActivityTypeBase):
    """Schema for an activity type as returned by the API."""
    id: int
    color: str
    description: str = ""


# Time log schemas
class TimeLog(BaseSchema):
    """Schema for a stored time log joined with its activity type."""
    id: int
    activity_type_id: int
    name: str
    color: str
    description: str = ""
    day: date
    start_time: Optional[datetime] = None
    is_wakeup: bool = False
    duration_minutes: Optional[int] = None


class DayEntryIn(BaseSchema):
    """One row of a whole-day edit."""
    time: Optional[str] = ""
    activity_type: Optional[str] = ""
    is_wakeup: bool = False
    color: Optional[str] = None
    description: Optional[str] = None


class DayEntriesUpdate(BaseSchema):
    """Schema for replacing all time logs of a day."""
    entries: List[DayEntryIn]


class ReplaceDayResult(BaseSchema):
    success: bool = True
    day: date
    saved_entries: int


# Timeline schemas
class TimelineEntry(BaseSchema):
    """A time log placed on the day's timeline."""
    id: int
    activity_type_id: int
    name: str
    color: str
    start_time: Optional[datetime] = None
    time: str
    is_wakeup: bool
    absolute_minutes: Optional[int] = None
    duration_minutes: Optional[int] = None


class DayTimeline(BaseSchema):
    """Schema for the derived timeline of a given day."""
    date: date
    entries: List[TimelineEntry]
    day_start_minutes: int
    day_end_minutes: int
    is_today: bool = False
    now_minutes: Optional[int] = None


# Analysis schemas
class CategoryTotal(BaseSchema):
    """Total hours spent on one activity type."""
    name: str
    color: str
    value: float


class AnalysisSummary(BaseSchema):
    """Schema for the ranked activity totals across all days."""
    ranking: List[CategoryTotal]
    total_hours: float
    average_per_day: float
    days_with_data: int


class InitialData(BaseSchema):
    """Everything a client needs on first load."""
    activity_types: List[ActivityType]
    time_logs: List[TimeLog]
    analysis: List[CategoryTotal]
    dates_with_data: List[date]


# System schemas
class HealthStatus(BaseSchema):
    status: str
    service: str
    version: str
    database_connected: bool = Field(default=True)
