from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column
from datetime import datetime, date
from typing import List

from .database import Base


def normalize_name_key(name: str) -> str:
    """Case-insensitive identity of an activity type name."""
    return name.strip().casefold()


class ActivityType(Base):
    """An activity category such as 'Praca' or 'Sport'. Names are unique regardless of case."""
    __tablename__ = "activity_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Relationships
    time_logs: Mapped[List["TimeLog"]] = relationship(back_populates="activity_type")

    def __repr__(self) -> str:
        return f"<ActivityType(id={self.id}, name='{self.name}')>"


class TimeLog(Base):
    """The start of one activity on a given day. A day's logs are always replaced as a set."""
    __tablename__ = "time_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    activity_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("activity_types.id"),
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)

    # Relationships
    activity_type: Mapped[ActivityType] = relationship(back_populates="time_logs")

    __table_args__ = (
        Index("idx_time_logs_day", "day"),
    )
