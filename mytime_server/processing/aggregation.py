# mytime_server/processing/aggregation.py
"""
Long-run time totals per activity type.

Unlike the per-day timeline, totals use a simpler model: each
activity lasts until the next activity logged on the same day (plain
wall-clock delta, no shift past midnight), and the last activity of a day
counts as a fixed fallback duration. Wake events are dropped before any of
this, so they neither count nor end other activities.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

import polars as pl

from mytime_server.processing.models import CategoryTotal, LoggedActivity

log = logging.getLogger(__name__)

DEFAULT_FALLBACK_MINUTES = 60
MS_PER_HOUR = 60 * 60 * 1000

_SCHEMA = {
    "category_id": pl.Int64,
    "name": pl.Utf8,
    "color": pl.Utf8,
    "day": pl.Date,
    "instant": pl.Datetime("us"),
}


def round_hours(value) -> float:
    """Rounds to one decimal place, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _activities_frame(activities: Iterable[LoggedActivity], anchor_category_id: Optional[int]) -> pl.DataFrame:
    rows = {key: [] for key in _SCHEMA}
    for activity in activities:
        if activity.category_id == anchor_category_id:
            continue
        if activity.instant is None:
            log.warning(f"Skipping activity {activity.id} on {activity.day} without a start time")
            continue
        rows["category_id"].append(activity.category_id)
        rows["name"].append(activity.category_name)
        rows["color"].append(activity.color)
        rows["day"].append(activity.day)
        rows["instant"].append(activity.instant)
    return pl.DataFrame(rows, schema=_SCHEMA)


def aggregate_category_totals(
    activities: Iterable[LoggedActivity],
    anchor_category_id: Optional[int],
    fallback_minutes: int = DEFAULT_FALLBACK_MINUTES,
) -> List[CategoryTotal]:
    """
    Sums the time spent per activity type across all days.

    Args:
        activities: Every stored activity, in any order.
        anchor_category_id: Id of the wake category; its activities are ignored.
        fallback_minutes: Duration credited to the last activity of each day.

    Returns:
        One CategoryTotal per activity type, in order of first appearance,
        with the value in hours rounded to one decimal place.
    """
    df = _activities_frame(activities, anchor_category_id)
    if df.is_empty():
        return []

    fallback_ms = fallback_minutes * 60 * 1000
    df_durations = (
        df.sort(["day", "instant"], maintain_order=True)
        .with_columns(
            pl.col("instant").shift(-1).over("day").alias("next_instant"),
        )
        .with_columns(
            (pl.col("next_instant") - pl.col("instant")).dt.total_milliseconds().alias("delta_ms"),
        )
        .with_columns(
            pl.when(pl.col("delta_ms").is_null())
            .then(pl.lit(fallback_ms))
            .when(pl.col("delta_ms") < 0)
            .then(pl.lit(0))
            .otherwise(pl.col("delta_ms"))
            .cast(pl.Int64)
            .alias("duration_ms"),
        )
    )

    df_totals = df_durations.group_by("category_id", maintain_order=True).agg(
        pl.col("name").first(),
        pl.col("color").first(),
        pl.col("duration_ms").sum(),
    )
    log.info(f"Aggregated {df_durations.height} activities into {df_totals.height} activity type totals")

    return [
        CategoryTotal(
            name=row["name"],
            color=row["color"],
            value=round_hours(Decimal(row["duration_ms"]) / MS_PER_HOUR),
        )
        for row in df_totals.iter_rows(named=True)
    ]


def summarize_totals(totals: List[CategoryTotal], days_with_data: int) -> dict:
    """
    Ranking and headline numbers for the analysis view.

    Returns:
        A dict with 'ranking' (totals sorted by value, largest first),
        'total_hours' and 'average_per_day', both rounded to one decimal.
    """
    ranking = sorted(totals, key=lambda t: t.value, reverse=True)
    total_hours = round_hours(sum(Decimal(str(t.value)) for t in ranking)) if ranking else 0.0
    average_per_day = round_hours(Decimal(str(total_hours)) / days_with_data) if ranking and days_with_data > 0 else 0.0
    return {
        "ranking": ranking,
        "total_hours": total_hours,
        "average_per_day": average_per_day,
    }
