"""Rolling averages over a window.

Days where the metric is missing *or exactly zero* are left out of both the
sum and the count.  A genuinely zero day (no workout, nothing logged) and a
day with no data therefore look the same, which is how the dashboard has
always reported its averages.
"""

from __future__ import annotations

from typing import Callable, Iterable

import numpy as np

from healthagg.engine.scoring import round_half_up
from healthagg.models import DailyHealthRecord

MetricSelector = Callable[[DailyHealthRecord], "float | None"]


def _selector(metric: str | MetricSelector) -> MetricSelector:
    if callable(metric):
        return metric
    if metric not in DailyHealthRecord.__dataclass_fields__:
        raise ValueError(f"Unknown record metric {metric!r}")
    return lambda record: getattr(record, metric)


def average(records: Iterable[DailyHealthRecord], metric: str | MetricSelector) -> float:
    """Mean of ``metric`` over the days where it is present and non-zero.

    Args:
        records: A window (or any iterable of daily records).
        metric: A record field name, or a function picking a value.

    Returns:
        The mean, or 0.0 when no day qualifies.
    """
    select = _selector(metric)
    values = [select(r) for r in records]
    kept = np.asarray([v for v in values if v is not None and v != 0], dtype=np.float64)
    if len(kept) == 0:
        return 0.0
    return float(np.mean(kept))


def nutrition_summary(records: Iterable[DailyHealthRecord]) -> dict[str, int]:
    """Rounded average daily intake over logged days."""
    records = list(records)
    return {
        "avg_calories": round_half_up(average(records, "calories_consumed")),
        "avg_protein": round_half_up(average(records, "protein")),
        "avg_carbs": round_half_up(average(records, "carbs")),
        "avg_fat": round_half_up(average(records, "fat")),
        "avg_fiber": round_half_up(average(records, "fiber")),
    }


def activity_summary(records: Iterable[DailyHealthRecord]) -> dict[str, int]:
    """Rounded activity averages over active days."""
    records = list(records)
    return {
        "active_days": sum(1 for r in records if r.activity_types),
        "avg_heart_rate": round_half_up(average(records, "heart_rate_avg")),
        "avg_calories_burned": round_half_up(average(records, "calories_burned")),
        "avg_workout_minutes": round_half_up(average(records, "workout_duration_seconds") / 60.0),
    }
