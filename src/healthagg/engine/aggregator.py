"""Daily aggregator: merge one day's contributions into a DailyHealthRecord.

Nutrition fields are copied from the day's log; activity fields are summed
over the day's contributions.  Heart rate is a running mean over only the
contributions the heart-rate filter accepts *and* that carry a reading.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable

from healthagg.models import ActivityContribution, DailyHealthRecord, NutritionTotals

logger = logging.getLogger(__name__)

HeartRateFilter = Callable[[ActivityContribution], bool]


def any_activity(contribution: ActivityContribution) -> bool:
    """Every activity's heart rate counts toward the daily mean."""
    return True


def runs_only(contribution: ActivityContribution) -> bool:
    """Only runs count toward the daily mean."""
    return contribution.is_run


HEART_RATE_FILTERS: dict[str, HeartRateFilter] = {
    "any": any_activity,
    "runs": runs_only,
}


def heart_rate_filter(name: str) -> HeartRateFilter:
    """Look up a named heart-rate filter ("any" or "runs")."""
    try:
        return HEART_RATE_FILTERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown heart rate filter {name!r}; "
            f"choose from {', '.join(sorted(HEART_RATE_FILTERS))}"
        )


def incremental_mean(samples: Iterable[float]) -> tuple[float | None, int]:
    """Running mean: avg = (avg * n + r) / (n + 1).

    Samples are folded in ascending order so the result does not depend on
    the order they arrived in.

    Returns:
        (mean, count); mean is None when there are no samples.
    """
    avg = 0.0
    count = 0
    for r in sorted(samples):
        avg = (avg * count + r) / (count + 1)
        count += 1
    return (avg if count else None), count


def _is_usable(contribution: object, day: date) -> bool:
    if not isinstance(contribution, ActivityContribution):
        logger.warning("Dropping non-contribution %r for %s", contribution, day.isoformat())
        return False
    if not isinstance(contribution.type, str) or not contribution.type:
        logger.warning("Dropping contribution with no type for %s", day.isoformat())
        return False
    if contribution.date != day:
        logger.warning(
            "Dropping contribution dated %s from %s aggregate",
            contribution.date, day.isoformat(),
        )
        return False
    return True


def aggregate(
    day: date,
    contributions: Iterable[ActivityContribution],
    nutrition: NutritionTotals | None = None,
    hr_filter: HeartRateFilter = any_activity,
) -> DailyHealthRecord:
    """Build the record for ``day``.

    Args:
        day: The calendar day being built.
        contributions: Activity contributions for that day.  Unusable ones
            (wrong type, missing type, another date) are dropped one by one;
            negative calories or durations count as 0.
        nutrition: The day's nutrition totals; None means no log (zeros).
            Negative totals count as 0.
        hr_filter: Decides which contributions feed the heart-rate mean.

    Returns:
        A new, immutable DailyHealthRecord.
    """
    totals = nutrition or NutritionTotals()

    burned = 0.0
    duration = 0.0
    heart_rates: list[float] = []
    types: dict[str, None] = {}

    for c in contributions:
        if not _is_usable(c, day):
            continue
        burned += max(0.0, c.calories_burned)
        duration += max(0.0, c.duration_seconds)
        if c.heart_rate is not None and hr_filter(c):
            heart_rates.append(c.heart_rate)
        types.setdefault(c.type, None)

    hr_avg, hr_count = incremental_mean(heart_rates)

    return DailyHealthRecord(
        date=day,
        calories_consumed=max(0.0, totals.calories),
        calories_burned=burned,
        protein=max(0.0, totals.protein),
        carbs=max(0.0, totals.carbs),
        fat=max(0.0, totals.fat),
        fiber=max(0.0, totals.fiber),
        heart_rate_avg=hr_avg,
        heart_rate_sample_count=hr_count,
        workout_duration_seconds=duration,
        activity_types=tuple(types),
    )
