"""Window manager: rebuild the last N days from the three stores.

The three store fetches run concurrently and are awaited together, so a
refresh takes as long as the slowest store.  A store that fails only costs
its own fields: they are zero-filled and a SourceWarning is attached to the
result.  Every refresh starts from scratch; nothing is kept between calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Awaitable, Callable

from healthagg.config import EngineSettings
from healthagg.engine.aggregator import HeartRateFilter, aggregate, heart_rate_filter
from healthagg.errors import SourceUnavailable
from healthagg.models import ActivityContribution, SourceWarning, Window
from healthagg.sources.activity import normalize_activity
from healthagg.sources.base import RawDocument, fetch_with_fallback
from healthagg.sources.labs import normalize_lab_panel
from healthagg.sources.nutrition import normalize_nutrition

logger = logging.getLogger(__name__)

NUTRITION = "nutrition"
ACTIVITY = "activity"
LABS = "labs"


@dataclass
class Stores:
    """The stores a refresh reads from.  A store left as None has no data."""

    nutrition: Any = None
    activity: Any = None
    labs: Any = None


def window_dates(end_date: date, length: int) -> list[date]:
    """The ``length`` days ending on ``end_date``, ascending."""
    if length < 1:
        raise ValueError(f"window length must be >= 1, got {length}")
    start = end_date - timedelta(days=length - 1)
    return [start + timedelta(days=i) for i in range(length)]


def cap_warnings(warnings: list[SourceWarning], limit: int) -> tuple[SourceWarning, ...]:
    """Keep at most ``limit`` warnings, folding the overflow into the last one."""
    if len(warnings) <= limit:
        return tuple(warnings)
    kept, overflow = warnings[:limit - 1], warnings[limit - 1:]
    merged = SourceWarning(
        source="+".join(w.source for w in overflow),
        message="; ".join(f"{w.source}: {w.message}" for w in overflow),
    )
    return tuple(kept) + (merged,)


async def _guarded(
    source: str,
    fetch: Callable[[], Awaitable[list[RawDocument]]] | None,
) -> tuple[list[RawDocument] | None, SourceWarning | None]:
    """Run one store fetch; failures become a warning instead of an exception."""
    if fetch is None:
        logger.debug("%s: no store configured", source)
        return [], None
    try:
        return await fetch(), None
    except SourceUnavailable as e:
        logger.warning("%s unavailable, zero-filling its fields: %s", source, e.reason)
        return None, SourceWarning(source=source, message=e.reason)
    except Exception as e:
        logger.warning("%s fetch failed, zero-filling its fields: %s", source, e)
        return None, SourceWarning(source=source, message=f"{type(e).__name__}: {e}")


async def build_window(
    end_date: date,
    length: int | None = None,
    stores: Stores | None = None,
    settings: EngineSettings | None = None,
    hr_filter: HeartRateFilter | None = None,
) -> Window:
    """Build a fresh window of daily records ending on ``end_date``.

    Args:
        end_date: Last day of the window (inclusive).  The caller decides
            what "today" is; the engine never reads the clock.
        length: Number of days (defaults to ``settings.window_length``).
        stores: Where to read nutrition, activity and lab data from.
        settings: Engine settings (calorie fields, user, limits).
        hr_filter: Heart-rate filter; defaults to the one named in settings.

    Returns:
        A Window with exactly ``length`` records plus one warning per store
        that could not be read (never more than ``length``).  Never raises
        for store failures.
    """
    settings = settings or EngineSettings()
    stores = stores or Stores()
    length = settings.window_length if length is None else length
    if hr_filter is None:
        hr_filter = heart_rate_filter(settings.heart_rate_filter)

    days = window_dates(end_date, length)
    start_date = days[0]

    def fetcher(source: str, store: Any, *args: Any) -> Callable[[], Awaitable[list[RawDocument]]] | None:
        if store is None:
            return None
        return lambda: fetch_with_fallback(source, store, *args)

    (nutrition_docs, nutrition_warn), (activity_docs, activity_warn), (lab_docs, lab_warn) = (
        await asyncio.gather(
            _guarded(NUTRITION, fetcher(NUTRITION, stores.nutrition, start_date)),
            _guarded(
                ACTIVITY,
                fetcher(ACTIVITY, stores.activity, settings.user_id, start_date, settings.activity_limit),
            ),
            _guarded(LABS, fetcher(LABS, stores.labs, settings.user_id, 1)),
        )
    )

    nutrition_by_day = normalize_nutrition(nutrition_docs)
    contributions = normalize_activity(activity_docs, settings.calorie_fields)
    lab_panel = normalize_lab_panel(lab_docs)

    in_window = set(days)
    by_day: dict[date, list[ActivityContribution]] = defaultdict(list)
    outside = 0
    for c in contributions:
        if c.date in in_window:
            by_day[c.date].append(c)
        else:
            outside += 1
    if outside:
        logger.debug("Ignored %d activity event(s) outside %s..%s", outside, days[0], days[-1])

    records = tuple(
        aggregate(day, by_day.get(day, []), nutrition_by_day.get(day), hr_filter)
        for day in days
    )
    warnings = cap_warnings(
        [w for w in (nutrition_warn, activity_warn, lab_warn) if w is not None],
        length,
    )

    return Window(records=records, warnings=warnings, lab_panel=lab_panel)
