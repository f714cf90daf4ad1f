"""Store interfaces and the shared fetch helpers.

Stores are async and return raw documents (plain dicts).  The engine never
looks at a store's internals: it calls ``query`` (or, for stores that keep a
cached snapshot, ``query_cached`` first) and hands the documents to the
matching adapter.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, Protocol, runtime_checkable

from healthagg.errors import SourceUnavailable

logger = logging.getLogger(__name__)

RawDocument = dict[str, Any]


@runtime_checkable
class NutritionStore(Protocol):
    """Daily nutrition logs, one document per date."""

    async def query(self, start_date: date) -> list[RawDocument]:
        ...


@runtime_checkable
class ActivityStore(Protocol):
    """Workout events, most recent first.  Not guaranteed complete."""

    async def query(self, user_id: str, start_date: date, limit: int) -> list[RawDocument]:
        ...


@runtime_checkable
class LabPanelStore(Protocol):
    """Lab panels, newest first."""

    async def query(self, user_id: str, limit: int = 1) -> list[RawDocument]:
        ...


@runtime_checkable
class SupportsCachedQuery(Protocol):
    """Optional capability: a cheap cached snapshot in front of the live query.

    ``query_cached`` takes the same arguments as ``query`` and returns None
    on a cache miss.
    """

    async def query_cached(self, *args: Any, **kwargs: Any) -> list[RawDocument] | None:
        ...


class TwoTierStore:
    """Pair a cache store with a live store behind one store interface."""

    def __init__(self, cache: Any, live: Any) -> None:
        self.cache = cache
        self.live = live

    async def query_cached(self, *args: Any, **kwargs: Any) -> list[RawDocument] | None:
        return await self.cache.query(*args, **kwargs)

    async def query(self, *args: Any, **kwargs: Any) -> list[RawDocument]:
        return await self.live.query(*args, **kwargs)


async def fetch_with_fallback(
    source: str,
    store: Any,
    *args: Any,
    **kwargs: Any,
) -> list[RawDocument]:
    """Query a store, trying its cached snapshot first when it has one.

    A cache miss (None) or an empty snapshot falls through to the live
    query.  Any failure is re-raised as :class:`SourceUnavailable`.
    """
    try:
        if isinstance(store, SupportsCachedQuery):
            cached = await store.query_cached(*args, **kwargs)
            if cached:
                logger.debug("%s: served %d document(s) from cache", source, len(cached))
                return list(cached)
            logger.debug("%s: cache miss, querying live store", source)

        result = await store.query(*args, **kwargs)
    except SourceUnavailable:
        raise
    except Exception as e:
        raise SourceUnavailable(source, f"{type(e).__name__}: {e}") from e

    if result is None:
        return []
    if not isinstance(result, list):
        raise SourceUnavailable(source, f"expected a list of documents, got {type(result).__name__}")
    return result


def coerce_number(value: Any) -> float | None:
    """Turn a stored value into a float, or None if it isn't a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def parse_day(value: Any) -> date:
    """Parse the ``YYYY-MM-DD`` prefix of a date or timestamp string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        raise ValueError(f"not a date: {value!r}")
    return date.fromisoformat(value[:10])
