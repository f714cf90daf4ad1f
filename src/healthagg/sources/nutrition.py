"""Nutrition store adapter.

A nutrition log document looks like::

    {"date": "2026-02-13",
     "totals": {"calories": 1900, "protein": 140, "carbs": 180, "fat": 60, "fiber": 30},
     "entries": [{"calories": 500, "protein": 40, ...}, ...]}

``totals`` wins when present; older logs only carry ``entries``, whose
fields are summed.  Missing or non-numeric values count as zero.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable

from healthagg.errors import MalformedRecord
from healthagg.models import NUTRITION_FIELDS, NutritionTotals, RawNutritionEntry
from healthagg.sources.base import RawDocument, coerce_number, parse_day

logger = logging.getLogger(__name__)


def _amount(data: Any, key: str) -> float:
    if not isinstance(data, dict):
        return 0.0
    value = coerce_number(data.get(key))
    if value is None or value < 0:
        return 0.0
    return value


def _totals_from_entries(entries: list[Any]) -> NutritionTotals:
    sums = {name: 0.0 for name in NUTRITION_FIELDS}
    for entry in entries:
        for name in NUTRITION_FIELDS:
            sums[name] += _amount(entry, name)
    return NutritionTotals(**sums)


def parse_nutrition_entry(raw: RawDocument) -> RawNutritionEntry:
    """Parse one nutrition log.  Raises MalformedRecord on a bad date."""
    if not isinstance(raw, dict):
        raise MalformedRecord(f"expected an object, got {type(raw).__name__}")
    try:
        day = parse_day(raw.get("date"))
    except ValueError as e:
        raise MalformedRecord(f"bad nutrition date: {e}")

    totals = raw.get("totals")
    entries = raw.get("entries")
    if isinstance(totals, dict):
        parsed = NutritionTotals(**{name: _amount(totals, name) for name in NUTRITION_FIELDS})
    elif isinstance(entries, list) and entries:
        parsed = _totals_from_entries(entries)
    else:
        parsed = NutritionTotals()

    return RawNutritionEntry(date=day, totals=parsed)


def normalize_nutrition(raw_entries: Iterable[RawDocument] | None) -> dict[date, NutritionTotals]:
    """Map each logged date to its nutrition totals.

    ``None`` (the store could not be read) yields an empty mapping, so every
    day's nutrition fields fall back to zero.  Malformed logs are dropped
    individually; a second log for a date already seen is ignored.
    """
    by_date: dict[date, NutritionTotals] = {}
    if raw_entries is None:
        return by_date

    skipped = 0
    for idx, raw in enumerate(raw_entries):
        try:
            entry = parse_nutrition_entry(raw)
        except MalformedRecord as e:
            skipped += 1
            logger.warning("Skipping nutrition log %d: %s", idx, e)
            continue

        if entry.date in by_date:
            logger.warning("Duplicate nutrition log for %s ignored", entry.date.isoformat())
            continue
        by_date[entry.date] = entry.totals

    logger.info("Normalized %d nutrition log(s), skipped %d", len(by_date), skipped)
    return by_date
