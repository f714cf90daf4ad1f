"""Activity store adapter.

Activity documents come from more than one upstream (Strava syncs, manual
entries, older imports), so the same quantity lives under different keys:

  - date:      ``date``, else the date prefix of ``start_date`` / ``start_date_local``
  - duration:  ``duration_seconds`` / ``moving_time`` / ``elapsed_time`` (s),
               else ``duration`` (minutes)
  - calories:  the configured candidate fields, first non-zero wins
  - heart rate: ``heart_rate``, else ``average_heartrate``
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from healthagg.config import DEFAULT_CALORIE_FIELDS
from healthagg.errors import MalformedRecord
from healthagg.models import ActivityContribution
from healthagg.sources.base import RawDocument, coerce_number, parse_day

logger = logging.getLogger(__name__)

DATE_FIELDS = ("date", "start_date", "start_date_local")
SECONDS_FIELDS = ("duration_seconds", "moving_time", "elapsed_time")
MINUTES_FIELD = "duration"
HEART_RATE_FIELDS = ("heart_rate", "average_heartrate")


def resolve_field(raw: RawDocument, path: str) -> Any:
    """Look up a dotted path (``"activity.calories"``) in nested dicts."""
    value: Any = raw
    for key in path.split("."):
        if not isinstance(value, dict) or key not in value:
            return None
        value = value[key]
    return value


def _first_number(raw: RawDocument, fields: Sequence[str]) -> float | None:
    for name in fields:
        value = coerce_number(resolve_field(raw, name))
        if value is not None:
            return value
    return None


def _activity_date(raw: RawDocument):
    for name in DATE_FIELDS:
        value = raw.get(name)
        if value in (None, ""):
            continue
        try:
            return parse_day(value)
        except ValueError as e:
            raise MalformedRecord(f"unparseable {name}: {e}")
    raise MalformedRecord("no date or start_date")


def _duration_seconds(raw: RawDocument) -> float:
    seconds = _first_number(raw, SECONDS_FIELDS)
    if seconds is None:
        minutes = coerce_number(raw.get(MINUTES_FIELD))
        seconds = minutes * 60.0 if minutes is not None else 0.0
    return max(seconds, 0.0)


def is_run_event(raw: RawDocument) -> bool:
    """A run is flagged explicitly or has "run" in its type name."""
    if raw.get("is_run_activity") is True:
        return True
    activity_type = raw.get("type")
    return isinstance(activity_type, str) and "run" in activity_type.lower()


def parse_activity_event(
    raw: RawDocument,
    calorie_fields: Sequence[str] = DEFAULT_CALORIE_FIELDS,
) -> ActivityContribution:
    """Turn one raw activity document into a contribution to its day.

    Raises:
        MalformedRecord: the document has no usable date or type.
    """
    if not isinstance(raw, dict):
        raise MalformedRecord(f"expected an object, got {type(raw).__name__}")

    day = _activity_date(raw)

    activity_type = raw.get("type")
    if not isinstance(activity_type, str) or not activity_type.strip():
        raise MalformedRecord("missing activity type")

    candidates = []
    for name in calorie_fields:
        value = coerce_number(resolve_field(raw, name))
        candidates.append(max(value, 0.0) if value is not None else None)

    heart_rate = _first_number(raw, HEART_RATE_FIELDS)
    if heart_rate is not None and heart_rate <= 0:
        heart_rate = None

    return ActivityContribution(
        date=day,
        type=activity_type.strip(),
        duration_seconds=_duration_seconds(raw),
        calorie_candidates=tuple(candidates),
        heart_rate=heart_rate,
        is_run=is_run_event(raw),
    )


def normalize_activity(
    raw_events: Iterable[RawDocument] | None,
    calorie_fields: Sequence[str] = DEFAULT_CALORIE_FIELDS,
) -> list[ActivityContribution]:
    """Normalize a batch of activity documents, dropping malformed ones."""
    if raw_events is None:
        return []

    contributions: list[ActivityContribution] = []
    skipped = 0
    for idx, raw in enumerate(raw_events):
        try:
            contributions.append(parse_activity_event(raw, calorie_fields))
        except MalformedRecord as e:
            skipped += 1
            logger.warning("Skipping activity event %d: %s", idx, e)

    logger.info("Normalized %d activity event(s), skipped %d", len(contributions), skipped)
    return contributions
