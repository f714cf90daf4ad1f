"""Lab panel adapter.

Panels are sparse (a few a year), so only the newest one matters.  It is
carried next to the window rather than merged into any day.
"""

from __future__ import annotations

import logging
from typing import Iterable

from healthagg.errors import MalformedRecord
from healthagg.models import LatestLabPanel, RawLabPanel
from healthagg.sources.base import RawDocument, coerce_number, parse_day

logger = logging.getLogger(__name__)


def parse_lab_panel(raw: RawDocument) -> RawLabPanel:
    """Parse one panel; numeric marker values become floats, text is kept."""
    if not isinstance(raw, dict):
        raise MalformedRecord(f"expected an object, got {type(raw).__name__}")
    try:
        day = parse_day(raw.get("date"))
    except ValueError as e:
        raise MalformedRecord(f"bad lab panel date: {e}")

    markers = raw.get("markers") or {}
    if not isinstance(markers, dict):
        raise MalformedRecord(f"markers must be an object, got {type(markers).__name__}")

    parsed: dict[str, float | str] = {}
    for name, value in markers.items():
        number = coerce_number(value)
        if number is not None:
            parsed[str(name)] = number
        elif isinstance(value, str) and value.strip():
            parsed[str(name)] = value.strip()
    return RawLabPanel(date=day, markers=parsed)


def normalize_lab_panel(raw_panels: Iterable[RawDocument] | None) -> LatestLabPanel | None:
    """Return the most recent well-formed panel, or None."""
    if raw_panels is None:
        return None

    latest: RawLabPanel | None = None
    for idx, raw in enumerate(raw_panels):
        try:
            panel = parse_lab_panel(raw)
        except MalformedRecord as e:
            logger.warning("Skipping lab panel %d: %s", idx, e)
            continue
        if latest is None or panel.date > latest.date:
            latest = panel
    return latest
