"""Shared fixtures and helpers for the healthagg test suite."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from healthagg.models import ActivityContribution, DailyHealthRecord


END_DATE = date(2026, 2, 13)


# ---------------------------------------------------------------------------
# Record / document builders
# ---------------------------------------------------------------------------


def make_contribution(
    day: date = END_DATE,
    type: str = "Run",
    calories: float | None = 300.0,
    duration_seconds: float = 1800.0,
    heart_rate: float | None = 150.0,
    is_run: bool | None = None,
) -> ActivityContribution:
    """Build a contribution with a single calorie candidate."""
    return ActivityContribution(
        date=day,
        type=type,
        duration_seconds=duration_seconds,
        calorie_candidates=(calories,),
        heart_rate=heart_rate,
        is_run="run" in type.lower() if is_run is None else is_run,
    )


def make_record(day: date = END_DATE, **fields: Any) -> DailyHealthRecord:
    """Build a DailyHealthRecord, keeping the heart-rate invariant consistent."""
    if fields.get("heart_rate_avg") is not None:
        fields.setdefault("heart_rate_sample_count", 1)
    return DailyHealthRecord(date=day, **fields)


def nutrition_doc(day: str, calories=1900, protein=140, carbs=200, fat=60, fiber=25) -> dict:
    return {
        "date": day,
        "totals": {
            "calories": calories,
            "protein": protein,
            "carbs": carbs,
            "fat": fat,
            "fiber": fiber,
        },
    }


def activity_doc(
    day: str,
    type: str = "Run",
    calories: float | None = 300,
    duration_min: float = 30,
    heart_rate: float | None = 150,
    **extra: Any,
) -> dict:
    doc: dict[str, Any] = {
        "start_date": f"{day}T07:00:00Z",
        "type": type,
        "duration": duration_min,
        "heart_rate": heart_rate,
        "userId": "default",
    }
    if calories is not None:
        doc["calories"] = calories
    doc.update(extra)
    return doc


def lab_doc(day: str, **markers: Any) -> dict:
    return {"date": day, "userId": "default", "markers": markers}


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------


class MemoryNutritionStore:
    def __init__(self, docs: list[dict] | None = None, error: Exception | None = None) -> None:
        self.docs = docs or []
        self.error = error
        self.calls: list[tuple] = []

    async def query(self, start_date):
        self.calls.append((start_date,))
        if self.error is not None:
            raise self.error
        return list(self.docs)


class MemoryActivityStore:
    def __init__(self, docs: list[dict] | None = None, error: Exception | None = None) -> None:
        self.docs = docs or []
        self.error = error
        self.calls: list[tuple] = []

    async def query(self, user_id, start_date, limit):
        self.calls.append((user_id, start_date, limit))
        if self.error is not None:
            raise self.error
        return list(self.docs)[:limit]


class MemoryLabStore:
    def __init__(self, docs: list[dict] | None = None, error: Exception | None = None) -> None:
        self.docs = docs or []
        self.error = error
        self.calls: list[tuple] = []

    async def query(self, user_id, limit=1):
        self.calls.append((user_id, limit))
        if self.error is not None:
            raise self.error
        return list(self.docs)[:limit]


# ---------------------------------------------------------------------------
# JSON file helpers
# ---------------------------------------------------------------------------


def write_json(path: Path, data: Any) -> Path:
    """Write ``data`` as JSON to ``path``."""
    with open(path, "w") as f:
        json.dump(data, f)
    return path


@pytest.fixture
def end_date() -> date:
    return END_DATE
