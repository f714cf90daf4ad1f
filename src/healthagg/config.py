"""Engine settings.

Defaults match the dashboard this engine was built for; a JSON file can
override any of them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any


# Resting energy expenditure used in the energy-balance metric (kcal/day).
DEFAULT_BMR = 1479.0

DEFAULT_WINDOW_LENGTH = 7

# Activity stores report calories under different names per event; the
# first one present on an event wins.  Dotted names reach into nested dicts.
DEFAULT_CALORIE_FIELDS = (
    "calories",
    "activity.calories",
    "kilojoules_to_calories",
    "caloriesBurned",
)

HEART_RATE_FILTERS = ("any", "runs")


@dataclass(frozen=True)
class EngineSettings:
    """Tunables for a window refresh and the default scoring variant."""

    bmr: float = DEFAULT_BMR
    window_length: int = DEFAULT_WINDOW_LENGTH
    calorie_fields: tuple[str, ...] = DEFAULT_CALORIE_FIELDS
    heart_rate_filter: str = "any"
    default_variant: str = "daily"
    user_id: str = "default"
    activity_limit: int = 50

    def __post_init__(self) -> None:
        if self.window_length < 1:
            raise ValueError(f"window_length must be >= 1, got {self.window_length}")
        if self.heart_rate_filter not in HEART_RATE_FILTERS:
            raise ValueError(
                f"heart_rate_filter must be one of {HEART_RATE_FILTERS}, "
                f"got {self.heart_rate_filter!r}"
            )
        if not self.calorie_fields:
            raise ValueError("calorie_fields must not be empty")
        if self.activity_limit < 1:
            raise ValueError(f"activity_limit must be >= 1, got {self.activity_limit}")


def settings_from_dict(data: dict[str, Any], base: EngineSettings | None = None) -> EngineSettings:
    """Overlay a plain dict on ``base`` (or the defaults)."""
    known = {f.name for f in fields(EngineSettings)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    overrides = dict(data)
    if "calorie_fields" in overrides:
        overrides["calorie_fields"] = tuple(overrides["calorie_fields"])
    return replace(base or EngineSettings(), **overrides)


def load_settings(path: str | Path) -> EngineSettings:
    """Read settings from a JSON object file."""
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in settings file {path}: {e}")

    if not isinstance(data, dict):
        raise TypeError(f"Settings file must hold a JSON object, got {type(data).__name__}")
    return settings_from_dict(data)
