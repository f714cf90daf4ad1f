"""Value types shared by the source adapters and the engine.

Raw* types are what the external stores hand back, after the adapters have
picked out the fields we care about.  Raw activity events stay plain dicts
until the activity adapter turns them into ActivityContributions.  DailyHealthRecord is the core entity:
one per calendar day, built fresh on every window refresh and never mutated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any


NUTRITION_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")

# DailyHealthRecord fields that are sums and can never go negative.
SUMMED_FIELDS = (
    "calories_consumed",
    "calories_burned",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "workout_duration_seconds",
)


@dataclass(frozen=True)
class NutritionTotals:
    """A day's nutrition totals (kcal and grams)."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0


@dataclass(frozen=True)
class RawNutritionEntry:
    """One nutrition log.  At most one per date."""

    date: date
    totals: NutritionTotals


@dataclass(frozen=True)
class ActivityContribution:
    """One activity event's effect on a single day's aggregate.

    ``calorie_candidates`` holds the event's value for each configured
    calorie field, in priority order (None where the field is absent).
    """

    date: date
    type: str
    duration_seconds: float = 0.0
    calorie_candidates: tuple[float | None, ...] = ()
    heart_rate: float | None = None
    is_run: bool = False

    @property
    def calories_burned(self) -> float:
        """First non-zero candidate; candidates are never summed.

        A 0 falls through to the next field, like the dashboard's
        ``calories || activity.calories || ...`` chain.
        """
        for value in self.calorie_candidates:
            if value:
                return value
        return 0.0


@dataclass(frozen=True)
class RawLabPanel:
    """A lab/blood panel: marker name -> value (number or text with units)."""

    date: date
    markers: dict[str, float | str] = field(default_factory=dict)


# The most recent panel is carried next to the window, never merged into it.
LatestLabPanel = RawLabPanel


@dataclass(frozen=True)
class DailyHealthRecord:
    """A single calendar day's merged nutrition + activity metrics."""

    date: date
    calories_consumed: float = 0.0
    calories_burned: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    heart_rate_avg: float | None = None
    heart_rate_sample_count: int = 0
    workout_duration_seconds: float = 0.0
    activity_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in SUMMED_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{self.date}: {name} must be >= 0, got {getattr(self, name)}")
        if (self.heart_rate_avg is None) != (self.heart_rate_sample_count == 0):
            raise ValueError(
                f"{self.date}: heart_rate_avg must be set iff "
                f"heart_rate_sample_count > 0"
            )
        if len(set(self.activity_types)) != len(self.activity_types):
            raise ValueError(f"{self.date}: duplicate activity types")

    @classmethod
    def empty(cls, day: date) -> "DailyHealthRecord":
        """An all-zero record for a day with no source data."""
        return cls(date=day)

    @property
    def has_activity_or_intake(self) -> bool:
        return self.calories_consumed > 0 or self.calories_burned > 0

    def energy_balance(self, bmr: float) -> float:
        """Calories burned + BMR - calories consumed (positive = deficit)."""
        return self.calories_burned + bmr - self.calories_consumed

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        d["activity_types"] = list(self.activity_types)
        return d

    def __repr__(self) -> str:
        hr = f"{self.heart_rate_avg:.0f}bpm" if self.heart_rate_avg is not None else "-"
        return (
            f"DailyHealthRecord({self.date.isoformat()}: "
            f"in={self.calories_consumed:.0f}kcal, "
            f"out={self.calories_burned:.0f}kcal, "
            f"protein={self.protein:.0f}g, hr={hr})"
        )


@dataclass(frozen=True)
class SourceWarning:
    """Non-fatal note that one source could not be read during a refresh."""

    source: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "message": self.message}


@dataclass(frozen=True)
class Window:
    """Exactly N consecutive daily records, ascending by date."""

    records: tuple[DailyHealthRecord, ...]
    warnings: tuple[SourceWarning, ...] = ()
    lab_panel: LatestLabPanel | None = None

    def __post_init__(self) -> None:
        for prev, cur in zip(self.records, self.records[1:]):
            if (cur.date - prev.date).days != 1:
                raise ValueError(
                    f"window records must be consecutive ascending days, "
                    f"got {prev.date} then {cur.date}"
                )

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def __getitem__(self, index: int) -> DailyHealthRecord:
        return self.records[index]

    @property
    def start_date(self) -> date | None:
        return self.records[0].date if self.records else None

    @property
    def end_date(self) -> date | None:
        return self.records[-1].date if self.records else None

    def get(self, day: date) -> DailyHealthRecord | None:
        for record in self.records:
            if record.date == day:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "warnings": [w.to_dict() for w in self.warnings],
            "lab_panel": lab_panel_to_dict(self.lab_panel),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class ScoreResult:
    """A day's 0-100 score and the points each component contributed."""

    date: date
    total: int
    components: dict[str, float]
    variant: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "total": self.total,
            "components": dict(self.components),
            "variant": self.variant,
        }

    def __repr__(self) -> str:
        return f"ScoreResult({self.date.isoformat()}: {self.total}/100 [{self.variant}])"


def lab_panel_to_dict(panel: LatestLabPanel | None) -> dict[str, Any] | None:
    if panel is None:
        return None
    return {"date": panel.date.isoformat(), "markers": dict(panel.markers)}
