"""Daily health score (0-100) from a configurable scoring variant.

A variant is pure data: an ordered list of components, each naming a
metric, a formula kind, a weight and its target(s).  Three formula kinds
exist:

  capped_linear      points = min(weight, value / target * weight)
  banded_linear      full weight inside [low, high], ramping up from 0 below
                     ``low`` and down to 0 at ``upper`` above ``high``
  stepped_threshold  points of the first (descending) breakpoint the value
                     reaches; ``floor_points`` for smaller positive values;
                     0 for non-positive values

Variants are validated when they are built, so scoring itself never fails
on configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from healthagg.config import DEFAULT_BMR
from healthagg.errors import InvalidVariantConfiguration
from healthagg.models import DailyHealthRecord, ScoreResult


class FormulaKind(str, Enum):
    """How a component turns a metric value into points."""

    CAPPED_LINEAR = "capped_linear"
    BANDED_LINEAR = "banded_linear"
    STEPPED_THRESHOLD = "stepped_threshold"


# ---------------------------------------------------------------------------
# Metrics a component can read off a record
# ---------------------------------------------------------------------------

MetricFn = Callable[[DailyHealthRecord, float], "float | None"]

METRICS: dict[str, MetricFn] = {
    "calories_consumed": lambda r, bmr: r.calories_consumed,
    "calories_burned": lambda r, bmr: r.calories_burned,
    "protein": lambda r, bmr: r.protein,
    "carbs": lambda r, bmr: r.carbs,
    "fat": lambda r, bmr: r.fat,
    "fiber": lambda r, bmr: r.fiber,
    "heart_rate_avg": lambda r, bmr: r.heart_rate_avg,
    "workout_duration_seconds": lambda r, bmr: r.workout_duration_seconds,
    # Positive when calories burned (plus BMR) exceed calories consumed.
    "energy_balance": lambda r, bmr: r.energy_balance(bmr),
}

WEIGHT_TOTAL = 100.0
_WEIGHT_TOLERANCE = 1e-6


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


def capped_linear(value: float, target: float, weight: float) -> float:
    """Linear up to ``target``, capped at ``weight``; never negative."""
    return max(0.0, min(weight, value / target * weight))


def banded_linear(value: float, low: float, high: float, upper: float, weight: float) -> float:
    """Full weight in ``[low, high]``, linear ramps outside, 0 at or past ``upper``."""
    if value <= 0:
        return 0.0
    if value < low:
        return weight * value / low
    if value <= high:
        return weight
    if value >= upper:
        return 0.0
    return weight * (upper - value) / (upper - high)


def stepped_threshold(
    value: float,
    breakpoints: tuple[tuple[float, float], ...],
    floor_points: float = 0.0,
) -> float:
    """Points for the first breakpoint ``value`` meets or exceeds.

    Args:
        value: Metric value.
        breakpoints: ``(threshold, points)`` pairs, thresholds descending.
        floor_points: Points for a positive value below every threshold.
    """
    if value <= 0:
        return 0.0
    for threshold, points in breakpoints:
        if value >= threshold:
            return points
    return floor_points


# ---------------------------------------------------------------------------
# Components and variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Component:
    """One weighted term of a score."""

    name: str
    kind: FormulaKind
    metric: str
    weight: float
    target: float | None = None
    low: float | None = None
    high: float | None = None
    upper: float | None = None
    breakpoints: tuple[tuple[float, float], ...] = ()
    floor_points: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.kind, FormulaKind):
            object.__setattr__(self, "kind", FormulaKind(self.kind))

    def validate(self, variant: str) -> None:
        """Raise InvalidVariantConfiguration if this component can't score."""
        def fail(reason: str) -> None:
            raise InvalidVariantConfiguration(variant, f"component {self.name!r}: {reason}")

        if self.metric not in METRICS:
            fail(f"unknown metric {self.metric!r}")
        if not self.weight > 0:
            fail(f"weight must be > 0, got {self.weight}")

        if self.kind is FormulaKind.CAPPED_LINEAR:
            if self.target is None or not self.target > 0:
                fail(f"target must be > 0, got {self.target}")

        elif self.kind is FormulaKind.BANDED_LINEAR:
            if None in (self.low, self.high, self.upper):
                fail("low, high and upper are required")
            if not 0 < self.low <= self.high < self.upper:
                fail(f"need 0 < low <= high < upper, got {self.low}, {self.high}, {self.upper}")

        elif self.kind is FormulaKind.STEPPED_THRESHOLD:
            if not self.breakpoints:
                fail("at least one breakpoint is required")
            thresholds = [t for t, _ in self.breakpoints]
            if any(not t > 0 for t in thresholds):
                fail("breakpoint thresholds must be > 0")
            if any(a <= b for a, b in zip(thresholds, thresholds[1:])):
                fail("breakpoint thresholds must be strictly descending")
            for _, points in self.breakpoints:
                if not 0 <= points <= self.weight:
                    fail(f"breakpoint points must be within [0, weight], got {points}")
            if not 0 <= self.floor_points <= self.weight:
                fail(f"floor_points must be within [0, weight], got {self.floor_points}")

    def points(self, value: float | None) -> float:
        """Points earned for ``value`` (a missing value earns 0)."""
        if value is None:
            return 0.0
        if self.kind is FormulaKind.CAPPED_LINEAR:
            return capped_linear(value, self.target, self.weight)
        if self.kind is FormulaKind.BANDED_LINEAR:
            return banded_linear(value, self.low, self.high, self.upper, self.weight)
        return stepped_threshold(value, self.breakpoints, self.floor_points)

    @classmethod
    def from_dict(cls, data: dict[str, Any], variant: str = "?") -> "Component":
        """Build a component from its JSON form."""
        try:
            name = str(data["name"])
            kind = FormulaKind(data["kind"])
            metric = str(data.get("metric", name))
            breakpoints = tuple(
                (float(bp["threshold"]), float(bp["points"]))
                for bp in data.get("breakpoints", [])
            )
            weight = data.get("weight")
            if weight is None and breakpoints:
                weight = max(points for _, points in breakpoints)
            return cls(
                name=name,
                kind=kind,
                metric=metric,
                weight=float(weight),
                target=_opt_float(data.get("target")),
                low=_opt_float(data.get("low")),
                high=_opt_float(data.get("high")),
                upper=_opt_float(data.get("upper")),
                breakpoints=breakpoints,
                floor_points=float(data.get("floor_points", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidVariantConfiguration(variant, f"bad component {data!r}: {e}")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "metric": self.metric,
            "weight": self.weight,
        }
        for key in ("target", "low", "high", "upper"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        if self.breakpoints:
            d["breakpoints"] = [{"threshold": t, "points": p} for t, p in self.breakpoints]
            d["floor_points"] = self.floor_points
        return d


def _opt_float(value: Any) -> float | None:
    return None if value is None else float(value)


@dataclass(frozen=True)
class ScoringVariant:
    """A named scoring configuration.  Validated on construction."""

    name: str
    components: tuple[Component, ...]
    bmr: float = DEFAULT_BMR
    # Days with neither intake nor activity score 0 outright.
    requires_activity_or_intake: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not self.components:
            raise InvalidVariantConfiguration(self.name, "no components")
        names = [c.name for c in self.components]
        if len(set(names)) != len(names):
            raise InvalidVariantConfiguration(self.name, "duplicate component names")
        for component in self.components:
            component.validate(self.name)
        total = sum(c.weight for c in self.components)
        if abs(total - WEIGHT_TOTAL) > _WEIGHT_TOLERANCE:
            raise InvalidVariantConfiguration(
                self.name, f"weights must sum to {WEIGHT_TOTAL:.0f}, got {total:g}"
            )
        if not self.bmr >= 0:
            raise InvalidVariantConfiguration(self.name, f"bmr must be >= 0, got {self.bmr}")

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "ScoringVariant":
        if not isinstance(data, dict):
            raise InvalidVariantConfiguration(name, f"expected an object, got {type(data).__name__}")
        raw_components = data.get("components")
        if not isinstance(raw_components, list):
            raise InvalidVariantConfiguration(name, "components must be a list")
        try:
            bmr = float(data.get("bmr", DEFAULT_BMR))
        except (TypeError, ValueError) as e:
            raise InvalidVariantConfiguration(name, f"bad bmr: {e}")
        return cls(
            name=name,
            components=tuple(Component.from_dict(c, name) for c in raw_components),
            bmr=bmr,
            requires_activity_or_intake=bool(data.get("requires_activity_or_intake", False)),
            description=str(data.get("description", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "bmr": self.bmr,
            "requires_activity_or_intake": self.requires_activity_or_intake,
            "components": [c.to_dict() for c in self.components],
        }


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def score(record: DailyHealthRecord, variant: ScoringVariant) -> ScoreResult:
    """Score one day under ``variant``.

    Returns:
        ScoreResult with ``total`` in [0, 100] and each component's points.
    """
    if variant.requires_activity_or_intake and not record.has_activity_or_intake:
        return ScoreResult(
            date=record.date,
            total=0,
            components={c.name: 0.0 for c in variant.components},
            variant=variant.name,
        )

    components: dict[str, float] = {}
    for c in variant.components:
        value = METRICS[c.metric](record, variant.bmr)
        components[c.name] = c.points(value)

    raw_total = sum(components.values())
    total = round_half_up(max(0.0, min(WEIGHT_TOTAL, raw_total)))

    return ScoreResult(
        date=record.date,
        total=total,
        components=components,
        variant=variant.name,
    )


def score_window(records, variant: ScoringVariant) -> list[ScoreResult]:
    """Score every record of a window, in order."""
    return [score(record, variant) for record in records]
