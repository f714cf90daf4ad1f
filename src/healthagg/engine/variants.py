"""Built-in scoring variants and the variant file loader.

Each dashboard view picks a variant by name.  A variants file is a JSON
object mapping names to variant definitions (optionally wrapped in a
``"variants"`` key)::

    {"variants": {
        "daily": {
            "bmr": 1479,
            "requires_activity_or_intake": true,
            "components": [
                {"name": "burned", "kind": "capped_linear",
                 "metric": "calories_burned", "target": 300, "weight": 40},
                ...
            ]}}}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from healthagg.config import DEFAULT_BMR
from healthagg.engine.scoring import Component, FormulaKind, ScoringVariant
from healthagg.errors import InvalidVariantConfiguration


# The home dashboard score: calories burned, protein, and energy balance.
DAILY = ScoringVariant(
    name="daily",
    description="Burned calories, protein intake and energy-balance steps",
    bmr=DEFAULT_BMR,
    requires_activity_or_intake=True,
    components=(
        Component(
            name="burned",
            kind=FormulaKind.CAPPED_LINEAR,
            metric="calories_burned",
            target=300.0,
            weight=40.0,
        ),
        Component(
            name="protein",
            kind=FormulaKind.CAPPED_LINEAR,
            metric="protein",
            target=140.0,
            weight=30.0,
        ),
        Component(
            name="energy_balance",
            kind=FormulaKind.STEPPED_THRESHOLD,
            metric="energy_balance",
            weight=30.0,
            breakpoints=(
                (500.0, 30.0),
                (400.0, 25.0),
                (300.0, 20.0),
                (200.0, 15.0),
                (100.0, 10.0),
            ),
            floor_points=5.0,
        ),
    ),
)

# Rewards staying inside sensible ranges rather than "more is better".
BALANCED = ScoringVariant(
    name="balanced",
    description="Banded protein and energy balance with a burned-calorie cap",
    bmr=DEFAULT_BMR,
    requires_activity_or_intake=True,
    components=(
        Component(
            name="burned",
            kind=FormulaKind.CAPPED_LINEAR,
            metric="calories_burned",
            target=400.0,
            weight=35.0,
        ),
        Component(
            name="protein",
            kind=FormulaKind.BANDED_LINEAR,
            metric="protein",
            low=100.0,
            high=160.0,
            upper=240.0,
            weight=35.0,
        ),
        Component(
            name="energy_balance",
            kind=FormulaKind.BANDED_LINEAR,
            metric="energy_balance",
            low=100.0,
            high=500.0,
            upper=1000.0,
            weight=30.0,
        ),
    ),
)

BUILTIN_VARIANTS: dict[str, ScoringVariant] = {
    v.name: v for v in (DAILY, BALANCED)
}


def variants_from_dict(data: Mapping) -> dict[str, ScoringVariant]:
    """Build and validate every variant in a name -> definition mapping."""
    if "variants" in data and isinstance(data["variants"], Mapping):
        data = data["variants"]
    if not data:
        raise InvalidVariantConfiguration("?", "no variants defined")
    return {
        str(name): ScoringVariant.from_dict(str(name), definition)
        for name, definition in data.items()
    }


def load_variants(path: str | Path) -> dict[str, ScoringVariant]:
    """Load variants from a JSON file.

    Raises:
        InvalidVariantConfiguration: the file is unreadable or any variant
            fails validation.  Nothing is scored with a partial file.
    """
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidVariantConfiguration(str(path), f"cannot read variants file: {e}")

    if not isinstance(data, dict):
        raise InvalidVariantConfiguration(str(path), "variants file must hold a JSON object")
    return variants_from_dict(data)


def get_variant(
    name: str,
    registry: Mapping[str, ScoringVariant] | None = None,
) -> ScoringVariant:
    """Look up a variant by name (built-ins when no registry is given)."""
    registry = BUILTIN_VARIANTS if registry is None else registry
    try:
        return registry[name]
    except KeyError:
        raise KeyError(
            f"Unknown scoring variant {name!r}; available: {', '.join(sorted(registry))}"
        )
