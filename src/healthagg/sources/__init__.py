"""Source adapters: turn raw store documents into engine inputs."""

from healthagg.sources.base import (
    NutritionStore,
    ActivityStore,
    LabPanelStore,
    SupportsCachedQuery,
    TwoTierStore,
    fetch_with_fallback,
)
from healthagg.sources.nutrition import normalize_nutrition, parse_nutrition_entry
from healthagg.sources.activity import normalize_activity, parse_activity_event
from healthagg.sources.labs import normalize_lab_panel, parse_lab_panel
from healthagg.sources.jsonfile import (
    JsonNutritionStore,
    JsonActivityStore,
    JsonLabPanelStore,
)

__all__ = [
    # base
    "NutritionStore",
    "ActivityStore",
    "LabPanelStore",
    "SupportsCachedQuery",
    "TwoTierStore",
    "fetch_with_fallback",
    # adapters
    "normalize_nutrition",
    "parse_nutrition_entry",
    "normalize_activity",
    "parse_activity_event",
    "normalize_lab_panel",
    "parse_lab_panel",
    # stores
    "JsonNutritionStore",
    "JsonActivityStore",
    "JsonLabPanelStore",
]
