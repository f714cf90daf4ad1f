"""Aggregation and scoring engine.

Modules:
    aggregator -- merge one day's contributions into a DailyHealthRecord
    window     -- concurrent store fetches -> fixed-length window of records
    scoring    -- formula kinds, scoring variants, 0-100 daily score
    variants   -- built-in variants and the variants file loader
    averager   -- rolling averages that skip zero/missing days
    context    -- assistant payload (window + scores + lab panel)
"""

from healthagg.engine.aggregator import (
    aggregate,
    any_activity,
    runs_only,
    heart_rate_filter,
    incremental_mean,
)
from healthagg.engine.window import build_window, window_dates, Stores
from healthagg.engine.scoring import (
    FormulaKind,
    Component,
    ScoringVariant,
    score,
    score_window,
    capped_linear,
    banded_linear,
    stepped_threshold,
)
from healthagg.engine.variants import (
    BUILTIN_VARIANTS,
    get_variant,
    load_variants,
)
from healthagg.engine.averager import average, nutrition_summary, activity_summary
from healthagg.engine.context import build_context

__all__ = [
    # aggregator
    "aggregate",
    "any_activity",
    "runs_only",
    "heart_rate_filter",
    "incremental_mean",
    # window
    "build_window",
    "window_dates",
    "Stores",
    # scoring
    "FormulaKind",
    "Component",
    "ScoringVariant",
    "score",
    "score_window",
    "capped_linear",
    "banded_linear",
    "stepped_threshold",
    # variants
    "BUILTIN_VARIANTS",
    "get_variant",
    "load_variants",
    # averager
    "average",
    "nutrition_summary",
    "activity_summary",
    # context
    "build_context",
]
