"""Structured payload for the assistant's context builder.

This is only the data contract: the window, each day's score, the latest lab
panel, rolling summaries and any source warnings, as JSON-ready values.
Prompt wording is the assistant's business.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from healthagg.engine.averager import activity_summary, nutrition_summary
from healthagg.engine.scoring import ScoringVariant, score_window
from healthagg.models import ScoreResult, Window, lab_panel_to_dict


def build_context(
    window: Window,
    variant: ScoringVariant,
    scores: Sequence[ScoreResult] | None = None,
) -> dict[str, Any]:
    """Assemble the assistant payload for one refreshed window.

    Args:
        window: The refreshed window (its lab panel and warnings included).
        variant: Variant the scores were (or will be) computed with.
        scores: Precomputed scores; computed from ``window`` when omitted.
    """
    if scores is None:
        scores = score_window(window, variant)

    return {
        "window": {
            "start_date": window.start_date.isoformat() if window.start_date else None,
            "end_date": window.end_date.isoformat() if window.end_date else None,
            "days": [r.to_dict() for r in window],
        },
        "scores": {
            "variant": variant.name,
            "bmr": variant.bmr,
            "days": [s.to_dict() for s in scores],
        },
        "summaries": {
            "nutrition": nutrition_summary(window),
            "activity": activity_summary(window),
        },
        "latest_lab_panel": lab_panel_to_dict(window.lab_panel),
        "warnings": [w.to_dict() for w in window.warnings],
    }


def context_json(payload: dict[str, Any], indent: int = 2) -> str:
    return json.dumps(payload, indent=indent)
