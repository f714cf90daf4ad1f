"""Tests for healthagg.engine.context -- assistant payload."""

import json
from datetime import date

from healthagg.engine.context import build_context, context_json
from healthagg.engine.scoring import score_window
from healthagg.engine.variants import BALANCED, DAILY
from healthagg.models import RawLabPanel, SourceWarning, Window

from tests.conftest import END_DATE, make_record


def sample_window(**kwargs) -> Window:
    return Window(
        records=(
            make_record(date(2026, 2, 12)),
            make_record(END_DATE, calories_consumed=1900, protein=140, calories_burned=550,
                        heart_rate_avg=150, activity_types=("Run",)),
        ),
        **kwargs,
    )


class TestBuildContext:
    def test_payload_sections(self):
        payload = build_context(sample_window(), DAILY)
        assert set(payload) == {"window", "scores", "summaries", "latest_lab_panel", "warnings"}
        assert payload["window"]["start_date"] == "2026-02-12"
        assert payload["window"]["end_date"] == "2026-02-13"
        assert len(payload["window"]["days"]) == 2

    def test_scores_included(self):
        payload = build_context(sample_window(), DAILY)
        assert payload["scores"]["variant"] == "daily"
        assert payload["scores"]["bmr"] == 1479
        assert [d["total"] for d in payload["scores"]["days"]] == [0, 80]

    def test_precomputed_scores_used(self):
        window = sample_window()
        scores = score_window(window, BALANCED)
        payload = build_context(window, BALANCED, scores)
        assert payload["scores"]["days"] == [s.to_dict() for s in scores]

    def test_summaries(self):
        payload = build_context(sample_window(), DAILY)
        assert payload["summaries"]["nutrition"]["avg_calories"] == 1900
        assert payload["summaries"]["activity"]["active_days"] == 1

    def test_lab_panel_and_warnings(self):
        window = sample_window(
            warnings=(SourceWarning("nutrition", "timeout"),),
            lab_panel=RawLabPanel(date(2026, 1, 20), {"HDL": 50.0, "Vitamin D": "32 ng/mL"}),
        )
        payload = build_context(window, DAILY)
        assert payload["latest_lab_panel"] == {
            "date": "2026-01-20",
            "markers": {"HDL": 50.0, "Vitamin D": "32 ng/mL"},
        }
        assert payload["warnings"] == [{"source": "nutrition", "message": "timeout"}]

    def test_no_lab_panel(self):
        payload = build_context(sample_window(), DAILY)
        assert payload["latest_lab_panel"] is None
        assert payload["warnings"] == []

    def test_json_serializable(self):
        text = context_json(build_context(sample_window(), DAILY))
        assert json.loads(text)["window"]["days"][1]["activity_types"] == ["Run"]
