"""Tests for healthagg.engine.scoring -- formulas, variants, daily score."""

import pytest

from healthagg.engine.scoring import (
    Component,
    FormulaKind,
    ScoringVariant,
    banded_linear,
    capped_linear,
    round_half_up,
    score,
    score_window,
    stepped_threshold,
)
from healthagg.engine.variants import BALANCED, DAILY
from healthagg.errors import InvalidVariantConfiguration

from tests.conftest import END_DATE, make_record


DEFICIT_STEPS = ((500.0, 30.0), (400.0, 25.0), (300.0, 20.0), (200.0, 15.0), (100.0, 10.0))


def capped(name="burned", metric="calories_burned", target=300.0, weight=100.0):
    return Component(name=name, kind=FormulaKind.CAPPED_LINEAR, metric=metric,
                     target=target, weight=weight)


class TestCappedLinear:
    def test_linear_below_target(self):
        assert capped_linear(150, 300, 40) == 20.0

    def test_at_target(self):
        assert capped_linear(300, 300, 40) == 40.0

    def test_never_exceeds_weight(self):
        assert capped_linear(10000, 300, 40) == 40

    def test_negative_clamped(self):
        assert capped_linear(-100, 300, 40) == 0.0


class TestBandedLinear:
    def test_inside_band(self):
        assert banded_linear(120, 100, 160, 240, 35) == 35
        assert banded_linear(100, 100, 160, 240, 35) == 35
        assert banded_linear(160, 100, 160, 240, 35) == 35

    def test_ramp_up(self):
        assert banded_linear(50, 100, 160, 240, 35) == pytest.approx(17.5)

    def test_ramp_down(self):
        assert banded_linear(200, 100, 160, 240, 35) == pytest.approx(17.5)

    def test_beyond_upper(self):
        assert banded_linear(240, 100, 160, 240, 35) == 0.0
        assert banded_linear(1000, 100, 160, 240, 35) == 0.0

    def test_non_positive(self):
        assert banded_linear(0, 100, 160, 240, 35) == 0.0
        assert banded_linear(-20, 100, 160, 240, 35) == 0.0


class TestSteppedThreshold:
    def test_breakpoints(self):
        assert stepped_threshold(0, DEFICIT_STEPS, 5.0) == 0
        assert stepped_threshold(500, DEFICIT_STEPS, 5.0) == 30
        assert stepped_threshold(150, DEFICIT_STEPS, 5.0) == 10
        assert stepped_threshold(-50, DEFICIT_STEPS, 5.0) == 0

    def test_meets_threshold_exactly(self):
        assert stepped_threshold(400, DEFICIT_STEPS) == 25
        assert stepped_threshold(399.9, DEFICIT_STEPS) == 20

    def test_far_above_top(self):
        assert stepped_threshold(5000, DEFICIT_STEPS) == 30

    def test_floor_for_small_positive(self):
        assert stepped_threshold(50, DEFICIT_STEPS, 5.0) == 5.0
        assert stepped_threshold(50, DEFICIT_STEPS) == 0.0


class TestComponentValidation:
    def test_target_must_be_positive(self):
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(capped(target=0),))

    def test_missing_target(self):
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(capped(target=None),))

    def test_unknown_metric(self):
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(capped(metric="steps"),))

    def test_band_ordering(self):
        band = Component(name="p", kind=FormulaKind.BANDED_LINEAR, metric="protein",
                         low=160, high=100, upper=240, weight=100)
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(band,))

    def test_band_requires_upper(self):
        band = Component(name="p", kind=FormulaKind.BANDED_LINEAR, metric="protein",
                         low=100, high=160, weight=100)
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(band,))

    def test_steps_must_descend(self):
        steps = Component(name="e", kind=FormulaKind.STEPPED_THRESHOLD, metric="energy_balance",
                          weight=100, breakpoints=((100, 50), (500, 100)))
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(steps,))

    def test_step_points_within_weight(self):
        steps = Component(name="e", kind=FormulaKind.STEPPED_THRESHOLD, metric="energy_balance",
                          weight=100, breakpoints=((500, 120),))
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(steps,))

    def test_kind_from_string(self):
        c = Component(name="b", kind="capped_linear", metric="calories_burned",
                      target=300, weight=100)
        assert c.kind is FormulaKind.CAPPED_LINEAR


class TestVariantValidation:
    def test_weights_must_sum_to_100(self):
        with pytest.raises(InvalidVariantConfiguration, match="sum to 100"):
            ScoringVariant(name="bad", components=(
                capped(weight=40), capped(name="protein", metric="protein", weight=30),
            ))

    def test_no_components(self):
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=())

    def test_duplicate_names(self):
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant(name="bad", components=(capped(weight=50), capped(weight=50)))

    def test_builtins_valid(self):
        assert sum(c.weight for c in DAILY.components) == 100
        assert sum(c.weight for c in BALANCED.components) == 100

    def test_from_dict(self):
        variant = ScoringVariant.from_dict("custom", {
            "bmr": 1600,
            "components": [
                {"name": "burned", "kind": "capped_linear", "metric": "calories_burned",
                 "target": 500, "weight": 60},
                {"name": "energy_balance", "kind": "stepped_threshold",
                 "breakpoints": [{"threshold": 300, "points": 40},
                                 {"threshold": 100, "points": 20}]},
            ],
        })
        assert variant.bmr == 1600
        # Stepped weight defaults to its largest breakpoint.
        assert variant.components[1].weight == 40
        assert variant.components[1].metric == "energy_balance"

    def test_from_dict_bad_kind(self):
        with pytest.raises(InvalidVariantConfiguration):
            ScoringVariant.from_dict("bad", {"components": [
                {"name": "x", "kind": "exponential", "weight": 100},
            ]})

    def test_round_trip_dict(self):
        again = ScoringVariant.from_dict("daily", DAILY.to_dict())
        assert again.components == DAILY.components


class TestRoundHalfUp:
    def test_half_rounds_up(self):
        assert round_half_up(80.5) == 81
        assert round_half_up(2.5) == 3

    def test_below_half(self):
        assert round_half_up(79.49) == 79


class TestScore:
    def test_end_to_end_scenario(self):
        record = make_record(
            calories_consumed=1900, protein=140, calories_burned=550,
            heart_rate_avg=150, workout_duration_seconds=3000,
            activity_types=("Run", "WeightTraining"),
        )
        result = score(record, DAILY)
        assert result.components["burned"] == 40
        assert result.components["protein"] == 30
        assert result.components["energy_balance"] == 10
        assert result.total == 80
        assert result.date == END_DATE
        assert result.variant == "daily"

    def test_capped_component_in_variant(self):
        record = make_record(calories_burned=10000, calories_consumed=1)
        result = score(record, DAILY)
        assert result.components["burned"] == 40

    def test_empty_day_scores_zero(self):
        result = score(make_record(protein=140), DAILY)
        assert result.total == 0
        assert set(result.components.values()) == {0.0}

    def test_empty_day_without_gate(self):
        variant = ScoringVariant(name="plain", components=(
            Component(name="balance", kind=FormulaKind.STEPPED_THRESHOLD,
                      metric="energy_balance", weight=100,
                      breakpoints=((1000, 100), (500, 50))),
        ))
        # No intake: balance = BMR = 1479 -> top step.
        assert score(make_record(), variant).total == 100

    def test_surplus_day(self):
        record = make_record(calories_consumed=3500, protein=70, calories_burned=150)
        result = score(record, DAILY)
        assert result.components["energy_balance"] == 0
        assert result.components["burned"] == pytest.approx(20.0)
        assert result.components["protein"] == pytest.approx(15.0)
        assert result.total == 35

    def test_missing_heart_rate_earns_zero(self):
        variant = ScoringVariant(name="hr", components=(
            Component(name="hr", kind=FormulaKind.BANDED_LINEAR, metric="heart_rate_avg",
                      low=120, high=150, upper=190, weight=50),
            capped(weight=50),
        ))
        result = score(make_record(calories_burned=300), variant)
        assert result.components["hr"] == 0.0
        assert result.total == 50

    def test_total_rounded(self):
        # 100/300 * 40 = 13.33 ; 70/140 * 30 = 15 ; balance 1479 -> 30
        record = make_record(calories_burned=100, protein=70)
        assert score(record, DAILY).total == 58

    @pytest.mark.parametrize("burned,consumed,protein", [
        (0, 0, 0), (10000, 0, 500), (0, 9000, 0), (250, 1200, 80), (1e9, 1e9, 1e9),
    ])
    def test_total_bounded(self, burned, consumed, protein):
        record = make_record(calories_burned=burned, calories_consumed=consumed, protein=protein)
        for variant in (DAILY, BALANCED):
            assert 0 <= score(record, variant).total <= 100

    def test_score_window(self):
        # 40 + 30 + floor step (balance 300 + 1479 - 1700 = 79) = 75
        records = [make_record(calories_burned=300, protein=140, calories_consumed=1700),
                   make_record(calories_burned=0)]
        results = score_window(records, DAILY)
        assert [r.total for r in results] == [75, 0]
