"""
Unit tests for lifecycle.py module.

Tests the annual projection engine, extinction detection and the
immutable scenario adjustments.
"""

from dataclasses import FrozenInstanceError

import numpy as np
import pandas as pd
import pytest

from heirloom.exceptions import ConfigurationError
from heirloom.lifecycle import (
    COST_KEYS,
    DEFAULT_ASSUMPTIONS,
    AnnualProjectionPoint,
    LifecycleAssumptions,
    LifecycleProjector,
    ProjectionSeries,
    ScenarioAdjustment,
    adjust_assumptions,
    confidence_level,
    find_extinction_year,
    point_at_or_after,
)
from heirloom.profile import load_profile
from heirloom.rng import LCGSource


def _point(year, wealth):
    return AnnualProjectionPoint(
        year=year, age=40 + year - 2025, wealth=wealth, income=0.0, expenses=0.0,
        investment_return=0.0, lifecycle_costs=0.0, net_cash_flow=0.0,
    )


# ---------------------------------------------------------------------------
# Assumptions
# ---------------------------------------------------------------------------

class TestLifecycleAssumptions:
    """Tests for assumption objects and adjustments."""

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_ASSUMPTIONS.general_inflation = 0.1

    def test_negative_event_multiplier(self):
        with pytest.raises(ConfigurationError, match="event_multiplier"):
            LifecycleAssumptions(event_multiplier=-1.0)

    def test_portfolio_return(self):
        weights = {"stocks": 1.0, "bonds": 0.0, "real_estate": 0.0, "alternatives": 0.0}
        expected = 0.10 * 1.3 - 0.01 - 0.015
        assert DEFAULT_ASSUMPTIONS.portfolio_return(weights, "aggressive") == pytest.approx(expected)

    def test_portfolio_volatility(self):
        weights = {"stocks": 0.5, "bonds": 0.5, "real_estate": 0.0, "alternatives": 0.0}
        assert DEFAULT_ASSUMPTIONS.portfolio_volatility(weights) == pytest.approx(0.19)

    def test_adjust_assumptions_is_pure(self):
        adj = ScenarioAdjustment("worst_case", return_delta=-0.02, inflation_delta=0.01, event_multiplier=1.5)
        adjusted = adjust_assumptions(DEFAULT_ASSUMPTIONS, adj)

        assert adjusted is not DEFAULT_ASSUMPTIONS
        assert adjusted.return_delta == pytest.approx(-0.02)
        assert adjusted.general_inflation == pytest.approx(0.045)
        assert adjusted.education_inflation == pytest.approx(0.07)
        assert adjusted.healthcare_inflation == pytest.approx(0.065)
        assert adjusted.event_multiplier == pytest.approx(1.5)
        # original untouched
        assert DEFAULT_ASSUMPTIONS.return_delta == 0.0
        assert DEFAULT_ASSUMPTIONS.general_inflation == 0.035
        assert DEFAULT_ASSUMPTIONS.event_multiplier == 1.0


class TestConfidenceLevel:
    def test_starts_at_start(self):
        assert confidence_level(0, 5.0) == pytest.approx(0.95)

    def test_decays_with_years(self):
        assert confidence_level(10, 5.0) < confidence_level(1, 5.0)

    def test_floor(self):
        assert confidence_level(200, 10.0) == pytest.approx(0.25)

    def test_simple_household_capped_at_start(self):
        assert confidence_level(0, 0.0) == pytest.approx(0.95)


# ---------------------------------------------------------------------------
# Series helpers
# ---------------------------------------------------------------------------

class TestSeriesHelpers:
    """Tests for extinction detection and year lookup."""

    def test_find_extinction_year(self):
        points = [_point(2025, 10.0), _point(2026, 5.0), _point(2027, 0.0)]
        assert find_extinction_year(points) == 2027

    def test_no_extinction(self):
        assert find_extinction_year([_point(2025, 10.0), _point(2026, 1.0)]) is None

    def test_zero_at_first_point(self):
        assert find_extinction_year([_point(2025, 0.0)]) == 2025

    def test_point_at_or_after(self):
        points = [_point(2025, 3.0), _point(2026, 2.0), _point(2027, 1.0)]

        assert point_at_or_after(points, 2026).year == 2026
        assert point_at_or_after(points, 2000).year == 2025
        assert point_at_or_after(points, 2100).year == 2027
        assert point_at_or_after([], 2026) is None

    def test_series_container(self):
        series = ProjectionSeries(
            points=(_point(2025, 3.0), _point(2026, 0.0)), base_year=2025, horizon_years=10,
        )

        assert len(series) == 2
        assert series[1].year == 2026
        assert [p.year for p in series] == [2025, 2026]
        assert series.years == [2025, 2026]
        np.testing.assert_array_equal(series.wealth, [3.0, 0.0])
        assert series.extinction_year == 2026
        assert series.is_extinct

    def test_to_frame(self):
        series = ProjectionSeries(points=(_point(2025, 3.0),), base_year=2025, horizon_years=1)
        frame = series.to_frame()

        assert isinstance(frame, pd.DataFrame)
        assert frame.index.name == "year"
        assert frame.loc[2025, "wealth"] == 3.0


# ---------------------------------------------------------------------------
# Projector
# ---------------------------------------------------------------------------

class TestIncomeGrowth:
    def test_career_bands(self, projector):
        assert projector.income_growth(29, 30) == 0.05
        assert projector.income_growth(39, 40) == 0.03
        assert projector.income_growth(54, 55) == 0.01

    def test_retirement_drop_then_decline(self, projector):
        assert projector.income_growth(59, 60) == -0.80
        assert projector.income_growth(60, 61) == -0.05


class TestLifecycleProjector:
    """Tests for LifecycleProjector.project."""

    def test_first_point_is_net_worth(self, projector, example_profile, source):
        series = projector.project(example_profile, 40, source)

        first = series.points[0]
        assert first.wealth == example_profile.net_worth
        assert first.year == 2025
        assert first.age == 35
        assert first.income == example_profile.annual_income

    def test_wealth_recurrence(self, projector, example_profile, source):
        series = projector.project(example_profile, 40, source)

        for prev, cur in zip(series.points, series.points[1:]):
            assert cur.wealth == pytest.approx(max(0.0, prev.wealth + prev.net_cash_flow))
            assert cur.year == prev.year + 1
            assert cur.age == prev.age + 1

    def test_cash_flow_identity(self, projector, family_profile, source):
        series = projector.project(family_profile, 30, source)

        for p in series:
            expected = p.income - p.expenses + p.investment_return - p.lifecycle_costs
            assert p.net_cash_flow == pytest.approx(expected)
            breakdown = p.cost_breakdown
            assert p.lifecycle_costs == pytest.approx(
                breakdown["education"] + breakdown["parent_care"]
                + breakdown["health_emergency"] + breakdown["family_emergency"]
            )

    def test_horizon_bounds_length(self, projector, example_profile, source):
        series = projector.project(example_profile, 5, source)
        assert len(series) <= 6
        assert series.horizon_years == 5

    def test_zero_net_worth_extinct_at_base_year(self, projector, broke_profile, source):
        series = projector.project(broke_profile, 30, source)

        assert len(series) == 1
        assert series.extinction_year == 2025

    def test_truncated_after_extinction(self, projector, strained_profile):
        series = projector.project(strained_profile, 40, LCGSource(1), stochastic=False)

        assert series.is_extinct
        assert series.points[-1].wealth == 0.0
        assert all(p.wealth > 0 for p in series.points[:-1])
        assert series.extinction_year == series.points[-1].year

    def test_seeded_runs_identical(self, projector, family_profile):
        a = projector.project(family_profile, 50, LCGSource(9))
        b = projector.project(family_profile, 50, LCGSource(9))
        np.testing.assert_array_equal(a.wealth, b.wealth)
        assert [p.events for p in a] == [p.events for p in b]

    def test_deterministic_mode_ignores_seed(self, projector, family_profile):
        a = projector.project(family_profile, 50, LCGSource(1), stochastic=False)
        b = projector.project(family_profile, 50, LCGSource(2), stochastic=False)
        np.testing.assert_allclose(a.wealth, b.wealth)
        assert not any("emergency" in e for p in a for e in p.events)

    def test_college_years(self, projector, example_profile, source):
        series = projector.project(example_profile, 20, source, stochastic=False)
        college = [p.year for p in series if p.cost_breakdown["education"] > 0]
        # child aged 8 in 2025 is 18-22 in 2035-2039
        assert college == [2035, 2036, 2037, 2038, 2039]
        assert "Asha college (private_state)" in series.points[10].events

    def test_retirement_event(self, projector, example_profile, source):
        series = projector.project(example_profile, 40, source, stochastic=False)
        retirement = [p for p in series if "Retirement" in p.events]
        if series.points[-1].age >= 60:
            assert len(retirement) == 1
            assert retirement[0].age == 60

    def test_parent_care_shared_with_siblings(self, projector):
        data = {
            "core_identity": {"age": 45},
            "financial_foundation": {"current_net_worth": 50_000_000, "annual_income": 2_000_000},
            "family_care": {
                "parents": [{"name": "Father", "age": 70, "financial_independence": "regular_support"}],
                "siblings": [{"name": "A"}, {"name": "B"}],
                "family_coordination": "good",
            },
        }
        shared = projector.project(load_profile(data), 3, LCGSource(1), stochastic=False)
        data["family_care"]["family_coordination"] = "poor"
        alone = projector.project(load_profile(data), 3, LCGSource(1), stochastic=False)

        shared_cost = shared.points[0].cost_breakdown["parent_care"]
        alone_cost = alone.points[0].cost_breakdown["parent_care"]
        assert shared_cost > 0
        assert alone_cost == pytest.approx(3 * shared_cost)
        assert "Parent care: Father" in shared.points[0].events

    def test_confidence_decreases(self, projector, example_profile, source):
        series = projector.project(example_profile, 40, source, complexity_score=6.0)
        confidences = [p.confidence for p in series]
        assert all(a >= b for a, b in zip(confidences, confidences[1:]))

    def test_invalid_horizon(self, projector, example_profile, source):
        with pytest.raises(ValueError, match="horizon_years"):
            projector.project(example_profile, 0, source)

    def test_better_assumptions_never_hurt(self, family_profile):
        """Same draws, higher returns and fewer events: wealth is pathwise higher."""
        base = LifecycleProjector(DEFAULT_ASSUMPTIONS).project(family_profile, 60, LCGSource(5))
        best = LifecycleProjector(adjust_assumptions(
            DEFAULT_ASSUMPTIONS, ScenarioAdjustment("best_case", 0.02, -0.01, 0.5)
        )).project(family_profile, 60, LCGSource(5))

        assert len(best) >= len(base)
        for b, g in zip(base.points, best.points):
            assert g.wealth >= b.wealth - 1e-6


class TestFinalYearExhaustion:
    """Wealth drained by the last projected year's cash flow."""

    @pytest.fixture
    def tuition_profile(self):
        return load_profile({
            "core_identity": {"age": 40},
            "financial_foundation": {"current_net_worth": 100_000, "annual_income": 100_000},
            "children": [{"name": "Tara", "age": 18, "education_aspiration": "international"}],
        })

    def test_exhaustion_in_last_year_is_reported(self, projector, tuition_profile):
        series = projector.project(tuition_profile, 1, LCGSource(3), stochastic=False)

        assert series.points[0].net_cash_flow < -tuition_profile.net_worth
        assert len(series) == 2
        assert series.extinction_year == 2026

    def test_closing_point_records_zero(self, projector, tuition_profile):
        series = projector.project(tuition_profile, 1, LCGSource(3), stochastic=False)
        closing = series.points[-1]

        assert closing.year == 2026
        assert closing.age == 41
        assert closing.wealth == 0.0
        assert closing.net_cash_flow == 0.0
        assert closing.lifecycle_costs == 0.0
        assert set(closing.cost_breakdown) == set(COST_KEYS)

    def test_horizon_does_not_change_extinction_year(self, projector, tuition_profile):
        short = projector.project(tuition_profile, 1, LCGSource(3), stochastic=False)
        longer = projector.project(tuition_profile, 2, LCGSource(3), stochastic=False)

        assert short.extinction_year == longer.extinction_year == 2026
        np.testing.assert_array_equal(short.wealth, longer.wealth)

    def test_surviving_run_has_no_closing_point(self, projector, example_profile, source):
        series = projector.project(example_profile, 3, source, stochastic=False)

        assert len(series) == 3
        assert series.extinction_year is None
