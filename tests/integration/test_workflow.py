"""
Integration test for the full Heirloom workflow.

Tests the complete pipeline from profile validation through the
comprehensive projection to verify all components work together.
"""

import numpy as np
import pytest

from heirloom.config import RunConfig
from heirloom.family import FamilyImpactCalculator
from heirloom.integrator import ComprehensiveProjection, ProjectionBundle
from heirloom.profile import load_profile


@pytest.mark.integration
class TestComprehensiveProjection:
    """End-to-end tests for ComprehensiveProjection.run."""

    def test_bundle_contents(self, example_profile, small_config):
        bundle = ComprehensiveProjection(small_config).run(example_profile)

        assert isinstance(bundle, ProjectionBundle)
        assert bundle.seed == small_config.seed
        assert bundle.current_wealth == example_profile.net_worth
        assert bundle.series.points[0].wealth == example_profile.net_worth
        assert len(bundle.series) <= small_config.horizon_years + 1
        assert len(bundle.extinction_years) == small_config.n_paths
        assert bundle.wealth_band.n_paths == small_config.n_paths
        assert bundle.wealth_band.n_periods == small_config.horizon_years + 1
        assert len(bundle.wealth_destroyers) <= 5
        assert len(bundle.diagnostics.tests) == 5
        assert bundle.outlooks is not None

    def test_extinction_fields_consistent(self, strained_profile, small_config):
        bundle = ComprehensiveProjection(small_config).run(strained_profile)

        assert bundle.extinction_year == bundle.series.extinction_year
        assert bundle.extinction_year is not None
        assert bundle.years_remaining == bundle.extinction_year - strained_profile.base_year

    def test_inheritance_fields(self, family_profile, small_config):
        bundle = ComprehensiveProjection(small_config).run(family_profile)

        assert bundle.per_child_inheritance == bundle.family_impact.inheritance.per_child
        assert bundle.grandchildren_inheritance == bundle.family_impact.grandchildren.total_inheritance

    def test_seeded_runs_reproducible(self, family_profile, small_config):
        a = ComprehensiveProjection(small_config).run(family_profile)
        b = ComprehensiveProjection(small_config).run(family_profile)

        np.testing.assert_array_equal(a.series.wealth, b.series.wealth)
        assert a.extinction_years == b.extinction_years
        np.testing.assert_array_equal(a.wealth_band.p50, b.wealth_band.p50)
        assert a.scenarios.statistics == b.scenarios.statistics
        np.testing.assert_array_equal(
            a.outlooks.market.band.p50, b.outlooks.market.band.p50
        )

    def test_unseeded_run_reports_seed(self, example_profile):
        config = RunConfig(horizon_years=20, n_paths=5, include_outlooks=False)
        bundle = ComprehensiveProjection(config).run(example_profile)

        assert isinstance(bundle.seed, int)
        replay = ComprehensiveProjection(config.model_copy(update={"seed": bundle.seed})).run(example_profile)
        np.testing.assert_array_equal(replay.series.wealth, bundle.series.wealth)

    def test_band_percentiles_ordered(self, family_profile, small_config):
        band = ComprehensiveProjection(small_config).run(family_profile).wealth_band

        assert np.all(band.p5 <= band.p25)
        assert np.all(band.p25 <= band.p50)
        assert np.all(band.p50 <= band.p75)
        assert np.all(band.p75 <= band.p95)

    def test_scenario_transfer_ordering(self, family_profile, small_config):
        bundle = ComprehensiveProjection(small_config).run(family_profile)
        calc = FamilyImpactCalculator(death_age=small_config.assumed_death_age)

        def transfer(series):
            return calc.calculate(family_profile, series).inheritance.net_transfer

        best = transfer(bundle.scenarios.adjusted_by_name("best_case").series)
        worst = transfer(bundle.scenarios.adjusted_by_name("worst_case").series)
        stress = transfer(bundle.scenarios.adjusted_by_name("stress").series)
        base = transfer(bundle.series)

        assert best >= base >= worst >= stress

    def test_deterministic_ensemble(self, example_profile, seed):
        config = RunConfig(horizon_years=30, n_paths=10, seed=seed, stochastic=False, include_outlooks=False)
        bundle = ComprehensiveProjection(config).run(example_profile)

        assert bundle.outlooks is None
        assert not any("emergency" in e for p in bundle.series for e in p.events)

    def test_zero_net_worth(self, broke_profile, small_config):
        bundle = ComprehensiveProjection(small_config).run(broke_profile)

        assert bundle.extinction_year == broke_profile.base_year
        assert bundle.years_remaining == 0
        assert bundle.per_child_inheritance == 0.0
        assert bundle.wealth_destroyers == ()

    def test_outlooks(self, example_profile, small_config):
        outlooks = ComprehensiveProjection(small_config).run(example_profile).outlooks

        assert outlooks.market.band.n_periods == small_config.horizon_years + 1
        assert outlooks.market.band.p50[0] == example_profile.net_worth
        assert outlooks.market.value_at_risk_95 >= 0.0
        assert 0.0 <= outlooks.market.median_max_drawdown <= 1.0
        assert len(outlooks.inflation.regimes) == small_config.horizon_years + 1
        assert outlooks.healthcare.band.n_periods == small_config.horizon_years + 1

    def test_recommendations_and_protection(self, strained_profile, small_config):
        bundle = ComprehensiveProjection(small_config).run(strained_profile)

        assert bundle.recommendations.immediate[0].priority == "critical"
        assert bundle.recommendations.emergency_fund > 0
        assert bundle.protected.additional_years >= 0
        assert len(bundle.protected.series) >= len(bundle.series)
        assert bundle.protected.grandchildren_inheritance >= bundle.grandchildren_inheritance

    def test_tail_risk_from_ensemble(self, family_profile, small_config):
        tail = ComprehensiveProjection(small_config).run(family_profile).tail_risk

        assert tail.model.n_observations > 0
        assert 0.0 <= tail.var_99 <= tail.var_995 <= tail.var_999 <= 1.0
        assert tail.assessment in ("LOW", "MEDIUM", "HIGH", "EXTREME")

    def test_longevity(self, example_profile, small_config):
        longevity = ComprehensiveProjection(small_config).run(example_profile).longevity

        assert longevity.life_expectancy >= example_profile.age + 5
        assert longevity.mortality.survival.size == small_config.horizon_years
        assert longevity.scenarios["p10"] <= longevity.scenarios["p90"]


@pytest.mark.integration
def test_profile_dict_to_bundle(profile_data):
    """Plain mapping in, projection out."""
    profile = load_profile(profile_data)
    bundle = ComprehensiveProjection(
        RunConfig(horizon_years=15, n_paths=8, seed=1, outlook_paths=8)
    ).run(profile)

    assert bundle.series.years[0] == 2025
    assert bundle.complexity.score >= 0.0
