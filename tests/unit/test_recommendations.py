"""
Unit tests for recommendations.py module.

Tests allocation sizing, impact scoring, the action plan and the
protected scenario re-run.
"""

import numpy as np
import pytest

from heirloom.complexity import analyze_complexity
from heirloom.family import FamilyImpactCalculator
from heirloom.lifecycle import DEFAULT_ASSUMPTIONS, LifecycleProjector
from heirloom.profile import load_profile
from heirloom.recommendations import (
    IMPROVEMENTS,
    PROTECTION_ADJUSTMENT,
    ImmediateAction,
    Recommendations,
    emergency_fund_amount,
    generate_recommendations,
    insurance_coverage,
    protected_scenario,
    recommendation_impact,
    target_allocation,
)
from heirloom.rng import make_source


def _household(age, risk="moderate"):
    return load_profile({
        "core_identity": {"age": age},
        "financial_foundation": {"current_net_worth": 1_000_000, "annual_income": 500_000},
        "behavioral": {"risk_tolerance": risk},
    })


# ---------------------------------------------------------------------------
# Sizing
# ---------------------------------------------------------------------------

class TestSizing:
    """Tests for emergency fund, insurance and target allocation."""

    def test_emergency_fund(self, example_profile):
        # 1,200,000 * 0.6 / 12 * 6
        assert emergency_fund_amount(example_profile, 0.0) == pytest.approx(360_000)
        assert emergency_fund_amount(example_profile, 10.0) == pytest.approx(720_000)

    def test_insurance_coverage(self, example_profile):
        assert insurance_coverage(example_profile) == pytest.approx(12_000_000)

    @pytest.mark.parametrize("age", [25, 35, 50, 65, 90])
    @pytest.mark.parametrize("risk", ["conservative", "moderate", "aggressive"])
    def test_allocation_sums_to_one(self, age, risk):
        weights = target_allocation(_household(age, risk)).weights()
        assert sum(weights.values()) == pytest.approx(1.0)

    def test_young_moderate_is_all_equity(self):
        allocation = target_allocation(_household(25))

        assert allocation.stocks == pytest.approx(0.80)
        assert allocation.bonds == pytest.approx(0.0)
        assert allocation.real_estate == pytest.approx(0.15)
        assert allocation.alternatives == pytest.approx(0.05)

    def test_old_moderate_caps_debt(self):
        # equity floor 0.2, debt cap 0.6, normalized by 0.8
        allocation = target_allocation(_household(70))
        assert allocation.bonds == pytest.approx(0.75)
        assert allocation.stocks == pytest.approx(0.20)

    def test_older_is_more_conservative(self):
        bonds = [target_allocation(_household(age)).bonds for age in (30, 40, 50, 60)]
        assert bonds == sorted(bonds)

    def test_risk_tolerance_shifts_debt(self):
        conservative = target_allocation(_household(45, "conservative")).bonds
        moderate = target_allocation(_household(45, "moderate")).bonds
        aggressive = target_allocation(_household(45, "aggressive")).bonds
        assert conservative > moderate > aggressive


class TestRecommendationImpact:
    """Tests for the impact score."""

    def test_critical_with_cost(self):
        action = ImmediateAction("x", "y", "critical", 2, 100_000, 30)
        # (20 + 20 / 1) * 3
        assert recommendation_impact(action) == 120

    def test_free_action(self):
        action = ImmediateAction("x", "y", "critical", 2, 0.0, 30)
        assert recommendation_impact(action) == 60

    def test_cheaper_scores_higher(self):
        cheap = ImmediateAction("x", "y", "high", 1, 50_000, 30)
        dear = ImmediateAction("x", "y", "high", 1, 500_000, 30)
        assert recommendation_impact(cheap) > recommendation_impact(dear)

    def test_medium_weight(self):
        action = ImmediateAction("x", "y", "medium", 1, 200_000, 30)
        assert recommendation_impact(action) == 15


# ---------------------------------------------------------------------------
# Action plan
# ---------------------------------------------------------------------------

class TestGenerateRecommendations:
    """Tests for the assembled action plan."""

    @pytest.fixture
    def plan(self, family_profile):
        return generate_recommendations(family_profile, analyze_complexity(family_profile))

    def test_returns_recommendations(self, plan):
        assert isinstance(plan, Recommendations)
        assert sum(plan.target_allocation.weights().values()) == pytest.approx(1.0)

    def test_critical_actions_first(self, plan):
        priorities = [a.priority for a in plan.immediate]
        assert priorities[:2] == ["critical", "critical"]
        assert set(priorities[2:]) == {"high"}

    def test_actions_are_scored(self, plan):
        for action in plan.immediate:
            assert action.impact_score == recommendation_impact(action)
            assert action.impact_score > 0

    def test_rebalance_when_allocation_drifts(self, plan, example_profile):
        categories = [a.category for a in plan.immediate]
        assert "investment_optimization" in categories

        # default 60/30 allocation is within 10 points of the target at 35
        simple = generate_recommendations(example_profile, analyze_complexity(example_profile))
        assert "investment_optimization" not in [a.category for a in simple.immediate]

    def test_education_action_only_with_children(self, example_profile):
        with_child = generate_recommendations(example_profile, analyze_complexity(example_profile))
        education = [a for a in with_child.immediate if a.category == "education_planning"]
        assert len(education) == 1
        assert "Asha" in education[0].action

        childless = _household(35)
        plan = generate_recommendations(childless, analyze_complexity(childless))
        assert "education_planning" not in [a.category for a in plan.immediate]

    def test_short_term_actions(self, family_profile, example_profile):
        complexity = analyze_complexity(family_profile)
        plan = generate_recommendations(family_profile, complexity)
        coordination = [a for a in plan.short_term if a.category == "family_coordination"]

        assert len(coordination) == min(3, len(complexity.opportunities))
        assert len(plan.short_term) == len(coordination) + 3
        assert plan.short_term[-1].category == "parent_care_planning"

        simple = generate_recommendations(example_profile, analyze_complexity(example_profile))
        assert "parent_care_planning" not in [a.category for a in simple.short_term]

    def test_long_term_actions(self, plan, example_profile):
        categories = [a.category for a in plan.long_term]
        assert categories == [
            "estate_planning",
            "retirement_planning",
            "family_coordination",
            "investment_optimization",
        ]
        assert str(DEFAULT_ASSUMPTIONS.retirement_age) in plan.long_term[1].expected_benefit

        simple = generate_recommendations(example_profile, analyze_complexity(example_profile))
        assert len(simple.long_term) == 3

    def test_insights(self, plan, example_profile):
        assert any("siblings" in s for s in plan.insights)
        assert any("financial advisor" in s for s in plan.insights)

        simple = generate_recommendations(example_profile, analyze_complexity(example_profile))
        assert not any("siblings" in s for s in simple.insights)

    def test_fund_and_coverage_match_sizing(self, plan, family_profile):
        score = analyze_complexity(family_profile).score
        assert plan.emergency_fund == pytest.approx(emergency_fund_amount(family_profile, score))
        assert plan.insurance_coverage == pytest.approx(insurance_coverage(family_profile))

    def test_zero_income_household(self, broke_profile):
        plan = generate_recommendations(broke_profile, analyze_complexity(broke_profile))
        assert plan.emergency_fund == 0.0
        assert plan.immediate[0].priority == "critical"


# ---------------------------------------------------------------------------
# Protected scenario
# ---------------------------------------------------------------------------

class TestProtectedScenario:
    """Tests for the protected re-run."""

    def test_catalog(self):
        assert [i.action for i in IMPROVEMENTS] == [
            "Emergency Fund", "Insurance Coverage", "Investment Optimization",
        ]
        assert PROTECTION_ADJUSTMENT.return_delta > 0
        assert PROTECTION_ADJUSTMENT.event_multiplier < 1

    def test_never_worse_than_baseline(self, strained_profile, horizon, seed):
        base = LifecycleProjector().project(strained_profile, horizon, make_source(seed))
        protected = protected_scenario(strained_profile, base, seed)

        assert base.extinction_year is not None
        assert protected.additional_years >= 0
        assert len(protected.series) >= len(base)
        for b, p in zip(base.points, protected.series.points):
            assert p.wealth >= b.wealth - 1e-6
        if protected.extinction_year is not None:
            assert protected.extinction_year == base.extinction_year + protected.additional_years

    def test_inheritance_not_lower(self, strained_profile, horizon, seed):
        calc = FamilyImpactCalculator()
        base = LifecycleProjector().project(strained_profile, horizon, make_source(seed))
        protected = protected_scenario(strained_profile, base, seed, family=calc)

        baseline_pool = calc.calculate(strained_profile, base).grandchildren.total_inheritance
        assert protected.grandchildren_inheritance >= baseline_pool

    def test_surviving_household(self, example_profile, seed):
        base = LifecycleProjector().project(example_profile, 10, make_source(seed))
        protected = protected_scenario(example_profile, base, seed)

        assert base.extinction_year is None
        assert protected.extinction_year is None
        assert protected.additional_years == 0
        assert protected.series.horizon_years == 10

    def test_catalog_totals(self, example_profile, seed):
        base = LifecycleProjector().project(example_profile, 10, make_source(seed))
        protected = protected_scenario(example_profile, base, seed)

        assert protected.estimated_extension == 9
        assert protected.total_cost_savings == pytest.approx(4_000_000)

    def test_deterministic(self, family_profile, horizon, seed):
        base = LifecycleProjector().project(family_profile, horizon, make_source(seed))
        a = protected_scenario(family_profile, base, seed)
        b = protected_scenario(family_profile, base, seed)
        np.testing.assert_array_equal(a.series.wealth, b.series.wealth)
