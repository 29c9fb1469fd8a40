"""
Household recommendations for Heirloom.

Purpose
-------
Turns a household profile and its complexity analysis into a ranked
action plan, then measures what the plan is worth by re-running the
baseline projection with the plan in place.

    immediate  : critical and high-priority actions with a cost and a deadline
    short_term : coordination, tax, investment and care actions (months)
    long_term  : estate, retirement and diversification actions (years)

Protected scenario
------------------
The protected run applies :data:`PROTECTION_ADJUSTMENT` (higher returns
from rebalancing, half the uncovered emergencies thanks to an emergency
fund and insurance) and re-runs the projector with the baseline seed. It
sees the same draws as the baseline, so its wealth is pathwise at least
the baseline's and its extinction year is never earlier.

Example
-------
>>> from heirloom.complexity import analyze_complexity
>>> from heirloom.recommendations import generate_recommendations
>>> plan = generate_recommendations(profile, analyze_complexity(profile))
>>> plan.immediate[0].priority
'critical'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from .complexity import ComplexityAnalysis
from .constants import EDUCATION_COSTS
from .family import FamilyImpactCalculator
from .lifecycle import (
    DEFAULT_ASSUMPTIONS,
    LifecycleAssumptions,
    LifecycleProjector,
    ProjectionSeries,
    ScenarioAdjustment,
    adjust_assumptions,
)
from .profile import HouseholdProfile, InvestmentAllocation
from .rng import make_source

logger = logging.getLogger(__name__)

__all__ = [
    "PRIORITY_WEIGHTS",
    "PROTECTION_ADJUSTMENT",
    "IMPROVEMENTS",
    "ImmediateAction",
    "PlannedAction",
    "Recommendations",
    "Improvement",
    "ProtectedScenario",
    "emergency_fund_amount",
    "insurance_coverage",
    "target_allocation",
    "recommendation_impact",
    "personalized_insights",
    "generate_recommendations",
    "protected_scenario",
]

PRIORITY_WEIGHTS: Mapping[str, int] = MappingProxyType({"critical": 3, "high": 2, "medium": 1})

EXPENSE_RATIO = 0.6
EMERGENCY_MONTHS = 6
INSURANCE_MULTIPLE = 10.0
INSURANCE_PREMIUM = 25_000.0
REBALANCING_COST = 100_000.0
REBALANCING_DRIFT = 0.10
EDUCATION_SEED_FRACTION = 0.10
# Cost scale of the impact score: one unit per 100,000 spent.
COST_UNIT = 100_000.0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImmediateAction:
    """
    An action to take now.

    Attributes
    ----------
    timeline_impact : int
        Years of wealth runway the action is expected to add.
    deadline_days : int
        Days from today by which to act.
    impact_score : int
        See :func:`recommendation_impact`.
    """
    category: str
    action: str
    priority: str
    timeline_impact: int
    cost_to_implement: float
    deadline_days: int
    impact_score: int = 0


@dataclass(frozen=True)
class PlannedAction:
    category: str
    action: str
    timeframe: str
    expected_benefit: str


@dataclass(frozen=True)
class Recommendations:
    immediate: Tuple[ImmediateAction, ...]
    short_term: Tuple[PlannedAction, ...]
    long_term: Tuple[PlannedAction, ...]
    emergency_fund: float
    insurance_coverage: float
    target_allocation: InvestmentAllocation
    insights: Tuple[str, ...]


# ---------------------------------------------------------------------------
# Sizing
# ---------------------------------------------------------------------------

def emergency_fund_amount(profile: HouseholdProfile, complexity_score: float) -> float:
    """Six months of expenses at a 60% expense ratio, scaled up by complexity."""
    monthly_expenses = profile.annual_income * EXPENSE_RATIO / 12.0
    return monthly_expenses * EMERGENCY_MONTHS * (1.0 + complexity_score / 10.0)


def insurance_coverage(profile: HouseholdProfile) -> float:
    return profile.annual_income * INSURANCE_MULTIPLE


def target_allocation(profile: HouseholdProfile) -> InvestmentAllocation:
    """
    Age- and risk-based allocation.

    Equity starts at ``1 − (age − 25) / 40`` (at least 0.2), debt at
    ``(age − 25) / 40`` (at most 0.6). Conservative investors move 30% from
    equity towards debt and aggressive ones the reverse. After normalizing,
    equity is split 80/15/5 across stocks, real estate and alternatives.
    """
    age = profile.age
    equity = min(1.0, max(0.2, 1.0 - (age - 25) / 40.0))
    debt = min(0.6, max(0.0, (age - 25) / 40.0))

    risk = profile.behavioral.risk_tolerance
    if risk == "conservative":
        equity, debt = equity * 0.7, debt * 1.3
    elif risk == "aggressive":
        equity, debt = equity * 1.3, debt * 0.7

    total = equity + debt
    equity, debt = equity / total, debt / total
    return InvestmentAllocation(
        stocks=equity * 0.80,
        bonds=debt,
        real_estate=equity * 0.15,
        alternatives=equity * 0.05,
    )


def recommendation_impact(action: ImmediateAction) -> int:
    """
    Impact score of an immediate action.

    Ten points per year of runway, plus the same again per 100,000 of
    cost (cheaper actions score higher), times the priority weight.
    """
    impact = action.timeline_impact * 10.0
    if action.cost_to_implement > 0:
        impact += (action.timeline_impact * 10.0) / (action.cost_to_implement / COST_UNIT)
    impact *= PRIORITY_WEIGHTS.get(action.priority, 1)
    return int(round(impact))


def _scored(action: ImmediateAction) -> ImmediateAction:
    return replace(action, impact_score=recommendation_impact(action))


# ---------------------------------------------------------------------------
# Action plan
# ---------------------------------------------------------------------------

def _immediate(profile: HouseholdProfile, complexity_score: float) -> List[ImmediateAction]:
    fund = emergency_fund_amount(profile, complexity_score)
    coverage = insurance_coverage(profile)
    actions = [
        ImmediateAction(
            "emergency_fund",
            f"Build emergency fund of {fund:,.0f} within 3 months",
            "critical", 2, fund, 30,
        ),
        ImmediateAction(
            "insurance_coverage",
            f"Purchase term life insurance with {coverage:,.0f} coverage",
            "critical", 3, INSURANCE_PREMIUM, 15,
        ),
    ]

    current = profile.financial_foundation.investment_allocation
    target = target_allocation(profile)
    drift = abs(current.stocks - target.stocks) + abs(current.bonds - target.bonds)
    if drift > REBALANCING_DRIFT:
        actions.append(ImmediateAction(
            "investment_optimization",
            f"Rebalance portfolio to {target.stocks:.0%} equity, {target.bonds:.0%} debt",
            "high", 1, REBALANCING_COST, 45,
        ))

    if profile.children:
        child = profile.children[0]
        cost = EDUCATION_COSTS[child.education_aspiration]
        actions.append(ImmediateAction(
            "education_planning",
            f"Start education fund for {child.name or 'first child'} with {cost:,.0f}",
            "high", 2, cost * EDUCATION_SEED_FRACTION, 90,
        ))

    # sorted() is stable, so equal priorities keep insertion order
    return sorted(actions, key=lambda a: PRIORITY_WEIGHTS[a.priority], reverse=True)


def _short_term(profile: HouseholdProfile, complexity: ComplexityAnalysis) -> List[PlannedAction]:
    actions = [
        PlannedAction(
            "family_coordination",
            f"Implement {opp.name.replace('_', ' ')}",
            opp.time_to_implement,
            f"Save {opp.potential_savings:.1%} of annual expenses",
        )
        for opp in complexity.opportunities[:3]
    ]
    actions.append(PlannedAction(
        "tax_optimization", "Optimize tax structure for investment and business income",
        "6 months", "Reduce tax liability by 15-20%",
    ))
    actions.append(PlannedAction(
        "investment_optimization", "Increase systematic monthly investments",
        "12 months", "Improve portfolio returns by 2-3% annually",
    ))
    if profile.family_care.parents:
        actions.append(PlannedAction(
            "parent_care_planning", "Research and budget for care facilities",
            "8 months", "Reduce care costs by 25-30% through coordination",
        ))
    return actions


def _long_term(profile: HouseholdProfile, retirement_age: int) -> List[PlannedAction]:
    actions = [
        PlannedAction(
            "estate_planning", "Plan for smooth wealth transfer to next generation",
            "2-3 years", "Ensure smooth wealth transfer and minimize taxes",
        ),
        PlannedAction(
            "retirement_planning", "Plan for post-retirement income sources",
            "5-10 years", f"Achieve financial independence by age {retirement_age}",
        ),
    ]
    if profile.family_care.siblings:
        actions.append(PlannedAction(
            "family_coordination", "Establish family investment pool",
            "3-5 years", "Create sustainable family wealth management system",
        ))
    actions.append(PlannedAction(
        "investment_optimization", "Diversify into international and alternative investments",
        "5-7 years", "Build globally diversified portfolio for better risk-adjusted returns",
    ))
    return actions


def personalized_insights(profile: HouseholdProfile, complexity: ComplexityAnalysis) -> Tuple[str, ...]:
    insights = []
    if complexity.score > 7:
        insights.append(
            "Your family situation is highly complex. Consider professional financial planning assistance."
        )
    if profile.age > 50:
        insights.append(
            "Focus on wealth preservation and retirement planning as you approach retirement age."
        )
    if len(profile.children) > 2:
        insights.append(
            "With multiple children, prioritize education planning and consider bulk purchase strategies."
        )
    if profile.family_care.parents:
        insights.append(
            "Coordinate with siblings for parent care to reduce costs and improve care quality."
        )
    if profile.core_identity.financial_sophistication == "beginner":
        insights.append(
            "Consider working with a financial advisor to improve your investment knowledge and strategy."
        )
    return tuple(insights)


def generate_recommendations(
    profile: HouseholdProfile,
    complexity: ComplexityAnalysis,
    assumptions: LifecycleAssumptions = DEFAULT_ASSUMPTIONS,
) -> Recommendations:
    """
    Build the household's action plan.

    Immediate actions are ordered critical first, then high; each carries
    its impact score. Opportunities from the complexity analysis become
    up to three short-term coordination actions.
    """
    immediate = tuple(_scored(a) for a in _immediate(profile, complexity.score))
    return Recommendations(
        immediate=immediate,
        short_term=tuple(_short_term(profile, complexity)),
        long_term=tuple(_long_term(profile, assumptions.retirement_age)),
        emergency_fund=emergency_fund_amount(profile, complexity.score),
        insurance_coverage=insurance_coverage(profile),
        target_allocation=target_allocation(profile),
        insights=personalized_insights(profile, complexity),
    )


# ---------------------------------------------------------------------------
# Protected scenario
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Improvement:
    action: str
    impact: str
    timeline_extension: int
    cost_savings: float


IMPROVEMENTS: Tuple[Improvement, ...] = (
    Improvement("Emergency Fund", "Reduces wealth volatility by 15%", 2, 500_000.0),
    Improvement("Insurance Coverage", "Protects against major wealth shocks", 3, 2_000_000.0),
    Improvement("Investment Optimization", "Improves returns by 2-3% annually", 4, 1_500_000.0),
)

PROTECTION_ADJUSTMENT = ScenarioAdjustment(
    "protected", return_delta=0.02, inflation_delta=0.0, event_multiplier=0.5
)


@dataclass(frozen=True)
class ProtectedScenario:
    """
    Baseline household with the recommendations in place.

    Attributes
    ----------
    extinction_year : int or None
        None when protected wealth survives the horizon.
    additional_years : int
        Protected minus baseline extinction year, each censored at the
        first year past the horizon. Never negative.
    grandchildren_inheritance : float
        Grandchildren pool read from the protected series.
    """
    improvements: Tuple[Improvement, ...]
    adjustment: ScenarioAdjustment
    series: ProjectionSeries
    extinction_year: Optional[int]
    additional_years: int
    grandchildren_inheritance: float

    @property
    def estimated_extension(self) -> int:
        """Runway the improvement catalog claims, for comparison with the measured one."""
        return sum(i.timeline_extension for i in self.improvements)

    @property
    def total_cost_savings(self) -> float:
        return float(sum(i.cost_savings for i in self.improvements))


def protected_scenario(
    profile: HouseholdProfile,
    baseline: ProjectionSeries,
    seed: int,
    *,
    assumptions: LifecycleAssumptions = DEFAULT_ASSUMPTIONS,
    complexity_score: float = 5.0,
    stochastic: bool = True,
    family: Optional[FamilyImpactCalculator] = None,
) -> ProtectedScenario:
    """
    Re-run ``baseline`` with :data:`PROTECTION_ADJUSTMENT` applied.

    Parameters
    ----------
    profile : HouseholdProfile
    baseline : ProjectionSeries
        Baseline run produced with ``seed``; its horizon is reused.
    seed : int
        Seed of the baseline run.
    family : FamilyImpactCalculator, optional
        Calculator for the grandchildren inheritance.
    """
    horizon = baseline.horizon_years
    series = LifecycleProjector(adjust_assumptions(assumptions, PROTECTION_ADJUSTMENT)).project(
        profile, horizon, make_source(seed),
        complexity_score=complexity_score, stochastic=stochastic,
    )
    censor = profile.base_year + horizon
    base_year = baseline.extinction_year if baseline.extinction_year is not None else censor
    protected_year = series.extinction_year if series.extinction_year is not None else censor

    calculator = family or FamilyImpactCalculator()
    impact = calculator.calculate(profile, series)
    logger.debug("Protected run: extinction %s (+%d years)", series.extinction_year, protected_year - base_year)
    return ProtectedScenario(
        improvements=IMPROVEMENTS,
        adjustment=PROTECTION_ADJUSTMENT,
        series=series,
        extinction_year=series.extinction_year,
        additional_years=protected_year - base_year,
        grandchildren_inheritance=impact.grandchildren.total_inheritance,
    )
