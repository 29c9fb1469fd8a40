"""
Lifecycle wealth projector for Heirloom.

Purpose
-------
Turns a HouseholdProfile into a year-by-year ProjectionSeries of income,
expenses, investment return, lifecycle costs, net cash flow and wealth,
and detects the extinction year (first point with wealth <= 0).

Timeline
--------
Point k describes calendar year ``base_year + k``:

    wealth[0]   = current net worth
    flow[k]     = income[k] − expenses[k] + return[k] − lifecycle_costs[k]
    wealth[k+1] = max(0, wealth[k] + flow[k])

The run stops after the first point whose wealth is <= 0. When the
last horizon year's cash flow exhausts wealth, a closing point for
``base_year + horizon_years`` records the zero, so a series holds at most
``horizon_years + 1`` points and never hides an exhaustion inside the
horizon.

Per-year components
-------------------
- Income: age-banded growth (early career > mid career > late career),
  a one-off drop on reaching retirement age, negative growth afterwards.
- Expenses: a location-dependent fraction of the opening income, inflated,
  plus surcharges per dependent child and per parent in care.
- Investment return: allocation-weighted base return × risk multiplier,
  minus fee and tax drag, plus symmetric uniform noise.
- Lifecycle costs: college tuition while a child is 18-22, parent care
  while a parent is dependent or elderly, random health and family
  emergencies.

Every year consumes the same number of uniform draws regardless of which
events fire, so runs that differ only in assumptions stay comparable
draw for draw.

Example
-------
>>> from heirloom.lifecycle import LifecycleProjector
>>> from heirloom.rng import make_source
>>> series = LifecycleProjector().project(profile, 75, make_source(42))
>>> series.points[0].wealth == profile.net_worth
True
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import EDUCATION_COSTS
from .exceptions import ConfigurationError
from .profile import HouseholdProfile, Parent
from .rng import UniformSource, centered_uniform

logger = logging.getLogger(__name__)

__all__ = [
    "LifecycleAssumptions",
    "DEFAULT_ASSUMPTIONS",
    "ScenarioAdjustment",
    "adjust_assumptions",
    "AnnualProjectionPoint",
    "ProjectionSeries",
    "LifecycleProjector",
    "find_extinction_year",
    "point_at_or_after",
    "confidence_level",
]

COST_KEYS: Tuple[str, ...] = (
    "education",
    "parent_care",
    "health_emergency",
    "family_emergency",
    "fees_and_taxes",
    "lifestyle_inflation",
)


# ---------------------------------------------------------------------------
# Assumptions
# ---------------------------------------------------------------------------

def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class LifecycleAssumptions:
    """
    Immutable economic and household assumptions for the projector.

    Monetary surcharges and event costs are fractions of the opening
    annual income so the model is independent of the reporting currency.
    """
    # Income
    early_career_age: int = 35
    mid_career_age: int = 50
    retirement_age: int = 60
    early_career_growth: float = 0.05
    mid_career_growth: float = 0.03
    late_career_growth: float = 0.01
    retirement_drop: float = -0.80
    retirement_growth: float = -0.05

    # Expenses
    expense_ratios: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "metro": 0.70, "tier2": 0.65, "tier3": 0.60, "rural": 0.55,
    }))
    expense_scale: float = 1.0
    general_inflation: float = 0.035
    child_surcharge: float = 0.05
    dependent_child_ages: Tuple[int, int] = (3, 22)
    parent_support_surcharge: float = 0.02

    # Education
    college_ages: Tuple[int, int] = (18, 22)
    degree_costs: Mapping[str, float] = field(default_factory=lambda: EDUCATION_COSTS)
    education_inflation: float = 0.06

    # Parent care
    parent_care_age: int = 75
    parent_max_age: int = 95
    parent_care_costs: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "independent": 0.0,
        "occasional_support": 0.03,
        "regular_support": 0.08,
        "full_dependency": 0.15,
    }))
    elder_care_floor: float = 0.04
    parent_health_multipliers: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "excellent": 0.8, "good": 1.0, "fair": 1.3, "poor": 1.7,
    }))
    healthcare_inflation: float = 0.055
    parent_care_scale: float = 1.0

    # Investments
    asset_returns: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "stocks": 0.10, "bonds": 0.06, "real_estate": 0.08, "alternatives": 0.09,
    }))
    asset_volatilities: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "stocks": 0.28, "bonds": 0.10, "real_estate": 0.18, "alternatives": 0.25,
    }))
    risk_multipliers: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "conservative": 0.7, "moderate": 1.0, "aggressive": 1.3,
    }))
    fee_drag: float = 0.01
    tax_drag: float = 0.015
    return_noise: float = 0.05
    return_delta: float = 0.0

    # Random life events
    health_emergency_age: int = 40
    health_emergency_slope: float = 0.005
    health_emergency_cap: float = 0.10
    health_emergency_cost: Tuple[float, float] = (0.05, 0.25)
    family_emergency_probability: float = 0.03
    family_emergency_cost: Tuple[float, float] = (0.02, 0.10)
    event_multiplier: float = 1.0

    # Confidence
    confidence_start: float = 0.95
    confidence_decay: float = 0.012
    complexity_penalty: float = 0.06
    confidence_floor: float = 0.25

    def __post_init__(self) -> None:
        if self.event_multiplier < 0:
            raise ConfigurationError(f"event_multiplier must be non-negative, got {self.event_multiplier}")
        if self.expense_scale < 0 or self.parent_care_scale < 0:
            raise ConfigurationError("expense_scale and parent_care_scale must be non-negative")
        if self.retirement_age <= 0:
            raise ConfigurationError(f"retirement_age must be positive, got {self.retirement_age}")

    def portfolio_return(self, weights: Mapping[str, float], risk_tolerance: str) -> float:
        """Expected annual return net of fee and tax drag, before noise."""
        gross = sum(self.asset_returns[k] * w for k, w in weights.items())
        return gross * self.risk_multipliers[risk_tolerance] + self.return_delta - self.fee_drag - self.tax_drag

    def portfolio_volatility(self, weights: Mapping[str, float]) -> float:
        """Allocation-weighted volatility (no diversification credit)."""
        return sum(self.asset_volatilities[k] * w for k, w in weights.items())


DEFAULT_ASSUMPTIONS = LifecycleAssumptions()


@dataclass(frozen=True)
class ScenarioAdjustment:
    """Parameter shifts defining a scenario variant."""
    name: str
    return_delta: float = 0.0
    inflation_delta: float = 0.0
    event_multiplier: float = 1.0


def adjust_assumptions(
    assumptions: LifecycleAssumptions,
    adjustment: ScenarioAdjustment,
) -> LifecycleAssumptions:
    """Return new assumptions shifted by ``adjustment``; the input is unchanged."""
    return replace(
        assumptions,
        return_delta=assumptions.return_delta + adjustment.return_delta,
        general_inflation=assumptions.general_inflation + adjustment.inflation_delta,
        education_inflation=assumptions.education_inflation + adjustment.inflation_delta,
        healthcare_inflation=assumptions.healthcare_inflation + adjustment.inflation_delta,
        event_multiplier=assumptions.event_multiplier * adjustment.event_multiplier,
    )


# ---------------------------------------------------------------------------
# Projection results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnnualProjectionPoint:
    """State of the household in one calendar year."""
    year: int
    age: int
    wealth: float
    income: float
    expenses: float
    investment_return: float
    lifecycle_costs: float
    net_cash_flow: float
    events: Tuple[str, ...] = ()
    confidence: float = 1.0
    cost_breakdown: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectionSeries:
    """Year-ordered sequence of projection points."""
    points: Tuple[AnnualProjectionPoint, ...]
    base_year: int
    horizon_years: int

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[AnnualProjectionPoint]:
        return iter(self.points)

    def __getitem__(self, idx: int) -> AnnualProjectionPoint:
        return self.points[idx]

    @property
    def years(self) -> List[int]:
        return [p.year for p in self.points]

    @property
    def wealth(self) -> np.ndarray:
        return np.array([p.wealth for p in self.points])

    @property
    def extinction_year(self) -> Optional[int]:
        return find_extinction_year(self.points)

    @property
    def is_extinct(self) -> bool:
        return self.extinction_year is not None

    def total_cost(self, key: str) -> float:
        """Sum of one cost-breakdown entry over the whole series."""
        return float(sum(p.cost_breakdown.get(key, 0.0) for p in self.points))

    def point_at_or_after(self, year: int) -> Optional[AnnualProjectionPoint]:
        return point_at_or_after(self.points, year)

    def to_frame(self) -> pd.DataFrame:
        """One row per year with the numeric fields and joined event names."""
        rows = [
            {
                "year": p.year,
                "age": p.age,
                "wealth": p.wealth,
                "income": p.income,
                "expenses": p.expenses,
                "investment_return": p.investment_return,
                "lifecycle_costs": p.lifecycle_costs,
                "net_cash_flow": p.net_cash_flow,
                "confidence": p.confidence,
                "events": "; ".join(p.events),
            }
            for p in self.points
        ]
        return pd.DataFrame(rows).set_index("year") if rows else pd.DataFrame()


def find_extinction_year(points: Sequence[AnnualProjectionPoint]) -> Optional[int]:
    """Year of the first point with wealth <= 0, or None if wealth survives."""
    for point in points:
        if point.wealth <= 0:
            return point.year
    return None


def point_at_or_after(
    points: Sequence[AnnualProjectionPoint],
    year: int,
) -> Optional[AnnualProjectionPoint]:
    """
    First point whose year is >= ``year``.

    ``points`` must be sorted by year. Ties resolve to the first index
    satisfying the predicate. A year beyond the last point returns the last
    point; an empty sequence returns None.
    """
    if not points:
        return None
    idx = bisect.bisect_left([p.year for p in points], year)
    return points[min(idx, len(points) - 1)]


def confidence_level(
    years_elapsed: int,
    complexity_score: float,
    assumptions: LifecycleAssumptions = DEFAULT_ASSUMPTIONS,
) -> float:
    """Confidence decaying with elapsed years and household complexity."""
    a = assumptions
    raw = a.confidence_start - a.confidence_decay * years_elapsed - (complexity_score - 5.0) * a.complexity_penalty
    return float(min(a.confidence_start, max(a.confidence_floor, raw)))


# ---------------------------------------------------------------------------
# Projector
# ---------------------------------------------------------------------------

class LifecycleProjector:
    """
    Deterministic-given-a-source year-by-year wealth engine.

    Parameters
    ----------
    assumptions : LifecycleAssumptions, optional
        Captured at construction and never mutated.
    """

    def __init__(self, assumptions: LifecycleAssumptions = DEFAULT_ASSUMPTIONS):
        self.assumptions = assumptions

    # -- income -------------------------------------------------------------

    def income_growth(self, previous_age: int, age: int) -> float:
        """Growth applied when moving from ``previous_age`` into ``age``."""
        a = self.assumptions
        if previous_age < a.retirement_age <= age:
            return a.retirement_drop
        if age >= a.retirement_age:
            return a.retirement_growth
        if age < a.early_career_age:
            return a.early_career_growth
        if age < a.mid_career_age:
            return a.mid_career_growth
        return a.late_career_growth

    # -- costs --------------------------------------------------------------

    def _parent_in_care(self, parent: Parent, parent_age: int) -> bool:
        if parent_age > self.assumptions.parent_max_age:
            return False
        return parent.financial_independence != "independent" or parent_age >= self.assumptions.parent_care_age

    def _parent_care_cost(self, parent: Parent, parent_age: int, share: float, base_income: float, k: int) -> float:
        a = self.assumptions
        fraction = a.parent_care_costs[parent.financial_independence]
        if parent_age >= a.parent_care_age:
            fraction = max(fraction, a.elder_care_floor)
        fraction *= a.parent_health_multipliers[parent.health_status]
        return fraction * base_income * share * a.parent_care_scale * (1.0 + a.healthcare_inflation) ** k

    def _closing_point(self, profile: HouseholdProfile, k: int, complexity_score: float) -> AnnualProjectionPoint:
        """Zero-wealth point for year ``base_year + k`` with no flows."""
        return AnnualProjectionPoint(
            year=profile.base_year + k,
            age=profile.age + k,
            wealth=0.0,
            income=0.0,
            expenses=0.0,
            investment_return=0.0,
            lifecycle_costs=0.0,
            net_cash_flow=0.0,
            events=("Wealth exhausted",),
            confidence=confidence_level(k, complexity_score, self.assumptions),
            cost_breakdown=MappingProxyType({key: 0.0 for key in COST_KEYS}),
        )

    # -- main loop ----------------------------------------------------------

    def project(
        self,
        profile: HouseholdProfile,
        horizon_years: int,
        source: UniformSource,
        *,
        complexity_score: float = 5.0,
        stochastic: bool = True,
    ) -> ProjectionSeries:
        """
        Project ``profile`` over ``horizon_years`` years.

        Parameters
        ----------
        profile : HouseholdProfile
            Validated household.
        horizon_years : int
            Number of projected years (>= 1).
        source : UniformSource
            Uniform source for return noise and life events.
        complexity_score : float, default 5.0
            Household complexity in [0, 10]; lowers the confidence level.
        stochastic : bool, default True
            When False, return noise and random events are switched off.
            Draws are still consumed.

        Returns
        -------
        ProjectionSeries
            Truncated after the first point with wealth <= 0; at most
            ``horizon_years + 1`` points.
        """
        if horizon_years < 1:
            raise ValueError(f"horizon_years must be >= 1, got {horizon_years}")

        a = self.assumptions
        age0 = profile.age
        base_income = profile.annual_income
        base_expenses = base_income * a.expense_ratios[profile.core_identity.location] * a.expense_scale
        rate = a.portfolio_return(
            profile.financial_foundation.investment_allocation.weights(),
            profile.behavioral.risk_tolerance,
        )
        drag = a.fee_drag + a.tax_drag
        n_siblings = len(profile.family_care.siblings)
        care_share = 1.0 if profile.family_care.family_coordination == "poor" else 1.0 / (1 + n_siblings)
        college_years = a.college_ages[1] - a.college_ages[0] + 1

        points: List[AnnualProjectionPoint] = []
        wealth = float(profile.net_worth)
        income = float(base_income)

        for k in range(horizon_years):
            year = profile.base_year + k
            age = age0 + k
            events: List[str] = []
            if k > 0:
                income = max(0.0, income * (1.0 + self.income_growth(age - 1, age)))
                if age - 1 < a.retirement_age <= age:
                    events.append("Retirement")

            inflation = (1.0 + a.general_inflation) ** k
            education_factor = (1.0 + a.education_inflation) ** k

            # expenses and dependants
            expenses = base_expenses * inflation
            education = 0.0
            lo_dep, hi_dep = a.dependent_child_ages
            lo_col, hi_col = a.college_ages
            for child in profile.children:
                child_age = child.age + k
                if lo_dep <= child_age <= hi_dep:
                    expenses += a.child_surcharge * base_income * inflation
                if lo_col <= child_age <= hi_col:
                    education += a.degree_costs[child.education_aspiration] / college_years * education_factor
                    events.append(f"{child.name or 'Child'} college ({child.education_aspiration})")

            parent_care = 0.0
            for parent in profile.family_care.parents:
                parent_age = parent.age + k
                if self._parent_in_care(parent, parent_age):
                    expenses += a.parent_support_surcharge * base_income * inflation * a.parent_care_scale
                    cost = self._parent_care_cost(parent, parent_age, care_share, base_income, k)
                    if cost > 0:
                        parent_care += cost
                        events.append(f"Parent care: {parent.name or 'Parent'}")

            # investment return
            noise = centered_uniform(source) * a.return_noise
            year_rate = rate + (noise if stochastic else 0.0)
            investment_return = wealth * year_rate

            # random life events, drawn every year
            p_health = min(a.health_emergency_cap, max(0.0, (age - a.health_emergency_age) * a.health_emergency_slope))
            health_hit, health_size = source.uniform(), source.uniform()
            family_hit, family_size = source.uniform(), source.uniform()
            health_cost = 0.0
            family_cost = 0.0
            if stochastic and health_hit < p_health * a.event_multiplier:
                lo, hi = a.health_emergency_cost
                health_cost = base_income * (lo + health_size * (hi - lo)) * inflation
                events.append("Health emergency")
            if stochastic and family_hit < a.family_emergency_probability * a.event_multiplier:
                lo, hi = a.family_emergency_cost
                family_cost = base_income * (lo + family_size * (hi - lo)) * inflation
                events.append("Family emergency")

            lifecycle_costs = education + parent_care + health_cost + family_cost
            net_cash_flow = income - expenses + investment_return - lifecycle_costs

            points.append(AnnualProjectionPoint(
                year=year,
                age=age,
                wealth=wealth,
                income=income,
                expenses=expenses,
                investment_return=investment_return,
                lifecycle_costs=lifecycle_costs,
                net_cash_flow=net_cash_flow,
                events=tuple(events),
                confidence=confidence_level(k, complexity_score, a),
                cost_breakdown=MappingProxyType({
                    "education": education,
                    "parent_care": parent_care,
                    "health_emergency": health_cost,
                    "family_emergency": family_cost,
                    "fees_and_taxes": max(0.0, wealth) * drag,
                    "lifestyle_inflation": base_expenses * (inflation - 1.0),
                }),
            ))

            if wealth <= 0:
                logger.debug("Wealth exhausted in %d (age %d)", year, age)
                break
            wealth = max(0.0, wealth + net_cash_flow)
        else:
            if wealth <= 0:
                points.append(self._closing_point(profile, horizon_years, complexity_score))
                logger.debug("Wealth exhausted in %d (age %d)", points[-1].year, points[-1].age)

        return ProjectionSeries(
            points=tuple(points),
            base_year=profile.base_year,
            horizon_years=horizon_years,
        )
