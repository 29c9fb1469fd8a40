"""
Family impact calculator for Heirloom.

Purpose
-------
Converts the household's wealth at death into what actually reaches the
next two generations:

    estate_tax         = max(0, W − exemption) × rate
    transfer_costs     = W × transfer_cost_rate
    net_transfer       = W − estate_tax − transfer_costs
    effective_transfer = net_transfer × planning_efficiency
    per_child          = effective_transfer / max(1, n_children)

Grandchildren receive a fixed share of the effective transfer, split over
an expected count of ``max(1, 1.5 × n_children)``; their college shortfall
compares that inheritance against a degree cost inflated to the expected
college-entry year (30 years after the death year).

Results are rebuilt from a single wealth-at-death value and are never
mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .constants import (
    ASSUMED_DEATH_AGE,
    COLLEGE_ENTRY_OFFSET,
    EDUCATION_COSTS,
    EDUCATION_INFLATION,
    ESTATE_TAX_EXEMPTION,
    ESTATE_TAX_RATE,
    GRANDCHILDREN_PER_CHILD,
    GRANDCHILDREN_SHARE,
    TRANSFER_COST_RATE,
)
from .lifecycle import ProjectionSeries, point_at_or_after
from .profile import HouseholdProfile

logger = logging.getLogger(__name__)

__all__ = [
    "EstateAssumptions",
    "TodaySnapshot",
    "InheritanceImpact",
    "GrandchildrenImpact",
    "FamilyImpactResult",
    "FamilyImpactCalculator",
    "wealth_status",
]

# Lower bound of each tier, richest first.
STATUS_TIERS: Tuple[Tuple[float, str], ...] = (
    (100_000_000.0, "Ultra High Net Worth"),
    (10_000_000.0, "High Net Worth"),
    (5_000_000.0, "Affluent"),
    (2_000_000.0, "Upper Middle Class"),
    (500_000.0, "Middle Class"),
)
DEFAULT_STATUS = "Building Wealth"


def wealth_status(net_worth: float) -> str:
    """Status tier for a net worth."""
    for floor, label in STATUS_TIERS:
        if net_worth >= floor:
            return label
    return DEFAULT_STATUS


@dataclass(frozen=True)
class EstateAssumptions:
    """Tax, cost and planning parameters captured by the calculator."""
    exemption: float = ESTATE_TAX_EXEMPTION
    tax_rate: float = ESTATE_TAX_RATE
    transfer_cost_rate: float = TRANSFER_COST_RATE
    education_costs: Mapping[str, float] = field(default_factory=lambda: EDUCATION_COSTS)
    education_inflation: float = EDUCATION_INFLATION
    grandchildren_per_child: float = GRANDCHILDREN_PER_CHILD
    grandchildren_share: float = GRANDCHILDREN_SHARE
    college_entry_offset: int = COLLEGE_ENTRY_OFFSET
    sophistication_efficiency: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({
        "expert": 0.90, "good": 0.80, "moderate": 0.70, "beginner": 0.60,
    }))
    approach_adjustments: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({
        "detailed_research": 0.05,
        "important_overwhelming": -0.05,
        "delegate_experts": 0.03,
        "avoid_thinking": -0.10,
    }))
    coordination_adjustments: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({
        "excellent": 0.05, "poor": -0.10,
    }))
    efficiency_bounds: Tuple[float, float] = (0.5, 0.95)


DEFAULT_ESTATE = EstateAssumptions()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TodaySnapshot:
    net_worth: float
    status: str


@dataclass(frozen=True)
class InheritanceImpact:
    death_year: int
    wealth_at_death: float
    estate_tax: float
    transfer_costs: float
    net_transfer: float
    planning_efficiency: float
    effective_transfer: float
    per_child: float
    per_child_amounts: Tuple[Tuple[str, float], ...] = ()


@dataclass(frozen=True)
class GrandchildrenImpact:
    estimated_count: float
    total_inheritance: float
    per_grandchild_inheritance: float
    education_tier: str
    college_year: int
    future_education_cost: float
    college_shortfall: float


@dataclass(frozen=True)
class FamilyImpactResult:
    today: TodaySnapshot
    inheritance: InheritanceImpact
    grandchildren: GrandchildrenImpact


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class FamilyImpactCalculator:
    """
    Estate and inheritance calculator.

    Parameters
    ----------
    assumptions : EstateAssumptions, optional
    death_age : int, default 85
        Age at which the estate is assumed to transfer.

    Examples
    --------
    >>> calc = FamilyImpactCalculator()
    >>> calc.estate_tax(8_000_000)
    0.0
    >>> calc.estate_tax(12_000_000)
    200000.0
    """

    def __init__(self, assumptions: EstateAssumptions = DEFAULT_ESTATE, *, death_age: int = ASSUMED_DEATH_AGE):
        self.assumptions = assumptions
        self.death_age = death_age

    def estate_tax(self, wealth: float) -> float:
        return max(0.0, wealth - self.assumptions.exemption) * self.assumptions.tax_rate

    def planning_efficiency(self, profile: HouseholdProfile) -> float:
        """Sophistication base plus approach and coordination terms, clamped."""
        a = self.assumptions
        efficiency = a.sophistication_efficiency[profile.core_identity.financial_sophistication]
        efficiency += a.approach_adjustments.get(profile.behavioral.planning_approach, 0.0)
        efficiency += a.coordination_adjustments.get(profile.family_care.family_coordination, 0.0)
        low, high = a.efficiency_bounds
        return min(high, max(low, efficiency))

    def death_year(self, profile: HouseholdProfile) -> int:
        return profile.base_year + max(0, self.death_age - profile.age)

    @staticmethod
    def wealth_at(series: ProjectionSeries, year: int) -> float:
        """Wealth at the first point on or after ``year``, else the last point."""
        point = point_at_or_after(series.points, year)
        return point.wealth if point is not None else 0.0

    def calculate(self, profile: HouseholdProfile, series: ProjectionSeries) -> FamilyImpactResult:
        """Family impact of a projection, read at the assumed death year."""
        year = self.death_year(profile)
        return self.from_wealth(profile, self.wealth_at(series, year), year)

    def from_wealth(
        self,
        profile: HouseholdProfile,
        wealth_at_death: float,
        death_year: Optional[int] = None,
    ) -> FamilyImpactResult:
        """Family impact of a single wealth-at-death value."""
        a = self.assumptions
        if death_year is None:
            death_year = self.death_year(profile)
        wealth = max(0.0, float(wealth_at_death))

        tax = self.estate_tax(wealth)
        costs = wealth * a.transfer_cost_rate
        net_transfer = max(0.0, wealth - tax - costs)
        efficiency = self.planning_efficiency(profile)
        effective = net_transfer * efficiency

        n_children = len(profile.children)
        per_child = effective / max(1, n_children)
        per_child_amounts = tuple(
            (child.name or f"child_{i + 1}", per_child) for i, child in enumerate(profile.children)
        )

        count = max(1.0, n_children * a.grandchildren_per_child)
        pool = effective * a.grandchildren_share
        per_grandchild = pool / count
        tier = profile.dominant_education_tier
        college_year = death_year + a.college_entry_offset
        years = max(0, college_year - profile.base_year)
        future_cost = a.education_costs[tier] * (1.0 + a.education_inflation) ** years

        logger.debug(
            "Estate at %d: wealth=%.0f tax=%.0f effective=%.0f", death_year, wealth, tax, effective
        )
        return FamilyImpactResult(
            today=TodaySnapshot(net_worth=profile.net_worth, status=wealth_status(profile.net_worth)),
            inheritance=InheritanceImpact(
                death_year=death_year,
                wealth_at_death=wealth,
                estate_tax=tax,
                transfer_costs=costs,
                net_transfer=net_transfer,
                planning_efficiency=efficiency,
                effective_transfer=effective,
                per_child=per_child,
                per_child_amounts=per_child_amounts,
            ),
            grandchildren=GrandchildrenImpact(
                estimated_count=count,
                total_inheritance=pool,
                per_grandchild_inheritance=per_grandchild,
                education_tier=tier,
                college_year=college_year,
                future_education_cost=future_cost,
                college_shortfall=max(0.0, future_cost - per_grandchild),
            ),
        )
