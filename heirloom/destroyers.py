"""
Ranking of the factors that erode the household's wealth.

Each factor's impact is a currency amount drawn from the projection's cost
breakdown, the family-impact result, or a fixed share of current net worth.
Factors are ranked by impact; ``relative_impact`` is the factor's share of
the combined impact of all factors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .family import FamilyImpactResult
from .lifecycle import ProjectionSeries
from .profile import HouseholdProfile

__all__ = ["WealthDestroyer", "rank_wealth_destroyers"]

MARKET_VOLATILITY_SHARE = 0.15
SIBLING_DISPUTE_SHARE = 0.03
STRAINED_RELATIONSHIPS = ("strained", "non_communicative")


@dataclass(frozen=True)
class WealthDestroyer:
    factor: str
    impact: float
    relative_impact: float
    description: str


def rank_wealth_destroyers(
    profile: HouseholdProfile,
    series: ProjectionSeries,
    family: FamilyImpactResult,
    *,
    top_n: int = 5,
) -> Tuple[WealthDestroyer, ...]:
    """Top ``top_n`` wealth destroyers, largest impact first."""
    n_children = len(profile.children)
    n_parents = len(profile.family_care.parents)
    inheritance = family.inheritance

    dispute_weight = sum(
        2.0 if s.relationship_quality in STRAINED_RELATIONSHIPS else 1.0
        for s in profile.family_care.siblings
    )

    candidates: List[Tuple[str, float, str]] = [
        ("Education Costs", series.total_cost("education"),
         f"College tuition for {n_children} child{'ren' if n_children != 1 else ''}"),
        ("Parent Care", series.total_cost("parent_care"),
         f"Care and support for {n_parents} parent{'s' if n_parents != 1 else ''}"),
        ("Healthcare Emergencies", series.total_cost("health_emergency"),
         "Unplanned medical costs rising with age"),
        ("Family Emergencies", series.total_cost("family_emergency"),
         "One-off family crises requiring financial support"),
        ("Investment Fees & Taxes", series.total_cost("fees_and_taxes"),
         "Fund expenses and tax drag on invested wealth"),
        ("Lifestyle Inflation", series.total_cost("lifestyle_inflation"),
         "Living costs compounding with inflation"),
        ("Market Volatility", profile.net_worth * MARKET_VOLATILITY_SHARE,
         "Drawdowns during market crashes"),
        ("Family Disputes", profile.net_worth * SIBLING_DISPUTE_SHARE * dispute_weight,
         "Disagreements among siblings over shared obligations"),
        ("Estate Taxes & Transfer Costs", inheritance.estate_tax + inheritance.transfer_costs,
         "Tax and legal costs when the estate passes on"),
        ("Estate Planning Gaps", inheritance.net_transfer - inheritance.effective_transfer,
         "Value lost to incomplete or uncoordinated estate planning"),
    ]

    positive = [(name, impact, text) for name, impact, text in candidates if impact > 0]
    total = sum(impact for _, impact, _ in positive)
    positive.sort(key=lambda item: item[1], reverse=True)
    return tuple(
        WealthDestroyer(name, impact, impact / total, text)
        for name, impact, text in positive[:top_n]
    )
