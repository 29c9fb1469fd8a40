"""
Household complexity analysis for Heirloom.

Scores eight coordination factors on a 0-10 scale, combines them into a
weighted complexity score, names the factors driving it, and lists the
family-coordination opportunities that apply to the household.

The score feeds the lifecycle projector's confidence level: the more
complex the household, the less confident the projection.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .profile import HouseholdProfile

__all__ = [
    "FACTOR_WEIGHTS",
    "CoordinationOpportunity",
    "ComplexityAnalysis",
    "analyze_complexity",
]

MAX_FACTOR_SCORE = 10.0
DRIVER_THRESHOLD = 7.0
MAX_OPTIMIZATION_POTENTIAL = 0.5

FACTOR_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "children": 0.15,
    "parent_care": 0.20,
    "siblings": 0.12,
    "geographic": 0.10,
    "health": 0.18,
    "education": 0.12,
    "financial": 0.08,
    "employment": 0.05,
})

DRIVER_LABELS: Mapping[str, str] = MappingProxyType({
    "children": "Multiple children with diverse education needs",
    "parent_care": "Complex parent care requirements",
    "siblings": "Challenging sibling coordination",
    "geographic": "Geographic dispersion of family",
    "health": "Health-related financial risks",
    "education": "High-aspiration education planning",
    "financial": "Limited financial sophistication",
    "employment": "Complex employment situation",
})

ASPIRATION_POINTS = {
    "international": 3.0,
    "private_premium": 2.0,
    "private_state": 1.5,
    "public_premium": 1.0,
    "public_state": 0.5,
}
PARENT_HEALTH_POINTS = {"poor": 4.0, "fair": 2.5, "good": 1.5, "excellent": 0.5}
DEPENDENCY_POINTS = {
    "full_dependency": 3.0,
    "regular_support": 2.0,
    "occasional_support": 1.0,
    "independent": 0.2,
}
PARENT_LOCATION_POINTS = {"different_state": 2.0, "different_city": 1.0, "same_city": 0.2}
RELATIONSHIP_POINTS = {"non_communicative": 3.0, "strained": 2.0, "good": 1.0, "close": 0.5}
CAPACITY_POINTS = {"limited": 2.0, "moderate": 1.0, "strong": 0.2}
CITY_POINTS = {"metro": 2.0, "tier2": 1.0, "tier3": 0.5, "rural": 0.2}
SOPHISTICATION_POINTS = {"beginner": 4.0, "moderate": 2.0, "good": 1.0, "expert": 0.5}
EMPLOYMENT_POINTS = {"business_owner": 3.0, "self_employed": 2.0, "corporate": 0.5}
ROLE_POINTS = {"leadership": 1.5, "senior": 1.0, "mid": 0.5, "junior": 0.2}
SOPHISTICATION_HEADROOM = {"beginner": 0.15, "moderate": 0.10, "good": 0.05, "expert": 0.02}

# name, base savings fraction, difficulty, time to implement
OPPORTUNITIES: Tuple[Tuple[str, float, str, str], ...] = (
    ("family_meetings", 0.05, "low", "1 month"),
    ("shared_resources", 0.08, "medium", "3 months"),
    ("bulk_purchases", 0.03, "low", "2 weeks"),
    ("care_coordination", 0.12, "high", "6 months"),
    ("education_planning", 0.06, "medium", "4 months"),
    ("investment_pooling", 0.10, "high", "8 months"),
)


@dataclass(frozen=True)
class CoordinationOpportunity:
    name: str
    potential_savings: float
    difficulty: str
    time_to_implement: str


@dataclass(frozen=True)
class ComplexityAnalysis:
    """
    Complexity metadata attached to every projection.

    Attributes
    ----------
    score : float
        Weighted mean of the factor scores, in [0, 10].
    factor_scores : dict
        Per-factor scores, each capped at 10.
    drivers : tuple of str
        Labels of factors scoring above 7.
    opportunities : tuple of CoordinationOpportunity
        Applicable opportunities, largest savings first.
    optimization_potential : float
        Fraction of spending the household could save through
        coordination, capped at 0.5.
    """
    score: float
    factor_scores: Dict[str, float]
    drivers: Tuple[str, ...]
    opportunities: Tuple[CoordinationOpportunity, ...]
    optimization_potential: float


def _cap(value: float) -> float:
    return min(MAX_FACTOR_SCORE, value)


def _children(profile: HouseholdProfile) -> float:
    return _cap(sum(2.0 + ASPIRATION_POINTS[c.education_aspiration] for c in profile.children))


def _parent_care(profile: HouseholdProfile) -> float:
    return _cap(sum(
        PARENT_HEALTH_POINTS[p.health_status]
        + DEPENDENCY_POINTS[p.financial_independence]
        + PARENT_LOCATION_POINTS[p.location]
        for p in profile.family_care.parents
    ))


def _siblings(profile: HouseholdProfile) -> float:
    return _cap(sum(
        1.5 + RELATIONSHIP_POINTS[s.relationship_quality] + CAPACITY_POINTS[s.financial_capacity]
        for s in profile.family_care.siblings
    ))


def _geographic(profile: HouseholdProfile) -> float:
    locations = {profile.core_identity.location}
    locations.update(
        p.location for p in profile.family_care.parents if p.location != "same_city"
    )
    return _cap(CITY_POINTS[profile.core_identity.location] + 1.5 * len(locations))


def _health(profile: HouseholdProfile) -> float:
    score = 0.0
    for parent in profile.family_care.parents:
        if parent.health_status == "poor":
            score += 3.0
        elif parent.health_status == "fair":
            score += 2.0
    if profile.age > 50:
        score += 1.0
    if profile.age > 60:
        score += 1.5
    if profile.core_identity.marital_status == "married":
        score += 0.5
    return _cap(score)


def _education(profile: HouseholdProfile) -> float:
    return _cap(sum(ASPIRATION_POINTS[c.education_aspiration] for c in profile.children))


def _financial(profile: HouseholdProfile) -> float:
    identity = profile.core_identity
    return _cap(
        SOPHISTICATION_POINTS[identity.financial_sophistication]
        + EMPLOYMENT_POINTS.get(identity.employment_status, 0.0) * 0.5
    )


def _employment(profile: HouseholdProfile) -> float:
    identity = profile.core_identity
    return _cap(
        EMPLOYMENT_POINTS.get(identity.employment_status, 0.0)
        + ROLE_POINTS[identity.role_level]
    )


_SCORERS = {
    "children": _children,
    "parent_care": _parent_care,
    "siblings": _siblings,
    "geographic": _geographic,
    "health": _health,
    "education": _education,
    "financial": _financial,
    "employment": _employment,
}


def _applicable(name: str, profile: HouseholdProfile) -> bool:
    n_children = len(profile.children)
    has_siblings = bool(profile.family_care.siblings)
    if name in ("family_meetings", "shared_resources", "investment_pooling"):
        return has_siblings
    if name == "bulk_purchases":
        return n_children > 1
    if name == "care_coordination":
        return bool(profile.family_care.parents)
    if name == "education_planning":
        return n_children > 0
    return False


def analyze_complexity(profile: HouseholdProfile) -> ComplexityAnalysis:
    """
    Score the household's coordination complexity.

    Examples
    --------
    >>> analysis = analyze_complexity(profile)
    >>> 0.0 <= analysis.score <= 10.0
    True
    """
    scores = {name: scorer(profile) for name, scorer in _SCORERS.items()}
    total_weight = sum(FACTOR_WEIGHTS.values())
    score = sum(scores[name] * weight for name, weight in FACTOR_WEIGHTS.items()) / total_weight

    drivers = tuple(DRIVER_LABELS[name] for name in FACTOR_WEIGHTS if scores[name] > DRIVER_THRESHOLD)

    opportunities: List[CoordinationOpportunity] = [
        CoordinationOpportunity(name, savings * (1.0 + score * 0.1), difficulty, timing)
        for name, savings, difficulty, timing in OPPORTUNITIES
        if _applicable(name, profile)
    ]
    opportunities.sort(key=lambda o: o.potential_savings, reverse=True)

    potential = sum(o.potential_savings for o in opportunities)
    potential += SOPHISTICATION_HEADROOM[profile.core_identity.financial_sophistication]

    return ComplexityAnalysis(
        score=float(score),
        factor_scores=scores,
        drivers=drivers,
        opportunities=tuple(opportunities),
        optimization_potential=min(MAX_OPTIMIZATION_POTENTIAL, potential),
    )
