"""
Household profile data model for Heirloom.

Purpose
-------
Type-safe, immutable description of a household: identity, financial
foundation, children, family-care context and behavioral profile.
Pydantic enforces field ranges; :func:`load_profile` converts pydantic's
errors into :class:`~heirloom.exceptions.ProfileValidationError`, naming
the offending field before any simulation runs.

Invariants
----------
- age in [18, 100]
- current_net_worth >= 0, annual_income >= 0
- investment allocation fractions sum to 1 within ±0.01

Example
-------
>>> from heirloom.profile import load_profile
>>> profile = load_profile({
...     "core_identity": {"age": 35},
...     "financial_foundation": {
...         "current_net_worth": 5_000_000,
...         "annual_income": 1_200_000,
...     },
...     "children": [{"name": "Asha", "age": 8}],
... })
>>> profile.core_identity.age
35
"""

from __future__ import annotations

from collections import Counter
from typing import Any, List, Literal, Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import DEFAULT_BASE_YEAR
from .exceptions import ProfileValidationError
from .rng import UniformSource

__all__ = [
    "InvestmentAllocation",
    "CoreIdentity",
    "FinancialFoundation",
    "Child",
    "Parent",
    "Sibling",
    "FamilyCareContext",
    "BehavioralProfile",
    "HouseholdProfile",
    "load_profile",
    "vary_profile",
]

ALLOCATION_TOLERANCE = 0.01

Gender = Literal["male", "female"]
HealthStatus = Literal["excellent", "good", "fair", "poor"]
EducationTier = Literal[
    "public_state", "public_premium", "private_state", "private_premium", "international"
]
RiskTolerance = Literal["conservative", "moderate", "aggressive"]

_FROZEN = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Identity and finances
# ---------------------------------------------------------------------------

class CoreIdentity(BaseModel):
    model_config = _FROZEN

    age: int = Field(ge=18, le=100, description="Current age of the primary earner")
    marital_status: Literal["single", "married", "divorced", "widowed"] = "married"
    location: Literal["metro", "tier2", "tier3", "rural"] = "metro"
    financial_sophistication: Literal["beginner", "moderate", "good", "expert"] = "moderate"
    gender: Gender = "male"
    health_status: HealthStatus = "good"
    income_level: Literal["high_income", "upper_middle", "middle", "lower_middle", "low"] = "middle"
    education_level: Literal["phd", "professional", "masters", "bachelors", "high_school"] = "bachelors"
    employment_status: Literal["corporate", "self_employed", "business_owner", "retired", "other"] = "corporate"
    role_level: Literal["junior", "mid", "senior", "leadership"] = "mid"


class InvestmentAllocation(BaseModel):
    """Portfolio weights across the four asset classes."""

    model_config = _FROZEN

    stocks: float = Field(default=0.6, ge=0.0, le=1.0)
    bonds: float = Field(default=0.3, ge=0.0, le=1.0)
    real_estate: float = Field(default=0.1, ge=0.0, le=1.0)
    alternatives: float = Field(default=0.0, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_sum(self) -> "InvestmentAllocation":
        total = self.stocks + self.bonds + self.real_estate + self.alternatives
        if abs(total - 1.0) > ALLOCATION_TOLERANCE:
            raise ValueError(
                f"allocation fractions must sum to 1 (±{ALLOCATION_TOLERANCE}), got {total:.4f}"
            )
        return self

    def weights(self) -> dict:
        return {
            "stocks": self.stocks,
            "bonds": self.bonds,
            "real_estate": self.real_estate,
            "alternatives": self.alternatives,
        }


class FinancialFoundation(BaseModel):
    model_config = _FROZEN

    current_net_worth: float = Field(ge=0.0)
    annual_income: float = Field(ge=0.0)
    investment_allocation: InvestmentAllocation = Field(default_factory=InvestmentAllocation)


# ---------------------------------------------------------------------------
# Family
# ---------------------------------------------------------------------------

class Child(BaseModel):
    model_config = _FROZEN

    name: str = ""
    age: int = Field(ge=0, le=80)
    education_aspiration: EducationTier = "private_state"


class Parent(BaseModel):
    model_config = _FROZEN

    name: str = ""
    age: int = Field(ge=30, le=120)
    health_status: HealthStatus = "good"
    financial_independence: Literal[
        "independent", "occasional_support", "regular_support", "full_dependency"
    ] = "independent"
    location: Literal["same_city", "different_city", "different_state"] = "same_city"


class Sibling(BaseModel):
    model_config = _FROZEN

    name: str = ""
    relationship_quality: Literal["close", "good", "strained", "non_communicative"] = "good"
    financial_capacity: Literal["limited", "moderate", "strong"] = "moderate"


class FamilyCareContext(BaseModel):
    model_config = _FROZEN

    parents: List[Parent] = Field(default_factory=list)
    siblings: List[Sibling] = Field(default_factory=list)
    family_coordination: Literal["excellent", "good", "moderate", "poor"] = "good"


class BehavioralProfile(BaseModel):
    model_config = _FROZEN

    risk_tolerance: RiskTolerance = "moderate"
    market_crash_response: Literal["buy_more", "hold", "reduce", "sell_all"] = "hold"
    planning_approach: Literal[
        "detailed_research", "important_overwhelming", "delegate_experts", "avoid_thinking"
    ] = "detailed_research"


# ---------------------------------------------------------------------------
# Household
# ---------------------------------------------------------------------------

class HouseholdProfile(BaseModel):
    """
    Complete household description consumed by every projection component.

    Attributes
    ----------
    base_year : int
        Calendar year of the opening projection point.
    core_identity : CoreIdentity
    financial_foundation : FinancialFoundation
    children : list of Child
    family_care : FamilyCareContext
    behavioral : BehavioralProfile
    """

    model_config = _FROZEN

    base_year: int = Field(default=DEFAULT_BASE_YEAR, ge=1900, le=2200)
    core_identity: CoreIdentity
    financial_foundation: FinancialFoundation
    children: List[Child] = Field(default_factory=list)
    family_care: FamilyCareContext = Field(default_factory=FamilyCareContext)
    behavioral: BehavioralProfile = Field(default_factory=BehavioralProfile)

    @property
    def age(self) -> int:
        return self.core_identity.age

    @property
    def net_worth(self) -> float:
        return self.financial_foundation.current_net_worth

    @property
    def annual_income(self) -> float:
        return self.financial_foundation.annual_income

    @property
    def dominant_education_tier(self) -> str:
        """Most common child aspiration; ``private_state`` when there are no children."""
        if not self.children:
            return "private_state"
        counts = Counter(c.education_aspiration for c in self.children)
        # Counter.most_common keeps first-seen order on ties
        return counts.most_common(1)[0][0]


def load_profile(data: Mapping[str, Any]) -> HouseholdProfile:
    """
    Validate a mapping into a HouseholdProfile.

    Raises
    ------
    ProfileValidationError
        Naming the first offending field as a dotted path.
    """
    try:
        return HouseholdProfile.model_validate(data)
    except pydantic.ValidationError as exc:
        errors = exc.errors()
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"]) or "profile"
        raise ProfileValidationError(field, first["msg"], errors=errors) from exc


def vary_profile(
    profile: HouseholdProfile,
    source: UniformSource,
    *,
    income_spread: float = 0.20,
    net_worth_spread: float = 0.15,
    parent_decline_probability: float = 0.10,
) -> HouseholdProfile:
    """
    New profile with perturbed finances and parent health.

    Income is scaled by ``U[1 - income_spread, 1 + income_spread)`` and net
    worth by ``U[1 - net_worth_spread, 1 + net_worth_spread)``. Each parent
    then falls to ``poor`` health with ``parent_decline_probability``; one
    draw is taken per parent whether or not it declines. The input profile
    is left untouched.
    """
    income_factor = 1.0 - income_spread + 2.0 * income_spread * source.uniform()
    worth_factor = 1.0 - net_worth_spread + 2.0 * net_worth_spread * source.uniform()
    finances = profile.financial_foundation.model_copy(update={
        "annual_income": max(0.0, profile.annual_income * income_factor),
        "current_net_worth": max(0.0, profile.net_worth * worth_factor),
    })
    update = {"financial_foundation": finances}

    parents = profile.family_care.parents
    if parents:
        varied_parents = [
            parent.model_copy(update={"health_status": "poor"})
            if source.uniform() < parent_decline_probability else parent
            for parent in parents
        ]
        update["family_care"] = profile.family_care.model_copy(update={"parents": varied_parents})
    return profile.model_copy(update=update)
