"""
Pytest configuration and fixtures for the Heirloom test suite.

This module provides reusable household profiles, run configurations and
sources. Fixtures follow the principle of "arrange-act-assert" with clear
separation.
"""

from typing import Any, Dict

import pytest

from heirloom.config import RunConfig
from heirloom.lifecycle import DEFAULT_ASSUMPTIONS, LifecycleProjector
from heirloom.profile import HouseholdProfile, load_profile
from heirloom.rng import LCGSource


# ---------------------------------------------------------------------------
# Basic Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def horizon() -> int:
    """Standard projection horizon for tests."""
    return 40


@pytest.fixture
def source(seed) -> LCGSource:
    return LCGSource(seed)


# ---------------------------------------------------------------------------
# Profile Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def profile_data() -> Dict[str, Any]:
    """
    Plain-dict household used across the suite.

    Age 35, net worth 5,000,000, income 1,200,000/year,
    one child aged 8, moderate risk tolerance.
    """
    return {
        "base_year": 2025,
        "core_identity": {"age": 35, "location": "metro"},
        "financial_foundation": {
            "current_net_worth": 5_000_000,
            "annual_income": 1_200_000,
        },
        "children": [{"name": "Asha", "age": 8, "education_aspiration": "private_state"}],
        "behavioral": {"risk_tolerance": "moderate"},
    }


@pytest.fixture
def example_profile(profile_data) -> HouseholdProfile:
    return load_profile(profile_data)


@pytest.fixture
def family_profile() -> HouseholdProfile:
    """
    Household with a heavier family load.

    Two children on premium tracks, two dependent parents, two siblings
    and poor family coordination.
    """
    return load_profile({
        "core_identity": {
            "age": 42,
            "marital_status": "married",
            "location": "metro",
            "financial_sophistication": "beginner",
            "employment_status": "business_owner",
        },
        "financial_foundation": {
            "current_net_worth": 20_000_000,
            "annual_income": 3_000_000,
            "investment_allocation": {
                "stocks": 0.5, "bonds": 0.2, "real_estate": 0.2, "alternatives": 0.1,
            },
        },
        "children": [
            {"name": "Rohan", "age": 12, "education_aspiration": "international"},
            {"name": "Mira", "age": 6, "education_aspiration": "private_premium"},
        ],
        "family_care": {
            "parents": [
                {"name": "Father", "age": 72, "health_status": "fair",
                 "financial_independence": "regular_support", "location": "different_city"},
                {"name": "Mother", "age": 68, "health_status": "poor",
                 "financial_independence": "full_dependency", "location": "different_state"},
            ],
            "siblings": [
                {"name": "Kiran", "relationship_quality": "strained", "financial_capacity": "limited"},
                {"name": "Dev", "relationship_quality": "good", "financial_capacity": "strong"},
            ],
            "family_coordination": "poor",
        },
        "behavioral": {
            "risk_tolerance": "aggressive",
            "market_crash_response": "sell_all",
            "planning_approach": "avoid_thinking",
        },
    })


@pytest.fixture
def broke_profile() -> HouseholdProfile:
    """Household with no net worth and no income."""
    return load_profile({
        "core_identity": {"age": 30},
        "financial_foundation": {"current_net_worth": 0, "annual_income": 0},
    })


@pytest.fixture
def strained_profile() -> HouseholdProfile:
    """Household whose expenses outrun its means within the horizon."""
    return load_profile({
        "core_identity": {"age": 55, "location": "metro"},
        "financial_foundation": {"current_net_worth": 1_000_000, "annual_income": 600_000},
        "children": [{"name": "Ira", "age": 16, "education_aspiration": "international"}],
        "family_care": {
            "parents": [{"name": "Mother", "age": 80, "health_status": "poor",
                         "financial_independence": "full_dependency"}],
            "family_coordination": "poor",
        },
    })


# ---------------------------------------------------------------------------
# Engine Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def projector() -> LifecycleProjector:
    return LifecycleProjector(DEFAULT_ASSUMPTIONS)


@pytest.fixture
def small_config(seed, horizon) -> RunConfig:
    """Fast run configuration for integration-style tests."""
    return RunConfig(horizon_years=horizon, n_paths=40, seed=seed, outlook_paths=40)
