"""
Global constants for Heirloom.

Purpose
-------
Centralizes default values and reference tables used throughout the
Heirloom codebase. Tables are exposed as read-only mappings so that
components can capture them at construction without risk of mutation.

Usage
-----
>>> from heirloom.constants import DEFAULT_HORIZON_YEARS, MALE_LIFE_TABLE
>>> MALE_LIFE_TABLE[25]
75.2

Categories
----------
- Simulation: horizons, path counts, seeds, percentile levels
- Actuarial: base life tables, adjustment terms, hazard parameters
- Estate: exemption, tax rate, transfer costs, education costs
- Scenarios: probabilities, adjustment deltas
"""

from types import MappingProxyType
from typing import Mapping, Tuple

__all__ = [
    # Simulation
    "DEFAULT_BASE_YEAR",
    "DEFAULT_HORIZON_YEARS",
    "DEFAULT_N_PATHS",
    "DEFAULT_OUTLOOK_PATHS",
    "DEFAULT_SEED",
    "BAND_PERCENTILES",
    "SCENARIO_PERCENTILES",
    # Random source
    "LCG_MULTIPLIER",
    "LCG_INCREMENT",
    "LCG_MODULUS",
    # Actuarial
    "MALE_LIFE_TABLE",
    "FEMALE_LIFE_TABLE",
    "HEALTH_ADJUSTMENTS",
    "INCOME_ADJUSTMENTS",
    "EDUCATION_ADJUSTMENTS",
    "MIN_REMAINING_YEARS",
    "GOMPERTZ_LAMBDA",
    "GOMPERTZ_ALPHA",
    "GOMPERTZ_BETA",
    "REFERENCE_LIFE_EXPECTANCY",
    "MAX_ANNUAL_MORTALITY",
    "LIFE_EXPECTANCY_SD",
    # Estate
    "ESTATE_TAX_EXEMPTION",
    "ESTATE_TAX_RATE",
    "TRANSFER_COST_RATE",
    "ASSUMED_DEATH_AGE",
    "EDUCATION_COSTS",
    "EDUCATION_INFLATION",
    "GRANDCHILDREN_PER_CHILD",
    "GRANDCHILDREN_SHARE",
    "COLLEGE_ENTRY_OFFSET",
    # Scenarios
    "SCENARIO_PROBABILITIES",
]


# =============================================================================
# Simulation Defaults
# =============================================================================

DEFAULT_BASE_YEAR: int = 2025
"""Calendar year of the opening projection point."""

DEFAULT_HORIZON_YEARS: int = 75
"""Default lifecycle projection horizon in years."""

DEFAULT_N_PATHS: int = 1000
"""Default number of Monte Carlo lifecycle runs."""

DEFAULT_OUTLOOK_PATHS: int = 500
"""Default number of paths for market, inflation and healthcare outlooks."""

DEFAULT_SEED: int = 42
"""Default random seed for reproducible runs."""

BAND_PERCENTILES: Tuple[float, ...] = (0.05, 0.25, 0.50, 0.75, 0.95)
"""Quantiles reported by a PercentileBand."""

SCENARIO_PERCENTILES: Tuple[float, ...] = (0.10, 0.25, 0.50, 0.75, 0.90)
"""Quantiles used for scenario and life-expectancy summaries."""


# =============================================================================
# Seeded Uniform Source
# =============================================================================

LCG_MULTIPLIER: int = 9301
LCG_INCREMENT: int = 49297
LCG_MODULUS: int = 233280
"""Linear-congruential recurrence: s = (s * 9301 + 49297) % 233280."""


# =============================================================================
# Actuarial Tables
# =============================================================================

MALE_LIFE_TABLE: Mapping[int, float] = MappingProxyType({
    25: 75.2, 30: 70.4, 35: 65.6, 40: 60.8, 45: 56.1, 50: 51.5,
    55: 47.0, 60: 42.6, 65: 38.4, 70: 34.4, 75: 30.7,
})
"""Base life expectancy by age for men."""

FEMALE_LIFE_TABLE: Mapping[int, float] = MappingProxyType({
    25: 77.8, 30: 72.9, 35: 68.0, 40: 63.2, 45: 58.4, 50: 53.7,
    55: 49.1, 60: 44.6, 65: 40.3, 70: 36.1, 75: 32.2,
})
"""Base life expectancy by age for women."""

HEALTH_ADJUSTMENTS: Mapping[str, float] = MappingProxyType({
    "excellent": 3.5, "good": 0.0, "fair": -2.8, "poor": -6.2,
})

INCOME_ADJUSTMENTS: Mapping[str, float] = MappingProxyType({
    "high_income": 2.1, "upper_middle": 1.2, "middle": 0.0,
    "lower_middle": -1.5, "low": -3.2,
})

EDUCATION_ADJUSTMENTS: Mapping[str, float] = MappingProxyType({
    "phd": 2.8, "professional": 2.5, "masters": 1.8,
    "bachelors": 1.2, "high_school": 0.0,
})

MIN_REMAINING_YEARS: float = 5.0
"""Life expectancy is never reported below current age plus this floor."""

GOMPERTZ_LAMBDA: float = 0.0001
"""Age-independent (Makeham) hazard term."""

GOMPERTZ_ALPHA: float = 0.00005
"""Gompertz hazard level at age 25."""

GOMPERTZ_BETA: float = 0.085
"""Gompertz hazard growth rate per year of age."""

REFERENCE_LIFE_EXPECTANCY: float = 72.0
"""Life expectancy the hazard parameters were calibrated against."""

MAX_ANNUAL_MORTALITY: float = 0.5
"""Cap on the annual mortality probability."""

LIFE_EXPECTANCY_SD: float = 5.0
"""Standard deviation in years of life-expectancy scenarios."""


# =============================================================================
# Estate and Inheritance
# =============================================================================

ESTATE_TAX_EXEMPTION: float = 10_000_000.0
ESTATE_TAX_RATE: float = 0.10
TRANSFER_COST_RATE: float = 0.05

ASSUMED_DEATH_AGE: int = 85
"""Age at which the household's estate is assumed to transfer."""

EDUCATION_COSTS: Mapping[str, float] = MappingProxyType({
    "public_state": 800_000.0,
    "public_premium": 1_500_000.0,
    "private_state": 2_500_000.0,
    "private_premium": 4_000_000.0,
    "international": 8_000_000.0,
})
"""Current cost of a full degree by aspiration tier."""

EDUCATION_INFLATION: float = 0.08
"""Annual education cost inflation used for grandchildren's college."""

GRANDCHILDREN_PER_CHILD: float = 1.5
GRANDCHILDREN_SHARE: float = 0.30
"""Fraction of the effective transfer assumed to reach grandchildren."""

COLLEGE_ENTRY_OFFSET: int = 30
"""Years after the death year at which grandchildren enter college."""


# =============================================================================
# Scenarios
# =============================================================================

SCENARIO_PROBABILITIES: Mapping[str, float] = MappingProxyType({
    "best_case": 0.10,
    "most_likely": 0.60,
    "worst_case": 0.10,
    "stress": 0.05,
})
"""Fixed scenario probabilities. Configuration, not estimates."""
