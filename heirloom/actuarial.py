"""
Actuarial module for Heirloom.

Purpose
-------
Life expectancy and mortality/survival curves from age, gender and
socio-economic factors.

Method
------
1. Base life expectancy from a gender-specific table keyed by age, with
   linear interpolation between tabulated ages and clamping at the ends.
2. Additive adjustments for health status, income tier and education tier.
3. Result floored at ``age + 5``.

Mortality uses a Gompertz–Makeham hazard, scaled so that a longer life
expectancy lowers the hazard:

    h(age) = (λ + α·exp(β·(age − 25))) / (LE / 72)
    q(age) = min(1 − exp(−h), 0.5)
    S(age) = Π (1 − q)

Example
-------
>>> from heirloom.actuarial import ActuarialModel
>>> model = ActuarialModel()
>>> round(model.life_expectancy(25, "male", "good", "middle", "bachelors"), 1)
76.4
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd

from .constants import (
    EDUCATION_ADJUSTMENTS,
    FEMALE_LIFE_TABLE,
    GOMPERTZ_ALPHA,
    GOMPERTZ_BETA,
    GOMPERTZ_LAMBDA,
    HEALTH_ADJUSTMENTS,
    INCOME_ADJUSTMENTS,
    LIFE_EXPECTANCY_SD,
    MALE_LIFE_TABLE,
    MAX_ANNUAL_MORTALITY,
    MIN_REMAINING_YEARS,
    REFERENCE_LIFE_EXPECTANCY,
    SCENARIO_PERCENTILES,
)
from .exceptions import ValidationError
from .montecarlo import percentile_summary
from .rng import UniformSource, make_source, standard_normal

logger = logging.getLogger(__name__)

__all__ = ["ActuarialTables", "MortalityCurve", "ActuarialModel", "DEFAULT_TABLES"]


@dataclass(frozen=True)
class ActuarialTables:
    """Reference data captured by :class:`ActuarialModel`."""
    male: Mapping[int, float] = field(default_factory=lambda: MALE_LIFE_TABLE)
    female: Mapping[int, float] = field(default_factory=lambda: FEMALE_LIFE_TABLE)
    health: Mapping[str, float] = field(default_factory=lambda: HEALTH_ADJUSTMENTS)
    income: Mapping[str, float] = field(default_factory=lambda: INCOME_ADJUSTMENTS)
    education: Mapping[str, float] = field(default_factory=lambda: EDUCATION_ADJUSTMENTS)
    makeham: float = GOMPERTZ_LAMBDA
    gompertz_level: float = GOMPERTZ_ALPHA
    gompertz_growth: float = GOMPERTZ_BETA
    reference_life_expectancy: float = REFERENCE_LIFE_EXPECTANCY
    max_mortality: float = MAX_ANNUAL_MORTALITY
    min_remaining_years: float = MIN_REMAINING_YEARS
    scenario_sd: float = LIFE_EXPECTANCY_SD


DEFAULT_TABLES = ActuarialTables()


@dataclass(frozen=True)
class MortalityCurve:
    """Per-age annual mortality and cumulative survival."""
    ages: np.ndarray
    mortality: np.ndarray
    survival: np.ndarray
    life_expectancy: float

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"mortality": self.mortality, "survival": self.survival},
            index=pd.Index(self.ages, name="age"),
        )

    def survival_at(self, age: int) -> float:
        """Survival to ``age``; 1.0 before the curve starts, last value after."""
        if self.ages.size == 0 or age < self.ages[0]:
            return 1.0
        idx = min(int(age - self.ages[0]), self.ages.size - 1)
        return float(self.survival[idx])


def _lookup(table: Mapping[str, float], key: str, what: str) -> float:
    try:
        return table[key]
    except KeyError:
        raise ValidationError(
            f"Unknown {what} '{key}'. Expected one of: {', '.join(table)}."
        ) from None


class ActuarialModel:
    """
    Life expectancy and mortality calculator.

    Parameters
    ----------
    tables : ActuarialTables, optional
        Reference tables and hazard parameters. Defaults to the built-in
        tables.
    """

    def __init__(self, tables: ActuarialTables = DEFAULT_TABLES):
        self.tables = tables

    def base_life_expectancy(self, age: float, gender: str) -> float:
        """Tabulated life expectancy, interpolated between tabulated ages."""
        if gender == "male":
            table = self.tables.male
        elif gender == "female":
            table = self.tables.female
        else:
            raise ValidationError(f"Unknown gender '{gender}'. Expected one of: female, male.")

        ages = sorted(table)
        values = [table[a] for a in ages]
        return float(np.interp(age, ages, values))

    def life_expectancy(
        self,
        age: float,
        gender: str,
        health_status: str,
        income_level: str,
        education_level: str,
    ) -> float:
        """
        Adjusted life expectancy, floored at ``age + 5``.

        Raises
        ------
        ValidationError
            For an unknown gender, health status, income tier or education tier.
        """
        t = self.tables
        estimate = (
            self.base_life_expectancy(age, gender)
            + _lookup(t.health, health_status, "health status")
            + _lookup(t.income, income_level, "income level")
            + _lookup(t.education, education_level, "education level")
        )
        return max(estimate, age + t.min_remaining_years)

    def mortality_curve(self, current_age: int, life_expectancy: float, years: int) -> MortalityCurve:
        """
        Annual mortality and survival for ``years`` ages starting at ``current_age``.
        """
        if years < 0:
            raise ValueError(f"years must be non-negative, got {years}")
        if life_expectancy <= 0:
            raise ValueError(f"life_expectancy must be positive, got {life_expectancy}")

        t = self.tables
        scale = life_expectancy / t.reference_life_expectancy
        ages = np.arange(current_age, current_age + years)
        hazard = (t.makeham + t.gompertz_level * np.exp(t.gompertz_growth * (ages - 25))) / scale
        mortality = np.minimum(1.0 - np.exp(-hazard), t.max_mortality)
        mortality = np.clip(mortality, 0.0, t.max_mortality)
        survival = np.cumprod(1.0 - mortality)
        return MortalityCurve(
            ages=ages,
            mortality=mortality,
            survival=survival,
            life_expectancy=float(life_expectancy),
        )

    def life_expectancy_scenarios(
        self,
        age: float,
        gender: str,
        health_status: str,
        income_level: str,
        education_level: str,
        n_scenarios: int = 1000,
        *,
        source: Optional[UniformSource] = None,
        seed: Optional[int] = None,
    ) -> Dict[str, float]:
        """
        Percentiles of normally perturbed life-expectancy draws.

        Each draw is ``base + 5·ε`` floored at ``age + 5``.

        Returns
        -------
        dict
            ``base``, ``mean`` and ``p10`` .. ``p90``.
        """
        if n_scenarios < 0:
            raise ValueError(f"n_scenarios must be non-negative, got {n_scenarios}")
        base = self.life_expectancy(age, gender, health_status, income_level, education_level)
        src = source if source is not None else make_source(seed)
        floor = age + self.tables.min_remaining_years
        draws = np.array([
            max(floor, base + standard_normal(src) * self.tables.scenario_sd)
            for _ in range(n_scenarios)
        ])
        summary = percentile_summary(draws, SCENARIO_PERCENTILES)
        summary["base"] = base
        summary["mean"] = float(draws.mean()) if draws.size else 0.0
        return summary
