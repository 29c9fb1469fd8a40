"""
Stochastic process generators for Heirloom.

Models
------
DiffusionProcess (asset values, geometric diffusion with Euler steps):
    S_i = max(0, S_{i-1} + μ S_{i-1} Δt + σ S_{i-1} √Δt ε_i)

MeanRevertingProcess (inflation, rates; Ornstein–Uhlenbeck):
    X_i = max(0, X_{i-1} + θ (μ - X_{i-1}) Δt + σ √Δt ε_i)

ShockGrowthProcess (healthcare-style costs):
    C_i = C_{i-1} (1 + g + v u_i) · m_age · m_health · (1 + J_i)
    with u_i ~ U[-1, 1) and J_i a shock drawn with probability p.

ε_i are standard-normal deviates built by Box–Muller from an explicit
uniform source (see :mod:`heirloom.rng`).

Design principles
-----------------
- Frozen parameter objects; paths are produced on demand
- Every path owns its uniform source; seeded runs are bit-reproducible
- Floor-clamping at zero is part of the model, not a numerical guard
- Ensembles reduce through :mod:`heirloom.montecarlo`
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import ValidationError
from .montecarlo import (
    EnsembleResult,
    PercentileBand,
    aggregate_paths,
    percentile_index,
    run_ensemble,
    value_at_risk,
)
from .rng import UniformSource, centered_uniform, make_source, standard_normal

logger = logging.getLogger(__name__)

__all__ = [
    "DiffusionProcess",
    "MeanRevertingProcess",
    "RegimeObservation",
    "InflationScenarios",
    "classify_regime",
    "ShockEvent",
    "CostPath",
    "HealthcareCostScenarios",
    "ShockGrowthProcess",
    "max_drawdown",
]


def _check_periods(periods: int) -> None:
    if periods < 0:
        raise ValueError(f"periods must be non-negative, got {periods}")


def max_drawdown(path: Sequence[float]) -> float:
    """Largest peak-to-trough decline of a path, as a fraction of the peak."""
    values = np.asarray(path, dtype=float)
    if values.size <= 1:
        return 0.0
    peaks = np.maximum.accumulate(values)
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = np.where(peaks > 0, (peaks - values) / peaks, 0.0)
    return float(dd.max())


# ---------------------------------------------------------------------------
# Diffusion (asset values)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiffusionProcess:
    """
    Geometric diffusion for asset values.

    Parameters
    ----------
    mu : float
        Drift per unit time (e.g. 0.08 for 8%/year with dt=1).
    sigma : float
        Volatility per unit time. Must be non-negative.
    dt : float, default 1.0
        Time step.
    initial_value : float, default 1.0
        S₀. Must be non-negative.

    Examples
    --------
    >>> gbm = DiffusionProcess(mu=0.08, sigma=0.2, initial_value=100.0)
    >>> path = gbm.generate_path(30, seed=42)
    >>> path.shape
    (31,)
    """
    mu: float
    sigma: float
    dt: float = 1.0
    initial_value: float = 1.0

    def __post_init__(self) -> None:
        if self.sigma < 0:
            raise ValueError(f"sigma must be non-negative, got {self.sigma}")
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.initial_value < 0:
            raise ValueError(f"initial_value must be non-negative, got {self.initial_value}")

    def generate_path(
        self,
        periods: int,
        *,
        source: Optional[UniformSource] = None,
        seed: Optional[int] = None,
    ) -> np.ndarray:
        """
        Simulate one path of ``periods + 1`` values starting at S₀.

        ``source`` takes precedence over ``seed``; with neither, an
        ambient source is used.
        """
        _check_periods(periods)
        src = source if source is not None else make_source(seed)
        sqrt_dt = math.sqrt(self.dt)
        values = np.empty(periods + 1)
        value = float(self.initial_value)
        values[0] = value
        for i in range(1, periods + 1):
            eps = standard_normal(src)
            value = max(0.0, value + self.mu * value * self.dt + self.sigma * value * sqrt_dt * eps)
            values[i] = value
        return values

    def generate_monte_carlo_paths(
        self,
        periods: int,
        n_paths: int,
        *,
        seed: Optional[int] = None,
        retain_paths: bool = False,
    ) -> EnsembleResult:
        """Ensemble of ``n_paths`` paths reduced to a PercentileBand."""
        _check_periods(periods)
        return run_ensemble(
            lambda src: self.generate_path(periods, source=src),
            n_paths,
            seed=seed,
            retain_paths=retain_paths,
            n_periods=periods + 1,
        )

    def value_at_risk(
        self,
        periods: int,
        n_paths: int,
        confidence_level: float = 0.95,
        *,
        seed: Optional[int] = None,
    ) -> float:
        """``(1 - confidence_level)`` quantile of the terminal value."""
        ensemble = self.generate_monte_carlo_paths(periods, n_paths, seed=seed)
        return value_at_risk(ensemble.terminal_values, confidence_level)


# ---------------------------------------------------------------------------
# Mean reversion (inflation, rates)
# ---------------------------------------------------------------------------

REGIME_LOW_CEILING = 0.02
REGIME_HIGH_FLOOR = 0.06
REGIMES: Tuple[str, ...] = ("low", "normal", "high")


def classify_regime(value: float) -> str:
    """``low`` below 2%, ``high`` above 6%, ``normal`` in between (inclusive)."""
    if value < REGIME_LOW_CEILING:
        return "low"
    if value > REGIME_HIGH_FLOOR:
        return "high"
    return "normal"


@dataclass(frozen=True)
class RegimeObservation:
    """Dominant regime at one period and its share of the ensemble."""
    period: int
    regime: str
    probability: float


@dataclass(frozen=True)
class InflationScenarios:
    """Ensemble of mean-reverting paths with per-period regime summary."""
    scenarios: np.ndarray
    regimes: Tuple[RegimeObservation, ...]
    band: PercentileBand

    def regime_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(r.period, r.regime, r.probability) for r in self.regimes],
            columns=["period", "regime", "probability"],
        ).set_index("period")


@dataclass(frozen=True)
class MeanRevertingProcess:
    """
    Ornstein–Uhlenbeck process clamped at zero.

    Parameters
    ----------
    theta : float
        Reversion speed (>= 0).
    mu : float
        Long-run mean.
    sigma : float
        Volatility (>= 0).
    dt : float, default 1.0
    initial_value : float, default 0.0

    Examples
    --------
    >>> ou = MeanRevertingProcess(theta=0.3, mu=0.04, sigma=0.01, initial_value=0.05)
    >>> out = ou.generate_inflation_scenarios(10, 200, seed=3)
    >>> out.regimes[0].regime
    'normal'
    """
    theta: float
    mu: float
    sigma: float
    dt: float = 1.0
    initial_value: float = 0.0

    def __post_init__(self) -> None:
        if self.theta < 0:
            raise ValueError(f"theta must be non-negative, got {self.theta}")
        if self.sigma < 0:
            raise ValueError(f"sigma must be non-negative, got {self.sigma}")
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")

    def generate_path(
        self,
        periods: int,
        *,
        source: Optional[UniformSource] = None,
        seed: Optional[int] = None,
    ) -> np.ndarray:
        _check_periods(periods)
        src = source if source is not None else make_source(seed)
        sqrt_dt = math.sqrt(self.dt)
        values = np.empty(periods + 1)
        x = max(0.0, float(self.initial_value))
        values[0] = x
        for i in range(1, periods + 1):
            eps = standard_normal(src)
            x = max(0.0, x + self.theta * (self.mu - x) * self.dt + self.sigma * sqrt_dt * eps)
            values[i] = x
        return values

    def generate_inflation_scenarios(
        self,
        periods: int,
        n_scenarios: int,
        *,
        seed: Optional[int] = None,
    ) -> InflationScenarios:
        """
        Ensemble of paths plus the dominant regime per period.

        Ties between regimes resolve in the order low, normal, high.
        """
        _check_periods(periods)
        ensemble = run_ensemble(
            lambda src: self.generate_path(periods, source=src),
            n_scenarios,
            seed=seed,
            retain_paths=True,
            n_periods=periods + 1,
        )
        matrix = np.vstack(ensemble.paths) if ensemble.paths else np.zeros((0, periods + 1))

        observations: List[RegimeObservation] = []
        for t in range(periods + 1):
            counts = {name: 0 for name in REGIMES}
            for value in matrix[:, t]:
                counts[classify_regime(float(value))] += 1
            dominant = max(REGIMES, key=lambda name: counts[name])
            share = counts[dominant] / n_scenarios if n_scenarios else 0.0
            observations.append(RegimeObservation(t, dominant, share))

        return InflationScenarios(
            scenarios=matrix,
            regimes=tuple(observations),
            band=ensemble.band,
        )


# ---------------------------------------------------------------------------
# Compound growth with shocks (healthcare costs)
# ---------------------------------------------------------------------------

AGE_COST_BANDS: Tuple[Tuple[float, float], ...] = (
    (40, 1.00),
    (50, 1.02),
    (60, 1.05),
    (70, 1.08),
    (80, 1.12),
)
OLDEST_AGE_MULTIPLIER = 1.15

HEALTH_COST_MULTIPLIERS: Mapping[str, float] = MappingProxyType({
    "excellent": 0.98,
    "good": 1.00,
    "fair": 1.15,
    "poor": 1.35,
})

# Cumulative thresholds over a single uniform draw.
SHOCK_TYPES: Tuple[Tuple[float, str], ...] = (
    (0.3, "policy_change"),
    (0.5, "medical_breakthrough"),
    (0.7, "epidemic"),
    (1.0, "age_related"),
)

SHOCK_TEMPLATES: Mapping[str, str] = MappingProxyType({
    "policy_change": "{impact} healthcare policy change affecting costs",
    "medical_breakthrough": "{impact} impact from new medical technology/treatment",
    "epidemic": "{impact} healthcare cost increase due to health crisis",
    "age_related": "{impact} age-related health condition requiring ongoing care",
})


def age_cost_multiplier(age: float) -> float:
    for ceiling, multiplier in AGE_COST_BANDS:
        if age < ceiling:
            return multiplier
    return OLDEST_AGE_MULTIPLIER


def health_cost_multiplier(status: str) -> float:
    try:
        return HEALTH_COST_MULTIPLIERS[status]
    except KeyError:
        raise ValidationError(
            f"Unknown health status '{status}'. "
            f"Expected one of: {', '.join(HEALTH_COST_MULTIPLIERS)}."
        ) from None


def describe_shock(shock_type: str, magnitude: float) -> str:
    impact = "major" if magnitude > 0.5 else "moderate" if magnitude > 0.2 else "minor"
    template = SHOCK_TEMPLATES.get(shock_type, "{impact} unexpected healthcare cost increase")
    return template.format(impact=impact)


@dataclass(frozen=True)
class ShockEvent:
    period: int
    type: str
    magnitude: float
    description: str


@dataclass(frozen=True)
class CostPath:
    """One simulated cost series with the shocks that hit it."""
    costs: np.ndarray
    shocks: Tuple[ShockEvent, ...]
    total_cost: float
    average_annual_growth: float


@dataclass(frozen=True)
class HealthcareCostScenarios:
    band: PercentileBand
    average_shock_events: float
    total_cost_distribution: Dict[str, float]


@dataclass(frozen=True)
class ShockGrowthProcess:
    """
    Compounding cost growth with age/health multipliers and discrete shocks.

    Parameters
    ----------
    base_rate : float
        Mean growth rate per period.
    volatility : float
        Half-width of the uniform noise added to ``base_rate``.
    shock_probability : float
        Probability of a shock per period, in [0, 1].
    shock_magnitude : (float, float)
        Uniform range of the shock multiplier increment.
    initial_value : float
        Cost at period 0.
    """
    base_rate: float
    volatility: float
    shock_probability: float
    shock_magnitude: Tuple[float, float] = (0.1, 0.6)
    initial_value: float = 1.0

    def __post_init__(self) -> None:
        if self.volatility < 0:
            raise ValueError(f"volatility must be non-negative, got {self.volatility}")
        if not 0.0 <= self.shock_probability <= 1.0:
            raise ValueError(f"shock_probability must be in [0, 1], got {self.shock_probability}")
        low, high = self.shock_magnitude
        if high < low:
            raise ValueError(f"shock_magnitude must be (min, max) with min <= max, got {self.shock_magnitude}")
        if self.initial_value < 0:
            raise ValueError(f"initial_value must be non-negative, got {self.initial_value}")

    def generate_path(
        self,
        periods: int,
        ages: Sequence[float],
        health_statuses: Sequence[str],
        *,
        source: Optional[UniformSource] = None,
        seed: Optional[int] = None,
    ) -> CostPath:
        """
        Simulate one cost path of ``periods + 1`` values.

        ``ages[i - 1]`` and ``health_statuses[i - 1]`` apply to period ``i``;
        shorter sequences repeat their last entry.
        """
        _check_periods(periods)
        src = source if source is not None else make_source(seed)
        low, high = self.shock_magnitude

        costs = np.empty(periods + 1)
        costs[0] = value = float(self.initial_value)
        shocks: List[ShockEvent] = []
        for period in range(1, periods + 1):
            value *= 1.0 + self.base_rate + self.volatility * centered_uniform(src)
            if ages:
                value *= age_cost_multiplier(ages[min(period - 1, len(ages) - 1)])
            if health_statuses:
                value *= health_cost_multiplier(health_statuses[min(period - 1, len(health_statuses) - 1)])

            if src.uniform() < self.shock_probability:
                draw = src.uniform()
                shock_type = next(name for ceiling, name in SHOCK_TYPES if draw < ceiling)
                magnitude = low + src.uniform() * (high - low)
                value *= 1.0 + magnitude
                shocks.append(ShockEvent(period, shock_type, magnitude, describe_shock(shock_type, magnitude)))

            value = max(0.0, value)
            costs[period] = value

        if periods > 0 and costs[0] > 0:
            growth = (costs[-1] / costs[0]) ** (1.0 / periods) - 1.0
        else:
            growth = 0.0
        return CostPath(
            costs=costs,
            shocks=tuple(shocks),
            total_cost=float(costs.sum()),
            average_annual_growth=float(growth),
        )

    def generate_healthcare_cost_scenarios(
        self,
        periods: int,
        ages: Sequence[float],
        health_statuses: Sequence[str],
        n_scenarios: int,
        *,
        seed: Optional[int] = None,
    ) -> HealthcareCostScenarios:
        """Ensemble band, mean shocks per run and the total-cost distribution."""
        _check_periods(periods)
        if n_scenarios < 0:
            raise ValueError(f"n_scenarios must be non-negative, got {n_scenarios}")

        paths = []
        totals = []
        shock_count = 0
        for i in range(n_scenarios):
            src = make_source(None if seed is None else seed + i)
            path = self.generate_path(periods, ages, health_statuses, source=src)
            paths.append(path.costs)
            totals.append(path.total_cost)
            shock_count += len(path.shocks)

        ordered = np.sort(np.asarray(totals, dtype=float))
        n = ordered.size
        distribution = {
            "mean": float(ordered.mean()) if n else 0.0,
            "median": float(ordered[percentile_index(0.50, n)]) if n else 0.0,
            "p90": float(ordered[percentile_index(0.90, n)]) if n else 0.0,
            "p95": float(ordered[percentile_index(0.95, n)]) if n else 0.0,
        }
        return HealthcareCostScenarios(
            band=aggregate_paths(paths, n_periods=periods + 1),
            average_shock_events=shock_count / n_scenarios if n_scenarios else 0.0,
            total_cost_distribution=distribution,
        )
