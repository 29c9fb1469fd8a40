"""
Scenario analysis for Heirloom.

Purpose
-------
Two complementary views of uncertainty around a baseline projection:

1. Ensemble summary: an ensemble of extinction years (one per Monte Carlo
   lifecycle run) is sorted and its 10th/25th/50th/75th/90th percentiles
   become worst/lower-quartile/most-likely/upper-quartile/best cases,
   with fixed probabilities and condition lists, plus summary statistics.
2. Adjusted re-runs: best/worst/stress variants shift return, inflation
   and life-event probability by fixed deltas and re-run the projector
   with the baseline seed, so every variant sees the same draws.

A fixed stress catalog and a set of what-if levers (each a re-run with
one profile or assumption change) complete the bundle.

Runs that never exhaust wealth are censored at the first year past the
horizon when extinction years are compared or summarized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .constants import ASSUMED_DEATH_AGE, SCENARIO_PERCENTILES, SCENARIO_PROBABILITIES
from .lifecycle import (
    DEFAULT_ASSUMPTIONS,
    LifecycleAssumptions,
    LifecycleProjector,
    ProjectionSeries,
    ScenarioAdjustment,
    adjust_assumptions,
    point_at_or_after,
)
from .montecarlo import percentile_index, percentile_summary
from .profile import HouseholdProfile
from .rng import make_source

logger = logging.getLogger(__name__)

__all__ = [
    "SCENARIO_ADJUSTMENTS",
    "STRESS_CATALOG",
    "ScenarioCase",
    "StressTest",
    "ExtinctionStatistics",
    "AdjustedScenario",
    "WhatIfResult",
    "ScenarioBundle",
    "ScenarioAnalyzer",
    "summarize_extinction_years",
]


# ---------------------------------------------------------------------------
# Fixed catalogs
# ---------------------------------------------------------------------------

SCENARIO_ADJUSTMENTS: Tuple[ScenarioAdjustment, ...] = (
    ScenarioAdjustment("best_case", return_delta=0.02, inflation_delta=-0.01, event_multiplier=0.5),
    ScenarioAdjustment("worst_case", return_delta=-0.02, inflation_delta=0.01, event_multiplier=1.5),
    ScenarioAdjustment("stress", return_delta=-0.04, inflation_delta=0.02, event_multiplier=2.0),
)

CONDITIONS: Dict[str, Tuple[str, ...]] = {
    "best_case": (
        "Optimal investment returns",
        "Lower than expected inflation",
        "Minimal unexpected expenses",
        "Excellent family coordination",
    ),
    "most_likely": (
        "Average investment returns",
        "Expected inflation rates",
        "Typical life events and expenses",
        "Good family coordination",
    ),
    "worst_case": (
        "Below average investment returns",
        "Higher than expected inflation",
        "Multiple unexpected expenses",
        "Poor family coordination",
    ),
}

DESCRIPTIONS: Dict[str, str] = {
    "best_case": "Optimistic scenario with above-average returns and minimal unexpected expenses",
    "most_likely": "Most likely scenario based on average historical performance",
    "worst_case": "Pessimistic scenario with below-average returns and higher expenses",
    "stress": "Extreme scenario testing resilience against multiple simultaneous challenges",
}

# Offsets used when no ensemble is available.
FALLBACK_OFFSETS: Dict[str, int] = {
    "p10": -5, "p25": -3, "p50": 0, "p75": 3, "p90": 5,
}


@dataclass(frozen=True)
class StressTest:
    scenario: str
    extinction_year_delta: int
    wealth_delta: float
    probability: float
    description: str
    projected_extinction_year: Optional[int] = None


STRESS_CATALOG: Tuple[StressTest, ...] = (
    StressTest(
        "Market Crash + Health Emergency", -8, -3_500_000.0, 0.03,
        "Simultaneous 30% market decline and major health emergency",
    ),
    StressTest(
        "Extended Bear Market", -5, -2_200_000.0, 0.05,
        "5-year period of negative real returns",
    ),
    StressTest(
        "Family Coordination Failure", -4, -1_800_000.0, 0.07,
        "Lack of coordination leading to inefficient resource allocation",
    ),
)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScenarioCase:
    name: str
    extinction_year: int
    probability: float
    conditions: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class ExtinctionStatistics:
    """Summary of an ensemble of (censored) extinction years."""
    n: int
    median: float
    mean: float
    std: float
    interval_95: Tuple[float, float]
    censored_fraction: float


@dataclass(frozen=True)
class AdjustedScenario:
    name: str
    adjustment: ScenarioAdjustment
    series: ProjectionSeries
    probability: float
    description: str

    @property
    def extinction_year(self) -> Optional[int]:
        return self.series.extinction_year


@dataclass(frozen=True)
class WhatIfResult:
    name: str
    description: str
    extinction_year: Optional[int]
    extinction_year_impact: int
    wealth_impact: float


@dataclass(frozen=True)
class ScenarioBundle:
    best_case: ScenarioCase
    most_likely: ScenarioCase
    worst_case: ScenarioCase
    percentile_years: Dict[str, int]
    statistics: ExtinctionStatistics
    stress_tests: Tuple[StressTest, ...]
    adjusted: Tuple[AdjustedScenario, ...] = ()
    what_ifs: Tuple[WhatIfResult, ...] = ()

    def adjusted_by_name(self, name: str) -> AdjustedScenario:
        for scenario in self.adjusted:
            if scenario.name == name:
                return scenario
        raise KeyError(name)


# ---------------------------------------------------------------------------
# Ensemble summary
# ---------------------------------------------------------------------------

def _censor(years: Sequence[Optional[int]], censor_year: int) -> np.ndarray:
    return np.array([censor_year if y is None else y for y in years], dtype=float)


def summarize_extinction_years(
    years: Sequence[Optional[int]],
    baseline_year: int,
    censor_year: int,
) -> Tuple[Dict[str, int], ExtinctionStatistics]:
    """
    Percentile years and statistics of an extinction-year ensemble.

    Parameters
    ----------
    years : sequence of int or None
        None marks a run whose wealth survived the horizon.
    baseline_year : int
        Used for the fallback percentiles of an empty ensemble.
    censor_year : int
        Value substituted for None.

    Returns
    -------
    (dict, ExtinctionStatistics)
        ``{"p10": ..., "p90": ...}`` and the statistics. The 95% interval
        spans the 2.5th and 97.5th percentiles.
    """
    data = np.sort(_censor(years, censor_year))
    n = data.size
    if n == 0:
        percentiles = {key: baseline_year + offset for key, offset in FALLBACK_OFFSETS.items()}
        stats = ExtinctionStatistics(0, float(baseline_year), float(baseline_year), 0.0,
                                     (float(baseline_year), float(baseline_year)), 0.0)
        return percentiles, stats

    percentiles = {key: int(value) for key, value in percentile_summary(data, SCENARIO_PERCENTILES).items()}
    censored = sum(1 for y in years if y is None) / n
    stats = ExtinctionStatistics(
        n=n,
        median=float(np.median(data)),
        mean=float(data.mean()),
        std=float(data.std()),
        interval_95=(float(data[percentile_index(0.025, n)]), float(data[percentile_index(0.975, n)])),
        censored_fraction=float(censored),
    )
    return percentiles, stats


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class ScenarioAnalyzer:
    """
    Builds a ScenarioBundle around a baseline projection.

    Parameters
    ----------
    assumptions : LifecycleAssumptions, optional
        Baseline assumptions; variants are derived from them with pure
        adjustments.
    horizon_years : int
        Horizon of every re-run.
    complexity_score : float
        Passed through to the projector.
    stochastic : bool
        Passed through to the projector.
    death_age : int
        Age at which what-if wealth impacts are read.
    """

    def __init__(
        self,
        assumptions: LifecycleAssumptions = DEFAULT_ASSUMPTIONS,
        *,
        horizon_years: int = 75,
        complexity_score: float = 5.0,
        stochastic: bool = True,
        death_age: int = ASSUMED_DEATH_AGE,
    ):
        self.assumptions = assumptions
        self.horizon_years = horizon_years
        self.complexity_score = complexity_score
        self.stochastic = stochastic
        self.death_age = death_age

    def _run(self, profile: HouseholdProfile, assumptions: LifecycleAssumptions, seed: int) -> ProjectionSeries:
        return LifecycleProjector(assumptions).project(
            profile,
            self.horizon_years,
            make_source(seed),
            complexity_score=self.complexity_score,
            stochastic=self.stochastic,
        )

    def censor_year(self, profile: HouseholdProfile) -> int:
        return profile.base_year + self.horizon_years

    def effective_year(self, series: ProjectionSeries) -> int:
        """Extinction year, or the first year past the horizon."""
        year = series.extinction_year
        return year if year is not None else series.base_year + self.horizon_years

    # -- pieces -------------------------------------------------------------

    def adjusted_scenarios(self, profile: HouseholdProfile, seed: int) -> Tuple[AdjustedScenario, ...]:
        """Best, worst and stress re-runs sharing the baseline seed."""
        out = []
        for adjustment in SCENARIO_ADJUSTMENTS:
            series = self._run(profile, adjust_assumptions(self.assumptions, adjustment), seed)
            out.append(AdjustedScenario(
                name=adjustment.name,
                adjustment=adjustment,
                series=series,
                probability=SCENARIO_PROBABILITIES[adjustment.name],
                description=DESCRIPTIONS[adjustment.name],
            ))
        return tuple(out)

    def stress_tests(self, baseline_year: int) -> Tuple[StressTest, ...]:
        return tuple(
            replace(test, projected_extinction_year=baseline_year + test.extinction_year_delta)
            for test in STRESS_CATALOG
        )

    def _levers(self, profile: HouseholdProfile) -> List[Tuple[str, str, Callable[[], Tuple[HouseholdProfile, LifecycleAssumptions]]]]:
        a = self.assumptions
        levers = []

        def aggressive():
            alloc = profile.financial_foundation.investment_allocation
            shift = min(0.2, alloc.bonds, 1.0 - alloc.stocks)
            new_alloc = alloc.model_copy(update={"stocks": alloc.stocks + shift, "bonds": alloc.bonds - shift})
            finances = profile.financial_foundation.model_copy(update={"investment_allocation": new_alloc})
            return profile.model_copy(update={"financial_foundation": finances}), a

        levers.append(("Aggressive Investment Strategy",
                       "Increase stock allocation by 20%, decrease bonds by 20%", aggressive))
        levers.append(("Delayed Retirement", "Work 5 years longer than planned",
                       lambda: (profile, replace(a, retirement_age=a.retirement_age + 5))))
        if profile.children:
            def public():
                children = [c.model_copy(update={"education_aspiration": "public_state"}) for c in profile.children]
                return profile.model_copy(update={"children": children}), a
            levers.append(("Public University Education",
                           "Choose public universities instead of private/international", public))
        if profile.family_care.parents and profile.family_care.siblings:
            def coordinated():
                care = profile.family_care.model_copy(update={"family_coordination": "excellent"})
                return profile.model_copy(update={"family_care": care}), a
            levers.append(("Coordinated Parent Care",
                           "Improve sibling coordination for parent care expenses", coordinated))
        levers.append(("Expense Optimization", "Reduce discretionary expenses by 15%",
                       lambda: (profile, replace(a, expense_scale=a.expense_scale * 0.85))))
        return levers

    def what_ifs(self, profile: HouseholdProfile, baseline: ProjectionSeries, seed: int) -> Tuple[WhatIfResult, ...]:
        """Re-run the projector once per applicable lever."""
        target = profile.base_year + max(0, self.death_age - profile.age)
        base_point = point_at_or_after(baseline.points, target)
        base_wealth = base_point.wealth if base_point is not None else 0.0
        base_year = self.effective_year(baseline)

        results = []
        for name, description, build in self._levers(profile):
            variant_profile, variant_assumptions = build()
            series = self._run(variant_profile, variant_assumptions, seed)
            point = point_at_or_after(series.points, target)
            results.append(WhatIfResult(
                name=name,
                description=description,
                extinction_year=series.extinction_year,
                extinction_year_impact=self.effective_year(series) - base_year,
                wealth_impact=(point.wealth if point is not None else 0.0) - base_wealth,
            ))
        return tuple(results)

    # -- bundle -------------------------------------------------------------

    def analyze(
        self,
        profile: HouseholdProfile,
        baseline: ProjectionSeries,
        extinction_years: Sequence[Optional[int]],
        seed: int,
        *,
        include_what_ifs: bool = True,
    ) -> ScenarioBundle:
        """
        Assemble the full scenario bundle.

        Parameters
        ----------
        profile : HouseholdProfile
        baseline : ProjectionSeries
            Baseline run (same seed as ``seed``).
        extinction_years : sequence of int or None
            Ensemble of extinction years from Monte Carlo runs.
        seed : int
            Seed shared by every re-run.
        """
        baseline_year = self.effective_year(baseline)
        percentiles, stats = summarize_extinction_years(
            extinction_years, baseline_year, self.censor_year(profile)
        )

        def case(name: str, key: str) -> ScenarioCase:
            return ScenarioCase(
                name=name,
                extinction_year=percentiles[key],
                probability=SCENARIO_PROBABILITIES[name],
                conditions=CONDITIONS[name],
                description=DESCRIPTIONS[name],
            )

        bundle = ScenarioBundle(
            best_case=case("best_case", "p90"),
            most_likely=case("most_likely", "p50"),
            worst_case=case("worst_case", "p10"),
            percentile_years=percentiles,
            statistics=stats,
            stress_tests=self.stress_tests(baseline_year),
            adjusted=self.adjusted_scenarios(profile, seed),
            what_ifs=self.what_ifs(profile, baseline, seed) if include_what_ifs else (),
        )
        logger.debug(
            "Scenario bundle: worst=%d likely=%d best=%d",
            bundle.worst_case.extinction_year,
            bundle.most_likely.extinction_year,
            bundle.best_case.extinction_year,
        )
        return bundle
