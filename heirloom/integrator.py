"""
Comprehensive projection for Heirloom.

Purpose
-------
Orchestrates every component into one result bundle for a household:

    profile ─┬─ complexity analysis ─────────────┐
             ├─ baseline lifecycle projection ───┼─ family impact ─ wealth destroyers
             ├─ Monte Carlo lifecycle ensemble ──┴─ scenario bundle, tail risk
             ├─ recommendations ─ protected scenario
             ├─ longevity (actuarial)
             └─ market / inflation / healthcare outlooks

Determinism
-----------
A single run seed drives everything. The baseline and every scenario
re-run use ``seed``; Monte Carlo run ``i`` uses ``seed + 1 + i``. With no
configured seed, one is drawn from an ambient source and reported on the
bundle so the run can be replayed.

Example
-------
>>> from heirloom.config import RunConfig
>>> from heirloom.integrator import ComprehensiveProjection
>>> bundle = ComprehensiveProjection(RunConfig(n_paths=200, seed=42)).run(profile)
>>> bundle.current_wealth == profile.net_worth
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .actuarial import ActuarialModel, MortalityCurve
from .complexity import ComplexityAnalysis, analyze_complexity
from .config import RunConfig
from .constants import LCG_MODULUS
from .destroyers import WealthDestroyer, rank_wealth_destroyers
from .diagnostics import ValidationReport, validate_series
from .family import DEFAULT_ESTATE, EstateAssumptions, FamilyImpactCalculator, FamilyImpactResult
from .lifecycle import DEFAULT_ASSUMPTIONS, LifecycleAssumptions, LifecycleProjector, ProjectionSeries
from .montecarlo import PercentileBand, run_ensemble, value_at_risk
from .processes import (
    DiffusionProcess,
    HealthcareCostScenarios,
    InflationScenarios,
    MeanRevertingProcess,
    ShockGrowthProcess,
    max_drawdown,
)
from .profile import HouseholdProfile, vary_profile
from .recommendations import ProtectedScenario, Recommendations, generate_recommendations, protected_scenario
from .rng import AmbientSource, UniformSource, make_source
from .scenario import ScenarioAnalyzer, ScenarioBundle
from .tail_risk import TailRiskAnalysis, analyze_tail_risk, annual_losses

logger = logging.getLogger(__name__)

__all__ = [
    "Longevity",
    "MarketOutlook",
    "Outlooks",
    "ProjectionBundle",
    "ComprehensiveProjection",
]

INFLATION_REVERSION = 0.3
INFLATION_VOLATILITY = 0.01
HEALTHCARE_COST_SHARE = 0.05
HEALTHCARE_VOLATILITY = 0.02
HEALTHCARE_SHOCK_PROBABILITY = 0.05
HEALTHCARE_SHOCK_RANGE = (0.1, 0.6)


@dataclass(frozen=True)
class Longevity:
    life_expectancy: float
    mortality: MortalityCurve
    scenarios: Dict[str, float]


@dataclass(frozen=True)
class MarketOutlook:
    """Market-only view of current net worth under the portfolio's drift and volatility."""
    drift: float
    volatility: float
    band: PercentileBand
    value_at_risk_95: float
    median_max_drawdown: float


@dataclass(frozen=True)
class Outlooks:
    market: MarketOutlook
    inflation: InflationScenarios
    healthcare: HealthcareCostScenarios


@dataclass(frozen=True)
class ProjectionBundle:
    """
    Everything computed for one household.

    Attributes
    ----------
    extinction_year : int or None
        None when wealth survives the horizon.
    years_remaining : int or None
        ``extinction_year - base_year``.
    wealth_band : PercentileBand
        Monte Carlo band of lifecycle wealth over ``horizon_years + 1`` points.
    tail_risk : TailRiskAnalysis
        Extreme-value analysis of annual losses pooled over the ensemble.
    protected : ProtectedScenario
        Baseline re-run with the recommendations in place.
    outlooks : Outlooks or None
        Present when ``RunConfig.include_outlooks`` is set.
    """
    profile: HouseholdProfile
    config: RunConfig
    seed: int
    extinction_year: Optional[int]
    years_remaining: Optional[int]
    current_wealth: float
    per_child_inheritance: float
    grandchildren_inheritance: float
    series: ProjectionSeries
    wealth_destroyers: Tuple[WealthDestroyer, ...]
    family_impact: FamilyImpactResult
    scenarios: ScenarioBundle
    complexity: ComplexityAnalysis
    wealth_band: PercentileBand
    extinction_years: Tuple[Optional[int], ...]
    longevity: Longevity
    diagnostics: ValidationReport
    recommendations: Recommendations
    protected: ProtectedScenario
    tail_risk: TailRiskAnalysis
    outlooks: Optional[Outlooks] = None


class ComprehensiveProjection:
    """
    Orchestrator producing a :class:`ProjectionBundle`.

    Parameters
    ----------
    config : RunConfig, optional
    assumptions : LifecycleAssumptions, optional
    estate : EstateAssumptions, optional
    actuarial : ActuarialModel, optional
    """

    def __init__(
        self,
        config: Optional[RunConfig] = None,
        *,
        assumptions: LifecycleAssumptions = DEFAULT_ASSUMPTIONS,
        estate: EstateAssumptions = DEFAULT_ESTATE,
        actuarial: Optional[ActuarialModel] = None,
    ):
        self.config = config or RunConfig()
        self.assumptions = assumptions
        self.estate = estate
        self.actuarial = actuarial or ActuarialModel()

    def resolve_seed(self) -> int:
        if self.config.seed is not None:
            return self.config.seed
        return int(AmbientSource().uniform() * LCG_MODULUS)

    # -- stages -------------------------------------------------------------

    def _ensemble(
        self,
        profile: HouseholdProfile,
        projector: LifecycleProjector,
        complexity_score: float,
        seed: int,
    ) -> Tuple[PercentileBand, Tuple[Optional[int], ...], Tuple[np.ndarray, ...]]:
        cfg = self.config

        def one_run(source: UniformSource) -> np.ndarray:
            varied = vary_profile(profile, source)
            series = projector.project(
                varied, cfg.horizon_years, source,
                complexity_score=complexity_score, stochastic=cfg.stochastic,
            )
            return series.wealth

        result = run_ensemble(
            one_run, cfg.n_paths, seed=seed + 1, retain_paths=True, n_periods=cfg.horizon_years + 1
        )
        years = tuple(
            profile.base_year + path.size - 1 if path.size and path[-1] <= 0 else None
            for path in result.paths
        )
        return result.band, years, result.paths

    def _longevity(self, profile: HouseholdProfile, seed: int) -> Longevity:
        identity = profile.core_identity
        factors = (identity.gender, identity.health_status, identity.income_level, identity.education_level)
        expectancy = self.actuarial.life_expectancy(identity.age, *factors)
        return Longevity(
            life_expectancy=expectancy,
            mortality=self.actuarial.mortality_curve(identity.age, expectancy, self.config.horizon_years),
            scenarios=self.actuarial.life_expectancy_scenarios(
                identity.age, *factors, n_scenarios=self.config.outlook_paths, seed=seed
            ),
        )

    def _outlooks(self, profile: HouseholdProfile, seed: int) -> Outlooks:
        a = self.assumptions
        horizon = self.config.horizon_years
        n = self.config.outlook_paths
        weights = profile.financial_foundation.investment_allocation.weights()

        gbm = DiffusionProcess(
            mu=a.portfolio_return(weights, profile.behavioral.risk_tolerance),
            sigma=a.portfolio_volatility(weights),
            initial_value=profile.net_worth,
        )
        market = gbm.generate_monte_carlo_paths(horizon, n, seed=seed, retain_paths=True)
        drawdowns = np.array([max_drawdown(p) for p in market.paths])

        inflation = MeanRevertingProcess(
            theta=INFLATION_REVERSION,
            mu=a.general_inflation,
            sigma=INFLATION_VOLATILITY,
            initial_value=a.general_inflation,
        ).generate_inflation_scenarios(horizon, n, seed=seed)

        ages = [profile.age + i for i in range(horizon)]
        healthcare = ShockGrowthProcess(
            base_rate=a.healthcare_inflation,
            volatility=HEALTHCARE_VOLATILITY,
            shock_probability=HEALTHCARE_SHOCK_PROBABILITY,
            shock_magnitude=HEALTHCARE_SHOCK_RANGE,
            initial_value=profile.annual_income * HEALTHCARE_COST_SHARE,
        ).generate_healthcare_cost_scenarios(
            horizon, ages, [profile.core_identity.health_status], n, seed=seed
        )

        return Outlooks(
            market=MarketOutlook(
                drift=gbm.mu,
                volatility=gbm.sigma,
                band=market.band,
                value_at_risk_95=value_at_risk(market.terminal_values, 0.95),
                median_max_drawdown=float(np.median(drawdowns)) if drawdowns.size else 0.0,
            ),
            inflation=inflation,
            healthcare=healthcare,
        )

    # -- entry point --------------------------------------------------------

    def run(self, profile: HouseholdProfile) -> ProjectionBundle:
        """Compute the full result bundle for a validated profile."""
        cfg = self.config
        seed = self.resolve_seed()
        logger.info(
            "Projecting household (age %d, horizon %d, %d paths, seed %d)",
            profile.age, cfg.horizon_years, cfg.n_paths, seed,
        )

        complexity = analyze_complexity(profile)
        projector = LifecycleProjector(self.assumptions)
        baseline = projector.project(
            profile, cfg.horizon_years, make_source(seed),
            complexity_score=complexity.score, stochastic=cfg.stochastic,
        )

        band, years, paths = self._ensemble(profile, projector, complexity.score, seed)

        analyzer = ScenarioAnalyzer(
            self.assumptions,
            horizon_years=cfg.horizon_years,
            complexity_score=complexity.score,
            stochastic=cfg.stochastic,
            death_age=cfg.assumed_death_age,
        )
        scenarios = analyzer.analyze(profile, baseline, years, seed)

        family_calculator = FamilyImpactCalculator(self.estate, death_age=cfg.assumed_death_age)
        family = family_calculator.calculate(profile, baseline)
        destroyers = rank_wealth_destroyers(profile, baseline, family)
        recommendations = generate_recommendations(profile, complexity, self.assumptions)
        protected = protected_scenario(
            profile, baseline, seed,
            assumptions=self.assumptions,
            complexity_score=complexity.score,
            stochastic=cfg.stochastic,
            family=family_calculator,
        )

        extinction = baseline.extinction_year
        bundle = ProjectionBundle(
            profile=profile,
            config=cfg,
            seed=seed,
            extinction_year=extinction,
            years_remaining=None if extinction is None else extinction - profile.base_year,
            current_wealth=profile.net_worth,
            per_child_inheritance=family.inheritance.per_child,
            grandchildren_inheritance=family.grandchildren.total_inheritance,
            series=baseline,
            wealth_destroyers=destroyers,
            family_impact=family,
            scenarios=scenarios,
            complexity=complexity,
            wealth_band=band,
            extinction_years=years,
            longevity=self._longevity(profile, seed),
            diagnostics=validate_series(baseline.wealth),
            recommendations=recommendations,
            protected=protected,
            tail_risk=analyze_tail_risk(annual_losses(paths)),
            outlooks=self._outlooks(profile, seed) if cfg.include_outlooks else None,
        )
        logger.info(
            "Projection complete: extinction %s, %d of %d runs exhausted wealth",
            extinction if extinction is not None else "beyond horizon",
            sum(1 for y in years if y is not None),
            len(years),
        )
        return bundle
