"""
Heirloom: Household Wealth Extinction Projection

Projects a household's wealth year by year, estimates when it is
exhausted, and reports what reaches children and grandchildren.

Modules
-------
- profile      : Validated household profile (pydantic)
- config       : Run configuration and environment settings
- rng          : Seeded and ambient uniform sources, normal transforms
- montecarlo   : Ensemble runner and percentile bands
- processes    : Diffusion, mean-reverting and shock-growth processes
- actuarial    : Life expectancy and mortality curves
- lifecycle    : Annual lifecycle projection and extinction year
- scenario     : Scenario, stress-test and what-if analysis
- family       : Estate tax, inheritance and grandchildren impact
- complexity   : Family complexity scoring
- destroyers   : Wealth destroyer ranking
- recommendations: Action plan and protected scenario
- tail_risk    : Extreme-value (GPD) tail risk of annual losses
- diagnostics  : PSI drift and statistical validation tests
- integrator   : Comprehensive projection orchestration
- serialization: JSON persistence
- cli          : Command-line interface
"""

from .actuarial import ActuarialModel
from .config import AppSettings, RunConfig
from .exceptions import (
    ConfigurationError,
    HeirloomError,
    ProfileValidationError,
    SimulationError,
    ValidationError,
)
from .integrator import ComprehensiveProjection, ProjectionBundle
from .lifecycle import LifecycleAssumptions, LifecycleProjector, ProjectionSeries
from .profile import HouseholdProfile, load_profile
from .recommendations import Recommendations, generate_recommendations
from .rng import AmbientSource, LCGSource, make_source
from .tail_risk import TailRiskAnalysis, analyze_tail_risk

__version__ = "0.1.0"

__all__ = [
    "ActuarialModel",
    "AppSettings",
    "RunConfig",
    "HeirloomError",
    "ConfigurationError",
    "ValidationError",
    "ProfileValidationError",
    "SimulationError",
    "ComprehensiveProjection",
    "ProjectionBundle",
    "LifecycleAssumptions",
    "LifecycleProjector",
    "ProjectionSeries",
    "HouseholdProfile",
    "load_profile",
    "Recommendations",
    "generate_recommendations",
    "TailRiskAnalysis",
    "analyze_tail_risk",
    "AmbientSource",
    "LCGSource",
    "make_source",
]
