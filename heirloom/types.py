"""
Type definitions for Heirloom.

Purpose
-------
TypedDict definitions for the JSON documents produced by
:mod:`heirloom.serialization`. They document the shape consumers of a
serialized result bundle can rely on.

Type Definitions
----------------
ProjectionPointDict
    One year of the projection series.
BandDict
    Percentile band arrays keyed p5 .. p95, mean, std.
BundleDict
    Top-level serialized result bundle.
"""

from typing import Any, Dict, List, Optional

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "ProjectionPointDict",
    "BandDict",
    "WealthDestroyerDict",
    "BundleDict",
]


class ProjectionPointDict(TypedDict):
    """One calendar year of a ProjectionSeries."""
    year: int
    age: int
    wealth: float
    income: float
    expenses: float
    investment_return: float
    lifecycle_costs: float
    net_cash_flow: float
    events: List[str]
    confidence: float


class BandDict(TypedDict):
    """Per-period percentile band."""
    p5: List[float]
    p25: List[float]
    p50: List[float]
    p75: List[float]
    p95: List[float]
    mean: List[float]
    std: List[float]
    n_paths: int


class WealthDestroyerDict(TypedDict):
    factor: str
    impact: float
    relative_impact: float
    description: str


class BundleDict(TypedDict):
    """Serialized ProjectionBundle."""
    schema_version: str
    seed: int
    config: Dict[str, Any]
    profile: Dict[str, Any]
    extinction_year: Optional[int]
    years_remaining: Optional[int]
    current_wealth: float
    per_child_inheritance: float
    grandchildren_inheritance: float
    series: List[ProjectionPointDict]
    wealth_destroyers: List[WealthDestroyerDict]
    family_impact: Dict[str, Any]
    scenarios: Dict[str, Any]
    complexity: Dict[str, Any]
    wealth_band: BandDict
    longevity: Dict[str, Any]
    diagnostics: Dict[str, Any]
    recommendations: Dict[str, Any]
    protected: Dict[str, Any]
    tail_risk: Dict[str, Any]
    outlooks: NotRequired[Dict[str, Any]]
