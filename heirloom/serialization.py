"""
Serialization module for Heirloom.

Purpose
-------
JSON persistence for household profiles and result bundles, so that an
external request layer can ship them over its transport of choice.

Supports:
- HouseholdProfile (round-trips through pydantic)
- ProjectionBundle (one-way export; numpy arrays become lists and
  non-finite floats become null)

Design Principles
-----------------
- Type-safe: profiles are validated on load
- Human-readable: indented JSON
- Reproducible: bundles record their seed and run configuration
- Versioned: documents carry a schema version; mismatches warn

Example
-------
>>> from pathlib import Path
>>> from heirloom.serialization import load_profile_json, save_bundle
>>> profile = load_profile_json(Path("household.json"))
>>> save_bundle(bundle, Path("result.json"))
"""

from __future__ import annotations

import dataclasses
import json
import math
import warnings
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping

import numpy as np
from pydantic import BaseModel

from .profile import HouseholdProfile, load_profile

if TYPE_CHECKING:
    from .integrator import ProjectionBundle
    from .lifecycle import ProjectionSeries
    from .montecarlo import PercentileBand
    from .types import BandDict, BundleDict, ProjectionPointDict

__all__ = [
    "SCHEMA_VERSION",
    "to_jsonable",
    "profile_to_dict",
    "profile_from_dict",
    "load_profile_json",
    "save_profile_json",
    "series_to_records",
    "band_to_dict",
    "bundle_to_dict",
    "save_bundle",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


def _check_schema(data: Mapping[str, Any]) -> None:
    version = data.get("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        warnings.warn(
            f"Document schema version {version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


def to_jsonable(obj: Any) -> Any:
    """Recursively convert dataclasses, numpy values and mappings to JSON types."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, np.ndarray):
        return [to_jsonable(v) for v in obj.tolist()]
    if isinstance(obj, np.generic):
        return to_jsonable(obj.item())
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

def profile_to_dict(profile: HouseholdProfile) -> Dict[str, Any]:
    """Profile as a plain dict tagged with the schema version."""
    data = profile.model_dump(mode="json")
    data["schema_version"] = SCHEMA_VERSION
    return data


def profile_from_dict(data: Mapping[str, Any]) -> HouseholdProfile:
    """
    Validate a profile dict.

    Raises
    ------
    ProfileValidationError
        If any field is invalid.
    """
    _check_schema(data)
    payload = {k: v for k, v in data.items() if k != "schema_version"}
    return load_profile(payload)


def load_profile_json(path: Path) -> HouseholdProfile:
    with open(path, "r") as f:
        return profile_from_dict(json.load(f))


def save_profile_json(profile: HouseholdProfile, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(profile_to_dict(profile), f, indent=2)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def series_to_records(series: ProjectionSeries) -> list:
    records = []
    for p in series.points:
        record: ProjectionPointDict = {
            "year": p.year,
            "age": p.age,
            "wealth": p.wealth,
            "income": p.income,
            "expenses": p.expenses,
            "investment_return": p.investment_return,
            "lifecycle_costs": p.lifecycle_costs,
            "net_cash_flow": p.net_cash_flow,
            "events": list(p.events),
            "confidence": p.confidence,
        }
        records.append(to_jsonable(record))
    return records


def band_to_dict(band: PercentileBand) -> BandDict:
    return to_jsonable(band)


def bundle_to_dict(bundle: ProjectionBundle) -> BundleDict:
    """
    Export a result bundle as JSON-compatible data.

    The raw inflation scenario matrix is omitted; its band and regime
    summary are kept.
    """
    data: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "seed": bundle.seed,
        "config": bundle.config.model_dump(mode="json"),
        "profile": bundle.profile.model_dump(mode="json"),
        "extinction_year": bundle.extinction_year,
        "years_remaining": bundle.years_remaining,
        "current_wealth": bundle.current_wealth,
        "per_child_inheritance": bundle.per_child_inheritance,
        "grandchildren_inheritance": bundle.grandchildren_inheritance,
        "series": series_to_records(bundle.series),
        "wealth_destroyers": to_jsonable(bundle.wealth_destroyers),
        "family_impact": to_jsonable(bundle.family_impact),
        "scenarios": {
            "best_case": to_jsonable(bundle.scenarios.best_case),
            "most_likely": to_jsonable(bundle.scenarios.most_likely),
            "worst_case": to_jsonable(bundle.scenarios.worst_case),
            "percentile_years": to_jsonable(bundle.scenarios.percentile_years),
            "statistics": to_jsonable(bundle.scenarios.statistics),
            "stress_tests": to_jsonable(bundle.scenarios.stress_tests),
            "adjusted": [
                {
                    "name": s.name,
                    "probability": s.probability,
                    "description": s.description,
                    "extinction_year": s.extinction_year,
                    "adjustment": to_jsonable(s.adjustment),
                    "series": series_to_records(s.series),
                }
                for s in bundle.scenarios.adjusted
            ],
            "what_ifs": to_jsonable(bundle.scenarios.what_ifs),
        },
        "complexity": to_jsonable(bundle.complexity),
        "wealth_band": band_to_dict(bundle.wealth_band),
        "longevity": to_jsonable(bundle.longevity),
        "diagnostics": to_jsonable(bundle.diagnostics),
        "recommendations": to_jsonable(bundle.recommendations),
        "protected": {
            "improvements": to_jsonable(bundle.protected.improvements),
            "adjustment": to_jsonable(bundle.protected.adjustment),
            "extinction_year": bundle.protected.extinction_year,
            "additional_years": bundle.protected.additional_years,
            "estimated_extension": bundle.protected.estimated_extension,
            "total_cost_savings": bundle.protected.total_cost_savings,
            "grandchildren_inheritance": bundle.protected.grandchildren_inheritance,
            "series": series_to_records(bundle.protected.series),
        },
        "tail_risk": to_jsonable(bundle.tail_risk),
    }
    if bundle.outlooks is not None:
        inflation = bundle.outlooks.inflation
        data["outlooks"] = {
            "market": to_jsonable(bundle.outlooks.market),
            "inflation": {
                "band": band_to_dict(inflation.band),
                "regimes": to_jsonable(inflation.regimes),
            },
            "healthcare": to_jsonable(bundle.outlooks.healthcare),
        }
    return data


def save_bundle(bundle: ProjectionBundle, path: Path) -> None:
    """Write a result bundle to ``path`` as indented JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(bundle_to_dict(bundle), f, indent=2)
