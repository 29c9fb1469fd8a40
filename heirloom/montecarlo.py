"""
Monte Carlo aggregation for Heirloom.

Purpose
-------
Runs any path generator N times and reduces the ensemble, per time index,
to a PercentileBand (5th/25th/50th/75th/95th percentiles, mean and
population standard deviation). Scalar helpers summarize terminal values
and compute value-at-risk.

Design principles
-----------------
- Generator-agnostic: a generator is any callable ``f(source) -> sequence``
- Path i owns its own uniform source, seeded with ``seed + i``
- Percentile index is ``floor(q * N)`` clamped to [0, N - 1] on the sorted
  cross-section, so N = 1 returns the single path for every percentile
- Reductions run on the sorted cross-section, so the result does not
  depend on the order in which paths were produced
- Ragged ensembles are padded with each path's last value; an empty
  ensemble reduces to zeros

Example
-------
>>> from heirloom.montecarlo import run_ensemble
>>> from heirloom.processes import DiffusionProcess
>>> gbm = DiffusionProcess(mu=0.07, sigma=0.15, initial_value=100.0)
>>> result = run_ensemble(lambda src: gbm.generate_path(10, source=src), 200, seed=1)
>>> result.band.p50.shape
(11,)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import BAND_PERCENTILES, SCENARIO_PERCENTILES
from .exceptions import SimulationError
from .rng import UniformSource, make_source

logger = logging.getLogger(__name__)

__all__ = [
    "PercentileBand",
    "EnsembleResult",
    "percentile_index",
    "aggregate_paths",
    "run_ensemble",
    "percentile_summary",
    "value_at_risk",
]

PathGenerator = Callable[[UniformSource], Sequence[float]]


def percentile_index(q: float, n: int) -> int:
    """Index of quantile ``q`` in a sorted sample of size ``n``."""
    if n <= 0:
        return 0
    return min(max(int(math.floor(q * n)), 0), n - 1)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PercentileBand:
    """
    Per-period distribution summary of an ensemble.

    All arrays share the same length (number of periods) and are
    read-only once constructed.
    """
    p5: np.ndarray
    p25: np.ndarray
    p50: np.ndarray
    p75: np.ndarray
    p95: np.ndarray
    mean: np.ndarray
    std: np.ndarray
    n_paths: int = 0

    def __post_init__(self) -> None:
        for name in ("p5", "p25", "p50", "p75", "p95", "mean", "std"):
            arr = np.asarray(getattr(self, name), dtype=float)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def n_periods(self) -> int:
        return int(self.p50.shape[0])

    @classmethod
    def zeros(cls, n_periods: int = 0) -> "PercentileBand":
        z = np.zeros(n_periods)
        return cls(z, z, z, z, z, z, z, n_paths=0)

    def to_frame(self, index: Optional[Sequence] = None) -> pd.DataFrame:
        """Band as a DataFrame with one row per period."""
        return pd.DataFrame(
            {
                "p5": self.p5,
                "p25": self.p25,
                "p50": self.p50,
                "p75": self.p75,
                "p95": self.p95,
                "mean": self.mean,
                "std": self.std,
            },
            index=pd.Index(index if index is not None else range(self.n_periods), name="period"),
        )


@dataclass(frozen=True)
class EnsembleResult:
    """Reduced ensemble plus, optionally, the raw paths."""
    band: PercentileBand
    terminal_values: np.ndarray
    paths: Optional[Tuple[np.ndarray, ...]] = None

    @property
    def n_paths(self) -> int:
        return self.band.n_paths


# ---------------------------------------------------------------------------
# Reductions
# ---------------------------------------------------------------------------

def _as_matrix(paths: Sequence[Sequence[float]], n_periods: Optional[int]) -> np.ndarray:
    rows = [np.asarray(p, dtype=float).ravel() for p in paths]
    width = n_periods if n_periods is not None else max((r.size for r in rows), default=0)
    matrix = np.zeros((len(rows), width))
    for i, row in enumerate(rows):
        if row.size == 0:
            continue
        k = min(row.size, width)
        matrix[i, :k] = row[:k]
        matrix[i, k:] = row[-1]
    return matrix


def aggregate_paths(
    paths: Sequence[Sequence[float]],
    *,
    n_periods: Optional[int] = None,
) -> PercentileBand:
    """
    Reduce an ensemble of paths to a PercentileBand.

    Parameters
    ----------
    paths : sequence of sequences
        One entry per path. Paths may have different lengths; shorter
        ones are held at their last value.
    n_periods : int, optional
        Force the band length. Defaults to the longest path.

    Returns
    -------
    PercentileBand
        Zero-valued when ``paths`` is empty.
    """
    n = len(paths)
    if n == 0:
        return PercentileBand.zeros(n_periods or 0)

    matrix = _as_matrix(paths, n_periods)
    ordered = np.sort(matrix, axis=0)
    picks = [ordered[percentile_index(q, n)] for q in BAND_PERCENTILES]
    return PercentileBand(
        *picks,
        mean=ordered.mean(axis=0),
        std=ordered.std(axis=0),
        n_paths=n,
    )


def run_ensemble(
    generator: PathGenerator,
    n_paths: int,
    *,
    seed: Optional[int] = None,
    retain_paths: bool = False,
    n_periods: Optional[int] = None,
) -> EnsembleResult:
    """
    Run ``generator`` ``n_paths`` times and aggregate the results.

    Parameters
    ----------
    generator : callable
        ``generator(source)`` returns one non-negative path.
    n_paths : int
        Number of paths (>= 0).
    seed : int, optional
        Base seed. Path ``i`` draws from ``LCGSource(seed + i)``. When None,
        every path uses an ambient source.
    retain_paths : bool, default False
        Keep the raw paths on the result for inspection.
    n_periods : int, optional
        Passed to :func:`aggregate_paths`.

    Raises
    ------
    ValueError
        If ``n_paths`` is negative.
    SimulationError
        If a generator returns negative or non-finite values.
    """
    if n_paths < 0:
        raise ValueError(f"n_paths must be non-negative, got {n_paths}")

    paths = []
    for i in range(n_paths):
        source = make_source(None if seed is None else seed + i)
        path = np.asarray(generator(source), dtype=float).ravel()
        if path.size and (not np.all(np.isfinite(path)) or path.min() < 0):
            raise SimulationError(
                f"Path {i} contains negative or non-finite values; "
                f"simulated paths must be non-negative."
            )
        paths.append(path)

    band = aggregate_paths(paths, n_periods=n_periods)
    terminal = np.array([p[-1] if p.size else 0.0 for p in paths])
    logger.debug("Aggregated %d paths over %d periods", n_paths, band.n_periods)
    return EnsembleResult(
        band=band,
        terminal_values=terminal,
        paths=tuple(paths) if retain_paths else None,
    )


def percentile_summary(
    values: Sequence[float],
    levels: Sequence[float] = SCENARIO_PERCENTILES,
) -> Dict[str, float]:
    """
    Percentiles of a scalar sample keyed ``"p10"``, ``"p25"``, ...

    Empty samples return zeros.
    """
    data = np.sort(np.asarray(values, dtype=float).ravel())
    n = data.size
    out: Dict[str, float] = {}
    for q in levels:
        key = f"p{q * 100:g}"
        out[key] = float(data[percentile_index(q, n)]) if n else 0.0
    return out


def value_at_risk(values: Sequence[float], confidence_level: float = 0.95) -> float:
    """
    The ``(1 - confidence_level)`` quantile of a terminal-value sample.

    Returns 0.0 for an empty sample.
    """
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")
    data = np.sort(np.asarray(values, dtype=float).ravel())
    if data.size == 0:
        return 0.0
    return float(data[percentile_index(1.0 - confidence_level, data.size)])
