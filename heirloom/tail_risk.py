"""
Extreme-value tail risk for Heirloom.

Purpose
-------
Peaks-over-threshold analysis of annual wealth losses:

1. Collect year-over-year relative wealth drops from one or more paths.
2. Take the excesses over a high empirical quantile (default 95th).
3. Fit a Generalized Pareto Distribution (GPD) to the excesses by maximum
   likelihood with ``scipy.stats.genpareto`` (location fixed at 0).
4. Read tail VaR at 99 / 99.5 / 99.9% and the 99% expected shortfall:

       VaR_q = u + G⁻¹(1 − p; ξ, σ),   p = (1 − q) · N / N_u
       ES_q  = VaR_q / (1 − ξ) + (σ − ξ·u) / (1 − ξ),   ξ < 1

With fewer than ``min_exceedances`` excesses the fit falls back to a
conservative heavy-tailed model (ξ = 0.2, σ = half the sample standard
deviation) and is flagged ``method="fallback"``.

Losses are fractions of opening wealth, so the reported metrics are
capped at 1.0 (a year cannot lose more than everything).

Example
-------
>>> from heirloom.tail_risk import analyze_tail_risk, annual_losses
>>> result = analyze_tail_risk(annual_losses(ensemble_paths))
>>> result.var_99 <= result.var_999
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .montecarlo import percentile_index

logger = logging.getLogger(__name__)

__all__ = [
    "GPDFit",
    "TailEvent",
    "TailRiskAnalysis",
    "annual_losses",
    "fit_gpd",
    "tail_value_at_risk",
    "expected_shortfall",
    "assess_tail_risk",
    "analyze_tail_risk",
]

DEFAULT_THRESHOLD_QUANTILE = 0.95
MIN_EXCEEDANCES = 10
FALLBACK_SHAPE = 0.2
FALLBACK_SCALE_FACTOR = 0.5
FIT_ALPHA = 0.05
MAX_LOSS = 1.0

# (description, annual probability, VaR level, impact multiple, severity)
TAIL_EVENT_CATALOG: Tuple[Tuple[str, float, str, float, str], ...] = (
    ("Major market correction (-20%)", 0.05, "var_99", 1.0, "MEDIUM"),
    ("Severe market crash (-35%)", 0.01, "var_995", 1.0, "HIGH"),
    ("Financial crisis (-50%+)", 0.001, "var_999", 1.0, "EXTREME"),
    ("Simultaneous health emergency and market downturn", 0.02, "var_995", 1.2, "HIGH"),
    ("Prolonged economic recession (2+ years)", 0.03, "var_99", 1.5, "HIGH"),
)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GPDFit:
    """
    Generalized Pareto model of excess losses over ``threshold``.

    Attributes
    ----------
    shape : float
        ξ; positive means a heavy tail.
    scale : float
        σ > 0, or 0 when there was nothing to fit.
    n_exceedances : int
        Observations strictly above the threshold.
    method : str
        ``"mle"`` or ``"fallback"``.
    ks_statistic, ks_p_value : float or None
        Kolmogorov–Smirnov check of the fitted excesses; None for fallbacks.
    """
    shape: float
    scale: float
    threshold: float
    threshold_quantile: float
    n_exceedances: int
    n_observations: int
    method: str
    ks_statistic: Optional[float] = None
    ks_p_value: Optional[float] = None

    @property
    def fit_passed(self) -> bool:
        return self.ks_p_value is not None and self.ks_p_value > FIT_ALPHA

    @property
    def tail_fraction(self) -> float:
        """Share of observations in the tail, N_u / N."""
        if self.n_observations == 0:
            return 0.0
        if self.n_exceedances == 0:
            return 1.0 - self.threshold_quantile
        return self.n_exceedances / self.n_observations


@dataclass(frozen=True)
class TailEvent:
    description: str
    probability: float
    impact: float
    severity: str


@dataclass(frozen=True)
class TailRiskAnalysis:
    model: GPDFit
    var_99: float
    var_995: float
    var_999: float
    es_99: float
    assessment: str
    events: Tuple[TailEvent, ...]


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

def annual_losses(paths: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Positive year-over-year relative wealth drops across ``paths``.

    Steps out of a non-positive year are skipped; gains are dropped.
    """
    losses = []
    for path in paths:
        w = np.asarray(path, dtype=float).ravel()
        if w.size < 2:
            continue
        prev, cur = w[:-1], w[1:]
        live = prev > 0
        change = (cur[live] - prev[live]) / prev[live]
        losses.append(-change[change < 0])
    return np.concatenate(losses) if losses else np.zeros(0)


# ---------------------------------------------------------------------------
# Fit
# ---------------------------------------------------------------------------

def fit_gpd(
    losses: Sequence[float],
    threshold_quantile: float = DEFAULT_THRESHOLD_QUANTILE,
    *,
    min_exceedances: int = MIN_EXCEEDANCES,
) -> GPDFit:
    """
    Fit a GPD to the excesses of ``losses`` over their empirical quantile.

    The threshold is the order statistic at ``floor(q·N)``, the same
    percentile rule as the ensemble bands.

    Raises
    ------
    ValueError
        If ``threshold_quantile`` is outside (0, 1).
    """
    if not 0.0 < threshold_quantile < 1.0:
        raise ValueError(f"threshold_quantile must be in (0, 1), got {threshold_quantile}")

    data = np.sort(np.asarray(losses, dtype=float).ravel())
    n = data.size
    if n == 0:
        return GPDFit(0.0, 0.0, 0.0, threshold_quantile, 0, 0, "fallback")

    threshold = float(data[percentile_index(threshold_quantile, n)])
    excess = data[data > threshold] - threshold

    if excess.size < min_exceedances or np.ptp(excess) == 0:
        logger.debug("Only %d exceedances over %.4f; using fallback tail model", excess.size, threshold)
        return GPDFit(
            shape=FALLBACK_SHAPE,
            scale=FALLBACK_SCALE_FACTOR * float(data.std()),
            threshold=threshold,
            threshold_quantile=threshold_quantile,
            n_exceedances=int(excess.size),
            n_observations=n,
            method="fallback",
        )

    shape, _, scale = stats.genpareto.fit(excess, floc=0.0)
    ks = stats.kstest(excess, "genpareto", args=(shape, 0.0, scale))
    logger.debug("GPD fit over %d exceedances: shape=%.4f scale=%.4f", excess.size, shape, scale)
    return GPDFit(
        shape=float(shape),
        scale=float(scale),
        threshold=threshold,
        threshold_quantile=threshold_quantile,
        n_exceedances=int(excess.size),
        n_observations=n,
        method="mle",
        ks_statistic=float(ks.statistic),
        ks_p_value=float(ks.pvalue),
    )


def tail_value_at_risk(model: GPDFit, confidence_level: float) -> float:
    """
    Peaks-over-threshold VaR at ``confidence_level``.

    Levels whose tail probability exceeds the tail fraction resolve to the
    threshold itself.
    """
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")
    if model.n_observations == 0:
        return 0.0
    if model.scale <= 0:
        return model.threshold
    p = min(1.0, (1.0 - confidence_level) / model.tail_fraction)
    return float(stats.genpareto.ppf(1.0 - p, model.shape, loc=model.threshold, scale=model.scale))


def expected_shortfall(model: GPDFit, confidence_level: float) -> float:
    """Mean loss beyond the VaR; infinite when ξ >= 1."""
    var = tail_value_at_risk(model, confidence_level)
    if model.shape >= 1.0:
        return float("inf")
    if model.scale <= 0:
        return var
    xi = model.shape
    return var / (1.0 - xi) + (model.scale - xi * model.threshold) / (1.0 - xi)


def assess_tail_risk(model: GPDFit) -> str:
    """Rate tail heaviness from the shape parameter."""
    if model.n_observations == 0:
        return "LOW"
    if model.shape > 0.3:
        return "EXTREME"
    if model.shape > 0.1:
        return "HIGH"
    if model.shape > -0.1:
        return "MEDIUM"
    return "LOW"


def analyze_tail_risk(
    losses: Sequence[float],
    threshold_quantile: float = DEFAULT_THRESHOLD_QUANTILE,
    *,
    min_exceedances: int = MIN_EXCEEDANCES,
) -> TailRiskAnalysis:
    """Fit, measure and rate the tail of ``losses`` (fractions of wealth)."""
    model = fit_gpd(losses, threshold_quantile, min_exceedances=min_exceedances)
    levels = {
        "var_99": min(MAX_LOSS, tail_value_at_risk(model, 0.99)),
        "var_995": min(MAX_LOSS, tail_value_at_risk(model, 0.995)),
        "var_999": min(MAX_LOSS, tail_value_at_risk(model, 0.999)),
    }
    events = tuple(
        TailEvent(description, probability, min(MAX_LOSS, levels[level] * multiple), severity)
        for description, probability, level, multiple, severity in TAIL_EVENT_CATALOG
    )
    return TailRiskAnalysis(
        model=model,
        var_99=levels["var_99"],
        var_995=levels["var_995"],
        var_999=levels["var_999"],
        es_99=min(MAX_LOSS, expected_shortfall(model, 0.99)),
        assessment=assess_tail_risk(model),
        events=events,
    )
