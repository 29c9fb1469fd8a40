"""
Model diagnostics for Heirloom.

Purpose
-------
- Population Stability Index (PSI) to detect drift between a baseline and
  a current distribution.
- A battery of statistical checks on a projected series, each reporting
  pass/fail without halting the batch:

  * Augmented Dickey–Fuller (one lag, constant): unit-root test
  * Chow test at the midpoint of a linear trend: structural break
  * Breusch–Pagan on (t, t²): heteroskedasticity of trend residuals
  * Jarque–Bera: normality of trend residuals
  * Durbin–Watson: first-order autocorrelation of trend residuals

Overall rating: APPROVED with no failures, CONDITIONAL with at most two,
REJECTED otherwise.

Example
-------
>>> import numpy as np
>>> from heirloom.diagnostics import population_stability_index
>>> x = np.linspace(0, 1, 100)
>>> population_stability_index(x, x)
0.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import stats

logger = logging.getLogger(__name__)

__all__ = [
    "population_stability_index",
    "classify_psi",
    "StatisticalTestResult",
    "ValidationReport",
    "augmented_dickey_fuller",
    "chow_test",
    "heteroskedasticity_test",
    "jarque_bera_test",
    "durbin_watson_test",
    "validate_series",
]

PSI_RATE_FLOOR = 1e-4
ADF_CRITICAL_5PCT = -2.86
DW_BOUNDS = (1.5, 2.5)
MAX_CONDITIONAL_FAILURES = 2


# ---------------------------------------------------------------------------
# Drift
# ---------------------------------------------------------------------------

def population_stability_index(
    baseline: Sequence[float],
    current: Sequence[float],
    bins: int = 10,
) -> float:
    """
    PSI between two samples over equal-width bins spanning both.

    Bin rates are floored at 1e-4 so empty bins stay finite:
        PSI = Σ (c_i − b_i) · ln(c_i / b_i)

    Raises
    ------
    ValueError
        If either sample is empty or ``bins`` < 1.
    """
    b = np.asarray(baseline, dtype=float).ravel()
    c = np.asarray(current, dtype=float).ravel()
    if b.size == 0 or c.size == 0:
        raise ValueError("PSI requires non-empty baseline and current samples")
    if bins < 1:
        raise ValueError(f"bins must be >= 1, got {bins}")

    lo = min(b.min(), c.min())
    hi = max(b.max(), c.max())
    edges = np.linspace(lo, hi, bins + 1) if hi > lo else np.array([lo - 0.5, hi + 0.5])
    b_rate = np.maximum(np.histogram(b, bins=edges)[0] / b.size, PSI_RATE_FLOOR)
    c_rate = np.maximum(np.histogram(c, bins=edges)[0] / c.size, PSI_RATE_FLOOR)
    return float(np.sum((c_rate - b_rate) * np.log(c_rate / b_rate)))


def classify_psi(psi: float) -> str:
    if psi < 0.1:
        return "stable"
    if psi < 0.25:
        return "moderate_shift"
    return "significant_shift"


# ---------------------------------------------------------------------------
# Statistical tests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StatisticalTestResult:
    name: str
    statistic: float
    critical_value: float
    p_value: Optional[float]
    passed: bool
    interpretation: str


@dataclass(frozen=True)
class ValidationReport:
    tests: Tuple[StatisticalTestResult, ...]
    failed_count: int
    overall: str

    @property
    def passed_count(self) -> int:
        return len(self.tests) - self.failed_count


def _insufficient(name: str, critical: float, n: int, needed: int) -> StatisticalTestResult:
    return StatisticalTestResult(
        name, float("nan"), critical, None, False,
        f"Insufficient data: {n} observations, need at least {needed}",
    )


def _ols(X: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Coefficients and residuals of y ~ X."""
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    return beta, y - X @ beta


def _trend_design(n: int) -> np.ndarray:
    t = np.arange(n, dtype=float)
    return np.column_stack([np.ones(n), t])


def _trend_residuals(y: np.ndarray) -> np.ndarray:
    return _ols(_trend_design(y.size), y)[1]


def augmented_dickey_fuller(values: Sequence[float]) -> StatisticalTestResult:
    """
    ADF regression Δy_t = a + γ y_{t−1} + δ Δy_{t−1} + e_t.

    Passes (stationary) when the t-statistic of γ is below −2.86.
    """
    name = "Augmented Dickey-Fuller"
    y = np.asarray(values, dtype=float)
    if y.size < 10:
        return _insufficient(name, ADF_CRITICAL_5PCT, y.size, 10)

    dy = np.diff(y)
    target = dy[1:]
    X = np.column_stack([np.ones(target.size), y[1:-1], dy[:-1]])
    beta, resid = _ols(X, target)
    dof = target.size - X.shape[1]
    sigma2 = float(resid @ resid) / dof
    cov = sigma2 * np.linalg.pinv(X.T @ X)
    se = float(np.sqrt(cov[1, 1]))
    stat = float(beta[1] / se) if se > 0 else float("-inf") if beta[1] < 0 else 0.0
    passed = stat < ADF_CRITICAL_5PCT
    text = "Series is stationary" if passed else "Unit root cannot be rejected"
    return StatisticalTestResult(name, stat, ADF_CRITICAL_5PCT, None, passed, text)


def chow_test(values: Sequence[float], alpha: float = 0.05) -> StatisticalTestResult:
    """F test for a break in a linear trend at the midpoint."""
    name = "Chow"
    y = np.asarray(values, dtype=float)
    k = 2
    if y.size < 2 * k + 4:
        return _insufficient(name, float(stats.f.ppf(1 - alpha, k, 1)), y.size, 2 * k + 4)

    n = y.size
    mid = n // 2
    ssr_pooled = float(np.sum(_trend_residuals(y) ** 2))
    ssr_split = float(np.sum(_trend_residuals(y[:mid]) ** 2) + np.sum(_trend_residuals(y[mid:]) ** 2))
    dof = n - 2 * k
    critical = float(stats.f.ppf(1 - alpha, k, dof))
    if ssr_split <= 0:
        stat = 0.0 if ssr_pooled <= 0 else float("inf")
    else:
        stat = ((ssr_pooled - ssr_split) / k) / (ssr_split / dof)
    p_value = float(stats.f.sf(stat, k, dof))
    passed = p_value > alpha
    text = "No structural break at midpoint" if passed else "Structural break detected at midpoint"
    return StatisticalTestResult(name, float(stat), critical, p_value, passed, text)


def heteroskedasticity_test(values: Sequence[float], alpha: float = 0.05) -> StatisticalTestResult:
    """Breusch–Pagan LM = n·R² of squared trend residuals on (1, t, t²)."""
    name = "Heteroskedasticity (Breusch-Pagan)"
    critical = float(stats.chi2.ppf(1 - alpha, 2))
    y = np.asarray(values, dtype=float)
    if y.size < 8:
        return _insufficient(name, critical, y.size, 8)

    e2 = _trend_residuals(y) ** 2
    t = np.arange(y.size, dtype=float)
    X = np.column_stack([np.ones(y.size), t, t ** 2])
    _, resid = _ols(X, e2)
    total = float(np.sum((e2 - e2.mean()) ** 2))
    r2 = 0.0 if total <= 0 else max(0.0, 1.0 - float(resid @ resid) / total)
    lm = y.size * r2
    p_value = float(stats.chi2.sf(lm, 2))
    passed = p_value > alpha
    text = "Residual variance is constant" if passed else "Residual variance changes over time"
    return StatisticalTestResult(name, lm, critical, p_value, passed, text)


def jarque_bera_test(values: Sequence[float], alpha: float = 0.05) -> StatisticalTestResult:
    """Jarque–Bera normality of trend residuals."""
    name = "Jarque-Bera"
    critical = float(stats.chi2.ppf(1 - alpha, 2))
    y = np.asarray(values, dtype=float)
    if y.size < 8:
        return _insufficient(name, critical, y.size, 8)

    resid = _trend_residuals(y)
    if np.allclose(resid, 0.0):
        stat, p_value = 0.0, 1.0
    else:
        result = stats.jarque_bera(resid)
        stat, p_value = float(result.statistic), float(result.pvalue)
    passed = p_value > alpha
    text = "Residuals are consistent with normality" if passed else "Residuals are not normal"
    return StatisticalTestResult(name, stat, critical, p_value, passed, text)


def durbin_watson_test(values: Sequence[float]) -> StatisticalTestResult:
    """Durbin–Watson statistic of trend residuals; passes inside [1.5, 2.5]."""
    name = "Durbin-Watson"
    y = np.asarray(values, dtype=float)
    if y.size < 4:
        return _insufficient(name, DW_BOUNDS[0], y.size, 4)

    resid = _trend_residuals(y)
    denom = float(resid @ resid)
    dw = 2.0 if np.isclose(denom, 0.0) else float(np.sum(np.diff(resid) ** 2) / denom)
    low, high = DW_BOUNDS
    passed = low <= dw <= high
    text = "No significant autocorrelation" if passed else "Residuals are autocorrelated"
    return StatisticalTestResult(name, dw, low, None, passed, text)


def validate_series(values: Sequence[float], alpha: float = 0.05) -> ValidationReport:
    """
    Run every check on ``values`` and rate the series.

    No check raises on short or degenerate input; it fails instead.
    """
    tests = (
        augmented_dickey_fuller(values),
        chow_test(values, alpha),
        heteroskedasticity_test(values, alpha),
        jarque_bera_test(values, alpha),
        durbin_watson_test(values),
    )
    failed = sum(1 for t in tests if not t.passed)
    if failed == 0:
        overall = "APPROVED"
    elif failed <= MAX_CONDITIONAL_FAILURES:
        overall = "CONDITIONAL"
    else:
        overall = "REJECTED"
    logger.debug("Series validation: %d/%d checks failed (%s)", failed, len(tests), overall)
    return ValidationReport(tests=tests, failed_count=failed, overall=overall)
