# src/spline_fit_pipeline/fitting/candidates.py
"""
Candidate fitting strategies, tried in order by the fit engine.

Each strategy takes (x, y, breakpoints) and returns (fitted_values, label),
raising SplineFitError when it cannot produce a fit. run_strategy() turns
that into a tagged FitAttempt so the engine never needs nested try blocks.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Tuple

import numpy as np
from scipy.interpolate import UnivariateSpline, make_lsq_spline, make_smoothing_spline

from .core import (
    DEFAULT_SMOOTHING_PARAM,
    DEFAULT_SMOOTHING_PENALTY,
    SPLINE_DEGREE,
    FitAttempt,
    SplineFitError,
)

StrategyFunc = Callable[[np.ndarray, np.ndarray, np.ndarray], Tuple[np.ndarray, str]]


@dataclass(frozen=True)
class FitStrategy:
    name: str
    func: StrategyFunc


def clamped_knots(breakpoints: np.ndarray, k: int = SPLINE_DEGREE) -> np.ndarray:
    """Knot vector with the end breakpoints repeated k+1 times (clamped B-spline)."""
    bp = np.asarray(breakpoints, dtype=float)
    return np.r_[(bp[0],) * k, bp, (bp[-1],) * k]


def _satisfies_schoenberg_whitney(x: np.ndarray, t: np.ndarray, k: int) -> bool:
    """
    True if some increasing subsequence x_j0 < x_j1 < ... puts one sample
    inside the support of every B-spline (t[i] < x_ji < t[i+k+1]; equality
    allowed at the clamped ends). Greedy smallest-admissible pick is optimal.
    """
    n_coef = len(t) - k - 1
    if len(x) < n_coef:
        return False
    lo_edge, hi_edge = t[0], t[-1]
    j = 0
    for i in range(n_coef):
        left, right = t[i], t[i + k + 1]
        while j < len(x) and not (x[j] > left or left == lo_edge):
            j += 1
        if j >= len(x):
            return False
        if not (x[j] < right or right == hi_edge):
            return False
        j += 1
    return True


def fit_lsq_spline(
    x: np.ndarray,
    y: np.ndarray,
    breakpoints: np.ndarray,
    k: int = SPLINE_DEGREE,
) -> Tuple[np.ndarray, str]:
    """
    Least-squares cubic spline with interior knots at the breakpoints.

    Local flexibility is set by breakpoint spacing: each of the
    len(breakpoints) - 1 segments gets its own cubic piece.
    """
    t = clamped_knots(breakpoints, k=k)
    n_coef = len(t) - k - 1
    n_segments = len(breakpoints) - 1
    if len(x) < n_coef:
        raise SplineFitError(
            f"{len(x)} samples cannot determine {n_coef} spline coefficients "
            f"({n_segments} segments)"
        )
    if not _satisfies_schoenberg_whitney(x, t, k):
        raise SplineFitError(
            f"Schoenberg-Whitney conditions not met: samples too sparse for {n_segments} segments"
        )
    try:
        spl = make_lsq_spline(x, y, t, k=k)
    except (ValueError, np.linalg.LinAlgError) as e:
        raise SplineFitError(f"least-squares spline solve failed: {e}") from e
    return spl(x), f"make_lsq_spline (Cubic spline, {n_segments} segments)"


def fit_smoothing_spline(
    x: np.ndarray,
    y: np.ndarray,
    breakpoints: np.ndarray,
    lam: float = DEFAULT_SMOOTHING_PENALTY,
) -> Tuple[np.ndarray, str]:
    """
    Penalized smoothing spline with a fixed lam, evaluated at x.

    A tiny lam keeps the curve close to interpolating the data. Breakpoints
    are not used.
    """
    try:
        spl = make_smoothing_spline(x, y, lam=float(lam))
    except (ValueError, np.linalg.LinAlgError) as e:
        raise SplineFitError(f"smoothing spline failed: {e}") from e
    return spl(x), f"make_smoothing_spline (Smoothing spline, lam={float(lam):.0e})"


def fit_univariate_spline(
    x: np.ndarray,
    y: np.ndarray,
    breakpoints: np.ndarray,
    smoothing_param: float = DEFAULT_SMOOTHING_PARAM,
    k: int = SPLINE_DEGREE,
) -> Tuple[np.ndarray, str]:
    """
    FITPACK smoothing spline with s = smoothing_param * n, i.e. the mean
    squared residual is bounded by smoothing_param. Last resort.
    """
    s = float(smoothing_param) * len(x)
    try:
        spl = UnivariateSpline(x, y, k=k, s=s)
    except (ValueError, TypeError) as e:
        raise SplineFitError(f"FITPACK smoothing spline failed: {e}") from e
    return spl(x), f"UnivariateSpline (Smoothing spline, s={float(smoothing_param):g}*n)"


def build_strategies(
    smoothing_penalty: float = DEFAULT_SMOOTHING_PENALTY,
    smoothing_param: float = DEFAULT_SMOOTHING_PARAM,
) -> tuple[FitStrategy, ...]:
    """Ordered fallback chain: least-squares spline, smoothing spline, FITPACK spline."""
    return (
        FitStrategy("lsq_spline", fit_lsq_spline),
        FitStrategy("smoothing_spline", partial(fit_smoothing_spline, lam=smoothing_penalty)),
        FitStrategy("univariate_spline", partial(fit_univariate_spline, smoothing_param=smoothing_param)),
    )


DEFAULT_STRATEGIES = build_strategies()


def run_strategy(
    strategy: FitStrategy,
    x: np.ndarray,
    y: np.ndarray,
    breakpoints: np.ndarray,
) -> tuple[FitAttempt, Optional[np.ndarray]]:
    """
    Run one strategy and tag the outcome.

    Any exception is a failure of this strategy only; the reason is kept
    for the attempt log.
    """
    try:
        fitted, label = strategy.func(x, y, breakpoints)
    except Exception as e:
        return FitAttempt(strategy=strategy.name, label=strategy.name, ok=False, reason=f"{type(e).__name__}: {e}"), None
    fitted = np.asarray(fitted, dtype=float).reshape(-1)
    return FitAttempt(strategy=strategy.name, label=label, ok=True), fitted
