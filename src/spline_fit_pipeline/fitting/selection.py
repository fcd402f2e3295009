# src/spline_fit_pipeline/fitting/selection.py
"""
Fit engine: walk the ordered strategy chain and keep the first success.
"""
from __future__ import annotations

import warnings
from typing import Optional, Sequence

import numpy as np

from .candidates import DEFAULT_STRATEGIES, FitStrategy, run_strategy
from .core import (
    SPLINE_ORDER,
    Dataset,
    DegenerateInputError,
    FatalFitError,
    FitAttempt,
    FitResult,
)


def _format_attempts(attempts: Sequence[FitAttempt]) -> str:
    return "; ".join(f"{a.strategy}: {a.reason}" for a in attempts if not a.ok)


def _enforce_finite(fitted: np.ndarray, n: int, attempt: FitAttempt, attempts: Sequence[FitAttempt]) -> None:
    if fitted.shape != (n,):
        raise FatalFitError(
            f"{attempt.label} returned {fitted.shape[0]} values for {n} samples",
            attempts=attempts,
        )
    bad = ~np.isfinite(fitted)
    if bad.any():
        raise FatalFitError(
            f"Fitting produced invalid values (NaN or Inf) at {int(bad.sum())} of {n} points "
            f"using {attempt.label}",
            attempts=attempts,
        )


def fit_spline(
    dataset: Dataset,
    breakpoints: np.ndarray,
    strategies: Optional[Sequence[FitStrategy]] = None,
    warn_on_fallback: bool = True,
) -> FitResult:
    """
    Fit the dataset with the first strategy in `strategies` that succeeds.

    Escalation is unconditional on any strategy failure; there is no retry
    within a strategy. Raises:
      - DegenerateInputError: fewer samples than the spline order
      - FatalFitError: every strategy failed, or the winning fit is not finite
    """
    if strategies is None:
        strategies = DEFAULT_STRATEGIES
    if len(strategies) == 0:
        raise ValueError("strategies must not be empty")
    if dataset.n < SPLINE_ORDER:
        raise DegenerateInputError(
            f"Need at least {SPLINE_ORDER} samples for a cubic spline, got {dataset.n}"
        )

    x = np.array(dataset.x)
    y = np.array(dataset.y)
    bp = np.asarray(breakpoints, dtype=float)

    attempts: list[FitAttempt] = []
    for strategy in strategies:
        attempt, fitted = run_strategy(strategy, x, y, bp)
        attempts.append(attempt)
        if not attempt.ok:
            if warn_on_fallback:
                warnings.warn(
                    f"Fit strategy '{strategy.name}' failed ({attempt.reason}); trying next strategy",
                    RuntimeWarning,
                    stacklevel=2,
                )
            continue

        _enforce_finite(fitted, dataset.n, attempt, attempts)
        return FitResult(
            x=dataset.x,
            fitted=fitted,
            method=attempt.label,
            strategy=attempt.strategy,
            attempts=tuple(attempts),
        )

    raise FatalFitError(
        f"All {len(attempts)} fitting strategies failed: {_format_attempts(attempts)}",
        attempts=attempts,
    )
