# src/spline_fit_pipeline/fitting/kpi.py
"""
Residuals and numeric fit-quality indicators (KPIs).

Metrics whose denominator is zero are reported as None:
  - r2:                 all y identical (zero total sum of squares)
  - relative_rmse_pct:  y-range is zero
  - bias_ratio:         RMSE is zero (perfect fit)
  - residual_std:       fewer than 2 samples
  - within_2sigma_pct:  residual std undefined or zero, or a perfect fit

An RMSE at or below RMSE_NEGLIGIBLE_RTOL * max|y| counts as a perfect fit:
residuals at that level are floating-point rounding, not fit error.
"""
from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .core import Dataset, DegenerateInputError, FitResult, KPISet

RMSE_NEGLIGIBLE_RTOL = 1e-12


def _ratio(num: float, den: float) -> Optional[float]:
    if den > 0 and np.isfinite(den):
        return float(num / den)
    return None


def compute_kpis(dataset: Dataset, fit: FitResult) -> KPISet:
    y = np.asarray(dataset.y, dtype=float)
    y_fit = np.asarray(fit.fitted, dtype=float)
    n = int(y.size)
    if n == 0:
        raise DegenerateInputError("Cannot compute KPIs for an empty dataset")
    if y_fit.shape != y.shape:
        raise ValueError(f"fitted values shape {y_fit.shape} does not match data shape {y.shape}")

    residuals = y - y_fit
    se = float(np.sum(residuals ** 2))
    rmse = math.sqrt(se / n)
    norm_2 = math.sqrt(se)

    ss_tot = float(np.sum((y - float(np.mean(y))) ** 2))
    frac_unexplained = _ratio(se, ss_tot)
    r2 = None if frac_unexplained is None else 1.0 - frac_unexplained

    y_span = float(np.max(y) - np.min(y))
    rel = _ratio(rmse, y_span)
    relative_rmse_pct = None if rel is None else 100.0 * rel

    perfect_fit = rmse <= RMSE_NEGLIGIBLE_RTOL * float(np.max(np.abs(y)))

    r_mean = float(np.mean(residuals))
    bias_ratio = None if perfect_fit else _ratio(abs(r_mean), rmse)

    # sample std (n - 1)
    r_std = float(np.std(residuals, ddof=1)) if n >= 2 else None

    within_2sigma_pct = None
    if r_std is not None and r_std > 0 and not perfect_fit:
        z = (residuals - r_mean) / r_std
        within_2sigma_pct = 100.0 * float(np.sum(np.abs(z) <= 2.0)) / n

    abs_r = np.abs(residuals)
    return KPISet(
        residuals=residuals,
        n=n,
        norm_2=norm_2,
        se=se,
        rmse=rmse,
        r2=r2,
        relative_rmse_pct=relative_rmse_pct,
        bias_ratio=bias_ratio,
        residual_mean=r_mean,
        residual_std=r_std,
        residual_min=float(np.min(residuals)),
        residual_max=float(np.max(residuals)),
        max_abs_residual=float(np.max(abs_r)),
        median_abs_residual=float(np.median(abs_r)),
        within_2sigma_pct=within_2sigma_pct,
    )
