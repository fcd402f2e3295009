# src/spline_fit_pipeline/fitting/preprocessing.py
"""
Data preprocessing for the fitting pipeline: sample sanitizing and breakpoints.
"""
from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from .core import DEFAULT_N_BREAKPOINTS, Dataset, DegenerateInputError


def sanitize_samples(x: Iterable[float], y: Iterable[float]) -> Dataset:
    """
    Normalize raw paired samples into a Dataset.

      1. drop pairs where x or y is NaN/Inf
      2. drop repeated x values, keeping the first occurrence in input order
      3. sort ascending by x (y follows the same permutation)

    An empty result is returned as an empty Dataset; the caller decides
    whether that is fittable.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.ndim != 1 or y.ndim != 1 or x.shape != y.shape:
        raise ValueError(f"x and y must be 1-D with equal length, got shapes {x.shape} and {y.shape}")

    valid = np.isfinite(x) & np.isfinite(y)
    x = x[valid]
    y = y[valid]

    # later observations at an already-seen x are discarded, not averaged
    dup = pd.Series(x).duplicated(keep="first").to_numpy(dtype=bool)
    x = x[~dup]
    y = y[~dup]

    order = np.argsort(x, kind="stable")
    return Dataset(x=x[order], y=y[order])


def sanitize_pairs(pairs: Iterable[tuple[float, float]]) -> Dataset:
    """Same as sanitize_samples, for a sequence of (x, y) pairs."""
    arr = np.asarray(list(pairs), dtype=float)
    if arr.size == 0:
        return Dataset(x=np.empty(0), y=np.empty(0))
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"pairs must have shape (n, 2), got {arr.shape}")
    return sanitize_samples(arr[:, 0], arr[:, 1])


def uniform_breakpoints(dataset: Dataset, n: int = DEFAULT_N_BREAKPOINTS) -> np.ndarray:
    """
    Return n breakpoints evenly spaced over [min(x), max(x)] (both inclusive).

    Segment count is n - 1. Raises ValueError for n < 2 and
    DegenerateInputError when the dataset is empty or all x coincide.
    """
    if int(n) != n or int(n) < 2:
        raise ValueError(f"n_breakpoints must be an integer >= 2, got {n!r}")
    n = int(n)
    if dataset.n == 0:
        raise DegenerateInputError("Cannot place breakpoints on an empty dataset")

    x_min, x_max = dataset.x_range
    if not x_max > x_min:
        raise DegenerateInputError(
            f"x-range has zero width (min == max == {x_min:g}); breakpoints would coincide"
        )

    bp = np.linspace(x_min, x_max, n)
    bp.flags.writeable = False
    return bp


def breakpoint_segments(breakpoints: np.ndarray) -> int:
    return int(len(breakpoints) - 1)
