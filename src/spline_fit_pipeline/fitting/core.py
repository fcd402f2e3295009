# src/spline_fit_pipeline/fitting/core.py
"""
Core data structures, error classes and figure style for spline fitting.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from matplotlib import font_manager as fm


# Cubic spline: order 4 (degree 3), continuous up to the 2nd derivative.
SPLINE_ORDER = 4
SPLINE_DEGREE = SPLINE_ORDER - 1

DEFAULT_N_BREAKPOINTS = 30
DEFAULT_SMOOTHING_PENALTY = 1e-10
DEFAULT_SMOOTHING_PARAM = 1e-3


class SplineFitError(RuntimeError):
    """Raised by a single fitting strategy; the engine escalates to the next one."""


class FatalFitError(RuntimeError):
    """Raised when every fitting strategy failed or the winning fit is not finite."""

    def __init__(self, message: str, attempts: tuple = ()) -> None:
        super().__init__(message)
        self.attempts = tuple(attempts)


class DegenerateInputError(ValueError):
    """Raised when the dataset is too small or its x-range has zero width."""


class UndefinedMetricError(ValueError):
    """Raised when a KPI with a zero denominator is requested as a number."""


def _frozen_array(a: np.ndarray) -> np.ndarray:
    out = np.array(a, dtype=float, copy=True)
    out.flags.writeable = False
    return out


@dataclass(frozen=True)
class Dataset:
    """Sanitized samples: x strictly increasing, all values finite."""

    x: np.ndarray
    y: np.ndarray

    def __post_init__(self) -> None:
        x = _frozen_array(self.x)
        y = _frozen_array(self.y)
        if x.ndim != 1 or y.ndim != 1 or x.shape != y.shape:
            raise ValueError(f"x and y must be 1-D arrays of equal length, got {x.shape} and {y.shape}")
        if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
            raise ValueError("Dataset values must be finite (no NaN or Inf)")
        if x.size > 1 and not np.all(np.diff(x) > 0):
            raise ValueError("Dataset x must be strictly increasing (sort and dedup with sanitize_samples)")
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @property
    def n(self) -> int:
        return int(self.x.size)

    @property
    def x_range(self) -> tuple[float, float]:
        if self.n == 0:
            return (np.nan, np.nan)
        return float(self.x[0]), float(self.x[-1])

    @property
    def y_range(self) -> tuple[float, float]:
        if self.n == 0:
            return (np.nan, np.nan)
        return float(np.min(self.y)), float(np.max(self.y))


@dataclass(frozen=True)
class FitAttempt:
    """Outcome of one strategy: ok=True with no reason, or ok=False with the failure reason."""

    strategy: str
    label: str
    ok: bool
    reason: str = ""


@dataclass(frozen=True)
class FitResult:
    x: np.ndarray
    fitted: np.ndarray
    method: str
    strategy: str
    attempts: tuple[FitAttempt, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", _frozen_array(self.x))
        object.__setattr__(self, "fitted", _frozen_array(self.fitted))
        object.__setattr__(self, "attempts", tuple(self.attempts))

    @property
    def failed_attempts(self) -> tuple[FitAttempt, ...]:
        return tuple(a for a in self.attempts if not a.ok)


# Scalar KPIs that may be undefined (None) when a denominator is zero.
OPTIONAL_KPIS = (
    "r2",
    "relative_rmse_pct",
    "bias_ratio",
    "residual_std",
    "within_2sigma_pct",
)


@dataclass(frozen=True)
class KPISet:
    residuals: np.ndarray
    n: int
    norm_2: float
    se: float
    rmse: float
    r2: Optional[float]
    relative_rmse_pct: Optional[float]
    bias_ratio: Optional[float]
    residual_mean: float
    residual_std: Optional[float]
    residual_min: float
    residual_max: float
    max_abs_residual: float
    median_abs_residual: float
    within_2sigma_pct: Optional[float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "residuals", _frozen_array(self.residuals))

    @property
    def undefined(self) -> tuple[str, ...]:
        return tuple(name for name in OPTIONAL_KPIS if getattr(self, name) is None)

    def require(self, name: str) -> float:
        """Return a KPI as float, raising UndefinedMetricError if it is undefined."""
        value = getattr(self, name)
        if value is None:
            raise UndefinedMetricError(f"KPI '{name}' is undefined for this fit (zero denominator)")
        return float(value)

    def as_dict(self) -> dict:
        out = {
            "n": self.n,
            "norm_2": self.norm_2,
            "se": self.se,
            "rmse": self.rmse,
            "r2": self.r2,
            "relative_rmse_pct": self.relative_rmse_pct,
            "bias_ratio": self.bias_ratio,
            "residual_mean": self.residual_mean,
            "residual_std": self.residual_std,
            "residual_min": self.residual_min,
            "residual_max": self.residual_max,
            "max_abs_residual": self.max_abs_residual,
            "median_abs_residual": self.median_abs_residual,
            "within_2sigma_pct": self.within_2sigma_pct,
        }
        return out


@dataclass(frozen=True)
class QualityVerdict:
    metric: str
    value: Optional[float]
    label: Optional[str]

    @property
    def defined(self) -> bool:
        return self.label is not None


@dataclass(frozen=True)
class QualityReport:
    verdicts: tuple[QualityVerdict, ...] = field(default_factory=tuple)

    def __getitem__(self, metric: str) -> QualityVerdict:
        for v in self.verdicts:
            if v.metric == metric:
                return v
        raise KeyError(metric)

    def __contains__(self, metric: object) -> bool:
        return any(v.metric == metric for v in self.verdicts)

    def label(self, metric: str) -> Optional[str]:
        return self[metric].label

    def as_dict(self) -> dict:
        return {v.metric: v.label for v in self.verdicts}


@dataclass(frozen=True)
class ModelInfo:
    method: str
    n_breakpoints: int
    n_segments: int
    points_per_segment: int
    mean_breakpoint_spacing: float


def apply_paper_style() -> dict:
    """
    Return matplotlib rcParams dict for report figures.

    Font priority: Arial > Helvetica > Liberation Sans > DejaVu Sans

    Usage:
        with plt.rc_context(apply_paper_style()):
            fig, ax = plt.subplots(figsize=PAPER_FIGSIZE_WIDE)
            ...
            paper_savefig(fig, "out.png")
    """
    available = {f.name for f in fm.fontManager.ttflist}
    font_priority = ["Arial", "Helvetica", "Liberation Sans", "DejaVu Sans"]
    chosen = next((f for f in font_priority if f in available), "DejaVu Sans")

    return {
        # ===== FONT =====
        "font.family": "sans-serif",
        "font.sans-serif": [chosen] + [f for f in font_priority if f != chosen],
        "pdf.fonttype": 42,
        "ps.fonttype": 42,

        # ===== FONT SIZES =====
        "font.size": 7,
        "axes.titlesize": 8,
        "axes.labelsize": 7,
        "xtick.labelsize": 6,
        "ytick.labelsize": 6,
        "legend.fontsize": 6,

        # ===== LINES & MARKERS =====
        "lines.linewidth": 0.8,
        "lines.markersize": 2,
        "lines.markeredgewidth": 0.3,
        "patch.linewidth": 0.5,

        # ===== AXES =====
        "axes.linewidth": 0.6,
        "axes.edgecolor": "0.3",
        "axes.labelcolor": "0.15",
        "axes.titlepad": 4,
        "axes.labelpad": 3,
        "axes.facecolor": "white",
        "axes.axisbelow": True,

        # ===== TICKS =====
        "xtick.major.width": 0.5,
        "ytick.major.width": 0.5,
        "xtick.major.size": 3,
        "ytick.major.size": 3,
        "xtick.color": "0.3",
        "ytick.color": "0.3",
        "xtick.direction": "out",
        "ytick.direction": "out",

        # ===== GRID =====
        "axes.grid": True,
        "grid.linewidth": 0.3,
        "grid.alpha": 0.3,
        "grid.color": "0.7",
        "grid.linestyle": "-",

        # ===== LEGEND =====
        "legend.frameon": True,
        "legend.framealpha": 0.9,
        "legend.facecolor": "white",
        "legend.edgecolor": "0.7",
        "legend.handlelength": 1.2,

        # ===== FIGURE / SAVEFIG =====
        "figure.facecolor": "white",
        "figure.dpi": 100,
        "savefig.dpi": 300,
        "savefig.facecolor": "white",
        "savefig.bbox": "tight",
        "savefig.pad_inches": 0.02,
        "savefig.format": "png",
    }


# Overview is a 1x4 panel strip, detailed is a 2x2 grid.
PAPER_FIGSIZE_OVERVIEW = (10.0, 2.6)
PAPER_FIGSIZE_DETAILED = (7.0, 4.7)


def paper_savefig(fig, path, **kwargs):
    """
    Save figure as PNG with tight bbox and white background.
    """
    defaults = {
        "dpi": 300,
        "bbox_inches": "tight",
        "pad_inches": 0.02,
        "facecolor": "white",
        "edgecolor": "white",
    }
    defaults.update(kwargs)
    fig.savefig(path, **defaults)
