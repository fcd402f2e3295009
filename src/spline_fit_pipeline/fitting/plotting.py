# src/spline_fit_pipeline/fitting/plotting.py
"""
Overview and detailed diagnostic figures for a spline fit.

Plotting only reads a PipelineResult; it never changes it.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import matplotlib.pyplot as plt
from scipy.ndimage import median_filter
from scipy.stats import norm

from .core import (
    PAPER_FIGSIZE_DETAILED,
    PAPER_FIGSIZE_OVERVIEW,
    apply_paper_style,
    paper_savefig,
)

# Colors: colorblind-safe palette
C_DATA = "#0072B2"      # blue (measured points)
C_FIT = "#D55E00"       # vermillion (spline)
C_BREAK = "#009E73"     # green (breakpoints)
C_MEAN = "#56B4E9"      # sky blue (residual mean)
C_SIGMA = "#CC79A7"     # purple (±2σ band)
C_RESID = "#2D2D2D"     # near black (residual points)

BREAKPOINT_STRIDE = 5


def curvature_profile(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    |d²y/dx²| by finite differences, smoothed with a moving median of
    width max(3, round(n/300)). Reference display only; breakpoints are
    not derived from it.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size < 3:
        return np.zeros_like(x)
    dx = np.gradient(x)
    d1 = np.gradient(y) / dx
    d2 = np.gradient(d1) / dx
    curv = np.abs(d2)
    window = max(3, int(round(curv.size / 300)))
    return median_filter(curv, size=window, mode="nearest")


def _draw_breakpoints(ax: Any, breakpoints: np.ndarray, stride: int = 1, label: str = "") -> None:
    first = True
    for b in breakpoints[::stride]:
        ax.axvline(
            float(b),
            linestyle=(0, (4, 2)),
            color=C_BREAK,
            linewidth=0.5,
            alpha=0.4,
            label=label if (first and label) else None,
            zorder=1,
        )
        first = False


def _draw_residual_lines(ax: Any, kpis: Any, with_labels: bool = False) -> None:
    ax.axhline(0.0, linestyle="--", color=C_FIT, linewidth=0.9, label="Zero" if with_labels else None)
    ax.axhline(
        kpis.residual_mean,
        linestyle="--",
        color=C_MEAN,
        linewidth=0.8,
        label=f"Mean={kpis.residual_mean:.2e}" if with_labels else None,
    )
    if kpis.residual_std is not None:
        two_sigma = 2.0 * kpis.residual_std
        ax.axhline(two_sigma, linestyle=":", color=C_SIGMA, linewidth=0.8, label="±2σ" if with_labels else None)
        ax.axhline(-two_sigma, linestyle=":", color=C_SIGMA, linewidth=0.8)


def plot_fit_overview(result: Any, out_png: Path) -> Path:
    """
    1x4 strip: original data | curvature & breakpoints | fitted curve | residuals.
    """
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    ds = result.dataset
    bp = np.asarray(result.breakpoints)
    fitted = result.fit.fitted
    kpis = result.kpis

    with plt.rc_context(apply_paper_style()):
        fig, axes = plt.subplots(1, 4, figsize=PAPER_FIGSIZE_OVERVIEW)

        ax = axes[0]
        ax.plot(ds.x, ds.y, ".", color=C_DATA, markersize=1.5)
        ax.set_title("Original Data")
        ax.set_xlabel("x")
        ax.set_ylabel("y")

        ax = axes[1]
        ax.plot(ds.x, curvature_profile(ds.x, ds.y), "-", color=C_DATA, linewidth=1.0)
        _draw_breakpoints(ax, bp[1:-1])
        ax.set_title("Curvature & Breakpoints")
        ax.set_xlabel("x")
        ax.set_ylabel("|d²y/dx²|")

        ax = axes[2]
        ax.plot(ds.x, ds.y, ".", color=C_DATA, markersize=1.5, label="Data")
        ax.plot(ds.x, fitted, "-", color=C_FIT, linewidth=1.2, label="Spline Fit")
        _draw_breakpoints(ax, bp, stride=BREAKPOINT_STRIDE)
        ax.set_title("Fitted Curve")
        ax.set_xlabel("x")
        ax.set_ylabel("y")
        ax.legend(loc="best")

        ax = axes[3]
        ax.plot(ds.x, kpis.residuals, ".", color=C_RESID, markersize=1.5)
        _draw_residual_lines(ax, kpis)
        ax.set_title("Residuals")
        ax.set_xlabel("x")
        ax.set_ylabel("Residual")

        fig.tight_layout(pad=0.3)
        paper_savefig(fig, out_png)
        plt.close(fig)
    return out_png


def plot_fit_detailed(result: Any, out_png: Path, hist_bins: int = 50) -> Path:
    """
    2x2 grid: data + fit across the top row, residual scatter and residual
    histogram with a normal pdf overlay underneath.
    """
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    ds = result.dataset
    bp = np.asarray(result.breakpoints)
    fitted = result.fit.fitted
    kpis = result.kpis
    r2_txt = "undefined" if kpis.r2 is None else f"{kpis.r2:.4f}"

    with plt.rc_context(apply_paper_style()):
        fig = plt.figure(figsize=PAPER_FIGSIZE_DETAILED)
        grid = fig.add_gridspec(2, 2)

        ax = fig.add_subplot(grid[0, :])
        ax.plot(ds.x, ds.y, ".", color=C_DATA, markersize=2, label="Measured Data")
        ax.plot(ds.x, fitted, "-", color=C_FIT, linewidth=1.4, label="Spline Fit")
        _draw_breakpoints(ax, bp, stride=BREAKPOINT_STRIDE, label="Breakpoints (every 5th)")
        ax.set_title(f"Curve Fitting Results: {result.fit.method} (R² = {r2_txt})", fontweight="bold")
        ax.set_xlabel("Independent Variable (x)")
        ax.set_ylabel("Dependent Variable (y)")
        ax.legend(loc="upper left")

        ax = fig.add_subplot(grid[1, 0])
        ax.plot(ds.x, kpis.residuals, "o", color=C_RESID, markersize=1.5)
        _draw_residual_lines(ax, kpis, with_labels=True)
        ax.set_title("Residual Distribution", fontweight="bold")
        ax.set_xlabel("x")
        ax.set_ylabel("Residual")
        ax.legend(loc="best")

        ax = fig.add_subplot(grid[1, 1])
        r = np.asarray(kpis.residuals)
        ax.hist(r, bins=hist_bins, density=True, color="#4D99CC", edgecolor="0.2", linewidth=0.3)
        if kpis.residual_std is not None and kpis.residual_std > 0:
            xs = np.linspace(float(r.min()), float(r.max()), 100)
            ax.plot(
                xs,
                norm.pdf(xs, loc=kpis.residual_mean, scale=kpis.residual_std),
                "-",
                color=C_FIT,
                linewidth=1.2,
                label="Normal fit",
            )
            ax.legend(loc="best")
        ax.set_title("Residual Histogram vs Normal", fontweight="bold")
        ax.set_xlabel("Residual Value")
        ax.set_ylabel("Probability Density")

        fig.tight_layout(pad=0.3)
        paper_savefig(fig, out_png)
        plt.close(fig)
    return out_png
