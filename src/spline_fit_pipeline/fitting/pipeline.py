# src/spline_fit_pipeline/fitting/pipeline.py
"""
Main pipeline: sanitize -> breakpoints -> spline fit -> KPIs -> quality.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from .candidates import FitStrategy, build_strategies
from .config import FitConfig
from .core import Dataset, FitResult, KPISet, ModelInfo, QualityReport
from .kpi import compute_kpis
from .preprocessing import breakpoint_segments, sanitize_samples, uniform_breakpoints
from .qc import classify_quality
from .selection import fit_spline


@dataclass(frozen=True)
class PipelineResult:
    dataset: Dataset
    breakpoints: np.ndarray
    fit: FitResult
    kpis: KPISet
    quality: QualityReport
    model_info: ModelInfo
    config: FitConfig


def describe_model(dataset: Dataset, breakpoints: np.ndarray, fit: FitResult) -> ModelInfo:
    n_segments = breakpoint_segments(breakpoints)
    return ModelInfo(
        method=fit.method,
        n_breakpoints=int(len(breakpoints)),
        n_segments=n_segments,
        points_per_segment=int(round(dataset.n / n_segments)),
        mean_breakpoint_spacing=float(np.mean(np.diff(breakpoints))),
    )


def run_fit_pipeline(
    x: Iterable[float],
    y: Iterable[float],
    config: Optional[FitConfig] = None,
    sanitize: bool = True,
    strategies: Optional[Sequence[FitStrategy]] = None,
) -> PipelineResult:
    """
    Fit a cubic spline to (x, y) and assess it.

    With sanitize=False, (x, y) must already satisfy the Dataset invariants
    (finite, strictly increasing x); a ValueError is raised otherwise.

    Errors from the fit engine (DegenerateInputError, FatalFitError) abort
    the run; no KPIs are computed for a failed fit.
    """
    if config is None:
        config = FitConfig()

    if sanitize:
        dataset = sanitize_samples(x, y)
    else:
        dataset = Dataset(x=np.asarray(x, dtype=float), y=np.asarray(y, dtype=float))

    breakpoints = uniform_breakpoints(dataset, config.n_breakpoints)

    if strategies is None:
        strategies = build_strategies(
            smoothing_penalty=config.smoothing_penalty,
            smoothing_param=config.smoothing_param,
        )
    fit = fit_spline(dataset, breakpoints, strategies=strategies)

    kpis = compute_kpis(dataset, fit)
    quality = classify_quality(kpis, config.quality_rules)

    return PipelineResult(
        dataset=dataset,
        breakpoints=breakpoints,
        fit=fit,
        kpis=kpis,
        quality=quality,
        model_info=describe_model(dataset, breakpoints, fit),
        config=config,
    )
