# src/spline_fit_pipeline/fitting/__init__.py
"""
Fitting subpackage - one module per pipeline stage.

  - core: data structures, error classes, figure style
  - preprocessing: sample sanitizing and uniform breakpoints
  - candidates: the ordered spline fitting strategies
  - selection: fit engine (first successful strategy wins)
  - kpi: residuals and numeric quality indicators
  - qc: threshold-table quality classification and fit report
  - config: FitConfig and its mapping/YAML form
  - export: results table
  - plotting: overview and detailed figures
  - pipeline: run_fit_pipeline (sanitize -> fit -> KPIs -> quality)
"""

# Core types and errors
from .core import (
    Dataset,
    FitAttempt,
    FitResult,
    KPISet,
    ModelInfo,
    QualityReport,
    QualityVerdict,
    SplineFitError,
    FatalFitError,
    DegenerateInputError,
    UndefinedMetricError,
    DEFAULT_N_BREAKPOINTS,
    DEFAULT_SMOOTHING_PENALTY,
    DEFAULT_SMOOTHING_PARAM,
    SPLINE_ORDER,
    apply_paper_style,
    paper_savefig,
)

# Preprocessing
from .preprocessing import (
    sanitize_samples,
    sanitize_pairs,
    uniform_breakpoints,
)

# Strategies
from .candidates import (
    FitStrategy,
    DEFAULT_STRATEGIES,
    build_strategies,
    run_strategy,
    fit_lsq_spline,
    fit_smoothing_spline,
    fit_univariate_spline,
)

# Engine
from .selection import fit_spline

# KPIs and quality
from .kpi import compute_kpis
from .qc import (
    ThresholdRule,
    MetricRules,
    DEFAULT_QUALITY_RULES,
    classify_quality,
    quality_rules_from_mapping,
    format_fit_summary,
    write_fit_report,
)

# Config
from .config import FitConfig, fit_config_from_mapping

# Output
from .export import (
    iter_result_rows,
    build_results_table,
    write_results_table,
)
from .plotting import (
    curvature_profile,
    plot_fit_overview,
    plot_fit_detailed,
)

# Pipeline
from .pipeline import (
    PipelineResult,
    describe_model,
    run_fit_pipeline,
)

__all__ = [
    # Core
    "Dataset",
    "FitAttempt",
    "FitResult",
    "KPISet",
    "ModelInfo",
    "QualityReport",
    "QualityVerdict",
    "SplineFitError",
    "FatalFitError",
    "DegenerateInputError",
    "UndefinedMetricError",
    "DEFAULT_N_BREAKPOINTS",
    "DEFAULT_SMOOTHING_PENALTY",
    "DEFAULT_SMOOTHING_PARAM",
    "SPLINE_ORDER",
    "apply_paper_style",
    "paper_savefig",
    # Preprocessing
    "sanitize_samples",
    "sanitize_pairs",
    "uniform_breakpoints",
    # Strategies
    "FitStrategy",
    "DEFAULT_STRATEGIES",
    "build_strategies",
    "run_strategy",
    "fit_lsq_spline",
    "fit_smoothing_spline",
    "fit_univariate_spline",
    # Engine
    "fit_spline",
    # KPIs / quality
    "compute_kpis",
    "ThresholdRule",
    "MetricRules",
    "DEFAULT_QUALITY_RULES",
    "classify_quality",
    "quality_rules_from_mapping",
    "format_fit_summary",
    "write_fit_report",
    # Config
    "FitConfig",
    "fit_config_from_mapping",
    # Output
    "iter_result_rows",
    "build_results_table",
    "write_results_table",
    "curvature_profile",
    "plot_fit_overview",
    "plot_fit_detailed",
    # Pipeline
    "PipelineResult",
    "describe_model",
    "run_fit_pipeline",
]
