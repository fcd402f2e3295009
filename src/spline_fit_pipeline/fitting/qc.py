# src/spline_fit_pipeline/fitting/qc.py
"""
Quality classification of fit KPIs and the text/markdown fit report.

Thresholds are data: for each metric an ordered list of
(comparison, bound, label) rules; the first rule that holds wins, else the
metric's default label. Undefined KPIs (None) get label None.
"""
from __future__ import annotations

import operator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import pandas as pd

from .core import KPISet, QualityReport, QualityVerdict

_OPS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


@dataclass(frozen=True)
class ThresholdRule:
    op: str
    bound: float
    label: str

    def __post_init__(self) -> None:
        if self.op not in _OPS:
            raise ValueError(f"Unknown comparison '{self.op}', expected one of {sorted(_OPS)}")
        object.__setattr__(self, "bound", float(self.bound))

    def matches(self, value: float) -> bool:
        return bool(_OPS[self.op](value, self.bound))


@dataclass(frozen=True)
class MetricRules:
    rules: tuple[ThresholdRule, ...]
    default: str


DEFAULT_QUALITY_RULES: dict[str, MetricRules] = {
    "r2": MetricRules(
        rules=(
            ThresholdRule(">", 0.95, "Excellent"),
            ThresholdRule(">", 0.90, "Good"),
            ThresholdRule(">", 0.80, "Acceptable"),
            ThresholdRule(">", 0.70, "Moderate"),
        ),
        default="Poor",
    ),
    "relative_rmse_pct": MetricRules(
        rules=(
            ThresholdRule("<", 5.0, "Excellent"),
            ThresholdRule("<", 10.0, "Good"),
            ThresholdRule("<", 15.0, "Acceptable"),
        ),
        default="Poor",
    ),
    "bias_ratio": MetricRules(
        rules=(
            ThresholdRule("<", 0.05, "No systematic bias"),
            ThresholdRule("<", 0.10, "Minor bias"),
        ),
        default="Significant bias",
    ),
    "within_2sigma_pct": MetricRules(
        rules=(ThresholdRule(">", 93.0, "Good (expected ~95%)"),),
        default="Check for outliers",
    ),
}

METRIC_TITLES = {
    "r2": "R²",
    "relative_rmse_pct": "Relative RMSE (% of y-range)",
    "bias_ratio": "Bias ratio",
    "within_2sigma_pct": "Points within ±2σ (%)",
}


def classify_value(value: Optional[float], rules: MetricRules) -> Optional[str]:
    if value is None:
        return None
    for rule in rules.rules:
        if rule.matches(value):
            return rule.label
    return rules.default


def classify_quality(
    kpis: KPISet,
    rules: Optional[Mapping[str, MetricRules]] = None,
) -> QualityReport:
    """Label each KPI named in `rules` (default: DEFAULT_QUALITY_RULES)."""
    if rules is None:
        rules = DEFAULT_QUALITY_RULES
    verdicts = []
    for metric, metric_rules in rules.items():
        if not hasattr(kpis, metric):
            raise KeyError(f"No KPI named '{metric}' to classify")
        value = getattr(kpis, metric)
        verdicts.append(
            QualityVerdict(
                metric=metric,
                value=None if value is None else float(value),
                label=classify_value(value, metric_rules),
            )
        )
    return QualityReport(verdicts=tuple(verdicts))


def quality_rules_from_mapping(
    mapping: Optional[Mapping[str, Any]],
    base: Optional[Mapping[str, MetricRules]] = None,
) -> dict[str, MetricRules]:
    """
    Build a rules table from a config mapping, e.g. (YAML)

        quality_thresholds:
          r2:
            rules: [[">", 0.99, "Excellent"], [">", 0.9, "Good"]]
            default: Poor

    Metrics not mentioned keep their entry from `base` (default rules).
    """
    out = dict(DEFAULT_QUALITY_RULES if base is None else base)
    if not mapping:
        return out
    if not isinstance(mapping, Mapping):
        raise ValueError(f"quality_thresholds must be a mapping, got {type(mapping).__name__}")

    for metric, entry in mapping.items():
        if not isinstance(entry, Mapping) or "rules" not in entry:
            raise ValueError(f"quality_thresholds.{metric} must have a 'rules' list")
        rules = []
        for item in entry["rules"]:
            if not isinstance(item, (list, tuple)) or len(item) != 3:
                raise ValueError(
                    f"quality_thresholds.{metric}: each rule must be [op, bound, label], got {item!r}"
                )
            op, bound, label = item
            rules.append(ThresholdRule(str(op), float(bound), str(label)))
        default = entry.get("default")
        if default is None:
            default = out[metric].default if metric in out else "Poor"
        out[str(metric)] = MetricRules(rules=tuple(rules), default=str(default))
    return out


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

def _fmt(value: Optional[float], spec: str) -> str:
    if value is None:
        return "undefined"
    return format(float(value), spec)


def format_fit_summary(result: Any) -> str:
    """
    Render KPI, quality, residual statistics and model information blocks
    of a PipelineResult as plain text.
    """
    k = result.kpis
    q = result.quality
    info = result.model_info
    bar = "=" * 40

    lines: list[str] = []
    lines.append(bar)
    lines.append("KEY PERFORMANCE INDICATORS (KPIs)")
    lines.append(bar)
    lines.append(f"2-Norm of Residuals : {k.norm_2:.4f}")
    lines.append(f"Squared Error (SE)  : {k.se:.4e}")
    lines.append(f"RMSE                : {k.rmse:.4f}")
    lines.append(f"R-squared           : {_fmt(k.r2, '.6f')}")
    lines.append(bar)
    lines.append("")
    lines.append(bar)
    lines.append("FIT QUALITY ASSESSMENT")
    lines.append(bar)
    for v in q.verdicts:
        title = METRIC_TITLES.get(v.metric, v.metric)
        label = v.label if v.label is not None else "undefined"
        lines.append(f"{title}: {_fmt(v.value, '.4f')} - {label}")
    lines.append(bar)
    lines.append("")
    lines.append(bar)
    lines.append("STATISTICAL SUMMARY")
    lines.append(bar)
    lines.append(f"Mean of residuals   : {k.residual_mean:.4e} (bias indicator)")
    lines.append(f"Std deviation       : {_fmt(k.residual_std, '.4f')}")
    lines.append(f"Min residual        : {k.residual_min:.4f}")
    lines.append(f"Max residual        : {k.residual_max:.4f}")
    lines.append(f"Max abs residual    : {k.max_abs_residual:.4f}")
    lines.append(f"Median abs residual : {k.median_abs_residual:.4f}")
    lines.append(bar)
    lines.append("")
    lines.append(bar)
    lines.append("MODEL INFORMATION")
    lines.append(bar)
    lines.append(f"Fitting method      : {info.method}")
    lines.append(f"Number of segments  : {info.n_segments}")
    lines.append(f"Points per segment  : ~{info.points_per_segment}")
    lines.append(f"Breakpoint spacing  : {info.mean_breakpoint_spacing:.2f} (mean)")
    lines.append(bar)
    return "\n".join(lines)


def write_fit_report(
    result: Any,
    out_dir: Path,
    prefix: str = "fit",
    figure_paths: Optional[list[Path]] = None,
) -> Path:
    """
    Write a markdown fit report and a one-row KPI table.

    Outputs (in out_dir):
      - {prefix}_kpis.csv
      - {prefix}_report.md

    Returns path to the markdown report.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    row = dict(result.kpis.as_dict())
    row["method"] = result.fit.method
    row["strategy"] = result.fit.strategy
    for metric, label in result.quality.as_dict().items():
        row[f"{metric}_quality"] = label
    kpi_csv = out_dir / f"{prefix}_kpis.csv"
    pd.DataFrame([row]).to_csv(kpi_csv, index=False)

    ds = result.dataset
    x_min, x_max = ds.x_range
    y_min, y_max = ds.y_range

    lines: list[str] = []
    lines.append("# Curve Fit Report")
    lines.append("")
    lines.append(f"- Generated: {pd.Timestamp.now()}")
    lines.append("")
    lines.append("## (a) Data")
    lines.append(f"- Number of data points: {ds.n}")
    lines.append(f"- X range: [{x_min:.2f}, {x_max:.2f}]")
    lines.append(f"- Y range: [{y_min:.2f}, {y_max:.2f}]")
    lines.append("")
    lines.append("## (b) Fitting strategy")
    for a in result.fit.attempts:
        status = "ok" if a.ok else f"failed ({a.reason})"
        lines.append(f"- {a.strategy}: {status}")
    lines.append(f"- Method used: {result.fit.method}")
    lines.append("")
    lines.append("## (c) Summary")
    lines.append("```")
    lines.append(format_fit_summary(result))
    lines.append("```")
    lines.append("")
    if result.kpis.undefined:
        lines.append("- Undefined metrics (zero denominator): " + ", ".join(result.kpis.undefined))
        lines.append("")
    lines.append(f"- CSV: {kpi_csv.name}")
    for p in figure_paths or []:
        lines.append("")
        lines.append(f"![{Path(p).stem}]({Path(p).name})")
    lines.append("")

    md_path = out_dir / f"{prefix}_report.md"
    md_path.write_text("\n".join(lines), encoding="utf-8")
    return md_path
