# src/spline_fit_pipeline/fitting/config.py
"""
Fitting configuration (breakpoints, fallback smoothing constants, quality tables).
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

import numpy as np

from .core import (
    DEFAULT_N_BREAKPOINTS,
    DEFAULT_SMOOTHING_PARAM,
    DEFAULT_SMOOTHING_PENALTY,
)
from .qc import DEFAULT_QUALITY_RULES, MetricRules, quality_rules_from_mapping

CONFIG_KEYS = ("n_breakpoints", "smoothing_penalty", "smoothing_param", "quality_thresholds")


@dataclass(frozen=True)
class FitConfig:
    n_breakpoints: int = DEFAULT_N_BREAKPOINTS
    smoothing_penalty: float = DEFAULT_SMOOTHING_PENALTY
    smoothing_param: float = DEFAULT_SMOOTHING_PARAM
    quality_rules: Mapping[str, MetricRules] = field(default_factory=lambda: dict(DEFAULT_QUALITY_RULES))

    def __post_init__(self) -> None:
        if int(self.n_breakpoints) != self.n_breakpoints or int(self.n_breakpoints) < 2:
            raise ValueError(f"n_breakpoints must be an integer >= 2, got {self.n_breakpoints!r}")
        object.__setattr__(self, "n_breakpoints", int(self.n_breakpoints))
        for key in ("smoothing_penalty", "smoothing_param"):
            v = float(getattr(self, key))
            if not np.isfinite(v) or v <= 0:
                raise ValueError(f"{key} must be a finite positive number, got {getattr(self, key)!r}")
            object.__setattr__(self, key, v)

    def with_overrides(self, **overrides: Any) -> "FitConfig":
        """Return a copy with non-None overrides applied (CLI flags on top of file values)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def fit_config_from_mapping(cfg: Optional[Mapping[str, Any]]) -> FitConfig:
    """
    Build a FitConfig from a parsed config mapping.

    Recognized keys (all optional): n_breakpoints, smoothing_penalty,
    smoothing_param, quality_thresholds. Unknown keys raise ValueError.
    """
    if not cfg:
        return FitConfig()
    if not isinstance(cfg, Mapping):
        raise ValueError(f"config root must be a mapping, got {type(cfg).__name__}")

    unknown = sorted(set(cfg) - set(CONFIG_KEYS))
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}; expected a subset of {list(CONFIG_KEYS)}")

    kwargs: dict[str, Any] = {}
    if cfg.get("n_breakpoints") is not None:
        kwargs["n_breakpoints"] = cfg["n_breakpoints"]
    if cfg.get("smoothing_penalty") is not None:
        kwargs["smoothing_penalty"] = float(cfg["smoothing_penalty"])
    if cfg.get("smoothing_param") is not None:
        kwargs["smoothing_param"] = float(cfg["smoothing_param"])
    kwargs["quality_rules"] = quality_rules_from_mapping(cfg.get("quality_thresholds"))
    return FitConfig(**kwargs)
