from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
import yaml

from spline_fit_pipeline.fitting.config import FitConfig, fit_config_from_mapping


def load_yaml(path: Path) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        obj = yaml.safe_load(f)
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"YAML root must be a mapping: {path}")
    return obj


def load_fit_config(path: Path) -> FitConfig:
    """
    Read fitting settings from a YAML file (see meta/config.yml).
    A missing file is an error; an empty file gives the defaults.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        return fit_config_from_mapping(load_yaml(path))
    except ValueError as e:
        raise ValueError(f"{path}: {e}") from e


def read_xy_text(path: Path) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read a whitespace-delimited two-column text file into raw (x, y) arrays.

    Lines starting with '#' are ignored. Extra columns are ignored.
    Non-numeric tokens (e.g. a header line) become NaN and are removed
    later by sanitize_samples; nothing is filtered here. An empty file
    gives empty arrays.
    """
    path = Path(path)
    try:
        df = pd.read_csv(
            path,
            sep=r"\s+",
            header=None,
            comment="#",
            dtype=str,
        )
    except pd.errors.EmptyDataError:
        return np.empty(0), np.empty(0)
    if df.shape[1] < 2:
        raise ValueError(f"Expected at least 2 columns in {path}, got {df.shape[1]}")
    x = pd.to_numeric(df.iloc[:, 0], errors="coerce").to_numpy(dtype=float)
    y = pd.to_numeric(df.iloc[:, 1], errors="coerce").to_numpy(dtype=float)
    return x, y
