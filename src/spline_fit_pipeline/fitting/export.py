# src/spline_fit_pipeline/fitting/export.py
"""
Row-aligned results table (x, y, fitted, residual) and its file output.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import pandas as pd

RESULT_COLUMNS = ["X", "Y_Original", "Y_Fitted", "Residuals"]


def iter_result_rows(result: Any) -> Iterator[tuple[float, float, float, float]]:
    """Yield (x, y_original, y_fitted, residual) per sample, in x order."""
    ds = result.dataset
    for xi, yi, fi, ri in zip(ds.x, ds.y, result.fit.fitted, result.kpis.residuals):
        yield float(xi), float(yi), float(fi), float(ri)


def build_results_table(result: Any) -> pd.DataFrame:
    return pd.DataFrame(list(iter_result_rows(result)), columns=RESULT_COLUMNS)


def write_results_table(table: pd.DataFrame, path: Path) -> Path:
    """
    Write the results table; format by suffix:
      - .xlsx: Excel workbook (openpyxl), sheet "fitting_results"
      - .csv / anything else: CSV
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".xlsx":
        table.to_excel(path, index=False, sheet_name="fitting_results", engine="openpyxl")
    else:
        table.to_csv(path, index=False)
    return path
