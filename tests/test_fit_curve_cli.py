from __future__ import annotations

import io
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

import numpy as np

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scripts.fit_curve import main  # noqa: E402

EXPECTED_OUTPUTS = (
    "curve_fitting_overview.png",
    "curve_fitting_detailed.png",
    "fitting_results.xlsx",
    "fit_report.md",
    "fit_kpis.csv",
)


def _write_xy(path: Path, x: np.ndarray, y: np.ndarray) -> Path:
    lines = ["x y"] + [f"{a:.10g} {b:.10g}" for a, b in zip(x, y)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _run_cli(argv: list[str]) -> tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    with mock.patch.object(sys, "argv", ["fit_curve.py", *argv]):
        with redirect_stdout(out), redirect_stderr(err):
            code = main()
    return code, out.getvalue(), err.getvalue()


class FitCurveCliTests(unittest.TestCase):
    def test_writes_figures_table_and_report(self) -> None:
        rng = np.random.default_rng(11)
        x = np.linspace(0.0, 10.0, 120)
        y = np.sin(x) + 0.05 * rng.normal(size=x.size)
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            data = _write_xy(root / "data.txt", x, y)
            out_dir = root / "results"
            code, stdout, _ = _run_cli(["--data", str(data), "--out_dir", str(out_dir), "--n_breakpoints", "20"])

            self.assertEqual(code, 0)
            for name in EXPECTED_OUTPUTS:
                self.assertTrue((out_dir / name).is_file(), name)
            self.assertIn("Number of data points: 120", stdout)
            self.assertIn("Number of breakpoints: 20", stdout)
            self.assertIn("make_lsq_spline", stdout)

    def test_csv_table_and_no_plots(self) -> None:
        x = np.linspace(0.0, 4.0, 40)
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            data = _write_xy(root / "data.txt", x, x ** 2)
            out_dir = root / "results"
            code, _, _ = _run_cli(
                ["--data", str(data), "--out_dir", str(out_dir), "--table_format", "csv", "--write_plots", "0"]
            )
            self.assertEqual(code, 0)
            self.assertTrue((out_dir / "fitting_results.csv").is_file())
            self.assertFalse((out_dir / "curve_fitting_overview.png").exists())

    def test_too_few_rows_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            data = _write_xy(root / "short.txt", np.array([0.0, 1.0]), np.array([1.0, 2.0]))
            out_dir = root / "results"
            code, _, stderr = _run_cli(["--data", str(data), "--out_dir", str(out_dir)])

            self.assertEqual(code, 1)
            self.assertIn("ERROR:", stderr)
            self.assertFalse((out_dir / "fit_report.md").exists())

    def test_empty_file_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            data = root / "empty.txt"
            data.write_text("", encoding="utf-8")
            code, _, stderr = _run_cli(["--data", str(data), "--out_dir", str(root / "results")])

            self.assertEqual(code, 1)
            self.assertIn("ERROR:", stderr)


if __name__ == "__main__":
    unittest.main()
