from __future__ import annotations

import math
import sys
import unittest
from pathlib import Path

import numpy as np


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from spline_fit_pipeline.fitting.core import (  # noqa: E402
    Dataset,
    DegenerateInputError,
    FitResult,
    UndefinedMetricError,
)
from spline_fit_pipeline.fitting.kpi import compute_kpis  # noqa: E402


def _fit(ds: Dataset, fitted: np.ndarray) -> FitResult:
    return FitResult(x=ds.x, fitted=fitted, method="test", strategy="test")


class ComputeKpisTests(unittest.TestCase):
    def setUp(self) -> None:
        rng = np.random.default_rng(3)
        x = np.linspace(0.0, 5.0, 40)
        self.y_true = np.cos(x)
        self.ds = Dataset(x=x, y=self.y_true + 0.1 * rng.normal(size=x.size))

    def test_error_sums_match_definitions(self) -> None:
        k = compute_kpis(self.ds, _fit(self.ds, self.y_true))
        r = self.ds.y - self.y_true
        se = np.sum(r ** 2)
        self.assertEqual(k.se, float(se))
        self.assertEqual(k.rmse, math.sqrt(k.se / 40))
        self.assertEqual(k.norm_2, math.sqrt(k.se))
        np.testing.assert_array_equal(k.residuals, r)

    def test_r2_and_relative_rmse(self) -> None:
        k = compute_kpis(self.ds, _fit(self.ds, self.y_true))
        y = self.ds.y
        expected_r2 = 1.0 - k.se / float(np.sum((y - y.mean()) ** 2))
        self.assertAlmostEqual(k.r2, expected_r2, places=12)
        self.assertAlmostEqual(k.relative_rmse_pct, 100.0 * k.rmse / float(y.max() - y.min()), places=12)

    def test_residual_statistics(self) -> None:
        k = compute_kpis(self.ds, _fit(self.ds, self.y_true))
        r = self.ds.y - self.y_true
        self.assertAlmostEqual(k.residual_mean, float(np.mean(r)), places=14)
        self.assertAlmostEqual(k.residual_std, float(np.std(r, ddof=1)), places=14)
        self.assertEqual(k.residual_min, float(r.min()))
        self.assertEqual(k.residual_max, float(r.max()))
        self.assertEqual(k.max_abs_residual, float(np.abs(r).max()))
        self.assertEqual(k.median_abs_residual, float(np.median(np.abs(r))))
        self.assertAlmostEqual(k.bias_ratio, abs(float(np.mean(r))) / k.rmse, places=12)

    def test_within_two_sigma_counts_standardized_residuals(self) -> None:
        y = np.zeros(10)
        fitted = np.zeros(10)
        fitted[0] = -100.0  # one large outlier residual
        ds = Dataset(x=np.arange(10.0), y=y)
        k = compute_kpis(ds, _fit(ds, fitted))
        self.assertEqual(k.within_2sigma_pct, 90.0)

    def test_perfect_fit_marks_ratio_metrics_undefined(self) -> None:
        k = compute_kpis(self.ds, _fit(self.ds, np.array(self.ds.y)))
        self.assertEqual(k.se, 0.0)
        self.assertEqual(k.rmse, 0.0)
        self.assertEqual(k.r2, 1.0)
        self.assertEqual(k.relative_rmse_pct, 0.0)
        self.assertIsNone(k.bias_ratio)
        self.assertIsNone(k.within_2sigma_pct)
        self.assertEqual(set(k.undefined), {"bias_ratio", "within_2sigma_pct"})
        with self.assertRaises(UndefinedMetricError):
            k.require("bias_ratio")
        self.assertEqual(k.require("r2"), 1.0)

    def test_constant_y_marks_r2_and_relative_rmse_undefined(self) -> None:
        ds = Dataset(x=np.arange(6.0), y=np.full(6, 2.5))
        k = compute_kpis(ds, _fit(ds, np.array([2.4, 2.6, 2.5, 2.5, 2.3, 2.7])))
        self.assertIsNone(k.r2)
        self.assertIsNone(k.relative_rmse_pct)
        self.assertIsNotNone(k.bias_ratio)
        for value in k.as_dict().values():
            if value is not None:
                self.assertTrue(np.isfinite(value))

    def test_rounding_noise_counts_as_perfect_fit(self) -> None:
        ds = Dataset(x=np.arange(8.0), y=np.full(8, 3.0))
        noise = np.array([4e-16, -4e-16, 0.0, 4e-16, 0.0, -4e-16, 4e-16, 0.0])
        k = compute_kpis(ds, _fit(ds, ds.y + noise))
        self.assertGreater(k.rmse, 0.0)
        self.assertIsNone(k.bias_ratio)
        self.assertIsNone(k.within_2sigma_pct)
        self.assertIsNone(k.r2)

    def test_single_sample_has_no_residual_std(self) -> None:
        ds = Dataset(x=np.array([1.0]), y=np.array([3.0]))
        k = compute_kpis(ds, _fit(ds, np.array([2.0])))
        self.assertIsNone(k.residual_std)
        self.assertIsNone(k.within_2sigma_pct)
        self.assertEqual(k.rmse, 1.0)

    def test_empty_dataset_is_degenerate(self) -> None:
        ds = Dataset(x=np.empty(0), y=np.empty(0))
        with self.assertRaises(DegenerateInputError):
            compute_kpis(ds, _fit(ds, np.empty(0)))

    def test_length_mismatch_raises(self) -> None:
        ds = Dataset(x=np.arange(3.0), y=np.arange(3.0))
        bad = FitResult(x=np.arange(2.0), fitted=np.arange(2.0), method="t", strategy="t")
        with self.assertRaises(ValueError):
            compute_kpis(ds, bad)


if __name__ == "__main__":
    unittest.main()
