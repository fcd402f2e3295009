from __future__ import annotations

import sys
import unittest
from pathlib import Path

import numpy as np


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from spline_fit_pipeline.fitting.core import Dataset, DegenerateInputError  # noqa: E402
from spline_fit_pipeline.fitting.preprocessing import (  # noqa: E402
    sanitize_pairs,
    sanitize_samples,
    uniform_breakpoints,
)


class SanitizeSamplesTests(unittest.TestCase):
    def test_drops_non_finite_pairs(self) -> None:
        x = np.array([0.0, 1.0, np.nan, 3.0, 4.0, np.inf])
        y = np.array([1.0, np.inf, 2.0, 3.0, -np.inf, 5.0])
        ds = sanitize_samples(x, y)
        np.testing.assert_array_equal(ds.x, [0.0, 3.0])
        np.testing.assert_array_equal(ds.y, [1.0, 3.0])

    def test_duplicate_x_keeps_first_occurrence_in_input_order(self) -> None:
        x = np.array([2.0, 1.0, 2.0, 0.0, 1.0])
        y = np.array([20.0, 10.0, 99.0, 0.0, 77.0])
        ds = sanitize_samples(x, y)
        np.testing.assert_array_equal(ds.x, [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(ds.y, [0.0, 10.0, 20.0])

    def test_output_is_strictly_increasing_subset_of_valid_input(self) -> None:
        rng = np.random.default_rng(7)
        x = rng.integers(0, 40, size=200).astype(float)
        y = rng.normal(size=200)
        x[::17] = np.nan
        ds = sanitize_samples(x, y)

        self.assertTrue(np.all(np.diff(ds.x) > 0))
        valid_pairs = {(float(a), float(b)) for a, b in zip(x, y) if np.isfinite(a) and np.isfinite(b)}
        for pair in zip(ds.x.tolist(), ds.y.tolist()):
            self.assertIn(pair, valid_pairs)
        self.assertEqual(ds.n, len(set(x[np.isfinite(x)].tolist())))

    def test_empty_result_is_allowed(self) -> None:
        ds = sanitize_samples([np.nan, np.inf], [1.0, 2.0])
        self.assertEqual(ds.n, 0)

    def test_mismatched_lengths_raise(self) -> None:
        with self.assertRaises(ValueError):
            sanitize_samples([0.0, 1.0, 2.0], [1.0, 2.0])

    def test_sanitize_pairs(self) -> None:
        ds = sanitize_pairs([(3.0, 30.0), (1.0, 10.0), (3.0, 31.0)])
        np.testing.assert_array_equal(ds.x, [1.0, 3.0])
        np.testing.assert_array_equal(ds.y, [10.0, 30.0])

    def test_dataset_arrays_are_read_only(self) -> None:
        ds = sanitize_samples([0.0, 1.0], [2.0, 3.0])
        with self.assertRaises(ValueError):
            ds.x[0] = 5.0


class DatasetInvariantTests(unittest.TestCase):
    def test_descending_x_is_rejected(self) -> None:
        x = np.linspace(0.0, 10.0, 100)[::-1]
        with self.assertRaises(ValueError):
            Dataset(x=x, y=np.sin(x))

    def test_repeated_x_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Dataset(x=np.array([0.0, 1.0, 1.0, 2.0]), y=np.arange(4.0))

    def test_non_finite_values_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Dataset(x=np.array([0.0, np.nan, 2.0]), y=np.zeros(3))
        with self.assertRaises(ValueError):
            Dataset(x=np.arange(3.0), y=np.array([0.0, np.inf, 1.0]))

    def test_sorted_dataset_gives_true_x_range(self) -> None:
        x = np.linspace(0.0, 10.0, 100)
        ds = Dataset(x=x, y=np.sin(x))
        self.assertEqual(ds.x_range, (0.0, 10.0))
        bp = uniform_breakpoints(ds, 11)
        np.testing.assert_allclose(bp, np.arange(11.0))


class UniformBreakpointsTests(unittest.TestCase):
    def test_count_and_endpoints(self) -> None:
        ds = sanitize_samples(np.array([0.3, 1.7, 4.2, 9.9]), np.zeros(4))
        bp = uniform_breakpoints(ds, 30)
        self.assertEqual(len(bp), 30)
        self.assertEqual(bp[0], 0.3)
        self.assertEqual(bp[-1], 9.9)
        self.assertTrue(np.all(np.diff(bp) > 0))
        np.testing.assert_allclose(np.diff(bp), (9.9 - 0.3) / 29)

    def test_two_breakpoints_is_one_segment(self) -> None:
        ds = sanitize_samples([0.0, 5.0, 10.0], [0.0, 1.0, 0.0])
        np.testing.assert_array_equal(uniform_breakpoints(ds, 2), [0.0, 10.0])

    def test_n_below_two_is_rejected(self) -> None:
        ds = sanitize_samples([0.0, 1.0], [0.0, 1.0])
        with self.assertRaises(ValueError):
            uniform_breakpoints(ds, 1)

    def test_non_integral_n_is_rejected(self) -> None:
        ds = sanitize_samples([0.0, 1.0], [0.0, 1.0])
        with self.assertRaises(ValueError):
            uniform_breakpoints(ds, 2.7)
        self.assertEqual(len(uniform_breakpoints(ds, 3.0)), 3)

    def test_zero_width_range_is_degenerate(self) -> None:
        ds = sanitize_samples([2.0, 2.0, 2.0], [1.0, 2.0, 3.0])
        self.assertEqual(ds.n, 1)
        with self.assertRaises(DegenerateInputError):
            uniform_breakpoints(ds, 30)

    def test_empty_dataset_is_degenerate(self) -> None:
        with self.assertRaises(DegenerateInputError):
            uniform_breakpoints(Dataset(x=np.empty(0), y=np.empty(0)), 30)


if __name__ == "__main__":
    unittest.main()
