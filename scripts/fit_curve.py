#!/usr/bin/env python3
"""
Fit a breakpoint spline to a two-column (x y) text file and report fit quality.

Outputs (in --out_dir):
  - curve_fitting_overview.png
  - curve_fitting_detailed.png
  - fitting_results.xlsx (or .csv with --table_format csv)
  - fit_report.md, fit_kpis.csv

Usage:
  python scripts/fit_curve.py --data data_to_curve_fit.txt [--config meta/config.yml] [--n_breakpoints 30]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure local src/ is used (avoid importing an older installed package)
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

# Use non-interactive backend so script does not block on display (headless / IDE / SSH)
import matplotlib
matplotlib.use("Agg")

from spline_fit_pipeline.fitting import (  # noqa: E402
    DegenerateInputError,
    FatalFitError,
    FitConfig,
    build_results_table,
    format_fit_summary,
    plot_fit_detailed,
    plot_fit_overview,
    run_fit_pipeline,
    write_fit_report,
    write_results_table,
)
from spline_fit_pipeline.loader import load_fit_config, read_xy_text  # noqa: E402

DEFAULT_CONFIG = REPO_ROOT / "meta" / "config.yml"


def main() -> int:
    p = argparse.ArgumentParser(description="Fit a breakpoint spline to noisy x/y data and assess the fit.")
    p.add_argument("--data", required=True, help="Whitespace-delimited two-column text file (x y).")
    p.add_argument(
        "--config",
        default=None,
        help=f"Path to config.yml (default: {DEFAULT_CONFIG.relative_to(REPO_ROOT)} if present).",
    )
    p.add_argument("--out_dir", default="results", help="Directory for figures, table and report.")

    # -------------------------
    # fitting controls (override config file)
    # -------------------------
    p.add_argument("--n_breakpoints", type=int, default=None, help="Uniform breakpoint count (>= 2). Default 30.")
    p.add_argument(
        "--smoothing_penalty",
        type=float,
        default=None,
        help="Penalty for the smoothing-spline fallback (small = near interpolation). Default 1e-10.",
    )
    p.add_argument(
        "--smoothing_param",
        type=float,
        default=None,
        help="Smoothing parameter for the last-resort FITPACK spline (s = value * n). Default 0.001.",
    )

    # -------------------------
    # outputs
    # -------------------------
    p.add_argument("--table_format", default="xlsx", choices=["xlsx", "csv"])
    p.add_argument(
        "--write_plots",
        type=int,
        default=1,
        choices=[0, 1],
        help="Whether to write overview/detailed PNGs. 1=on (default), 0=off.",
    )
    args = p.parse_args()

    data_path = Path(args.data)
    out_dir = Path(args.out_dir)

    config_path = Path(args.config) if args.config else (DEFAULT_CONFIG if DEFAULT_CONFIG.is_file() else None)
    config = load_fit_config(config_path) if config_path is not None else FitConfig()
    config = config.with_overrides(
        n_breakpoints=args.n_breakpoints,
        smoothing_penalty=args.smoothing_penalty,
        smoothing_param=args.smoothing_param,
    )

    x_raw, y_raw = read_xy_text(data_path)

    try:
        result = run_fit_pipeline(x_raw, y_raw, config=config)
    except (DegenerateInputError, FatalFitError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    ds = result.dataset
    x_min, x_max = ds.x_range
    y_min, y_max = ds.y_range
    print("Data cleaned successfully")
    print(f"Number of data points: {ds.n} (raw rows: {len(x_raw)})")
    print(f"X range: [{x_min:.2f}, {x_max:.2f}]")
    print(f"Y range: [{y_min:.2f}, {y_max:.2f}]")
    print("")
    print(f"Number of breakpoints: {result.model_info.n_breakpoints}")
    print(f"Number of spline segments: {result.model_info.n_segments}")
    for a in result.fit.failed_attempts:
        print(f"Strategy {a.strategy} failed: {a.reason}")
    print(f"Fitting method: {result.fit.method}")
    print("")
    print(format_fit_summary(result))
    print("")

    out_dir.mkdir(parents=True, exist_ok=True)
    figures: list[Path] = []
    if bool(int(args.write_plots)):
        figures.append(plot_fit_overview(result, out_dir / "curve_fitting_overview.png"))
        figures.append(plot_fit_detailed(result, out_dir / "curve_fitting_detailed.png"))
        for f in figures:
            print(f"Saved: {f}")

    table_path = write_results_table(
        build_results_table(result),
        out_dir / f"fitting_results.{args.table_format}",
    )
    print(f"Saved: {table_path}")

    report = write_fit_report(result, out_dir, prefix="fit", figure_paths=figures)
    print(f"Saved: {report}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
