"""
Lift Notebook — Main Pipeline
Loads the workout log and the health export, builds per-exercise time
series, joins sleep onto them, and fits the trend summary:
ETL → Metrics → Join → Trends
"""
import argparse
import sys
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from lift_notebook.config import (
    APPLE_HEALTH_XML,
    ENRICHED_CSV,
    OUTPUT_DIR,
    RUNAVG_WINDOW,
    TREND_SUMMARY_CSV,
    WORKOUT_CSV,
)
from lift_notebook.data_prep.exercise_metrics import build_exercise_metrics, session_counts
from lift_notebook.data_prep.timeline_builder import build_enriched_table, exercise_frequency
from lift_notebook.etl.apple_health_parser import parse_apple_health_sleep
from lift_notebook.etl.errors import ParseError
from lift_notebook.etl.workout_loader import load_workouts
from lift_notebook.output.trend_summary import fit_trends, strongest_trends


def run_pipeline(
    workouts_csv: Optional[Path] = None,
    health_export: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    save: bool = True,
    window: int = RUNAVG_WINDOW,
) -> Dict[str, pd.DataFrame]:
    """
    Execute the full pipeline.

    Args:
        workouts_csv: Workout export. Defaults to config.WORKOUT_CSV.
        health_export: Apple Health export.xml. Defaults to config.APPLE_HEALTH_XML;
            a missing file runs without sleep data.
        output_dir: Where CSVs are written when ``save`` is set.
        save: Write enriched table and trend summary to CSV.
        window: Sessions in the running-average baseline.

    Returns a dict with the ``sets``, ``metrics``, ``frequency``,
    ``daily_sleep``, ``weekly_sleep``, ``enriched`` and ``trends`` frames.
    """
    workouts_csv = workouts_csv or WORKOUT_CSV
    health_export = health_export or APPLE_HEALTH_XML

    print("=" * 60)
    print("LIFT NOTEBOOK — Workout + Sleep Pipeline")
    print("=" * 60)

    # ── Phase 1: ETL ────────────────────────────────────────────
    print("\n▶ Phase 1: Loading data...")

    print("  Loading workout log...")
    sets = load_workouts(workouts_csv)
    print(f"  → {len(sets)} sets, {sets['exercise'].nunique()} exercises")

    print("  Parsing Apple Health export...")
    daily_sleep, weekly_sleep = parse_apple_health_sleep(health_export)
    print(f"  → {len(daily_sleep)} nights, {len(weekly_sleep)} weeks of sleep")

    # ── Phase 2: Per-exercise metrics ───────────────────────────
    print("\n▶ Phase 2: Computing per-exercise metrics...")
    metrics = build_exercise_metrics(sets, window=window)
    counts = session_counts(metrics)
    print(f"  → {len(metrics)} sessions across {len(counts)} exercises")
    if len(counts) > 0:
        print(f"  → Most trained: {counts.index[0]} ({counts.iloc[0]} sessions)")

    # ── Phase 3: Join ───────────────────────────────────────────
    print("\n▶ Phase 3: Joining frequency and sleep...")
    frequency = exercise_frequency(sets)
    enriched = build_enriched_table(metrics, frequency, daily_sleep, weekly_sleep)
    with_sleep = int(enriched["sleep"].notna().sum())
    print(f"  → {len(enriched)} rows, {with_sleep} with same-day sleep")

    # ── Phase 4: Trends ─────────────────────────────────────────
    print("\n▶ Phase 4: Fitting trends...")
    trends = fit_trends(enriched)
    print(f"  → {len(trends)} trend lines")
    for i, row in enumerate(strongest_trends(trends, top=5).itertuples()):
        print(f"    {i+1}. {row.exercise}: {row.y} ~ {row.x}  "
              f"r={row.r:+.2f}, p={row.p_value:.3f}, n={row.n}")

    if save:
        output_dir = Path(output_dir) if output_dir else OUTPUT_DIR
        output_dir.mkdir(parents=True, exist_ok=True)
        enriched_path = output_dir / ENRICHED_CSV.name
        trends_path = output_dir / TREND_SUMMARY_CSV.name
        enriched.to_csv(enriched_path, index=False)
        trends.to_csv(trends_path, index=False)
        print(f"\n  → Saved to: {enriched_path}")
        print(f"  → Saved to: {trends_path}")

    print("\n" + "=" * 60)
    print("PIPELINE COMPLETE")
    print("=" * 60)

    return {
        "sets": sets,
        "metrics": metrics,
        "frequency": frequency,
        "daily_sleep": daily_sleep,
        "weekly_sleep": weekly_sleep,
        "enriched": enriched,
        "trends": trends,
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Lift Notebook pipeline")
    parser.add_argument("--workouts", type=Path, default=WORKOUT_CSV,
                        help=f"Workout export CSV (default: {WORKOUT_CSV})")
    parser.add_argument("--health-export", type=Path, default=APPLE_HEALTH_XML,
                        help=f"Apple Health export.xml (default: {APPLE_HEALTH_XML})")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR,
                        help=f"Directory for CSV output (default: {OUTPUT_DIR})")
    parser.add_argument("--window", type=int, default=RUNAVG_WINDOW,
                        help=f"Sessions in the running-average baseline (default: {RUNAVG_WINDOW})")
    parser.add_argument("--no-save", action="store_true", help="Do not write CSV output")
    args = parser.parse_args(argv)

    try:
        run_pipeline(
            workouts_csv=args.workouts,
            health_export=args.health_export,
            output_dir=args.output_dir,
            save=not args.no_save,
            window=args.window,
        )
    except FileNotFoundError as e:
        print(f"\nFile Error: {e}")
        return 1
    except ParseError as e:
        print(f"\nParse Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
