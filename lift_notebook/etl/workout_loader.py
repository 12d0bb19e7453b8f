"""
Workout log CSV loader.

Reads the fitness app's set-level export (one row per logged set) and
returns a typed DataFrame in the original log order.

Columns in a typical export:
  Date, Workout Name, Duration, Exercise Name, Set Order, Weight, Reps,
  Distance, Seconds, Notes, Workout Notes, RPE

Only exercise name, date, weight and reps are used. Exports made under a
decimal-comma locale are semicolon-delimited; both forms are accepted.
"""
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from lift_notebook.config import WORKOUT_COLUMNS, WORKOUT_CSV
from lift_notebook.etl.errors import ParseError


def _detect_delimiter(csv_path) -> str:
    """Pick ';' or ',' from the header line."""
    with open(csv_path, "r", encoding="utf-8-sig") as f:
        header = f.readline()
    return ";" if header.count(";") > header.count(",") else ","


def _local_wall_clock(col: pd.Series) -> pd.Series:
    """
    Drop a trailing UTC offset (``+02:00``, ``-0500``, ``Z``).

    Only the calendar day is kept, and a log spanning a DST change mixes
    offsets, which pandas refuses to parse into one column.
    """
    return col.str.strip().str.replace(
        r"(?<=\d:\d{2})\s*(?:Z|[+-]\d{2}:?\d{2})$", "", regex=True
    )


def _to_number(col: pd.Series, decimal_comma: bool) -> pd.Series:
    col = col.str.strip()
    if decimal_comma:
        col = col.str.replace(",", ".", regex=False)
    return pd.to_numeric(col, errors="coerce")


def load_workouts(
    csv_path: Optional[Path] = None,
    columns: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """
    Load the workout export and return one row per logged set.

    Returns DataFrame with columns:
      - seq: 0-based position of the row in the raw file (assigned before
        any row is dropped, so it preserves log order through every join)
      - exercise: exercise name
      - date: calendar day of the set (time component dropped)
      - weight: float, unit as logged; <= 0 marks bodyweight/assisted sets
      - reps: int >= 0

    Raises ParseError if any of the required columns is absent. Rows with
    an empty or malformed required cell are skipped with a warning.
    """
    csv_path = csv_path or WORKOUT_CSV
    columns = columns or WORKOUT_COLUMNS

    sep = _detect_delimiter(csv_path)
    try:
        df = pd.read_csv(
            csv_path, sep=sep, dtype=str, keep_default_na=False, encoding="utf-8-sig"
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Unreadable workout export {csv_path}: {e}") from e

    missing = [header for header in columns.values() if header not in df.columns]
    if missing:
        raise ParseError(
            f"Workout export {csv_path} is missing required column(s): {', '.join(missing)}. "
            f"Found: {', '.join(df.columns)}"
        )

    decimal_comma = sep == ";"
    reps = _to_number(df[columns["reps"]], decimal_comma)

    result = pd.DataFrame({"seq": np.arange(len(df))}, index=df.index)
    result["exercise"] = df[columns["exercise"]].str.strip()
    result["date"] = pd.to_datetime(
        _local_wall_clock(df[columns["date"]]), errors="coerce", format="mixed"
    ).dt.normalize()
    result["weight"] = _to_number(df[columns["weight"]], decimal_comma)
    result["reps"] = reps

    problems = {
        "empty exercise name": result["exercise"] == "",
        "bad date": result["date"].isna(),
        "bad weight": result["weight"].isna(),
        "bad reps": reps.isna() | (reps < 0) | (reps % 1 != 0),
    }
    bad = np.logical_or.reduce(list(problems.values()))

    if bad.any():
        print(f"  Warning: Skipped {int(bad.sum())} invalid workout row(s):")
        shown = 0
        for idx in result.index[bad]:
            reasons = [name for name, mask in problems.items() if mask.loc[idx]]
            # +2: header line and 1-based numbering
            print(f"    - Line {idx + 2}: {', '.join(reasons)}")
            shown += 1
            if shown == 5:
                break
        if bad.sum() > 5:
            print(f"    ... and {int(bad.sum()) - 5} more")

    result = result.loc[~bad].reset_index(drop=True)
    result["reps"] = result["reps"].astype(int)
    result["weight"] = result["weight"].astype(float)
    return result


if __name__ == "__main__":
    import sys

    path = sys.argv[1] if len(sys.argv) > 1 else str(WORKOUT_CSV)
    sets = load_workouts(path)
    print(f"Loaded {len(sets)} sets across {sets['exercise'].nunique()} exercises")
    if len(sets) > 0:
        print(f"Date range: {sets['date'].min().date()} to {sets['date'].max().date()}")
        print(f"\nMost logged exercises:")
        print(sets["exercise"].value_counts().head(10).to_string())
