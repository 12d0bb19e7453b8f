"""
Per-exercise metrics — turns the raw set log into one time series per exercise.

A Session is every set of one exercise on one calendar day. For each
session we compute:

  SESSION AGGREGATES
    volume          sum(weight × reps)
    max_weight      heaviest set
    volume_per_set  mean(weight × reps)
    set_number      1-based position of the exercise's first set in that
                    day's workout, counted across all exercises. A proxy for
                    how much fatigue had accumulated before the exercise.

  ONE-STEP DELTAS (against the previous session of the same exercise)
    gap             days since the previous session
    pct_<metric>    (current - previous) / previous

  RUNNING-AVERAGE DEVIATION
    pct_<metric>_runavg   (current - baseline) / baseline, where baseline is
                          the mean of up to RUNAVG_WINDOW prior sessions

The first session of every exercise has no predecessor, so all of its
derived fields are NaN. A single-session exercise is a valid series.

Only sets with weight > 0 take part. Bodyweight and assisted sets are
dropped before set numbering, so they do not advance the fatigue position.
"""
import numpy as np
import pandas as pd

from lift_notebook.config import RUNAVG_WINDOW

METRICS = ["volume", "max_weight", "volume_per_set"]


# ══════════════════════════════════════════════════════════════════
# SET LEVEL
# ══════════════════════════════════════════════════════════════════

def assign_set_numbers(sets: pd.DataFrame) -> pd.DataFrame:
    """
    Keep weighted sets and number them within each day by log order.

    Input: sets with columns [seq, exercise, date, weight, reps].
    Returns a copy with ``set_number`` (1-based) and ``set_volume``.
    """
    df = sets.loc[sets["weight"] > 0].sort_values("seq", kind="stable").copy()
    df["set_number"] = df.groupby("date").cumcount() + 1
    df["set_volume"] = df["weight"] * df["reps"]
    return df.reset_index(drop=True)


# ══════════════════════════════════════════════════════════════════
# SESSION LEVEL
# ══════════════════════════════════════════════════════════════════

def aggregate_sessions(numbered_sets: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse numbered sets to one row per (exercise, date).

    Returns: [exercise, date, volume, max_weight, volume_per_set,
              set_number, n_sets, total_reps], sorted by exercise then date.
    """
    sessions = (
        numbered_sets.groupby(["exercise", "date"], sort=True)
        .agg(
            volume=("set_volume", "sum"),
            max_weight=("weight", "max"),
            volume_per_set=("set_volume", "mean"),
            set_number=("set_number", "min"),
            n_sets=("set_volume", "size"),
            total_reps=("reps", "sum"),
        )
        .reset_index()
    )
    return sessions


def _pct_change(current: pd.Series, baseline: pd.Series) -> pd.Series:
    """(current - baseline) / baseline, NaN where the baseline is missing or zero."""
    return (current - baseline) / baseline.where(baseline != 0)


def add_session_deltas(sessions: pd.DataFrame) -> pd.DataFrame:
    """
    Add ``gap`` and ``pct_<metric>`` against the previous session of the
    same exercise.
    """
    df = sessions.sort_values(["exercise", "date"]).reset_index(drop=True)
    by_exercise = df.groupby("exercise", sort=False)

    df["gap"] = by_exercise["date"].diff().dt.days

    for metric in METRICS:
        previous = by_exercise[metric].shift(1)
        df[f"pct_{metric}"] = _pct_change(df[metric], previous)

    return df


def add_running_average_deviation(
    sessions: pd.DataFrame,
    window: int = RUNAVG_WINDOW,
) -> pd.DataFrame:
    """
    Add ``pct_<metric>_runavg``: deviation from the mean of the prior window.

    The baseline for session i is the mean of sessions max(0, i-window)..i-1
    of the same exercise. The current session is never in its own
    baseline, and the divisor is the number of sessions actually in the
    window, so exercises with fewer than ``window`` prior sessions are
    averaged over what exists.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")

    df = sessions.sort_values(["exercise", "date"]).reset_index(drop=True)
    by_exercise = df.groupby("exercise", sort=False)

    for metric in METRICS:
        baseline = by_exercise[metric].transform(
            lambda s: s.shift(1).rolling(window, min_periods=1).mean()
        )
        df[f"pct_{metric}_runavg"] = _pct_change(df[metric], baseline)

    return df


# ══════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════

METRIC_COLUMNS = (
    ["exercise", "date"]
    + METRICS
    + ["set_number", "n_sets", "total_reps", "gap"]
    + [f"pct_{m}" for m in METRICS]
    + [f"pct_{m}_runavg" for m in METRICS]
)


def _empty_metrics_df() -> pd.DataFrame:
    dtypes = {"exercise": object, "date": "datetime64[ns]"}
    return pd.DataFrame({col: pd.Series(dtype=dtypes.get(col, float)) for col in METRIC_COLUMNS})


def build_exercise_metrics(
    sets: pd.DataFrame,
    window: int = RUNAVG_WINDOW,
) -> pd.DataFrame:
    """
    Run the full set → session → time series transform.

    Returns one row per (exercise, date) with session aggregates, deltas
    and running-average deviations, sorted by exercise then date.
    """
    numbered = assign_set_numbers(sets)
    if numbered.empty:
        return _empty_metrics_df()
    sessions = aggregate_sessions(numbered)
    sessions = add_session_deltas(sessions)
    sessions = add_running_average_deviation(sessions, window=window)
    return sessions


def exercise_series(metrics: pd.DataFrame, exercise: str) -> pd.DataFrame:
    """The date-ordered time series of a single exercise."""
    series = metrics.loc[metrics["exercise"] == exercise]
    return series.sort_values("date").reset_index(drop=True)


def session_counts(metrics: pd.DataFrame) -> pd.Series:
    """Number of sessions per exercise, most frequent first."""
    if metrics.empty:
        return pd.Series(dtype=np.int64, name="sessions")
    return metrics.groupby("exercise").size().sort_values(ascending=False).rename("sessions")
