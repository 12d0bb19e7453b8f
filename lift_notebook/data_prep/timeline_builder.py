"""
Enriched session table builder.

Merges the per-exercise metrics with:
  - exercise frequency (how many days each exercise was trained)
  - daily sleep (same calendar date as the session)
  - weekly sleep (same week-start as the session)

The output is one row per (exercise, date) and is what the plots and the
trend summary read. Sleep that is missing for a date stays NaN.
"""
import pandas as pd

from lift_notebook.config import ASSISTED_MARKER, WEEK_START_DAY
from lift_notebook.etl.apple_health_parser import week_start


def _as_day(values):
    """Normalize join keys to midnight datetime64[ns]."""
    return pd.to_datetime(pd.Series(values)).dt.normalize().astype("datetime64[ns]").values


def exercise_frequency(
    sets: pd.DataFrame,
    assisted_marker: str = ASSISTED_MARKER,
) -> pd.DataFrame:
    """
    Count training days per exercise.

    Every exercise name in the log gets a row. ``count`` is the number of
    distinct dates with a weighted (weight > 0) set, and is 0 for
    exercises that are assisted variants or were only logged at bodyweight.
    """
    names = pd.Series(sets["exercise"].unique(), name="exercise")
    qualifying = sets.loc[
        (sets["weight"] > 0)
        & ~sets["exercise"].str.contains(assisted_marker, case=False, regex=False)
    ]
    counts = qualifying.groupby("exercise")["date"].nunique()

    freq = names.to_frame()
    freq["count"] = freq["exercise"].map(counts).fillna(0).astype(int)
    return freq.sort_values(["count", "exercise"], ascending=[False, True]).reset_index(drop=True)


def build_enriched_table(
    metrics: pd.DataFrame,
    frequency: pd.DataFrame,
    daily_sleep: pd.DataFrame,
    weekly_sleep: pd.DataFrame,
    week_start_day: int = WEEK_START_DAY,
) -> pd.DataFrame:
    """
    Join frequency and sleep onto the per-exercise metrics.

    Frequency is right-joined so an exercise with no session rows (all of
    its sets were bodyweight) still appears once, with NaN metrics. Sleep
    tables are left-joined by date and by week-start.
    """
    df = metrics.merge(frequency, on="exercise", how="right")
    df["date"] = _as_day(df["date"])
    df["week_start"] = _as_day(week_start(df["date"], week_start_day).values)

    daily = daily_sleep[["date", "sleep"]].assign(date=lambda d: _as_day(d["date"]))
    weekly = weekly_sleep[["week_start", "week_sleep"]].assign(
        week_start=lambda d: _as_day(d["week_start"])
    )

    df = df.merge(daily, on="date", how="left")
    df = df.merge(weekly, on="week_start", how="left")

    df = df.sort_values(["exercise", "date"], na_position="last").reset_index(drop=True)
    return df
