"""
Apple Health ``export.xml`` sleep parser.

Streams the export with :func:`ET.iterparse` (the file is routinely several
GB), keeps only ``HKCategoryTypeIdentifierSleepAnalysis`` records, and turns
them into:

  - a list of :class:`SleepInterval` (one per recorded sleep episode)
  - a daily table: total hours per creation day, with implausible days
    (> ``MAX_DAILY_SLEEP_HRS``) dropped
  - a weekly table: mean of the daily values per week-start

Every sleep record is kept regardless of stage unless a ``stages`` filter
is given, so a night logged both as "in bed" and "asleep" by two sources
sums twice. The daily cutoff exists to catch exactly those nights.
"""
import os
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from lift_notebook.config import (
    APPLE_HEALTH_XML,
    DAILY_SLEEP_CSV,
    MAX_DAILY_SLEEP_HRS,
    SLEEP_RECORD_TYPE,
    WEEK_START_DAY,
)
from lift_notebook.etl.errors import ParseError, RowError

# ---------------------------------------------------------------------------
# Sleep stage short names (``value`` attribute of a sleep record)
# ---------------------------------------------------------------------------

SLEEP_STAGES = {
    "HKCategoryValueSleepAnalysisInBed": "in_bed",
    "HKCategoryValueSleepAnalysisAsleep": "asleep",
    "HKCategoryValueSleepAnalysisAsleepUnspecified": "asleep",
    "HKCategoryValueSleepAnalysisAsleepCore": "asleep_core",
    "HKCategoryValueSleepAnalysisAsleepDeep": "asleep_deep",
    "HKCategoryValueSleepAnalysisAsleepREM": "asleep_rem",
    "HKCategoryValueSleepAnalysisAwake": "awake",
}

REQUIRED_ATTRIBUTES = ("creationDate", "startDate", "endDate")


@dataclass(frozen=True)
class SleepInterval:
    """One recorded sleep episode."""
    creation_day: date
    start: datetime
    end: datetime
    stage: str = "unknown"

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600.0


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

# Exports carry ``2024-11-11 17:57:08 -0500``; hand-edited files drop the offset.
HEALTH_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M:%S")


def _record_timestamp(elem: ET.Element, attr: str) -> datetime:
    """Read one date attribute of a record as a :class:`datetime`."""
    raw = elem.get(attr, "").strip()
    for fmt in HEALTH_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise RowError(f"unparseable {attr}={raw!r}")


def _interval_from_record(elem: ET.Element) -> SleepInterval:
    """Convert one ``<Record>`` element, raising :class:`RowError` if unusable."""
    missing = [a for a in REQUIRED_ATTRIBUTES if not elem.get(a)]
    if missing:
        raise RowError(f"missing attribute(s): {', '.join(missing)}")

    created, start, end = (_record_timestamp(elem, a) for a in REQUIRED_ATTRIBUTES)
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise RowError("startDate and endDate disagree on having a UTC offset")

    # wall-clock portion of creationDate is already local time
    return SleepInterval(
        creation_day=created.date(),
        start=start,
        end=end,
        stage=SLEEP_STAGES.get(elem.get("value", ""), "unknown"),
    )


# ---------------------------------------------------------------------------
# Streaming XML parser core
# ---------------------------------------------------------------------------

def _stream_parse(
    xml_path: str,
    stages: Optional[Iterable[str]] = None,
    progress_every: int = 1_000_000,
) -> Tuple[List[SleepInterval], List[Tuple[int, str]]]:
    """
    Stream-parse an export and collect sleep intervals.

    Returns the intervals plus ``(record_index, reason)`` for every sleep
    record that was skipped.
    """
    wanted = set(stages) if stages is not None else None
    intervals: List[SleepInterval] = []
    skipped: List[Tuple[int, str]] = []
    total = 0
    seen = 0

    try:
        for _, elem in ET.iterparse(xml_path, events=("end",)):
            total += 1
            if total % progress_every == 0:
                print(f"  {total:>14,} elements | {len(intervals):,} sleep records kept")

            if elem.tag == "Record" and elem.get("type") == SLEEP_RECORD_TYPE:
                try:
                    interval = _interval_from_record(elem)
                except RowError as e:
                    skipped.append((seen, str(e)))
                else:
                    if wanted is None or interval.stage in wanted:
                        intervals.append(interval)
                seen += 1
            elem.clear()
    except ET.ParseError as e:
        raise ParseError(f"Malformed health export {xml_path}: {e}") from e

    return intervals, skipped


def parse_sleep_intervals(
    xml_path,
    stages: Optional[Iterable[str]] = None,
    progress_every: int = 1_000_000,
) -> List[SleepInterval]:
    """
    Parse every sleep record of an export into :class:`SleepInterval`.

    Parameters
    ----------
    xml_path : str or Path
        Path to ``export.xml``.
    stages : iterable of str, optional
        Keep only these stage short names (see :data:`SLEEP_STAGES`),
        e.g. ``{"asleep", "asleep_core"}``.  ``None`` keeps every record,
        ``awake`` and ``in_bed`` segments included, so they add to the
        daily total.
    progress_every : int
        Print a progress line every *N* XML elements.

    Records missing a creation/start/end date are skipped with a warning;
    a malformed document raises :class:`ParseError`.
    """
    xml_path = str(xml_path)
    intervals, skipped = _stream_parse(xml_path, stages, progress_every)

    if skipped:
        print(f"  Warning: Skipped {len(skipped)} invalid sleep record(s):")
        for idx, error in skipped[:5]:
            print(f"    - Record {idx}: {error}")
        if len(skipped) > 5:
            print(f"    ... and {len(skipped) - 5} more")

    return intervals


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _empty_daily_sleep_df() -> pd.DataFrame:
    return pd.DataFrame({
        "date": pd.Series(dtype="datetime64[ns]"),
        "sleep": pd.Series(dtype=float),
        "n_intervals": pd.Series(dtype=int),
    })


def _empty_weekly_sleep_df() -> pd.DataFrame:
    return pd.DataFrame({
        "week_start": pd.Series(dtype="datetime64[ns]"),
        "week_sleep": pd.Series(dtype=float),
        "n_days": pd.Series(dtype=int),
    })


def week_start(dates, week_start_day: int = WEEK_START_DAY) -> pd.Series:
    """Floor each date to the most recent ``week_start_day`` (Monday=0)."""
    dates = pd.to_datetime(pd.Series(dates)).dt.normalize()
    offset = (dates.dt.dayofweek - week_start_day) % 7
    return dates - pd.to_timedelta(offset, unit="D")


def compute_daily_sleep(
    intervals: List[SleepInterval],
    max_hours: float = MAX_DAILY_SLEEP_HRS,
) -> pd.DataFrame:
    """
    Sum interval durations per creation day, then drop days above ``max_hours``.

    A day summing to exactly ``max_hours`` is kept. Zero or negative
    durations (clock anomalies) are summed as-is.
    """
    if not intervals:
        return _empty_daily_sleep_df()

    df = pd.DataFrame({
        "date": [iv.creation_day for iv in intervals],
        "duration_hrs": [iv.duration_hours for iv in intervals],
    })

    nonpositive = int((df["duration_hrs"] <= 0).sum())
    if nonpositive:
        print(f"  Note: {nonpositive} sleep interval(s) with zero or negative duration")

    daily = (
        df.groupby("date")
        .agg(sleep=("duration_hrs", "sum"), n_intervals=("duration_hrs", "size"))
        .reset_index()
    )
    daily["date"] = pd.to_datetime(daily["date"])

    excluded = daily["sleep"] > max_hours
    if excluded.any():
        print(f"  Excluded {int(excluded.sum())} day(s) above {max_hours:g} h of sleep")

    daily = daily.loc[~excluded].sort_values("date").reset_index(drop=True)
    return daily


def compute_weekly_sleep(
    daily: pd.DataFrame,
    week_start_day: int = WEEK_START_DAY,
) -> pd.DataFrame:
    """Mean of the (already filtered) daily totals per week-start."""
    if daily.empty:
        return _empty_weekly_sleep_df()

    df = daily[["date", "sleep"]].copy()
    df["week_start"] = week_start(df["date"], week_start_day)
    weekly = (
        df.groupby("week_start")
        .agg(week_sleep=("sleep", "mean"), n_days=("sleep", "size"))
        .reset_index()
        .sort_values("week_start")
        .reset_index(drop=True)
    )
    return weekly


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_apple_health_sleep(
    export_path: Optional[Path] = None,
    stages: Optional[Iterable[str]] = None,
    max_hours: float = MAX_DAILY_SLEEP_HRS,
    week_start_day: int = WEEK_START_DAY,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Parse an Apple Health export into (daily, weekly) sleep tables.

    If *export_path* is None or does not exist, returns empty tables with
    the expected columns (stub mode for workout-only runs).

    With the default *stages* of None every segment counts toward sleep,
    ``awake`` ones included. Pass e.g. ``{"asleep", "asleep_core",
    "asleep_deep", "asleep_rem"}`` to sum only time asleep.
    """
    if export_path is None or not Path(export_path).exists():
        print("Apple Health export not found -- returning empty sleep tables (stub mode)")
        return _empty_daily_sleep_df(), _empty_weekly_sleep_df()

    file_size_mb = os.path.getsize(export_path) / (1024 ** 2)
    print(f"Parsing sleep records from: {export_path} ({file_size_mb:.1f} MB)")

    intervals = parse_sleep_intervals(export_path, stages=stages)
    daily = compute_daily_sleep(intervals, max_hours=max_hours)
    weekly = compute_weekly_sleep(daily, week_start_day=week_start_day)

    print(f"  {len(intervals):,} sleep intervals -> {len(daily)} days, {len(weekly)} weeks")
    return daily, weekly


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main():
    xml_path = sys.argv[1] if len(sys.argv) > 1 else str(APPLE_HEALTH_XML)

    if not os.path.exists(xml_path):
        print(f"ERROR: File not found: {xml_path}")
        sys.exit(1)

    daily, weekly = parse_apple_health_sleep(xml_path)
    if len(daily) > 0:
        print(f"  Date range: {daily['date'].min().date()} to {daily['date'].max().date()}")
        print(f"  Mean nightly sleep: {daily['sleep'].mean():.2f} h")

    DAILY_SLEEP_CSV.parent.mkdir(parents=True, exist_ok=True)
    daily.to_csv(DAILY_SLEEP_CSV, index=False, encoding="utf-8")
    print(f"\nSaved to: {DAILY_SLEEP_CSV}")

    print("\nLast 7 weeks:")
    print(weekly.tail(7).to_string(index=False))
    return daily


if __name__ == "__main__":
    main()
