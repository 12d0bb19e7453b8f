"""Tests for exercise frequency and the enriched-table joins."""

import math

import pandas as pd
import pytest

from lift_notebook.data_prep.exercise_metrics import build_exercise_metrics
from lift_notebook.data_prep.timeline_builder import build_enriched_table, exercise_frequency
from lift_notebook.etl.apple_health_parser import compute_weekly_sleep


@pytest.fixture
def sets(make_sets):
    return make_sets([
        ("2023-01-02", "Squat", 100, 5),
        ("2023-01-02", "Squat", 100, 5),
        ("2023-01-02", "Pull Up", 0, 10),
        ("2023-01-02", "Pull Up (Assisted)", 20, 8),
        ("2023-01-04", "Squat", 105, 5),
        ("2023-01-09", "Squat", 110, 5),
        ("2023-01-09", "Pull Up (Assisted)", 15, 8),
    ])


@pytest.fixture
def daily_sleep():
    # 2023-01-04 is absent: either unrecorded or dropped above 15 h
    return pd.DataFrame({
        "date": pd.to_datetime(["2023-01-02", "2023-01-03", "2023-01-09"]),
        "sleep": [7.0, 8.0, 6.5],
        "n_intervals": [1, 1, 1],
    })


def _enriched(sets, daily_sleep):
    metrics = build_exercise_metrics(sets)
    frequency = exercise_frequency(sets)
    weekly = compute_weekly_sleep(daily_sleep, week_start_day=6)
    return build_enriched_table(metrics, frequency, daily_sleep, weekly, week_start_day=6)


def test_frequency_counts_distinct_weighted_days(sets):
    freq = exercise_frequency(sets).set_index("exercise")["count"].to_dict()
    assert freq == {"Squat": 3, "Pull Up": 0, "Pull Up (Assisted)": 0}


def test_assisted_marker_is_case_insensitive(make_sets):
    freq = exercise_frequency(make_sets([("2023-01-01", "dip (ASSISTED)", 10, 8)]))
    assert freq["count"].tolist() == [0]


def test_every_exercise_appears_in_enriched_table(sets, daily_sleep):
    enriched = _enriched(sets, daily_sleep)
    assert set(enriched["exercise"]) == {"Squat", "Pull Up", "Pull Up (Assisted)"}

    pull_up = enriched.loc[enriched["exercise"] == "Pull Up"]
    assert len(pull_up) == 1
    assert pull_up["volume"].isna().all()
    assert pull_up["count"].tolist() == [0]

    assisted = enriched.loc[enriched["exercise"] == "Pull Up (Assisted)"]
    assert assisted["volume"].tolist() == [160.0, 120.0]


def test_daily_sleep_joined_by_date_and_missing_stays_absent(sets, daily_sleep):
    enriched = _enriched(sets, daily_sleep)
    squat = enriched.loc[enriched["exercise"] == "Squat"].set_index("date")

    assert squat.loc[pd.Timestamp("2023-01-02"), "sleep"] == 7.0
    assert math.isnan(squat.loc[pd.Timestamp("2023-01-04"), "sleep"])
    assert squat.loc[pd.Timestamp("2023-01-09"), "sleep"] == 6.5


def test_weekly_sleep_joined_by_week_start(sets, daily_sleep):
    enriched = _enriched(sets, daily_sleep)
    squat = enriched.loc[enriched["exercise"] == "Squat"].set_index("date")

    # week of Sunday 2023-01-01 holds 7.0 and 8.0
    assert squat.loc[pd.Timestamp("2023-01-04"), "week_start"] == pd.Timestamp("2023-01-01")
    assert squat.loc[pd.Timestamp("2023-01-04"), "week_sleep"] == pytest.approx(7.5)
    assert squat.loc[pd.Timestamp("2023-01-09"), "week_sleep"] == pytest.approx(6.5)


def test_enriched_keeps_one_row_per_session(sets, daily_sleep):
    enriched = _enriched(sets, daily_sleep)
    sessions = enriched.dropna(subset=["date"])
    assert not sessions.duplicated(subset=["exercise", "date"]).any()
    assert len(sessions) == 5


def test_join_with_no_sleep_data(sets):
    empty_daily = pd.DataFrame({
        "date": pd.Series(dtype="datetime64[ns]"),
        "sleep": pd.Series(dtype=float),
    })
    enriched = _enriched(sets, empty_daily)
    assert enriched["sleep"].isna().all()
    assert enriched["week_sleep"].isna().all()
