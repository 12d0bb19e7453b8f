"""Tests for the workout export loader."""

import pandas as pd
import pytest

from lift_notebook.etl.errors import ParseError
from lift_notebook.etl.workout_loader import load_workouts


def test_loads_typed_rows_in_log_order(write_workouts):
    path = write_workouts([
        ("2023-01-01 08:15:32", "Squat (Barbell)", 100, 5),
        ("2023-01-01 08:15:32", "Bench Press (Barbell)", 80.5, 8),
        ("2023-01-03 18:02:10", "Squat (Barbell)", 105, 5),
    ])
    sets = load_workouts(path)

    assert list(sets.columns) == ["seq", "exercise", "date", "weight", "reps"]
    assert sets["seq"].tolist() == [0, 1, 2]
    assert sets["exercise"].tolist() == ["Squat (Barbell)", "Bench Press (Barbell)", "Squat (Barbell)"]
    assert list(sets["date"]) == list(pd.to_datetime(["2023-01-01", "2023-01-01", "2023-01-03"]))
    assert sets["weight"].tolist() == [100.0, 80.5, 105.0]
    assert sets["reps"].tolist() == [5, 8, 5]
    assert sets["reps"].dtype.kind == "i"


def test_mixed_utc_offsets_keep_local_calendar_day(write_workouts):
    # winter and summer time in one log
    path = write_workouts([
        ("2023-01-01 10:00:00+01:00", "Row", 100, 5),
        ("2023-07-01 23:30:00+02:00", "Row", 110, 5),
        ("2023-07-02 06:00:00Z", "Row", 115, 5),
    ])
    sets = load_workouts(path)

    assert len(sets) == 3
    assert list(sets["date"]) == list(pd.to_datetime(["2023-01-01", "2023-07-01", "2023-07-02"]))


def test_missing_required_column_raises(tmp_path):
    path = tmp_path / "strong.csv"
    path.write_text("Date,Exercise Name,Weight\n2023-01-01,Squat,100\n", encoding="utf-8")
    with pytest.raises(ParseError, match="Reps"):
        load_workouts(path)


def test_malformed_rows_are_skipped_and_seq_keeps_raw_position(write_workouts, capsys):
    path = write_workouts([
        ("2023-01-01 08:00:00", "Squat", 100, 5),
        ("2023-01-01 08:00:00", "Squat", "abc", 5),       # bad weight
        ("not a date", "Squat", 100, 5),                  # bad date
        ("2023-01-01 08:00:00", "Squat", 100, ""),        # empty reps
        ("2023-01-01 08:00:00", "Squat", 100, 2.5),       # fractional reps
        ("2023-01-01 08:00:00", "Squat", 100, -1),        # negative reps
        ("2023-01-01 08:00:00", "", 100, 5),              # no exercise
        ("2023-01-01 08:00:00", "Deadlift", 140, 3),
    ])
    sets = load_workouts(path)

    assert sets["exercise"].tolist() == ["Squat", "Deadlift"]
    assert sets["seq"].tolist() == [0, 7]
    out = capsys.readouterr().out
    assert "Skipped 6 invalid workout row(s)" in out
    assert "bad weight" in out


def test_nonpositive_weight_is_kept(write_workouts):
    path = write_workouts([
        ("2023-01-01 08:00:00", "Pull Up", 0, 10),
        ("2023-01-01 08:00:00", "Pull Up (Assisted)", -20, 8),
    ])
    sets = load_workouts(path)
    assert sets["weight"].tolist() == [0.0, -20.0]


def test_semicolon_export_with_decimal_comma(write_workouts):
    path = write_workouts([
        ("2023-01-01 08:00:00", "Curl", "12,5", 10),
    ], sep=";")
    sets = load_workouts(path)
    assert sets["weight"].tolist() == [12.5]
    assert sets["reps"].tolist() == [10]


def test_custom_column_mapping(tmp_path):
    path = tmp_path / "log.csv"
    path.write_text(
        "day,movement,kg,count,comment\n"
        "2023-02-01,Row,60,10,felt good\n",
        encoding="utf-8",
    )
    sets = load_workouts(path, columns={"exercise": "movement", "date": "day",
                                        "weight": "kg", "reps": "count"})
    assert sets["exercise"].tolist() == ["Row"]
    assert sets["weight"].tolist() == [60.0]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_workouts(tmp_path / "missing.csv")
