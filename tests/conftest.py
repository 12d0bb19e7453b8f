"""Shared fixtures: tiny health exports and workout logs written to tmp_path."""

import pandas as pd
import pytest

HEALTH_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n<HealthData locale="en_US">\n'
ASLEEP = "HKCategoryValueSleepAnalysisAsleepUnspecified"
IN_BED = "HKCategoryValueSleepAnalysisInBed"

WORKOUT_HEADER = ["Date", "Workout Name", "Exercise Name", "Set Order", "Weight", "Reps", "Notes"]


def sleep_record(created: str, start: str, end: str, value: str = ASLEEP) -> str:
    return (
        '  <Record type="HKCategoryTypeIdentifierSleepAnalysis" sourceName="Watch" '
        f'value="{value}" creationDate="{created}" startDate="{start}" endDate="{end}"/>\n'
    )


@pytest.fixture
def write_export(tmp_path):
    """Write an export.xml from a list of record strings."""
    def _write(records, name="export.xml"):
        path = tmp_path / name
        path.write_text(HEALTH_HEADER + "".join(records) + "</HealthData>\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def write_workouts(tmp_path):
    """Write a workout export from (date, exercise, weight, reps) tuples."""
    def _write(sets, sep=",", name="strong.csv"):
        lines = [sep.join(WORKOUT_HEADER)]
        for i, (day, exercise, weight, reps) in enumerate(sets):
            lines.append(sep.join([day, "Morning", exercise, str(i + 1), str(weight), str(reps), ""]))
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_sets():
    """Build the loader's output frame directly, seq following list order."""
    def _make(sets):
        df = pd.DataFrame(sets, columns=["date", "exercise", "weight", "reps"])
        df.insert(0, "seq", range(len(df)))
        df["date"] = pd.to_datetime(df["date"])
        df["weight"] = df["weight"].astype(float)
        df["reps"] = df["reps"].astype(int)
        return df[["seq", "exercise", "date", "weight", "reps"]]
    return _make
