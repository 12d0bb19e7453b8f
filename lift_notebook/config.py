"""
Lift Notebook — Configuration
Paths, thresholds, and column names for the workout + sleep pipeline.
"""
from pathlib import Path

# ── Base paths ──────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = BASE_DIR / "lift_notebook" / "output_data"

# ── Data files ──────────────────────────────────────────────────
APPLE_HEALTH_XML = DATA_DIR / "export.xml"
WORKOUT_CSV = DATA_DIR / "strong.csv"
DAILY_SLEEP_CSV = OUTPUT_DIR / "daily_sleep.csv"
ENRICHED_CSV = OUTPUT_DIR / "enriched_sessions.csv"
TREND_SUMMARY_CSV = OUTPUT_DIR / "trend_summary.csv"

# ── Health export ───────────────────────────────────────────────
SLEEP_RECORD_TYPE = "HKCategoryTypeIdentifierSleepAnalysis"

# Days summing above this are double-logged sessions, not real nights
MAX_DAILY_SLEEP_HRS = 15.0

# pandas numbering: Monday=0 ... Sunday=6
WEEK_START_DAY = 6

# ── Workout export ──────────────────────────────────────────────
# Logical field -> header in the fitness app's CSV export
WORKOUT_COLUMNS = {
    "exercise": "Exercise Name",
    "date": "Date",
    "weight": "Weight",
    "reps": "Reps",
}

# Exercise names containing this are counterweight-assisted variants
ASSISTED_MARKER = "Assisted"

# ── Per-exercise metrics ────────────────────────────────────────
RUNAVG_WINDOW = 5        # prior sessions in the running-average baseline

# ── Trend summary ───────────────────────────────────────────────
# (x, y) pairs fitted per exercise
TREND_PAIRS = [
    ("date_ordinal", "volume"),
    ("date_ordinal", "max_weight"),
    ("set_number", "volume_per_set"),
    ("gap", "pct_volume"),
    ("gap", "pct_max_weight"),
    ("sleep", "pct_volume"),
    ("sleep", "pct_volume_per_set"),
    ("week_sleep", "pct_volume_runavg"),
    ("week_sleep", "pct_max_weight_runavg"),
]
MIN_TREND_POINTS = 3
