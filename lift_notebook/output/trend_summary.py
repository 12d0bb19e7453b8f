"""
Trend summary — the numbers behind the per-exercise scatter + trend plots.

For each exercise and each (x, y) pair in TREND_PAIRS, fits an ordinary
least-squares line through the sessions where both values exist and
reports slope, intercept, Pearson r and the two-sided p-value.

``date_ordinal`` is derived here: days since the exercise's first session.
"""
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import linregress

from lift_notebook.config import MIN_TREND_POINTS, TREND_PAIRS

TREND_COLUMNS = ["exercise", "x", "y", "n", "slope", "intercept", "r", "p_value"]


def _finite_pairs(group: pd.DataFrame, x: str, y: str) -> pd.DataFrame:
    pts = group[[x, y]].astype(float)
    return pts.replace([np.inf, -np.inf], np.nan).dropna()


def fit_trends(
    enriched: pd.DataFrame,
    pairs: Sequence[Tuple[str, str]] = TREND_PAIRS,
    min_points: int = MIN_TREND_POINTS,
) -> pd.DataFrame:
    """
    Fit one trend line per (exercise, x, y).

    Pairs with fewer than ``min_points`` usable sessions, or with a
    constant x, are left out.
    """
    rows: List[dict] = []
    sessions = enriched.dropna(subset=["date"])

    for exercise, group in sessions.groupby("exercise", sort=True):
        group = group.copy()
        group["date_ordinal"] = (group["date"] - group["date"].min()).dt.days

        for x, y in pairs:
            if x not in group.columns or y not in group.columns:
                continue
            pts = _finite_pairs(group, x, y)
            if len(pts) < min_points or pts[x].nunique() < 2:
                continue

            fit = linregress(pts[x].to_numpy(), pts[y].to_numpy())
            rows.append({
                "exercise": exercise,
                "x": x,
                "y": y,
                "n": len(pts),
                "slope": fit.slope,
                "intercept": fit.intercept,
                "r": fit.rvalue,
                "p_value": fit.pvalue,
            })

    return pd.DataFrame(rows, columns=TREND_COLUMNS)


def strongest_trends(trends: pd.DataFrame, top: int = 10, max_p: float = 0.05) -> pd.DataFrame:
    """Significant fits ordered by |r|, strongest first."""
    significant = trends.loc[trends["p_value"] <= max_p]
    order = significant["r"].abs().sort_values(ascending=False).index
    return significant.loc[order].head(top).reset_index(drop=True)
