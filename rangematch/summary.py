"""
summary.py

Descriptive covariate summaries for comparing focal, pool and matched sets.
"""

from __future__ import annotations

from typing import Dict, Mapping

import numpy as np
import pandas as pd

from rangematch.intervals import IntervalSet
from rangematch.matching.result import MatchResult

SUMMARY_COLUMNS = ["set", "n", "mean", "std", "min", "q25", "median", "q75", "max"]


def _describe(values: np.ndarray) -> Dict[str, float]:
    vals = values[np.isfinite(values)]
    if vals.size == 0:
        return {k: float("nan") for k in SUMMARY_COLUMNS[2:]} | {"n": 0}
    q25, med, q75 = np.percentile(vals, [25, 50, 75])
    return {
        "n": int(vals.size),
        "mean": float(vals.mean()),
        "std": float(vals.std(ddof=1)) if vals.size > 1 else float("nan"),
        "min": float(vals.min()),
        "q25": float(q25),
        "median": float(med),
        "q75": float(q75),
        "max": float(vals.max()),
    }


def covariate_summary(sets: Mapping[str, IntervalSet], covariate: str) -> pd.DataFrame:
    """One row of summary statistics per named interval set."""
    rows = []
    for label, ivs in sets.items():
        row = {"set": label}
        row.update(_describe(ivs.covariate_values(covariate)))
        rows.append(row)
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def standardised_mean_difference(a: np.ndarray, b: np.ndarray) -> float:
    """(mean_a - mean_b) / pooled sd; NaN when undefined."""
    a = a[np.isfinite(a)]
    b = b[np.isfinite(b)]
    if a.size < 2 or b.size < 2:
        return float("nan")
    pooled = np.sqrt((a.var(ddof=1) + b.var(ddof=1)) / 2.0)
    if pooled == 0 or not np.isfinite(pooled):
        return 0.0 if a.mean() == b.mean() else float("nan")
    return float((a.mean() - b.mean()) / pooled)


def match_overview(result: MatchResult) -> pd.DataFrame:
    """
    Summary of focal, matched, pool and unmatched-focal sets for one result,
    with the standardised mean difference of each set against the focal set.
    """
    cov = result.covariate
    sets = {
        "focal": result.focal,
        "matched": result.matched_pool(),
        "pool": result.pool,
        "unmatched": result.unmatched_focal(),
    }
    out = covariate_summary(sets, cov)
    focal_vals = result.focal.covariate_values(cov)
    out["smd_vs_focal"] = [
        standardised_mean_difference(sets[label].covariate_values(cov), focal_vals)
        for label in out["set"]
    ]
    return out
