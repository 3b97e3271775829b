"""
nearest.py

Nearest-neighbour covariate matching, with replacement.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np


def nearest_match(focal: np.ndarray, pool: np.ndarray) -> Tuple[List[Tuple[int, int]], List[int]]:
    """
    For each focal value, the pool index with the smallest absolute distance.

    Focal values are visited in ascending order. Ties (equal distance on both
    sides, or repeated pool values) resolve to the lowest pool index.
    Returns (pairs in focal order, unmatched focal indices); nothing is left
    unmatched while the pool is non-empty.
    """
    if len(pool) == 0:
        return [], list(range(len(focal)))

    order = np.argsort(pool, kind="stable")
    sorted_vals = pool[order]
    # lowest pool index among each run of equal values
    first_of_run = np.searchsorted(sorted_vals, sorted_vals, side="left")
    run_starts = np.unique(first_of_run)
    lowest_idx = np.minimum.reduceat(order, run_starts)
    best_of_pos = lowest_idx[np.searchsorted(run_starts, first_of_run)]

    chosen = np.empty(len(focal), dtype=np.int64)
    for fi in np.argsort(focal, kind="stable"):
        x = focal[fi]
        pos = int(np.searchsorted(sorted_vals, x, side="left"))
        cands = []
        if pos < len(sorted_vals):
            cands.append((abs(sorted_vals[pos] - x), int(best_of_pos[pos])))
        if pos > 0:
            cands.append((abs(x - sorted_vals[pos - 1]), int(best_of_pos[pos - 1])))
        chosen[fi] = min(cands)[1]

    pairs = [(int(i), int(chosen[i])) for i in range(len(focal))]
    return pairs, []
