"""
stratified.py

Stratified covariate matching: focal and pool values share bins over their
combined range, and pool members are randomly assigned to focal members
within the same bin.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from rangematch.matching.binning import assign_bins, shared_bin_edges


def stratified_match(
    focal: np.ndarray,
    pool: np.ndarray,
    rng: np.random.Generator,
    *,
    with_replacement: bool,
    n_bins: Optional[int] = None,
    bin_width: Optional[float] = None,
) -> Tuple[List[Tuple[int, int]], List[int]]:
    if len(focal) == 0:
        return [], []

    edges = shared_bin_edges(focal, pool, n_bins=n_bins, bin_width=bin_width)
    focal_bins = assign_bins(focal, edges)
    pool_bins = assign_bins(pool, edges)

    chosen = np.full(len(focal), -1, dtype=np.int64)
    for b in range(len(edges) - 1):
        members = np.flatnonzero(focal_bins == b)
        if len(members) == 0:
            continue
        candidates = np.flatnonzero(pool_bins == b)
        if len(candidates) == 0:
            continue
        if with_replacement:
            chosen[members] = candidates[rng.integers(len(candidates), size=len(members))]
            continue
        take = min(len(members), len(candidates))
        picked_focal = rng.permutation(members)[:take]
        picked_pool = rng.permutation(candidates)[:take]
        chosen[picked_focal] = picked_pool

    pairs = [(int(i), int(chosen[i])) for i in range(len(focal)) if chosen[i] >= 0]
    unmatched = [int(i) for i in np.flatnonzero(chosen < 0)]
    return pairs, unmatched
