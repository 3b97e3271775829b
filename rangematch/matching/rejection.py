"""
rejection.py

Rejection-sampling covariate matching.

Each focal interval draws uniformly from the remaining pool and accepts a
candidate with probability proportional to focal_density / pool_density at
the candidate's value. Focal intervals with no acceptance within
max_attempts draws (or facing an exhausted pool) are left unmatched.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from rangematch.matching.density import acceptance_probabilities


def rejection_match(
    focal: np.ndarray,
    pool: np.ndarray,
    rng: np.random.Generator,
    *,
    with_replacement: bool,
    max_attempts: int = 100,
    density: str = "histogram",
    density_bins: int = 20,
) -> Tuple[List[Tuple[int, int]], List[int]]:
    accept = acceptance_probabilities(focal, pool, method=density, bins=density_bins)

    # private draw pool; swap-remove keeps removal O(1)
    available = np.arange(len(pool), dtype=np.int64)
    n_available = len(available)

    pairs: List[Tuple[int, int]] = []
    unmatched: List[int] = []
    for fi in range(len(focal)):
        matched = -1
        for _ in range(max_attempts):
            if n_available == 0:
                break
            slot = int(rng.integers(n_available))
            cand = int(available[slot])
            if rng.random() < accept[cand]:
                matched = cand
                if not with_replacement:
                    n_available -= 1
                    available[slot] = available[n_available]
                break
        if matched < 0:
            unmatched.append(fi)
        else:
            pairs.append((fi, matched))
    return pairs, unmatched
