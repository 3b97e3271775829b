"""
binning.py

Shared covariate bins for stratified matching and histogram densities.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

DEFAULT_N_BINS = 10


def _value_range(*arrays: np.ndarray) -> tuple[float, float]:
    combined = np.concatenate([np.asarray(a, dtype=float) for a in arrays])
    if combined.size == 0:
        raise ValueError("Cannot bin an empty set of values.")
    if not np.isfinite(combined).all():
        raise ValueError("Covariate values must be finite to bin.")
    return float(combined.min()), float(combined.max())


def shared_bin_edges(
    *arrays: np.ndarray,
    n_bins: Optional[int] = None,
    bin_width: Optional[float] = None,
) -> np.ndarray:
    """
    Bin edges spanning the combined range of all arrays.

    Either n_bins equal-width bins (default 10) or bins of bin_width starting
    at the minimum; the last edge is >= the maximum. A zero-width range gives
    a single bin [v - 0.5, v + 0.5].
    """
    if n_bins is not None and bin_width is not None:
        raise ValueError("Set either n_bins or bin_width, not both.")
    lo, hi = _value_range(*arrays)
    if hi == lo:
        return np.array([lo - 0.5, hi + 0.5], dtype=float)

    if bin_width is not None:
        if bin_width <= 0:
            raise ValueError("bin_width must be > 0")
        n = int(np.ceil((hi - lo) / bin_width))
        edges = lo + bin_width * np.arange(n + 1, dtype=float)
        if edges[-1] < hi:
            edges = np.append(edges, edges[-1] + bin_width)
        return edges

    n = DEFAULT_N_BINS if n_bins is None else int(n_bins)
    if n < 1:
        raise ValueError("n_bins must be >= 1")
    return np.linspace(lo, hi, n + 1, dtype=float)


def assign_bins(values: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """
    Bin index per value; bins are [e_i, e_i+1) except the last, which is closed.
    Values outside the edges get -1.
    """
    values = np.asarray(values, dtype=float)
    n_bins = len(edges) - 1
    idx = np.searchsorted(edges, values, side="right") - 1
    idx[values == edges[-1]] = n_bins - 1
    idx[(values < edges[0]) | (values > edges[-1])] = -1
    return idx.astype(np.int64)
