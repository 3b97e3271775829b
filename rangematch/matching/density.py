"""
density.py

Density estimates used to weight rejection sampling.

histogram: both sets are binned on shared edges from the combined range
(numpy.histogram_bin_edges) and normalised to unit area; the density at x is
the height of the bin holding x.

kde: scipy.stats.gaussian_kde per set with Scott's rule bandwidth.
"""

from __future__ import annotations

from typing import Callable, Tuple

import numpy as np
from scipy.stats import gaussian_kde

from rangematch.errors import UnsupportedConfiguration
from rangematch.matching.binning import assign_bins

DensityFn = Callable[[np.ndarray], np.ndarray]


def histogram_densities(focal: np.ndarray, pool: np.ndarray, bins: int) -> Tuple[DensityFn, DensityFn]:
    combined = np.concatenate([focal, pool])
    edges = np.histogram_bin_edges(combined, bins=bins)

    def _fit(values: np.ndarray) -> DensityFn:
        heights, _ = np.histogram(values, bins=edges, density=True)

        def _density(x: np.ndarray) -> np.ndarray:
            idx = assign_bins(x, edges)
            out = np.zeros(len(idx), dtype=float)
            inside = idx >= 0
            out[inside] = heights[idx[inside]]
            return out

        return _density

    return _fit(focal), _fit(pool)


def kde_densities(focal: np.ndarray, pool: np.ndarray) -> Tuple[DensityFn, DensityFn]:
    for label, values in (("focal", focal), ("pool", pool)):
        if len(np.unique(values)) < 2:
            raise UnsupportedConfiguration(
                f"kde density needs at least two distinct {label} covariate values; use density='histogram'."
            )
    return gaussian_kde(focal, bw_method="scott"), gaussian_kde(pool, bw_method="scott")


def acceptance_probabilities(
    focal: np.ndarray,
    pool: np.ndarray,
    *,
    method: str = "histogram",
    bins: int = 20,
) -> np.ndarray:
    """
    Per-pool-item acceptance probability proportional to
    focal_density(x) / pool_density(x), scaled so the maximum is 1.
    """
    if method == "histogram":
        f_dens, p_dens = histogram_densities(focal, pool, bins)
    elif method == "kde":
        f_dens, p_dens = kde_densities(focal, pool)
    else:
        raise UnsupportedConfiguration(f"Unknown density estimator '{method}'.")

    num = np.asarray(f_dens(pool), dtype=float)
    den = np.asarray(p_dens(pool), dtype=float)
    ratio = np.zeros(len(pool), dtype=float)
    ok = den > 0
    ratio[ok] = num[ok] / den[ok]
    top = ratio.max() if len(ratio) else 0.0
    if not top > 0:
        return np.zeros(len(pool), dtype=float)
    return ratio / top
