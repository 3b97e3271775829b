import numpy as np
import pytest

from rangematch.errors import UnsupportedConfiguration
from rangematch.matching.binning import assign_bins, shared_bin_edges
from rangematch.matching.density import acceptance_probabilities


def test_shared_edges_cover_combined_range():
    edges = shared_bin_edges(np.array([1.0, 3.0]), np.array([0.0, 10.0]), n_bins=5)
    np.testing.assert_allclose(edges, [0.0, 2.0, 4.0, 6.0, 8.0, 10.0])


def test_default_bin_count():
    edges = shared_bin_edges(np.array([0.0, 1.0]))
    assert len(edges) == 11


def test_bin_width_edges_reach_maximum():
    edges = shared_bin_edges(np.array([0.0, 2.5]), bin_width=1.0)
    np.testing.assert_allclose(edges, [0.0, 1.0, 2.0, 3.0])
    edges = shared_bin_edges(np.array([0.0, 3.0]), bin_width=1.0)
    np.testing.assert_allclose(edges, [0.0, 1.0, 2.0, 3.0])


def test_constant_values_get_single_bin():
    edges = shared_bin_edges(np.array([4.0, 4.0]), np.array([4.0]))
    np.testing.assert_allclose(edges, [3.5, 4.5])


def test_edges_reject_bad_settings():
    with pytest.raises(ValueError):
        shared_bin_edges(np.array([0.0, 1.0]), n_bins=2, bin_width=0.5)
    with pytest.raises(ValueError):
        shared_bin_edges(np.array([]))
    with pytest.raises(ValueError):
        shared_bin_edges(np.array([0.0, np.inf]))


def test_assign_bins_last_edge_inclusive():
    edges = np.array([0.0, 1.0, 2.0])
    idx = assign_bins(np.array([0.0, 0.5, 1.0, 1.5, 2.0, -0.1, 2.1]), edges)
    assert idx.tolist() == [0, 0, 1, 1, 1, -1, -1]


def test_acceptance_max_is_one():
    rng = np.random.default_rng(0)
    focal = rng.normal(0.0, 1.0, size=200)
    pool = rng.normal(0.0, 3.0, size=1000)
    for method in ("histogram", "kde"):
        acc = acceptance_probabilities(focal, pool, method=method, bins=15)
        assert acc.shape == pool.shape
        assert acc.max() == pytest.approx(1.0)
        assert acc.min() >= 0.0


def test_acceptance_favours_focal_region():
    focal = np.array([0.0, 0.1, 0.2, 0.3])
    pool = np.array([0.1, 0.2, 5.0, 6.0])
    acc = acceptance_probabilities(focal, pool, method="histogram", bins=4)
    assert acc[0] == pytest.approx(1.0)
    assert acc[2] == 0.0
    assert acc[3] == 0.0


def test_acceptance_unknown_density():
    with pytest.raises(UnsupportedConfiguration):
        acceptance_probabilities(np.array([1.0, 2.0]), np.array([1.0, 2.0]), method="spline")
