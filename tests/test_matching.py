import numpy as np
import pytest

from rangematch.errors import EmptyPool, MissingCovariate, UnsupportedConfiguration
from rangematch.intervals import Interval, IntervalSet
from rangematch.matching import CovariateMatcher, MatchConfig, match

CONTIGS = ["chr1", "chr2"]


def _covar_set(values, prefix="iv", covariate="covar") -> IntervalSet:
    return IntervalSet(
        [
            Interval("chr1", 10 * i, 10 * i + 5, name=f"{prefix}{i}", covariates={covariate: v})
            for i, v in enumerate(values)
        ],
        CONTIGS,
    )


def _random_sets(seed: int, n_focal: int = 200, n_pool: int = 2000):
    rng = np.random.default_rng(seed)
    focal = _covar_set(rng.normal(loc=5.0, scale=1.0, size=n_focal), prefix="f")
    pool = _covar_set(rng.normal(loc=4.0, scale=2.0, size=n_pool), prefix="p")
    return focal, pool


def test_nearest_concrete_scenario():
    focal = IntervalSet(
        [
            Interval("chr1", 100, 200, covariates={"covar": 5}),
            Interval("chr1", 300, 400, covariates={"covar": 50}),
        ],
        CONTIGS,
    )
    pool = IntervalSet(
        [
            Interval("chr1", 10, 20, covariates={"covar": 5}),
            Interval("chr1", 30, 40, covariates={"covar": 6}),
            Interval("chr1", 50, 60, covariates={"covar": 48}),
        ],
        CONTIGS,
    )
    result = match(focal, pool, "covar", method="nearest", with_replacement=True, rng_seed=0)
    assert [(p.focal, p.pool) for p in result] == [(focal[0], pool[0]), (focal[1], pool[2])]
    assert result.n_unmatched == 0


def test_nearest_ties_go_to_lowest_pool_index():
    focal = _covar_set([5.0, 2.0])
    pool = _covar_set([6.0, 4.0, 4.0, 2.0, 2.0])
    result = match(focal, pool, "covar", method="nearest", with_replacement=True)
    # 5.0 is equidistant from 4.0 (idx 1, 2) and 6.0 (idx 0)
    assert result.pool_indices == (0, 3)


def test_nearest_is_locally_optimal():
    focal, pool = _random_sets(5, n_focal=100, n_pool=300)
    result = match(focal, pool, "covar", method="nearest", with_replacement=True)
    pool_vals = pool.covariate_values("covar")
    assert len(result) == len(focal)
    for pair in result:
        dists = np.abs(pool_vals - pair.focal_value)
        assert pair.distance <= dists.min()
        assert pair.pool_index == int(np.flatnonzero(dists == dists.min())[0])


def test_nearest_without_replacement_is_unsupported():
    focal, pool = _random_sets(1, 5, 10)
    with pytest.raises(UnsupportedConfiguration):
        match(focal, pool, "covar", method="nearest", with_replacement=False)


def test_unknown_method_is_unsupported():
    with pytest.raises(UnsupportedConfiguration):
        CovariateMatcher(MatchConfig(method="propensity"))


def test_conflicting_bin_settings_are_unsupported():
    with pytest.raises(UnsupportedConfiguration):
        MatchConfig(n_bins=5, bin_width=1.0).validate()
    with pytest.raises(UnsupportedConfiguration):
        MatchConfig(bin_width=0).validate()
    with pytest.raises(UnsupportedConfiguration):
        MatchConfig(method="rejection", max_attempts=0).validate()


def test_configuration_checked_before_covariates():
    focal = IntervalSet([Interval("chr1", 0, 5)], CONTIGS)
    with pytest.raises(UnsupportedConfiguration):
        match(focal, focal, "covar", method="nearest", with_replacement=False)


def test_missing_covariate_fails_fast():
    focal = _covar_set([1.0, 2.0])
    pool = IntervalSet(
        [Interval("chr1", 0, 5, name="ok", covariates={"covar": 1.0}), Interval("chr1", 9, 12, name="bad")],
        CONTIGS,
    )
    for method, replace in (("nearest", True), ("stratified", False), ("rejection", False)):
        with pytest.raises(MissingCovariate) as exc:
            match(focal, pool, "covar", method=method, with_replacement=replace)
        assert exc.value.interval_id == "bad"


@pytest.mark.parametrize("method,replace", [("nearest", True), ("stratified", False), ("rejection", False)])
def test_infinite_covariate_is_missing(method, replace):
    focal = _covar_set([1.0, 2.0])
    pool = IntervalSet(
        [
            Interval("chr1", 0, 5, name="p0", covariates={"covar": 1.0}),
            Interval("chr1", 10, 15, name="p1", covariates={"covar": np.inf}),
            Interval("chr1", 20, 25, name="p2", covariates={"covar": 3.0}),
        ],
        CONTIGS,
    )
    with pytest.raises(MissingCovariate) as exc:
        match(focal, pool, "covar", method=method, with_replacement=replace)
    assert exc.value.interval_id == "p1"


def test_empty_pool_fails():
    focal = _covar_set([1.0, 2.0])
    empty = _covar_set([])
    for method, replace in (("nearest", True), ("stratified", True), ("rejection", False)):
        with pytest.raises(EmptyPool):
            match(focal, empty, "covar", method=method, with_replacement=replace)


def test_empty_focal_gives_empty_result():
    pool = _covar_set([1.0, 2.0])
    result = match(_covar_set([]), pool, "covar", method="rejection")
    assert len(result) == 0
    assert result.n_unmatched == 0


@pytest.mark.parametrize(
    "method,replace",
    [
        ("nearest", True),
        ("stratified", True),
        ("stratified", False),
        ("rejection", True),
        ("rejection", False),
    ],
)
def test_same_seed_same_result(method, replace):
    focal, pool = _random_sets(21)
    a = match(focal, pool, "covar", method=method, with_replacement=replace, rng_seed=7)
    b = match(focal, pool, "covar", method=method, with_replacement=replace, rng_seed=7)
    assert a == b
    assert a.pool_indices == b.pool_indices
    assert a.unmatched == b.unmatched


def test_different_seed_changes_stochastic_result():
    focal, pool = _random_sets(21)
    a = match(focal, pool, "covar", method="stratified", rng_seed=1)
    b = match(focal, pool, "covar", method="stratified", rng_seed=2)
    assert a.pool_indices != b.pool_indices


@pytest.mark.parametrize("method", ["stratified", "rejection"])
def test_without_replacement_uses_each_pool_item_once(method):
    focal, pool = _random_sets(8, n_focal=300, n_pool=600)
    result = match(focal, pool, "covar", method=method, with_replacement=False, rng_seed=3)
    assert len(set(result.pool_indices)) == len(result)


@pytest.mark.parametrize("method,replace", [("stratified", False), ("rejection", False), ("nearest", True)])
def test_pairs_preserve_focal_order_and_account_for_every_focal(method, replace):
    focal, pool = _random_sets(13, n_focal=150, n_pool=400)
    result = match(focal, pool, "covar", method=method, with_replacement=replace, rng_seed=4)
    idx = list(result.focal_indices)
    assert idx == sorted(idx)
    assert len(result) <= len(focal)
    assert sorted(idx + list(result.unmatched)) == list(range(len(focal)))
    for pair in result:
        assert pair.focal == focal[pair.focal_index]
        assert pair.pool == pool[pair.pool_index]


def test_stratified_pairs_share_a_bin():
    focal = _covar_set([0.5, 1.5, 2.5, 9.5])
    pool = _covar_set([0.1, 0.2, 1.9, 2.2, 2.8, 5.0, 9.9])
    result = match(focal, pool, "covar", method="stratified", with_replacement=False, bin_width=1.0)
    for pair in result:
        assert int(pair.focal_value - 0.1) == int(pair.pool_value - 0.1)
    assert result.n_unmatched == 0


def test_stratified_empty_bin_leaves_focal_unmatched():
    focal = _covar_set([1.0, 1.2, 9.0], prefix="f")
    pool = _covar_set([1.1, 0.0, 10.0, 9.9], prefix="p")
    result = match(focal, pool, "covar", method="stratified", with_replacement=False, n_bins=10, rng_seed=5)
    # bins of width 1 over [0, 10]: focal 1.0 and 1.2 share one candidate (1.1)
    assert result.n_matched == 2
    assert result.n_unmatched == 1
    assert result.unmatched_ids[0] in {"f0", "f1"}
    matched = {p.focal.name: p.pool.name for p in result}
    assert matched["f2"] in {"p2", "p3"}


def test_stratified_with_replacement_can_reuse_pool():
    focal = _covar_set([1.0] * 20)
    pool = _covar_set([1.0, 1.0])
    result = match(focal, pool, "covar", method="stratified", with_replacement=True)
    assert result.n_matched == 20
    assert set(result.pool_indices) <= {0, 1}


def test_rejection_reports_unmatched_when_pool_exhausted():
    focal = _covar_set([1.0, 1.0, 1.0, 1.0])
    pool = _covar_set([1.0, 1.0])
    result = match(focal, pool, "covar", method="rejection", with_replacement=False)
    assert result.n_matched == 2
    assert result.unmatched == (2, 3)
    assert result.unmatched_ids == ["iv2", "iv3"]


def test_rejection_disjoint_distributions_leave_focal_unmatched():
    focal = _covar_set([100.0, 101.0, 102.0])
    pool = _covar_set([1.0, 2.0, 3.0, 4.0])
    result = match(focal, pool, "covar", method="rejection", with_replacement=True, max_attempts=20)
    assert result.n_matched == 0
    assert result.n_unmatched == 3


@pytest.mark.parametrize("density", ["histogram", "kde"])
def test_rejection_shifts_pool_toward_focal(density):
    focal, pool = _random_sets(2, n_focal=300, n_pool=5000)
    result = match(
        focal, pool, "covar", method="rejection", with_replacement=False, rng_seed=9, density=density
    )
    matched = result.matched_pool().covariate_values("covar")
    focal_mean = focal.covariate_values("covar").mean()
    pool_mean = pool.covariate_values("covar").mean()
    assert result.n_matched > 0.9 * len(focal)
    assert abs(matched.mean() - focal_mean) < abs(pool_mean - focal_mean)
    assert matched.std() < pool.covariate_values("covar").std()


def test_kde_needs_distinct_values():
    focal = _covar_set([1.0, 1.0])
    pool = _covar_set([1.0, 2.0, 3.0])
    with pytest.raises(UnsupportedConfiguration):
        match(focal, pool, "covar", method="rejection", density="kde")


def test_match_does_not_mutate_inputs():
    focal, pool = _random_sets(4, 20, 50)
    focal_before, pool_before = list(focal), list(pool)
    match(focal, pool, "covar", method="rejection", with_replacement=False)
    assert list(focal) == focal_before
    assert list(pool) == pool_before


def test_result_tables():
    focal = _covar_set([1.0, 5.0], prefix="f")
    pool = _covar_set([1.5, 4.0], prefix="p")
    result = match(focal, pool, "covar", method="nearest", with_replacement=True)
    df = result.to_dataframe()
    assert df["focal_name"].tolist() == ["f0", "f1"]
    assert df["pool_name"].tolist() == ["p0", "p1"]
    assert df["distance"].tolist() == [0.5, 1.0]
    summary = result.summary()
    assert summary["n_matched"] == 2
    assert summary["n_unique_pool"] == 2
    assert summary["method"] == "nearest"


def test_match_options_map_to_config():
    focal, pool = _random_sets(6, 10, 40)
    with pytest.raises(UnsupportedConfiguration):
        match(focal, pool, "covar", method="stratified", bogus=1)


def test_config_json_rejects_untyped_seed_and_replacement(tmp_path):
    path = tmp_path / "match.json"
    path.write_text('{"seed": null}', encoding="utf-8")
    with pytest.raises(UnsupportedConfiguration):
        MatchConfig.from_json(path).validate()

    path.write_text('{"seed": true}', encoding="utf-8")
    with pytest.raises(UnsupportedConfiguration):
        MatchConfig.from_json(path).validate()

    path.write_text('{"with_replacement": "no"}', encoding="utf-8")
    with pytest.raises(UnsupportedConfiguration):
        MatchConfig.from_json(path).validate()

    path.write_text('{"seed": 11, "with_replacement": true, "method": "nearest"}', encoding="utf-8")
    cfg = MatchConfig.from_json(path).validate()
    assert cfg.seed == 11
    assert cfg.with_replacement is True


def test_matcher_rejects_unseeded_config():
    with pytest.raises(UnsupportedConfiguration):
        CovariateMatcher(MatchConfig(seed=None))
