"""
matcher.py

Covariate-matched control selection: pick pool intervals whose covariate
distribution follows the focal set's.

Checks run before any sampling, in order: configuration
(UnsupportedConfiguration), covariates on both sets (MissingCovariate), pool
emptiness (EmptyPool). Each call seeds its own numpy Generator, so the same
seed, inputs and method give the same result.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Tuple

import numpy as np

from rangematch.errors import EmptyPool
from rangematch.intervals import IntervalSet
from rangematch.matching.config import MatchConfig
from rangematch.matching.nearest import nearest_match
from rangematch.matching.rejection import rejection_match
from rangematch.matching.result import MatchPair, MatchResult
from rangematch.matching.stratified import stratified_match

logger = logging.getLogger(__name__)


class CovariateMatcher:
    def __init__(self, config: MatchConfig | None = None) -> None:
        self.config = (config or MatchConfig()).validate()

    def match(self, focal: IntervalSet, pool: IntervalSet, covariate: str) -> MatchResult:
        cfg = self.config
        focal_vals = focal.covariate_values(covariate)
        pool_vals = pool.covariate_values(covariate)
        if len(pool) == 0:
            raise EmptyPool()

        rng = np.random.default_rng(cfg.seed)
        raw_pairs: List[Tuple[int, int]]
        unmatched: List[int]
        if len(focal) == 0:
            raw_pairs, unmatched = [], []
        elif cfg.method == "nearest":
            raw_pairs, unmatched = nearest_match(focal_vals, pool_vals)
        elif cfg.method == "rejection":
            raw_pairs, unmatched = rejection_match(
                focal_vals,
                pool_vals,
                rng,
                with_replacement=cfg.with_replacement,
                max_attempts=int(cfg.max_attempts),
                density=cfg.density,
                density_bins=int(cfg.density_bins),
            )
        else:
            raw_pairs, unmatched = stratified_match(
                focal_vals,
                pool_vals,
                rng,
                with_replacement=cfg.with_replacement,
                n_bins=cfg.n_bins,
                bin_width=cfg.bin_width,
            )

        pairs = tuple(
            MatchPair(
                focal_index=fi,
                pool_index=pi,
                focal=focal[fi],
                pool=pool[pi],
                focal_value=float(focal_vals[fi]),
                pool_value=float(pool_vals[pi]),
            )
            for fi, pi in raw_pairs
        )
        result = MatchResult(
            pairs=pairs,
            unmatched=tuple(unmatched),
            focal=focal,
            pool=pool,
            covariate=covariate,
            method=cfg.method,
            with_replacement=cfg.with_replacement,
            seed=cfg.seed,
        )
        logger.info(
            "Matched %d of %d focal intervals on '%s' (method=%s, replace=%s)",
            result.n_matched,
            len(focal),
            covariate,
            cfg.method,
            cfg.with_replacement,
        )
        if result.n_unmatched:
            logger.warning(
                "%d focal intervals left unmatched; check match quality before use",
                result.n_unmatched,
            )
        return result


def match(
    focal: IntervalSet,
    pool: IntervalSet,
    covariate: str,
    method: str = "stratified",
    with_replacement: bool = False,
    rng_seed: int = 1,
    **options: Any,
) -> MatchResult:
    """
    Match focal to pool on one covariate.

    options are the remaining MatchConfig fields (max_attempts, density,
    density_bins, n_bins, bin_width).
    """
    config = MatchConfig.from_mapping(options)
    config = replace(config, method=method, with_replacement=with_replacement, seed=rng_seed)
    return CovariateMatcher(config).match(focal, pool, covariate)
