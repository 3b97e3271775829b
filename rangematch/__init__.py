"""Genomic interval filtering and covariate-matched control selection."""

from rangematch.contigs import ReferenceContigs, canonical_autosomes_list, canonical_primary_list
from rangematch.errors import (
    EmptyPool,
    InvalidInterval,
    MissingCovariate,
    RangeMatchError,
    UnsupportedConfiguration,
)
from rangematch.intervals import Interval, IntervalSet
from rangematch.matching import CovariateMatcher, MatchConfig, MatchPair, MatchResult, match
from rangematch.overlap import OverlapFilter, blacklist_filter, filter_overlaps

__all__ = [
    "CovariateMatcher",
    "EmptyPool",
    "Interval",
    "IntervalSet",
    "InvalidInterval",
    "MatchConfig",
    "MatchPair",
    "MatchResult",
    "MissingCovariate",
    "OverlapFilter",
    "RangeMatchError",
    "ReferenceContigs",
    "UnsupportedConfiguration",
    "blacklist_filter",
    "canonical_autosomes_list",
    "canonical_primary_list",
    "filter_overlaps",
    "match",
]
