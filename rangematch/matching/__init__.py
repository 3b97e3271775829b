"""Covariate matching of interval sets."""

from rangematch.matching.config import MatchConfig
from rangematch.matching.matcher import CovariateMatcher, match
from rangematch.matching.result import MatchPair, MatchResult

__all__ = ["CovariateMatcher", "MatchConfig", "MatchPair", "MatchResult", "match"]
