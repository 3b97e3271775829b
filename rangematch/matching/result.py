"""Match result records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import pandas as pd

from rangematch.intervals import Interval, IntervalSet


@dataclass(frozen=True)
class MatchPair:
    focal_index: int
    pool_index: int
    focal: Interval
    pool: Interval
    focal_value: float
    pool_value: float

    @property
    def distance(self) -> float:
        return abs(self.focal_value - self.pool_value)


@dataclass(frozen=True)
class MatchResult:
    """
    Pairs of (focal, matched pool) intervals in focal order.

    Focal intervals that found no match are listed in `unmatched` (indices
    into the focal set) rather than raising.
    """

    pairs: Tuple[MatchPair, ...]
    unmatched: Tuple[int, ...]
    focal: IntervalSet
    pool: IntervalSet
    covariate: str
    method: str
    with_replacement: bool
    seed: int

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self):
        return iter(self.pairs)

    @property
    def n_matched(self) -> int:
        return len(self.pairs)

    @property
    def n_unmatched(self) -> int:
        return len(self.unmatched)

    @property
    def unmatched_ids(self) -> List[str]:
        return [self.focal[i].name for i in self.unmatched]

    @property
    def pool_indices(self) -> Tuple[int, ...]:
        return tuple(p.pool_index for p in self.pairs)

    @property
    def focal_indices(self) -> Tuple[int, ...]:
        return tuple(p.focal_index for p in self.pairs)

    def matched_pool(self) -> IntervalSet:
        """Matched pool intervals in pair order; repeats allowed with replacement."""
        return self.pool.subset(self.pool_indices)

    def matched_focal(self) -> IntervalSet:
        return self.focal.subset(self.focal_indices)

    def unmatched_focal(self) -> IntervalSet:
        return self.focal.subset(self.unmatched)

    def to_dataframe(self) -> pd.DataFrame:
        rows = []
        for p in self.pairs:
            rows.append(
                {
                    "focal_index": p.focal_index,
                    "focal_name": p.focal.name,
                    "focal_chrom": p.focal.chrom,
                    "focal_start": p.focal.start,
                    "focal_end": p.focal.end,
                    f"focal_{self.covariate}": p.focal_value,
                    "pool_index": p.pool_index,
                    "pool_name": p.pool.name,
                    "pool_chrom": p.pool.chrom,
                    "pool_start": p.pool.start,
                    "pool_end": p.pool.end,
                    f"pool_{self.covariate}": p.pool_value,
                    "distance": p.distance,
                }
            )
        columns = [
            "focal_index", "focal_name", "focal_chrom", "focal_start", "focal_end",
            f"focal_{self.covariate}",
            "pool_index", "pool_name", "pool_chrom", "pool_start", "pool_end",
            f"pool_{self.covariate}",
            "distance",
        ]
        return pd.DataFrame(rows, columns=columns)

    def summary(self) -> Dict[str, Any]:
        n_unique = len(set(self.pool_indices))
        return {
            "covariate": self.covariate,
            "method": self.method,
            "with_replacement": self.with_replacement,
            "seed": self.seed,
            "n_focal": len(self.focal),
            "n_pool": len(self.pool),
            "n_matched": self.n_matched,
            "n_unmatched": self.n_unmatched,
            "n_unique_pool": n_unique,
            "unmatched_ids": self.unmatched_ids,
        }
