"""
overlap.py

Filter a query interval set by overlap with an exclusion set, e.g. removing
peaks that fall in blacklisted regions.

The exclusion set is reduced once per call to sorted, non-overlapping spans
per chromosome (and strand, when strand-aware). A query interval [s, e)
overlaps the union iff the first merged span ending after s starts before e,
which is a single searchsorted per chromosome.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import numpy as np

from rangematch.intervals import IntervalSet

logger = logging.getLogger(__name__)

_SpanKey = Tuple[str, str]


def _merged_spans(exclude: IntervalSet, strand_aware: bool) -> Dict[_SpanKey, Tuple[np.ndarray, np.ndarray]]:
    spans: Dict[_SpanKey, Tuple[np.ndarray, np.ndarray]] = {}
    merged = exclude.merged(strand_aware=strand_aware)
    grouped: Dict[_SpanKey, List[Tuple[int, int]]] = {}
    for iv in merged:
        grouped.setdefault((iv.chrom, iv.strand), []).append((iv.start, iv.end))
    for key, pairs in grouped.items():
        arr = np.asarray(pairs, dtype=np.int64)
        spans[key] = (arr[:, 0], arr[:, 1])
    return spans


def overlap_mask(query: IntervalSet, exclude: IntervalSet, strand_aware: bool = False) -> np.ndarray:
    """Boolean array, True where the query interval overlaps any exclude interval."""
    mask = np.zeros(len(query), dtype=bool)
    if len(query) == 0 or len(exclude) == 0:
        return mask

    spans = _merged_spans(exclude, strand_aware)
    by_key: Dict[_SpanKey, List[int]] = {}
    for i, iv in enumerate(query):
        by_key.setdefault((iv.chrom, iv.strand if strand_aware else "."), []).append(i)

    for key, idxs in by_key.items():
        if key not in spans:
            continue
        m_starts, m_ends = spans[key]
        idx = np.asarray(idxs, dtype=np.int64)
        q_starts = np.fromiter((query[i].start for i in idxs), dtype=np.int64, count=len(idxs))
        q_ends = np.fromiter((query[i].end for i in idxs), dtype=np.int64, count=len(idxs))

        pos = np.searchsorted(m_ends, q_starts, side="right")
        in_range = pos < len(m_starts)
        hit = np.zeros(len(idxs), dtype=bool)
        hit[in_range] = m_starts[pos[in_range]] < q_ends[in_range]
        # zero-length queries overlap nothing
        hit &= q_starts < q_ends
        mask[idx] = hit
    return mask


class OverlapFilter:
    """
    Keep query intervals that overlap (invert=False) or avoid (invert=True)
    an exclusion set. Strand is ignored unless strand_aware is set, in which
    case intervals must carry the same strand value to overlap.
    """

    def __init__(self, strand_aware: bool = False) -> None:
        self.strand_aware = bool(strand_aware)

    def filter(self, query: IntervalSet, exclude: IntervalSet, invert: bool = False) -> IntervalSet:
        mask = overlap_mask(query, exclude, strand_aware=self.strand_aware)
        keep = ~mask if invert else mask
        result = query.subset(np.flatnonzero(keep))
        logger.info(
            "Overlap filter (%s): kept %d of %d intervals against %d exclusion intervals",
            "non-overlapping" if invert else "overlapping",
            len(result),
            len(query),
            len(exclude),
        )
        return result


def filter_overlaps(
    query: IntervalSet,
    exclude: IntervalSet,
    invert: bool = False,
    strand_aware: bool = False,
) -> IntervalSet:
    return OverlapFilter(strand_aware=strand_aware).filter(query, exclude, invert=invert)


def blacklist_filter(peaks: IntervalSet, blacklist: IntervalSet, strand_aware: bool = False) -> IntervalSet:
    """Remove peaks overlapping any blacklisted region."""
    return filter_overlaps(peaks, blacklist, invert=True, strand_aware=strand_aware)
