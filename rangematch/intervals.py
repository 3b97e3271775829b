"""
intervals.py

Genomic intervals with per-interval covariates, and immutable interval sets
built against an ordered reference contig list.

Coordinates are 0-based and half-open, [start, end), as in BED. Two intervals
overlap iff they share a chromosome and start_a < end_b and start_b < end_a,
so intervals that only touch at an endpoint do not overlap and zero-length
intervals overlap nothing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from rangematch.contigs import ReferenceContigs
from rangematch.errors import InvalidInterval, MissingCovariate

logger = logging.getLogger(__name__)

STRANDS = ("+", "-", ".")
BASE_COLUMNS = ["chrom", "start", "end", "name", "strand"]


def _normalise_strand(value: Any) -> str:
    if value is None:
        return "."
    s = str(value).strip()
    if s in ("", ".", "*"):
        return "."
    if s in ("+", "-"):
        return s
    raise InvalidInterval(f"Unsupported strand '{value}'; expected '+', '-' or '.'.")


def _coordinate(value: Any) -> int:
    out = int(value)
    if isinstance(value, (float, np.floating)) and float(value) != out:
        raise ValueError(f"non-integral coordinate {value!r}")
    return out


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


@dataclass(frozen=True)
class Interval:
    chrom: str
    start: int
    end: int
    name: str = ""
    strand: str = "."
    covariates: Mapping[str, float] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        chrom = "" if self.chrom is None else str(self.chrom).strip()
        if not chrom:
            raise InvalidInterval("Interval chromosome cannot be empty.")
        try:
            start = _coordinate(self.start)
            end = _coordinate(self.end)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidInterval(
                f"Interval coordinates must be integers, got start={self.start!r} end={self.end!r}."
            ) from e
        if start < 0 or end < 0:
            raise InvalidInterval(f"Interval coordinates must be non-negative: {chrom}:{start}-{end}.")
        if start > end:
            raise InvalidInterval(f"Interval start > end: {chrom}:{start}-{end}.")

        covs: Dict[str, float] = {}
        for key, value in dict(self.covariates or {}).items():
            try:
                covs[str(key)] = float(value)
            except (TypeError, ValueError) as e:
                raise InvalidInterval(
                    f"Covariate '{key}' must be numeric, got {value!r} on {chrom}:{start}-{end}."
                ) from e

        name = str(self.name).strip() if self.name is not None else ""
        object.__setattr__(self, "chrom", chrom)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "name", name or f"{chrom}:{start}-{end}")
        object.__setattr__(self, "strand", _normalise_strand(self.strand))
        object.__setattr__(self, "covariates", MappingProxyType(covs))

    @property
    def length(self) -> int:
        return self.end - self.start

    def covariate(self, name: str) -> float:
        value = self.covariates.get(name)
        if value is None or not math.isfinite(value):
            raise MissingCovariate(name, self.name)
        return value

    def overlaps(self, other: "Interval", strand_aware: bool = False) -> bool:
        if self.chrom != other.chrom:
            return False
        if strand_aware and self.strand != other.strand:
            return False
        if self.start == self.end or other.start == other.end:
            return False
        return self.start < other.end and other.start < self.end

    def with_covariates(self, **values: float) -> "Interval":
        covs = dict(self.covariates)
        covs.update(values)
        return Interval(self.chrom, self.start, self.end, self.name, self.strand, covs)

    def __repr__(self) -> str:
        return f"Interval({self.chrom!r}, {self.start}, {self.end}, name={self.name!r}, strand={self.strand!r})"


def interval_from_record(record: Union[Interval, Mapping[str, Any]]) -> Interval:
    """Build an Interval from a mapping with chrom/start/end and optional fields."""
    if isinstance(record, Interval):
        return record
    if not isinstance(record, Mapping):
        raise InvalidInterval(f"Unsupported interval record type: {type(record).__name__}", record)
    missing = [k for k in ("chrom", "start", "end") if _is_missing(record.get(k))]
    if missing:
        raise InvalidInterval(f"Interval record missing required fields: {', '.join(missing)}", record)
    try:
        return Interval(
            chrom=record["chrom"],
            start=record["start"],
            end=record["end"],
            name=record.get("name") or "",
            strand=record.get("strand"),
            covariates=record.get("covariates") or {},
        )
    except InvalidInterval as e:
        e.record = record
        raise


@dataclass(frozen=True)
class _ChromIndex:
    order: np.ndarray
    starts: np.ndarray
    ends: np.ndarray
    max_len: int


def _build_index(intervals: Sequence[Interval]) -> Dict[str, _ChromIndex]:
    by_chrom: Dict[str, List[int]] = {}
    for i, iv in enumerate(intervals):
        by_chrom.setdefault(iv.chrom, []).append(i)

    index: Dict[str, _ChromIndex] = {}
    for chrom, idxs in by_chrom.items():
        idx = np.asarray(idxs, dtype=np.int64)
        starts = np.fromiter((intervals[i].start for i in idxs), dtype=np.int64, count=len(idxs))
        ends = np.fromiter((intervals[i].end for i in idxs), dtype=np.int64, count=len(idxs))
        order = np.argsort(starts, kind="stable")
        lengths = ends - starts
        index[chrom] = _ChromIndex(
            order=idx[order],
            starts=starts[order],
            ends=ends[order],
            max_len=int(lengths.max()) if len(lengths) else 0,
        )
    return index


class IntervalSet:
    """
    Immutable ordered collection of intervals on a shared reference.

    Records on contigs outside the reference list are dropped. Invalid records
    raise InvalidInterval when strict, or are dropped with a warning otherwise.
    """

    def __init__(
        self,
        records: Iterable[Union[Interval, Mapping[str, Any]]],
        contigs: Union[Sequence[str], ReferenceContigs],
        *,
        strict: bool = True,
        canonicalise: bool = False,
    ) -> None:
        self._reference = contigs if isinstance(contigs, ReferenceContigs) else ReferenceContigs(contigs)

        kept: List[Interval] = []
        n_contig = 0
        n_invalid = 0
        for record in records:
            try:
                iv = interval_from_record(record)
            except InvalidInterval:
                if strict:
                    raise
                n_invalid += 1
                continue
            chrom = self._reference.resolve(iv.chrom, allow_aliases=canonicalise)
            if chrom is None:
                n_contig += 1
                continue
            if chrom != iv.chrom:
                iv = Interval(chrom, iv.start, iv.end, iv.name, iv.strand, iv.covariates)
            kept.append(iv)

        if n_contig:
            logger.debug("Dropped %d intervals on contigs outside the reference list", n_contig)
        if n_invalid:
            logger.warning("Dropped %d invalid interval records", n_invalid)

        self._intervals: Tuple[Interval, ...] = tuple(kept)
        self.n_dropped_contig = n_contig
        self.n_dropped_invalid = n_invalid
        self._index: Dict[str, _ChromIndex] = _build_index(self._intervals)

    @classmethod
    def _from_trusted(cls, intervals: Iterable[Interval], reference: ReferenceContigs) -> "IntervalSet":
        out = cls.__new__(cls)
        out._reference = reference
        out._intervals = tuple(intervals)
        out.n_dropped_contig = 0
        out.n_dropped_invalid = 0
        out._index = _build_index(out._intervals)
        return out

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        contigs: Union[Sequence[str], ReferenceContigs],
        *,
        covariates: Optional[Sequence[str]] = None,
        strict: bool = True,
        canonicalise: bool = False,
    ) -> "IntervalSet":
        """
        Build a set from a table with columns chrom, start, end and optional
        name, strand. Covariates are the listed columns, or every remaining
        numeric column when not given.
        """
        required = ["chrom", "start", "end"]
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise InvalidInterval(f"Interval table missing columns: {', '.join(missing)}")

        if covariates is None:
            cov_cols = [
                c for c in df.columns
                if c not in BASE_COLUMNS and pd.api.types.is_numeric_dtype(df[c])
            ]
        else:
            cov_cols = list(covariates)
            absent = [c for c in cov_cols if c not in df.columns]
            if absent:
                raise MissingCovariate(absent[0])

        has_name = "name" in df.columns
        has_strand = "strand" in df.columns
        records: List[Dict[str, Any]] = []
        for rec in df.to_dict(orient="records"):
            covs = {c: rec[c] for c in cov_cols if not _is_missing(rec[c])}
            records.append(
                {
                    "chrom": rec["chrom"],
                    "start": rec["start"],
                    "end": rec["end"],
                    "name": rec["name"] if has_name and not _is_missing(rec["name"]) else "",
                    "strand": rec["strand"] if has_strand and not _is_missing(rec["strand"]) else None,
                    "covariates": covs,
                }
            )
        return cls(records, contigs, strict=strict, canonicalise=canonicalise)

    def to_dataframe(self) -> pd.DataFrame:
        cov_names = self.covariate_names()
        rows = []
        for iv in self._intervals:
            row: Dict[str, Any] = {
                "chrom": iv.chrom,
                "start": iv.start,
                "end": iv.end,
                "name": iv.name,
                "strand": iv.strand,
            }
            for c in cov_names:
                row[c] = iv.covariates.get(c, np.nan)
            rows.append(row)
        return pd.DataFrame(rows, columns=BASE_COLUMNS + cov_names)

    @property
    def reference(self) -> ReferenceContigs:
        return self._reference

    @property
    def contigs(self) -> Tuple[str, ...]:
        return self._reference.names

    @property
    def intervals(self) -> Tuple[Interval, ...]:
        return self._intervals

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._intervals)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return IntervalSet._from_trusted(self._intervals[item], self._reference)
        return self._intervals[item]

    def __bool__(self) -> bool:
        return bool(self._intervals)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return self._intervals == other._intervals and self.contigs == other.contigs

    def __repr__(self) -> str:
        return f"IntervalSet(n={len(self)}, contigs={len(self.contigs)})"

    def chroms(self) -> List[str]:
        present = {iv.chrom for iv in self._intervals}
        return [c for c in self.contigs if c in present]

    def covariate_names(self) -> List[str]:
        names: Dict[str, None] = {}
        for iv in self._intervals:
            for key in iv.covariates:
                names.setdefault(key, None)
        return list(names)

    def covariate(self, i: int, name: str) -> float:
        return self._intervals[i].covariate(name)

    def covariate_values(self, name: str) -> np.ndarray:
        out = np.empty(len(self._intervals), dtype=float)
        for i, iv in enumerate(self._intervals):
            out[i] = iv.covariate(name)
        return out

    def subset(self, indices: Iterable[int]) -> "IntervalSet":
        return IntervalSet._from_trusted((self._intervals[int(i)] for i in indices), self._reference)

    def overlapping(self, chrom: str, start: int, end: int, strand: Optional[str] = None) -> List[int]:
        """
        Indices of intervals overlapping [start, end) on chrom, in set order.

        When strand is given, only intervals on that exact strand are returned.
        """
        entry = self._index.get(chrom)
        if entry is None or start >= end:
            return []
        lo = int(np.searchsorted(entry.starts, start - entry.max_len, side="left"))
        hi = int(np.searchsorted(entry.starts, end, side="left"))
        hits: List[int] = []
        for j in range(lo, hi):
            if entry.ends[j] > start and entry.starts[j] < entry.ends[j]:
                idx = int(entry.order[j])
                if strand is not None and self._intervals[idx].strand != strand:
                    continue
                hits.append(idx)
        hits.sort()
        return hits

    def sorted(self) -> "IntervalSet":
        ranked = sorted(
            self._intervals,
            key=lambda iv: (self._reference.rank(iv.chrom), iv.start, iv.end),
        )
        return IntervalSet._from_trusted(ranked, self._reference)

    def merged(self, strand_aware: bool = False) -> "IntervalSet":
        """
        Union of the set: overlapping or book-ended intervals are fused.

        Merged intervals carry no covariates. Per strand when strand_aware,
        otherwise strand is reported as unknown.
        """
        groups: Dict[Tuple[str, str], List[Tuple[int, int]]] = {}
        for iv in self._intervals:
            if iv.start == iv.end:
                continue
            key = (iv.chrom, iv.strand if strand_aware else ".")
            groups.setdefault(key, []).append((iv.start, iv.end))

        out: List[Interval] = []
        for (chrom, strand), spans in groups.items():
            spans.sort()
            cur_s, cur_e = spans[0]
            for s, e in spans[1:]:
                if s <= cur_e:
                    cur_e = max(cur_e, e)
                    continue
                out.append(Interval(chrom, cur_s, cur_e, strand=strand))
                cur_s, cur_e = s, e
            out.append(Interval(chrom, cur_s, cur_e, strand=strand))

        out.sort(key=lambda iv: (self._reference.rank(iv.chrom), iv.start, iv.strand))
        return IntervalSet._from_trusted(out, self._reference)

    def with_length_covariate(self, name: str = "length") -> "IntervalSet":
        return IntervalSet._from_trusted(
            (iv.with_covariates(**{name: float(iv.length)}) for iv in self._intervals),
            self._reference,
        )
