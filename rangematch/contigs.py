"""
contigs.py

Reference contig lists and contig-name resolution.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence


def canonical_primary_list() -> list[str]:
    return [f"chr{i}" for i in range(1, 23)] + ["chrX", "chrY"]


def canonical_autosomes_list() -> list[str]:
    return [f"chr{i}" for i in range(1, 23)]


def _aliases(contig: str) -> list[str]:
    """
    Alternative spellings of a contig name, most specific first.

    Handles the UCSC/Ensembl "chr" prefix and mitochondrial naming
    (chrM, chrMT, M, MT).
    """
    c = str(contig).strip()
    if not c:
        return []
    core = c[3:] if c.upper().startswith("CHR") else c
    if core.upper() in ("M", "MT"):
        cores = ["M", "MT"]
    else:
        cores = [core]

    out: list[str] = [c]
    for cand_core in cores:
        for cand in (f"chr{cand_core}", cand_core):
            if cand not in out:
                out.append(cand)
    return out


class ReferenceContigs:
    """
    Ordered list of valid contig names shared by a family of interval sets.

    resolve() maps a record's contig to the listed spelling, or None when the
    contig is not part of the reference.
    """

    def __init__(self, names: Iterable[str]) -> None:
        ordered: list[str] = []
        seen: set[str] = set()
        for raw in names:
            name = str(raw).strip()
            if not name:
                raise ValueError("Reference contig names cannot be empty.")
            if name in seen:
                continue
            seen.add(name)
            ordered.append(name)
        self._names = tuple(ordered)
        self._rank = {name: i for i, name in enumerate(self._names)}
        self._alias_map = self._build_alias_map(self._names)

    @staticmethod
    def _build_alias_map(names: Sequence[str]) -> dict[str, str]:
        mapping: dict[str, str] = {}
        for name in names:
            for alias in _aliases(name):
                # exact listed names always win over aliases of other names
                if alias in names and alias != name:
                    continue
                mapping.setdefault(alias, name)
        return mapping

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def __contains__(self, contig: object) -> bool:
        return contig in self._rank

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(self._names)

    def rank(self, contig: str) -> int:
        return self._rank[contig]

    def resolve(self, contig: str, *, allow_aliases: bool = False) -> Optional[str]:
        if contig is None:
            return None
        c = str(contig).strip()
        if c in self._rank:
            return c
        if not allow_aliases:
            return None
        for alias in _aliases(c):
            if alias in self._alias_map:
                return self._alias_map[alias]
        return None


def load_contig_list(source: str | Path) -> list[str]:
    """
    Read a contig list from a comma-separated string or a file.

    Files are read as tab-separated with the contig name in the first column,
    which covers .fai indexes and chrom.sizes files.
    """
    path = Path(source)
    if path.exists():
        names: list[str] = []
        with open(path, "r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip() or line.startswith("#"):
                    continue
                names.append(line.split("\t", 1)[0].strip())
        if not names:
            raise ValueError(f"No contigs found in {path}")
        return names
    names = [c.strip() for c in str(source).split(",") if c.strip()]
    if not names:
        raise ValueError("Contig list is empty.")
    return names
