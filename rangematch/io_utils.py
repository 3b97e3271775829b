"""
io_utils.py

Interval table loading and output helpers for the command-line driver.

Tables are tab-separated. A header line naming chrom, start and end (a
leading "#" is allowed) selects columns by name and any further numeric
columns become covariates; otherwise the file is read as headerless BED3 to
BED6 (chrom, start, end, name, score, strand).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from rangematch.contigs import ReferenceContigs
from rangematch.errors import InvalidInterval
from rangematch.intervals import IntervalSet

BED_COLUMNS = ["chrom", "start", "end", "name", "score", "strand"]


def _first_line(path: Path) -> Optional[str]:
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                return line.rstrip("\n")
    return None


def _clean_column(name: Any) -> str:
    col = str(name).lstrip("#").strip()
    return col.lower() if col.lower() in ("chrom", "start", "end", "name", "strand") else col


def _has_header(line: str) -> bool:
    fields = [_clean_column(f) for f in line.split("\t")]
    return {"chrom", "start", "end"}.issubset(fields)


def read_interval_table(path: str | Path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Interval table not found: {path}")

    first = _first_line(path)
    if first is None:
        return pd.DataFrame(columns=BED_COLUMNS[:3])

    if _has_header(first):
        df = pd.read_csv(path, sep="\t")
        df.columns = [_clean_column(c) for c in df.columns]
    else:
        df = pd.read_csv(path, sep="\t", header=None, comment="#")
        n_cols = df.shape[1]
        if n_cols < 3:
            raise InvalidInterval(f"Expected at least 3 columns, got {n_cols} in {path}")
        names = BED_COLUMNS[: min(n_cols, len(BED_COLUMNS))]
        df = df.iloc[:, : len(names)]
        df.columns = names
        # BED score is not a covariate
        if "score" in df.columns:
            df = df.drop(columns=["score"])
    df["chrom"] = df["chrom"].astype(str)
    return df


def load_interval_set(
    path: str | Path,
    contigs: Sequence[str] | ReferenceContigs,
    *,
    covariates: Optional[Sequence[str]] = None,
    strict: bool = True,
    canonicalise: bool = False,
) -> IntervalSet:
    df = read_interval_table(path)
    return IntervalSet.from_dataframe(
        df,
        contigs,
        covariates=covariates,
        strict=strict,
        canonicalise=canonicalise,
    )


def save_json(obj: Dict[str, Any], path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2), encoding="utf-8")


def save_df(df: pd.DataFrame, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df.to_csv(path, index=False)
    elif suffix in (".tsv", ".bed", ".txt"):
        df.to_csv(path, sep="\t", index=False)
    else:
        # default parquet
        df.to_parquet(path, index=False)
