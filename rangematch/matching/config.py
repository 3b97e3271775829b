"""Matching configuration."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np

from rangematch.errors import UnsupportedConfiguration

METHODS = ("rejection", "nearest", "stratified")
DENSITIES = ("histogram", "kde")


@dataclass(frozen=True)
class MatchConfig:
    method: str = "stratified"
    with_replacement: bool = False
    seed: int = 1
    # rejection
    max_attempts: int = 100
    density: str = "histogram"
    density_bins: int = 20
    # stratified; bin_width overrides the default n_bins
    n_bins: Optional[int] = None
    bin_width: Optional[float] = None

    def validate(self) -> "MatchConfig":
        if isinstance(self.seed, bool) or not isinstance(self.seed, (int, np.integer)):
            raise UnsupportedConfiguration(f"seed must be an integer, got {self.seed!r}")
        if not isinstance(self.with_replacement, (bool, np.bool_)):
            raise UnsupportedConfiguration(f"with_replacement must be true or false, got {self.with_replacement!r}")
        if self.method not in METHODS:
            raise UnsupportedConfiguration(
                f"Unknown matching method '{self.method}'. Choose from: {', '.join(METHODS)}"
            )
        if self.method == "nearest" and not self.with_replacement:
            raise UnsupportedConfiguration(
                "Nearest matching only supports sampling with replacement (with_replacement=True)."
            )
        if self.density not in DENSITIES:
            raise UnsupportedConfiguration(
                f"Unknown density estimator '{self.density}'. Choose from: {', '.join(DENSITIES)}"
            )
        if int(self.max_attempts) < 1:
            raise UnsupportedConfiguration("max_attempts must be >= 1")
        if int(self.density_bins) < 1:
            raise UnsupportedConfiguration("density_bins must be >= 1")
        if self.n_bins is not None and self.bin_width is not None:
            raise UnsupportedConfiguration("Set either n_bins or bin_width for stratified matching, not both.")
        if self.n_bins is not None and int(self.n_bins) < 1:
            raise UnsupportedConfiguration("n_bins must be >= 1")
        if self.bin_width is not None and not float(self.bin_width) > 0:
            raise UnsupportedConfiguration("bin_width must be > 0")
        return self

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MatchConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise UnsupportedConfiguration(f"Unknown match config keys: {', '.join(unknown)}")
        return cls(**dict(data))

    @classmethod
    def from_json(cls, path: str | Path) -> "MatchConfig":
        path = Path(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise UnsupportedConfiguration(f"Match config JSON must be an object: {path}")
        return cls.from_mapping(data)
