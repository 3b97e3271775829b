from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator

from rangematch.intervals import IntervalSet
from rangematch.matching.result import MatchResult


def setup_rich_logging(
    *,
    level: int = logging.INFO,
    logger_name: str = "rangematch",
    force: bool = True,
) -> logging.Logger:
    """
    Configure logging for compact console output without colors.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="[%X]",
        force=force,
    )

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    return logger


def _fmt_int(n: int) -> str:
    return f"{n:,}"


def _fmt_s(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    m = int(seconds // 60)
    s = seconds - 60 * m
    return f"{m}m{s:04.1f}s"


def log_section(logger: logging.Logger, title: str) -> None:
    logger.info("%s", title)


def log_kv(logger: logging.Logger, key: str, value: str) -> None:
    logger.info("  %-20s %s", f"{key}:", value)


@contextmanager
def timed(logger: logging.Logger, label: str) -> Iterator[None]:
    t0 = time.perf_counter()
    logger.info("START %s ...", label)
    try:
        yield
    finally:
        dt = time.perf_counter() - t0
        logger.info("DONE %s (%s)", label, _fmt_s(dt))


def summarise_filter(
    logger: logging.Logger,
    *,
    query: IntervalSet,
    exclude: IntervalSet,
    result: IntervalSet,
    out_paths: Dict[str, str],
) -> None:
    log_section(logger, "Filter summary")
    log_kv(logger, "query", _fmt_int(len(query)))
    log_kv(logger, "exclude", _fmt_int(len(exclude)))
    log_kv(logger, "kept", _fmt_int(len(result)))
    log_kv(logger, "removed", _fmt_int(len(query) - len(result)))
    _log_outputs(logger, out_paths)


def summarise_match(
    logger: logging.Logger,
    *,
    result: MatchResult,
    out_paths: Dict[str, str],
) -> None:
    log_section(logger, "Match summary")
    log_kv(logger, "covariate", result.covariate)
    log_kv(logger, "method", result.method)
    log_kv(logger, "with_replacement", str(result.with_replacement))
    log_kv(logger, "seed", str(result.seed))
    log_kv(logger, "focal", _fmt_int(len(result.focal)))
    log_kv(logger, "pool", _fmt_int(len(result.pool)))
    log_kv(logger, "matched", _fmt_int(result.n_matched))
    log_kv(logger, "unmatched", _fmt_int(result.n_unmatched))
    if result.n_unmatched:
        shown = result.unmatched_ids[:10]
        more = f" (+{result.n_unmatched - len(shown)} more)" if result.n_unmatched > len(shown) else ""
        log_kv(logger, "unmatched_ids", ", ".join(shown) + more)
    _log_outputs(logger, out_paths)


def _log_outputs(logger: logging.Logger, out_paths: Dict[str, str]) -> None:
    log_section(logger, "Outputs")
    for key, value in out_paths.items():
        logger.info("  %-10s %s", key, Path(value).name)
