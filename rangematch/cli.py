"""CLI entrypoint: blacklist filtering and covariate matching of interval tables."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from rangematch.contigs import ReferenceContigs, canonical_primary_list, load_contig_list
from rangematch.errors import RangeMatchError
from rangematch.io_utils import load_interval_set, save_df, save_json
from rangematch.logging_utils import (
    log_kv,
    log_section,
    setup_rich_logging,
    summarise_filter,
    summarise_match,
    timed,
)
from rangematch.matching import CovariateMatcher, MatchConfig
from rangematch.matching.config import DENSITIES, METHODS
from rangematch.overlap import OverlapFilter
from rangematch.summary import match_overview


def _reference(args: argparse.Namespace) -> ReferenceContigs:
    names = load_contig_list(args.contigs) if args.contigs else canonical_primary_list()
    return ReferenceContigs(names)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--contigs",
        type=str,
        default=None,
        help="Comma list of contigs or a .fai/chrom.sizes file (default: chr1..chr22,chrX,chrY)",
    )
    parser.add_argument(
        "--canonicalise",
        action="store_true",
        help="Resolve contig aliases such as '1' -> 'chr1' against the contig list",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Drop invalid records with a warning instead of failing",
    )
    parser.add_argument("--verbose", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rangematch",
        description="Filter genomic intervals against exclusion sets and build covariate-matched controls.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_filter = sub.add_parser("filter", help="Remove (or keep) intervals overlapping an exclusion set")
    p_filter.add_argument("--query", type=str, required=True, help="Query intervals (BED or TSV with header)")
    p_filter.add_argument("--exclude", type=str, required=True, help="Exclusion intervals, e.g. a blacklist BED")
    p_filter.add_argument("--out", type=str, required=True, help="Output table (.tsv, .csv or parquet)")
    p_filter.add_argument(
        "--keep-overlapping",
        action="store_true",
        help="Keep intervals that overlap the exclusion set instead of removing them",
    )
    p_filter.add_argument("--strand-aware", action="store_true", help="Only same-strand intervals overlap")
    _add_common(p_filter)

    p_match = sub.add_parser("match", help="Select pool intervals matching the focal covariate distribution")
    p_match.add_argument("--focal", type=str, required=True, help="Focal intervals table")
    p_match.add_argument("--pool", type=str, required=True, help="Pool intervals table")
    p_match.add_argument("--covariate", type=str, required=True, help="Covariate column to match on")
    p_match.add_argument("--out", type=str, required=True, help="Output pair table (.tsv, .csv or parquet)")
    p_match.add_argument("--config", type=str, default=None, help="JSON file with match settings")
    p_match.add_argument("--method", type=str, default=None, choices=list(METHODS))
    p_match.add_argument(
        "--replace",
        action="store_true",
        default=None,
        help="Sample pool intervals with replacement",
    )
    p_match.add_argument("--seed", type=int, default=None)
    p_match.add_argument("--max-attempts", type=int, default=None, help="Rejection draws per focal interval")
    p_match.add_argument("--density", type=str, default=None, choices=list(DENSITIES))
    p_match.add_argument("--density-bins", type=int, default=None, help="Histogram bins for rejection density")
    bins = p_match.add_mutually_exclusive_group()
    bins.add_argument("--n-bins", type=int, default=None, help="Number of strata for stratified matching")
    bins.add_argument("--bin-width", type=float, default=None, help="Stratum width for stratified matching")
    p_match.add_argument(
        "--add-length",
        action="store_true",
        help="Add interval length as covariate 'length' before matching",
    )
    p_match.add_argument("--summary-json", type=str, default=None, help="Write run summary JSON here")
    p_match.add_argument("--overview", type=str, default=None, help="Write covariate overview table here")
    _add_common(p_match)
    return parser


def _match_config(args: argparse.Namespace) -> MatchConfig:
    config = MatchConfig.from_json(args.config) if args.config else MatchConfig()
    overrides: Dict[str, Any] = {
        "method": args.method,
        "with_replacement": args.replace,
        "seed": args.seed,
        "max_attempts": args.max_attempts,
        "density": args.density,
        "density_bins": args.density_bins,
        "n_bins": args.n_bins,
        "bin_width": args.bin_width,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if "n_bins" in overrides:
        overrides["bin_width"] = None
    if "bin_width" in overrides:
        overrides["n_bins"] = None
    return replace(config, **overrides)


def run_filter(args: argparse.Namespace, logger: logging.Logger) -> int:
    reference = _reference(args)
    log_section(logger, "Inputs")
    log_kv(logger, "query", args.query)
    log_kv(logger, "exclude", args.exclude)
    log_kv(logger, "contigs", str(len(reference)))

    with timed(logger, "Loading intervals"):
        query = load_interval_set(args.query, reference, strict=not args.lenient, canonicalise=args.canonicalise)
        exclude = load_interval_set(
            args.exclude, reference, covariates=[], strict=not args.lenient, canonicalise=args.canonicalise
        )

    with timed(logger, "Overlap filter"):
        result = OverlapFilter(strand_aware=args.strand_aware).filter(
            query, exclude, invert=not args.keep_overlapping
        )

    save_df(result.to_dataframe(), args.out)
    summarise_filter(logger, query=query, exclude=exclude, result=result, out_paths={"filtered": args.out})
    return 0


def run_match(args: argparse.Namespace, logger: logging.Logger) -> int:
    reference = _reference(args)
    config = _match_config(args).validate()
    log_section(logger, "Inputs")
    log_kv(logger, "focal", args.focal)
    log_kv(logger, "pool", args.pool)
    log_kv(logger, "covariate", args.covariate)
    for key, value in config.as_dict().items():
        log_kv(logger, key, str(value))

    covariates: Optional[List[str]] = None if args.add_length else [args.covariate]
    with timed(logger, "Loading intervals"):
        focal = load_interval_set(
            args.focal, reference, covariates=covariates, strict=not args.lenient, canonicalise=args.canonicalise
        )
        pool = load_interval_set(
            args.pool, reference, covariates=covariates, strict=not args.lenient, canonicalise=args.canonicalise
        )
    if args.add_length:
        focal = focal.with_length_covariate()
        pool = pool.with_length_covariate()

    with timed(logger, f"Matching ({config.method})"):
        result = CovariateMatcher(config).match(focal, pool, args.covariate)

    out_paths = {"pairs": args.out}
    save_df(result.to_dataframe(), args.out)
    if args.overview:
        save_df(match_overview(result), args.overview)
        out_paths["overview"] = args.overview
    if args.summary_json:
        summary = result.summary()
        summary["config"] = config.as_dict()
        save_json(summary, args.summary_json)
        out_paths["summary"] = args.summary_json
    summarise_match(logger, result=result, out_paths=out_paths)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_rich_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.command == "filter":
            return run_filter(args, logger)
        return run_match(args, logger)
    except RangeMatchError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
