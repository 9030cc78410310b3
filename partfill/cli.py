"""
Command line entry point: enrich one spreadsheet file.

Usage:
    partfill parts.xlsx --url "https://catalog.example.com/api/search?q={part_number}"

    # Explicit output file, four concurrent lookups
    partfill parts.xlsx -o enriched.xlsx --workers 4

The URL falls back to the PARTFILL_URL_TEMPLATE environment variable (a
.env file in the working directory is read too).
"""

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .core.config import EnrichmentConfig
from .core.exceptions import EnrichmentError
from .clients.lookup import LookupClient
from .data.workbook import enrich_file, output_filename
from .pipeline.job import EnrichmentJob
from .utils.logger import setup_logging

EXIT_OK = 0
EXIT_INVALID_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="partfill",
        description="Fill a spreadsheet of part numbers from a catalog service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "input",
        help="Spreadsheet with a PartNumber column (.xlsx, .xlsm, .xltx, .xltm or .csv)",
    )
    parser.add_argument(
        "--url",
        dest="url_template",
        default=None,
        help="Lookup URL containing {part_number} (default: $PARTFILL_URL_TEMPLATE)",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output .xlsx path (default: Processed_<id>.xlsx next to the input)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Concurrent lookups (default: $PARTFILL_MAX_WORKERS or 1)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-lookup timeout in seconds",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the progress bar",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> EnrichmentConfig:
    config = EnrichmentConfig.from_env()
    overrides = {}
    if args.workers is not None:
        overrides["max_workers"] = args.workers
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    if args.no_progress:
        overrides["enable_progress_bar"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    return replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(level=config.log_level, include_timestamp=False, log_dir=config.log_dir)

    url_template = args.url_template or os.getenv("PARTFILL_URL_TEMPLATE", "")
    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: input file not found: {input_path}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    output_path = Path(args.output) if args.output else input_path.parent / output_filename()

    job = EnrichmentJob(client=LookupClient(timeout=config.request_timeout), config=config)
    try:
        content, result = enrich_file(input_path, url_template, job=job)
    except EnrichmentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    output_path.write_bytes(content)

    summary = result.summary
    print(f"Wrote {output_path}")
    print(f"  Rows:            {summary.total_rows}")
    print(f"  Matched:         {summary.rows_matched}/{summary.rows_processed}")
    print(f"  Not found:       {summary.rows_not_found}")
    print(f"  Lookup errors:   {summary.lookup_errors}")
    print(f"  Skipped (blank): {summary.rows_skipped}")
    print(f"  Missing fields:  {summary.missing_fields}")
    return EXIT_OK
