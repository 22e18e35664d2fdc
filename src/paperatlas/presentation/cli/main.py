"""
CLI entry point.

    paperatlas [--windowDays=N] [--maxPerTopic=N] [--dryRun] [--offline]
               [--useOai=true] [--dataDir=PATH]

Exit code 0 on success, 1 on any failure (error printed to stderr).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import date
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from paperatlas import __version__
from paperatlas.application.workflows.harvest_pipeline import HarvestPipeline, PipelineOptions
from paperatlas.utils.settings import load_settings

# Load local .env so PAPERATLAS_* settings can live next to the data dir.
load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def _parse_positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def create_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="paperatlas",
        description="Harvest arXiv metadata, tag topics and rank trending papers",
    )
    parser.add_argument("--version", "-v", action="store_true", help="Show version")
    parser.add_argument(
        "--windowDays",
        dest="window_days",
        type=_parse_positive_int,
        default=30,
        help="Harvest window recorded in provenance (default: 30)",
    )
    parser.add_argument(
        "--maxPerTopic",
        dest="max_per_topic",
        type=_parse_positive_int,
        default=200,
        help="Maximum entries fetched per topic query (default: 200)",
    )
    parser.add_argument(
        "--dryRun",
        dest="dry_run",
        action="store_true",
        help="Compute everything, write nothing",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip network harvest; re-tag and re-rank the existing corpus",
    )
    parser.add_argument(
        "--useOai",
        dest="use_oai",
        type=_parse_bool,
        nargs="?",
        const=True,
        default=False,
        help="Also run the OAI-PMH bulk harvest (--useOai=true)",
    )
    parser.add_argument(
        "--dataDir",
        dest="data_dir",
        default=None,
        help="Data directory (default: settings data_dir, usually data/)",
    )
    parser.add_argument(
        "--referenceDate",
        dest="reference_date",
        type=_parse_date,
        default=None,
        help="Score as of this date instead of today (YYYY-MM-DD)",
    )
    parser.add_argument("--settings", default=None, help="Path to the YAML settings file")
    parser.add_argument("--json", action="store_true", help="Print the run result as JSON")
    return parser


def run_cli(args: Optional[list] = None) -> int:
    """
    Run the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.version:
        print(f"paperatlas v{__version__}")
        return 0

    try:
        logging.basicConfig(
            level=os.environ.get("PAPERATLAS_LOG_LEVEL", "INFO").upper(),
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
        settings = load_settings(parsed.settings)
        options = PipelineOptions(
            window_days=parsed.window_days,
            max_per_topic=parsed.max_per_topic,
            dry_run=parsed.dry_run,
            offline=parsed.offline,
            use_oai=parsed.use_oai,
            reference_date=parsed.reference_date,
        )
        result = asyncio.run(_run_pipeline(parsed.data_dir or settings.data_dir, settings, options))
    except Exception as e:
        logger.debug("Pipeline failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        suffix = " (dry run)" if result.dry_run else ""
        print(f"Pipeline complete{suffix}. Papers: {result.papers_total}")
    return 0


async def _run_pipeline(data_dir: str, settings, options: PipelineOptions):
    async with HarvestPipeline(data_dir, settings=settings) as pipeline:
        return await pipeline.run(options)


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
