"""
Command line entry point.

Usage:
    provider-crawler                     # all seeds, upsert into the workbook
    provider-crawler --dry-run           # print records instead of persisting
    provider-crawler --only acme-de      # a single seed, matched by slug
    provider-crawler --seeds my-seeds.txt
"""

import argparse
import asyncio
import sys

import structlog

from provider_crawler.core.config import get_settings
from provider_crawler.core.logging import configure_logging
from provider_crawler.jobs.provider_job import RunOptions, run

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="provider-crawler",
        description="Crawl cybersecurity provider websites into validated profile records",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print each record as JSON instead of writing the workbook",
    )
    parser.add_argument(
        "--only",
        metavar="SLUG",
        default=None,
        help="Process only the seed whose normalized slug matches",
    )
    parser.add_argument(
        "--seeds",
        metavar="PATH",
        default=None,
        help="Seed list file (default: SEEDS_FILE or seeds/providers.txt)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)

    options = RunOptions(dry_run=args.dry_run, only_slug=args.only, seeds_file=args.seeds)
    try:
        asyncio.run(run(options, settings))
    except Exception as e:
        logger.error("Run failed", error=str(e), error_type=type(e).__name__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
