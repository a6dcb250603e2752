#!/usr/bin/env python3
"""trendlab — Batch report builder.

Rebuilds the shooting report and one COVID report per requested region.
Meant to be run from cron after NYC Open Data publishes its yearly update.

Usage:
    python scripts/build_reports.py
    python scripts/build_reports.py --region "New York" --region California
    python scripts/build_reports.py --scope global --region Italy --no-refresh

Scheduling:
    crontab -e
    0 6 1 * * /path/to/trendlab/.venv/bin/python /path/to/trendlab/scripts/build_reports.py >> /path/to/trendlab/logs/cron.log 2>&1
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# pydantic-settings reads the environment at import
load_dotenv(PROJECT_ROOT / ".env")

from trendlab.pipeline.orchestrator import Orchestrator  # noqa: E402


def setup_logging(log_dir: Path, run_date: date) -> None:
    """Configure logging to both console and a dated log file."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"reports_{run_date.isoformat()}.log"

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


async def build_all(
    orchestrator: Orchestrator,
    refresh: bool,
    scope: str,
    regions: list[str | None],
) -> int:
    """Build every report, returning the number of failures."""
    logger = logging.getLogger(__name__)
    failures = 0

    try:
        await orchestrator.run_shootings(refresh=refresh)
    except Exception as e:
        logger.error("Shooting report failed: %s", e, exc_info=True)
        failures += 1

    for region in regions:
        try:
            await orchestrator.run_covid(scope=scope, region=region)
        except Exception as e:
            logger.error("COVID report for %s failed: %s", region or scope, e, exc_info=True)
            failures += 1

    return failures


def main() -> int:
    """Main entry point for the batch builder."""
    parser = argparse.ArgumentParser(
        description="trendlab — rebuild all reports",
    )
    parser.add_argument(
        "--scope",
        type=str,
        choices=["us", "global"],
        default="us",
        help="JHU CSSE file set (default: us)",
    )
    parser.add_argument(
        "--region",
        action="append",
        default=None,
        help="Region to report on; repeatable (default: scope total)",
    )
    parser.add_argument(
        "--no-refresh",
        action="store_true",
        help="Reuse the cached shooting CSV",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=str(PROJECT_ROOT / "data"),
        help="Download cache directory (default: data/)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(PROJECT_ROOT / "reports"),
        help="Report directory (default: reports/)",
    )
    args = parser.parse_args()

    setup_logging(PROJECT_ROOT / "logs", date.today())
    logger = logging.getLogger(__name__)

    regions = args.region or [None]
    logger.info("Starting report build")
    logger.info("  Scope: %s", args.scope)
    logger.info("  Regions: %s", ", ".join(r or "total" for r in regions))
    logger.info("  Data dir: %s", args.data_dir)

    orchestrator = Orchestrator(data_dir=args.data_dir, output_dir=args.output_dir)

    try:
        loop = asyncio.new_event_loop()
        try:
            failures = loop.run_until_complete(
                build_all(orchestrator, not args.no_refresh, args.scope, regions)
            )
        finally:
            loop.close()

        for slug, paths in orchestrator.outputs.items():
            logger.info("  %-32s %s", slug, paths["html"])
        logger.info("Done: %d report(s) written, %d failed", len(orchestrator.outputs), failures)
        return 1 if failures else 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
