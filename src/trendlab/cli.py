"""Command-line interface for trendlab.

Usage:
    trendlab shootings
    trendlab shootings --no-refresh --format json
    trendlab covid --scope us --region "New York" --window 7
    trendlab all --output-dir reports/
"""

import argparse
import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from trendlab import __version__
from trendlab.config import ROLLING_WINDOW_RANGE, settings
from trendlab.pipeline.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1)


def _window_days(value: str) -> int:
    """argparse type for --window, bounded like Settings.rolling_window."""
    window = int(value)
    low, high = ROLLING_WINDOW_RANGE
    if not low <= window <= high:
        raise argparse.ArgumentTypeError(f"window must be {low}-{high} days, got {window}")
    return window


def _loess_frac(value: str) -> float:
    """argparse type for --loess-frac, bounded like Settings.loess_frac."""
    frac = float(value)
    if not 0 < frac <= 1:
        raise argparse.ArgumentTypeError(f"loess fraction must be in (0, 1], got {frac}")
    return frac


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path(settings.data_dir),
        help=f"Directory for downloaded CSVs (default: ./{settings.data_dir})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(settings.output_dir),
        help=f"Directory for HTML/JSON reports (default: ./{settings.output_dir})",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Summary printed to stdout (default: text)",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Skip writing HTML/JSON report files",
    )


def _add_shooting_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-refresh",
        action="store_true",
        help="Reuse the cached shooting CSV instead of downloading it again",
    )


def _add_covid_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--scope",
        type=str,
        choices=["us", "global"],
        default=settings.covid_scope,
        help="JHU CSSE file set (default: us)",
    )
    parser.add_argument(
        "--region",
        type=str,
        default=settings.covid_region,
        help="State (us) or country (global); default: scope total",
    )
    parser.add_argument(
        "--window",
        type=_window_days,
        default=None,
        help=f"Rolling average window in days (default: {settings.rolling_window})",
    )
    parser.add_argument(
        "--loess-frac",
        type=_loess_frac,
        default=None,
        help=f"LOESS span as a fraction of the series (default: {settings.loess_frac})",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="trendlab",
        description="trendlab — seasonal-trend analysis of NYPD shootings and COVID-19 data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  trendlab shootings
  trendlab covid --region "New York"
  trendlab covid --scope global --region Italy --window 14
  trendlab all --no-refresh
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    shootings_parser = subparsers.add_parser(
        "shootings",
        help="NYPD shooting incidents: STL decomposition and regression",
        description="Decompose monthly shooting counts and fit trend/seasonal models",
    )
    _add_common_arguments(shootings_parser)
    _add_shooting_arguments(shootings_parser)

    covid_parser = subparsers.add_parser(
        "covid",
        help="JHU COVID-19 time series: rolling averages and LOESS",
        description="Reshape CSSE archives and smooth daily cases and deaths",
    )
    _add_common_arguments(covid_parser)
    _add_covid_arguments(covid_parser)

    all_parser = subparsers.add_parser(
        "all",
        help="Run both analyses",
    )
    _add_common_arguments(all_parser)
    _add_shooting_arguments(all_parser)
    _add_covid_arguments(all_parser)

    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context.

    Spins up a new event loop in a dedicated thread to avoid conflicts
    with any existing event loop.
    """
    def _target():
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    future = _executor.submit(_target)
    return future.result()


def _make_orchestrator(args: argparse.Namespace) -> Orchestrator:
    orchestrator = Orchestrator(data_dir=str(args.data_dir), output_dir=str(args.output_dir))
    if getattr(args, "window", None) is not None:
        orchestrator.covid.window = args.window
    if getattr(args, "loess_frac", None) is not None:
        orchestrator.covid.loess_frac = args.loess_frac
    return orchestrator


def _print_report(report, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.format_text())


def _print_outputs(orchestrator: Orchestrator) -> None:
    for slug, paths in orchestrator.outputs.items():
        print(f"Report written: {paths['html']}", file=sys.stderr)


def cmd_shootings(args: argparse.Namespace) -> int:
    """Execute the shootings command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        orchestrator = _make_orchestrator(args)
        report = _run_async(
            orchestrator.run_shootings(refresh=not args.no_refresh, render=not args.no_report)
        )
        _print_report(report, args.format)
        _print_outputs(orchestrator)
        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Shooting analysis failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_covid(args: argparse.Namespace) -> int:
    """Execute the covid command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        orchestrator = _make_orchestrator(args)
        report = _run_async(
            orchestrator.run_covid(scope=args.scope, region=args.region, render=not args.no_report)
        )
        _print_report(report, args.format)
        _print_outputs(orchestrator)
        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("COVID analysis failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_all(args: argparse.Namespace) -> int:
    """Execute both analyses. Fails if either one failed."""
    try:
        orchestrator = _make_orchestrator(args)
        reports = _run_async(
            orchestrator.run_all(
                refresh=not args.no_refresh,
                scope=args.scope,
                region=args.region,
                render=not args.no_report,
            )
        )
        for report in reports.values():
            _print_report(report, args.format)
        _print_outputs(orchestrator)
        return 0 if len(reports) == 2 else 1

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as e:
        logger.error("Run failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    print(f"trendlab v{__version__}")
    print("Seasonal-trend analysis of NYPD shootings and JHU COVID-19 data")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    # Route to command handler
    if args.command == "shootings":
        return cmd_shootings(args)
    elif args.command == "covid":
        return cmd_covid(args)
    elif args.command == "all":
        return cmd_all(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        # No command specified
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
