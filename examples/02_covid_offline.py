"""Example 2: COVID Smoothing from Local Files

Runs the COVID pipeline against CSSE files that are already on disk, for
example a checkout of the CSSEGISandData/COVID-19 repository. Files found
in the data directory are never downloaded again.

Usage:
    cp COVID-19/csse_covid_19_data/csse_covid_19_time_series/time_series_covid19_*_US.csv data/
    python examples/02_covid_offline.py "New York"
"""

import asyncio
import sys

from trendlab.pipeline.covid import CovidPipeline
from trendlab.report import ReportBuilder


async def run(region: str | None) -> None:
    pipeline = CovidPipeline(data_dir="data", window=7, loess_frac=0.1)
    report = await pipeline.run(scope="us", region=region)

    print(report.format_text())
    print()

    peak_day = report.daily["new_cases_avg"].idxmax()
    print(f"7-day average peak: {report.daily['new_cases_avg'].max():,.0f} on {peak_day:%Y-%m-%d}")
    print(f"LOESS at that date: {report.daily.loc[peak_day, 'new_cases_loess']:,.0f}")

    paths = ReportBuilder(output_dir="reports").render(report)
    print(f"Report: {paths['html']}")


def main():
    region = sys.argv[1] if len(sys.argv) > 1 else None
    asyncio.run(run(region))


if __name__ == "__main__":
    main()
