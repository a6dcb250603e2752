"""COVID pipeline — cached CSSE archives → long table → smoothing → report.

Steps:
1. Fetch (or reuse) the cases/deaths archives of the scope
2. Reshape wide → long, join cases and deaths, snapshot to Parquet
3. Sum to one daily series for the region, derive daily increments
4. Rolling averages and LOESS smoothing
5. Cross-region deaths-vs-cases model, charts and narrative
"""

import asyncio
import logging

import pandas as pd

from trendlab.analysis import (
    REGION_COLUMNS,
    fit_deaths_vs_cases,
    latest_by_region,
    loess_smooth,
    regional_daily,
    revision_counts,
    rolling_average,
    weekday_effect,
)
from trendlab.clients.jhu_csse import LOOKUP_TABLE_FILENAME, time_series_filename
from trendlab.config import settings
from trendlab.datasets import tidy_covid
from trendlab.pipeline.fetcher import DatasetUnavailableError, Fetcher
from trendlab.report import CovidReport, covid_findings
from trendlab.report import charts

logger = logging.getLogger(__name__)

SCOPE_TOTAL_LABELS = {"us": "the United States", "global": "the World"}


class CovidPipeline:
    """Runs the JHU CSSE COVID-19 analysis for one scope and region.

    Usage:
        pipeline = CovidPipeline(data_dir="data/")
        report = await pipeline.run(scope="us", region="New York")
        print(report.format_text())
    """

    def __init__(
        self,
        data_dir: str | None = None,
        fetcher: Fetcher | None = None,
        window: int | None = None,
        loess_frac: float | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            data_dir: Cache directory (ignored when a fetcher is given)
            fetcher: Shared Fetcher instance
            window: Rolling average window in days (default: settings.rolling_window)
            loess_frac: LOESS span (default: settings.loess_frac)
        """
        self.fetcher = fetcher or Fetcher(data_dir=data_dir)
        self.store = self.fetcher.store
        self.window = settings.rolling_window if window is None else window
        self.loess_frac = settings.loess_frac if loess_frac is None else loess_frac

    async def load(self, scope: str = "us") -> pd.DataFrame:
        """Fetch, read, reshape and join the archives of a scope."""
        scope = scope.lower()
        paths = await self.fetcher.fetch_covid(scope=scope)

        cases_raw = await self.store.read_raw(time_series_filename("confirmed", scope))
        deaths_raw = await self.store.read_raw(time_series_filename("deaths", scope))
        if cases_raw is None or deaths_raw is None:
            raise DatasetUnavailableError(f"COVID {scope} archives missing from cache after fetch")
        lookup = await self.store.read_raw(LOOKUP_TABLE_FILENAME) if "lookup" in paths else None

        tidy = tidy_covid(cases_raw, deaths_raw, lookup=lookup)
        await self.store.write_tidy(f"covid_{scope}", tidy)
        logger.info("covid: %d tidy rows for scope %s", len(tidy), scope)
        return tidy

    def smooth(self, daily: pd.DataFrame) -> pd.DataFrame:
        """Add ``*_avg`` (rolling mean) and ``*_loess`` columns for daily increments."""
        daily = daily.copy()
        for column in ("new_cases", "new_deaths"):
            daily[f"{column}_avg"] = rolling_average(daily[column], window=self.window)
            daily[f"{column}_loess"] = loess_smooth(daily[column], frac=self.loess_frac)
        return daily

    def analyze(self, tidy: pd.DataFrame, scope: str = "us", region: str | None = None) -> CovidReport:
        """Aggregate, smooth, fit and chart one region of a tidy COVID table."""
        scope = scope.lower()
        region_column = REGION_COLUMNS[scope]
        label = region or SCOPE_TOTAL_LABELS[scope]

        daily = regional_daily(tidy, region_column=region_column, region=region)
        revisions = revision_counts(daily)
        daily = self.smooth(daily)
        weekday = weekday_effect(daily["new_cases"])

        snapshot = latest_by_region(tidy, region_column=region_column)
        models = {}
        try:
            models["deaths_vs_cases"] = fit_deaths_vs_cases(snapshot)
        except ValueError as e:
            logger.warning("covid: deaths-vs-cases model skipped: %s", e)

        figures = {
            "cumulative": charts.cumulative_curves(daily, title=f"Cumulative COVID-19 cases and deaths, {label}"),
            "new_cases": charts.daily_with_smoothing(
                daily, "new_cases", self.window, title=f"Daily new cases, {label}",
            ),
            "new_deaths": charts.daily_with_smoothing(
                daily, "new_deaths", self.window, title=f"Daily new deaths, {label}",
            ),
        }
        if "deaths_vs_cases" in models:
            figures["deaths_vs_cases"] = charts.deaths_vs_cases(
                snapshot, models["deaths_vs_cases"], title="Deaths vs cases per thousand by region",
            )

        tables = {
            "highest_death_rates": snapshot.head(15)[
                ["cases_per_thou", "deaths_per_thou", "case_fatality"]
            ],
        }
        if not weekday.empty:
            tables["weekday_reporting_level"] = weekday

        last = daily.iloc[-1]
        coverage = {
            "region": label,
            "days": int(len(daily)),
            "start": daily.index[0].strftime("%Y-%m-%d"),
            "end": daily.index[-1].strftime("%Y-%m-%d"),
            "cases": float(last["cases"]),
            "deaths": float(last["deaths"]),
            "rolling_window": self.window,
            "loess_frac": self.loess_frac,
        }

        findings = covid_findings(
            label, daily, revisions, weekday, self.window, model=models.get("deaths_vs_cases"),
        )

        return CovidReport(
            scope=scope,
            region=label,
            coverage=coverage,
            daily=daily,
            revisions=revisions,
            models=models,
            tables=tables,
            figures=figures,
            findings=findings,
        )

    async def run(self, scope: str = "us", region: str | None = None) -> CovidReport:
        """Fetch → reshape → analyze."""
        tidy = await self.load(scope=scope)
        return await asyncio.to_thread(self.analyze, tidy, scope, region)
