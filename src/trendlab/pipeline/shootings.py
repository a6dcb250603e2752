"""Shooting pipeline — cached CSV → tidy table → STL + models → report.

Steps:
1. Fetch (or reuse) the NYPD export
2. Tidy and snapshot to Parquet
3. Monthly incident counts, categorical breakdowns
4. STL decomposition, linear trend, harmonic regression, fatality logit
5. Charts and narrative
"""

import asyncio
import logging

import numpy as np
import pandas as pd

from trendlab.analysis import (
    counts_by,
    decompose_monthly,
    fit_fatality_logit,
    fit_harmonic_regression,
    fit_linear_trend,
    hourly_profile,
    monthly_counts,
    murder_rate_by,
    yearly_counts,
)
from trendlab.config import settings
from trendlab.datasets import tidy_shootings
from trendlab.datasets.shooting import RAW_FILENAME
from trendlab.pipeline.fetcher import DatasetUnavailableError, Fetcher
from trendlab.report import ShootingReport, shooting_findings
from trendlab.report import charts

logger = logging.getLogger(__name__)

TIDY_NAME = "shootings"


class ShootingPipeline:
    """Runs the NYPD shooting analysis end to end.

    Usage:
        pipeline = ShootingPipeline(data_dir="data/")
        report = await pipeline.run(refresh=True)
        print(report.format_text())
    """

    def __init__(
        self,
        data_dir: str | None = None,
        fetcher: Fetcher | None = None,
        period: int | None = None,
        robust: bool | None = None,
        harmonics: int | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            data_dir: Cache directory (ignored when a fetcher is given)
            fetcher: Shared Fetcher instance
            period: STL/harmonic period (default: settings.stl_period)
            robust: Robust STL (default: settings.stl_robust)
            harmonics: Harmonic regression order (default: settings.harmonics)
        """
        self.fetcher = fetcher or Fetcher(data_dir=data_dir)
        self.store = self.fetcher.store
        self.period = settings.stl_period if period is None else period
        self.robust = settings.stl_robust if robust is None else robust
        self.harmonics = settings.harmonics if harmonics is None else harmonics

    async def load(self, refresh: bool = True) -> tuple[pd.DataFrame, int]:
        """Fetch, read and tidy the shooting export.

        Returns:
            (tidy table, number of raw rows dropped)
        """
        await self.fetcher.fetch_shootings(refresh=refresh)
        raw = await self.store.read_raw(RAW_FILENAME, low_memory=False)
        if raw is None:
            raise DatasetUnavailableError(f"{RAW_FILENAME} missing from cache after fetch")

        tidy = tidy_shootings(raw)
        dropped = len(raw) - len(tidy)
        await self.store.write_tidy(TIDY_NAME, tidy)
        logger.info("shootings: %d tidy rows (%d dropped)", len(tidy), dropped)
        return tidy, dropped

    def analyze(self, tidy: pd.DataFrame, dropped: int = 0) -> ShootingReport:
        """Aggregate, decompose, fit and chart a tidy shooting table."""
        monthly = monthly_counts(tidy)
        decomposition = decompose_monthly(monthly, period=self.period, robust=self.robust)

        models = {
            "linear_trend": fit_linear_trend(monthly),
            "harmonic": fit_harmonic_regression(monthly, harmonics=self.harmonics, period=self.period),
        }
        try:
            models["fatality_logit"] = fit_fatality_logit(tidy)
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.warning("shootings: fatality model skipped: %s", e)

        tables = {
            "incidents_by_year": yearly_counts(tidy),
            "incidents_by_borough": counts_by(tidy, "borough"),
            "murder_rate_by_borough": murder_rate_by(tidy, "borough"),
            "victim_race_share": counts_by(tidy, "vic_race", unique_incidents=False, normalize=True),
            "perpetrator_race_share": counts_by(tidy, "perp_race", unique_incidents=False, normalize=True),
        }
        hourly = hourly_profile(tidy)

        figures = {
            "stl": charts.stl_components(decomposition, title="Monthly shooting incidents: STL decomposition"),
            "fits": charts.counts_with_fits(
                monthly, [models["linear_trend"], models["harmonic"]],
                title="Monthly shooting incidents with trend and harmonic fits",
            ),
            "borough_totals": charts.category_bars(tables["incidents_by_borough"], title="Incidents by borough"),
            "by_borough": charts.yearly_by_category(tidy, "borough", title="Incidents per year by borough"),
            "by_hour": charts.category_bars(hourly, title="Incidents by hour of day"),
            "victim_race": charts.category_bars(
                tables["victim_race_share"], title="Victims by race (share)", horizontal=True,
            ),
        }

        coverage = {
            "records": int(len(tidy)),
            "incidents": int(tidy["incident_key"].nunique()),
            "start": tidy["occurred_on"].min().strftime("%Y-%m-%d"),
            "end": tidy["occurred_on"].max().strftime("%Y-%m-%d"),
            "months": int(len(monthly)),
            "dropped_rows": int(dropped),
        }

        findings = shooting_findings(
            tidy,
            monthly,
            decomposition,
            models["linear_trend"],
            models["harmonic"],
            dropped_rows=dropped,
            logit_fit=models.get("fatality_logit"),
        )

        return ShootingReport(
            coverage=coverage,
            monthly=monthly,
            decomposition=decomposition,
            models=models,
            tables=tables,
            figures=figures,
            findings=findings,
        )

    async def run(self, refresh: bool = True) -> ShootingReport:
        """Fetch → tidy → analyze."""
        tidy, dropped = await self.load(refresh=refresh)
        return await asyncio.to_thread(self.analyze, tidy, dropped)
