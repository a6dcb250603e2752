"""Orchestrator — main pipeline coordinator.

Runs the shooting and COVID pipelines over a shared cache and renders
their reports.

Usage:
    orchestrator = Orchestrator(data_dir="data/", output_dir="reports/")
    reports = await orchestrator.run_all(refresh=True, scope="us", region="New York")
"""

import logging
from pathlib import Path

from trendlab.config import settings
from trendlab.pipeline.covid import CovidPipeline
from trendlab.pipeline.fetcher import Fetcher
from trendlab.pipeline.shootings import ShootingPipeline
from trendlab.report import CovidReport, ReportBuilder, ShootingReport

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates Fetcher, both analysis pipelines and the ReportBuilder.

    Rendered file paths are collected in ``outputs`` keyed by report slug.
    """

    def __init__(self, data_dir: str | None = None, output_dir: str | None = None) -> None:
        """Initialize orchestrator with all components.

        Args:
            data_dir: Directory for the dataset cache (default: settings.data_dir)
            output_dir: Directory for rendered reports (default: settings.output_dir)
        """
        self.fetcher = Fetcher(data_dir=data_dir)
        self.shootings = ShootingPipeline(fetcher=self.fetcher)
        self.covid = CovidPipeline(fetcher=self.fetcher)
        self.builder = ReportBuilder(output_dir=output_dir or settings.output_dir)
        self.outputs: dict[str, dict[str, Path]] = {}

    async def run_shootings(self, refresh: bool = True, render: bool = True) -> ShootingReport:
        """Run the NYPD shooting analysis.

        Args:
            refresh: Re-download the shooting export
            render: Write HTML/JSON reports
        """
        logger.info("Running shooting analysis (refresh=%s)...", refresh)
        report = await self.shootings.run(refresh=refresh)
        if render:
            self.outputs[report.slug] = self.builder.render(report)
        return report

    async def run_covid(
        self,
        scope: str = "us",
        region: str | None = None,
        render: bool = True,
    ) -> CovidReport:
        """Run the COVID analysis for one scope/region.

        Args:
            scope: 'us' or 'global'
            region: State or country; None charts the scope total
            render: Write HTML/JSON reports
        """
        logger.info("Running COVID analysis (scope=%s, region=%s)...", scope, region or "total")
        report = await self.covid.run(scope=scope, region=region)
        if render:
            self.outputs[report.slug] = self.builder.render(report)
        return report

    async def run_all(
        self,
        refresh: bool = True,
        scope: str = "us",
        region: str | None = None,
        render: bool = True,
    ) -> dict[str, ShootingReport | CovidReport]:
        """Run both analyses one after the other.

        A failing analysis is logged and left out of the result; the other
        one still runs.

        Returns:
            Dictionary mapping 'shootings' / 'covid' → report
        """
        results: dict[str, ShootingReport | CovidReport] = {}

        try:
            results["shootings"] = await self.run_shootings(refresh=refresh, render=render)
        except Exception as e:
            logger.error("Shooting analysis failed: %s", e, exc_info=True)

        try:
            results["covid"] = await self.run_covid(scope=scope, region=region, render=render)
        except Exception as e:
            logger.error("COVID analysis failed: %s", e, exc_info=True)

        logger.info("Completed %d/2 analyses", len(results))
        return results
