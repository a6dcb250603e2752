"""Fetcher — upstream CSV → DatasetStore.

The shooting export changes as NYPD publishes new years, so it is
re-downloaded on every run unless refresh is turned off. The JHU CSSE
archives no longer change and are only downloaded when absent.
"""

import asyncio
import logging
from pathlib import Path

from trendlab.cache import DatasetStore
from trendlab.clients import APIProviderError, JHUCSSEClient, NYCOpenDataClient
from trendlab.clients.jhu_csse import LOOKUP_TABLE_FILENAME, METRICS, time_series_filename
from trendlab.config import settings
from trendlab.datasets.shooting import RAW_FILENAME as SHOOTING_FILENAME

logger = logging.getLogger(__name__)


class DatasetUnavailableError(RuntimeError):
    """Raised when a dataset can neither be downloaded nor found in the cache."""


class Fetcher:
    """Downloads the upstream CSVs into the dataset cache.

    Usage:
        fetcher = Fetcher(data_dir="data")

        shootings_csv = await fetcher.fetch_shootings(refresh=True)
        covid_files = await fetcher.fetch_covid(scope="us")
    """

    def __init__(self, data_dir: str | None = None) -> None:
        """Initialize fetcher with its cache store.

        Args:
            data_dir: Directory for raw downloads (default: from settings)
        """
        self.store = DatasetStore(base_path=data_dir or settings.data_dir)

    def _nyc_client(self) -> NYCOpenDataClient:
        return NYCOpenDataClient(
            shooting_url=settings.shooting_url,
            rate_limit=settings.http_rate_limit,
            timeout=settings.http_timeout,
        )

    def _jhu_client(self) -> JHUCSSEClient:
        return JHUCSSEClient(
            base_url=settings.covid_base_url,
            rate_limit=settings.http_rate_limit,
            timeout=settings.http_timeout,
        )

    async def fetch_shootings(self, refresh: bool = True) -> Path:
        """Make sure the shooting CSV is in the cache.

        Args:
            refresh: Re-download even if a cached copy exists

        Returns:
            Path to the cached CSV

        Raises:
            DatasetUnavailableError: If the download fails and nothing is cached
        """
        cached = await self.store.exists(SHOOTING_FILENAME)
        if cached and not refresh:
            logger.info("shootings: using cached %s", self.store.raw_path(SHOOTING_FILENAME))
            return self.store.raw_path(SHOOTING_FILENAME)

        try:
            async with self._nyc_client() as client:
                text = await client.download_shootings()
            path = await self.store.write_raw(SHOOTING_FILENAME, text, overwrite=True)
            logger.info("shootings: downloaded %d lines to %s", text.count("\n"), path)
            return path
        except (APIProviderError, ValueError) as e:
            if cached:
                logger.warning("shootings: download failed (%s); falling back to cached copy", e)
                return self.store.raw_path(SHOOTING_FILENAME)
            raise DatasetUnavailableError(f"Shooting data unavailable: {e}") from e

    async def _fetch_archive(self, filename: str, download) -> Path:
        """Download one CSSE file unless it is already cached."""
        if await self.store.exists(filename):
            logger.info("covid: using cached %s", filename)
            return self.store.raw_path(filename)
        try:
            text = await download()
        except APIProviderError as e:
            raise DatasetUnavailableError(f"{filename} unavailable: {e}") from e
        path = await self.store.write_raw(filename, text)
        logger.info("covid: downloaded %s", filename)
        return path

    async def fetch_covid(self, scope: str = "us", with_lookup: bool | None = None) -> dict[str, Path]:
        """Make sure the cases/deaths archives of a scope are in the cache.

        Files are downloaded concurrently and never overwritten. A failed
        file does not cancel the others; they stay cached for the next run.
        The lookup table is optional: when it cannot be fetched a warning is
        logged and 'lookup' is left out of the result.

        Args:
            scope: 'us' or 'global'
            with_lookup: Also fetch the UID lookup table (default: only for 'global',
                whose files carry no population)

        Returns:
            Dictionary mapping 'confirmed' / 'deaths' / 'lookup' → cached path
        """
        scope = scope.lower()
        if with_lookup is None:
            with_lookup = scope == "global"

        async with self._jhu_client() as client:
            names = list(METRICS)
            tasks = [
                self._fetch_archive(
                    time_series_filename(metric, scope),
                    lambda m=metric: client.download_time_series(m, scope),
                )
                for metric in METRICS
            ]
            if with_lookup:
                names.append("lookup")
                tasks.append(self._fetch_archive(LOOKUP_TABLE_FILENAME, client.download_lookup_table))

            # Let every download finish before the client closes.
            results = await asyncio.gather(*tasks, return_exceptions=True)

        paths: dict[str, Path] = {}
        for name, result in zip(names, results):
            if isinstance(result, DatasetUnavailableError) and name == "lookup":
                logger.warning("covid: continuing without population data: %s", result)
            elif isinstance(result, BaseException):
                raise result
            else:
                paths[name] = result
        return paths
