"""Johns Hopkins CSSE COVID-19 time-series client.

The CSSE repository stopped updating on 2023-03-10; its files are treated
as immutable archives.

Files (under csse_covid_19_data/):
    csse_covid_19_time_series/time_series_covid19_{confirmed,deaths}_{US,global}.csv
    UID_ISO_FIPS_LookUp_Table.csv

Usage:
    from trendlab.clients.jhu_csse import JHUCSSEClient

    async with JHUCSSEClient() as client:
        csv_text = await client.download_time_series("confirmed", scope="us")
"""

from trendlab.clients.base import BaseAsyncClient
from trendlab.config import JHU_CSSE_BASE_URL

METRICS = ("confirmed", "deaths")
SCOPES = {"us": "US", "global": "global"}
LOOKUP_TABLE_FILENAME = "UID_ISO_FIPS_LookUp_Table.csv"


def time_series_filename(metric: str, scope: str) -> str:
    """Upstream filename for a metric/scope pair.

    Raises:
        ValueError: For unknown metric or scope
    """
    if metric not in METRICS:
        raise ValueError(f"metric must be one of {METRICS}, got '{metric}'")
    scope_key = scope.lower()
    if scope_key not in SCOPES:
        raise ValueError(f"scope must be one of {sorted(SCOPES)}, got '{scope}'")
    return f"time_series_covid19_{metric}_{SCOPES[scope_key]}.csv"


class JHUCSSEClient(BaseAsyncClient):
    """Async client for the JHU CSSE COVID-19 data repository.

    Args:
        base_url: Root of csse_covid_19_data (default: GitHub raw)
        rate_limit: Max requests per second (default: 5)
        timeout: Request timeout in seconds (default: 120)
    """

    def __init__(
        self,
        base_url: str = JHU_CSSE_BASE_URL,
        rate_limit: int = 5,
        timeout: float = 120.0,
    ) -> None:
        super().__init__(
            base_url=base_url,
            headers={},
            rate_limit=rate_limit,
            timeout=timeout,
        )

    async def download_time_series(self, metric: str, scope: str = "us") -> str:
        """Download one wide time-series CSV.

        Args:
            metric: 'confirmed' or 'deaths'
            scope: 'us' (county rows) or 'global' (province/country rows)

        Returns:
            Raw CSV text
        """
        filename = time_series_filename(metric, scope)
        return await self.get_text(f"/csse_covid_19_time_series/{filename}")

    async def download_lookup_table(self) -> str:
        """Download the UID/ISO/FIPS lookup table (carries Population)."""
        return await self.get_text(f"/{LOOKUP_TABLE_FILENAME}")
