"""NYC Open Data (Socrata) CSV export client.

Downloads the NYPD Shooting Incident Data (Historic) export as raw CSV.

Portal: https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Usage:
    from trendlab.clients.nyc_open_data import NYCOpenDataClient

    async with NYCOpenDataClient() as client:
        csv_text = await client.download_shootings()
"""

import httpx

from trendlab.clients.base import BaseAsyncClient
from trendlab.config import SHOOTING_CSV_URL

SHOOTING_DATASET_ID = "833y-fsy8"


class NYCOpenDataClient(BaseAsyncClient):
    """Async client for NYC Open Data CSV exports.

    Args:
        shooting_url: Full export URL of the shooting dataset. The host part
            becomes the client's base URL; path and query are kept per request.
        rate_limit: Max requests per second (default: 5)
        timeout: Request timeout in seconds (default: 120)
    """

    def __init__(
        self,
        shooting_url: str = SHOOTING_CSV_URL,
        rate_limit: int = 5,
        timeout: float = 120.0,
    ) -> None:
        url = httpx.URL(shooting_url)
        super().__init__(
            base_url=f"{url.scheme}://{url.netloc.decode('ascii')}",
            headers={"Accept": "text/csv"},
            rate_limit=rate_limit,
            timeout=timeout,
        )
        self._shooting_path = url.path
        self._shooting_params = dict(url.params)

    async def download_shootings(self) -> str:
        """Download the NYPD Shooting Incident Data (Historic) export.

        One row per shooting victim; several rows can share an INCIDENT_KEY.

        Returns:
            Raw CSV text
        """
        return await self.get_text(self._shooting_path, params=self._shooting_params or None)
