"""Download clients for trendlab.

Async HTTP clients for the two upstream sources:
- NYC Open Data: NYPD Shooting Incident Data (Historic)
- Johns Hopkins CSSE: COVID-19 time-series archives
"""

from trendlab.clients.base import BaseAsyncClient, RateLimiter, APIProviderError
from trendlab.clients.nyc_open_data import NYCOpenDataClient
from trendlab.clients.jhu_csse import JHUCSSEClient

__all__ = [
    "BaseAsyncClient",
    "RateLimiter",
    "APIProviderError",
    "NYCOpenDataClient",
    "JHUCSSEClient",
]
