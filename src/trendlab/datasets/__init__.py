"""Dataset tidiers for trendlab.

Modules:
    - shooting: NYPD Shooting Incident Data export -> tidy victim table
    - covid: JHU CSSE wide time series -> long (location, date) table
"""

from trendlab.datasets.schema import SchemaError, require_columns
from trendlab.datasets.shooting import tidy_shootings
from trendlab.datasets.covid import (
    attach_population,
    combine_cases_deaths,
    melt_time_series,
    tidy_covid,
)

__all__ = [
    "SchemaError",
    "require_columns",
    "tidy_shootings",
    "melt_time_series",
    "combine_cases_deaths",
    "attach_population",
    "tidy_covid",
]
