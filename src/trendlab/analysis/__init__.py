"""Analysis layer for trendlab.

Modules:
    - aggregation: Monthly/yearly/categorical counts, regional daily COVID series
    - decomposition: STL seasonal-trend decomposition
    - smoothing: Rolling averages, LOESS
    - models: Linear trend, harmonic regression, logit, deaths-vs-cases OLS
"""

from trendlab.analysis.aggregation import (
    REGION_COLUMNS,
    counts_by,
    hourly_profile,
    latest_by_region,
    monthly_counts,
    murder_rate_by,
    regional_daily,
    revision_counts,
    weekday_effect,
    yearly_counts,
)
from trendlab.analysis.decomposition import DecompositionResult, decompose_monthly
from trendlab.analysis.smoothing import loess_smooth, rolling_average
from trendlab.analysis.models import (
    ModelFit,
    fit_deaths_vs_cases,
    fit_fatality_logit,
    fit_harmonic_regression,
    fit_linear_trend,
    harmonic_design,
)

__all__ = [
    "REGION_COLUMNS",
    "counts_by",
    "hourly_profile",
    "latest_by_region",
    "monthly_counts",
    "murder_rate_by",
    "regional_daily",
    "revision_counts",
    "weekday_effect",
    "yearly_counts",
    "DecompositionResult",
    "decompose_monthly",
    "loess_smooth",
    "rolling_average",
    "ModelFit",
    "fit_deaths_vs_cases",
    "fit_fatality_logit",
    "fit_harmonic_regression",
    "fit_linear_trend",
    "harmonic_design",
]
