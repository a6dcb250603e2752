"""Seasonal-trend decomposition (STL) of a monthly count series.

Wraps statsmodels' STL and adds the summary numbers the report talks
about: strength of seasonality and trend (Hyndman & Athanasopoulos,
FPP3 section 4.3) and the months where the seasonal component peaks and
bottoms out.
"""

import calendar
from dataclasses import dataclass

import numpy as np
import pandas as pd
from statsmodels.tsa.seasonal import STL


def _strength(component: pd.Series, resid: pd.Series) -> float:
    """max(0, 1 - Var(R) / Var(C + R))."""
    denominator = np.var(component + resid)
    if denominator == 0:
        return 0.0
    return float(max(0.0, 1.0 - np.var(resid) / denominator))


@dataclass
class DecompositionResult:
    """STL components of one series.

    Attributes:
        observed: Input series
        trend: Smooth long-run level
        seasonal: Repeating within-period pattern
        resid: observed - trend - seasonal
        period: Seasonal period used
        seasonal_strength: 0 (no seasonality) .. 1 (pure seasonality)
        trend_strength: 0 (no trend) .. 1 (pure trend)
    """

    observed: pd.Series
    trend: pd.Series
    seasonal: pd.Series
    resid: pd.Series
    period: int
    seasonal_strength: float
    trend_strength: float

    def seasonal_profile(self) -> pd.Series:
        """Average seasonal effect per position in the cycle.

        Indexed by calendar month (1-12) for monthly data, else by cycle
        position (0..period-1).
        """
        if isinstance(self.seasonal.index, pd.DatetimeIndex) and self.period == 12:
            keys = self.seasonal.index.month
        else:
            keys = np.arange(len(self.seasonal)) % self.period
        return self.seasonal.groupby(keys).mean()

    @property
    def peak_month(self) -> int:
        """Cycle position with the highest average seasonal effect."""
        return int(self.seasonal_profile().idxmax())

    @property
    def trough_month(self) -> int:
        """Cycle position with the lowest average seasonal effect."""
        return int(self.seasonal_profile().idxmin())

    def to_frame(self) -> pd.DataFrame:
        """Components side by side, one row per observation."""
        return pd.DataFrame({
            "observed": self.observed,
            "trend": self.trend,
            "seasonal": self.seasonal,
            "resid": self.resid,
        })

    def to_dict(self) -> dict:
        """Summary numbers for serialization (components omitted)."""
        monthly = isinstance(self.seasonal.index, pd.DatetimeIndex) and self.period == 12
        return {
            "period": self.period,
            "nobs": int(len(self.observed)),
            "seasonal_strength": self.seasonal_strength,
            "trend_strength": self.trend_strength,
            "peak": calendar.month_name[self.peak_month] if monthly else self.peak_month,
            "trough": calendar.month_name[self.trough_month] if monthly else self.trough_month,
            "seasonal_range": float(self.seasonal_profile().max() - self.seasonal_profile().min()),
        }


def decompose_monthly(
    series: pd.Series,
    period: int = 12,
    robust: bool = True,
) -> DecompositionResult:
    """Run STL on a regularly spaced series.

    Args:
        series: Observations in time order, no gaps
        period: Observations per seasonal cycle (12 for monthly data)
        robust: Down-weight outliers while fitting

    Returns:
        DecompositionResult

    Raises:
        ValueError: If the series has NaN or fewer than two full cycles
    """
    if series.isna().any():
        raise ValueError("Series contains NaN; fill or drop gaps before decomposing")
    if len(series) < 2 * period:
        raise ValueError(
            f"Need at least {2 * period} observations for period={period}, got {len(series)}"
        )

    observed = series.astype(float)
    fit = STL(observed.to_numpy(), period=period, robust=robust).fit()

    trend = pd.Series(np.asarray(fit.trend), index=series.index, name="trend")
    seasonal = pd.Series(np.asarray(fit.seasonal), index=series.index, name="seasonal")
    resid = pd.Series(np.asarray(fit.resid), index=series.index, name="resid")

    return DecompositionResult(
        observed=observed,
        trend=trend,
        seasonal=seasonal,
        resid=resid,
        period=period,
        seasonal_strength=_strength(seasonal, resid),
        trend_strength=_strength(trend, resid),
    )
