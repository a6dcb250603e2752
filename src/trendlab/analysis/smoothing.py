"""Smoothing of noisy daily series: rolling means and LOESS."""

import numpy as np
import pandas as pd
from statsmodels.nonparametric.smoothers_lowess import lowess


def rolling_average(
    series: pd.Series,
    window: int = 7,
    min_periods: int | None = None,
    center: bool = False,
) -> pd.Series:
    """Trailing (or centered) moving average.

    Args:
        series: Values in time order
        window: Number of consecutive observations per mean
        min_periods: Observations required for a value (default: the full window)
        center: Label each mean at the window's center instead of its end

    Returns:
        Series aligned with the input; NaN until the window fills
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    if min_periods is None:
        min_periods = window
    return series.rolling(window=window, min_periods=min_periods, center=center).mean()


def _ordinal_axis(index: pd.Index) -> np.ndarray:
    """Day offsets for a DatetimeIndex, positions otherwise."""
    if isinstance(index, pd.DatetimeIndex):
        return ((index - index[0]) / pd.Timedelta(days=1)).to_numpy(dtype=float)
    return np.arange(len(index), dtype=float)


def loess_smooth(
    series: pd.Series,
    frac: float = 0.1,
    it: int = 3,
) -> pd.Series:
    """LOESS (locally weighted linear regression) smoothing.

    NaN observations are skipped during fitting and stay NaN in the output.

    Args:
        series: Values in time order
        frac: Fraction of the observations used for each local fit
        it: Robustifying iterations (0 = plain LOWESS)

    Returns:
        Smoothed Series aligned with the input

    Raises:
        ValueError: If frac is outside (0, 1] or fewer than 3 valid points
    """
    if not 0 < frac <= 1:
        raise ValueError(f"frac must be in (0, 1], got {frac}")

    mask = series.notna().to_numpy()
    if mask.sum() < 3:
        raise ValueError("LOESS needs at least 3 non-NaN observations")

    x = _ordinal_axis(series.index)[mask]
    y = series.to_numpy(dtype=float)[mask]
    fitted = lowess(y, x, frac=frac, it=it, delta=0.01 * (x.max() - x.min()), return_sorted=False)

    smoothed = np.full(len(series), np.nan)
    smoothed[mask] = fitted
    return pd.Series(smoothed, index=series.index, name=series.name)
