"""Example 1: Seasonality on Synthetic Counts

This example shows the shooting analysis building blocks on a synthetic
monthly series: STL decomposition, a linear trend and a harmonic
regression, and the chart the report embeds.

No network access is needed. In production the monthly series comes from
``monthly_counts(tidy_shootings(raw))``.
"""

import numpy as np
import pandas as pd

from trendlab.analysis import decompose_monthly, fit_harmonic_regression, fit_linear_trend
from trendlab.report import charts


def generate_monthly_counts(years: int = 10, seed: int = 42) -> pd.Series:
    """Declining level with a summer peak, plus Poisson noise."""
    index = pd.date_range("2010-01-01", periods=12 * years, freq="MS")
    rng = np.random.default_rng(seed)
    level = np.linspace(160, 90, len(index))
    cycle = 35 * np.cos(2 * np.pi * (index.month - 7) / 12)
    return pd.Series(rng.poisson(np.clip(level + cycle, 1, None)), index=index, name="incidents")


def main():
    """Run the seasonality example."""
    print("=" * 60)
    print("trendlab — Example 1: Seasonality on Synthetic Counts")
    print("=" * 60)
    print()

    monthly = generate_monthly_counts()
    print(f"Step 1: {len(monthly)} months, {monthly.sum():,} incidents")
    print()

    print("Step 2: STL decomposition...")
    stl = decompose_monthly(monthly)
    summary = stl.to_dict()
    print(f"  ✓ Peak month:        {summary['peak']}")
    print(f"  ✓ Trough month:      {summary['trough']}")
    print(f"  ✓ Seasonal strength: {stl.seasonal_strength:.2f}")
    print(f"  ✓ Trend strength:    {stl.trend_strength:.2f}")
    print()

    print("Step 3: Regression models...")
    trend = fit_linear_trend(monthly)
    harmonic = fit_harmonic_regression(monthly, harmonics=2)
    print(f"  ✓ Linear trend:  {trend.extras['slope_per_year']:+.1f} incidents/month per year "
          f"(R²={trend.rsquared:.2f})")
    print(f"  ✓ Harmonic:      peak {harmonic.extras['peak_month']}, "
          f"amplitude {harmonic.extras['seasonal_amplitude']:.1f} (R²={harmonic.rsquared:.2f})")
    print()

    print("Step 4: Writing chart...")
    fig = charts.stl_components(stl, title="Synthetic monthly incidents")
    fig.write_html("example_stl.html", include_plotlyjs="cdn")
    print("  ✓ example_stl.html")


if __name__ == "__main__":
    main()
