"""Simple regression models fitted by the two analyses.

- Linear trend of monthly shooting counts
- Harmonic (Fourier-term) regression: trend + seasonal sine/cosine pairs
- Logistic model of the murder flag on borough and time of day
- Cross-sectional OLS of COVID deaths per thousand on cases per thousand

All fits go through statsmodels and come back as a ModelFit so the report
layer never touches statsmodels result objects directly.
"""

import calendar
import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

logger = logging.getLogger(__name__)

NIGHT_HOURS = {20, 21, 22, 23, 0, 1, 2, 3, 4, 5}


@dataclass
class ModelFit:
    """Fitted model summary.

    Attributes:
        name: Short identifier ('linear_trend', 'harmonic', ...)
        formula: Human-readable model formula
        params: Coefficient estimates
        pvalues: Two-sided p-values per coefficient
        rsquared: R² (McFadden pseudo-R² for logit)
        aic: Akaike information criterion
        nobs: Observations used
        fitted: In-sample fitted values
        summary_text: statsmodels' text summary table
        extras: Model-specific derived quantities
    """

    name: str
    formula: str
    params: dict[str, float]
    pvalues: dict[str, float]
    rsquared: float
    aic: float
    nobs: int
    fitted: pd.Series
    summary_text: str
    extras: dict[str, Any] = field(default_factory=dict)
    result: Any = field(default=None, repr=False, compare=False)

    def predict(self, exog: pd.DataFrame) -> pd.Series:
        """Predict with the underlying statsmodels result (formula models)."""
        if self.result is None:
            raise RuntimeError(f"Model '{self.name}' was not fitted with a predictable result")
        return pd.Series(np.asarray(self.result.predict(exog)), index=exog.index)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (fitted values omitted)."""
        return {
            "name": self.name,
            "formula": self.formula,
            "params": self.params,
            "pvalues": self.pvalues,
            "rsquared": self.rsquared,
            "aic": self.aic,
            "nobs": self.nobs,
            "extras": self.extras,
        }


def _from_result(name: str, formula: str, result, fitted: pd.Series, rsquared: float) -> ModelFit:
    return ModelFit(
        name=name,
        formula=formula,
        params={k: float(v) for k, v in result.params.items()},
        pvalues={k: float(v) for k, v in result.pvalues.items()},
        rsquared=float(rsquared),
        aic=float(result.aic),
        nobs=int(result.nobs),
        fitted=fitted,
        summary_text=result.summary().as_text(),
        result=result,
    )


def _years_since_start(index: pd.Index) -> np.ndarray:
    if isinstance(index, pd.DatetimeIndex):
        return ((index - index[0]).days / 365.25).to_numpy(dtype=float)
    return np.arange(len(index), dtype=float)


def fit_linear_trend(series: pd.Series) -> ModelFit:
    """OLS of the series on elapsed time.

    Elapsed time is in years for a DatetimeIndex, in observations otherwise.
    extras: slope_per_year, pct_change_per_year (slope relative to the mean level).
    """
    if len(series) < 3:
        raise ValueError("Need at least 3 observations for a trend fit")

    y = series.astype(float)
    X = sm.add_constant(pd.DataFrame({"years": _years_since_start(series.index)}, index=series.index))
    result = sm.OLS(y, X).fit()

    fit = _from_result(
        "linear_trend",
        f"{series.name or 'y'} ~ const + years",
        result,
        pd.Series(np.asarray(result.fittedvalues), index=series.index, name="trend_fit"),
        result.rsquared,
    )
    slope = fit.params["years"]
    fit.extras = {
        "slope_per_year": slope,
        "pct_change_per_year": float(100 * slope / y.mean()) if y.mean() else None,
        "slope_pvalue": fit.pvalues["years"],
    }
    return fit


def _harmonic_phase(index: pd.Index, period: int) -> tuple[np.ndarray, bool]:
    """Cycle position per observation; calendar-aligned for monthly dates."""
    if isinstance(index, pd.DatetimeIndex) and period == 12:
        return (index.month - 1).to_numpy(dtype=float), True
    return (np.arange(len(index)) % period).astype(float), False


def harmonic_design(index: pd.Index, harmonics: int = 2, period: int = 12) -> pd.DataFrame:
    """Design matrix: constant, elapsed years, and sin/cos pairs 1..harmonics."""
    phase, _ = _harmonic_phase(index, period)
    columns: dict[str, np.ndarray] = {"years": _years_since_start(index)}
    for k in range(1, harmonics + 1):
        angle = 2 * np.pi * k * phase / period
        columns[f"sin{k}"] = np.sin(angle)
        columns[f"cos{k}"] = np.cos(angle)
    return sm.add_constant(pd.DataFrame(columns, index=index), has_constant="add")


def fit_harmonic_regression(
    series: pd.Series,
    harmonics: int = 2,
    period: int = 12,
) -> ModelFit:
    """Linear trend plus Fourier terms for the seasonal cycle.

    extras:
        seasonal_amplitude: Half the peak-to-trough range of the fitted cycle
        peak_phase / trough_phase: Cycle positions (0-based) of the extremes
        peak_month / trough_month: Calendar months (monthly dates only)
        slope_per_year: Trend coefficient
    """
    if harmonics < 1 or 2 * harmonics >= period:
        raise ValueError(f"harmonics must be in [1, {(period - 1) // 2}] for period={period}")
    if len(series) < 2 * harmonics + 3:
        raise ValueError("Too few observations for the requested number of harmonics")

    y = series.astype(float)
    X = harmonic_design(series.index, harmonics, period)
    result = sm.OLS(y, X).fit()

    terms = " + ".join(f"sin{k} + cos{k}" for k in range(1, harmonics + 1))
    fit = _from_result(
        "harmonic",
        f"{series.name or 'y'} ~ const + years + {terms}",
        result,
        pd.Series(np.asarray(result.fittedvalues), index=series.index, name="harmonic_fit"),
        result.rsquared,
    )

    # Evaluate the fitted seasonal curve over one full cycle.
    cycle = np.arange(period, dtype=float)
    curve = np.zeros(period)
    for k in range(1, harmonics + 1):
        angle = 2 * np.pi * k * cycle / period
        curve += fit.params[f"sin{k}"] * np.sin(angle) + fit.params[f"cos{k}"] * np.cos(angle)

    _, calendar_aligned = _harmonic_phase(series.index, period)
    peak, trough = int(np.argmax(curve)), int(np.argmin(curve))
    fit.extras = {
        "seasonal_amplitude": float((curve.max() - curve.min()) / 2),
        "peak_phase": peak,
        "trough_phase": trough,
        "peak_month": calendar.month_name[peak + 1] if calendar_aligned else None,
        "trough_month": calendar.month_name[trough + 1] if calendar_aligned else None,
        "slope_per_year": fit.params["years"],
        "seasonal_curve": [float(v) for v in curve],
    }
    return fit


def fit_fatality_logit(df: pd.DataFrame) -> ModelFit:
    """Logistic regression of the murder flag on borough and night-time.

    Night is 20:00-05:59. Victims without an occurrence time are left out.
    extras: odds_ratios (exp of coefficients), base_rate.

    Raises:
        ValueError: If the outcome has a single class
    """
    data = df.dropna(subset=["occurred_at"]).copy()
    data["is_murder"] = data["is_murder"].astype(int)
    if data["is_murder"].nunique() < 2:
        raise ValueError("Murder flag has a single class; logistic model is undefined")
    data["night"] = data["occurred_at"].dt.hour.isin(NIGHT_HOURS).astype(int)

    formula = "is_murder ~ C(borough) + night"
    result = smf.logit(formula, data=data).fit(disp=False)

    fit = _from_result(
        "fatality_logit",
        formula,
        result,
        pd.Series(np.asarray(result.predict(data)), index=data.index, name="p_murder"),
        result.prsquared,
    )
    fit.extras = {
        "odds_ratios": {k: float(np.exp(v)) for k, v in fit.params.items()},
        "base_rate": float(data["is_murder"].mean()),
        "converged": bool(result.mle_retvals.get("converged", True)),
    }
    return fit


def fit_deaths_vs_cases(snapshot: pd.DataFrame, top_residuals: int = 5) -> ModelFit:
    """OLS of deaths per thousand on cases per thousand across regions.

    Args:
        snapshot: Output of latest_by_region (one row per region)
        top_residuals: How many over/under-performing regions to report

    extras: deaths_per_case_thousand (slope), above_model / below_model regions.
    """
    data = snapshot.dropna(subset=["cases_per_thou", "deaths_per_thou"])
    if len(data) < 3:
        raise ValueError("Need at least 3 regions for a deaths-vs-cases fit")

    formula = "deaths_per_thou ~ cases_per_thou"
    result = smf.ols(formula, data=data).fit()

    fit = _from_result(
        "deaths_vs_cases",
        formula,
        result,
        pd.Series(np.asarray(result.fittedvalues), index=data.index, name="pred_deaths_per_thou"),
        result.rsquared,
    )
    resid = pd.Series(np.asarray(result.resid), index=data.index).sort_values()
    fit.extras = {
        "slope": fit.params["cases_per_thou"],
        "above_model": [str(r) for r in resid.index[::-1][:top_residuals]],
        "below_model": [str(r) for r in resid.index[:top_residuals]],
    }
    return fit
