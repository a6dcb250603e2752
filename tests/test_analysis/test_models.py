"""Tests for the regression models."""

import numpy as np
import pandas as pd
import pytest

from trendlab.analysis import (
    ModelFit,
    fit_deaths_vs_cases,
    fit_fatality_logit,
    fit_harmonic_regression,
    fit_linear_trend,
    harmonic_design,
)
from trendlab.datasets import tidy_shootings


def monthly_series(slope: float = -3.0, amplitude: float = 20.0, peak: int = 7, seed: int = 2) -> pd.Series:
    """Ten years of monthly counts with a known slope and peak month."""
    index = pd.date_range("2010-01-01", periods=120, freq="MS")
    rng = np.random.default_rng(seed)
    years = (index - index[0]).days / 365.25
    cycle = amplitude * np.cos(2 * np.pi * (index.month - peak) / 12)
    values = 150 + slope * years + cycle + rng.normal(0, 2, len(index))
    return pd.Series(np.asarray(values), index=index, name="incidents")


def make_snapshot(n: int = 12, seed: int = 4) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    cases = rng.uniform(50, 300, n)
    deaths = 0.015 * cases + rng.normal(0, 0.05, n)
    deaths[0] += 2.0  # far above the line
    return pd.DataFrame(
        {"cases_per_thou": cases, "deaths_per_thou": deaths},
        index=pd.Index([f"Region {i}" for i in range(n)], name="region"),
    )


class TestLinearTrend:
    def test_recovers_slope(self):
        fit = fit_linear_trend(monthly_series(amplitude=0.0))

        assert fit.name == "linear_trend"
        assert fit.extras["slope_per_year"] == pytest.approx(-3.0, abs=0.2)
        assert fit.extras["slope_pvalue"] < 0.001
        assert fit.extras["pct_change_per_year"] < 0
        assert set(fit.params) == {"const", "years"}

    def test_fitted_aligned(self):
        series = monthly_series()
        fit = fit_linear_trend(series)

        assert fit.fitted.index.equals(series.index)
        assert fit.nobs == 120
        assert "incidents ~ const + years" == fit.formula

    def test_too_short(self):
        with pytest.raises(ValueError, match="at least 3"):
            fit_linear_trend(monthly_series().iloc[:2])


class TestHarmonicRegression:
    def test_recovers_peak_month(self):
        """A sinusoid peaking in July is found to peak in July."""
        fit = fit_harmonic_regression(monthly_series(), harmonics=2)

        assert fit.extras["peak_month"] == "July"
        assert fit.extras["trough_month"] == "January"
        assert fit.extras["peak_phase"] == 6
        assert fit.extras["seasonal_amplitude"] == pytest.approx(20.0, rel=0.1)
        assert fit.extras["slope_per_year"] == pytest.approx(-3.0, abs=0.3)
        assert len(fit.extras["seasonal_curve"]) == 12

    @pytest.mark.parametrize("peak,month", [(1, "January"), (11, "November")])
    def test_other_peaks(self, peak, month):
        fit = fit_harmonic_regression(monthly_series(peak=peak), harmonics=1)
        assert fit.extras["peak_month"] == month

    def test_beats_linear_trend(self):
        series = monthly_series()
        assert fit_harmonic_regression(series).rsquared > fit_linear_trend(series).rsquared + 0.5

    def test_design_columns(self):
        index = pd.date_range("2020-01-01", periods=24, freq="MS")
        design = harmonic_design(index, harmonics=2, period=12)

        assert list(design.columns) == ["const", "years", "sin1", "cos1", "sin2", "cos2"]
        assert design.loc["2020-01-01", "cos1"] == pytest.approx(1.0)
        assert design.loc["2020-04-01", "sin1"] == pytest.approx(1.0)

    def test_positional_index(self):
        fit = fit_harmonic_regression(monthly_series().reset_index(drop=True), harmonics=1)
        assert fit.extras["peak_month"] is None
        assert fit.extras["peak_phase"] == 6

    @pytest.mark.parametrize("harmonics", [0, 6])
    def test_invalid_harmonics(self, harmonics):
        with pytest.raises(ValueError, match="harmonics"):
            fit_harmonic_regression(monthly_series(), harmonics=harmonics)

    def test_too_short(self):
        with pytest.raises(ValueError, match="Too few"):
            fit_harmonic_regression(monthly_series().iloc[:6], harmonics=2)


class TestFatalityLogit:
    def test_fit(self, shooting_raw):
        fit = fit_fatality_logit(tidy_shootings(shooting_raw))

        assert fit.name == "fatality_logit"
        assert "night" in fit.params
        assert any(p.startswith("C(borough)") for p in fit.params)
        assert fit.extras["odds_ratios"]["night"] == pytest.approx(np.exp(fit.params["night"]))
        assert 0.1 < fit.extras["base_rate"] < 0.3
        assert 0.0 <= fit.rsquared < 1.0

    def test_single_class(self, shooting_raw):
        tidy = tidy_shootings(shooting_raw)
        tidy["is_murder"] = False
        with pytest.raises(ValueError, match="single class"):
            fit_fatality_logit(tidy)


class TestDeathsVsCases:
    def test_fit(self):
        fit = fit_deaths_vs_cases(make_snapshot())

        assert fit.formula == "deaths_per_thou ~ cases_per_thou"
        assert fit.extras["slope"] == pytest.approx(0.015, abs=0.01)
        assert fit.extras["above_model"][0] == "Region 0"
        assert "Region 0" not in fit.extras["below_model"]
        assert len(fit.extras["above_model"]) == 5

    def test_predict(self):
        fit = fit_deaths_vs_cases(make_snapshot())
        prediction = fit.predict(pd.DataFrame({"cases_per_thou": [0.0, 100.0]}))

        assert prediction.iloc[0] == pytest.approx(fit.params["Intercept"])
        assert prediction.iloc[1] == pytest.approx(fit.params["Intercept"] + 100 * fit.extras["slope"])

    def test_too_few_regions(self):
        with pytest.raises(ValueError, match="at least 3"):
            fit_deaths_vs_cases(make_snapshot().head(2))


class TestModelFit:
    def test_to_dict(self):
        data = fit_linear_trend(monthly_series()).to_dict()
        assert set(data) == {"name", "formula", "params", "pvalues", "rsquared", "aic", "nobs", "extras"}

    def test_predict_without_result(self):
        fit = ModelFit(
            name="empty", formula="y ~ 1", params={}, pvalues={}, rsquared=0.0,
            aic=0.0, nobs=0, fitted=pd.Series(dtype=float), summary_text="",
        )
        with pytest.raises(RuntimeError, match="not fitted"):
            fit.predict(pd.DataFrame({"x": [1.0]}))
