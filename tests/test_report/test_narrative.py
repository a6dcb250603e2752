"""Tests for report commentary."""

import pandas as pd
import pytest

from trendlab.analysis import (
    decompose_monthly,
    fit_deaths_vs_cases,
    fit_fatality_logit,
    fit_harmonic_regression,
    fit_linear_trend,
    latest_by_region,
    monthly_counts,
    regional_daily,
    revision_counts,
    rolling_average,
    weekday_effect,
)
from trendlab.datasets import tidy_covid, tidy_shootings
from trendlab.report import Finding, covid_findings, format_findings, shooting_findings
from trendlab.report.narrative import COVID_BIAS_NOTES, SHOOTING_BIAS_NOTES


@pytest.fixture
def shooting_inputs(shooting_raw):
    tidy = tidy_shootings(shooting_raw)
    monthly = monthly_counts(tidy)
    return {
        "tidy": tidy,
        "monthly": monthly,
        "decomposition": decompose_monthly(monthly),
        "trend_fit": fit_linear_trend(monthly),
        "harmonic_fit": fit_harmonic_regression(monthly),
    }


@pytest.fixture
def covid_inputs(us_wide):
    tidy = tidy_covid(*us_wide)
    daily = regional_daily(tidy, region="New York")
    daily["new_cases_avg"] = rolling_average(daily["new_cases"], window=7)
    return {
        "region": "New York",
        "daily": daily,
        "revisions": revision_counts(daily),
        "weekday": weekday_effect(daily["new_cases"]),
        "window": 7,
        "snapshot": latest_by_region(tidy),
    }


class TestFinding:
    def test_str(self):
        assert str(Finding("bias", "Some caveat.")) == "[bias] Some caveat."


class TestShootingFindings:
    def test_sections(self, shooting_inputs):
        findings = shooting_findings(**shooting_inputs)
        sections = {f.section for f in findings}
        assert sections == {"coverage", "pattern", "model", "bias"}

    def test_mentions_seasonal_peak(self, shooting_inputs):
        findings = shooting_findings(**shooting_inputs)
        pattern = " ".join(f.text for f in findings if f.section == "pattern")
        assert "peak in July" in pattern

    def test_coverage_mentions_dropped_rows(self, shooting_inputs):
        findings = shooting_findings(**shooting_inputs, dropped_rows=12)
        assert "12 records without date or borough were dropped" in findings[0].text

    def test_no_dropped_rows(self, shooting_inputs):
        findings = shooting_findings(**shooting_inputs)
        assert "dropped" not in findings[0].text

    def test_bias_notes_included(self, shooting_inputs):
        findings = shooting_findings(**shooting_inputs)
        texts = [f.text for f in findings if f.section == "bias"]
        for note in SHOOTING_BIAS_NOTES:
            assert note in texts
        assert any("Perpetrator race is unknown" in t for t in texts)

    def test_logit_finding(self, shooting_inputs):
        logit = fit_fatality_logit(shooting_inputs["tidy"])
        findings = shooting_findings(**shooting_inputs, logit_fit=logit)
        model = [f.text for f in findings if f.section == "model"]
        assert any("night-time shootings" in t for t in model)


class TestCovidFindings:
    def test_sections_and_coverage(self, covid_inputs):
        inputs = {k: v for k, v in covid_inputs.items() if k != "snapshot"}
        findings = covid_findings(**inputs)

        assert findings[0].section == "coverage"
        assert findings[0].text.startswith("New York: 60 days")
        assert any("7-day average of new cases peaked" in f.text for f in findings)
        for note in COVID_BIAS_NOTES:
            assert note in [f.text for f in findings]

    def test_revisions_reported(self, covid_inputs):
        inputs = {k: v for k, v in covid_inputs.items() if k != "snapshot"}
        inputs["revisions"] = {"cases": 3, "deaths": 1}
        findings = covid_findings(**inputs)

        assert any("revised downward on 3 day(s)" in f.text for f in findings)

    def test_model_finding(self, covid_inputs):
        snapshot = covid_inputs.pop("snapshot")
        model = fit_deaths_vs_cases(snapshot)
        findings = covid_findings(**covid_inputs, model=model)

        assert any(f.section == "model" and "deaths per thousand" in f.text for f in findings)


class TestFormatFindings:
    def test_grouped_in_section_order(self):
        text = format_findings([
            Finding("bias", "B"),
            Finding("coverage", "C"),
            Finding("model", "M"),
        ])
        assert text.splitlines() == ["Coverage:", "  - C", "Model:", "  - M", "Bias:", "  - B"]

    def test_empty(self):
        assert format_findings([]) == ""
