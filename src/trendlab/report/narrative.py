"""Interpretive commentary and bias discussion for the two reports.

Produces plain-language findings from already computed results:
1. Coverage: what the data spans and what was dropped
2. Pattern: trend direction, seasonal peak, smoothing summary
3. Model: what the fitted coefficients say
4. Bias: data-collection caveats, partly measured from the data itself

The narrative layer is stateless; every number it quotes is computed
upstream and passed in.
"""

from dataclasses import dataclass

import pandas as pd

from trendlab.analysis.decomposition import DecompositionResult
from trendlab.analysis.models import ModelFit

SHOOTING_BIAS_NOTES = [
    "Only shootings that were reported to and recorded by the NYPD appear in the data; "
    "incidents that never reach the police are invisible, and recording practice can "
    "differ between precincts and over time.",
    "Perpetrator fields are filled only when a suspect is described or identified, so "
    "demographic breakdowns of perpetrators describe solved or witnessed incidents, not "
    "all incidents.",
    "Counts are not normalized by borough population or by police presence; a borough "
    "with more officers on patrol may record a larger share of the incidents that occur.",
    "Choosing to count incidents rather than victims, and to look at monthly rather than "
    "daily totals, is itself an analytical choice that shapes the seasonal picture.",
]

COVID_BIAS_NOTES = [
    "Confirmed cases depend on testing: early in 2020 and again after home tests became "
    "common, many infections were never reported, so case curves understate spread.",
    "Reporting schedules differ between jurisdictions; weekend dips and Monday catch-ups "
    "are artefacts of reporting, not of transmission, which is why rolling averages are used.",
    "Deaths are attributed according to local death-certificate practice, which varied "
    "between states and countries.",
    "Cumulative totals are occasionally revised downward; those revisions are clipped to "
    "zero in the daily series rather than redistributed.",
]


@dataclass
class Finding:
    """One paragraph of report commentary.

    Attributes:
        section: 'coverage', 'pattern', 'model' or 'bias'
        text: Human-readable sentence(s)
    """

    section: str
    text: str

    def __str__(self) -> str:
        return f"[{self.section}] {self.text}"


def _direction(slope: float, pvalue: float, alpha: float = 0.05) -> str:
    if pvalue >= alpha:
        return "no statistically clear trend"
    return "an upward trend" if slope > 0 else "a downward trend"


def shooting_findings(
    tidy: pd.DataFrame,
    monthly: pd.Series,
    decomposition: DecompositionResult,
    trend_fit: ModelFit,
    harmonic_fit: ModelFit,
    dropped_rows: int = 0,
    logit_fit: ModelFit | None = None,
) -> list[Finding]:
    """Commentary for the NYPD shooting report."""
    findings: list[Finding] = []

    start, end = tidy["occurred_on"].min(), tidy["occurred_on"].max()
    findings.append(Finding(
        "coverage",
        f"{len(tidy):,} victim records from {tidy['incident_key'].nunique():,} incidents "
        f"between {start:%Y-%m-%d} and {end:%Y-%m-%d}"
        + (f"; {dropped_rows:,} records without date or borough were dropped." if dropped_rows else "."),
    ))

    summary = decomposition.to_dict()
    findings.append(Finding(
        "pattern",
        f"Shootings peak in {summary['peak']} and are lowest in {summary['trough']}; "
        f"the seasonal swing spans about {summary['seasonal_range']:.0f} incidents per month "
        f"(seasonal strength {decomposition.seasonal_strength:.2f}, "
        f"trend strength {decomposition.trend_strength:.2f}).",
    ))

    year = monthly.groupby(monthly.index.year).sum()
    if len(year) >= 2:
        low_year, high_year = year.idxmin(), year.idxmax()
        findings.append(Finding(
            "pattern",
            f"The highest yearly total was {year.max():,} in {high_year} and the lowest "
            f"{year.min():,} in {low_year}.",
        ))

    extras = trend_fit.extras
    findings.append(Finding(
        "model",
        f"A straight-line fit shows {_direction(extras['slope_per_year'], extras['slope_pvalue'])} "
        f"({extras['slope_per_year']:+.1f} incidents per month per year, R²={trend_fit.rsquared:.2f}).",
    ))

    h = harmonic_fit.extras
    gain = harmonic_fit.rsquared - trend_fit.rsquared
    findings.append(Finding(
        "model",
        f"Adding seasonal sine/cosine terms raises R² to {harmonic_fit.rsquared:.2f} "
        f"({gain:+.2f}); the fitted cycle peaks in {h['peak_month'] or h['peak_phase']} "
        f"with an amplitude of {h['seasonal_amplitude']:.1f} incidents.",
    ))

    if logit_fit is not None:
        night = logit_fit.extras["odds_ratios"].get("night")
        if night is not None:
            findings.append(Finding(
                "model",
                f"{logit_fit.extras['base_rate']:.1%} of victims were killed; holding borough "
                f"fixed, night-time shootings have {night:.2f}x the odds of being fatal.",
            ))

    unknown = (tidy["perp_race"] == "UNKNOWN").mean()
    findings.append(Finding(
        "bias",
        f"Perpetrator race is unknown for {unknown:.0%} of victim records, so any perpetrator "
        "breakdown describes a selected subset of incidents.",
    ))
    findings.extend(Finding("bias", note) for note in SHOOTING_BIAS_NOTES)
    return findings


def covid_findings(
    region: str,
    daily: pd.DataFrame,
    revisions: dict[str, int],
    weekday: pd.Series,
    window: int,
    model: ModelFit | None = None,
) -> list[Finding]:
    """Commentary for the COVID report of one region."""
    findings: list[Finding] = []
    last = daily.iloc[-1]

    findings.append(Finding(
        "coverage",
        f"{region}: {len(daily):,} days from {daily.index[0]:%Y-%m-%d} to "
        f"{daily.index[-1]:%Y-%m-%d}, ending at {last['cases']:,.0f} cumulative cases and "
        f"{last['deaths']:,.0f} deaths.",
    ))
    if last["cases"] > 0:
        findings.append(Finding(
            "pattern",
            f"Crude case fatality at the last date is {last['deaths'] / last['cases']:.2%}.",
        ))

    avg_col = "new_cases_avg"
    if avg_col in daily and daily[avg_col].notna().any():
        peak_day = daily[avg_col].idxmax()
        findings.append(Finding(
            "pattern",
            f"The {window}-day average of new cases peaked at {daily[avg_col].max():,.0f} per "
            f"day on {peak_day:%Y-%m-%d}.",
        ))

    if not weekday.empty:
        low, high = weekday.idxmin(), weekday.idxmax()
        findings.append(Finding(
            "bias",
            f"Reported new cases run {weekday[low]:.0%} of the average on {low}s and "
            f"{weekday[high]:.0%} on {high}s, a reporting rhythm the rolling mean removes.",
        ))

    total_revisions = sum(revisions.values())
    if total_revisions:
        findings.append(Finding(
            "bias",
            f"Cumulative totals were revised downward on {revisions.get('cases', 0)} day(s) for "
            f"cases and {revisions.get('deaths', 0)} day(s) for deaths.",
        ))

    if model is not None:
        slope = model.extras["slope"]
        above = ", ".join(model.extras["above_model"][:3])
        findings.append(Finding(
            "model",
            f"Across regions, each additional case per thousand goes with {slope:.4f} more "
            f"deaths per thousand (R²={model.rsquared:.2f}); {above} sit furthest above the line.",
        ))

    findings.extend(Finding("bias", note) for note in COVID_BIAS_NOTES)
    return findings


def format_findings(findings: list[Finding]) -> str:
    """Group findings by section as indented text."""
    lines: list[str] = []
    for section in ("coverage", "pattern", "model", "bias"):
        items = [f for f in findings if f.section == section]
        if not items:
            continue
        lines.append(f"{section.capitalize()}:")
        lines.extend(f"  - {f.text}" for f in items)
    return "\n".join(lines)
