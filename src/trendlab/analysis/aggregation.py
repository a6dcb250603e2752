"""Aggregations over the tidy shooting and COVID tables.

Shooting counts are per incident by default (unique INCIDENT_KEY); pass
``unique_incidents=False`` to count victims instead.

COVID cumulative counts occasionally step down when a jurisdiction revises
its totals. Daily increments clip those steps to zero; ``revision_counts``
reports how many there were.
"""

import pandas as pd
import numpy as np

REGION_COLUMNS = {"us": "province_state", "global": "country_region"}


def _require_rows(df: pd.DataFrame) -> None:
    if df.empty:
        raise ValueError("Cannot aggregate an empty table")


def _count(grouped, unique_incidents: bool) -> pd.Series:
    if unique_incidents:
        return grouped["incident_key"].nunique()
    return grouped["incident_key"].size()


def monthly_counts(df: pd.DataFrame, unique_incidents: bool = True) -> pd.Series:
    """Count shootings per calendar month.

    Every month between the first and last occurrence is present; months
    without incidents are 0.

    Args:
        df: Tidy shooting table
        unique_incidents: Count incidents (True) or victim rows (False)

    Returns:
        Integer Series indexed by month start (freq 'MS')
    """
    _require_rows(df)
    grouped = df.set_index("occurred_on").sort_index().resample("MS")
    counts = _count(grouped, unique_incidents).astype(int)
    counts.name = "incidents" if unique_incidents else "victims"
    counts.index.name = "month"
    return counts


def yearly_counts(df: pd.DataFrame, unique_incidents: bool = True) -> pd.Series:
    """Count shootings per calendar year, indexed by year number."""
    _require_rows(df)
    grouped = df.set_index("occurred_on").sort_index().resample("YS")
    counts = _count(grouped, unique_incidents).astype(int)
    counts.index = counts.index.year
    counts.index.name = "year"
    counts.name = "incidents" if unique_incidents else "victims"
    return counts


def counts_by(
    df: pd.DataFrame,
    column: str,
    unique_incidents: bool = True,
    normalize: bool = False,
) -> pd.Series:
    """Count shootings per category, largest first.

    Args:
        df: Tidy shooting table
        column: Categorical column (e.g. 'borough', 'perp_race')
        unique_incidents: Count incidents (True) or victim rows (False)
        normalize: Return shares summing to 1 instead of counts
    """
    _require_rows(df)
    counts = _count(df.groupby(column), unique_incidents).sort_values(ascending=False)
    if normalize:
        counts = counts / counts.sum()
    counts.name = "share" if normalize else ("incidents" if unique_incidents else "victims")
    return counts


def hourly_profile(df: pd.DataFrame, unique_incidents: bool = True) -> pd.Series:
    """Shootings by hour of day (0-23). Rows without a time are skipped."""
    _require_rows(df)
    timed = df.dropna(subset=["occurred_at"])
    hours = timed["occurred_at"].dt.hour
    counts = _count(timed.groupby(hours), unique_incidents)
    counts = counts.reindex(range(24), fill_value=0).astype(int)
    counts.index.name = "hour"
    counts.name = "incidents" if unique_incidents else "victims"
    return counts


def murder_rate_by(df: pd.DataFrame, column: str) -> pd.DataFrame:
    """Share of victims whose shooting was classified as murder, per category.

    Returns:
        DataFrame indexed by category with columns victims, murders, rate
    """
    _require_rows(df)
    grouped = df.groupby(column)["is_murder"]
    table = pd.DataFrame({"victims": grouped.size(), "murders": grouped.sum().astype(int)})
    table["rate"] = table["murders"] / table["victims"]
    return table.sort_values("rate", ascending=False)


def regional_daily(
    df: pd.DataFrame,
    region_column: str = "province_state",
    region: str | None = None,
) -> pd.DataFrame:
    """Sum COVID counts to one daily series for a region (or everything).

    Args:
        df: Tidy COVID table
        region_column: Column that names the region ('province_state' or 'country_region')
        region: Region to keep; None sums every location

    Returns:
        DataFrame indexed by date with cases, deaths, population, new_cases,
        new_deaths, cases_per_thou, deaths_per_thou

    Raises:
        ValueError: If the region has no rows
    """
    _require_rows(df)
    if region is not None:
        df = df[df[region_column] == region]
        if df.empty:
            raise ValueError(f"No rows for {region_column} == '{region}'")

    daily = df.groupby("date").agg(
        cases=("cases", "sum"),
        deaths=("deaths", "sum"),
        population=("population", lambda s: s.sum(min_count=1)),
    ).sort_index()

    for total, new in (("cases", "new_cases"), ("deaths", "new_deaths")):
        increment = daily[total].diff()
        increment.iloc[0] = daily[total].iloc[0]
        daily[new] = increment.clip(lower=0)

    population = daily["population"].where(daily["population"] > 0)
    daily["cases_per_thou"] = daily["cases"] * 1000 / population
    daily["deaths_per_thou"] = daily["deaths"] * 1000 / population
    return daily


def revision_counts(daily: pd.DataFrame) -> dict[str, int]:
    """Number of days on which a cumulative total went down."""
    return {
        col: int((daily[col].diff() < 0).sum())
        for col in ("cases", "deaths")
    }


def latest_by_region(df: pd.DataFrame, region_column: str = "province_state") -> pd.DataFrame:
    """Snapshot of the last reported date per region, with per-thousand rates.

    Regions without population or without cases are left out (rates are
    undefined for them).
    """
    _require_rows(df)
    last = df[df["date"] == df["date"].max()]
    snapshot = last.groupby(region_column).agg(
        cases=("cases", "sum"),
        deaths=("deaths", "sum"),
        population=("population", lambda s: s.sum(min_count=1)),
    )
    snapshot = snapshot[(snapshot["population"] > 0) & (snapshot["cases"] > 0)].copy()
    snapshot["cases_per_thou"] = snapshot["cases"] * 1000 / snapshot["population"]
    snapshot["deaths_per_thou"] = snapshot["deaths"] * 1000 / snapshot["population"]
    snapshot["case_fatality"] = snapshot["deaths"] / snapshot["cases"]
    snapshot.index.name = "region"
    return snapshot.sort_values("deaths_per_thou", ascending=False)


def weekday_effect(series: pd.Series) -> pd.Series:
    """Mean value per weekday relative to the overall mean.

    A flat reporting process gives ratios near 1; batch reporting shows up
    as low weekends and high Mondays/Tuesdays.
    """
    values = series.dropna()
    overall = values.mean()
    if not overall or np.isnan(overall):
        return pd.Series(dtype=float, name="relative_level")
    by_day = values.groupby(values.index.dayofweek).mean() / overall
    by_day.index = [pd.Timestamp(2024, 1, 1 + d).day_name() for d in by_day.index]
    by_day.name = "relative_level"
    return by_day
