"""JHU CSSE COVID-19 time series: wide archives -> long tidy table.

Upstream files carry one row per location and one column per day
(``m/d/yy`` headers) holding cumulative counts. The tidy table has one row
per (location, date):

    uid, province_state, country_region, admin2, combined_key,
    population, date, cases, deaths

``uid``/``admin2``/``population`` only exist for the US files (population
for global rows comes from the UID lookup table when available).
"""

import logging

import pandas as pd

from trendlab.datasets.schema import SchemaError, require_columns

logger = logging.getLogger(__name__)

DATASET_NAME = "jhu_covid19"

_ID_RENAMES = {
    "UID": "uid",
    "Province_State": "province_state",
    "Province/State": "province_state",
    "Country_Region": "country_region",
    "Country/Region": "country_region",
    "Admin2": "admin2",
    "Combined_Key": "combined_key",
    "Population": "population",
}
_ID_ORDER = ["uid", "province_state", "country_region", "admin2", "combined_key", "population"]
_TEXT_KEYS = ["province_state", "country_region", "admin2", "combined_key"]


def date_columns(columns: pd.Index) -> list[str]:
    """Return the headers that parse as ``m/d/yy`` dates, in file order."""
    parsed = pd.to_datetime(pd.Index(columns, dtype=str), format="%m/%d/%y", errors="coerce")
    return [col for col, ts in zip(columns, parsed) if not pd.isna(ts)]


def melt_time_series(raw: pd.DataFrame, value_name: str) -> pd.DataFrame:
    """Reshape one wide CSSE file to long format.

    Args:
        raw: DataFrame read from a time_series_covid19_*.csv file
        value_name: Name of the value column ('cases' or 'deaths')

    Returns:
        Long DataFrame with the id columns present upstream, 'date' and value_name

    Raises:
        SchemaError: If no date columns or no country column are present
    """
    dates = date_columns(raw.columns)
    if not dates:
        raise SchemaError(DATASET_NAME, ["<m/d/yy date columns>"])

    frame = raw.rename(columns=_ID_RENAMES)
    require_columns(frame, ["province_state", "country_region"], DATASET_NAME)
    id_cols = [c for c in _ID_ORDER if c in frame.columns]

    long = frame.melt(id_vars=id_cols, value_vars=dates, var_name="date", value_name=value_name)
    long["date"] = pd.to_datetime(long["date"], format="%m/%d/%y")
    long[value_name] = pd.to_numeric(long[value_name], errors="coerce")

    # Blank province/county means the row covers the whole country/state.
    for col in _TEXT_KEYS:
        if col in long.columns:
            long[col] = long[col].fillna("").astype(str).str.strip()
    if "combined_key" not in long.columns:
        long["combined_key"] = [
            f"{p}, {c}" if p else c
            for p, c in zip(long["province_state"], long["country_region"])
        ]
    if "population" in long.columns:
        long["population"] = pd.to_numeric(long["population"], errors="coerce")
    return long


def attach_population(long: pd.DataFrame, lookup: pd.DataFrame) -> pd.DataFrame:
    """Fill the population column of global rows from the UID lookup table.

    Matches on (province_state, country_region); lookup rows without a
    province are country totals.
    """
    table = lookup.rename(columns=_ID_RENAMES)
    require_columns(table, ["province_state", "country_region", "population"], DATASET_NAME)
    if "admin2" in table.columns:
        # County rows would duplicate US state matches.
        table = table[table["admin2"].isna() | (table["admin2"].astype(str).str.strip() == "")]
    table = table[["province_state", "country_region", "population"]].copy()
    for col in ("province_state", "country_region"):
        table[col] = table[col].fillna("").astype(str).str.strip()
    table["population"] = pd.to_numeric(table["population"], errors="coerce")
    table = table.drop_duplicates(subset=["province_state", "country_region"])

    merged = long.drop(columns=["population"], errors="ignore").merge(
        table, on=["province_state", "country_region"], how="left"
    )
    missing = merged.loc[merged["population"].isna(), "combined_key"].nunique()
    if missing:
        logger.info("%s: no population for %d location(s)", DATASET_NAME, missing)
    return merged


def combine_cases_deaths(cases_long: pd.DataFrame, deaths_long: pd.DataFrame) -> pd.DataFrame:
    """Inner-join long cases and deaths tables on location keys and date.

    Population comes from whichever side carries it (the US deaths file).
    """
    keys = [
        c for c in ("uid", "province_state", "country_region", "admin2", "combined_key")
        if c in cases_long.columns and c in deaths_long.columns
    ]
    left = cases_long.drop(columns=["population"], errors="ignore")
    right_cols = keys + ["date", "deaths"]
    if "population" in deaths_long.columns:
        right_cols.append("population")
    elif "population" in cases_long.columns:
        left = cases_long
    combined = left.merge(deaths_long[right_cols], on=keys + ["date"], how="inner")
    return combined


def tidy_covid(
    cases_raw: pd.DataFrame,
    deaths_raw: pd.DataFrame,
    lookup: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Reshape and join the cases/deaths archives of one scope.

    Args:
        cases_raw: Wide confirmed-cases file
        deaths_raw: Wide deaths file
        lookup: Optional UID lookup table, used when no population column exists

    Returns:
        Long tidy DataFrame sorted by location and date

    Raises:
        SchemaError: If either file lacks date or id columns
    """
    cases = melt_time_series(cases_raw, "cases")
    deaths = melt_time_series(deaths_raw, "deaths")
    combined = combine_cases_deaths(cases, deaths)

    if "population" not in combined.columns:
        if lookup is not None:
            combined = attach_population(combined, lookup)
        else:
            combined["population"] = float("nan")

    before = len(combined)
    combined = combined.dropna(subset=["date", "cases", "deaths", "country_region"])
    dropped = before - len(combined)
    if dropped:
        logger.info("%s: dropped %d of %d rows with missing values", DATASET_NAME, dropped, before)

    columns = [c for c in _ID_ORDER if c in combined.columns] + ["date", "cases", "deaths"]
    combined = combined[columns].sort_values(["country_region", "province_state", "combined_key", "date"])
    return combined.reset_index(drop=True)
