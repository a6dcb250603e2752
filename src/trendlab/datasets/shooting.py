"""NYPD Shooting Incident Data (Historic): raw export -> tidy victim table.

The export has one row per shooting victim; several rows share an
INCIDENT_KEY when one incident injures more than one person.

Tidy columns:
    incident_key, occurred_at, occurred_on, borough, precinct, is_murder,
    perp_age_group, perp_sex, perp_race, vic_age_group, vic_sex, vic_race

Rows missing a grouping column (incident_key, occurred_on, borough) are
dropped. Demographic columns are never dropped for missingness: blank,
"(null)" and "U" markers collapse into "UNKNOWN" so the unknown share stays
visible in the analysis.
"""

import logging

import pandas as pd

from trendlab.datasets.schema import require_columns

logger = logging.getLogger(__name__)

DATASET_NAME = "nypd_shootings"
RAW_FILENAME = "nypd_shooting_incidents.csv"

REQUIRED_COLUMNS = [
    "INCIDENT_KEY",
    "OCCUR_DATE",
    "OCCUR_TIME",
    "BORO",
    "STATISTICAL_MURDER_FLAG",
]

DEMOGRAPHIC_COLUMNS = {
    "PERP_AGE_GROUP": "perp_age_group",
    "PERP_SEX": "perp_sex",
    "PERP_RACE": "perp_race",
    "VIC_AGE_GROUP": "vic_age_group",
    "VIC_SEX": "vic_sex",
    "VIC_RACE": "vic_race",
}

GROUPING_COLUMNS = ["incident_key", "occurred_on", "borough"]

TIDY_COLUMNS = [
    "incident_key",
    "occurred_at",
    "occurred_on",
    "borough",
    "precinct",
    "is_murder",
    *DEMOGRAPHIC_COLUMNS.values(),
]

UNKNOWN = "UNKNOWN"
_UNKNOWN_MARKERS = {"", "(NULL)", "NULL", "NAN", "NONE", "U", "UNKNOWN"}
_AGE_GROUPS = {"<18", "18-24", "25-44", "45-64", "65+"}
_TRUE_MARKERS = {"true", "y", "yes", "1"}


def _normalize_category(values: pd.Series) -> pd.Series:
    """Upper-case a categorical column and fold unknown markers into UNKNOWN."""
    cleaned = values.astype("string").str.strip().str.upper().fillna("").astype(str)
    return cleaned.where(~cleaned.isin(_UNKNOWN_MARKERS), UNKNOWN)


def _normalize_age_group(values: pd.Series) -> pd.Series:
    """Keep the published age brackets; typos like '1020' become UNKNOWN."""
    cleaned = _normalize_category(values)
    return cleaned.where(cleaned.isin(_AGE_GROUPS), UNKNOWN)


def _parse_flag(values: pd.Series) -> pd.Series:
    """STATISTICAL_MURDER_FLAG arrives as bool or 'true'/'false' text."""
    return values.astype("string").str.strip().str.lower().isin(_TRUE_MARKERS).astype(bool)


def tidy_shootings(raw: pd.DataFrame) -> pd.DataFrame:
    """Select, rename and type the columns used by the shooting analysis.

    Args:
        raw: DataFrame read straight from the NYC Open Data CSV export

    Returns:
        Tidy DataFrame with TIDY_COLUMNS, sorted by occurrence time

    Raises:
        SchemaError: If a required upstream column is missing
    """
    require_columns(raw, REQUIRED_COLUMNS, DATASET_NAME)

    tidy = pd.DataFrame(index=raw.index)
    tidy["incident_key"] = pd.to_numeric(raw["INCIDENT_KEY"], errors="coerce").astype("Int64")

    occurred_on = pd.to_datetime(raw["OCCUR_DATE"], format="%m/%d/%Y", errors="coerce")
    occurred_time = pd.to_timedelta(raw["OCCUR_TIME"].astype(str), errors="coerce")
    tidy["occurred_at"] = occurred_on + occurred_time
    tidy["occurred_on"] = occurred_on

    borough = raw["BORO"].astype("string").str.strip().str.upper()
    tidy["borough"] = borough.replace("", pd.NA)

    if "PRECINCT" in raw.columns:
        tidy["precinct"] = pd.to_numeric(raw["PRECINCT"], errors="coerce").astype("Int64")
    else:
        tidy["precinct"] = pd.Series(pd.NA, index=raw.index, dtype="Int64")

    tidy["is_murder"] = _parse_flag(raw["STATISTICAL_MURDER_FLAG"])

    for source, target in DEMOGRAPHIC_COLUMNS.items():
        column = raw[source] if source in raw.columns else pd.Series(pd.NA, index=raw.index)
        if target.endswith("age_group"):
            tidy[target] = _normalize_age_group(column)
        else:
            tidy[target] = _normalize_category(column)

    before = len(tidy)
    tidy = tidy.dropna(subset=GROUPING_COLUMNS)
    dropped = before - len(tidy)
    if dropped:
        logger.info("%s: dropped %d of %d rows missing grouping columns", DATASET_NAME, dropped, before)

    tidy["borough"] = tidy["borough"].astype(str)
    tidy = tidy.sort_values(["occurred_on", "occurred_at", "incident_key"], na_position="last")
    return tidy[TIDY_COLUMNS].reset_index(drop=True)
