"""Synthetic upstream data shared across test packages.

The builders mimic the column layout of the real exports:
- NYPD Shooting Incident Data (Historic) CSV
- JHU CSSE time_series_covid19_{confirmed,deaths}_{US,global}.csv
- JHU CSSE UID_ISO_FIPS_LookUp_Table.csv
"""

import numpy as np
import pandas as pd
import pytest

BOROUGHS = ["BRONX", "BROOKLYN", "MANHATTAN", "QUEENS", "STATEN ISLAND"]
RACES = ["BLACK", "WHITE HISPANIC", "BLACK HISPANIC", "WHITE", "(null)", "U", ""]
AGE_GROUPS = ["<18", "18-24", "25-44", "45-64", "65+", "UNKNOWN", "1020"]


def make_shooting_raw(
    start: str = "2019-01-01",
    months: int = 36,
    base: float = 40.0,
    amplitude: float = 15.0,
    seed: int = 7,
) -> pd.DataFrame:
    """Raw shooting export with a seasonal cycle peaking in July.

    Roughly one incident in five has a second victim row sharing its key.
    """
    rng = np.random.default_rng(seed)
    rows = []
    key = 100000
    for month_start in pd.date_range(start, periods=months, freq="MS"):
        n = int(round(base + amplitude * np.cos(2 * np.pi * (month_start.month - 7) / 12)))
        for _ in range(n):
            key += 1
            day = month_start + pd.Timedelta(days=int(rng.integers(0, 28)))
            hour = int(rng.integers(0, 24))
            victims = 2 if rng.random() < 0.2 else 1
            boro = BOROUGHS[int(rng.integers(0, len(BOROUGHS)))]
            for _ in range(victims):
                rows.append({
                    "INCIDENT_KEY": key,
                    "OCCUR_DATE": day.strftime("%m/%d/%Y"),
                    "OCCUR_TIME": f"{hour:02d}:{int(rng.integers(0, 60)):02d}:00",
                    "BORO": boro,
                    "LOC_OF_OCCUR_DESC": "OUTSIDE",
                    "PRECINCT": int(rng.integers(1, 124)),
                    "JURISDICTION_CODE": 0,
                    "STATISTICAL_MURDER_FLAG": "true" if rng.random() < 0.2 else "false",
                    "PERP_AGE_GROUP": AGE_GROUPS[int(rng.integers(0, len(AGE_GROUPS)))],
                    "PERP_SEX": ["M", "F", "U", "(null)"][int(rng.integers(0, 4))],
                    "PERP_RACE": RACES[int(rng.integers(0, len(RACES)))],
                    "VIC_AGE_GROUP": AGE_GROUPS[int(rng.integers(0, 5))],
                    "VIC_SEX": ["M", "F"][int(rng.integers(0, 2))],
                    "VIC_RACE": RACES[int(rng.integers(0, 4))],
                    "Latitude": 40.7,
                    "Longitude": -73.9,
                })
    return pd.DataFrame(rows)


def _date_headers(start: str, days: int) -> list[str]:
    return [f"{d.month}/{d.day}/{d:%y}" for d in pd.date_range(start, periods=days, freq="D")]


def _cumulative(rng, days: int, scale: float) -> np.ndarray:
    daily = rng.poisson(scale * (1 + np.sin(np.linspace(0, 3 * np.pi, days)) ** 2))
    return np.cumsum(daily)


US_STATES = {
    "New York": 19_000_000,
    "California": 39_000_000,
    "Texas": 29_000_000,
    "Vermont": 620_000,
}


def make_us_wide(days: int = 60, seed: int = 3) -> tuple[pd.DataFrame, pd.DataFrame]:
    """US cases/deaths files: two counties per state; deaths carry Population."""
    rng = np.random.default_rng(seed)
    headers = _date_headers("2020-03-01", days)
    cases_rows, deaths_rows = [], []
    uid = 84000000
    for state, population in US_STATES.items():
        for county in ("North", "South"):
            uid += 1
            ids = {
                "UID": uid,
                "iso2": "US",
                "iso3": "USA",
                "code3": 840,
                "FIPS": float(uid % 100000),
                "Admin2": f"{county} County",
                "Province_State": state,
                "Country_Region": "US",
                "Lat": 40.0,
                "Long_": -75.0,
                "Combined_Key": f"{county} County, {state}, US",
            }
            cases = _cumulative(rng, days, population / 200_000)
            deaths = (cases * rng.uniform(0.01, 0.03)).astype(int)
            cases_rows.append({**ids, **dict(zip(headers, cases))})
            deaths_rows.append({**ids, "Population": population // 2, **dict(zip(headers, deaths))})
    return pd.DataFrame(cases_rows), pd.DataFrame(deaths_rows)


GLOBAL_COUNTRIES = {
    ("", "Italy"): 60_000_000,
    ("", "Germany"): 83_000_000,
    ("", "Japan"): 126_000_000,
    ("Quebec", "Canada"): 8_500_000,
    ("Ontario", "Canada"): 14_500_000,
}


def make_global_wide(days: int = 60, seed: int = 5) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Global cases/deaths files: no UID, no Population."""
    rng = np.random.default_rng(seed)
    headers = _date_headers("2020-03-01", days)
    cases_rows, deaths_rows = [], []
    for (province, country), population in GLOBAL_COUNTRIES.items():
        ids = {
            "Province/State": province or np.nan,
            "Country/Region": country,
            "Lat": 45.0,
            "Long": 10.0,
        }
        cases = _cumulative(rng, days, population / 500_000)
        deaths = (cases * rng.uniform(0.01, 0.05)).astype(int)
        cases_rows.append({**ids, **dict(zip(headers, cases))})
        deaths_rows.append({**ids, **dict(zip(headers, deaths))})
    return pd.DataFrame(cases_rows), pd.DataFrame(deaths_rows)


def make_lookup() -> pd.DataFrame:
    """UID lookup table with country, province and one county row."""
    rows = []
    for (province, country), population in GLOBAL_COUNTRIES.items():
        rows.append({
            "UID": len(rows) + 1,
            "Admin2": np.nan,
            "Province_State": province or np.nan,
            "Country_Region": country,
            "Combined_Key": f"{province}, {country}" if province else country,
            "Population": population,
        })
    rows.append({
        "UID": 999,
        "Admin2": "Some County",
        "Province_State": np.nan,
        "Country_Region": "Italy",
        "Combined_Key": "Some County, Italy",
        "Population": 1,
    })
    return pd.DataFrame(rows)


@pytest.fixture
def shooting_raw() -> pd.DataFrame:
    return make_shooting_raw()


@pytest.fixture
def us_wide() -> tuple[pd.DataFrame, pd.DataFrame]:
    return make_us_wide()


@pytest.fixture
def global_wide() -> tuple[pd.DataFrame, pd.DataFrame]:
    return make_global_wide()


@pytest.fixture
def lookup_table() -> pd.DataFrame:
    return make_lookup()
