"""Tests for JHU CSSE wide-to-long reshaping."""

import numpy as np
import pandas as pd
import pytest

from trendlab.datasets import (
    SchemaError,
    attach_population,
    combine_cases_deaths,
    melt_time_series,
    tidy_covid,
)
from trendlab.datasets.covid import date_columns


def small_global(values: list) -> pd.DataFrame:
    return pd.DataFrame({
        "Province/State": [np.nan, "Quebec"],
        "Country/Region": ["Italy", "Canada"],
        "Lat": [41.9, 52.9],
        "Long": [12.6, -73.5],
        "1/22/20": [0, values[0]],
        "1/23/20": [2, values[1]],
        "1/24/20": [5, values[2]],
    })


class TestDateColumns:
    def test_picks_date_headers_in_order(self):
        cols = pd.Index(["UID", "Lat", "Long_", "1/22/20", "1/23/20", "12/31/21", "Combined_Key"])
        assert date_columns(cols) == ["1/22/20", "1/23/20", "12/31/21"]

    def test_no_dates(self):
        assert date_columns(pd.Index(["a", "b"])) == []


class TestMeltTimeSeries:
    """Test reshaping of one wide file."""

    def test_global_layout(self):
        long = melt_time_series(small_global([1, 1, 3]), "cases")

        assert len(long) == 6
        assert {"province_state", "country_region", "combined_key", "date", "cases"} <= set(long.columns)
        assert "Lat" not in long.columns
        assert long["date"].min() == pd.Timestamp("2020-01-22")
        assert long["date"].max() == pd.Timestamp("2020-01-24")

    def test_blank_province_and_combined_key(self):
        long = melt_time_series(small_global([1, 1, 3]), "cases")

        italy = long[long["country_region"] == "Italy"]
        assert (italy["province_state"] == "").all()
        assert (italy["combined_key"] == "Italy").all()
        quebec = long[long["province_state"] == "Quebec"]
        assert (quebec["combined_key"] == "Quebec, Canada").all()

    def test_values_follow_dates(self):
        long = melt_time_series(small_global([1, 1, 3]), "cases")
        italy = long[long["country_region"] == "Italy"].sort_values("date")
        assert italy["cases"].tolist() == [0, 2, 5]

    def test_non_numeric_values_become_nan(self):
        long = melt_time_series(small_global([1, "n/a", 3]), "cases")
        quebec = long[long["province_state"] == "Quebec"].sort_values("date")
        assert np.isnan(quebec["cases"].iloc[1])

    def test_us_layout_keeps_ids(self, us_wide):
        _, deaths_raw = us_wide
        long = melt_time_series(deaths_raw, "deaths")

        assert {"uid", "admin2", "population"} <= set(long.columns)
        assert long["population"].notna().all()
        assert len(long) == len(deaths_raw) * 60

    def test_no_date_columns(self):
        with pytest.raises(SchemaError, match="date columns"):
            melt_time_series(pd.DataFrame({"Country/Region": ["Italy"]}), "cases")

    def test_missing_country_column(self):
        raw = small_global([1, 1, 3]).drop(columns=["Country/Region"])
        with pytest.raises(SchemaError) as exc_info:
            melt_time_series(raw, "cases")
        assert exc_info.value.missing == ["country_region"]


class TestCombine:
    """Test joining cases with deaths."""

    def test_inner_join_on_dates(self):
        cases = melt_time_series(small_global([1, 1, 3]), "cases")
        deaths_raw = small_global([0, 0, 1]).drop(columns=["1/24/20"])
        deaths = melt_time_series(deaths_raw, "deaths")

        combined = combine_cases_deaths(cases, deaths)

        assert len(combined) == 4
        assert combined["date"].max() == pd.Timestamp("2020-01-23")
        assert {"cases", "deaths"} <= set(combined.columns)

    def test_population_taken_from_deaths(self, us_wide):
        cases = melt_time_series(us_wide[0], "cases")
        deaths = melt_time_series(us_wide[1], "deaths")

        combined = combine_cases_deaths(cases, deaths)

        assert combined["population"].notna().all()
        assert len(combined) == len(cases)


class TestAttachPopulation:
    def test_matches_country_and_province(self, lookup_table):
        long = melt_time_series(small_global([1, 1, 3]), "cases")
        merged = attach_population(long, lookup_table)

        italy = merged.loc[merged["country_region"] == "Italy", "population"].unique()
        quebec = merged.loc[merged["province_state"] == "Quebec", "population"].unique()
        assert italy.tolist() == [60_000_000]
        assert quebec.tolist() == [8_500_000]
        assert len(merged) == len(long)

    def test_unmatched_locations_get_nan(self, lookup_table):
        raw = small_global([1, 1, 3])
        raw.loc[0, "Country/Region"] = "Atlantis"
        merged = attach_population(melt_time_series(raw, "cases"), lookup_table)

        assert merged.loc[merged["country_region"] == "Atlantis", "population"].isna().all()


class TestTidyCovid:
    """Test the complete reshape for both scopes."""

    def test_us(self, us_wide):
        tidy = tidy_covid(*us_wide)

        assert len(tidy) == 8 * 60
        assert list(tidy.columns[-3:]) == ["date", "cases", "deaths"]
        assert tidy["population"].notna().all()
        assert set(tidy["province_state"]) == {"New York", "California", "Texas", "Vermont"}

    def test_global_with_lookup(self, global_wide, lookup_table):
        tidy = tidy_covid(*global_wide, lookup=lookup_table)

        assert len(tidy) == 5 * 60
        assert tidy["population"].notna().all()
        assert "uid" not in tidy.columns

    def test_global_without_lookup(self, global_wide):
        tidy = tidy_covid(*global_wide)
        assert tidy["population"].isna().all()

    def test_drops_rows_without_values(self):
        cases = small_global([1, "n/a", 3])
        deaths = small_global([0, 0, 1])

        tidy = tidy_covid(cases, deaths)

        assert len(tidy) == 5
        assert not tidy[["cases", "deaths"]].isna().any().any()

    def test_sorted_by_location_and_date(self, us_wide):
        tidy = tidy_covid(*us_wide)
        for _, group in tidy.groupby("combined_key"):
            assert group["date"].is_monotonic_increasing
