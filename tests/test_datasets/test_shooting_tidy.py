"""Tests for NYPD shooting export tidying."""

import pandas as pd
import pytest

from trendlab.datasets import SchemaError, tidy_shootings
from trendlab.datasets.shooting import GROUPING_COLUMNS, TIDY_COLUMNS, UNKNOWN


def make_raw() -> pd.DataFrame:
    """Six victim rows: three usable, three with a broken grouping column."""
    return pd.DataFrame({
        "INCIDENT_KEY": [10, 10, 11, 12, 13, None],
        "OCCUR_DATE": ["01/05/2021", "01/05/2021", "12/31/2020", "not a date", "02/01/2021", "03/01/2021"],
        "OCCUR_TIME": ["21:30:00", "21:30:00", "03:15:00", "10:00:00", "10:00:00", "11:00:00"],
        "BORO": ["BRONX", "BRONX", " queens ", "BROOKLYN", "", "MANHATTAN"],
        "PRECINCT": [44, 44, 105, 75, 1, 14],
        "STATISTICAL_MURDER_FLAG": ["true", "false", False, "false", "true", "false"],
        "PERP_AGE_GROUP": ["1020", "1020", "25-44", None, "18-24", "(null)"],
        "PERP_SEX": ["M", "M", "U", None, "F", "M"],
        "PERP_RACE": ["(null)", "(null)", "U", "", "BLACK", "WHITE"],
        "VIC_AGE_GROUP": ["18-24", "<18", "45-64", "25-44", "65+", "18-24"],
        "VIC_SEX": ["M", "F", "M", "M", "F", "M"],
        "VIC_RACE": ["black", "BLACK", "WHITE HISPANIC", "WHITE", "ASIAN / PACIFIC ISLANDER", "BLACK"],
    })


class TestTidyShootings:
    """Test column selection, typing and normalization."""

    def test_columns_and_types(self):
        tidy = tidy_shootings(make_raw())

        assert list(tidy.columns) == TIDY_COLUMNS
        assert str(tidy["incident_key"].dtype) == "Int64"
        assert str(tidy["precinct"].dtype) == "Int64"
        assert pd.api.types.is_datetime64_any_dtype(tidy["occurred_on"])
        assert pd.api.types.is_datetime64_any_dtype(tidy["occurred_at"])
        assert tidy["is_murder"].dtype == bool

    def test_drops_rows_missing_grouping_columns(self):
        """Bad date, blank borough and missing key are dropped; nothing else is."""
        tidy = tidy_shootings(make_raw())

        assert len(tidy) == 3
        assert not tidy[GROUPING_COLUMNS].isna().any().any()
        assert sorted(tidy["incident_key"].unique().tolist()) == [10, 11]

    def test_sorted_by_occurrence(self):
        tidy = tidy_shootings(make_raw())

        assert tidy["occurred_on"].is_monotonic_increasing
        assert tidy.loc[0, "incident_key"] == 11
        assert tidy.index.tolist() == [0, 1, 2]

    def test_occurred_at_combines_date_and_time(self):
        tidy = tidy_shootings(make_raw())
        first = tidy[tidy["incident_key"] == 11].iloc[0]

        assert first["occurred_at"] == pd.Timestamp("2020-12-31 03:15:00")
        assert first["occurred_on"] == pd.Timestamp("2020-12-31")

    def test_borough_normalized(self):
        tidy = tidy_shootings(make_raw())
        assert set(tidy["borough"]) == {"BRONX", "QUEENS"}

    def test_murder_flag_parsing(self):
        """Text and boolean flags are both understood."""
        tidy = tidy_shootings(make_raw())
        flags = tidy.set_index(["incident_key", "vic_sex"])["is_murder"]

        assert flags[(10, "M")]
        assert not flags[(10, "F")]
        assert not flags[(11, "M")]

    def test_unknown_markers_collapse(self):
        """Null markers, 'U' and blanks become UNKNOWN instead of being dropped."""
        tidy = tidy_shootings(make_raw())

        assert set(tidy["perp_race"]) == {UNKNOWN}
        assert tidy.loc[tidy["incident_key"] == 11, "perp_sex"].item() == UNKNOWN
        assert tidy["vic_race"].tolist().count("BLACK") == 2

    def test_invalid_age_group_becomes_unknown(self):
        tidy = tidy_shootings(make_raw())
        assert tidy.loc[tidy["incident_key"] == 10, "perp_age_group"].unique().tolist() == [UNKNOWN]
        assert tidy.loc[tidy["incident_key"] == 11, "perp_age_group"].item() == "25-44"

    def test_optional_columns_may_be_absent(self):
        """Only the required columns have to exist upstream."""
        raw = make_raw()[["INCIDENT_KEY", "OCCUR_DATE", "OCCUR_TIME", "BORO", "STATISTICAL_MURDER_FLAG"]]
        tidy = tidy_shootings(raw)

        assert tidy["precinct"].isna().all()
        assert (tidy["vic_race"] == UNKNOWN).all()

    def test_missing_time_keeps_row(self):
        raw = make_raw()
        raw.loc[2, "OCCUR_TIME"] = None
        tidy = tidy_shootings(raw)

        row = tidy[tidy["incident_key"] == 11].iloc[0]
        assert pd.isna(row["occurred_at"])
        assert row["occurred_on"] == pd.Timestamp("2020-12-31")

    def test_missing_required_column(self):
        raw = make_raw().drop(columns=["BORO", "OCCUR_TIME"])

        with pytest.raises(SchemaError) as exc_info:
            tidy_shootings(raw)

        assert exc_info.value.missing == ["OCCUR_TIME", "BORO"]
        assert "nypd_shootings" in str(exc_info.value)


class TestTidySyntheticExport:
    """Properties on a larger synthetic export."""

    def test_row_count_preserved(self, shooting_raw):
        tidy = tidy_shootings(shooting_raw)
        assert len(tidy) == len(shooting_raw)

    def test_no_null_markers_survive(self, shooting_raw):
        tidy = tidy_shootings(shooting_raw)
        for column in ("perp_race", "perp_sex", "vic_race"):
            assert not tidy[column].isin(["(NULL)", "U", ""]).any()

    def test_age_groups_restricted(self, shooting_raw):
        tidy = tidy_shootings(shooting_raw)
        allowed = {"<18", "18-24", "25-44", "45-64", "65+", UNKNOWN}
        assert set(tidy["perp_age_group"]) <= allowed
        assert set(tidy["vic_age_group"]) <= allowed

    def test_after_csv_round_trip(self, shooting_raw, tmp_path):
        """Blank cells read back as NaN are handled the same way."""
        path = tmp_path / "raw.csv"
        shooting_raw.to_csv(path, index=False)
        tidy = tidy_shootings(pd.read_csv(path, low_memory=False))

        assert len(tidy) == len(shooting_raw)
        assert (tidy["perp_race"] == UNKNOWN).any()
