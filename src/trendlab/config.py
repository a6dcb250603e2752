"""Configuration management for trendlab.

Loads settings from environment variables (and an optional .env file)
using Pydantic. Both upstream datasets are public, so no secrets are
required.

Usage:
    from trendlab.config import settings

    print(settings.data_dir)
    print(settings.rolling_window)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SHOOTING_CSV_URL = (
    "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
)
JHU_CSSE_BASE_URL = (
    "https://raw.githubusercontent.com/CSSEGISandData/COVID-19/master/csse_covid_19_data"
)

ROLLING_WINDOW_RANGE = (2, 60)  # days, inclusive


class Settings(BaseSettings):
    """trendlab configuration from environment variables.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
        data_dir: Directory for downloaded CSVs and tidy Parquet snapshots
        output_dir: Directory for rendered reports
        shooting_url: NYPD Shooting Incident Data (Historic) CSV export
        covid_base_url: Root of the JHU CSSE csse_covid_19_data tree
        http_timeout: Download timeout in seconds
        http_rate_limit: Max requests per second per client
        refresh_shootings: Re-download the shooting CSV on every run
        stl_period: Seasonal period of the monthly series (months)
        stl_robust: Use robust (outlier-downweighting) STL fitting
        harmonics: Number of sine/cosine pairs in the harmonic regression
        rolling_window: Window for daily rolling averages (days)
        loess_frac: Fraction of observations used per LOESS fit
        covid_scope: 'us' (state/county files) or 'global' (country files)
        covid_region: Region to chart (state or country; None = national total)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # System Settings
    log_level: str = Field(default="INFO", description="Logging level")
    data_dir: str = Field(default="data", description="Raw CSV + Parquet cache directory")
    output_dir: str = Field(default="reports", description="Rendered report directory")

    # Upstream sources
    shooting_url: str = Field(default=SHOOTING_CSV_URL, description="NYPD shooting CSV URL")
    covid_base_url: str = Field(default=JHU_CSSE_BASE_URL, description="JHU CSSE data root")
    http_timeout: float = Field(default=120.0, gt=0, description="Download timeout (seconds)")
    http_rate_limit: int = Field(default=5, ge=1, description="Requests/second per client")
    refresh_shootings: bool = Field(
        default=True,
        description="Always re-download the shooting CSV (COVID archives are never refreshed)",
    )

    # Shooting analysis
    stl_period: int = Field(default=12, description="STL seasonal period (months)")
    stl_robust: bool = Field(default=True, description="Robust STL fitting")
    harmonics: int = Field(default=2, ge=1, le=5, description="Harmonic regression order")

    # COVID analysis
    rolling_window: int = Field(
        default=7,
        ge=ROLLING_WINDOW_RANGE[0],
        le=ROLLING_WINDOW_RANGE[1],
        description="Rolling average window (days)",
    )
    loess_frac: float = Field(default=0.1, description="LOESS span as a fraction of the series")
    covid_scope: str = Field(default="us", description="'us' or 'global'")
    covid_region: str | None = Field(
        default=None,
        description="State (us) or country (global) to chart; None = national/world total",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper

    @field_validator("covid_scope")
    @classmethod
    def validate_covid_scope(cls, v: str) -> str:
        """Ensure COVID scope is valid."""
        v_lower = v.lower()
        if v_lower not in {"us", "global"}:
            raise ValueError(f"covid_scope must be 'us' or 'global', got '{v}'")
        return v_lower

    @field_validator("loess_frac")
    @classmethod
    def validate_loess_frac(cls, v: float) -> float:
        """LOESS span must be a fraction in (0, 1]."""
        if not 0 < v <= 1:
            raise ValueError(f"loess_frac must be in (0, 1], got {v}")
        return v

    @field_validator("stl_period")
    @classmethod
    def validate_stl_period(cls, v: int) -> int:
        """STL needs at least two observations per cycle."""
        if v < 2:
            raise ValueError(f"stl_period must be >= 2, got {v}")
        return v


# Global settings instance, loaded once at import
settings = Settings()
