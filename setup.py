"""Setup configuration for trendlab."""

from setuptools import find_packages, setup

setup(
    name="trendlab",
    version="0.1.0",
    description="Seasonal-trend analysis of NYPD shootings and JHU COVID-19 time series",
    author="trendlab contributors",
    python_requires=">=3.11",
    packages=find_packages(where="src", include=["trendlab*"]),
    package_dir={"": "src"},
    package_data={"trendlab.report": ["templates/*.html.j2"]},
    install_requires=[
        "httpx>=0.27.0",
        "numpy>=1.26.0",
        "pandas>=2.2.0",
        "pydantic>=2.6.0",
        "pydantic-settings>=2.1.0",
        "pyarrow>=15.0.0",
        "plotly>=5.18.0",
        "statsmodels>=0.14.1",
        "jinja2>=3.1.0",
    ],
    entry_points={
        "console_scripts": [
            "trendlab=trendlab.cli:cli_entry",
        ],
    },
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-mock>=3.12.0",
            "respx>=0.21.0",
            "python-dotenv>=1.0.0",
        ],
    },
)
