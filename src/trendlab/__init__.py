"""trendlab — seasonal-trend analysis of public incident and case-count data.

Two linear pipelines over static CSV snapshots:
    - NYPD shooting incidents: STL decomposition + trend/harmonic regression
    - JHU CSSE COVID-19 time series: reshape, rolling averages, LOESS smoothing
"""

__version__ = "0.1.0"
