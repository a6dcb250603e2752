"""Report layer for trendlab.

Modules:
    - charts: plotly figures
    - narrative: Findings and bias discussion
    - builder: Report containers, HTML/JSON rendering
"""

from trendlab.report.builder import CovidReport, ReportBuilder, ShootingReport, json_safe
from trendlab.report.narrative import Finding, covid_findings, format_findings, shooting_findings

__all__ = [
    "CovidReport",
    "ReportBuilder",
    "ShootingReport",
    "json_safe",
    "Finding",
    "covid_findings",
    "format_findings",
    "shooting_findings",
]
