"""Report containers and HTML/JSON rendering.

A report bundles everything a pipeline produced: coverage numbers, model
fits, tables, plotly figures and narrative findings. ``format_text`` gives
the terminal version, ``to_dict`` the JSON summary, and ``ReportBuilder``
writes both the HTML document and the JSON file to the output directory.
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from jinja2 import Environment, FileSystemLoader
from plotly.offline import get_plotlyjs

from trendlab.analysis.decomposition import DecompositionResult
from trendlab.analysis.models import ModelFit
from trendlab.report.narrative import Finding, format_findings

logger = logging.getLogger(__name__)

_SECTIONS = ("coverage", "pattern", "model", "bias")


def json_safe(value: Any) -> Any:
    """Recursively convert numpy/pandas scalars and NaN into JSON-friendly values."""
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return None if not math.isfinite(float(value)) else float(value)
    if isinstance(value, (pd.Timestamp, datetime)):
        return value.isoformat()
    if isinstance(value, np.bool_):
        return bool(value)
    return value


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")


def _format_models(models: dict[str, ModelFit]) -> list[str]:
    lines = []
    for name, fit in models.items():
        lines.append(f"{name}: {fit.formula}")
        lines.append(f"  R²={fit.rsquared:.3f}  AIC={fit.aic:.1f}  n={fit.nobs}")
        for param, value in fit.params.items():
            lines.append(f"  {param:<28} {value:>12.4f}  (p={fit.pvalues[param]:.3g})")
    return lines


@dataclass
class ShootingReport:
    """Output of the NYPD shooting pipeline.

    Attributes:
        coverage: Row counts, date span, dropped rows
        monthly: Monthly incident counts
        decomposition: STL components of the monthly counts
        models: Fitted models keyed by name
        tables: Breakdown tables (Series or DataFrames)
        figures: plotly figures keyed by name
        findings: Narrative commentary
    """

    kind: ClassVar[str] = "shootings"

    coverage: dict[str, Any]
    monthly: pd.Series
    decomposition: DecompositionResult
    models: dict[str, ModelFit]
    tables: dict[str, pd.Series | pd.DataFrame] = field(default_factory=dict)
    figures: dict[str, go.Figure] = field(default_factory=dict)
    findings: list[Finding] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def title(self) -> str:
        return "NYPD Shooting Incidents: Seasonality and Trend"

    @property
    def slug(self) -> str:
        return "nypd_shootings"

    @property
    def source(self) -> str:
        return "NYC Open Data, NYPD Shooting Incident Data (Historic)"

    def format_text(self) -> str:
        """Format the report for the terminal.

        Example:
            === NYPD Shooting Incidents: Seasonality and Trend ===

            Coverage: 27,312 victim records, 2006-01-01 .. 2023-12-31
            STL: peak July, trough February (seasonal strength 0.71)
            ...
        """
        d = self.decomposition.to_dict()
        lines = [f"=== {self.title} ===", ""]
        lines.append(
            f"Coverage: {self.coverage['records']:,} victim records, "
            f"{self.coverage['incidents']:,} incidents, "
            f"{self.coverage['start']} .. {self.coverage['end']}"
        )
        lines.append(
            f"STL: peak {d['peak']}, trough {d['trough']} "
            f"(seasonal strength {d['seasonal_strength']:.2f}, trend strength {d['trend_strength']:.2f})"
        )
        lines.append("")
        lines.extend(_format_models(self.models))
        lines.append("")
        lines.append(format_findings(self.findings))
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return json_safe({
            "kind": self.kind,
            "title": self.title,
            "generated_at": self.generated_at,
            "coverage": self.coverage,
            "monthly": {ts.strftime("%Y-%m"): int(v) for ts, v in self.monthly.items()},
            "decomposition": self.decomposition.to_dict(),
            "models": {name: fit.to_dict() for name, fit in self.models.items()},
            "findings": [{"section": f.section, "text": f.text} for f in self.findings],
        })


@dataclass
class CovidReport:
    """Output of the COVID pipeline for one region.

    Attributes:
        scope: 'us' or 'global'
        region: Region charted (state/country name, or the scope total)
        coverage: Day counts, date span, final totals
        daily: Regional daily series with smoothing columns
        revisions: Days with downward revisions per cumulative column
        models: Fitted models keyed by name
        tables: Breakdown tables
        figures: plotly figures keyed by name
        findings: Narrative commentary
    """

    kind: ClassVar[str] = "covid"

    scope: str
    region: str
    coverage: dict[str, Any]
    daily: pd.DataFrame
    revisions: dict[str, int]
    models: dict[str, ModelFit] = field(default_factory=dict)
    tables: dict[str, pd.Series | pd.DataFrame] = field(default_factory=dict)
    figures: dict[str, go.Figure] = field(default_factory=dict)
    findings: list[Finding] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def title(self) -> str:
        return f"COVID-19 in {self.region}: Daily Cases, Rolling Averages and LOESS"

    @property
    def slug(self) -> str:
        return f"covid_{self.scope}_{_slug(self.region)}"

    @property
    def source(self) -> str:
        return "Johns Hopkins University CSSE COVID-19 time series"

    def format_text(self) -> str:
        """Format the report for the terminal."""
        lines = [f"=== {self.title} ===", ""]
        lines.append(
            f"Coverage: {self.coverage['days']:,} days, {self.coverage['start']} .. {self.coverage['end']}"
        )
        lines.append(
            f"Final totals: {self.coverage['cases']:,.0f} cases, {self.coverage['deaths']:,.0f} deaths"
        )
        lines.append(
            f"Downward revisions: cases {self.revisions.get('cases', 0)}, "
            f"deaths {self.revisions.get('deaths', 0)}"
        )
        if self.models:
            lines.append("")
            lines.extend(_format_models(self.models))
        lines.append("")
        lines.append(format_findings(self.findings))
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return json_safe({
            "kind": self.kind,
            "title": self.title,
            "scope": self.scope,
            "region": self.region,
            "generated_at": self.generated_at,
            "coverage": self.coverage,
            "revisions": self.revisions,
            "models": {name: fit.to_dict() for name, fit in self.models.items()},
            "findings": [{"section": f.section, "text": f.text} for f in self.findings],
        })


Report = ShootingReport | CovidReport


class ReportBuilder:
    """Renders reports to HTML (jinja2 + plotly) and JSON.

    Usage:
        builder = ReportBuilder(output_dir="reports")
        paths = builder.render(report)
        print(paths["html"])
    """

    def __init__(self, output_dir: str | Path = "reports") -> None:
        self.output_dir = Path(output_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_html(self, report: Report) -> str:
        """Render the HTML document as a string.

        The plotly.js bundle is inlined once in the head, so the file opens
        offline; each figure is a bare div plus its plot call.
        """
        grouped: dict[str, list[Finding]] = {}
        for section in _SECTIONS:
            items = [f for f in report.findings if f.section == section]
            if items:
                grouped[section] = items

        tables = {}
        for name, table in report.tables.items():
            frame = table.to_frame() if isinstance(table, pd.Series) else table
            tables[name] = frame.to_html(classes="data", float_format=lambda v: f"{v:,.3f}", border=0)

        figures = {
            name: fig.to_html(full_html=False, include_plotlyjs=False)
            for name, fig in report.figures.items()
        }

        template = self.env.get_template("report.html.j2")
        return template.render(
            title=report.title,
            source=report.source,
            generated_at=report.generated_at.strftime("%Y-%m-%d %H:%M"),
            plotlyjs=get_plotlyjs(),
            coverage=report.coverage,
            figures=figures,
            tables=tables,
            models=report.models,
            findings=grouped,
        )

    def render(self, report: Report) -> dict[str, Path]:
        """Write ``{slug}.html`` and ``{slug}.json`` into the output directory.

        Returns:
            Dictionary with 'html' and 'json' paths
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        html_path = self.output_dir / f"{report.slug}.html"
        json_path = self.output_dir / f"{report.slug}.json"

        html_path.write_text(self.render_html(report), encoding="utf-8")
        json_path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")

        logger.info("Wrote %s and %s", html_path, json_path)
        return {"html": html_path, "json": json_path}
