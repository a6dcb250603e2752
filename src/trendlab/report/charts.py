"""Plotly figures for the shooting and COVID reports.

Every function returns a ``go.Figure`` and has no side effects; the report
builder decides how figures are embedded.
"""

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from trendlab.analysis.decomposition import DecompositionResult
from trendlab.analysis.models import ModelFit

_LAYOUT = dict(
    template="plotly_white",
    margin=dict(l=50, r=20, t=60, b=40),
    hovermode="x unified",
)

_OBSERVED = "#607D8B"
_TREND = "#f44336"
_SEASONAL = "#2196F3"
_RESID = "#9E9E9E"
_SMOOTH = "#FF9800"


def stl_components(decomposition: DecompositionResult, title: str = "STL decomposition") -> go.Figure:
    """Four stacked panels: observed, trend, seasonal, residual."""
    fig = make_subplots(
        rows=4, cols=1, shared_xaxes=True, vertical_spacing=0.04,
        subplot_titles=("Observed", "Trend", "Seasonal", "Residual"),
    )
    frame = decomposition.to_frame()
    fig.add_trace(go.Scatter(x=frame.index, y=frame["observed"], mode="lines",
                             line=dict(color=_OBSERVED), name="Observed"), row=1, col=1)
    fig.add_trace(go.Scatter(x=frame.index, y=frame["trend"], mode="lines",
                             line=dict(color=_TREND, width=2), name="Trend"), row=2, col=1)
    fig.add_trace(go.Scatter(x=frame.index, y=frame["seasonal"], mode="lines",
                             line=dict(color=_SEASONAL), name="Seasonal"), row=3, col=1)
    fig.add_trace(go.Bar(x=frame.index, y=frame["resid"], marker_color=_RESID,
                         name="Residual"), row=4, col=1)
    fig.update_layout(title=title, height=800, showlegend=False, **_LAYOUT)
    return fig


def counts_with_fits(
    counts: pd.Series,
    fits: list[ModelFit],
    title: str = "Monthly incidents",
) -> go.Figure:
    """Observed counts with the in-sample fitted values of each model."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=counts.index, y=counts.values, mode="lines+markers",
        marker=dict(size=4), line=dict(color=_OBSERVED), name=counts.name or "observed",
    ))
    colors = [_TREND, _SMOOTH, _SEASONAL]
    for i, fit in enumerate(fits):
        fig.add_trace(go.Scatter(
            x=fit.fitted.index, y=fit.fitted.values, mode="lines",
            line=dict(color=colors[i % len(colors)], width=2),
            name=f"{fit.name} (R²={fit.rsquared:.2f})",
        ))
    fig.update_layout(title=title, yaxis_title=counts.name, **_LAYOUT)
    return fig


def category_bars(counts: pd.Series, title: str, horizontal: bool = False) -> go.Figure:
    """Bar chart of a categorical breakdown."""
    labels = [str(i) for i in counts.index]
    if horizontal:
        bar = go.Bar(x=counts.values, y=labels, orientation="h", marker_color=_SEASONAL)
    else:
        bar = go.Bar(x=labels, y=counts.values, marker_color=_SEASONAL)
    fig = go.Figure(bar)
    fig.update_layout(title=title, **{**_LAYOUT, "hovermode": "closest"})
    return fig


def yearly_by_category(df: pd.DataFrame, column: str, title: str) -> go.Figure:
    """One line per category of yearly incident counts.

    Args:
        df: Tidy shooting table
        column: Category column (e.g. 'borough')
    """
    table = (
        df.assign(year=df["occurred_on"].dt.year)
        .groupby(["year", column])["incident_key"].nunique()
        .unstack(fill_value=0)
    )
    fig = go.Figure()
    for category in table.columns:
        fig.add_trace(go.Scatter(x=table.index, y=table[category], mode="lines+markers",
                                 name=str(category)))
    fig.update_layout(title=title, xaxis_title="Year", yaxis_title="Incidents", **_LAYOUT)
    return fig


def cumulative_curves(daily: pd.DataFrame, title: str) -> go.Figure:
    """Cumulative cases and deaths on a log axis."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=daily.index, y=daily["cases"].where(daily["cases"] > 0),
                             mode="lines", line=dict(color=_SEASONAL), name="Cases"))
    fig.add_trace(go.Scatter(x=daily.index, y=daily["deaths"].where(daily["deaths"] > 0),
                             mode="lines", line=dict(color=_TREND), name="Deaths"))
    fig.update_layout(title=title, yaxis_type="log", yaxis_title="Cumulative count", **_LAYOUT)
    return fig


def daily_with_smoothing(
    daily: pd.DataFrame,
    column: str,
    window: int,
    title: str,
) -> go.Figure:
    """Daily increments as bars with rolling-mean and LOESS overlays.

    Expects columns ``column``, ``{column}_avg`` and ``{column}_loess``.
    """
    fig = go.Figure()
    fig.add_trace(go.Bar(x=daily.index, y=daily[column], marker_color=_RESID,
                         opacity=0.5, name="Daily"))
    fig.add_trace(go.Scatter(x=daily.index, y=daily[f"{column}_avg"], mode="lines",
                             line=dict(color=_SEASONAL, width=2), name=f"{window}-day mean"))
    fig.add_trace(go.Scatter(x=daily.index, y=daily[f"{column}_loess"], mode="lines",
                             line=dict(color=_SMOOTH, width=2, dash="dash"), name="LOESS"))
    fig.update_layout(title=title, **_LAYOUT)
    return fig


def deaths_vs_cases(snapshot: pd.DataFrame, fit: ModelFit, title: str) -> go.Figure:
    """Scatter of regional per-thousand rates with the OLS line."""
    ordered = fit.fitted.sort_index()
    x = snapshot.loc[ordered.index, "cases_per_thou"]
    line = pd.Series(ordered.values, index=x.values).sort_index()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=snapshot["cases_per_thou"], y=snapshot["deaths_per_thou"], mode="markers",
        text=[str(r) for r in snapshot.index], marker=dict(color=_SEASONAL), name="Region",
    ))
    fig.add_trace(go.Scatter(x=line.index, y=line.values, mode="lines",
                             line=dict(color=_TREND, width=2),
                             name=f"OLS (R²={fit.rsquared:.2f})"))
    fig.update_layout(
        title=title, xaxis_title="Cases per thousand", yaxis_title="Deaths per thousand",
        **{**_LAYOUT, "hovermode": "closest"},
    )
    return fig
