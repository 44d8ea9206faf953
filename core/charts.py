from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from core.config import DEFAULT_CHART_THEME

alt.data_transformers.disable_max_rows()


@dataclass(frozen=True)
class ChartTheme:
    background: str
    text: str
    grid: str


CHART_THEMES: Dict[str, ChartTheme] = {
    "night": ChartTheme(background="#0f172a", text="#d1d5db", grid="#4b5563"),
    "dark": ChartTheme(background="#1d232a", text="#a6adbb", grid="#2a323c"),
    "black": ChartTheme(background="#000000", text="#d6d6d6", grid="#333333"),
    "dracula": ChartTheme(background="#282a36", text="#f8f8f2", grid="#44475a"),
    "corporate": ChartTheme(background="#ffffff", text="#181a2a", grid="#e5e7eb"),
    "cupcake": ChartTheme(background="#faf7f5", text="#291334", grid="#efeae6"),
    "emerald": ChartTheme(background="#ffffff", text="#333c4d", grid="#e5e7eb"),
    "winter": ChartTheme(background="#ffffff", text="#394e6a", grid="#e3e9f4"),
}

COVID_COLORS = {"Daily Cases": "#f97316", "Daily Deaths": "#ef4444"}
MARKET_COLOR = "#3b82f6"
STOCK_COLOR = "#22c55e"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def available_themes() -> List[str]:
    return list(CHART_THEMES.keys())


def resolve_theme(name: Optional[str]) -> ChartTheme:
    key = (name or "").strip().lower()
    return CHART_THEMES.get(key, CHART_THEMES[DEFAULT_CHART_THEME])


def apply_theme(chart: alt.Chart, theme: Optional[str] = None) -> alt.Chart:
    t = resolve_theme(theme)
    return (
        chart.configure(background=t.background)
        .configure_axis(labelColor=t.text, titleColor=t.text, gridColor=t.grid, domainColor=t.grid, tickColor=t.grid)
        .configure_legend(labelColor=t.text, titleColor=t.text, orient="top")
        .configure_title(color=t.text, fontSize=16)
        .configure_view(strokeOpacity=0)
    )


def _filled_lines(df: pd.DataFrame, *, y_title: str, colors: Sequence[str], domain: Sequence[str], title: str) -> alt.Chart:
    # Pan and zoom on the time axis only.
    x_zoom = alt.selection_interval(bind="scales", encodings=["x"])
    return (
        alt.Chart(df)
        .mark_area(line={"strokeWidth": 2}, opacity=0.2, interpolate="monotone")
        .encode(
            x=alt.X("date:T", title=None, axis=alt.Axis(format="%b %Y", tickCount="month")),
            y=alt.Y("value:Q", title=y_title, stack=None),
            color=alt.Color("series:N", title=None, scale=alt.Scale(domain=list(domain), range=list(colors))),
            tooltip=[
                alt.Tooltip("date:T", title="Date", format="%Y-%m-%d"),
                alt.Tooltip("series:N", title="Series"),
                alt.Tooltip("value:Q", title=y_title, format=",.2f"),
            ],
        )
        .add_params(x_zoom)
        .properties(title=title, height=300)
    )


def covid_trends_chart(frame: pd.DataFrame, theme: Optional[str] = None) -> alt.Chart:
    long_df = (
        frame[["date", "cases", "deaths"]]
        .rename(columns={"cases": "Daily Cases", "deaths": "Daily Deaths"})
        .melt(id_vars="date", value_vars=["Daily Cases", "Daily Deaths"], var_name="series", value_name="value")
    )
    chart = _filled_lines(
        long_df,
        y_title="People",
        colors=list(COVID_COLORS.values()),
        domain=list(COVID_COLORS.keys()),
        title="COVID-19 Trends",
    )
    return apply_theme(chart, theme)


def market_chart(frame: pd.DataFrame, index_name: str, theme: Optional[str] = None) -> alt.Chart:
    df = frame[["date", "value"]].assign(series=index_name)
    chart = _filled_lines(df, y_title="Index value", colors=[MARKET_COLOR], domain=[index_name], title="Stock Market Performance")
    return apply_theme(chart, theme)


def stock_price_chart(frame: pd.DataFrame, label: str, theme: Optional[str] = None) -> alt.Chart:
    df = frame[["date", "value"]].assign(series=label)
    chart = _filled_lines(df, y_title="Price", colors=[STOCK_COLOR], domain=[label], title="Historical Stock Price")
    return apply_theme(chart, theme)
