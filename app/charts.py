# ============================================================
# Charts: count tables → chart definitions → plotly figures
# ============================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
import pandas as pd
import plotly.express as px

from aggregations import CountTable, CountTables

# ------------------------------------------------------------
# Chart Styling
# ------------------------------------------------------------
BAR_COLOR = "rgba(75, 192, 192, 0.6)"
BAR_BORDER_COLOR = "rgba(0, 0, 0, 0.2)"
PIE_COLORS = ("#FF6384", "#36A2EB", "#FFCE56")
SERIES_LABEL = "Percentage of Vehicles"
PERCENT_RANGE = (0, 100)


class ChartKind(Enum):
    BAR = "bar"
    PIE = "pie"


@dataclass(frozen=True)
class ChartOptions:
    show_value_labels: bool = False
    y_range: Optional[Tuple[float, float]] = None
    colors: Tuple[str, ...] = ()


BAR_WITH_LABELS = ChartOptions(show_value_labels=True, y_range=PERCENT_RANGE, colors=(BAR_COLOR,))
BAR_WITHOUT_LABELS = ChartOptions(show_value_labels=False, y_range=PERCENT_RANGE, colors=(BAR_COLOR,))
PIE_OPTIONS = ChartOptions(colors=PIE_COLORS)


@dataclass(frozen=True)
class ChartSeries:
    labels: Tuple[str, ...] = ()
    values: Tuple[float, ...] = ()

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"label": list(self.labels), "value": list(self.values)})


@dataclass(frozen=True)
class ChartDefinition:
    kind: ChartKind
    title: str
    series: ChartSeries
    options: ChartOptions


@dataclass(frozen=True)
class PanelLayout:
    title: str
    table: str
    kind: ChartKind
    options: ChartOptions
    sort_labels: bool = False


# ------------------------------------------------------------
# Dashboard Layout (fixed six panels)
# ------------------------------------------------------------
CHART_LAYOUT = (
    PanelLayout("Percentage of Electric Vehicles by State", "state", ChartKind.BAR, BAR_WITHOUT_LABELS),
    PanelLayout("Percentage of Electric Vehicles by City", "city", ChartKind.BAR, BAR_WITHOUT_LABELS),
    PanelLayout(
        "Percentage of Electric Vehicles by Model Year",
        "model_year",
        ChartKind.BAR,
        BAR_WITH_LABELS,
        sort_labels=True,
    ),
    PanelLayout("Percentage of Vehicles by Electric Vehicle Type", "ev_type", ChartKind.BAR, BAR_WITH_LABELS),
    PanelLayout(
        "Percentage of Vehicles by Clean Alternative Fuel Vehicle Eligibility",
        "cafv",
        ChartKind.BAR,
        BAR_WITHOUT_LABELS,
    ),
    PanelLayout("Percentage of Electric Vehicles by Make (Tesla, Nissan, Others)", "make", ChartKind.PIE, PIE_OPTIONS),
)


# ------------------------------------------------------------
# Series Helpers
# ------------------------------------------------------------
def format_percentage(value: float) -> str:
    return f"{value:.2f}%"


def _year_key(label: str):
    # Numeric years first in numeric order, anything else after, alphabetically
    try:
        return (0, int(label), "")
    except ValueError:
        return (1, 0, label)


def percentage_series(table: CountTable, total: int, sort_labels: bool = False) -> ChartSeries:
    # total 0 renders as 0% rather than NaN
    counts = pd.Series(dict(table), dtype="float64")
    if sort_labels and not counts.empty:
        counts = counts.reindex(sorted(counts.index, key=_year_key))
    shares = counts.div(total if total else np.nan).mul(100)
    shares = shares.replace([np.inf, -np.inf], np.nan).fillna(0.0)
    return ChartSeries(
        labels=tuple(str(label) for label in shares.index),
        values=tuple(float(v) for v in shares.to_numpy()),
    )


def count_series(table: CountTable) -> ChartSeries:
    return ChartSeries(
        labels=tuple(table.keys()),
        values=tuple(float(v) for v in table.values()),
    )


# ------------------------------------------------------------
# Chart Definitions
# ------------------------------------------------------------
def build_chart(panel: PanelLayout, tables: CountTables) -> ChartDefinition:
    table = getattr(tables, panel.table)
    if panel.kind is ChartKind.PIE:
        series = count_series(table)
    else:
        series = percentage_series(table, tables.total, sort_labels=panel.sort_labels)
    return ChartDefinition(kind=panel.kind, title=panel.title, series=series, options=panel.options)


def build_charts(tables: CountTables, layout=CHART_LAYOUT) -> Tuple[ChartDefinition, ...]:
    return tuple(build_chart(panel, tables) for panel in layout)


# ------------------------------------------------------------
# Plotly Figures
# ------------------------------------------------------------
def _bar_figure(chart: ChartDefinition):
    frame = chart.series.to_frame()
    frame["text"] = frame["value"].map(format_percentage)
    fig = px.bar(
        frame,
        x="label",
        y="value",
        text="text" if chart.options.show_value_labels else None,
        labels={"label": "", "value": SERIES_LABEL},
    )
    fig.update_traces(
        name=SERIES_LABEL,
        marker_color=chart.options.colors[0] if chart.options.colors else None,
        showlegend=True,
        marker_line_width=2,
        marker_line_color=BAR_BORDER_COLOR,
    )
    if chart.options.show_value_labels:
        fig.update_traces(textposition="outside", textfont_color="#000", cliponaxis=False)
    fig.update_layout(showlegend=True)
    if chart.options.y_range is not None:
        fig.update_layout(yaxis=dict(range=list(chart.options.y_range)))
    return fig


def _pie_figure(chart: ChartDefinition):
    frame = chart.series.to_frame()
    fig = px.pie(
        frame,
        names="label",
        values="value",
        color_discrete_sequence=list(chart.options.colors) or None,
    )
    # slice order (and so colour) follows the buckets, not slice size
    fig.update_traces(sort=False, marker=dict(colors=list(chart.options.colors) or None))
    return fig


def build_figure(chart: ChartDefinition):
    if chart.kind is ChartKind.PIE:
        fig = _pie_figure(chart)
    else:
        fig = _bar_figure(chart)
    fig.update_layout(
        margin=dict(l=10, r=10, t=30, b=10),
        legend=dict(orientation="h", yanchor="bottom", y=1.02),
        plot_bgcolor="rgba(255,255,255,1)",
        paper_bgcolor="rgba(255,255,255,1)",
    )
    return fig
