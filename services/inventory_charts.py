from typing import Iterable, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from services.inventory_metrics import (
    InventorySummary,
    STOCK_HEALTH_COLORS,
    build_stock_health_series,
)
from services.inventory_models import DemandPoint, DemandSummaryEntry

DEMAND_COLOR = "#38bdf8"


def _build_empty_figure(message: str, title: str, height: int = 300) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        showarrow=False,
        font=dict(size=14, color="gray"),
    )
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=height,
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
    )
    return fig


def build_stock_health_chart(summary: InventorySummary) -> go.Figure:
    if summary.total_products == 0:
        return _build_empty_figure("No products loaded.", "Inventory Health")

    df = pd.DataFrame(build_stock_health_series(summary))

    fig = go.Figure(
        go.Pie(
            labels=df["name"],
            values=df["value"],
            marker=dict(colors=STOCK_HEALTH_COLORS),
            sort=False,
            textinfo="value+percent",
            hovertemplate="%{label}: %{value} products<extra></extra>",
        )
    )
    fig.update_layout(
        title="Inventory Health",
        template="plotly_white",
        height=300,
        margin=dict(t=60, b=20, l=20, r=20),
        legend=dict(orientation="h", yanchor="bottom", y=-0.15, xanchor="center", x=0.5),
    )
    return fig


def build_demand_summary_chart(entries: Iterable[DemandSummaryEntry]) -> go.Figure:
    df = pd.DataFrame([entry.model_dump() for entry in entries])
    if df.empty:
        return _build_empty_figure("No demand data available.", "Daily Demand by Product", height=350)

    df["total_demand"] = pd.to_numeric(df["total_demand"], errors="coerce").fillna(0)
    df["product_name"] = df["product_name"].replace({"": "Unknown"})

    fig = px.bar(
        df,
        x="product_name",
        y="total_demand",
        color_discrete_sequence=[DEMAND_COLOR],
    )
    fig.update_traces(hovertemplate="%{x}<br>Demand: %{y:,.0f}<extra></extra>")
    fig.update_layout(
        title="Daily Demand by Product",
        template="plotly_white",
        height=350,
        margin=dict(t=60, b=100, l=60, r=20),
        xaxis=dict(title=None, tickangle=-30, type="category"),
        yaxis=dict(title="Total Demand"),
        bargap=0.3,
    )
    return fig


def build_demand_trend_chart(
    points: Iterable[DemandPoint],
    product_name: Optional[str] = None,
) -> go.Figure:
    title = "Daily Demand Trend"
    if product_name:
        title = f"{title} – {product_name}"

    df = pd.DataFrame([point.model_dump() for point in points])
    if df.empty:
        return _build_empty_figure("No demand history for this product.", title, height=350)

    df["total_quantity"] = pd.to_numeric(df["total_quantity"], errors="coerce").fillna(0)

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=df["date"],
            y=df["total_quantity"],
            mode="lines+markers",
            name="Quantity",
            line=dict(color=DEMAND_COLOR, width=3, shape="spline"),
            marker=dict(size=8),
            hovertemplate="Date: %{x}<br>Quantity: %{y:,.0f}<extra></extra>",
        )
    )
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=350,
        margin=dict(t=60, b=60, l=60, r=20),
        xaxis=dict(title="Date"),
        yaxis=dict(title="Quantity"),
        showlegend=False,
    )
    return fig
