# interface/plotting/plot_biofilm.py

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from plotly.graph_objects import Figure
from typing import Literal, Optional

from biofilm_pipeline.models import OverallStats
from biofilm_pipeline.types import CATEGORY_ORDER


def build_od_histogram(samples: pd.DataFrame, color_by: Optional[str] = None, nbins: int = 30) -> Figure:
    df = samples.copy()
    if color_by:
        df[color_by] = df[color_by].astype(str)
    fig = px.histogram(
        df,
        x="mean",
        color=color_by,
        nbins=nbins,
        labels={"mean": "Mean OD (CV)"},
        category_orders={"category": CATEGORY_ORDER},
    )
    fig.update_layout(margin=dict(t=40, b=40), bargap=0.05)
    return fig


def build_od_boxplot(
    samples: pd.DataFrame,
    group_by: Literal["serotype", "species", "category", "plate"] = "serotype",
    color_by: Optional[str] = None,
) -> Figure:
    df = samples.dropna(subset=[group_by]).copy()
    df[group_by] = df[group_by].astype(str)

    order = CATEGORY_ORDER if group_by == "category" else sorted(df[group_by].unique())
    fig = px.box(
        df,
        x=group_by,
        y="mean",
        points="all",
        color=color_by,
        hover_data=["sample_id", "plate"],
        labels={"mean": "Mean OD (CV)", group_by: ""},
        category_orders={group_by: order},
    )
    fig.update_layout(margin=dict(t=40, b=40))
    fig.update_xaxes(tickangle=0)
    return fig


def build_category_counts(samples: pd.DataFrame, column: str = "category", split_by: Optional[str] = None) -> Figure:
    keys = [column] + ([split_by] if split_by else [])
    counts = (
        samples.dropna(subset=[column])
        .groupby(keys, observed=True)
        .size()
        .reset_index(name="count")
    )
    counts[column] = counts[column].astype(str)
    fig = px.bar(
        counts,
        x=column,
        y="count",
        color=split_by,
        labels={column: "", "count": "Samples"},
        category_orders={column: CATEGORY_ORDER},
    )
    fig.update_layout(barmode="group", margin=dict(t=40, b=40))
    return fig


def build_positive_control_plot(batches: pd.DataFrame, overall: Optional[OverallStats]) -> Figure:
    """Batch means over time with the pooled mean and +/-1, +/-2 SD guides."""
    df = batches.dropna(subset=["sample_date"]).sort_values("sample_date")
    df["sd_cv"] = df["sd_cv"].astype(float)
    fig = px.scatter(
        df,
        x="sample_date",
        y="mean_cv",
        error_y="sd_cv",
        hover_data=["batch", "n"],
        labels={"sample_date": "Plate date", "mean_cv": "Positive control OD"},
    )

    if overall is not None:
        fig.add_hline(y=overall.mean, line_dash="solid", annotation_text="mean")
        if overall.sd is not None:
            for k in (-2, -1, 1, 2):
                fig.add_hline(
                    y=overall.mean + k * overall.sd,
                    line_dash="dash" if abs(k) == 2 else "dot",
                    annotation_text=f"{k:+d} SD",
                )

    fig.update_layout(margin=dict(t=40, b=40))
    return fig


def build_baseline_scatter(samples: pd.DataFrame) -> Figure:
    """Sample OD against its plate's baseline SD, with the 1/2/4 SD lines."""
    df = samples.dropna(subset=["sd_vbe"]).copy()
    df["sd_vbe"] = df["sd_vbe"].astype(float)
    df["category"] = df["category"].astype(str)

    fig = px.scatter(
        df,
        x="sd_vbe",
        y="mean",
        color="category",
        hover_data=["sample_id", "plate"],
        labels={"sd_vbe": "Baseline SD (VBE)", "mean": "Mean OD (CV)"},
        category_orders={"category": CATEGORY_ORDER},
    )

    if not df.empty:
        x_max = float(df["sd_vbe"].max())
        for k in (1, 2, 4):
            fig.add_trace(go.Scatter(
                x=[0, x_max],
                y=[0, k * x_max],
                mode="lines",
                line=dict(dash="dot", width=1, color="grey"),
                name=f"{k} x SD",
                showlegend=True,
            ))

    fig.update_layout(margin=dict(t=40, b=40))
    return fig


# --- Helpers ---

def summarize_groups(df: pd.DataFrame, group_col: str) -> pd.DataFrame:
    grouped = df.dropna(subset=[group_col]).groupby(group_col, observed=True)["mean"]
    summary = grouped.agg(mean="mean", std="std", count="count").reset_index()
    summary["sem"] = summary["std"] / summary["count"] ** 0.5
    if group_col in ("category", "pc_category"):
        summary[group_col] = pd.Categorical(summary[group_col].astype(str), categories=CATEGORY_ORDER, ordered=True)
        summary = summary.sort_values(group_col).reset_index(drop=True)
    return summary
