import streamlit as st
import pandas as pd

from interface.plotting.plot_biofilm import (
    build_baseline_scatter,
    build_category_counts,
    build_od_boxplot,
    build_od_histogram,
    build_positive_control_plot,
)
from interface.plotting.utils import render_plot_data_tables
from biofilm_pipeline.processor import positive_controls_to_frame

GROUP_OPTIONS = ["serotype", "species", "category", "plate"]


def render_filter(df: pd.DataFrame, column: str):
    options = sorted(df[column].dropna().astype(str).unique())
    return st.multiselect(
        f"Filter: {column}",
        options=options,
        default=options,
        key=f"filter_{column}"
    )


def _plot_controls(df: pd.DataFrame) -> dict:
    st.markdown("### Plot Configuration")

    col1, col2, col3 = st.columns(3)
    with col1:
        group_by = st.selectbox("Group By", GROUP_OPTIONS, index=0)
    with col2:
        color_by = st.selectbox("Color By", ["None"] + GROUP_OPTIONS, index=0)
    with col3:
        scheme = st.radio("Category scheme", ["Baseline SD", "Positive control"], horizontal=True)

    filters = {"serotype": render_filter(df, "serotype"), "species": render_filter(df, "species")}

    return {
        "group_by": group_by,
        "color_by": None if color_by == "None" else color_by,
        "category_col": "category" if scheme == "Baseline SD" else "pc_category",
        "filters": filters,
    }


def _has_plot_conflict(opts: dict) -> bool:
    return opts["color_by"] is not None and opts["color_by"] == opts["group_by"]


def run():
    st.title("Biofilm Plots")

    report = st.session_state.get("report")
    if report is None or report.samples.empty:
        st.info("Please import CV data and run the classification first.")
        return

    df = report.samples
    opts = _plot_controls(df)

    for col, allowed_vals in opts["filters"].items():
        df = df[df[col].astype(str).isin(allowed_vals)]

    if _has_plot_conflict(opts):
        st.warning("⚠️ You are using the same variable for grouping and colour. Please adjust your selections.")
        return

    tab_hist, tab_box, tab_counts, tab_scatter, tab_pc = st.tabs(
        ["Histogram", "Boxplot", "Categories", "OD vs baseline", "Positive control"]
    )

    with tab_hist:
        st.plotly_chart(build_od_histogram(df, color_by=opts["color_by"]), use_container_width=True)

    with tab_box:
        st.plotly_chart(build_od_boxplot(df, group_by=opts["group_by"], color_by=opts["color_by"]),
                        use_container_width=True)
        render_plot_data_tables(df, "All Data", group_col=opts["group_by"])

    with tab_counts:
        split_by = opts["color_by"] if opts["color_by"] not in ("category", None) else None
        st.plotly_chart(build_category_counts(df, column=opts["category_col"], split_by=split_by),
                        use_container_width=True)
        render_plot_data_tables(df, "All Data", group_col=opts["category_col"])

    with tab_scatter:
        st.plotly_chart(build_baseline_scatter(df), use_container_width=True)

    with tab_pc:
        summary = report.positive_controls
        if not summary.has_data:
            st.warning("No positive-control readings found.")
        else:
            batches = positive_controls_to_frame(summary)
            st.plotly_chart(build_positive_control_plot(batches, summary.overall), use_container_width=True)


run()
