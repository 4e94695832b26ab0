import streamlit as st
import pandas as pd

from biofilm_pipeline.processor import baselines_to_frame, positive_controls_to_frame
from biofilm_pipeline.report import build_report


def _config_controls(config: dict) -> dict:
    with st.expander("Analysis Settings"):
        col1, col2, col3 = st.columns(3)
        with col1:
            negative = st.text_input("Negative control ID", value=config["negative_control_id"])
        with col2:
            positive = st.text_input("Positive control prefix", value=config["positive_control_prefix"])
        with col3:
            use_mean = st.checkbox(
                "Offset thresholds by baseline mean",
                value=config["use_baseline_mean"],
                help="Compare OD against mean + k·SD instead of k·SD.",
            )
    return {
        **config,
        "negative_control_id": negative.strip(),
        "positive_control_prefix": positive.strip(),
        "use_baseline_mean": use_mean,
    }


def run():
    st.title("Baselines & Classification")

    cv_df = st.session_state.get("cv_data_df")
    metadata_df = st.session_state.get("metadata_df")
    if cv_df is None or metadata_df is None:
        st.info("Please import CV data and metadata first.")
        return

    config = st.session_state["analysis_config"]
    new_config = _config_controls(config)
    report = st.session_state.get("report")

    if report is None or new_config != config:
        st.session_state["analysis_config"] = new_config
        report = build_report(
            cv_df,
            metadata_df,
            new_config,
            requested=st.session_state.get("requested_df"),
            collection=st.session_state.get("collection_df"),
        )
        st.session_state["report"] = report

    # --- Baselines ---
    st.markdown("### Negative-control baselines")
    st.dataframe(
        baselines_to_frame(report.baselines),
        column_config={
            "mean_vbe": st.column_config.NumberColumn("Mean VBE", format="%.4f"),
            "sd_vbe": st.column_config.NumberColumn("SD VBE", format="%.4f"),
            "n_vbe": st.column_config.NumberColumn("n"),
        },
        use_container_width=True,
        hide_index=True,
    )

    # --- Samples ---
    st.markdown("### Classified samples")
    samples = report.samples
    if samples.empty:
        st.info("No readings matched a metadata sample ID. See the unmatched records below.")
    else:
        counts = samples["category"].value_counts(dropna=False)
        cols = st.columns(len(counts))
        for col, (category, n) in zip(cols, counts.items()):
            col.metric(str(category) if pd.notna(category) else "unclassifiable", int(n))

        st.dataframe(
            samples[["sample_id", "plate", "serotype", "species", "mean", "sd_vbe", "category", "pc_category"]],
            column_config={
                "mean": st.column_config.NumberColumn("Mean OD", format="%.3f"),
                "sd_vbe": st.column_config.NumberColumn("Baseline SD", format="%.4f"),
                "pc_category": st.column_config.TextColumn("Positive-control category"),
            },
            use_container_width=True,
            hide_index=True,
        )

    # --- Positive controls ---
    st.markdown("### Positive-control batches")
    summary = report.positive_controls
    if not summary.has_data:
        st.warning(f"No readings start with '{new_config['positive_control_prefix']}'.")
    else:
        st.dataframe(positive_controls_to_frame(summary), use_container_width=True, hide_index=True)
        overall = summary.overall
        sd_text = f"{overall.sd:.4f}" if overall.sd is not None else "undefined"
        st.caption(f"Overall: mean {overall.mean:.4f}, SD {sd_text}, n = {overall.n}")

    # --- Inspection sets ---
    with st.expander("Unmatched records"):
        st.markdown("**Readings without metadata**")
        st.dataframe(report.unmatched_readings, use_container_width=True, hide_index=True)
        st.markdown("**Metadata without readings**")
        st.dataframe(report.unmatched_metadata, use_container_width=True, hide_index=True)
        if report.missing_requested is not None:
            st.markdown("**Requested isolates not on any plate**")
            st.dataframe(report.missing_requested, use_container_width=True, hide_index=True)

    st.page_link("interface/plot_viewer.py", label="→ Go to Plots", icon="📊", use_container_width=True)


run()
