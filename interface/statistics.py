import streamlit as st

from biofilm_pipeline.stats import tukey_contrasts


def run():
    st.title("Serotype Statistics")

    report = st.session_state.get("report")
    if report is None or report.samples.empty:
        st.info("Please import CV data and run the classification first.")
        return

    if report.anova is None:
        st.warning("At least two serotypes with OD readings are needed for an ANOVA.")
        return

    alpha = st.session_state["analysis_config"]["alpha"]

    st.markdown("### One-way ANOVA: mean OD ~ serotype")
    st.dataframe(report.anova, use_container_width=True)

    st.markdown(f"### Significant Tukey contrasts (p-adj < {alpha})")
    if report.contrasts.empty:
        st.info("No pairwise serotype contrast is significant.")
    else:
        st.dataframe(
            report.contrasts,
            column_config={"p_adj": st.column_config.NumberColumn("Adjusted p", format="%.4g")},
            use_container_width=True,
            hide_index=True,
        )

    with st.expander("All contrasts"):
        st.dataframe(tukey_contrasts(report.samples, alpha=alpha), use_container_width=True, hide_index=True)


run()
