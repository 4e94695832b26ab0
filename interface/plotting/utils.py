# interface/plotting/utils.py

import streamlit as st
import pandas as pd
from typing import Optional

from interface.plotting.plot_biofilm import summarize_groups

SAMPLE_COLUMNS = ["sample_id", "plate", "serotype", "species", "mean", "sd", "sd_vbe", "category", "pc_category"]


def render_plot_data_tables(df: pd.DataFrame, label: str, group_col: Optional[str] = None):
    with st.expander("Show Raw Plot Values"):
        if df is None or df.empty:
            st.caption("*(empty)*")
            return

        cols_to_show = [c for c in SAMPLE_COLUMNS if c in df.columns]
        df_display = df[cols_to_show].copy()
        if group_col and group_col in df_display.columns:
            df_display = df_display.sort_values(by=[group_col, "mean"])

        st.markdown(f"**{label}**")
        st.dataframe(df_display, use_container_width=True, hide_index=True)

        if group_col and group_col in df.columns:
            st.markdown("**Summary**")
            st.dataframe(summarize_groups(df, group_col), use_container_width=True, hide_index=True)
