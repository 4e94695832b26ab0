# interface/home.py

import streamlit as st

def run():
    st.header("Biofilm Formation (CV) Analysis")

    st.markdown(
        """
        This app classifies bacterial isolates by **biofilm formation** from crystal-violet
        OD readings.

        **Key Features:**
        - Upload the CV reading sheet and the tab-separated sample metadata
        - Per-plate negative-control (VBE) baselines: mean, SD and n
        - Non-former / weak / moderate / strong categories from 1, 2 and 4 × baseline SD
        - Positive-control batch statistics and the alternative weak/moderate/strong scheme
        - Histograms, boxplots and scatter plots of OD by serotype and species
        - One-way ANOVA with Tukey contrasts between serotypes
        - Export the session for reuse

        **Next step:** Go to the **Import** page to load your data.
        """
    )

run()
