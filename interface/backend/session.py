# interface/backend/session.py

import streamlit as st

from biofilm_pipeline.config import default_config


def initialize_session_state():
    defaults = {
        "analysis_config": default_config(),
        "cv_data_df": None,
        "metadata_df": None,
        "requested_df": None,
        "collection_df": None,
        "report": None,
    }

    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value
