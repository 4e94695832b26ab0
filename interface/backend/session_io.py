# interface/backend/session_io.py

import json
import streamlit as st
import pandas as pd
from dataclasses import asdict
from typing import Any, Dict

from biofilm_pipeline.config import ConfigError, merge_config
from biofilm_pipeline.converters import df_to_readings, readings_to_df
from biofilm_pipeline.types import CvReading

def serialize_session() -> Dict[str, Any]:
    """Convert session state to a JSON-safe dict."""
    config = st.session_state.get("analysis_config", {})
    replicate_columns = config["replicate_columns"]

    cv_df = st.session_state.get("cv_data_df")
    rows = df_to_readings(cv_df, replicate_columns) if cv_df is not None else []

    metadata_df = st.session_state.get("metadata_df")
    metadata = metadata_df.to_dict(orient="records") if metadata_df is not None else []

    return {
        "analysis_config": config,
        "cv_rows": [asdict(r) for r in rows],
        "metadata": metadata,
    }


def deserialize_session(data: Dict[str, Any]):
    """Restore session state from a previously exported session dict."""
    config = merge_config(data.get("analysis_config", {}))
    st.session_state["analysis_config"] = config

    cv_rows = [
        CvReading(**{**r, "replicates": tuple(r.get("replicates", ()))})
        for r in data.get("cv_rows", [])
    ]
    st.session_state["cv_data_df"] = readings_to_df(cv_rows, config["replicate_columns"]) if cv_rows else None

    metadata = data.get("metadata", [])
    st.session_state["metadata_df"] = pd.DataFrame(metadata) if metadata else None
    st.session_state["report"] = None

    st.toast("Session imported.", icon="📥")
    st.rerun()


def session_export_button():
    if st.button("Export", use_container_width=True):
        session_data = serialize_session()
        st.download_button(
            label="Download JSON",
            data=json.dumps(session_data, indent=2, default=str),
            file_name="biofilm_session.json",
            mime="application/json",
            use_container_width=True
        )


@st.dialog("Import Session")
def session_import_dialog():
    uploaded = st.file_uploader("Upload session JSON", type="json")
    if uploaded:
        try:
            data = json.load(uploaded)
            deserialize_session(data)
        except (json.JSONDecodeError, ConfigError, TypeError) as e:
            st.error(f"Failed to load session: {e}")


def session_import_button():
    if st.button("Import", use_container_width=True):
        session_import_dialog()


@st.dialog("Restart Session")
def session_restart_dialog():
    st.error("This will clear all session data.")
    if st.button("Confirm Reset", type="primary"):
        st.session_state.clear()
        st.rerun()


def session_restart_button():
    if st.button("", type='primary', icon=":material/restart_alt:", use_container_width=True):
        session_restart_dialog()
