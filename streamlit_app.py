import streamlit as st

from interface.backend.session import initialize_session_state
from biofilm_pipeline.logging_setup import configure_logging

st.set_page_config(page_title="Biofilm CV Analysis", layout="wide")

__VERSION__="1.0.0"
__COMMENT__=""

from interface.backend.session_io import (
    session_export_button,
    session_import_button,
    session_restart_button
)

def main():
    configure_logging()
    initialize_session_state()

    custom_pages = {"Analysis": [], "Results": []}

    custom_pages["Analysis"].append(
        st.Page("interface/home.py", title="Home", icon=":material/info:")
    )

    custom_pages["Analysis"].append(
        st.Page("interface/data_import.py", title="Import", icon=":material/file_present:")
    )

    custom_pages["Analysis"].append(
        st.Page("interface/classification.py", title="Classification", icon=":material/category:")
    )

    custom_pages["Results"].append(
        st.Page("interface/plot_viewer.py", title="Plotting", icon=":material/bar_chart:")
    )

    custom_pages["Results"].append(
        st.Page("interface/statistics.py", title="Statistics", icon=":material/functions:")
    )

    page = st.navigation(custom_pages)
    page.run()

    st.divider()

    with st.sidebar:
        st.caption("Session Options")
        col_import, col_export, col_del = st.columns([3, 3, 1])

        with col_import:
            session_import_button()

        with col_export:
            session_export_button()

        with col_del:
            session_restart_button()

    st.divider()
    st.caption(f"biofilm-cv-analysis v {__VERSION__}{': ' + __COMMENT__ if __COMMENT__ else ''}")

if __name__ == "__main__":
    main()
