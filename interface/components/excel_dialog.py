# interface/components/excel_dialog.py

import streamlit as st


@st.dialog("Import CV Data", width="large")
def show_excel_import_dialog():
    cv_file = st.file_uploader("CV readings (.xlsx/.xls/.csv)", type=["xls", "xlsx", "csv"])
    metadata_file = st.file_uploader("Sample metadata (.tsv)", type=["tsv", "txt"])
    requested_file = st.file_uploader("Requested isolates (optional)", type=["xls", "xlsx", "csv"])
    collection_file = st.file_uploader("Isolate collection (optional)", type=["xls", "xlsx", "csv"])

    if cv_file and metadata_file:
        st.session_state["uploaded_files"] = {
            "cv": cv_file,
            "metadata": metadata_file,
            "requested": requested_file,
            "collection": collection_file,
        }
        st.success("Files stored for import.")

    if st.button("Confirm upload", disabled=not (cv_file and metadata_file)):
        st.rerun()
