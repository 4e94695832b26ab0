import streamlit as st

from interface.components.excel_dialog import show_excel_import_dialog
from biofilm_pipeline.converters import (
    parse_collection_file,
    parse_cv_file,
    parse_metadata_file,
    parse_requested_file,
)
from biofilm_pipeline.report import build_report
from biofilm_pipeline.validators import SchemaError, validate_readings


def _parse_uploads(uploaded: dict, config) -> dict:
    parsed = {}
    parsers = {
        "cv": lambda f: parse_cv_file(f, config),
        "metadata": parse_metadata_file,
        "requested": parse_requested_file,
        "collection": parse_collection_file,
    }
    for key, parser in parsers.items():
        file = uploaded.get(key)
        if file is None:
            continue
        try:
            parsed[key] = parser(file)
            st.success(f"✅ {file.name}: {len(parsed[key])} rows parsed.")
        except SchemaError as e:
            st.error(f"❌ `{file.name}`: {e}")
    return parsed


def run():
    col_title, col_button = st.columns([8, 1])

    with col_title:
        st.title("CV Data Import")

    # --- Step 1: Upload Files ---
    with col_button:
        if st.button("Import Files"):
            show_excel_import_dialog()

    uploaded = st.session_state.get("uploaded_files")
    if not uploaded:
        st.info("Use the **Import Files** button to upload the CV sheet and metadata.")
        return

    config = st.session_state["analysis_config"]
    parsed = _parse_uploads(uploaded, config)
    if "cv" not in parsed or "metadata" not in parsed:
        return

    cv_df = parsed["cv"]

    # --- Step 2: Overview ---
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Plates**")
        plates = cv_df.groupby("plate")["source"].count().rename("readings").reset_index()
        st.dataframe(plates, use_container_width=True, hide_index=True)

    with col2:
        st.markdown("**Checks**")
        problems = validate_readings(cv_df, config)
        if problems:
            for problem in problems:
                st.warning(problem)
        else:
            st.success("Every plate has negative-control readings.")

    # --- Step 3: Preview Table ---
    st.markdown("### Table Preview")
    st.dataframe(
        cv_df,
        column_config={
            "mean": st.column_config.NumberColumn("Mean OD", format="%.3f"),
            "sd": st.column_config.NumberColumn("SD", format="%.3f"),
        },
        use_container_width=True,
        hide_index=True,
    )

    # --- Step 4: Finalize + Load ---
    if st.button("Load into Session", type="primary", use_container_width=True):
        st.session_state["cv_data_df"] = cv_df
        st.session_state["metadata_df"] = parsed["metadata"]
        st.session_state["requested_df"] = parsed.get("requested")
        st.session_state["collection_df"] = parsed.get("collection")
        st.session_state["report"] = build_report(
            cv_df,
            parsed["metadata"],
            config,
            requested=parsed.get("requested"),
            collection=parsed.get("collection"),
        )

        st.toast("CV data loaded into session.")
        st.session_state.pop("uploaded_files", None)
        st.switch_page("interface/classification.py")


run()
