"""Join CV readings to sample metadata and list what failed to join."""
import logging

import pandas as pd

from biofilm_pipeline.config import AnalysisConfig
from biofilm_pipeline.processor import is_negative_control, is_positive_control

LOGGER = logging.getLogger(__name__)


def _sample_readings(readings: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    controls = is_negative_control(readings, config) | is_positive_control(readings, config)
    return readings[~controls].rename(columns={"source": "sample_id"})


def join_samples(readings: pd.DataFrame, metadata: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    """Isolate readings with a completed mean OD, joined to species/serotype."""
    samples = _sample_readings(readings, config)
    samples = samples[samples["mean"].notna()]

    joined = samples.merge(
        metadata[["sample_id", "species", "serotype"]].drop_duplicates("sample_id"),
        on="sample_id",
        how="inner",
    )
    joined = joined.sort_values(["plate", "sample_id"], kind="stable").reset_index(drop=True)
    LOGGER.info("Joined %s of %s sample readings to metadata", len(joined), len(samples))
    return joined


def unmatched_readings(readings: pd.DataFrame, metadata: pd.DataFrame, config: AnalysisConfig) -> pd.DataFrame:
    samples = _sample_readings(readings, config)
    missing = samples[~samples["sample_id"].isin(metadata["sample_id"])]
    if not missing.empty:
        LOGGER.warning("%s readings have no metadata row", len(missing))
    return missing.sort_values(["plate", "sample_id"], kind="stable").reset_index(drop=True)


def unmatched_metadata(readings: pd.DataFrame, metadata: pd.DataFrame) -> pd.DataFrame:
    missing = metadata[~metadata["sample_id"].isin(readings["source"])]
    if not missing.empty:
        LOGGER.warning("%s metadata rows have no CV reading", len(missing))
    return missing.sort_values("sample_id", kind="stable").reset_index(drop=True)


def missing_requested(requested: pd.DataFrame, readings: pd.DataFrame) -> pd.DataFrame:
    """Requested isolates (with box location) that never made it onto a plate."""
    missing = requested[~requested["sample_id"].isin(readings["source"])]
    if not missing.empty:
        LOGGER.warning("%s requested isolates are missing from the CV readings", len(missing))
    return missing.sort_values("sample_id", kind="stable").reset_index(drop=True)


def lookup_in_collection(missing: pd.DataFrame, collection: pd.DataFrame) -> pd.DataFrame:
    found = missing.merge(
        collection.drop_duplicates("internal_id"),
        left_on="sample_id",
        right_on="internal_id",
        how="left",
        suffixes=("", "_collection"),
    )
    found["in_collection"] = found["internal_id"].notna()
    return found
