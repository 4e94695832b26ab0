# biofilm_pipeline/validators.py
import pandas as pd

from biofilm_pipeline.config import AnalysisConfig


class SchemaError(ValueError):
    """Raised when an input table lacks the columns it is declared to have."""


CV_COLUMNS = ["source", "plate", "mean", "sd"]
METADATA_COLUMNS = ["sample_id", "species", "serotype"]
REQUESTED_COLUMNS = ["sample_id", "box_location"]
COLLECTION_COLUMNS = ["internal_id"]


def cv_schema(config: AnalysisConfig) -> list[str]:
    return CV_COLUMNS + list(config["replicate_columns"])


def require_columns(df: pd.DataFrame, required: list[str], source: str) -> None:
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SchemaError(f"{source}: missing required columns: {missing}")


def validate_readings(df: pd.DataFrame, config: AnalysisConfig) -> list[str]:
    """Non-fatal problems worth showing to the user before classification."""
    problems = []
    sources = df["source"].astype(str).str.strip().str.casefold()
    is_control = sources == config["negative_control_id"].casefold()
    is_positive = sources.str.startswith(config["positive_control_prefix"].casefold())

    plates = set(df["plate"].dropna())
    control_plates = set(df.loc[is_control, "plate"].dropna())
    for plate in sorted(plates - control_plates):
        problems.append(f"Plate '{plate}' has no {config['negative_control_id']} control readings")

    single = df[is_control].groupby("plate")["source"].count()
    for plate in sorted(single[single == 1].index):
        problems.append(f"Plate '{plate}' has a single control reading; its SD is undefined")

    no_primary = df[df["cv_1"].isna()]
    for _, row in no_primary.iterrows():
        problems.append(f"Missing cv_1 for '{row['source']}' on plate '{row['plate']}'")

    dupes = df[~is_control & ~is_positive & df.duplicated(subset=["source", "plate"], keep=False)]
    for source, plate in sorted(set(zip(dupes["source"], dupes["plate"]))):
        problems.append(f"Duplicate reading for '{source}' on plate '{plate}'")

    return problems
