# biofilm_pipeline/converters.py

import csv
import datetime as dt
import io
import logging
import pathlib
import re
from typing import Optional

import numpy as np
import pandas as pd

from biofilm_pipeline.config import AnalysisConfig
from biofilm_pipeline.types import CvReading
from biofilm_pipeline.validators import (
    COLLECTION_COLUMNS,
    METADATA_COLUMNS,
    REQUESTED_COLUMNS,
    SchemaError,
    cv_schema,
    require_columns,
)

LOGGER = logging.getLogger(__name__)

# spreadsheet headers seen in the lab exports -> canonical names
COLUMN_ALIASES = {
    "sample": "source",
    "isolate": "source",
    "plate_id": "plate",
    "plate_name": "plate",
    "mean_od": "mean",
    "sd_od": "sd",
    "std": "sd",
    "id": "sample_id",
    "sample_name": "sample_id",
    "box": "box_location",
    "location": "box_location",
}

_DATE_TOKEN = re.compile(r"(\d{4}-\d{2}-\d{2}|\d{8}|\d{6})")
_DATE_FORMATS = {10: "%Y-%m-%d", 8: "%Y%m%d", 6: "%y%m%d"}
_PLATE_SUFFIX = re.compile(r"(?<=\d)[A-Za-z]$")


def normalize_column(name) -> str:
    text = re.sub(r"\s+", "_", str(name).strip().lower())
    return COLUMN_ALIASES.get(text, text)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [normalize_column(c) for c in df.columns]
    return df


def _file_name(file) -> str:
    return getattr(file, "name", None) or str(file)


def _read_text(file) -> str:
    if hasattr(file, "read"):
        data = file.read()
        return data.decode("utf-8-sig") if isinstance(data, bytes) else data
    return pathlib.Path(file).read_text(encoding="utf-8-sig")


def _read_delimited(file, sep: str, header) -> pd.DataFrame:
    if header is not None:
        return pd.read_csv(file, sep=sep, header=header)
    # title lines above the header row are narrower than the data rows
    text = _read_text(file)
    width = max((len(row) for row in csv.reader(io.StringIO(text), delimiter=sep)), default=1)
    return pd.read_csv(io.StringIO(text), sep=sep, header=None, names=range(width))


def _read_table(file, sheet_name=0, header="infer") -> pd.DataFrame:
    name = _file_name(file).lower()
    if name.endswith((".xlsx", ".xls")):
        return pd.read_excel(file, sheet_name=sheet_name, header=0 if header == "infer" else header)
    if name.endswith((".tsv", ".txt")):
        return _read_delimited(file, "\t", header)
    if name.endswith(".csv"):
        return _read_delimited(file, ",", header)
    raise SchemaError(f"Unsupported file format: {_file_name(file)}")


# --- CV readings ---

def parse_cv_file(file, config: AnalysisConfig) -> pd.DataFrame:
    """Parse the CV reading sheet, locating the header row by its column names."""
    raw = _read_table(file, sheet_name=config["cv_sheet"], header=None)

    header_row_idx = None
    for i, row in raw.iterrows():
        row_vals = [normalize_column(v) for v in row.tolist() if pd.notna(v)]
        if "plate" in row_vals and "cv_1" in row_vals:
            header_row_idx = i
            break

    if header_row_idx is None:
        raise SchemaError(f"{_file_name(file)}: could not find header row.")

    header = raw.loc[header_row_idx]
    df = raw.loc[header_row_idx + 1:, header.notna()].copy()
    df.columns = [normalize_column(c) for c in header[header.notna()]]
    df = df.reset_index(drop=True)

    required = cv_schema(config)
    require_columns(df, required, _file_name(file))
    df = df[required]

    numeric = ["mean", "sd"] + list(config["replicate_columns"])
    for col in numeric:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df = df.dropna(subset=["source", "plate"])
    df["source"] = df["source"].astype(str).str.strip()
    df["plate"] = df["plate"].astype(str).str.strip()
    df["source_file"] = _file_name(file)

    LOGGER.info("Parsed %s CV readings across %s plates from %s",
                len(df), df["plate"].nunique(), _file_name(file))
    return df.reset_index(drop=True)


def df_to_readings(df: pd.DataFrame, replicate_columns: list[str]) -> list[CvReading]:
    fixed = {"source", "plate", "mean", "sd", *replicate_columns}
    return [
        CvReading(
            source=row["source"],
            plate=row["plate"],
            replicates=tuple(optional_float(row[c]) for c in replicate_columns),
            mean=optional_float(row["mean"]),
            sd=optional_float(row["sd"]),
            metadata={k: row[k] for k in row.index if k not in fixed},
        )
        for _, row in df.iterrows()
    ]


def readings_to_df(rows: list[CvReading], replicate_columns: list[str]) -> pd.DataFrame:
    data = []
    for r in rows:
        base = {"source": r.source, "plate": r.plate}
        base.update({
            col: np.nan if val is None else val
            for col, val in zip(replicate_columns, r.replicates)
        })
        base["mean"] = np.nan if r.mean is None else r.mean
        base["sd"] = np.nan if r.sd is None else r.sd
        base.update(r.metadata)
        data.append(base)
    if not data:
        return pd.DataFrame(columns=["source", "plate", *replicate_columns, "mean", "sd"])
    return pd.DataFrame(data)


def optional_float(value) -> Optional[float]:
    """NaN/None -> None, anything else -> float."""
    if value is None or pd.isna(value):
        return None
    return float(value)


# --- Side tables ---

def parse_metadata_file(file) -> pd.DataFrame:
    """Tab-separated sample metadata: sample id, species, serotype."""
    name = _file_name(file)
    df = normalize_columns(pd.read_csv(file, sep="\t", dtype=str))
    require_columns(df, METADATA_COLUMNS, name)
    df = df.dropna(subset=["sample_id"])
    df["sample_id"] = df["sample_id"].str.strip()
    LOGGER.info("Parsed %s metadata rows from %s", len(df), name)
    return df.reset_index(drop=True)


def parse_requested_file(file) -> pd.DataFrame:
    """Requested isolates with the box location they were pulled from."""
    df = normalize_columns(_read_table(file))
    require_columns(df, REQUESTED_COLUMNS, _file_name(file))
    df = df.dropna(subset=["sample_id"])
    df["sample_id"] = df["sample_id"].astype(str).str.strip()
    return df.reset_index(drop=True)


def parse_collection_file(file) -> pd.DataFrame:
    """The wider isolate collection, keyed by internal identifier."""
    df = normalize_columns(_read_table(file))
    require_columns(df, COLLECTION_COLUMNS, _file_name(file))
    df = df.dropna(subset=["internal_id"])
    df["internal_id"] = df["internal_id"].astype(str).str.strip()
    return df.reset_index(drop=True)


# --- Plate labels ---

def plate_batch(plate: str) -> str:
    """Plate label without its trailing suffix letter ('20230412b' -> '20230412')."""
    return _PLATE_SUFFIX.sub("", str(plate).strip())


def plate_date(plate: str) -> Optional[dt.date]:
    match = _DATE_TOKEN.search(str(plate))
    if not match:
        return None
    token = match.group(1)
    try:
        return dt.datetime.strptime(token, _DATE_FORMATS[len(token)]).date()
    except ValueError:
        return None
