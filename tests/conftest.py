from __future__ import annotations

import pathlib

import numpy as np
import pandas as pd
import pytest

from biofilm_pipeline.config import AnalysisConfig, default_config

NAN = np.nan

# source, plate, cv_1, cv_2, cv_3, mean
_READINGS = [
    ("VBE", "20230412a", 0.10, 0.10, NAN, 0.10),
    ("VBE", "20230412a", 0.20, 0.20, NAN, 0.20),
    ("VBE", "20230412a", 0.30, 0.30, NAN, 0.30),
    ("S1", "20230412a", 0.05, 0.05, 0.05, 0.05),
    ("S2", "20230412a", 0.15, 0.15, 0.15, 0.15),
    ("S3", "20230412a", 0.30, 0.30, 0.30, 0.30),
    ("S4", "20230412a", 0.50, 0.50, 0.50, 0.50),
    ("ATCC 14028", "20230412a", 1.0, 1.0, 1.0, 1.0),
    ("VBE", "20230412b", 0.10, 0.10, NAN, 0.10),
    ("S5", "20230412b", 0.30, 0.30, 0.30, 0.30),
    ("ATCC 14028", "20230412b", 1.0, NAN, NAN, 1.0),
    ("S6", "20230419a", 0.40, 0.40, 0.40, 0.40),
    ("S7", "20230419a", 0.35, 0.35, 0.35, 0.35),
    ("ATCC 14028", "20230419a", 2.0, 2.0, 2.0, 2.0),
]

_METADATA = [
    ("S1", "Salmonella enterica", "O1"),
    ("S2", "Salmonella enterica", "O1"),
    ("S3", "Salmonella enterica", "O2"),
    ("S4", "Salmonella enterica", "O2"),
    ("S5", "Salmonella bongori", "O3"),
    ("S6", "Salmonella bongori", "O3"),
    ("S8", "Salmonella bongori", "O3"),
]


def make_readings(rows) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=["source", "plate", "cv_1", "cv_2", "cv_3", "mean"])
    df["sd"] = df[["cv_1", "cv_2", "cv_3"]].std(axis=1)
    return df[["source", "plate", "mean", "sd", "cv_1", "cv_2", "cv_3"]]


@pytest.fixture()
def config() -> AnalysisConfig:
    return default_config()


@pytest.fixture()
def readings() -> pd.DataFrame:
    return make_readings(_READINGS)


@pytest.fixture()
def metadata() -> pd.DataFrame:
    return pd.DataFrame(_METADATA, columns=["sample_id", "species", "serotype"])


@pytest.fixture()
def cv_xlsx(tmp_path: pathlib.Path, readings: pd.DataFrame) -> pathlib.Path:
    """CV sheet laid out like the lab export: a title block above the header row."""
    path = tmp_path / "cv_readings.xlsx"
    sheet = readings.rename(columns={"source": "Source", "plate": "Plate", "mean": "Mean", "sd": "SD"})
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame([["Biofilm CV assay"], ["exported 2023-05-01"]]).to_excel(
            writer, index=False, header=False
        )
        sheet.to_excel(writer, index=False, startrow=3)
    return path


@pytest.fixture()
def metadata_tsv(tmp_path: pathlib.Path, metadata: pd.DataFrame) -> pathlib.Path:
    path = tmp_path / "metadata.tsv"
    metadata.rename(columns={"sample_id": "Sample ID", "species": "Species", "serotype": "Serotype"}).to_csv(
        path, sep="\t", index=False
    )
    return path


@pytest.fixture()
def requested_csv(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "requested.csv"
    path.write_text("Sample ID,Box\nS1,A1\nS9,B4\nS10,C2\n", encoding="utf-8")
    return path


@pytest.fixture()
def collection_csv(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "collection.csv"
    path.write_text("Internal ID,Freezer,Species\nS9,F2,Salmonella enterica\nS1,F1,Salmonella enterica\n",
                    encoding="utf-8")
    return path


@pytest.fixture()
def restore_root_logging():
    import logging

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
