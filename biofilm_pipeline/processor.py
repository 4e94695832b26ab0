import logging
from typing import Mapping, Optional

import pandas as pd

from biofilm_pipeline.config import AnalysisConfig
from biofilm_pipeline.converters import optional_float, plate_batch, plate_date
from biofilm_pipeline.models import (
    Baseline,
    OverallStats,
    PositiveControlBatch,
    PositiveControlSummary,
)
from biofilm_pipeline.types import BiofilmCategory

LOGGER = logging.getLogger(__name__)


def _is_missing(value) -> bool:
    return value is None or pd.isna(value)


def is_negative_control(df: pd.DataFrame, config: AnalysisConfig) -> pd.Series:
    neg_id = config["negative_control_id"].casefold()
    return df["source"].astype(str).str.strip().str.casefold() == neg_id


def is_positive_control(df: pd.DataFrame, config: AnalysisConfig) -> pd.Series:
    prefix = config["positive_control_prefix"].casefold()
    return df["source"].astype(str).str.strip().str.casefold().str.startswith(prefix)


# --- Baselines ---

def compute_baselines(df: pd.DataFrame, config: AnalysisConfig) -> dict[str, Baseline]:
    """Per-plate mean/SD of the negative-control readings.

    Each control reading is first reduced to the mean of its two replicate
    wells (cv_1, cv_2); those reading means are then aggregated per plate.
    Plates without controls get no entry.
    """
    controls = df[is_negative_control(df, config) & df["cv_1"].notna()].copy()
    # both wells required; a missing cv_2 leaves the reading without a value
    controls["value"] = controls[["cv_1", "cv_2"]].mean(axis=1, skipna=False)

    grouped = controls.groupby("plate", sort=True)["value"].agg(
        mean_vbe="mean", sd_vbe="std", n_vbe="count"
    )

    baselines = {}
    for plate, row in grouped.iterrows():
        if row["n_vbe"] == 0:
            continue
        baselines[plate] = Baseline(
            plate=plate,
            mean_vbe=float(row["mean_vbe"]),
            sd_vbe=optional_float(row["sd_vbe"]),
            n_vbe=int(row["n_vbe"]),
        )

    undefined = [p for p, b in baselines.items() if b.sd_vbe is None]
    if undefined:
        LOGGER.warning("Baseline SD undefined (single control reading) for plates: %s", undefined)
    LOGGER.info("Computed baselines for %s plates", len(baselines))
    return baselines


def baselines_to_frame(baselines: Mapping[str, Baseline]) -> pd.DataFrame:
    rows = [
        {"plate": b.plate, "mean_vbe": b.mean_vbe, "sd_vbe": b.sd_vbe, "n_vbe": b.n_vbe}
        for _, b in sorted(baselines.items())
    ]
    df = pd.DataFrame(rows, columns=["plate", "mean_vbe", "sd_vbe", "n_vbe"])
    df["sd_vbe"] = df["sd_vbe"].astype("Float64")
    return df


# --- Classification ---

def classify(od_reading, baseline_sd, offset: float = 0.0) -> Optional[BiofilmCategory]:
    """Bin an OD reading against multiples of the baseline SD.

    Boundaries are checked in order and the first match wins, so a reading
    exactly on offset + 2*sd is weak and one on offset + 4*sd is moderate.
    """
    if _is_missing(od_reading) or _is_missing(baseline_sd) or _is_missing(offset):
        return None

    od = float(od_reading)
    sd = float(baseline_sd)
    if od < offset + 1 * sd:
        return BiofilmCategory.NON_FORMER
    if od <= offset + 2 * sd:
        return BiofilmCategory.WEAK
    if od <= offset + 4 * sd:
        return BiofilmCategory.MODERATE
    return BiofilmCategory.STRONG


def classify_samples(
    samples: pd.DataFrame,
    baselines: Mapping[str, Baseline],
    use_baseline_mean: bool = False,
) -> pd.DataFrame:
    """Attach plate baselines and a ``category`` column to joined samples."""
    df = samples.merge(baselines_to_frame(baselines), on="plate", how="left")

    offsets = df["mean_vbe"] if use_baseline_mean else pd.Series(0.0, index=df.index)
    categories = [
        classify(od, optional_float(sd), optional_float(offset))
        for od, sd, offset in zip(df["mean"], df["sd_vbe"], offsets)
    ]
    df["category"] = pd.Categorical(
        [c.value if c is not None else None for c in categories],
        categories=[c.value for c in BiofilmCategory],
        ordered=True,
    )

    unclassified = int(df["category"].isna().sum())
    if unclassified:
        LOGGER.warning("%s of %s samples are unclassifiable (no baseline SD)", unclassified, len(df))
    return df


# --- Positive controls ---

def melt_replicates(df: pd.DataFrame, replicate_columns: list[str]) -> pd.DataFrame:
    long = df.melt(
        id_vars=["source", "plate"],
        value_vars=list(replicate_columns),
        var_name="replicate",
        value_name="od",
    )
    return long.dropna(subset=["od"])


def summarize_positive_controls(df: pd.DataFrame, config: AnalysisConfig) -> PositiveControlSummary:
    """Per-batch and pooled statistics for the positive-control strain.

    The overall mean/SD pool every replicate value across batches; they are
    not an average of batch means.
    """
    controls = df[is_positive_control(df, config)]
    long = melt_replicates(controls, config["replicate_columns"])

    if long.empty:
        LOGGER.warning("No positive-control readings match prefix '%s'", config["positive_control_prefix"])
        return PositiveControlSummary()

    long = long.assign(batch=long["plate"].map(plate_batch))
    grouped = long.groupby("batch", sort=True)["od"].agg(mean_cv="mean", sd_cv="std", n="count")

    batches = [
        PositiveControlBatch(
            batch=batch,
            sample_date=plate_date(batch),
            mean_cv=float(row["mean_cv"]),
            sd_cv=optional_float(row["sd_cv"]),
            n=int(row["n"]),
        )
        for batch, row in grouped.iterrows()
    ]
    overall = OverallStats(
        mean=float(long["od"].mean()),
        sd=optional_float(long["od"].std()),
        n=int(long["od"].count()),
    )
    LOGGER.info("Positive controls: %s batches, overall mean %.3f (n=%s)",
                len(batches), overall.mean, overall.n)
    return PositiveControlSummary(batches=batches, overall=overall)


def positive_controls_to_frame(summary: PositiveControlSummary) -> pd.DataFrame:
    rows = [
        {
            "batch": b.batch,
            "sample_date": b.sample_date,
            "mean_cv": b.mean_cv,
            "sd_cv": b.sd_cv,
            "n": b.n,
        }
        for b in summary.batches
    ]
    df = pd.DataFrame(rows, columns=["batch", "sample_date", "mean_cv", "sd_cv", "n"])
    df["sd_cv"] = df["sd_cv"].astype("Float64")
    return df


def classify_against_positive_control(od_reading, overall: Optional[OverallStats]) -> Optional[BiofilmCategory]:
    """Three-level scheme around the pooled positive-control mean.

    Readings strictly inside mean +/- 1 SD fall through every rule and come
    back as None.
    """
    if overall is None or overall.sd is None or _is_missing(od_reading):
        return None

    od = float(od_reading)
    lower2, lower1 = overall.mean - 2 * overall.sd, overall.mean - 1 * overall.sd
    upper1, upper2 = overall.mean + 1 * overall.sd, overall.mean + 2 * overall.sd

    if od < lower2:
        return BiofilmCategory.WEAK
    if lower2 <= od <= lower1:
        return BiofilmCategory.MODERATE
    if upper1 <= od <= upper2:
        return BiofilmCategory.MODERATE
    if od > upper2:
        return BiofilmCategory.STRONG
    return None


def classify_samples_by_positive_control(samples: pd.DataFrame, overall: Optional[OverallStats]) -> pd.DataFrame:
    df = samples.copy()
    categories = [classify_against_positive_control(od, overall) for od in df["mean"]]
    df["pc_category"] = pd.Categorical(
        [c.value if c is not None else None for c in categories],
        categories=[BiofilmCategory.WEAK.value, BiofilmCategory.MODERATE.value, BiofilmCategory.STRONG.value],
        ordered=True,
    )

    if overall is not None and overall.sd is not None:
        inner = df["mean"].between(overall.mean - overall.sd, overall.mean + overall.sd, inclusive="neither")
        if inner.any():
            LOGGER.warning("%s samples lie inside the positive-control mean +/- 1 SD and are left unassigned",
                           int(inner.sum()))
    return df
