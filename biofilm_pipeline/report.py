"""Single-pass report build: load, derive, summarise."""
from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from biofilm_pipeline.config import AnalysisConfig, default_config
from biofilm_pipeline.converters import (
    parse_collection_file,
    parse_cv_file,
    parse_metadata_file,
    parse_requested_file,
)
from biofilm_pipeline.joiner import (
    join_samples,
    lookup_in_collection,
    missing_requested,
    unmatched_metadata,
    unmatched_readings,
)
from biofilm_pipeline.models import Baseline, PositiveControlSummary
from biofilm_pipeline.processor import (
    baselines_to_frame,
    classify_samples,
    classify_samples_by_positive_control,
    compute_baselines,
    positive_controls_to_frame,
    summarize_positive_controls,
)
from biofilm_pipeline.stats import can_compare_serotypes, serotype_anova, significant_contrasts
from biofilm_pipeline.validators import validate_readings

LOGGER = logging.getLogger(__name__)


@dataclass
class BiofilmReport:
    readings: pd.DataFrame
    baselines: dict[str, Baseline]
    samples: pd.DataFrame
    positive_controls: PositiveControlSummary
    unmatched_readings: pd.DataFrame
    unmatched_metadata: pd.DataFrame
    missing_requested: Optional[pd.DataFrame] = None
    anova: Optional[pd.DataFrame] = None
    contrasts: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=["label", "p_adj"]))
    problems: list[str] = field(default_factory=list)

    def tables(self) -> dict[str, pd.DataFrame]:
        tables = {
            "baselines": baselines_to_frame(self.baselines),
            "samples": self.samples,
            "positive_controls": positive_controls_to_frame(self.positive_controls),
            "significant_contrasts": self.contrasts,
            "unmatched_readings": self.unmatched_readings,
            "unmatched_metadata": self.unmatched_metadata,
        }
        if self.missing_requested is not None:
            tables["missing_requested"] = self.missing_requested
        return tables


def build_report(
    readings: pd.DataFrame,
    metadata: pd.DataFrame,
    config: Optional[AnalysisConfig] = None,
    requested: Optional[pd.DataFrame] = None,
    collection: Optional[pd.DataFrame] = None,
) -> BiofilmReport:
    config = config or default_config()

    problems = validate_readings(readings, config)
    for problem in problems:
        LOGGER.warning(problem)

    baselines = compute_baselines(readings, config)
    positive = summarize_positive_controls(readings, config)

    samples = join_samples(readings, metadata, config)
    samples = classify_samples(samples, baselines, use_baseline_mean=config["use_baseline_mean"])
    samples = classify_samples_by_positive_control(samples, positive.overall)

    missing = None
    if requested is not None:
        missing = missing_requested(requested, readings)
        if collection is not None:
            missing = lookup_in_collection(missing, collection)

    report = BiofilmReport(
        readings=readings,
        baselines=baselines,
        samples=samples,
        positive_controls=positive,
        unmatched_readings=unmatched_readings(readings, metadata, config),
        unmatched_metadata=unmatched_metadata(readings, metadata),
        missing_requested=missing,
        problems=problems,
    )

    if can_compare_serotypes(samples):
        report.anova = serotype_anova(samples)
        report.contrasts = significant_contrasts(samples, alpha=config["alpha"])
    else:
        LOGGER.warning("Skipping ANOVA: need two serotypes and more samples than serotypes")

    return report


def run_report(
    cv_file,
    metadata_file,
    config: Optional[AnalysisConfig] = None,
    requested_file=None,
    collection_file=None,
) -> BiofilmReport:
    config = config or default_config()
    readings = parse_cv_file(cv_file, config)
    metadata = parse_metadata_file(metadata_file)
    requested = parse_requested_file(requested_file) if requested_file is not None else None
    collection = parse_collection_file(collection_file) if collection_file is not None else None
    return build_report(readings, metadata, config, requested=requested, collection=collection)


def write_report(report: BiofilmReport, out_dir: str | pathlib.Path) -> list[pathlib.Path]:
    out_path = pathlib.Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    written = []
    for name, table in report.tables().items():
        path = out_path / f"{name}.csv"
        table.to_csv(path, index=False)
        written.append(path)
    if report.anova is not None:
        path = out_path / "anova.csv"
        report.anova.to_csv(path)
        written.append(path)

    LOGGER.info("Wrote %s tables to %s", len(written), out_path)
    return written
