from __future__ import annotations

import datetime as dt
import math

import numpy as np
import pandas as pd
import pytest

from biofilm_pipeline.models import OverallStats
from biofilm_pipeline.processor import (
    baselines_to_frame,
    classify,
    classify_against_positive_control,
    classify_samples,
    compute_baselines,
    summarize_positive_controls,
)
from biofilm_pipeline.types import BiofilmCategory
from conftest import make_readings

pytestmark = pytest.mark.core

NAN = np.nan


# --- Baseline Estimator ---

def test_baseline_from_two_replicate_pairs(config) -> None:
    df = make_readings([
        ("VBE", "P1", 0.10, 0.12, NAN, 0.11),
        ("VBE", "P1", 0.14, 0.10, NAN, 0.12),
    ])

    baselines = compute_baselines(df, config)

    assert list(baselines) == ["P1"]
    baseline = baselines["P1"]
    assert baseline.mean_vbe == pytest.approx(0.115)
    assert baseline.n_vbe == 2
    assert baseline.sd_vbe is not None and math.isfinite(baseline.sd_vbe)
    assert baseline.sd_vbe == pytest.approx(np.std([0.11, 0.12], ddof=1))


def test_single_control_reading_has_undefined_sd(config) -> None:
    df = make_readings([("VBE", "P1", 0.10, 0.12, NAN, 0.11)])

    baseline = compute_baselines(df, config)["P1"]

    assert baseline.n_vbe == 1
    assert baseline.sd_vbe is None


def test_baselines_are_per_plate_and_skip_plates_without_controls(config, readings) -> None:
    baselines = compute_baselines(readings, config)

    assert sorted(baselines) == ["20230412a", "20230412b"]
    assert baselines["20230412a"].mean_vbe == pytest.approx(0.2)
    assert baselines["20230412a"].sd_vbe == pytest.approx(0.1)
    assert baselines["20230412a"].n_vbe == 3
    assert baselines["20230412b"].sd_vbe is None
    assert "20230419a" not in baselines


def test_controls_missing_primary_or_second_well_are_not_counted(config) -> None:
    df = make_readings([
        ("VBE", "P1", NAN, 0.50, NAN, NAN),
        ("VBE", "P1", 0.40, NAN, NAN, 0.40),
        ("VBE", "P1", 0.20, 0.20, NAN, 0.20),
        ("VBE", "P1", 0.30, 0.30, NAN, 0.30),
    ])

    baseline = compute_baselines(df, config)["P1"]

    assert baseline.n_vbe == 2
    assert baseline.mean_vbe == pytest.approx(0.25)


def test_control_id_match_ignores_case_and_whitespace(config) -> None:
    df = make_readings([
        (" vbe ", "P1", 0.10, 0.10, NAN, 0.10),
        ("VBE", "P1", 0.20, 0.20, NAN, 0.20),
    ])

    assert compute_baselines(df, config)["P1"].n_vbe == 2


def test_baselines_frame_keeps_missing_sd(config, readings) -> None:
    frame = baselines_to_frame(compute_baselines(readings, config))

    assert list(frame.columns) == ["plate", "mean_vbe", "sd_vbe", "n_vbe"]
    assert list(frame["plate"]) == ["20230412a", "20230412b"]
    assert pd.isna(frame.loc[1, "sd_vbe"])


# --- Biofilm Classifier ---

@pytest.mark.parametrize(
    ("od", "expected"),
    [
        (0.05, BiofilmCategory.NON_FORMER),
        (0.15, BiofilmCategory.WEAK),
        (0.30, BiofilmCategory.MODERATE),
        (0.50, BiofilmCategory.STRONG),
    ],
)
def test_classify_bins(od: float, expected: BiofilmCategory) -> None:
    assert classify(od, 0.1) is expected


def test_classify_boundaries_take_the_lower_bin() -> None:
    sd, offset = 0.07, 0.2

    assert classify(offset + 1 * sd, sd, offset) is BiofilmCategory.WEAK
    assert classify(offset + 2 * sd, sd, offset) is BiofilmCategory.WEAK
    assert classify(offset + 4 * sd, sd, offset) is BiofilmCategory.MODERATE


def test_classify_shifts_thresholds_by_offset() -> None:
    assert classify(0.15, 0.1) is BiofilmCategory.WEAK
    assert classify(0.15, 0.1, offset=0.1) is BiofilmCategory.NON_FORMER


@pytest.mark.parametrize("sd", [None, NAN, pd.NA])
def test_classify_undefined_sd_is_unclassifiable(sd) -> None:
    for od in (0.0, 0.1, 10.0):
        assert classify(od, sd) is None


def test_classify_missing_od_is_unclassifiable() -> None:
    assert classify(None, 0.1) is None
    assert classify(NAN, 0.1) is None


def test_classify_is_monotonic_in_od() -> None:
    order = list(BiofilmCategory)
    for sd, offset in [(0.05, 0.0), (0.1, 0.25), (1.3, -0.5)]:
        ranks = [order.index(classify(od, sd, offset)) for od in np.linspace(-1, 8, 400)]
        assert ranks == sorted(ranks)
        assert set(ranks) == {0, 1, 2, 3}


def test_classify_samples_attaches_baseline_and_category(config, readings) -> None:
    samples = readings[readings["source"].str.startswith("S")].rename(columns={"source": "sample_id"})

    result = classify_samples(samples, compute_baselines(readings, config))
    categories = dict(zip(result["sample_id"], result["category"]))

    assert categories["S1"] == "non-former"
    assert categories["S2"] == "weak"
    assert categories["S3"] == "moderate"
    assert categories["S4"] == "strong"
    # single control reading, and no control at all
    assert pd.isna(categories["S5"])
    assert pd.isna(categories["S6"])
    assert result["category"].cat.ordered


def test_classify_samples_with_baseline_mean_offset(config, readings) -> None:
    samples = readings[readings["source"] == "S4"].rename(columns={"source": "sample_id"})

    result = classify_samples(samples, compute_baselines(readings, config), use_baseline_mean=True)

    # 0.50 against 0.2 + k * 0.1
    assert result.loc[0, "category"] == "moderate"


# --- Positive-Control Aggregator ---

def test_positive_control_constant_batch_has_exact_zero_sd(config) -> None:
    df = make_readings([
        ("ATCC 14028", "20230501a", 1.0, 1.0, NAN, 1.0),
        ("ATCC 14028", "20230501b", 1.0, 1.0, NAN, 1.0),
    ])

    summary = summarize_positive_controls(df, config)

    assert len(summary.batches) == 1
    batch = summary.batches[0]
    assert batch.batch == "20230501"
    assert batch.mean_cv == 1.0
    assert batch.sd_cv == 0
    assert batch.n == 4
    assert batch.sample_date == dt.date(2023, 5, 1)


def test_positive_control_overall_pools_raw_values(config, readings) -> None:
    summary = summarize_positive_controls(readings, config)

    assert [b.batch for b in summary.batches] == ["20230412", "20230419"]
    assert [b.n for b in summary.batches] == [4, 3]

    pooled = [1.0, 1.0, 1.0, 1.0, 2.0, 2.0, 2.0]
    assert summary.overall.n == 7
    assert summary.overall.mean == pytest.approx(np.mean(pooled))
    assert summary.overall.sd == pytest.approx(np.std(pooled, ddof=1))
    assert summary.overall.mean != pytest.approx(np.mean([b.mean_cv for b in summary.batches]))


def test_positive_control_without_matches_reports_no_data(config, readings) -> None:
    config["positive_control_prefix"] = "NCTC"

    summary = summarize_positive_controls(readings, config)

    assert not summary.has_data
    assert summary.batches == []
    assert summary.overall is None


def test_positive_control_prefix_match_ignores_case(config) -> None:
    df = make_readings([
        ("atcc 14028", "20230501a", 1.0, 1.0, 1.0, 1.0),
        (" ATCC 25922", "20230501b", 1.0, 1.0, NAN, 1.0),
    ])

    summary = summarize_positive_controls(df, config)

    assert summary.overall.n == 5


def test_positive_control_all_zero_values_still_has_data(config) -> None:
    df = make_readings([("ATCC 14028", "20230501a", 0.0, 0.0, 0.0, 0.0)])

    summary = summarize_positive_controls(df, config)

    assert summary.has_data
    assert summary.overall.mean == 0.0


@pytest.mark.parametrize(
    ("od", "expected"),
    [
        (0.70, BiofilmCategory.WEAK),
        (0.81, BiofilmCategory.MODERATE),
        (0.85, BiofilmCategory.MODERATE),
        (1.15, BiofilmCategory.MODERATE),
        (1.19, BiofilmCategory.MODERATE),
        (1.30, BiofilmCategory.STRONG),
    ],
)
def test_positive_control_scheme(od: float, expected: BiofilmCategory) -> None:
    overall = OverallStats(mean=1.0, sd=0.1, n=10)
    assert classify_against_positive_control(od, overall) is expected


def test_positive_control_scheme_leaves_inner_band_unassigned() -> None:
    overall = OverallStats(mean=1.0, sd=0.1, n=10)

    assert classify_against_positive_control(1.0, overall) is None
    assert classify_against_positive_control(0.95, overall) is None


def test_positive_control_scheme_without_stats() -> None:
    assert classify_against_positive_control(1.0, None) is None
    assert classify_against_positive_control(1.0, OverallStats(mean=1.0, sd=None, n=1)) is None


def test_positive_control_scheme_boundaries_are_moderate() -> None:
    overall = OverallStats(mean=1.0, sd=0.1, n=10)

    for k in (-2, -1, 1, 2):
        od = overall.mean + k * overall.sd
        assert classify_against_positive_control(od, overall) is BiofilmCategory.MODERATE
