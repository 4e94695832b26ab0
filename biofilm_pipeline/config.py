"""Analysis configuration: defaults plus optional TOML/JSON overrides."""
from __future__ import annotations

import copy
import json
import pathlib
import tomllib
from typing import Any, TypedDict, Union


class ConfigError(RuntimeError):
    """Raised when configuration loading fails."""


class AnalysisConfig(TypedDict):
    negative_control_id: str
    positive_control_prefix: str
    replicate_columns: list[str]
    cv_sheet: Union[int, str]
    alpha: float
    use_baseline_mean: bool


DEFAULT_CONFIG: AnalysisConfig = {
    "negative_control_id": "VBE",
    "positive_control_prefix": "ATCC",
    "replicate_columns": ["cv_1", "cv_2", "cv_3"],
    "cv_sheet": 0,
    "alpha": 0.05,
    "use_baseline_mean": False,
}


def default_config() -> AnalysisConfig:
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(overrides: dict[str, Any]) -> AnalysisConfig:
    """Overlay ``overrides`` on the defaults, rejecting unknown keys."""
    unknown = sorted(set(overrides) - set(DEFAULT_CONFIG))
    if unknown:
        raise ConfigError(f"Unknown config keys: {unknown}")

    config = default_config()
    config.update(overrides)  # type: ignore[typeddict-item]

    replicates = config["replicate_columns"]
    if len(replicates) < 2 or replicates[:2] != ["cv_1", "cv_2"]:
        raise ConfigError("replicate_columns must start with 'cv_1', 'cv_2'")
    if not 0 < float(config["alpha"]) < 1:
        raise ConfigError(f"alpha must be in (0, 1), got {config['alpha']}")
    return config


def load_config(path: str | pathlib.Path) -> AnalysisConfig:
    """Load a configuration file (TOML or JSON) merged onto the defaults."""
    path_obj = pathlib.Path(path)
    if not path_obj.exists():
        raise ConfigError(f"Config path does not exist: {path_obj}")

    suffix = path_obj.suffix.lower()
    if suffix == ".toml":
        with path_obj.open("rb") as handle:
            raw = tomllib.load(handle)
    elif suffix == ".json":
        with path_obj.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    else:
        raise ConfigError(f"Unsupported config format: {path_obj.suffix}")

    # accept either a flat file or an [analysis] table
    if isinstance(raw.get("analysis"), dict):
        raw = raw["analysis"]
    return merge_config(raw)
