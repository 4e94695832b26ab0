# biofilm_pipeline/models.py

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Baseline:
    """Negative-control (VBE) statistics for one plate."""
    plate: str
    mean_vbe: float
    sd_vbe: Optional[float]  # None when n_vbe == 1
    n_vbe: int


@dataclass(frozen=True)
class PositiveControlBatch:
    batch: str
    sample_date: Optional[dt.date]
    mean_cv: float
    sd_cv: Optional[float]
    n: int


@dataclass(frozen=True)
class OverallStats:
    mean: float
    sd: Optional[float]
    n: int


@dataclass(frozen=True)
class PositiveControlSummary:
    batches: List[PositiveControlBatch] = field(default_factory=list)
    overall: Optional[OverallStats] = None

    @property
    def has_data(self) -> bool:
        return self.overall is not None
