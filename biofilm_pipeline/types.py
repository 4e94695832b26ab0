# biofilm_pipeline/types.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class BiofilmCategory(str, Enum):
    NON_FORMER = "non-former"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


# ordinal order, used for sorting and plot axes
CATEGORY_ORDER = [c.value for c in BiofilmCategory]


@dataclass(frozen=True)
class CvReading:
    source: str
    plate: str
    replicates: Tuple[Optional[float], ...]
    mean: Optional[float]
    sd: Optional[float]
    metadata: Dict[str, str] = field(default_factory=dict)
