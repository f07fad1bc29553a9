"""
Core data types for EEG Artifacts

This module defines the records produced by artifact detection and the closed
set of detection modes understood by the detector backends.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .exceptions import InvalidArgumentError


class DetectionMode(str, Enum):
    """Statistic the change-point backend looks for"""
    MEAN = "mean"                 # Shift in mean, mean/std standardization
    MEANVAR = "meanvar"           # Joint shift in mean and variance
    ROBUST_MEAN = "robustmean"    # Shift in mean, median/MAD standardization

    @classmethod
    def parse(cls, value: Union[str, "DetectionMode"]) -> "DetectionMode":
        """Resolve a mode name (case-insensitive) into a DetectionMode"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [m.value for m in cls]
            raise InvalidArgumentError(
                f"Unknown detection mode '{value}'. Valid modes: {valid}"
            ) from None


@dataclass(frozen=True)
class ModeDefaults:
    """Thresholds bound to a detection mode"""
    alpha: float                  # Minimum mean change for collective anomalies
    beta: float                   # Minimum strength for point anomalies
    min_segment_length: int       # Shortest collective anomaly (samples)


@dataclass(frozen=True)
class CollectiveAnomaly:
    """A contiguous run of anomalous samples on one channel"""
    channel: str
    start: int                    # Sample index, inclusive
    end: int                      # Sample index, inclusive
    mean_change: float
    variance_change: Optional[float] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    start_epoch: Optional[int] = None
    start_subepoch: Optional[int] = None
    end_epoch: Optional[int] = None
    end_subepoch: Optional[int] = None

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidArgumentError(
                f"Collective anomaly on {self.channel} has start ({self.start}) > end ({self.end})"
            )

    @property
    def strength(self) -> float:
        return self.mean_change

    @property
    def n_samples(self) -> int:
        """Samples spanned on the absolute sample grid, gaps included"""
        return self.end - self.start + 1


@dataclass(frozen=True)
class PointAnomaly:
    """A single anomalous sample on one channel"""
    channel: str
    location: int                 # Sample index
    strength: float
    time: Optional[float] = None
    epoch: Optional[int] = None
    subepoch: Optional[int] = None


@dataclass(frozen=True)
class EpochLocation:
    """Position of a sample inside the epoch/subepoch grid"""
    epoch: int
    subepoch: int
    second: float                 # Offset within the subepoch (seconds)
