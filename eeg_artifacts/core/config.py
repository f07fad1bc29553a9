"""
Configuration for EEG Artifacts

This module contains the default parameters of the artifact pipeline and the
DetectionConfig dataclass used by the command line front end.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from .data_types import DetectionMode, ModeDefaults
from .exceptions import InvalidArgumentError

# ============================================================================
# EPOCH GRID
# ============================================================================

EPOCH_SEC = 30                    # Epoch length (seconds), the unit of rejection
SUBEPOCH_SEC = 1                  # Subepoch resolution (seconds)

# ============================================================================
# DETECTION
# ============================================================================

STEP_SIZE_SEC = 30                # Segment length for stepwise detection (seconds)
ALPHA = 8.0                       # Collective anomaly threshold (mean change)
BETA = 1.0                        # Point anomaly threshold (strength)

# Penalties of the default backend, as multiples of log(n_samples)
COLLECTIVE_PENALTY_FACTOR = 4.0
POINT_PENALTY_FACTOR = 3.0

MODE_DEFAULTS: Dict[DetectionMode, ModeDefaults] = {
    DetectionMode.MEAN: ModeDefaults(alpha=ALPHA, beta=BETA, min_segment_length=10),
    DetectionMode.MEANVAR: ModeDefaults(alpha=ALPHA, beta=BETA, min_segment_length=10),
    DetectionMode.ROBUST_MEAN: ModeDefaults(alpha=ALPHA, beta=BETA, min_segment_length=10),
}

# ============================================================================
# FILTERING AND I/O
# ============================================================================

FILTER_ORDER = 5                  # Butterworth order for low/high/band-pass
TIME_COLUMN = "Time"
SAMPLE_INDEX = "Sample"

# Substrings removed from raw channel labels of the signals file, in order
CHANNEL_LABEL_STRIP: Tuple[str, ...] = ("EEG ", "EOG")


def mode_defaults(mode: Union[str, DetectionMode]) -> ModeDefaults:
    """Look up the thresholds bound to a detection mode"""
    return MODE_DEFAULTS[DetectionMode.parse(mode)]


@dataclass
class DetectionConfig:
    """
    Parameters of one artifact detection run

    Detection:
    - epoch_sec: epoch length used to aggregate and reject (seconds)
    - stepwise: run the detector segment by segment instead of at once
    - step_size: segment length for stepwise detection (seconds)
    - alpha/beta: collective and point anomaly thresholds, None to use the
      thresholds bound to the mode (see MODE_DEFAULTS)
    - mode: statistic the backend looks for ("mean", "meanvar", "robustmean")
    - n_jobs: joblib workers for stepwise detection (1 = sequential)

    Post-processing:
    - threshold: normalized strength below which anomalies are discarded,
      None to keep everything
    """

    epoch_sec: float = EPOCH_SEC
    stepwise: bool = False
    step_size: float = STEP_SIZE_SEC
    alpha: Optional[float] = None
    beta: Optional[float] = None
    mode: DetectionMode = DetectionMode.MEAN
    threshold: Optional[float] = None
    n_jobs: int = 1

    def __post_init__(self):
        self.mode = DetectionMode.parse(self.mode)


def validate_config(config: DetectionConfig) -> None:
    """
    Validate detection parameters before any work starts

    Args:
        config: Configuration to validate

    Raises:
        InvalidArgumentError: If a parameter is out of range
    """
    if config.epoch_sec <= 0:
        raise InvalidArgumentError(f"Epoch length must be positive, got {config.epoch_sec}")

    if config.step_size <= 0:
        raise InvalidArgumentError(f"Step size must be positive, got {config.step_size}")

    if config.alpha is not None and config.alpha < 0:
        raise InvalidArgumentError(f"Alpha must be non-negative, got {config.alpha}")

    if config.beta is not None and config.beta < 0:
        raise InvalidArgumentError(f"Beta must be non-negative, got {config.beta}")

    if config.threshold is not None and not 0.0 <= config.threshold <= 1.0:
        raise InvalidArgumentError(f"Strength threshold must be in [0, 1], got {config.threshold}")

    if config.n_jobs == 0:
        raise InvalidArgumentError("n_jobs must be a non-zero integer (use -1 for all cores)")
