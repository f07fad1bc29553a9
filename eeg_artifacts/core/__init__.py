"""
Core data types, configuration and errors for EEG Artifacts
"""

from .data_types import (
    CollectiveAnomaly, DetectionMode, EpochLocation, ModeDefaults, PointAnomaly
)
from .exceptions import (
    DetectionFailure, EEGArtifactError, EmptyAnalysisError,
    InvalidArgumentError, OutOfRangeError
)
from .config import DetectionConfig, validate_config

__all__ = [
    'CollectiveAnomaly', 'PointAnomaly', 'EpochLocation',
    'DetectionMode', 'ModeDefaults',
    'EEGArtifactError', 'InvalidArgumentError', 'OutOfRangeError',
    'EmptyAnalysisError', 'DetectionFailure',
    'DetectionConfig', 'validate_config'
]
