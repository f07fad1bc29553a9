"""
EEG Artifacts - change-point artifact detection and epoch rejection for EEG

A modular Python package that finds collective and point anomalies in
multichannel EEG recordings, aggregates them on a 30s epoch / 1s subepoch
grid and removes the contaminated parts of the recording.
"""

__version__ = "1.0.0"

# Main package imports for easy access
from .core.data_types import CollectiveAnomaly, PointAnomaly, DetectionMode
from .core.exceptions import (
    EEGArtifactError, InvalidArgumentError, OutOfRangeError, EmptyAnalysisError, DetectionFailure
)
from .detection.detector import AnomalyDetector
from .detection.store import AnomalyStore, filter_by_strength, minmax_normalization
from .record import EEGRecord, reject

__all__ = [
    'CollectiveAnomaly', 'PointAnomaly', 'DetectionMode',
    'EEGArtifactError', 'InvalidArgumentError', 'OutOfRangeError',
    'EmptyAnalysisError', 'DetectionFailure',
    'AnomalyDetector', 'AnomalyStore', 'filter_by_strength', 'minmax_normalization',
    'EEGRecord', 'reject'
]
