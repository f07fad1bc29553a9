"""
Error types for EEG Artifacts

Every core operation fails fast with one of these instead of returning
partial or sentinel results. Messages always carry the offending values so
exploratory analyses can be debugged from the traceback alone.
"""


class EEGArtifactError(Exception):
    """Base class for all errors raised by the package."""
    pass


class InvalidArgumentError(EEGArtifactError, ValueError):
    """Raised for bad bounds, non-positive rates/durations or mismatched inputs."""
    pass


class OutOfRangeError(EEGArtifactError, IndexError):
    """Raised when requested bounds or indices are not present in the signal table."""
    pass


class EmptyAnalysisError(EEGArtifactError):
    """Raised when epoch contamination is requested but no anomalies are recorded."""
    pass


class DetectionFailure(EEGArtifactError, RuntimeError):
    """Raised when the anomaly detection backend errors or returns malformed output."""
    pass
