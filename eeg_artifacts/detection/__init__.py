"""
Artifact detection

This module contains the anomaly backend, the detector adapter, the direct
and stepwise detection runs and the anomaly store.
"""

from .backend import capa_backend
from .detector import AnomalyDetector
from .stepwise import run_direct, run_stepwise, set_timevars
from .store import AnomalyStore, StrengthFilterResult, filter_by_strength, minmax_normalization

__all__ = [
    'capa_backend', 'AnomalyDetector',
    'run_direct', 'run_stepwise', 'set_timevars',
    'AnomalyStore', 'StrengthFilterResult', 'filter_by_strength', 'minmax_normalization'
]
