"""
Pytest configuration and shared fixtures.

Provides synthetic signal tables, records and canned detector backends for
unit and integration tests.
"""

from typing import Callable, Dict, List, Optional

import numpy as np
import pandas as pd
import pytest

from eeg_artifacts.core.config import SAMPLE_INDEX, TIME_COLUMN
from eeg_artifacts.detection.backend import COLLECTIVE_COLUMNS, POINT_COLUMNS
from eeg_artifacts.detection.detector import AnomalyDetector
from eeg_artifacts.record import EEGRecord


def make_table(n_samples: int = 1200, fs: float = 10.0,
               channels: Optional[List[str]] = None, seed: int = 0) -> pd.DataFrame:
    """Signal table with Gaussian noise, Time first, indexed by Sample"""
    channels = channels or ["C3", "C4"]
    rng = np.random.RandomState(seed)
    data = pd.DataFrame(rng.randn(n_samples, len(channels)), columns=channels)
    data.insert(0, TIME_COLUMN, np.arange(n_samples) / fs)
    data.index = pd.RangeIndex(n_samples, name=SAMPLE_INDEX)
    return data


def canned_backend(collective: Optional[List[Dict]] = None,
                   point: Optional[List[Dict]] = None) -> Callable:
    """Backend returning the same tables on every call"""
    def backend(matrix, mode):
        return (
            pd.DataFrame(collective or [], columns=COLLECTIVE_COLUMNS),
            pd.DataFrame(point or [], columns=POINT_COLUMNS),
        )
    return backend


@pytest.fixture
def table() -> pd.DataFrame:
    """
    1200 samples at 10 Hz on C3/C4: epochs 0..3 of 30 s each.

    Returns:
        pd.DataFrame: Signal table indexed by absolute sample index
    """
    return make_table()


@pytest.fixture
def record(table) -> EEGRecord:
    """Record over the 1200-sample table with a backend that finds nothing"""
    return EEGRecord(table, detector=AnomalyDetector(canned_backend()))


@pytest.fixture
def contaminated_record(table) -> EEGRecord:
    """
    Record whose backend reports one collective anomaly on C3 over rows
    295..305 (crossing epochs 0/1) and one point anomaly on C4 at row 650.
    """
    backend = canned_backend(
        collective=[{"variate": 0, "start": 295, "end": 305, "mean_change": 12.0}],
        point=[{"variate": 1, "location": 650, "strength": 3.0}],
    )
    return EEGRecord(table, detector=AnomalyDetector(backend))


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
