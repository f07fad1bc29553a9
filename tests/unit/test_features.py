"""
Unit tests for power spectral density.
"""

import numpy as np
import pandas as pd
import pytest

from eeg_artifacts.processing.features import compute_psd, compute_welch_psd

pytestmark = pytest.mark.unit


def test_psd_peaks_at_signal_frequency():
    fs = 100.0
    t = np.arange(int(20 * fs)) / fs
    data = pd.DataFrame({
        "Time": t,
        "O1": np.sin(2 * np.pi * 10 * t),
        "C3": np.sin(2 * np.pi * 25 * t),
    })

    psd = compute_psd(data, fs)

    assert list(psd.columns) == ["O1", "C3", "Fqc"]
    assert psd.loc[psd["O1"].idxmax(), "Fqc"] == pytest.approx(10.0)
    assert psd.loc[psd["C3"].idxmax(), "Fqc"] == pytest.approx(25.0)


def test_welch_default_segment_is_one_second():
    freqs, _ = compute_welch_psd(np.random.RandomState(0).randn(1000), fs=100)
    # 1 s segments give 1 Hz resolution up to Nyquist
    assert len(freqs) == 51
    assert freqs[1] == pytest.approx(1.0)
