"""
Power spectral density of signal tables

Uses Welch's method, one channel at a time, and reports log10 power so that
channels with very different amplitudes can be compared on one axis.
"""

import logging
from typing import Optional, Tuple
import numpy as np
import pandas as pd
from scipy import signal as sp_signal

from ..core.config import TIME_COLUMN
from ..core.exceptions import InvalidArgumentError


def compute_welch_psd(values: np.ndarray, fs: float,
                      nperseg: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute power spectral density using Welch's method

    Args:
        values: Samples of a single channel
        fs: Sampling frequency in Hz
        nperseg: Length of each Welch segment (default: one second of data)

    Returns:
        Tuple[frequencies, power]
    """
    if fs <= 0:
        raise InvalidArgumentError(f"Sampling frequency must be positive, got {fs}")
    if nperseg is None:
        nperseg = min(int(fs), len(values))

    freqs, psd = sp_signal.welch(values, fs=fs, nperseg=nperseg,
                                 noverlap=nperseg // 2, window='hann')
    return freqs, psd


def compute_psd(data: pd.DataFrame, fs: float,
                nperseg: Optional[int] = None) -> pd.DataFrame:
    """
    Log10 PSD of every channel of a signal table

    Returns:
        DataFrame with one column per channel plus a `Fqc` column holding
        the frequency of each row (Hz)
    """
    channels = [col for col in data.columns if col != TIME_COLUMN]
    logging.info(f"Computing Welch PSD for {len(channels)} channels")

    spectra = {}
    freqs = None
    for ch in channels:
        freqs, psd = compute_welch_psd(data[ch].to_numpy(dtype=float), fs, nperseg)
        with np.errstate(divide='ignore'):
            spectra[ch] = np.log10(psd)

    result = pd.DataFrame(spectra)
    result["Fqc"] = freqs if freqs is not None else []
    return result
