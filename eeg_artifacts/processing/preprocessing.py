"""
EEG filtering for signal tables

This module provides the low-pass, high-pass and band-pass filters applied to
whole recordings before (or after) artifact analysis. Each channel is filtered
independently; the Time column and the row count never change.

Technical choices:
- 5th-order Butterworth filters for a maximally flat passband
- Second-order sections (SOS) for numerical stability at low cutoffs
- Zero-phase filtering (sosfiltfilt) so artifacts are not shifted in time
"""

import logging
from enum import Enum
from typing import Sequence, Tuple, Union
import numpy as np
import pandas as pd
from scipy import signal

from ..core.config import FILTER_ORDER, TIME_COLUMN
from ..core.exceptions import InvalidArgumentError


class FilterKind(str, Enum):
    LOW = "low"
    HIGH = "high"
    BAND = "band"


Cutoff = Union[float, Tuple[float, float]]


def design_filter(kind: FilterKind, cutoff: Cutoff, fs: float,
                  order: int = FILTER_ORDER) -> np.ndarray:
    """
    Design a Butterworth filter in second-order sections

    Args:
        kind: Low-pass, high-pass or band-pass
        cutoff: Cutoff in Hz, or (low, high) for band-pass
        fs: Sampling frequency in Hz
        order: Filter order

    Returns:
        np.ndarray: SOS coefficients

    Raises:
        InvalidArgumentError: If cutoffs are not strictly between 0 and Nyquist
    """
    kind = FilterKind(kind)
    if fs <= 0:
        raise InvalidArgumentError(f"Sampling frequency must be positive, got {fs}")
    nyquist = fs / 2

    if kind == FilterKind.BAND:
        try:
            low, high = cutoff
        except (TypeError, ValueError):
            raise InvalidArgumentError(
                f"Band-pass needs a (low, high) cutoff pair, got {cutoff!r}"
            ) from None
        if low >= high:
            raise InvalidArgumentError(f"Band-pass low ({low}) must be < high ({high})")
        edges = [low, high]
    else:
        edges = [cutoff]

    for edge in edges:
        if not 0 < edge < nyquist:
            raise InvalidArgumentError(
                f"Cutoff {edge} Hz must lie strictly between 0 and Nyquist ({nyquist} Hz)"
            )

    wn = [edge / nyquist for edge in edges]
    btype = {"low": "lowpass", "high": "highpass", "band": "bandpass"}[kind.value]
    return signal.butter(order, wn if kind == FilterKind.BAND else wn[0],
                         btype=btype, output="sos")


def filter_channel(values: Sequence[float], kind: FilterKind, cutoff: Cutoff,
                   fs: float, order: int = FILTER_ORDER) -> np.ndarray:
    """
    Filter a single channel

    Returns:
        np.ndarray: Filtered samples, same length as the input
    """
    sos = design_filter(kind, cutoff, fs, order)
    return signal.sosfiltfilt(sos, np.asarray(values, dtype=float))


def filter_channels(data: pd.DataFrame, kind: FilterKind, cutoff: Cutoff,
                    fs: float, order: int = FILTER_ORDER) -> pd.DataFrame:
    """
    Filter every channel of a signal table

    Args:
        data: Signal table (Time column first, one column per channel)
        kind: Low-pass, high-pass or band-pass
        cutoff: Cutoff in Hz, or (low, high) for band-pass
        fs: Sampling frequency in Hz
        order: Filter order

    Returns:
        New table with filtered channels, Time and index unchanged
    """
    sos = design_filter(kind, cutoff, fs, order)
    channels = [col for col in data.columns if col != TIME_COLUMN]

    logging.info(f"Applying {FilterKind(kind).value}-pass filter at {cutoff} Hz "
                 f"to {len(channels)} channels")

    filtered = data.copy()
    for ch in channels:
        try:
            filtered[ch] = signal.sosfiltfilt(sos, data[ch].to_numpy(dtype=float))
        except ValueError as e:
            # sosfiltfilt needs more samples than its edge padding
            raise InvalidArgumentError(f"Cannot filter {len(data)} samples of {ch}: {e}") from e

    return filtered
