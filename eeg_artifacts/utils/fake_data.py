"""
Synthetic EEG recordings with known artifacts

This module creates multichannel EEG-like signals for demos and tests of the
artifact pipeline without requiring real recordings. Background activity is a
mix of rhythms and noise; artifacts are injected at known places so detection
results can be checked against ground truth.
"""

import logging
from typing import Dict, List, Optional, Tuple
import numpy as np
import pandas as pd

from ..core.config import SAMPLE_INDEX, TIME_COLUMN


def synthesize_eeg(
    duration: float = 120.0,
    fs: float = 100.0,
    ch_names: Optional[List[str]] = None,
    n_artifacts: int = 3,
    artifact_sec: float = 2.0,
    artifact_amplitude: float = 150.0,
    n_spikes: int = 4,
    spike_amplitude: float = 250.0,
    seed: int = 42
) -> Tuple[pd.DataFrame, List[Dict]]:
    """
    Generate a synthetic EEG recording

    Two kinds of artifacts are injected:

    1. Mean shifts (movement/electrode pops): artifact_amplitude µV added
       over artifact_sec seconds on one channel
    2. Spikes: a single sample of spike_amplitude µV on one channel

    Args:
        duration: Recording length in seconds
        fs: Sampling frequency in Hz
        ch_names: Channel names (default: a small sleep montage)
        n_artifacts: Number of mean-shift artifacts
        artifact_sec: Length of each mean-shift artifact in seconds
        artifact_amplitude: Size of the mean shift in µV
        n_spikes: Number of single-sample spikes
        spike_amplitude: Size of the spikes in µV
        seed: Random seed for reproducibility

    Returns:
        Tuple of:
        - data: Signal table (Time + channels) indexed by Sample
        - artifacts: Ground truth, one dict per injected artifact with keys
          kind, channel, start, end (0-based, inclusive)
    """
    if ch_names is None:
        ch_names = ['F3', 'C3', 'C4', 'O1', 'O2', 'ROC']

    rng = np.random.RandomState(seed)
    n_samples = int(round(duration * fs))
    n_channels = len(ch_names)
    time_vector = np.arange(n_samples) / fs

    logging.info(
        f"Generating synthetic EEG: {duration}s at {fs}Hz, {n_channels} channels, "
        f"{n_artifacts} artifacts, {n_spikes} spikes"
    )

    signals = np.zeros((n_samples, n_channels))
    for ch_idx in range(n_channels):
        # Alpha (8-12 Hz) and slow (0.5-2 Hz) rhythms with individual frequencies
        alpha_freq = 10 + rng.randn()
        slow_freq = 1 + rng.rand()
        signals[:, ch_idx] = (
            15 * np.sin(2 * np.pi * alpha_freq * time_vector + rng.rand() * 2 * np.pi)
            + 10 * np.sin(2 * np.pi * slow_freq * time_vector + rng.rand() * 2 * np.pi)
            + 8 * rng.randn(n_samples)
        )

    artifacts = []
    artifact_len = max(1, int(round(artifact_sec * fs)))
    if n_artifacts > 0 and n_samples > artifact_len:
        # Non-overlapping slots so the ground truth stays unambiguous
        slot = n_samples // n_artifacts
        for k in range(n_artifacts):
            if slot <= artifact_len:
                break
            start = k * slot + rng.randint(0, slot - artifact_len)
            end = start + artifact_len - 1
            ch_idx = rng.randint(n_channels)
            signals[start:end + 1, ch_idx] += artifact_amplitude
            artifacts.append({"kind": "collective", "channel": ch_names[ch_idx], "start": start, "end": end})

    for _ in range(n_spikes):
        location = rng.randint(n_samples)
        ch_idx = rng.randint(n_channels)
        signals[location, ch_idx] += spike_amplitude
        artifacts.append({"kind": "point", "channel": ch_names[ch_idx], "start": location, "end": location})

    data = pd.DataFrame(signals, columns=ch_names)
    data.insert(0, TIME_COLUMN, time_vector)
    data.index = pd.RangeIndex(n_samples, name=SAMPLE_INDEX)

    logging.info(f"Generated {n_samples} samples with {len(artifacts)} injected artifacts")
    return data, artifacts
