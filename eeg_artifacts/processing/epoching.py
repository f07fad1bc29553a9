"""
Epoch indexing for continuous EEG recordings

This module maps absolute sample indices onto the epoch/subepoch grid used for
artifact aggregation and rejection, and back. An epoch is a fixed-length block
of the recording (30 s by default); a subepoch is a 1-second slice inside it.

The grid is anchored at absolute sample 0 of the recording, not at the first
row of the current table. Tables carry their absolute sample index in the
`Sample` index, so epoch numbers stay stable after rows have been removed.

Conventions:
- Sample indices, epochs and subepochs are all 0-based
- A trailing partial epoch is numbered like any other epoch
"""

import logging
import math
from typing import Tuple
import numpy as np
import pandas as pd

from ..core.config import EPOCH_SEC, TIME_COLUMN
from ..core.data_types import EpochLocation
from ..core.exceptions import InvalidArgumentError


def _check_grid(fs: float, epoch_sec: float) -> None:
    if fs <= 0:
        raise InvalidArgumentError(f"Sampling frequency must be positive, got {fs}")
    if epoch_sec <= 0:
        raise InvalidArgumentError(f"Epoch length must be positive, got {epoch_sec}")


def samples_per_epoch(fs: float, epoch_sec: float = EPOCH_SEC) -> int:
    """
    Number of samples in one epoch

    Args:
        fs: Sampling frequency in Hz
        epoch_sec: Epoch length in seconds

    Returns:
        int: round(fs * epoch_sec)

    Raises:
        InvalidArgumentError: If fs or epoch_sec is not positive, or if the
            epoch is shorter than one sample
    """
    _check_grid(fs, epoch_sec)
    n = int(round(fs * epoch_sec))
    if n < 1:
        raise InvalidArgumentError(
            f"Epoch of {epoch_sec}s at {fs}Hz contains no samples"
        )
    return n


def to_epoch(abs_index: int, fs: float, epoch_sec: float = EPOCH_SEC) -> Tuple[int, int]:
    """
    Convert an absolute sample index into its (epoch, subepoch) pair

    epoch = abs_index // samples_per_epoch
    subepoch = floor((abs_index mod samples_per_epoch) / fs)

    Args:
        abs_index: 0-based absolute sample index
        fs: Sampling frequency in Hz
        epoch_sec: Epoch length in seconds

    Returns:
        Tuple[epoch, subepoch]
    """
    location = locate(abs_index, fs, epoch_sec)
    return location.epoch, location.subepoch


def locate(abs_index: int, fs: float, epoch_sec: float = EPOCH_SEC) -> EpochLocation:
    """
    Full position of a sample on the epoch grid, including the offset in
    seconds inside its subepoch
    """
    spe = samples_per_epoch(fs, epoch_sec)
    if abs_index < 0:
        raise InvalidArgumentError(f"Sample index must be non-negative, got {abs_index}")

    epoch, offset = divmod(int(abs_index), spe)
    seconds = offset / fs
    subepoch = int(math.floor(seconds))
    return EpochLocation(epoch=epoch, subepoch=subepoch, second=seconds - subepoch)


def epoch_bounds(epoch: int, fs: float, epoch_sec: float = EPOCH_SEC) -> Tuple[int, int]:
    """
    First and last absolute sample index of an epoch (both inclusive)

    The bounds are those of a full epoch; callers working on a finite table
    clip the end index to the table length themselves.
    """
    spe = samples_per_epoch(fs, epoch_sec)
    if epoch < 0:
        raise InvalidArgumentError(f"Epoch number must be non-negative, got {epoch}")
    start = int(epoch) * spe
    return start, start + spe - 1


def count_epochs(n_samples: int, fs: float, epoch_sec: float = EPOCH_SEC) -> int:
    """Number of epochs covering n_samples, counting a trailing partial epoch"""
    spe = samples_per_epoch(fs, epoch_sec)
    if n_samples < 0:
        raise InvalidArgumentError(f"Sample count must be non-negative, got {n_samples}")
    return -(-int(n_samples) // spe)


def epoch_arrays(
    sample_index: np.ndarray,
    fs: float,
    epoch_sec: float = EPOCH_SEC
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized to_epoch over an array of absolute sample indices

    Returns:
        Tuple of (epochs, subepochs) integer arrays with the input's shape
    """
    spe = samples_per_epoch(fs, epoch_sec)
    idx = np.asarray(sample_index, dtype=np.int64)
    if idx.size and idx.min() < 0:
        raise InvalidArgumentError(f"Sample indices must be non-negative, got min {idx.min()}")

    epochs = idx // spe
    subepochs = np.floor((idx % spe) / fs).astype(np.int64)
    return epochs, subepochs


def set_epochs(
    data: pd.DataFrame,
    fs: float,
    epoch_sec: float = EPOCH_SEC,
    subepochs: bool = False
) -> pd.DataFrame:
    """
    Tag every row of a signal table with its epoch (and subepoch)

    The columns are inserted right after `Time`, which keeps channel columns
    at the end of the table. The input is not modified.

    Args:
        data: Signal table indexed by absolute sample index
        fs: Sampling frequency in Hz
        epoch_sec: Epoch length in seconds
        subepochs: If True, also add a `Subepoch` column

    Returns:
        Copy of data with `Epoch` (and `Subepoch`) columns
    """
    epochs, subs = epoch_arrays(data.index.to_numpy(), fs, epoch_sec)

    tagged = data.copy()
    position = tagged.columns.get_loc(TIME_COLUMN) + 1 if TIME_COLUMN in tagged.columns else 0
    tagged.insert(position, "Epoch", epochs)
    if subepochs:
        tagged.insert(position + 1, "Subepoch", subs)

    logging.debug(
        f"Tagged {len(tagged)} samples with {epoch_sec}s epochs "
        f"({len(np.unique(epochs))} distinct epochs)"
    )
    return tagged
