"""
Epoch rejection for continuous EEG recordings

Removes whole epochs, or individual epoch/subepoch pairs, from a signal table.
Rejection works on the absolute sample index carried by the table, so tables
that were already subset or cleaned can be rejected again without shifting
epoch numbers.

Both functions return a new table; the input is never modified and the
scratch columns used for matching never leak into the output.
"""

import logging
from typing import Iterable, Sequence
import numpy as np
import pandas as pd

from ..core.config import EPOCH_SEC
from ..core.exceptions import InvalidArgumentError
from .epoching import epoch_arrays


def drop_epochs(
    data: pd.DataFrame,
    epochs: Iterable[int],
    fs: float,
    epoch_sec: float = EPOCH_SEC
) -> pd.DataFrame:
    """
    Remove all rows belonging to the given epochs

    Args:
        data: Signal table indexed by absolute sample index
        epochs: Epoch numbers to remove (0-based)
        fs: Sampling frequency in Hz
        epoch_sec: Epoch length in seconds

    Returns:
        New table without the rows of those epochs, same columns and order
    """
    targets = np.asarray(sorted({int(e) for e in epochs}), dtype=np.int64)
    row_epochs, _ = epoch_arrays(data.index.to_numpy(), fs, epoch_sec)

    keep = ~np.isin(row_epochs, targets)
    cleaned = data.loc[keep].copy()

    logging.info(
        f"Dropped {len(targets)} epochs ({len(data) - len(cleaned)} samples), "
        f"{len(cleaned)} samples remaining"
    )
    return cleaned


def drop_subepochs(
    data: pd.DataFrame,
    epochs: Sequence[int],
    subepochs: Sequence[int],
    fs: float,
    epoch_sec: float = EPOCH_SEC
) -> pd.DataFrame:
    """
    Remove rows whose (epoch, subepoch) pair is listed

    The two lists are paired element-wise: pair i is (epochs[i], subepochs[i]).
    This is not a cross product, so with epochs=[1, 1, 2] and
    subepochs=[0, 1, 0] the rows of (1, 2) are kept.

    Args:
        data: Signal table indexed by absolute sample index
        epochs: Epoch number of each pair
        subepochs: Subepoch number of each pair
        fs: Sampling frequency in Hz
        epoch_sec: Epoch length in seconds

    Returns:
        New table without the listed pairs, same columns and order

    Raises:
        InvalidArgumentError: If the lists differ in length
    """
    epochs = list(epochs)
    subepochs = list(subepochs)
    if len(epochs) != len(subepochs):
        raise InvalidArgumentError(
            f"Epoch and subepoch lists must have equal length, "
            f"got {len(epochs)} epochs and {len(subepochs)} subepochs"
        )

    row_epochs, row_subepochs = epoch_arrays(data.index.to_numpy(), fs, epoch_sec)
    rows = pd.MultiIndex.from_arrays([row_epochs, row_subepochs])
    contaminated = pd.MultiIndex.from_arrays(
        [np.asarray(epochs, dtype=np.int64), np.asarray(subepochs, dtype=np.int64)]
    )

    keep = ~rows.isin(contaminated)
    cleaned = data.loc[keep].copy()

    logging.info(
        f"Dropped {len(set(zip(epochs, subepochs)))} epoch/subepoch pairs "
        f"({len(data) - len(cleaned)} samples), {len(cleaned)} samples remaining"
    )
    return cleaned
