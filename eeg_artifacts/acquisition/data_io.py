"""
Data input/output for EEG recordings

Recordings are exchanged as CSV files with one row per sample: the first
column is `Time` (seconds) and every other column is a channel. Exports from
acquisition software often carry raw labels such as "EEG C3-A2" or
"EOG ROC-A1"; an optional signals file with a `Label` column (one row per
channel, in column order) is used to rename the channels.
"""

import logging
import os
from typing import Optional, Tuple
import numpy as np
import pandas as pd

from ..core.config import CHANNEL_LABEL_STRIP, SAMPLE_INDEX, TIME_COLUMN
from ..core.exceptions import InvalidArgumentError


def clean_label(label: str) -> str:
    """Strip the known prefixes/suffixes from a raw channel label"""
    cleaned = str(label)
    for token in CHANNEL_LABEL_STRIP:
        cleaned = cleaned.replace(token, "", 1)
    return cleaned.strip()


def load_signals(path: str) -> pd.DataFrame:
    """
    Load the signals side file

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidArgumentError: If the file has no `Label` column
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Signals file not found: {path}")

    signals = pd.read_csv(path)
    if "Label" not in signals.columns:
        raise InvalidArgumentError(
            f"Signals file {path} has no 'Label' column. Available columns: {list(signals.columns)}"
        )
    return signals


def load_csv(
    data_file: str,
    signals_file: Optional[str] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Load an EEG recording from CSV

    Args:
        data_file: CSV with `Time` first and one column per channel
        signals_file: Optional CSV whose `Label` column renames the channels

    Returns:
        Tuple of:
        - data: Signal table indexed by absolute sample index (`Sample`)
        - signals: Contents of the signals file (empty if none was given)

    Raises:
        FileNotFoundError: If a file doesn't exist
        InvalidArgumentError: If the layout is not Time + numeric channels, or
            the signals file lists a different number of channels
    """
    if not os.path.exists(data_file):
        raise FileNotFoundError(f"CSV file not found: {data_file}")

    logging.info(f"Loading CSV data from: {data_file}")
    data = pd.read_csv(data_file)
    logging.info(f"CSV shape: {data.shape}")

    if len(data.columns) < 2 or data.columns[0] != TIME_COLUMN:
        raise InvalidArgumentError(
            f"Expected '{TIME_COLUMN}' as first column followed by channels, got {list(data.columns)}"
        )

    non_numeric = [col for col in data.columns if not np.issubdtype(data[col].dtype, np.number)]
    if non_numeric:
        raise InvalidArgumentError(f"Non-numeric columns in {data_file}: {non_numeric}")

    if signals_file is not None:
        signals = load_signals(signals_file)
        labels = [clean_label(label) for label in signals["Label"]]
        n_channels = len(data.columns) - 1
        if len(labels) != n_channels:
            raise InvalidArgumentError(
                f"Signals file lists {len(labels)} labels but data has {n_channels} channels"
            )
        data.columns = [TIME_COLUMN] + labels
        logging.info(f"Renamed channels from signals file: {labels}")
    else:
        signals = pd.DataFrame()

    data.index = pd.RangeIndex(len(data), name=SAMPLE_INDEX)
    logging.info(f"Loaded {len(data.columns) - 1} channels: {list(data.columns[1:])}")
    return data, signals


def save_csv(data: pd.DataFrame, path: str) -> None:
    """Write a signal table to CSV (Time + channels, no index column)"""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    data.to_csv(path, index=False)
    logging.info(f"Saved {len(data)} samples to: {path}")
