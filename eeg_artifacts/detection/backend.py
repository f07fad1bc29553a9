"""
Default collective/point anomaly backend

The artifact pipeline treats anomaly detection as a black box with a fixed
contract: given a [samples x channels] matrix and a detection mode, return

- a collective table with columns variate, start, end, mean_change
  (plus variance_change in meanvar mode), and
- a point table with columns variate, location, strength,

where variate is the 0-based column number and all indices are 0-based rows
of the matrix. Any callable honouring this contract can replace the backend
below (for example a full CAPA implementation).

The default backend is a lightweight mean-change detector in the spirit of
CAPA:

1. Standardize each channel (mean/std, or median/MAD in robust mode)
2. Smooth the standardized signal with a moving average of
   min_segment_length samples
3. Take contiguous runs where the smoothed signal stays beyond +/-1 for at
   least min_segment_length samples
4. Keep a run when its cost saving, length * mean(z)^2, exceeds the
   collective penalty (default 4 * log(n))
5. Report samples outside kept runs with z^2 above the point penalty
   (default 3 * log(n)) as point anomalies
"""

import math
from typing import List, Optional, Tuple
import numpy as np
import pandas as pd
from scipy.ndimage import uniform_filter1d

from ..core.config import COLLECTIVE_PENALTY_FACTOR, POINT_PENALTY_FACTOR, mode_defaults
from ..core.data_types import DetectionMode

COLLECTIVE_COLUMNS = ["variate", "start", "end", "mean_change"]
POINT_COLUMNS = ["variate", "location", "strength"]

MAD_SCALE = 1.4826  # MAD -> standard deviation for Gaussian data


def standardize(x: np.ndarray, mode: DetectionMode) -> np.ndarray:
    """Center and scale one channel according to the detection mode"""
    if mode == DetectionMode.ROBUST_MEAN:
        center = np.median(x)
        scale = MAD_SCALE * np.median(np.abs(x - center))
    else:
        center = np.mean(x)
        scale = np.std(x)

    if not np.isfinite(scale) or scale <= 0:
        scale = 1.0
    return (x - center) / scale


def _runs(mask: np.ndarray) -> List[Tuple[int, int]]:
    """(start, end) pairs, both inclusive, of the True runs of a boolean mask"""
    padded = np.concatenate([[0], mask.astype(np.int8), [0]])
    edges = np.flatnonzero(np.diff(padded))
    return [(int(s), int(e) - 1) for s, e in zip(edges[::2], edges[1::2])]


def _segment_saving(z: np.ndarray, mode: DetectionMode) -> Tuple[float, float, Optional[float]]:
    """Cost saving of treating z as one anomalous segment"""
    mean = float(np.mean(z))
    saving = len(z) * mean ** 2
    variance = None
    if mode == DetectionMode.MEANVAR:
        variance = float(np.var(z))
        if variance > 0:
            saving += len(z) * (variance - 1.0 - math.log(variance))
    return saving, mean ** 2, variance


def detect_channel(
    z: np.ndarray,
    mode: DetectionMode,
    min_segment_length: int,
    collective_penalty: float,
    point_penalty: float
) -> Tuple[list, list]:
    """
    Collective and point anomalies of one standardized channel

    Returns:
        Tuple of ([(start, end, mean_change, variance_change), ...],
                  [(location, strength), ...])
    """
    n = len(z)
    collective = []
    in_segment = np.zeros(n, dtype=bool)

    if n >= min_segment_length:
        smoothed = uniform_filter1d(z, size=min_segment_length, mode='nearest')
        # Positive and negative shifts are separate segments
        for mask in (smoothed > 1.0, smoothed < -1.0):
            for start, end in _runs(mask):
                if end - start + 1 < min_segment_length:
                    continue
                saving, mean_change, variance = _segment_saving(z[start:end + 1], mode)
                if saving > collective_penalty:
                    collective.append((start, end, mean_change, variance))
                    in_segment[start:end + 1] = True

    collective.sort(key=lambda seg: seg[0])

    squared = z ** 2
    locations = np.flatnonzero((squared > point_penalty) & ~in_segment)
    points = [(int(loc), float(squared[loc])) for loc in locations]

    return collective, points


def capa_backend(
    matrix: np.ndarray,
    mode: DetectionMode = DetectionMode.MEAN,
    min_segment_length: Optional[int] = None,
    collective_penalty: Optional[float] = None,
    point_penalty: Optional[float] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Detect collective and point anomalies on every column of a matrix

    Args:
        matrix: Samples x channels
        mode: Statistic to look for
        min_segment_length: Shortest collective anomaly in samples
            (default: bound to the mode)
        collective_penalty: Minimum saving of a collective anomaly
            (default: 4 * log(n_samples))
        point_penalty: Minimum z^2 of a point anomaly
            (default: 3 * log(n_samples))

    Returns:
        Tuple of (collective, point) DataFrames following the backend contract

    Raises:
        ValueError: If the matrix is not 2-D or contains non-finite values
    """
    mode = DetectionMode.parse(mode)
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2-D samples x channels matrix, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise ValueError("Matrix contains NaN or infinite values")

    n_samples, n_channels = matrix.shape
    log_n = math.log(max(n_samples, 2))
    if min_segment_length is None:
        min_segment_length = mode_defaults(mode).min_segment_length
    if collective_penalty is None:
        collective_penalty = COLLECTIVE_PENALTY_FACTOR * log_n
    if point_penalty is None:
        point_penalty = POINT_PENALTY_FACTOR * log_n

    collective_rows = []
    point_rows = []
    for variate in range(n_channels):
        z = standardize(matrix[:, variate], mode)
        segments, points = detect_channel(
            z, mode, min_segment_length, collective_penalty, point_penalty
        )
        for start, end, mean_change, variance in segments:
            row = {"variate": variate, "start": start, "end": end, "mean_change": mean_change}
            if mode == DetectionMode.MEANVAR:
                row["variance_change"] = variance
            collective_rows.append(row)
        for location, strength in points:
            point_rows.append({"variate": variate, "location": location, "strength": strength})

    collective_columns = COLLECTIVE_COLUMNS + (
        ["variance_change"] if mode == DetectionMode.MEANVAR else []
    )
    collective = pd.DataFrame(collective_rows, columns=collective_columns)
    point = pd.DataFrame(point_rows, columns=POINT_COLUMNS)
    return collective, point
