"""
Artifact detection over whole recordings

Two strategies are offered:

- run_direct: one detector call over the entire recording. Simple, but the
  change-point statistics are computed against the global signal level and the
  cost grows with recording length.
- run_stepwise: the recording is cut into consecutive segments of step_size
  seconds and each segment is analysed on its own. Segment results are
  rebased onto row positions of the whole table and concatenated in segment
  order.

Both finish by translating row positions into absolute sample indices and
attaching Time and epoch/subepoch fields to every record.
"""

import dataclasses
import logging
import time
from typing import List, Optional, Tuple, Union
import pandas as pd
from joblib import Parallel, delayed

from ..core.config import EPOCH_SEC, STEP_SIZE_SEC, TIME_COLUMN, mode_defaults
from ..core.data_types import CollectiveAnomaly, DetectionMode, PointAnomaly
from ..core.exceptions import OutOfRangeError
from ..processing.epoching import epoch_arrays
from ..processing.windowing import iter_windows, samples_per_window
from .detector import AnomalyDetector

Records = Tuple[List[CollectiveAnomaly], List[PointAnomaly]]


def channel_columns(data: pd.DataFrame) -> List[str]:
    """Channel columns of a signal table (everything but Time)"""
    return [col for col in data.columns if col != TIME_COLUMN]


def rebase(collective: List[CollectiveAnomaly], point: List[PointAnomaly],
           offset: int) -> Records:
    """Shift segment-relative row positions by offset rows"""
    return (
        [dataclasses.replace(a, start=a.start + offset, end=a.end + offset) for a in collective],
        [dataclasses.replace(a, location=a.location + offset) for a in point],
    )


def set_timevars(
    collective: List[CollectiveAnomaly],
    point: List[PointAnomaly],
    data: pd.DataFrame,
    fs: float,
    epoch_sec: float = EPOCH_SEC
) -> Records:
    """
    Attach absolute indices, Time and epoch/subepoch fields to anomaly records

    Incoming indices are row positions of data. The returned records carry
    the absolute sample index of those rows (the `Sample` label), so they
    stay valid for data.loc after rows before them have been removed.

    Raises:
        OutOfRangeError: If a record points outside the table
    """
    n_rows = len(data)
    labels = data.index.to_numpy()
    times = data[TIME_COLUMN].to_numpy(dtype=float)
    epochs, subepochs = epoch_arrays(labels, fs, epoch_sec)

    def check(position: int) -> int:
        if not 0 <= position < n_rows:
            raise OutOfRangeError(f"Anomaly index {position} outside table of {n_rows} rows")
        return position

    timed_collective = []
    for a in collective:
        start, end = check(a.start), check(a.end)
        timed_collective.append(dataclasses.replace(
            a,
            start=int(labels[start]),
            end=int(labels[end]),
            start_time=float(times[start]),
            end_time=float(times[end]),
            start_epoch=int(epochs[start]),
            start_subepoch=int(subepochs[start]),
            end_epoch=int(epochs[end]),
            end_subepoch=int(subepochs[end]),
        ))

    timed_point = []
    for a in point:
        loc = check(a.location)
        timed_point.append(dataclasses.replace(
            a,
            location=int(labels[loc]),
            time=float(times[loc]),
            epoch=int(epochs[loc]),
            subepoch=int(subepochs[loc]),
        ))

    return timed_collective, timed_point


def run_direct(
    data: pd.DataFrame,
    fs: float,
    alpha: Optional[float] = None,
    beta: Optional[float] = None,
    mode: Union[str, DetectionMode] = DetectionMode.MEAN,
    detector: Optional[AnomalyDetector] = None,
    epoch_sec: float = EPOCH_SEC
) -> Records:
    """
    Detect artifacts over the whole recording at once

    Args:
        data: Signal table
        fs: Sampling frequency in Hz
        alpha: Minimum mean change of collective anomalies (default: bound
            to the mode)
        beta: Minimum strength of point anomalies (default: bound to the mode)
        mode: Statistic the detector looks for
        detector: Detector adapter (default backend if None)
        epoch_sec: Epoch length for the derived epoch fields

    Returns:
        Tuple of (collective, point) records indexed by absolute sample index
    """
    defaults = mode_defaults(mode)
    alpha = defaults.alpha if alpha is None else alpha
    beta = defaults.beta if beta is None else beta
    detector = detector or AnomalyDetector()
    channels = channel_columns(data)

    logging.info(f"Starting artifact analysis on {len(data)} samples x {len(channels)} channels")
    start_time = time.time()

    collective, point = detector.detect(data[channels].to_numpy(dtype=float), channels, mode)
    collective = [a for a in collective if a.mean_change >= alpha]
    point = [a for a in point if a.strength >= beta]

    logging.info(
        f"Analysis took {time.time() - start_time:.2f}s: "
        f"{len(collective)} collective, {len(point)} point anomalies"
    )
    return set_timevars(collective, point, data, fs, epoch_sec)


def run_stepwise(
    data: pd.DataFrame,
    fs: float,
    step_size: float = STEP_SIZE_SEC,
    alpha: Optional[float] = None,
    mode: Union[str, DetectionMode] = DetectionMode.MEAN,
    detector: Optional[AnomalyDetector] = None,
    n_jobs: int = 1,
    epoch_sec: float = EPOCH_SEC
) -> Records:
    """
    Detect artifacts segment by segment

    The trailing segment shorter than step_size is not analysed. Collective
    anomalies are kept when mean_change >= alpha; point anomalies are all
    kept. Segment k (1-indexed) is rebased by samples_per_step * (k - 1).

    Args:
        data: Signal table
        fs: Sampling frequency in Hz
        step_size: Segment length in seconds
        alpha: Minimum mean change of collective anomalies (default: bound
            to the mode)
        mode: Statistic the detector looks for
        detector: Detector adapter (default backend if None)
        n_jobs: joblib workers; segments are independent and results are
            merged in segment order once all of them finish
        epoch_sec: Epoch length for the derived epoch fields

    Returns:
        Tuple of (collective, point) records indexed by absolute sample index
    """
    if alpha is None:
        alpha = mode_defaults(mode).alpha
    detector = detector or AnomalyDetector()
    channels = channel_columns(data)
    samples_per_step = samples_per_window(step_size, fs)

    segments = [
        window.data[channels].to_numpy(dtype=float)
        for window in iter_windows(data, step_size, fs, drop_partial=True)
    ]
    if not segments:
        logging.warning(
            f"Recording has {len(data)} samples, fewer than one {step_size}s step "
            f"({samples_per_step} samples); nothing analysed"
        )
        return [], []

    logging.info(f"Starting stepwise analysis: {len(segments)} segments of {step_size}s")
    start_time = time.time()

    if n_jobs == 1:
        results = [detector.detect(matrix, channels, mode) for matrix in segments]
    else:
        results = Parallel(n_jobs=n_jobs)(
            delayed(detector.detect)(matrix, channels, mode) for matrix in segments
        )

    collective: List[CollectiveAnomaly] = []
    point: List[PointAnomaly] = []
    for k, (segment_collective, segment_point) in enumerate(results, start=1):
        segment_collective = [a for a in segment_collective if a.mean_change >= alpha]
        shifted_collective, shifted_point = rebase(
            segment_collective, segment_point, samples_per_step * (k - 1)
        )
        collective.extend(shifted_collective)
        point.extend(shifted_point)
        logging.debug(
            f"Segment {k}: {len(shifted_collective)} collective, {len(shifted_point)} point anomalies"
        )

    logging.info(
        f"Stepwise analysis took {time.time() - start_time:.2f}s: "
        f"{len(collective)} collective, {len(point)} point anomalies"
    )
    return set_timevars(collective, point, data, fs, epoch_sec)
