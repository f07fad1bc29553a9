"""
EEG record: signal table plus the results of artifact analysis

EEGRecord owns a signal table (Time + one column per channel, indexed by
absolute sample index) and the AnomalyStore produced by the last detection
run. Typical use:

    record = EEGRecord.from_csv("night.csv", "signals.csv")
    record.bandpass(0.3, 35)
    record.artf_stepwise(step_size=30, alpha=8)
    record.sfilter(0.2)
    cleaned = record.artf_reject()

Anomaly indices are absolute sample indices (labels of the `Sample` index),
so they can be looked up with data.loc. Every operation that changes the
table still clears the store.
"""

import copy
import logging
from typing import Iterable, Optional, Sequence, Union
import mne
import numpy as np
import pandas as pd

from .acquisition.data_io import load_csv, save_csv
from .core.config import EPOCH_SEC, SAMPLE_INDEX, STEP_SIZE_SEC, TIME_COLUMN
from .core.data_types import CollectiveAnomaly, DetectionMode, PointAnomaly
from .core.exceptions import InvalidArgumentError, OutOfRangeError
from .detection.detector import AnomalyDetector
from .detection.stepwise import run_direct, run_stepwise
from .detection.store import (
    AnomalyStore, Normalizer, StrengthFilterResult, filter_by_strength, minmax_normalization
)
from .processing import rejection
from .processing.epoching import count_epochs, set_epochs
from .processing.features import compute_psd
from .processing.preprocessing import FilterKind, filter_channels

# Configure MNE to reduce verbose output
mne.set_log_level('WARNING')


class EEGRecord:
    """
    A multichannel EEG recording with its artifact analysis

    Attributes:
        data: Signal table, `Time` first, indexed by absolute sample index
        signals: Contents of the signals side file (may be empty)
        fs: Sampling frequency in Hz
        epoch_sec: Epoch length used for aggregation and rejection
        anomalies: AnomalyStore of the last detection run
        psd: Last computed power spectrum (empty until compute_psd)
    """

    def __init__(
        self,
        data: pd.DataFrame,
        signals: Optional[pd.DataFrame] = None,
        fs: Optional[float] = None,
        epoch_sec: float = EPOCH_SEC,
        detector: Optional[AnomalyDetector] = None
    ):
        if epoch_sec <= 0:
            raise InvalidArgumentError(f"Epoch length must be positive, got {epoch_sec}")

        self.data = self._validate_table(data)
        self.signals = signals if signals is not None else pd.DataFrame()
        self.epoch_sec = epoch_sec
        self.detector = detector or AnomalyDetector()
        self.anomalies = AnomalyStore()
        self.psd = pd.DataFrame()
        self.fs = float(fs) if fs is not None else self.get_fs()
        if self.fs <= 0:
            raise InvalidArgumentError(f"Sampling frequency must be positive, got {self.fs}")
        self._check_sampling(self.data, self.fs)

    @classmethod
    def from_csv(cls, data_file: str, signals_file: Optional[str] = None, **kwargs) -> "EEGRecord":
        """
        Load a record from a CSV export (see acquisition.data_io.load_csv)

        Exports carry no index column, so the Sample index is rebuilt from the
        Time steps. Gaps left by epoch rejection survive a save/load round trip.
        """
        data, signals = load_csv(data_file, signals_file)
        times = data[TIME_COLUMN].to_numpy(dtype=float)
        if len(times) >= 2 and np.all(np.diff(times) > 0):
            fs = kwargs.get("fs")
            if fs is None:
                fs = round(1.0 / float(times[1] - times[0]), 6)
            steps = np.rint((times - times[0]) * fs).astype(np.int64)
            if np.all(np.diff(steps) >= 1):
                data.index = pd.Index(steps, name=SAMPLE_INDEX)
        return cls(data, signals=signals, **kwargs)

    @staticmethod
    def _check_sampling(data: pd.DataFrame, fs: float) -> None:
        """Time steps must match 1/fs times the gap between sample indices"""
        times = data[TIME_COLUMN].to_numpy(dtype=float)
        expected = np.diff(data.index.to_numpy(dtype=float)) / fs
        if not np.allclose(np.diff(times), expected, rtol=0.0, atol=0.01 / fs):
            raise InvalidArgumentError(
                f"Time column does not advance by a constant 1/fs = {1.0 / fs:g}s per sample"
            )

    @staticmethod
    def _validate_table(data: pd.DataFrame) -> pd.DataFrame:
        if len(data.columns) < 2 or data.columns[0] != TIME_COLUMN:
            raise InvalidArgumentError(
                f"Signal table needs '{TIME_COLUMN}' as first column followed by channels, "
                f"got {list(data.columns)}"
            )
        if len(data) < 2:
            raise InvalidArgumentError(f"Signal table needs at least 2 samples, got {len(data)}")

        times = data[TIME_COLUMN].to_numpy(dtype=float)
        if not np.all(np.diff(times) > 0):
            raise InvalidArgumentError("Time column must be strictly increasing")

        table = data.copy()
        if not pd.api.types.is_integer_dtype(table.index) or isinstance(table.index, pd.MultiIndex):
            table.index = pd.RangeIndex(len(table))
        elif not (table.index.is_monotonic_increasing and table.index.is_unique) or table.index.min() < 0:
            raise InvalidArgumentError("Sample index must be unique, increasing and non-negative")
        table.index.name = SAMPLE_INDEX
        return table

    # ---- Properties

    @property
    def channels(self) -> list:
        return [col for col in self.data.columns if col != TIME_COLUMN]

    @property
    def n_samples(self) -> int:
        return len(self.data)

    @property
    def duration(self) -> float:
        """Length of the table in seconds, counting the last sample period"""
        return self.n_samples / self.fs

    @property
    def n_epochs(self) -> int:
        """Epochs spanned by the table, counting a trailing partial epoch"""
        if self.data.empty:
            return 0
        return count_epochs(int(self.data.index.max()) + 1, self.fs, self.epoch_sec)

    def get_fs(self) -> float:
        """Sampling frequency from the first Time step"""
        delta_t = self.data[TIME_COLUMN].iloc[1] - self.data[TIME_COLUMN].iloc[0]
        return round(1.0 / float(delta_t), 6)

    def _set_data(self, data: pd.DataFrame) -> None:
        self.data = data
        if not self.anomalies.is_empty:
            logging.info("Signal table changed; clearing previous artifact analysis")
            self.anomalies = AnomalyStore()

    # ---- Subsetting and resampling

    def subset_by_seconds(self, s: float, e: float) -> None:
        """
        Keep samples from second s to second e (inclusive)

        Both bounds must be values of the Time column.

        Raises:
            InvalidArgumentError: If s > e
            OutOfRangeError: If either bound is not in the Time column
        """
        if s > e:
            raise InvalidArgumentError(f"Start second ({s}) must be <= end second ({e})")

        times = self.data[TIME_COLUMN].to_numpy(dtype=float)
        s_pos = np.flatnonzero(np.isclose(times, s, rtol=0.0, atol=1e-9))
        e_pos = np.flatnonzero(np.isclose(times, e, rtol=0.0, atol=1e-9))

        missing = [bound for bound, pos in (("start", s_pos), ("end", e_pos)) if len(pos) == 0]
        if missing:
            raise OutOfRangeError(
                f"Time bounds s={s}, e={e} not found in Time column "
                f"(missing {', '.join(missing)}; recording spans {times[0]}..{times[-1]}s)"
            )

        self._set_data(self.data.iloc[s_pos[0]:e_pos[0] + 1].copy())

    def subset(self, s: int, e: int, epoch_sec: Optional[float] = None) -> None:
        """Keep epochs s to e (inclusive)"""
        epoch_sec = self.epoch_sec if epoch_sec is None else epoch_sec
        if s < 0 or s > e:
            raise InvalidArgumentError(f"Invalid epoch range s={s}, e={e}")

        tagged = set_epochs(self.data, self.fs, epoch_sec)
        kept = tagged[tagged["Epoch"].between(s, e)].drop(columns=["Epoch"])
        if kept.empty:
            raise OutOfRangeError(
                f"Epochs {s}..{e} not present; record spans epochs "
                f"{int(tagged['Epoch'].min())}..{int(tagged['Epoch'].max())}"
            )
        self._set_data(kept)

    def resample(self, n: int) -> None:
        """
        Keep every n-th sample

        This is a (very) brute resampling method meant to speed up analyses
        such as artifact detection; no anti-aliasing filter is applied.
        """
        if int(n) != n or n < 1:
            raise InvalidArgumentError(f"Resampling step must be a positive integer, got {n}")
        n = int(n)

        resampled = self.data.iloc[::n].copy()
        if len(resampled) < 2:
            raise InvalidArgumentError(
                f"Resampling {self.n_samples} samples by {n} leaves fewer than 2 samples"
            )
        resampled.index = pd.Index(resampled.index // n, name=SAMPLE_INDEX)
        self._set_data(resampled)
        self.fs = self.fs / n
        logging.info(f"Resampled by {n}: {self.n_samples} samples at {self.fs} Hz")

    # ---- Filtering

    def low_pass(self, n: float) -> None:
        """Low-pass Butterworth filter at n Hz"""
        self._set_data(filter_channels(self.data, FilterKind.LOW, n, self.fs))

    def high_pass(self, n: float) -> None:
        """High-pass Butterworth filter at n Hz"""
        self._set_data(filter_channels(self.data, FilterKind.HIGH, n, self.fs))

    def bandpass(self, l: float, h: float) -> None:
        """Band-pass Butterworth filter between l and h Hz"""
        self._set_data(filter_channels(self.data, FilterKind.BAND, (l, h), self.fs))

    # ---- Epoch rejection

    def drop_epochs(self, epochs: Iterable[int], epoch_sec: Optional[float] = None) -> None:
        """Remove the given epochs from the signal table"""
        self._set_data(rejection.drop_epochs(
            self.data, epochs, self.fs, self.epoch_sec if epoch_sec is None else epoch_sec
        ))

    def drop_subepochs(self, epochs: Sequence[int], subepochs: Sequence[int],
                       epoch_sec: Optional[float] = None) -> None:
        """Remove the epoch/subepoch pairs (epochs[i], subepochs[i])"""
        self._set_data(rejection.drop_subepochs(
            self.data, epochs, subepochs, self.fs,
            self.epoch_sec if epoch_sec is None else epoch_sec
        ))

    # ---- Artifact detection

    def replace_analysis(self, collective: Iterable[CollectiveAnomaly],
                         point: Iterable[PointAnomaly]) -> AnomalyStore:
        """Replace the anomaly store wholesale"""
        self.anomalies = AnomalyStore.replace_analysis(collective, point)
        return self.anomalies

    def artf(self, alpha: Optional[float] = None, beta: Optional[float] = None,
             mode: Union[str, DetectionMode] = DetectionMode.MEAN) -> AnomalyStore:
        """
        Detect artifacts over the whole recording at once

        Args:
            alpha: Significance threshold for collective anomalies (None: the
                mode's default)
            beta: Significance threshold for point anomalies (None: the
                mode's default)
            mode: Statistic the detector looks for
        """
        collective, point = run_direct(
            self.data, self.fs, alpha=alpha, beta=beta, mode=mode,
            detector=self.detector, epoch_sec=self.epoch_sec
        )
        return self.replace_analysis(collective, point)

    def artf_stepwise(self, step_size: float = STEP_SIZE_SEC, alpha: Optional[float] = None,
                      mode: Union[str, DetectionMode] = DetectionMode.MEAN,
                      n_jobs: int = 1) -> AnomalyStore:
        """
        Detect artifacts in consecutive segments of step_size seconds

        Args:
            step_size: Segment length in seconds
            alpha: Significance threshold for collective anomalies (None: the
                mode's default)
            mode: Statistic the detector looks for
            n_jobs: Parallel workers for the segments
        """
        collective, point = run_stepwise(
            self.data, self.fs, step_size=step_size, alpha=alpha, mode=mode,
            detector=self.detector, n_jobs=n_jobs, epoch_sec=self.epoch_sec
        )
        return self.replace_analysis(collective, point)

    def contaminated_channels(self) -> set:
        """Channels with at least one artifact"""
        return self.anomalies.contaminated_channels()

    def sfilter(self, x: float, f: Normalizer = minmax_normalization) -> StrengthFilterResult:
        """
        Normalize artifact strengths with f and drop those below x

        The store is replaced by the filtered one. Calling sfilter again
        normalizes the already normalized strengths.
        """
        result = filter_by_strength(self.anomalies, x, f)
        self.anomalies = result.store
        return result

    def contaminated_epochs(self) -> pd.DataFrame:
        """Average artifact strength per (Epoch, Subepoch) pair"""
        return self.anomalies.epoch_contamination(self.epoch_sec)

    def artf_reject(self) -> "EEGRecord":
        """Artifact-rejected copy of this record; this record is left untouched"""
        return reject(self)

    # ---- Spectra and export

    def compute_psd(self) -> pd.DataFrame:
        """Log10 Welch PSD of every channel, stored on psd"""
        self.psd = compute_psd(self.data, self.fs)
        return self.psd

    def channel_psd(self, channel: Union[str, int]) -> pd.DataFrame:
        """Log10 Welch PSD of one channel, by name or 0-based channel number"""
        if isinstance(channel, (int, np.integer)):
            if not 0 <= channel < len(self.channels):
                raise OutOfRangeError(
                    f"Channel number {channel} outside 0..{len(self.channels) - 1}"
                )
            channel = self.channels[channel]
        if channel not in self.channels:
            raise InvalidArgumentError(f"Unknown channel '{channel}'. Available: {self.channels}")
        return compute_psd(self.data[[TIME_COLUMN, channel]], self.fs)

    def to_mne_raw(self, scale: float = 1e-6) -> mne.io.RawArray:
        """
        Export as an MNE RawArray

        Args:
            scale: Factor from table units to Volts (default assumes µV)
        """
        info = mne.create_info(ch_names=self.channels, sfreq=self.fs, ch_types="eeg")
        return mne.io.RawArray(self.data[self.channels].to_numpy(dtype=float).T * scale, info)

    def save_csv(self, path: str) -> None:
        save_csv(self.data, path)

    def copy(self) -> "EEGRecord":
        """Independent deep copy (table, signals, store and PSD)"""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"EEGRecord({len(self.channels)} channels, {self.n_samples} samples, "
            f"fs={self.fs}Hz, {len(self.anomalies.collective)} collective / "
            f"{len(self.anomalies.point)} point anomalies)"
        )


def reject(record: EEGRecord, contamination: Optional[pd.DataFrame] = None) -> EEGRecord:
    """
    Artifact-rejected copy of a record

    Args:
        record: Record to clean; it is not modified
        contamination: Epoch/Subepoch pairs to drop (default: the record's
            contaminated_epochs())

    Returns:
        New record without the contaminated pairs and with an empty store

    Raises:
        EmptyAnalysisError: If no contamination is given and the record holds
            no anomalies
    """
    if contamination is None:
        contamination = record.contaminated_epochs()

    clone = record.copy()
    clone.data = rejection.drop_subepochs(
        clone.data, contamination["Epoch"], contamination["Subepoch"],
        clone.fs, clone.epoch_sec
    )
    clone.anomalies = AnomalyStore()
    clone.psd = pd.DataFrame()

    if clone.data.empty:
        logging.warning("Artifact rejection removed every sample of the record")
    logging.info(f"Artifact rejection kept {clone.n_samples}/{record.n_samples} samples")
    return clone
