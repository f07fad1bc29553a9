"""
Windowing of signal tables

Stepwise artifact detection runs the detector over consecutive, fixed-length
windows of the recording rather than over the whole recording at once. This
keeps memory bounded and keeps the change-point statistics local.

Windows are non-overlapping and cover the table from its first row. The last
window may be shorter than the others; callers that need equal-length windows
(the stepwise orchestrator does) skip it with drop_partial=True.
"""

from dataclasses import dataclass
from typing import Iterator
import pandas as pd

from ..core.config import TIME_COLUMN
from ..core.exceptions import InvalidArgumentError


@dataclass
class Window:
    """One window of a signal table"""
    number: int               # 0-based window number
    label: float              # Time of the first sample (seconds)
    start: int                # First row position (inclusive)
    stop: int                 # Last row position (exclusive)
    data: pd.DataFrame        # Rows [start, stop) of the table

    @property
    def n_samples(self) -> int:
        return self.stop - self.start


def samples_per_window(window_sec: float, fs: float) -> int:
    """Number of samples in a window of window_sec seconds"""
    if fs <= 0:
        raise InvalidArgumentError(f"Sampling frequency must be positive, got {fs}")
    if window_sec <= 0:
        raise InvalidArgumentError(f"Window length must be positive, got {window_sec}")

    n = int(round(window_sec * fs))
    if n < 1:
        raise InvalidArgumentError(f"Window of {window_sec}s at {fs}Hz contains no samples")
    return n


def count_windows(n_samples: int, window_sec: float, fs: float,
                  include_partial: bool = False) -> int:
    """
    Number of windows iter_windows yields for a table of n_samples rows

    Full windows: floor(n_samples / samples_per_window). With include_partial,
    a trailing shorter window counts as one more.
    """
    spw = samples_per_window(window_sec, fs)
    full, rest = divmod(int(n_samples), spw)
    return full + (1 if include_partial and rest else 0)


def iter_windows(
    data: pd.DataFrame,
    window_sec: float,
    fs: float,
    drop_partial: bool = False
) -> Iterator[Window]:
    """
    Lazily partition a signal table into consecutive windows

    Args:
        data: Signal table (Time column first, one column per channel)
        window_sec: Window length in seconds
        fs: Sampling frequency in Hz
        drop_partial: Skip a trailing window shorter than window_sec

    Returns:
        Iterator of consecutive windows in row order

    Raises:
        InvalidArgumentError: At call time, if window_sec or fs is invalid
    """
    spw = samples_per_window(window_sec, fs)
    return _windows(data, spw, fs, drop_partial)


def _windows(data: pd.DataFrame, spw: int, fs: float, drop_partial: bool) -> Iterator[Window]:
    n_rows = len(data)
    times = data[TIME_COLUMN].to_numpy() if TIME_COLUMN in data.columns else None

    for number, start in enumerate(range(0, n_rows, spw)):
        stop = min(start + spw, n_rows)
        if drop_partial and stop - start < spw:
            return

        label = float(times[start]) if times is not None else start / fs
        yield Window(
            number=number,
            label=label,
            start=start,
            stop=stop,
            data=data.iloc[start:stop]
        )
