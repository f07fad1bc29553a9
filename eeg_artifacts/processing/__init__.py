"""
Signal processing

This module contains the epoch grid, windowing, filtering, spectra and
epoch rejection of signal tables.
"""

from .epoching import (
    samples_per_epoch, to_epoch, locate, epoch_bounds, count_epochs, set_epochs
)
from .windowing import Window, samples_per_window, count_windows, iter_windows
from .preprocessing import FilterKind, filter_channels
from .features import compute_psd
from .rejection import drop_epochs, drop_subepochs

__all__ = [
    'samples_per_epoch', 'to_epoch', 'locate', 'epoch_bounds', 'count_epochs', 'set_epochs',
    'Window', 'samples_per_window', 'count_windows', 'iter_windows',
    'FilterKind', 'filter_channels', 'compute_psd',
    'drop_epochs', 'drop_subepochs'
]
