"""
Data acquisition

This module loads and saves EEG recordings exchanged as CSV files.
"""

from .data_io import load_csv, load_signals, save_csv, clean_label

__all__ = ['load_csv', 'load_signals', 'save_csv', 'clean_label']
