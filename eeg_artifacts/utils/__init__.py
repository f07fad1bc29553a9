"""
Utility functions and helpers

This module contains logging setup, report writing and synthetic data
generation for the EEG Artifacts system.
"""

from .helpers import setup_logging, save_report, build_report
from .fake_data import synthesize_eeg

__all__ = ['setup_logging', 'save_report', 'build_report', 'synthesize_eeg']
