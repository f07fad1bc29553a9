"""
Main entry point for EEG Artifacts package

This allows running the package with: python -m eeg_artifacts
"""

import sys

from .cli.main import main

if __name__ == "__main__":
    sys.exit(main())
