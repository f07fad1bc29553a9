"""
Helper functions for logging and reporting

This module provides the logging setup used by the command line front end and
the JSON report written after an artifact analysis.
"""

import dataclasses
import json
import logging
import os
from typing import Any, Dict
import numpy as np


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the artifact pipeline

    Args:
        debug: If True, enable DEBUG level logging
    """
    log_level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # Reduce verbosity of some third-party libraries
    logging.getLogger('mne').setLevel(logging.WARNING)
    logging.getLogger('joblib').setLevel(logging.WARNING)

    if debug:
        logging.info("Debug logging enabled")


def convert_numpy_types(obj: Any) -> Any:
    """Recursively turn numpy scalars/arrays into JSON-serializable values"""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return None if np.isnan(obj) else float(obj)
    elif isinstance(obj, float) and np.isnan(obj):
        return None
    elif isinstance(obj, dict):
        return {key: convert_numpy_types(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple, set)):
        return [convert_numpy_types(item) for item in obj]
    else:
        return obj


def build_report(record) -> Dict[str, Any]:
    """
    Summarize a record's artifact analysis

    Contains the recording shape, the contaminated channels, every anomaly
    record and, when the store is not empty, the per-subepoch contamination.
    """
    store = record.anomalies
    report = {
        "n_samples": record.n_samples,
        "fs": record.fs,
        "epoch_sec": record.epoch_sec,
        "channels": record.channels,
        "contaminated_channels": sorted(record.contaminated_channels()),
        "collective_anomalies": [dataclasses.asdict(a) for a in store.collective],
        "point_anomalies": [dataclasses.asdict(a) for a in store.point],
        "contaminated_epochs": [],
    }
    if not store.is_empty:
        report["contaminated_epochs"] = record.contaminated_epochs().to_dict(orient="records")
    return report


def save_report(record, out_path: str) -> None:
    """
    Save the artifact analysis of a record to a JSON file

    Args:
        record: Analysed EEGRecord
        out_path: Path to save JSON file
    """
    logging.info(f"Saving artifact report to: {out_path}")

    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    json_report = convert_numpy_types(build_report(record))

    try:
        with open(out_path, 'w') as f:
            json.dump(json_report, f, indent=2, sort_keys=True)
        logging.info("Report saved successfully")
    except Exception as e:
        logging.error(f"Failed to save report: {e}")
        raise
