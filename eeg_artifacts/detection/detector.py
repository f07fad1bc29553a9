"""
Anomaly detector adapter

Wraps a collective/point anomaly backend and turns its tabular output into
CollectiveAnomaly and PointAnomaly records tagged with channel names. The
adapter never changes the statistics the backend reports; its only jobs are
shape checking, pairing each row with its channel and surfacing backend
errors as DetectionFailure.

Detection is deterministic and expensive, so failures are never retried.
"""

import logging
from typing import Callable, List, Sequence, Tuple, Union
import numpy as np
import pandas as pd

from ..core.data_types import CollectiveAnomaly, DetectionMode, PointAnomaly
from ..core.exceptions import DetectionFailure, InvalidArgumentError
from .backend import COLLECTIVE_COLUMNS, POINT_COLUMNS, capa_backend

Backend = Callable[[np.ndarray, DetectionMode], Tuple[pd.DataFrame, pd.DataFrame]]


class AnomalyDetector:
    """
    Run a detection backend over a samples x channels matrix

    All indices in the returned records are rows of the matrix passed in
    (0-based); rebasing onto a longer recording is the caller's job.
    """

    def __init__(self, backend: Backend = capa_backend):
        self.backend = backend

    def detect(
        self,
        matrix: np.ndarray,
        channels: Sequence[str],
        mode: Union[str, DetectionMode] = DetectionMode.MEAN
    ) -> Tuple[List[CollectiveAnomaly], List[PointAnomaly]]:
        """
        Detect collective and point anomalies

        Args:
            matrix: EEG data (samples x channels)
            channels: Channel name of each matrix column
            mode: Statistic the backend looks for

        Returns:
            Tuple of (collective records, point records) in backend order

        Raises:
            InvalidArgumentError: If channels do not match the matrix columns
            DetectionFailure: If the backend errors or returns malformed tables
        """
        mode = DetectionMode.parse(mode)
        matrix = np.asarray(matrix, dtype=float)
        channels = list(channels)

        if matrix.ndim != 2 or matrix.shape[1] != len(channels):
            raise InvalidArgumentError(
                f"Matrix shape {matrix.shape} does not match {len(channels)} channels"
            )

        try:
            collective_df, point_df = self.backend(matrix, mode)
        except Exception as e:
            raise DetectionFailure(
                f"Anomaly backend failed on matrix {matrix.shape} (mode={mode.value}): {e}"
            ) from e

        collective = self._collective_records(collective_df, channels, matrix.shape[0])
        point = self._point_records(point_df, channels, matrix.shape[0])

        logging.debug(
            f"Detector returned {len(collective)} collective and {len(point)} point anomalies "
            f"for matrix {matrix.shape}"
        )
        return collective, point

    @staticmethod
    def _check_table(table: pd.DataFrame, columns: List[str], kind: str) -> None:
        if not isinstance(table, pd.DataFrame):
            raise DetectionFailure(f"Backend returned {type(table).__name__} for {kind} anomalies")
        missing = [col for col in columns if col not in table.columns]
        if missing:
            raise DetectionFailure(
                f"Backend {kind} table is missing columns {missing}; got {list(table.columns)}"
            )

    @staticmethod
    def _channel(variate, channels: List[str]) -> str:
        variate = int(variate)
        if not 0 <= variate < len(channels):
            raise DetectionFailure(f"Backend reported variate {variate} for {len(channels)} channels")
        return channels[variate]

    @staticmethod
    def _check_index(index: int, n_samples: int, kind: str) -> int:
        index = int(index)
        if not 0 <= index < n_samples:
            raise DetectionFailure(f"Backend {kind} index {index} outside [0, {n_samples})")
        return index

    def _collective_records(self, table: pd.DataFrame, channels: List[str],
                            n_samples: int) -> List[CollectiveAnomaly]:
        self._check_table(table, COLLECTIVE_COLUMNS, "collective")
        has_variance = "variance_change" in table.columns

        records = []
        for row in table.itertuples(index=False):
            start = self._check_index(row.start, n_samples, "collective start")
            end = self._check_index(row.end, n_samples, "collective end")
            if start > end:
                raise DetectionFailure(f"Backend collective anomaly has start {start} > end {end}")

            variance = getattr(row, "variance_change") if has_variance else None
            records.append(CollectiveAnomaly(
                channel=self._channel(row.variate, channels),
                start=start,
                end=end,
                mean_change=float(row.mean_change),
                variance_change=None if variance is None or pd.isna(variance) else float(variance)
            ))
        return records

    def _point_records(self, table: pd.DataFrame, channels: List[str],
                       n_samples: int) -> List[PointAnomaly]:
        self._check_table(table, POINT_COLUMNS, "point")

        return [
            PointAnomaly(
                channel=self._channel(row.variate, channels),
                location=self._check_index(row.location, n_samples, "point"),
                strength=float(row.strength)
            )
            for row in table.itertuples(index=False)
        ]
