"""
Anomaly store and strength filtering

The AnomalyStore holds the collective and point anomalies found on a record.
Stores are immutable: a detection run replaces the whole store
(replace_analysis), and strength filtering returns a new store together with
the normalized strengths it computed.

Filtering overwrites strengths with their normalized values. Filtering an
already filtered store therefore normalizes a second time, and with min-max
normalization the weakest survivor of the first pass becomes 0 and is dropped
by the second. filter_by_strength is not idempotent; apply it once per
detection run.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Set, Tuple
import numpy as np
import pandas as pd

from ..core.config import EPOCH_SEC
from ..core.data_types import CollectiveAnomaly, PointAnomaly
from ..core.exceptions import EmptyAnalysisError, InvalidArgumentError

Normalizer = Callable[[np.ndarray], np.ndarray]


def minmax_normalization(x: np.ndarray) -> np.ndarray:
    """
    Scale values linearly onto [0, 1]

    An empty input stays empty; a constant input maps to all ones.
    """
    x = np.asarray(x, dtype=float)
    if x.size == 0:
        return x
    lo, hi = np.min(x), np.max(x)
    if hi == lo:
        return np.ones_like(x)
    return (x - lo) / (hi - lo)


@dataclass(frozen=True)
class AnomalyStore:
    """Collective and point anomalies of one record"""
    collective: Tuple[CollectiveAnomaly, ...] = ()
    point: Tuple[PointAnomaly, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "collective", tuple(self.collective))
        object.__setattr__(self, "point", tuple(self.point))

    def __len__(self) -> int:
        return len(self.collective) + len(self.point)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    @staticmethod
    def replace_analysis(collective: Iterable[CollectiveAnomaly],
                         point: Iterable[PointAnomaly]) -> "AnomalyStore":
        """New store holding exactly the given records (last detection wins)"""
        return AnomalyStore(collective=tuple(collective), point=tuple(point))

    def contaminated_channels(self) -> Set[str]:
        """Channels with at least one collective or point anomaly"""
        return {a.channel for a in self.collective} | {a.channel for a in self.point}

    def to_frames(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Both collections as DataFrames, one row per record"""
        collective_columns = [f.name for f in dataclasses.fields(CollectiveAnomaly)]
        point_columns = [f.name for f in dataclasses.fields(PointAnomaly)]
        return (
            pd.DataFrame([dataclasses.asdict(a) for a in self.collective], columns=collective_columns),
            pd.DataFrame([dataclasses.asdict(a) for a in self.point], columns=point_columns),
        )

    def epoch_contamination(self, epoch_sec: float = EPOCH_SEC) -> pd.DataFrame:
        """
        Average anomaly strength per (epoch, subepoch) pair

        A collective anomaly counts towards every pair it spans. When both
        collections hold anomalies the two aggregations are outer-joined, and
        pairs found by only one of them carry NaN on the other side.

        Args:
            epoch_sec: Epoch length the records were tagged with

        Returns:
            DataFrame with columns Epoch, Subepoch and mean_change and/or
            strength, sorted by (Epoch, Subepoch)

        Raises:
            EmptyAnalysisError: If the store holds no anomalies at all
        """
        if self.is_empty:
            raise EmptyAnalysisError(
                "No anomalies recorded; run artifact detection before aggregating epochs"
            )

        keys = ["Epoch", "Subepoch"]
        frames = []
        if self.collective:
            frames.append(_average(_collective_pairs(self.collective, epoch_sec), "mean_change"))
        if self.point:
            frames.append(_average(_point_pairs(self.point), "strength"))

        result = frames[0]
        if len(frames) == 2:
            result = pd.merge(frames[0], frames[1], on=keys, how="outer")

        return result.sort_values(keys).reset_index(drop=True)


def _average(rows: Iterable[Tuple[int, int, float]], column: str) -> pd.DataFrame:
    frame = pd.DataFrame(list(rows), columns=["Epoch", "Subepoch", column])
    return frame.groupby(["Epoch", "Subepoch"], as_index=False)[column].mean()


def _require_epochs(*values) -> None:
    if any(v is None for v in values):
        raise InvalidArgumentError(
            "Anomaly record has no epoch fields; attach them with set_timevars first"
        )


def _collective_pairs(records: Iterable[CollectiveAnomaly],
                      epoch_sec: float) -> Iterator[Tuple[int, int, float]]:
    subepochs_per_epoch = math.ceil(epoch_sec)
    for a in records:
        _require_epochs(a.start_epoch, a.start_subepoch, a.end_epoch, a.end_subepoch)
        for epoch in range(a.start_epoch, a.end_epoch + 1):
            first = a.start_subepoch if epoch == a.start_epoch else 0
            last = a.end_subepoch if epoch == a.end_epoch else subepochs_per_epoch - 1
            for subepoch in range(first, last + 1):
                yield epoch, subepoch, a.mean_change


def _point_pairs(records: Iterable[PointAnomaly]) -> Iterator[Tuple[int, int, float]]:
    for a in records:
        _require_epochs(a.epoch, a.subepoch)
        yield a.epoch, a.subepoch, a.strength


@dataclass(frozen=True)
class StrengthFilterResult:
    """Outcome of filter_by_strength"""
    store: AnomalyStore
    collective_strengths: np.ndarray      # Normalized, one per input record
    point_strengths: np.ndarray           # Normalized, one per input record


def _normalize(values: List[float], normalize: Normalizer, kind: str) -> np.ndarray:
    normalized = np.asarray(normalize(np.asarray(values, dtype=float)), dtype=float)
    if normalized.shape != (len(values),):
        raise InvalidArgumentError(
            f"Normalization returned shape {normalized.shape} for {len(values)} {kind} strengths"
        )
    return normalized


def filter_by_strength(
    store: AnomalyStore,
    threshold: float,
    normalize: Normalizer = minmax_normalization
) -> StrengthFilterResult:
    """
    Normalize anomaly strengths and drop the weak ones

    Each collection is normalized independently. The returned records carry
    the normalized strengths; records below threshold are removed. The input
    store is left untouched.

    Args:
        store: Anomalies to filter
        threshold: Minimum normalized strength to keep
        normalize: Vectorized normalization applied to each collection

    Returns:
        StrengthFilterResult with the filtered store and normalized strengths
    """
    collective_strengths = _normalize([a.mean_change for a in store.collective], normalize, "collective")
    point_strengths = _normalize([a.strength for a in store.point], normalize, "point")

    collective = [
        dataclasses.replace(a, mean_change=float(s))
        for a, s in zip(store.collective, collective_strengths) if s >= threshold
    ]
    point = [
        dataclasses.replace(a, strength=float(s))
        for a, s in zip(store.point, point_strengths) if s >= threshold
    ]

    logging.info(
        f"Strength filter {threshold}: kept {len(collective)}/{len(store.collective)} collective, "
        f"{len(point)}/{len(store.point)} point anomalies"
    )
    return StrengthFilterResult(
        store=AnomalyStore.replace_analysis(collective, point),
        collective_strengths=collective_strengths,
        point_strengths=point_strengths,
    )
