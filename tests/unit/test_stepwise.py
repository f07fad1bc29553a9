"""
Unit tests for direct and stepwise artifact detection.
"""

import pandas as pd
import pytest

from conftest import canned_backend, make_table
from eeg_artifacts.core import config
from eeg_artifacts.core.data_types import CollectiveAnomaly, DetectionMode, ModeDefaults, PointAnomaly
from eeg_artifacts.core.exceptions import OutOfRangeError
from eeg_artifacts.detection.backend import COLLECTIVE_COLUMNS, POINT_COLUMNS
from eeg_artifacts.detection.detector import AnomalyDetector
from eeg_artifacts.detection.stepwise import rebase, run_direct, run_stepwise, set_timevars

pytestmark = pytest.mark.unit


class SegmentBackend:
    """Backend answering with a different canned result per call"""

    def __init__(self, answers):
        self.answers = answers
        self.calls = 0
        self.shapes = []

    def __call__(self, matrix, mode):
        self.shapes.append(matrix.shape)
        collective, point = self.answers.get(self.calls, ([], []))
        self.calls += 1
        return (
            pd.DataFrame(collective, columns=COLLECTIVE_COLUMNS),
            pd.DataFrame(point, columns=POINT_COLUMNS),
        )


def test_rebase_shifts_indices():
    collective, point = rebase(
        [CollectiveAnomaly("C3", 2, 4, 9.0)], [PointAnomaly("C4", 5, 1.0)], offset=300
    )
    assert (collective[0].start, collective[0].end) == (302, 304)
    assert point[0].location == 305


def test_stepwise_rebases_second_segment(table):
    backend = SegmentBackend({1: ([], [{"variate": 0, "location": 5, "strength": 2.0}])})

    collective, point = run_stepwise(table, fs=10, step_size=30, detector=AnomalyDetector(backend))

    assert collective == []
    assert len(point) == 1
    assert point[0].location == 305
    assert point[0].time == pytest.approx(30.5)
    assert (point[0].epoch, point[0].subepoch) == (1, 0)


def test_stepwise_drops_trailing_partial_segment():
    backend = SegmentBackend({})
    run_stepwise(make_table(n_samples=1250), fs=10, step_size=30, detector=AnomalyDetector(backend))

    assert backend.calls == 4
    assert set(backend.shapes) == {(300, 2)}


def test_stepwise_filters_collective_by_alpha_and_keeps_all_points(table):
    backend = SegmentBackend({0: (
        [
            {"variate": 0, "start": 10, "end": 20, "mean_change": 5.0},
            {"variate": 1, "start": 30, "end": 40, "mean_change": 10.0},
        ],
        [{"variate": 0, "location": 50, "strength": 0.1}],
    )})

    collective, point = run_stepwise(table, fs=10, alpha=8, detector=AnomalyDetector(backend))

    assert [a.channel for a in collective] == ["C4"]
    assert [a.strength for a in point] == [0.1]


def test_stepwise_results_are_in_segment_order(table):
    backend = SegmentBackend({
        0: ([{"variate": 0, "start": 0, "end": 10, "mean_change": 9.0}], []),
        2: ([{"variate": 1, "start": 0, "end": 10, "mean_change": 9.0}], []),
    })

    collective, _ = run_stepwise(table, fs=10, alpha=8, detector=AnomalyDetector(backend))

    assert [(a.channel, a.start) for a in collective] == [("C3", 0), ("C4", 600)]


def test_stepwise_on_short_table_returns_nothing():
    backend = SegmentBackend({})
    collective, point = run_stepwise(
        make_table(n_samples=100), fs=10, step_size=30, detector=AnomalyDetector(backend)
    )
    assert (collective, point) == ([], [])
    assert backend.calls == 0


def test_direct_filters_by_alpha_and_beta(table):
    detector = AnomalyDetector(canned_backend(
        collective=[
            {"variate": 0, "start": 295, "end": 305, "mean_change": 12.0},
            {"variate": 1, "start": 10, "end": 20, "mean_change": 3.0},
        ],
        point=[
            {"variate": 1, "location": 650, "strength": 3.0},
            {"variate": 0, "location": 100, "strength": 0.5},
        ],
    ))

    collective, point = run_direct(table, fs=10, alpha=8, beta=1, detector=detector)

    assert len(collective) == 1
    anomaly = collective[0]
    assert (anomaly.start_epoch, anomaly.start_subepoch) == (0, 29)
    assert (anomaly.end_epoch, anomaly.end_subepoch) == (1, 0)
    assert anomaly.start_time == pytest.approx(29.5)
    assert [a.location for a in point] == [650]


def test_set_timevars_uses_absolute_index(table):
    later = table.iloc[300:600]
    _, point = set_timevars([], [PointAnomaly("C3", 15, 1.0)], later, fs=10)
    assert (point[0].epoch, point[0].subepoch) == (1, 1)
    assert point[0].time == pytest.approx(31.5)
    assert point[0].location == 315
    assert later.loc[point[0].location, "Time"] == pytest.approx(31.5)


def test_set_timevars_out_of_range_raises(table):
    with pytest.raises(OutOfRangeError):
        set_timevars([CollectiveAnomaly("C3", 1190, 1200, 9.0)], [], table, fs=10)
    with pytest.raises(OutOfRangeError):
        set_timevars([], [PointAnomaly("C3", -1, 1.0)], table, fs=10)


@pytest.mark.slow
def test_parallel_matches_sequential():
    from eeg_artifacts.utils.fake_data import synthesize_eeg

    data, _ = synthesize_eeg(duration=120, fs=100)
    sequential = run_stepwise(data, fs=100, step_size=30, n_jobs=1)
    parallel = run_stepwise(data, fs=100, step_size=30, n_jobs=2)
    assert sequential == parallel


def test_thresholds_default_to_mode(table, monkeypatch):
    monkeypatch.setitem(
        config.MODE_DEFAULTS, DetectionMode.MEANVAR,
        ModeDefaults(alpha=20.0, beta=5.0, min_segment_length=10),
    )
    backend = canned_backend(
        collective=[{"variate": 0, "start": 10, "end": 20, "mean_change": 12.0}],
        point=[{"variate": 1, "location": 50, "strength": 3.0}],
    )
    detector = AnomalyDetector(backend)

    collective, point = run_direct(table, fs=10, mode="meanvar", detector=detector)
    assert (collective, point) == ([], [])

    collective, point = run_direct(table, fs=10, mode="mean", detector=detector)
    assert (len(collective), len(point)) == (1, 1)

    # Explicit thresholds win over the mode, zero included
    collective, point = run_direct(table, fs=10, alpha=0, beta=0, mode="meanvar", detector=detector)
    assert (len(collective), len(point)) == (1, 1)


def test_stepwise_alpha_defaults_to_mode(table, monkeypatch):
    monkeypatch.setitem(
        config.MODE_DEFAULTS, DetectionMode.MEANVAR,
        ModeDefaults(alpha=20.0, beta=5.0, min_segment_length=10),
    )
    backend = canned_backend(
        collective=[{"variate": 0, "start": 10, "end": 20, "mean_change": 12.0}],
    )

    collective, _ = run_stepwise(table, fs=10, mode="meanvar", detector=AnomalyDetector(backend))
    assert collective == []

    collective, _ = run_stepwise(table, fs=10, mode="mean", detector=AnomalyDetector(backend))
    assert len(collective) == 4
