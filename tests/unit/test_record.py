"""
Unit tests for EEGRecord.
"""

import numpy as np
import pandas as pd
import pytest

from conftest import canned_backend, make_table
from eeg_artifacts.core.exceptions import (
    DetectionFailure, EmptyAnalysisError, InvalidArgumentError, OutOfRangeError
)
from eeg_artifacts.detection.detector import AnomalyDetector
from eeg_artifacts.record import EEGRecord, reject

pytestmark = pytest.mark.unit


# ---- Construction

def test_fs_is_derived_from_time(record):
    assert record.fs == 10.0
    assert record.channels == ["C3", "C4"]
    assert record.n_samples == 1200
    assert record.duration == pytest.approx(120.0)
    assert record.n_epochs == 4


def test_default_index_is_named_sample():
    data = make_table().reset_index(drop=True)
    assert EEGRecord(data).data.index.name == "Sample"


@pytest.mark.parametrize("data", [
    pd.DataFrame({"C3": [1.0, 2.0], "Time": [0.0, 0.1]}),
    pd.DataFrame({"Time": [0.0, 0.1]}),
    pd.DataFrame({"Time": [0.0], "C3": [1.0]}),
    pd.DataFrame({"Time": [0.0, 0.1, 0.1], "C3": [1.0, 2.0, 3.0]}),
])
def test_invalid_table_raises(data):
    with pytest.raises(InvalidArgumentError):
        EEGRecord(data)


def test_invalid_epoch_length_raises(table):
    with pytest.raises(InvalidArgumentError):
        EEGRecord(table, epoch_sec=0)


def test_irregular_time_steps_raise():
    data = pd.DataFrame({"Time": [0.0, 0.1, 0.25, 0.3], "C3": [1.0, 2.0, 3.0, 4.0]})
    with pytest.raises(InvalidArgumentError):
        EEGRecord(data)


def test_sampling_frequency_must_match_time(table):
    with pytest.raises(InvalidArgumentError):
        EEGRecord(table, fs=20)
    assert EEGRecord(table, fs=10).fs == 10.0


def test_time_gaps_must_match_index_gaps(table):
    cleaned = table.drop(index=range(300, 600))
    assert EEGRecord(cleaned).n_samples == 900

    with pytest.raises(InvalidArgumentError):
        EEGRecord(cleaned.reset_index(drop=True))


# ---- Subsetting and resampling

def test_subset_by_seconds_is_inclusive(record):
    record.subset_by_seconds(30.0, 59.9)

    assert record.n_samples == 300
    assert record.data.index[0] == 300
    assert record.data["Time"].iloc[-1] == pytest.approx(59.9)


def test_subset_by_seconds_errors(record):
    with pytest.raises(InvalidArgumentError):
        record.subset_by_seconds(60, 30)
    with pytest.raises(OutOfRangeError):
        record.subset_by_seconds(30.05, 60)
    with pytest.raises(OutOfRangeError):
        record.subset_by_seconds(0, 500)


def test_subset_by_epochs(record):
    record.subset(1, 2)

    assert record.n_samples == 600
    assert record.data.index.min() == 300
    assert record.data.index.max() == 899
    assert list(record.data.columns) == ["Time", "C3", "C4"]


def test_subset_errors(record):
    with pytest.raises(InvalidArgumentError):
        record.subset(2, 1)
    with pytest.raises(OutOfRangeError):
        record.subset(7, 9)


def test_resample(record):
    record.resample(2)

    assert record.n_samples == 600
    assert record.fs == 5.0
    assert list(record.data.index[:3]) == [0, 1, 2]
    assert record.data["Time"].iloc[1] == pytest.approx(0.2)


@pytest.mark.parametrize("n", [0, -1, 1.5, 1200])
def test_resample_invalid_step(record, n):
    with pytest.raises(InvalidArgumentError):
        record.resample(n)


# ---- Filtering

def test_filters_keep_shape():
    record = EEGRecord(make_table(n_samples=2000, fs=100.0))
    record.low_pass(20)
    record.high_pass(0.5)
    record.bandpass(1, 30)
    assert record.n_samples == 2000
    assert record.channels == ["C3", "C4"]


def test_table_change_clears_store(contaminated_record):
    contaminated_record.artf()
    assert not contaminated_record.anomalies.is_empty

    contaminated_record.drop_epochs([3])
    assert contaminated_record.anomalies.is_empty


# ---- Detection and rejection

def test_artf_populates_store(contaminated_record):
    store = contaminated_record.artf()

    assert store is contaminated_record.anomalies
    assert len(store.collective) == 1
    assert len(store.point) == 1
    assert contaminated_record.contaminated_channels() == {"C3", "C4"}


def test_artf_stepwise_rejects_indices_outside_segment(contaminated_record):
    # Rows 295..305 and 650 do not fit in a 300-row segment
    with pytest.raises(DetectionFailure):
        contaminated_record.artf_stepwise(step_size=30)


def test_artf_stepwise_with_segment_relative_backend(table):
    backend = canned_backend(point=[{"variate": 0, "location": 5, "strength": 2.0}])
    record = EEGRecord(table, detector=AnomalyDetector(backend))

    store = record.artf_stepwise(step_size=30)

    assert [a.location for a in store.point] == [5, 305, 605, 905]


def test_anomalies_on_subset_carry_sample_index(table):
    backend = canned_backend(point=[{"variate": 0, "location": 5, "strength": 2.0}])
    record = EEGRecord(table, detector=AnomalyDetector(backend))
    record.subset_by_seconds(30, 119.9)

    store = record.artf()

    point = store.point[0]
    assert point.location == 305
    assert point.time == pytest.approx(30.5)
    assert (point.epoch, point.subepoch) == (1, 0)
    assert record.data.loc[point.location, "Time"] == pytest.approx(30.5)


def test_contaminated_channels_empty_store(record):
    assert record.contaminated_channels() == set()


def test_contaminated_epochs(contaminated_record):
    contaminated_record.artf()
    result = contaminated_record.contaminated_epochs()

    pairs = list(zip(result["Epoch"], result["Subepoch"]))
    assert pairs == [(0, 29), (1, 0), (2, 5)]


def test_contaminated_epochs_without_analysis_raises(record):
    with pytest.raises(EmptyAnalysisError):
        record.contaminated_epochs()


def test_sfilter_swaps_store(contaminated_record):
    contaminated_record.artf()
    result = contaminated_record.sfilter(0.5)

    assert contaminated_record.anomalies is result.store
    # single-element collections normalize to 1
    assert [a.mean_change for a in result.store.collective] == [1.0]
    assert [a.strength for a in result.store.point] == [1.0]


def test_artf_reject_leaves_original_unchanged(contaminated_record):
    contaminated_record.artf()
    data_before = contaminated_record.data.copy()
    store_before = contaminated_record.anomalies

    cleaned = contaminated_record.artf_reject()

    pd.testing.assert_frame_equal(contaminated_record.data, data_before)
    assert contaminated_record.anomalies == store_before
    assert cleaned.n_samples == 1200 - 30
    assert cleaned.anomalies.is_empty
    assert not cleaned.data.index.isin(range(290, 310)).any()
    assert not cleaned.data.index.isin(range(650, 660)).any()


def test_reject_with_explicit_contamination(record):
    contamination = pd.DataFrame({"Epoch": [3], "Subepoch": [29]})
    cleaned = reject(record, contamination)
    assert cleaned.n_samples == 1190
    assert record.n_samples == 1200


def test_artf_reject_without_analysis_raises(record):
    with pytest.raises(EmptyAnalysisError):
        record.artf_reject()


def test_drop_epochs_and_subepochs(record):
    record.drop_epochs([2])
    assert record.n_samples == 900

    record.drop_subepochs([1, 1, 2], [0, 1, 0])
    assert record.n_samples == 880


@pytest.mark.parametrize("epoch_sec", [0, -30])
def test_explicit_invalid_epoch_length_raises(record, epoch_sec):
    with pytest.raises(InvalidArgumentError):
        record.drop_epochs([2], epoch_sec=epoch_sec)
    with pytest.raises(InvalidArgumentError):
        record.drop_subepochs([1], [0], epoch_sec=epoch_sec)
    with pytest.raises(InvalidArgumentError):
        record.subset(0, 1, epoch_sec=epoch_sec)
    assert record.n_samples == 1200


def test_drop_epochs_with_explicit_epoch_length(record):
    record.drop_epochs([0], epoch_sec=60)
    assert record.data.index.min() == 600


# ---- Spectra, export and copies

def test_compute_psd_is_stored(record):
    psd = record.compute_psd()
    assert record.psd is psd
    assert list(psd.columns) == ["C3", "C4", "Fqc"]


def test_channel_psd(record):
    by_name = record.channel_psd("C4")
    by_number = record.channel_psd(1)
    pd.testing.assert_frame_equal(by_name, by_number)
    assert list(by_name.columns) == ["C4", "Fqc"]


def test_channel_psd_errors(record):
    with pytest.raises(InvalidArgumentError):
        record.channel_psd("Fz")
    with pytest.raises(OutOfRangeError):
        record.channel_psd(5)


def test_to_mne_raw(record):
    raw = record.to_mne_raw()

    assert raw.info["sfreq"] == 10.0
    assert raw.ch_names == ["C3", "C4"]
    assert np.allclose(raw.get_data()[0], record.data["C3"].to_numpy() * 1e-6)


def test_copy_is_independent(contaminated_record):
    contaminated_record.artf()
    clone = contaminated_record.copy()

    clone.drop_epochs([0])

    assert contaminated_record.n_samples == 1200
    assert not contaminated_record.anomalies.is_empty


def test_save_and_load_csv(record, tmp_path):
    path = tmp_path / "record.csv"
    record.save_csv(str(path))

    loaded = EEGRecord.from_csv(str(path))

    assert loaded.fs == 10.0
    assert loaded.channels == record.channels
    assert np.allclose(loaded.data["C3"], record.data["C3"])


def test_load_csv_keeps_rejection_gaps(record, tmp_path):
    path = tmp_path / "cleaned.csv"
    record.drop_epochs([1])
    record.save_csv(str(path))

    loaded = EEGRecord.from_csv(str(path))

    assert loaded.n_samples == 900
    assert loaded.data.index[300] == 600
    assert loaded.n_epochs == 4
