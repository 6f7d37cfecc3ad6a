import sys
from pathlib import Path

import numpy as np
from pytest import fixture, raises

from trigalign.model.events import NumericEventList, CanonicalEvent
from trigalign.readers.readers import RecordingReader
from trigalign.readers.csv import CsvRecordingReader, read_numeric_rows
from trigalign.sync.synchronizer import synchronize


@fixture
def fixture_path(request):
    this_file = Path(request.module.__file__)
    return Path(this_file.parent, 'fixture_files')


@fixture
def tests_path(request):
    this_file = Path(request.module.__file__)
    return this_file.parent


def test_installed_reader_dynamic_import(fixture_path):
    samples_csv = Path(fixture_path, 'samples.csv').as_posix()
    reader = RecordingReader.from_dynamic_import(
        "trigalign.readers.csv.CsvRecordingReader",
        samples_csv=samples_csv,
        sampling_rate_hz="500"
    )
    assert isinstance(reader, RecordingReader)
    assert reader == CsvRecordingReader(samples_csv, sampling_rate_hz=500.0)


def test_external_reader_dynamic_import(tests_path):
    # Import a reader from a local file that was not installed in a standard location (eg by pip).
    # We don't want to litter the sys.path, so check we cleaned up after importing.
    original_sys_path = sys.path.copy()
    reader = RecordingReader.from_dynamic_import(
        'external_package.reader_module.ExternalReader',
        tests_path.as_posix(),
        sample_count="5"
    )
    assert isinstance(reader, RecordingReader)
    assert sys.path == original_sys_path

    with reader:
        recording = reader.read()
    assert recording.samples.shape == (2, 5)


def test_dynamic_import_errors():
    with raises(ValueError):
        RecordingReader.from_dynamic_import("CsvRecordingReader")

    with raises(ValueError):
        RecordingReader.from_dynamic_import("trigalign.plotters.sync_plotter.SyncPlotter")

    with raises(AttributeError):
        RecordingReader.from_dynamic_import("trigalign.readers.csv.NoSuchReader")


def test_read_numeric_rows_skips_headers(fixture_path):
    events_csv = Path(fixture_path, 'events.csv').as_posix()
    assert read_numeric_rows(events_csv) == [[5.0, 5.0], [15.0, 7.0]]

    empty_csv = Path(fixture_path, 'empty.csv').as_posix()
    assert read_numeric_rows(empty_csv) == []


def test_safe_to_spam_exit(fixture_path):
    samples_csv = Path(fixture_path, 'samples.csv').as_posix()
    reader = CsvRecordingReader(samples_csv)
    reader.__exit__(None, None, None)
    reader.__enter__()
    reader.__exit__(None, None, None)
    reader.__exit__(None, None, None)

    assert reader.file_stream is None


def test_read_samples_and_events(fixture_path):
    samples_csv = Path(fixture_path, 'samples.csv').as_posix()
    events_csv = Path(fixture_path, 'events.csv').as_posix()
    with CsvRecordingReader(samples_csv, sampling_rate_hz=1000, events_csv=events_csv) as reader:
        recording = reader.read()
    assert reader.file_stream is None

    # The comment line in the middle of the samples should be skipped.
    t = np.arange(1, 21)
    expected_trigger = np.zeros(20)
    expected_trigger[[7, 8]] = 5
    assert recording.channel_labels == ["Fz", "Cz", "Trigger"]
    assert recording.sampling_rate_hz == 1000.0
    assert np.array_equal(recording.samples, np.stack([t, -t, expected_trigger]))
    assert recording.event_table == NumericEventList.from_pairs([(5, 5), (15, 7)])
    assert recording.trial_count == 1
    assert recording.epoch_info is None
    recording.validate()


def test_read_and_synchronize(fixture_path):
    samples_csv = Path(fixture_path, 'samples.csv').as_posix()
    events_csv = Path(fixture_path, 'events.csv').as_posix()
    with CsvRecordingReader(samples_csv, sampling_rate_hz=1000, events_csv=events_csv) as reader:
        recording = reader.read()

    result = synchronize(recording)

    assert result.offset.applied_offset == 3
    assert result.canonical_events == [
        CanonicalEvent(latency=5, type=5.0, urevent=1),
        CanonicalEvent(latency=15, type=7.0, urevent=2),
    ]
    assert result.channel_labels == ["FZ", "CZ", "TRIGGER"]


def test_read_epoched(fixture_path):
    samples_csv = Path(fixture_path, 'epoched_samples.csv').as_posix()
    epochs_csv = Path(fixture_path, 'epochs.csv').as_posix()
    reader = CsvRecordingReader(
        samples_csv,
        sampling_rate_hz="1000",
        epochs_csv=epochs_csv,
        trial_count="2",
        trial_offset_usec="0"
    )
    with reader:
        recording = reader.read()

    assert recording.trial_count == 2
    assert recording.samples_per_trial() == 5
    assert np.array_equal(recording.epoch_info, [[1, 0, 7], [2, 5, 8]])
    assert recording.event_table.event_count() == 0

    result = synchronize(recording)
    assert [(event.latency, event.type) for event in result.canonical_events] == [
        (1, 7.0), (5, "boundary"), (6, 8.0), (10, "boundary")
    ]


def test_read_with_fmtparams(fixture_path):
    samples_csv = Path(fixture_path, 'semicolons.csv').as_posix()
    with CsvRecordingReader(samples_csv, delimiter=";") as reader:
        recording = reader.read()
    assert recording.channel_labels == ["Fz", "Trigger"]
    assert np.array_equal(recording.samples, [[1, 2, 3], [0, 3, 0]])


def test_header_only(fixture_path):
    samples_csv = Path(fixture_path, 'header_only.csv').as_posix()
    with CsvRecordingReader(samples_csv) as reader:
        recording = reader.read()
    assert recording.channel_labels == ["Fz", "Cz", "Trigger"]
    assert recording.samples.shape == (3, 0)


def test_empty_file_raises(fixture_path):
    samples_csv = Path(fixture_path, 'empty.csv').as_posix()
    with raises(ValueError) as exception_info:
        with CsvRecordingReader(samples_csv) as reader:
            reader.read()
    assert "empty.csv" in str(exception_info.value)
    assert reader.file_stream is None


def test_missing_file_raises(fixture_path):
    samples_csv = Path(fixture_path, 'no_such_file.csv').as_posix()
    with raises(FileNotFoundError):
        with CsvRecordingReader(samples_csv) as reader:
            reader.read()
