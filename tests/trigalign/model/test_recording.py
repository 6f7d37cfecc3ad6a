import numpy as np
from pytest import raises

from trigalign.model.events import BOUNDARY, NumericEventList, CanonicalEvent, OriginalEvent
from trigalign.model.recording import RawRecording, OffsetEstimate, SyncIssue, SyncResult


def test_recording_shape_helpers():
    recording = RawRecording(
        samples=np.zeros([3, 30]),
        channel_labels=["Fz", "Cz", "Trigger"],
        sampling_rate_hz=1000.0,
        trial_count=3
    )
    recording.validate()

    assert recording.channel_count() == 3
    assert recording.sample_count() == 30
    assert recording.samples_per_trial() == 10
    assert recording.event_table.event_count() == 0
    assert recording.epoch_info is None
    assert recording.annotations == []


def test_recording_find_channel_ignores_case():
    recording = RawRecording(np.zeros([3, 5]), ["Fz", "TRIGGER", "trigger"], 500.0)
    assert recording.find_channel("Trigger") == 1
    assert recording.find_channel("fz") == 0
    assert recording.find_channel("Pz") is None


def test_recording_validation_errors():
    with raises(ValueError):
        RawRecording(np.zeros(10), ["Fz"], 1000.0).validate()

    with raises(ValueError):
        RawRecording(np.zeros([2, 10]), ["Fz"], 1000.0).validate()

    with raises(ValueError):
        RawRecording(np.zeros([1, 10]), ["Fz"], 0.0).validate()

    with raises(ValueError):
        RawRecording(np.zeros([1, 10]), ["Fz"], 1000.0, trial_count=0).validate()

    with raises(ValueError):
        RawRecording(np.zeros([1, 10]), ["Fz"], 1000.0, trial_count=3).validate()

    with raises(ValueError) as exception_info:
        RawRecording(np.zeros([2, 0]), ["Fz", "Cz"], 1000.0, trial_count=3).validate()
    assert "3 trials" in str(exception_info.value)

    # A continuous recording with no samples is still usable.
    RawRecording(np.zeros([2, 0]), ["Fz", "Cz"], 1000.0).validate()


def test_offset_estimate_interop():
    estimate = OffsetEstimate(applied_offset=0, raw_offset=250, method="sequence", matched_pairs=4,
                              issue=SyncIssue.OFFSET_OUT_OF_BOUNDS)
    interop = estimate.to_interop()
    assert interop["issue"] == "offset_out_of_bounds"
    assert OffsetEstimate.from_interop(interop) == estimate

    assert OffsetEstimate.from_interop(OffsetEstimate().to_interop()) == OffsetEstimate()


def test_sync_result_interop_with_samples():
    result = SyncResult(
        corrected_samples=np.array([[1.0, 2.0, 3.0, 4.0], [0.0, 5.0, 0.0, 0.0]]),
        channel_labels=["FZ", "TRIGGER"],
        sampling_rate_hz=500.0,
        canonical_events=[CanonicalEvent(2, 5.0, 1), CanonicalEvent(4, BOUNDARY)],
        original_events=[OriginalEvent(5.0, 2)],
        offset=OffsetEstimate(applied_offset=3, raw_offset=3, method="sequence", matched_pairs=1),
        annotations=["started"]
    )

    interop = result.to_interop(include_samples=True)
    assert interop["sample_count"] == 4
    assert SyncResult.from_interop(interop) == result


def test_sync_result_interop_without_samples():
    result = SyncResult(
        corrected_samples=np.zeros([2, 100]),
        channel_labels=["FZ", "TRIGGER"],
        sampling_rate_hz=500.0,
        canonical_events=[CanonicalEvent(50, 7.0, 1)],
        original_events=[OriginalEvent(7.0, 50)]
    )

    interop = result.to_interop()
    assert "corrected_samples" not in interop

    result_2 = SyncResult.from_interop(interop)
    assert result_2.corrected_samples.shape == (2, 0)
    assert result_2.canonical_events == result.canonical_events
    assert result_2.original_events == result.original_events
    assert result_2.offset == result.offset


def test_sync_result_times_in_milliseconds():
    result = SyncResult(np.zeros([1, 4]), ["FZ"], 250.0)
    assert np.allclose(result.get_times_ms(), [0.0, 4.0, 8.0, 12.0])
