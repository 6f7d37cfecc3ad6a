import logging
import numpy as np

from trigalign.model.recording import RawRecording


def ensure_trigger_channel(
    recording: RawRecording,
    trigger_label: str = "Trigger",
    new_trigger_label: str = "TRIGGER"
) -> int:
    """Find the trigger channel in the recording, or append an empty one, and return its row index.

    An existing trigger channel gets its median subtracted, so that "no event" reads as 0.
    A new trigger channel is all zeros, labelled with new_trigger_label.

    This may replace recording.samples and recording.channel_labels with extended versions.
    """
    if not np.issubdtype(recording.samples.dtype, np.floating):
        recording.samples = recording.samples.astype(float)

    trigger_index = recording.find_channel(trigger_label)
    if trigger_index is None:
        empty_row = np.zeros([1, recording.sample_count()])
        recording.samples = np.concatenate([recording.samples, empty_row])
        recording.channel_labels = list(recording.channel_labels) + [new_trigger_label]
        trigger_index = recording.channel_count() - 1
        logging.info(f"No {trigger_label} channel found, added empty channel {new_trigger_label} at row {trigger_index}.")
    else:
        trigger = recording.samples[trigger_index, :]
        if trigger.size > 0:
            trigger -= np.median(trigger)
        logging.info(f"Using channel {recording.channel_labels[trigger_index]} at row {trigger_index} as the trigger.")
    return trigger_index


def find_zero_point(samples_per_trial: int, sampling_rate_hz: float, trial_offset_usec: float) -> int:
    """Get the 0-based sample index within a trial that's nearest to the trial's time-zero.

    Sample times within the trial start at trial_offset_usec and advance by 1 / sampling_rate_hz.
    When two samples are equally near, the earlier one wins.
    """
    trial_times = np.arange(samples_per_trial) / sampling_rate_hz + trial_offset_usec / 1000000
    return int(np.argmin(np.abs(trial_times)))


def epoch_code_for_trial(epoch_info: np.ndarray, trial_index: int, default_code: float) -> float:
    """Look up the stimulus code for one trial (0-based) in the epoch info table, column 2, or use the default."""
    if epoch_info is None:
        return default_code
    epoch_info = np.atleast_2d(epoch_info)
    if epoch_info.size == 0 or trial_index >= epoch_info.shape[0] or epoch_info.shape[1] < 3:
        return default_code
    return float(epoch_info[trial_index, 2])


def stamp_trial_markers(
    recording: RawRecording,
    trigger_index: int,
    default_trial_code: float = 10,
    boundary_code: float = -99
) -> int:
    """Write each trial's stimulus code at its zero point, and a boundary code at its last sample.

    This treats recording.samples as trial_count concatenated trials of equal length.
    It writes to the trigger row in place and has no effect for single-trial, continuous recordings.
    Writes go in trial order, and within each trial the boundary goes last, so later writes win on collision.

    Returns the number of trials that got markers.
    """
    if recording.trial_count <= 1:
        return 0

    samples_per_trial = recording.samples_per_trial()
    zero_point = find_zero_point(samples_per_trial, recording.sampling_rate_hz, recording.trial_offset_usec)
    if recording.epoch_info is None:
        logging.warning(f"No epoch info for {recording.trial_count} trials, using default code {default_trial_code}.")

    trigger = recording.samples[trigger_index, :]
    for trial_index in range(recording.trial_count):
        trial_start = trial_index * samples_per_trial
        trigger[trial_start + zero_point] = epoch_code_for_trial(recording.epoch_info, trial_index, default_trial_code)
        trigger[trial_start + samples_per_trial - 1] = boundary_code

    logging.info(
        f"Stamped markers for {recording.trial_count} trials of {samples_per_trial} samples, zero point at {zero_point}.")
    return recording.trial_count
