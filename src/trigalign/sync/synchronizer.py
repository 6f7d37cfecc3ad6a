from typing import Any, Self
from dataclasses import dataclass, fields
import logging
import numpy as np

from trigalign.model.recording import RawRecording, SyncResult
from trigalign.sync.trigger_channel import ensure_trigger_channel, stamp_trial_markers
from trigalign.sync.aligner import align_trigger_to_events
from trigalign.sync.event_stream import build_event_stream


@dataclass
class SyncSettings():
    """Knobs for trigger synchronization, with defaults that suit Neuroscan Curry recordings."""

    trigger_label: str = "Trigger"
    """Label of the trigger channel to look for, ignoring case."""

    new_trigger_label: str = "TRIGGER"
    """Label for the trigger channel to add when the recording doesn't have one."""

    boundary_code: float = -99
    """Trigger code that marks the last sample of each trial in epoched recordings."""

    default_trial_code: float = 10
    """Trigger code to mark each trial's zero point when there's no per-trial epoch info."""

    max_offset_samples: int = 100
    """Estimated offsets must be strictly smaller than this, in absolute value, to be applied."""

    max_alignment_cells: int = 4000000
    """Decline sequence alignments larger than this (events x pulses), and fall back to simpler methods."""

    keep_trigger_channel: bool = True
    """Whether to keep the trigger row in the corrected samples, or drop it once events are built."""

    @classmethod
    def from_dict(cls, settings: dict[str, Any]) -> Self:
        """Create settings from a dict like the "sync" section of a YAML config, rejecting unknown names."""
        if not settings:
            return cls()
        known_names = {f.name for f in fields(cls)}
        unknown_names = set(settings.keys()) - known_names
        if unknown_names:
            raise ValueError(f"Unknown sync settings: {sorted(unknown_names)}")
        return cls(**settings)


def synchronize(recording: RawRecording, settings: SyncSettings = None) -> SyncResult:
    """Reconcile the recording's trigger channel with its event table and build the canonical event timeline.

    This runs the whole pipeline for one recording:
     - find or add the trigger channel, and stamp trial markers for epoched recordings
     - estimate and correct any sample offset between trigger pulses and the event table
     - write event table codes onto the trigger channel
     - collapse the trigger channel into boundary and stimulus events

    The recording's samples are modified in place, but only in the trigger row.
    Raises ValueError if the recording itself is malformed, otherwise sync problems are reported
    in the result's offset estimate rather than raised.
    """
    if settings is None:
        settings = SyncSettings()

    recording.validate()

    trigger_index = ensure_trigger_channel(recording, settings.trigger_label, settings.new_trigger_label)
    stamp_trial_markers(recording, trigger_index, settings.default_trial_code, settings.boundary_code)

    trigger = recording.samples[trigger_index, :]
    offset = align_trigger_to_events(
        trigger,
        recording.event_table,
        settings.max_offset_samples,
        settings.max_alignment_cells
    )

    (canonical_events, original_events) = build_event_stream(trigger, settings.boundary_code)
    boundary_count = len(canonical_events) - len(original_events)
    logging.info(f"Found {len(original_events)} stimulus events and {boundary_count} boundaries.")

    corrected_samples = recording.samples
    channel_labels = [label.upper() for label in recording.channel_labels]
    if not settings.keep_trigger_channel:
        corrected_samples = np.delete(corrected_samples, trigger_index, axis=0)
        del channel_labels[trigger_index]
        logging.info("Removed trigger channel from corrected samples.")

    return SyncResult(
        corrected_samples=corrected_samples,
        channel_labels=channel_labels,
        sampling_rate_hz=recording.sampling_rate_hz,
        canonical_events=canonical_events,
        original_events=original_events,
        offset=offset,
        annotations=list(recording.annotations)
    )
