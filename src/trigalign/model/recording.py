from typing import Any, Self
from dataclasses import dataclass, field
from enum import Enum
import numpy as np

from trigalign.model.model import InteropData
from trigalign.model.events import NumericEventList, CanonicalEvent, OriginalEvent


@dataclass
class RawRecording():
    """Arrays and tables for one recording session, as produced by an upstream file reader.

    This is the input to synchronization.
    The trigger row of samples may be modified in place during synchronization, other rows are left alone.
    """

    samples: np.ndarray
    """2D array with shape (c, n) where c is the number of channels and n is the number of samples.

    For epoched recordings, n counts samples across all trials, concatenated in trial order.
    """

    channel_labels: list[str]
    """One label per row of samples."""

    sampling_rate_hz: float
    """Frequency in Hz of the columns of samples."""

    trial_count: int = 1
    """Number of equal-length trials concatenated in samples, 1 for continuous recordings."""

    trial_offset_usec: float = 0.0
    """Time in microseconds of the first sample of each trial, relative to the trial's time-zero event."""

    event_table: NumericEventList = field(default_factory=NumericEventList.empty)
    """Independently logged [sample, code] events, with 1-based sample numbers against the concatenated stream."""

    epoch_info: np.ndarray = None
    """Optional per-trial table, one row per trial, with the trial's stimulus code in column 2."""

    annotations: list[Any] = field(default_factory=list)
    """Free-form annotations from the upstream reader, passed through untouched."""

    def validate(self) -> None:
        """Raise ValueError if the recording is not structurally usable."""
        if self.samples.ndim != 2:
            raise ValueError(f"Samples must be 2D (channels x samples), got shape {self.samples.shape}.")
        if len(self.channel_labels) != self.samples.shape[0]:
            raise ValueError(
                f"Got {len(self.channel_labels)} channel labels for {self.samples.shape[0]} rows of samples.")
        if not self.sampling_rate_hz > 0:
            raise ValueError(f"Sampling rate must be positive, got {self.sampling_rate_hz}.")
        if self.trial_count < 1:
            raise ValueError(f"Trial count must be at least 1, got {self.trial_count}.")
        if self.sample_count() % self.trial_count:
            raise ValueError(
                f"Sample count {self.sample_count()} does not divide into {self.trial_count} equal trials.")
        if self.trial_count > 1 and self.sample_count() == 0:
            raise ValueError(f"Recording with {self.trial_count} trials has no samples.")

    def channel_count(self) -> int:
        return self.samples.shape[0]

    def sample_count(self) -> int:
        return self.samples.shape[1]

    def samples_per_trial(self) -> int:
        return self.sample_count() // self.trial_count

    def find_channel(self, label: str) -> int:
        """Get the row index of the first channel whose label matches, ignoring case, or None."""
        for index, channel_label in enumerate(self.channel_labels):
            if channel_label.lower() == label.lower():
                return index
        return None


class SyncIssue(Enum):
    """Non-fatal conditions that cause synchronization to skip or discard an offset correction."""

    ALIGNMENT_UNAVAILABLE = "alignment_unavailable"
    """No usable correspondence between the event table and the trigger pulses."""

    OFFSET_OUT_OF_BOUNDS = "offset_out_of_bounds"
    """The estimated offset was too large to be believable, so it was discarded."""

    NO_TRIGGER_DATA = "no_trigger_data"
    """The trigger channel was entirely zero, so there was nothing to align."""


@dataclass
class OffsetEstimate(InteropData):
    """What offset estimation found for one recording, and what was actually applied."""

    applied_offset: int = 0
    """Samples by which the trigger channel was shifted: positive shifts earlier, negative shifts later."""

    raw_offset: int = None
    """The offset as estimated before the safety bound was checked, or None when no estimate was made."""

    method: str = "none"
    """How the estimate was made: "sequence", "most_frequent_code", "positional", or "none"."""

    matched_pairs: int = 0
    """How many event/pulse pairs contributed to the estimate."""

    issue: SyncIssue = None
    """Why no correction was applied, if that's the case."""

    def to_interop(self) -> Any:
        return {
            "applied_offset": self.applied_offset,
            "raw_offset": self.raw_offset,
            "method": self.method,
            "matched_pairs": self.matched_pairs,
            "issue": self.issue.value if self.issue else None
        }

    @classmethod
    def from_interop(cls, interop) -> Self:
        issue = interop.get("issue", None)
        return cls(
            applied_offset=interop["applied_offset"],
            raw_offset=interop.get("raw_offset", None),
            method=interop.get("method", "none"),
            matched_pairs=interop.get("matched_pairs", 0),
            issue=SyncIssue(issue) if issue else None
        )


@dataclass
class SyncResult(InteropData):
    """Corrected samples and the canonical event timeline for one recording."""

    corrected_samples: np.ndarray
    """2D array (channels x samples) with the trigger row corrected, or removed if not kept."""

    channel_labels: list[str]
    """One label per row of corrected_samples."""

    sampling_rate_hz: float

    canonical_events: list[CanonicalEvent] = field(default_factory=list)
    """Stimulus and boundary events in ascending sample order."""

    original_events: list[OriginalEvent] = field(default_factory=list)
    """Ledger of stimulus events, referenced by CanonicalEvent.urevent (1-based)."""

    offset: OffsetEstimate = field(default_factory=OffsetEstimate)

    annotations: list[Any] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        """Compare results field-wise, and sample arrays as-a-whole instead of element-wise."""
        if isinstance(other, self.__class__):
            return (
                np.array_equal(self.corrected_samples, other.corrected_samples)
                and self.channel_labels == other.channel_labels
                and self.sampling_rate_hz == other.sampling_rate_hz
                and self.canonical_events == other.canonical_events
                and self.original_events == other.original_events
                and self.offset == other.offset
                and self.annotations == other.annotations
            )
        else:  # pragma: no cover
            return False

    def get_times_ms(self) -> np.ndarray:
        """Get sample times in milliseconds, starting from 0 at the first sample."""
        sample_count = self.corrected_samples.shape[1]
        return np.arange(sample_count) * 1000.0 / self.sampling_rate_hz

    def to_interop(self, include_samples: bool = False) -> Any:
        interop = {
            "channel_labels": self.channel_labels,
            "sampling_rate_hz": self.sampling_rate_hz,
            "sample_count": int(self.corrected_samples.shape[1]),
            "canonical_events": [event.to_interop() for event in self.canonical_events],
            "original_events": [event.to_interop() for event in self.original_events],
            "offset": self.offset.to_interop(),
            "annotations": self.annotations
        }
        if include_samples:
            interop["corrected_samples"] = self.corrected_samples.tolist()
        return interop

    @classmethod
    def from_interop(cls, interop) -> Self:
        if "corrected_samples" in interop:
            corrected_samples = np.array(interop["corrected_samples"], dtype=float)
        else:
            corrected_samples = np.empty([len(interop["channel_labels"]), 0])
        return cls(
            corrected_samples=corrected_samples,
            channel_labels=interop["channel_labels"],
            sampling_rate_hz=interop["sampling_rate_hz"],
            canonical_events=[CanonicalEvent.from_interop(event) for event in interop["canonical_events"]],
            original_events=[OriginalEvent.from_interop(event) for event in interop["original_events"]],
            offset=OffsetEstimate.from_interop(interop["offset"]),
            annotations=interop.get("annotations", [])
        )
