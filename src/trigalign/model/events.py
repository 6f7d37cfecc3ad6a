from typing import Any, Self
from dataclasses import dataclass
import numpy as np

from trigalign.model.model import InteropData


BOUNDARY = "boundary"


@dataclass
class NumericEventList(InteropData):
    """Wrap a 2D array listing one event per row: [sample, code].

    This is used for pulses extracted from a trigger channel and also for the independently logged event table.
    Sample numbers are 1-based, counting from the first sample of the continuous (untrialed) stream.
    """

    event_data: np.ndarray
    """2D array backing the event list.

    event_data must have shape (n, 2) where:
     - n is the number of events (one event per row)
     - column 0 holds the 1-based event sample numbers
     - column 1 holds the event codes
    """

    def __eq__(self, other: object) -> bool:
        """Compare event_data arrays as-a-whole instead of element-wise."""
        if isinstance(other, self.__class__):
            return (self.event_data.size == 0 and other.event_data.size == 0) or np.array_equal(self.event_data, other.event_data)
        else:
            return False

    @classmethod
    def empty(cls) -> Self:
        return cls(np.empty([0, 2]))

    @classmethod
    def from_pairs(cls, pairs: list[tuple[int, float]]) -> Self:
        """Make a new list from (sample, code) pairs, like [(100, 5), (250, 7)]."""
        if not pairs:
            return cls.empty()
        return cls(np.array(pairs, dtype=float).reshape(-1, 2))

    def copy(self) -> Self:
        return NumericEventList(self.event_data.copy())

    def to_interop(self) -> Any:
        return self.event_data.tolist()

    @classmethod
    def from_interop(cls, interop) -> Self:
        if not interop:
            return cls.empty()
        return cls(np.array(interop, dtype=float).reshape(-1, 2))

    def event_count(self) -> int:
        """Get the number of events in the list."""
        return self.event_data.shape[0]

    def get_samples(self) -> np.ndarray:
        """Get just the event sample numbers, as integers, ignoring codes."""
        return self.event_data[:, 0].astype(int)

    def get_codes(self) -> np.ndarray:
        """Get just the event codes, ignoring sample numbers."""
        return self.event_data[:, 1]

    def count_code(self, code: float) -> int:
        """Count how many events carry the given code."""
        return int(np.count_nonzero(self.event_data[:, 1] == code))

    def unique_codes(self) -> np.ndarray:
        """Get the sorted, distinct codes present in the list."""
        return np.unique(self.event_data[:, 1])

    def copy_codes_in(self, codes: np.ndarray | list[float]) -> Self:
        """Make a new list containing only events whose code is one of the given codes.

        Event order is preserved.
        """
        rows_to_keep = np.isin(self.event_data[:, 1], codes)
        return NumericEventList(self.event_data[rows_to_keep, :])

    def copy_sample_range(self, first_sample: int = None, last_sample: int = None) -> Self:
        """Make a new list containing only events with samples in the closed interval [first_sample, last_sample].

        Omit first_sample to copy all events at or before last_sample.
        Omit last_sample to copy all events at or after first_sample.
        """
        samples = self.event_data[:, 0]
        rows_in_range = np.full(samples.shape, True)
        if first_sample is not None:
            rows_in_range &= samples >= first_sample
        if last_sample is not None:
            rows_in_range &= samples <= last_sample
        return NumericEventList(self.event_data[rows_in_range, :])


@dataclass
class OriginalEvent(InteropData):
    """Ledger entry for a stimulus event, kept so canonical events can be traced back to the trigger channel."""

    type: float
    """The event code as it appeared on the corrected trigger channel."""

    latency: int
    """1-based sample number of the event."""

    def to_interop(self) -> Any:
        return {"type": self.type, "latency": self.latency}

    @classmethod
    def from_interop(cls, interop) -> Self:
        return cls(type=interop["type"], latency=interop["latency"])


@dataclass
class CanonicalEvent(InteropData):
    """One entry of the final, corrected, ordered event timeline."""

    latency: int
    """1-based sample number of the event."""

    type: float | str
    """The event code, or the string "boundary" for a synthetic trial boundary."""

    urevent: int = None
    """1-based index into the OriginalEvent ledger, or None for boundary events."""

    def is_boundary(self) -> bool:
        return self.type == BOUNDARY

    def to_interop(self) -> Any:
        return {"latency": self.latency, "type": self.type, "urevent": self.urevent}

    @classmethod
    def from_interop(cls, interop) -> Self:
        return cls(latency=interop["latency"], type=interop["type"], urevent=interop.get("urevent", None))
