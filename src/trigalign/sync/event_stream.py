import numpy as np

from trigalign.model.events import BOUNDARY, CanonicalEvent, OriginalEvent
from trigalign.sync.pulses import extract_pulses


def build_event_stream(
    trigger: np.ndarray,
    boundary_code: float = -99
) -> tuple[list[CanonicalEvent], list[OriginalEvent]]:
    """Turn pulses on a corrected trigger channel into canonical events and an original event ledger.

    Pulses with the boundary_code become "boundary" events, and their codes are cleared from the trigger,
    since boundaries are markers for the event timeline, not data.
    Other pulses become stimulus events, each with a matching ledger entry.
    Each stimulus event's urevent is the 1-based position of its ledger entry.

    Returns (canonical_events, original_events), both in ascending sample order.
    Both are empty when the trigger has no pulses.
    """
    pulses = extract_pulses(trigger)

    canonical_events = []
    original_events = []
    for sample, code in zip(pulses.get_samples(), pulses.get_codes()):
        latency = int(sample)
        if code == boundary_code:
            canonical_events.append(CanonicalEvent(latency=latency, type=BOUNDARY))
            trigger[latency - 1] = 0
        else:
            original_events.append(OriginalEvent(type=float(code), latency=latency))
            canonical_events.append(CanonicalEvent(latency=latency, type=float(code), urevent=len(original_events)))

    return (canonical_events, original_events)
