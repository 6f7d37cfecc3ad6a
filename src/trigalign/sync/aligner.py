import logging
import numpy as np

from trigalign.model.events import NumericEventList
from trigalign.model.recording import OffsetEstimate, SyncIssue
from trigalign.sync.pulses import extract_pulses
from trigalign.sync.sequence_alignment import SequenceAlignment, align_labeled_sequences


def restrict_to_common_codes(
    event_table: NumericEventList,
    pulses: NumericEventList
) -> tuple[NumericEventList, NumericEventList, np.ndarray]:
    """Drop events and pulses whose codes don't appear in both lists.

    Returns restricted copies of both lists, in original order, plus the sorted common codes.
    """
    common_codes = np.intersect1d(event_table.unique_codes(), pulses.unique_codes())
    return (event_table.copy_codes_in(common_codes), pulses.copy_codes_in(common_codes), common_codes)


def most_frequent_common_code(event_table: NumericEventList, pulses: NumericEventList) -> float:
    """Pick the code with the most occurrences across both lists combined.

    Only codes present in both lists are considered.
    Ties go to the smallest code.
    Returns None when there are no common codes.
    """
    common_codes = np.intersect1d(event_table.unique_codes(), pulses.unique_codes())
    if common_codes.size == 0:
        return None
    combined_counts = [event_table.count_code(code) + pulses.count_code(code) for code in common_codes]
    return float(common_codes[int(np.argmax(combined_counts))])


def align_events_to_pulses(
    event_table: NumericEventList,
    pulses: NumericEventList,
    max_cells: int = None
) -> SequenceAlignment:
    """Align event table entries with trigger pulses by code sequence, using sample numbers to break ties."""
    return align_labeled_sequences(
        event_table.get_samples(),
        event_table.get_codes(),
        pulses.get_samples(),
        pulses.get_codes(),
        max_cells=max_cells
    )


def paired_deltas(
    event_table: NumericEventList,
    pulses: NumericEventList,
    pairs: list[tuple[int, int]]
) -> np.ndarray:
    """Compute pulse sample minus event sample, for each (event_index, pulse_index) pair with equal codes."""
    event_samples = event_table.get_samples()
    event_codes = event_table.get_codes()
    pulse_samples = pulses.get_samples()
    pulse_codes = pulses.get_codes()
    deltas = [
        pulse_samples[pulse_index] - event_samples[event_index]
        for event_index, pulse_index in pairs
        if event_codes[event_index] == pulse_codes[pulse_index]
    ]
    return np.array(deltas, dtype=int)


def median_offset(deltas: np.ndarray) -> int:
    """Take the median of sample deltas, rounded to a whole sample, or None if there are no deltas."""
    if deltas.size == 0:
        return None
    return int(np.round(np.median(deltas)))


def positional_offset(event_table: NumericEventList, pulses: NumericEventList) -> tuple[int, int]:
    """Pair events and pulses one-to-one in order, when both lists have the same length.

    Returns (offset, matched_pairs), with offset None when lengths differ or no pairs have equal codes.
    """
    if event_table.event_count() != pulses.event_count():
        return (None, 0)
    pairs = [(index, index) for index in range(event_table.event_count())]
    deltas = paired_deltas(event_table, pulses, pairs)
    return (median_offset(deltas), deltas.size)


def estimate_offset(
    event_table: NumericEventList,
    pulses: NumericEventList,
    max_alignment_cells: int = None
) -> OffsetEstimate:
    """Estimate the systematic sample offset of trigger pulses relative to the event table.

    Tries, in order:
     - "sequence": align all events and pulses that share codes, take the median pulse-minus-event delta.
     - "most_frequent_code": the same, using only occurrences of the single most common shared code.
     - "positional": pair shared-code events and pulses in order, if there are equally many of each.

    The returned estimate has raw_offset set and applied_offset still 0 -- applying is up to the caller.
    When nothing works, raw_offset is None and issue is ALIGNMENT_UNAVAILABLE.
    """
    (common_events, common_pulses, common_codes) = restrict_to_common_codes(event_table, pulses)
    logging.info(
        f"Aligning {common_events.event_count()} events with {common_pulses.event_count()} pulses "
        f"over {common_codes.size} shared codes.")

    alignment = align_events_to_pulses(common_events, common_pulses, max_alignment_cells)
    if alignment.is_usable():
        deltas = paired_deltas(common_events, common_pulses, alignment.pairs)
        offset = median_offset(deltas)
        if offset is not None:
            return OffsetEstimate(raw_offset=offset, method="sequence", matched_pairs=deltas.size)
    logging.info(f"Sequence alignment unusable ({alignment.error}), trying most frequent shared code.")

    code = most_frequent_common_code(common_events, common_pulses)
    if code is not None:
        code_events = common_events.copy_codes_in([code])
        code_pulses = common_pulses.copy_codes_in([code])
        alignment = align_events_to_pulses(code_events, code_pulses, max_alignment_cells)
        if alignment.is_usable():
            deltas = paired_deltas(code_events, code_pulses, alignment.pairs)
            offset = median_offset(deltas)
            if offset is not None:
                return OffsetEstimate(raw_offset=offset, method="most_frequent_code", matched_pairs=deltas.size)
        logging.info(f"Alignment by code {code} unusable ({alignment.error}), trying positional pairing.")

    (offset, matched_pairs) = positional_offset(common_events, common_pulses)
    if offset is not None:
        return OffsetEstimate(raw_offset=offset, method="positional", matched_pairs=matched_pairs)

    logging.warning("Unable to align events with trigger pulses, no offset correction will be applied.")
    return OffsetEstimate(issue=SyncIssue.ALIGNMENT_UNAVAILABLE)


def shift_trigger(trigger: np.ndarray, offset: int) -> None:
    """Shift trigger values earlier by offset samples (later, for negative offset), in place.

    Samples shifted past either end are dropped and the vacated samples become 0.
    """
    sample_count = trigger.size
    if offset == 0 or sample_count == 0:
        return

    shifted = np.zeros_like(trigger)
    if abs(offset) < sample_count:
        if offset > 0:
            shifted[:sample_count - offset] = trigger[offset:]
        else:
            shifted[-offset:] = trigger[:sample_count + offset]
    trigger[:] = shifted


def write_event_codes(trigger: np.ndarray, event_table: NumericEventList) -> int:
    """Write event table codes onto the trigger at their 1-based samples, where the value differs.

    Events outside the trigger's sample range are ignored.
    Events are written in table order, so a later event at the same sample wins.

    Returns the number of samples that were changed.
    """
    in_range = event_table.copy_sample_range(1, trigger.size)
    written = 0
    for sample, code in zip(in_range.get_samples(), in_range.get_codes()):
        if trigger[sample - 1] != code:
            trigger[sample - 1] = code
            written += 1
    return written


def align_trigger_to_events(
    trigger: np.ndarray,
    event_table: NumericEventList,
    max_offset_samples: int = 100,
    max_alignment_cells: int = None
) -> OffsetEstimate:
    """Correct the trigger channel in place so its pulses line up with the event table.

    The event table is taken as ground truth for event timing.
    This estimates an offset between trigger pulses and events, shifts the trigger by that offset
    if it's smaller than max_offset_samples, then writes event codes onto the trigger at event samples.

    This never raises for alignment problems.
    Instead, the returned estimate says what was applied and, if nothing was, why not.
    """
    if event_table.event_count() == 0:
        logging.info("Event table is empty, leaving trigger channel as-is.")
        return OffsetEstimate()

    if np.any(trigger != 0):
        pulses = extract_pulses(trigger)
        estimate = estimate_offset(event_table, pulses, max_alignment_cells)
        if estimate.raw_offset is not None:
            if abs(estimate.raw_offset) < max_offset_samples:
                estimate.applied_offset = estimate.raw_offset
                shift_trigger(trigger, estimate.applied_offset)
                logging.info(
                    f"Shifted trigger channel by {estimate.applied_offset} samples "
                    f"({estimate.method}, {estimate.matched_pairs} pairs).")
            else:
                estimate.issue = SyncIssue.OFFSET_OUT_OF_BOUNDS
                logging.warning(
                    f"Estimated offset {estimate.raw_offset} is not within {max_offset_samples} samples, ignoring it.")
    else:
        logging.info("Trigger channel is empty, skipping offset estimation.")
        estimate = OffsetEstimate(issue=SyncIssue.NO_TRIGGER_DATA)

    written = write_event_codes(trigger, event_table)
    logging.info(f"Wrote {written} event table codes onto the trigger channel.")
    return estimate
