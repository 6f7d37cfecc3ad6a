import numpy as np

from trigalign.model.events import NumericEventList


def extract_pulses(trigger: np.ndarray) -> NumericEventList:
    """Collapse a trigger channel into one [sample, code] event per pulse.

    Any nonzero sample is part of a pulse.
    Pulses can last several samples, so a nonzero sample that directly follows another sample with
    the same value is treated as a continuation and dropped -- only the first sample of each run is kept.
    Adjacent samples with different nonzero values start separate pulses.

    Returned sample numbers are 1-based, in ascending order.
    This doesn't modify the trigger channel, so it's safe to call repeatedly.
    """
    nonzero_indexes = np.flatnonzero(trigger)
    if nonzero_indexes.size == 0:
        return NumericEventList.empty()

    nonzero_values = trigger[nonzero_indexes]
    continues_previous = (np.diff(nonzero_indexes) == 1) & (nonzero_values[1:] == nonzero_values[:-1])
    is_pulse_start = np.concatenate([[True], ~continues_previous])

    pulse_samples = nonzero_indexes[is_pulse_start] + 1
    pulse_codes = nonzero_values[is_pulse_start]
    return NumericEventList(np.column_stack([pulse_samples, pulse_codes]).astype(float))
