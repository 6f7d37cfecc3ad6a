import numpy as np

from trigalign.model.events import NumericEventList
from trigalign.sync.pulses import extract_pulses


def test_empty_trigger():
    assert extract_pulses(np.zeros(100)) == NumericEventList.empty()
    assert extract_pulses(np.zeros(0)).event_count() == 0


def test_runs_collapse_to_first_sample():
    trigger = np.array([0, 0, 5, 5, 5, 0, 7, 7, 0, 3], dtype=float)
    pulses = extract_pulses(trigger)
    assert pulses == NumericEventList.from_pairs([(3, 5), (7, 7), (10, 3)])


def test_adjacent_different_codes_are_separate_pulses():
    trigger = np.array([5, 7, 7, 5, 0, -99], dtype=float)
    pulses = extract_pulses(trigger)
    assert pulses == NumericEventList.from_pairs([(1, 5), (2, 7), (4, 5), (6, -99)])


def test_same_code_after_a_gap_is_a_new_pulse():
    trigger = np.array([0, 0, 5, 0, 0, 5, 0, -99, 0], dtype=float)
    pulses = extract_pulses(trigger)
    assert pulses == NumericEventList.from_pairs([(3, 5), (6, 5), (8, -99)])


def test_extraction_is_idempotent():
    rng = np.random.default_rng(42)
    trigger = rng.choice([0, 0, 0, 1, 2], size=1000).astype(float)
    original_trigger = trigger.copy()

    pulses_1 = extract_pulses(trigger)
    pulses_2 = extract_pulses(trigger)
    assert pulses_1 == pulses_2
    assert np.array_equal(trigger, original_trigger)


def test_no_pulse_inside_a_run():
    rng = np.random.default_rng(7)
    trigger = rng.choice([0, 0, 1, 2, 3], size=1000).astype(float)
    pulse_samples = set(extract_pulses(trigger).get_samples())

    for index in range(trigger.size - 1):
        if trigger[index] != 0 and trigger[index] == trigger[index + 1]:
            # Index + 1 is 0-based, so its 1-based sample number is index + 2.
            assert index + 2 not in pulse_samples

    for index in np.flatnonzero(trigger):
        starts_run = index == 0 or trigger[index - 1] != trigger[index]
        assert (index + 1 in pulse_samples) == starts_run
