from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


class AlignmentError(Enum):
    """Reasons a sequence alignment produced no usable correspondence."""

    EMPTY_INPUT = "empty_input"
    """One or both sequences were empty."""

    TOO_LARGE = "too_large"
    """The alignment table would exceed the configured cell limit, so alignment was declined."""

    NO_MATCHES = "no_matches"
    """The sequences share no labels, so there's nothing to pair up."""


@dataclass
class SequenceAlignment():
    """Result of aligning two labeled sequences: index pairs in ascending order, or an error."""

    pairs: list[tuple[int, int]] = field(default_factory=list)
    """(first_index, second_index) pairs, 0-based, strictly increasing in both indexes."""

    error: AlignmentError = None

    def is_usable(self) -> bool:
        return self.error is None and len(self.pairs) > 0


# Traceback moves for the alignment table.
SKIP_FIRST = 0
SKIP_SECOND = 1
MATCH = 2


def align_labeled_sequences(
    first_positions: Sequence[float],
    first_labels: Sequence[float],
    second_positions: Sequence[float],
    second_labels: Sequence[float],
    max_cells: int = None
) -> SequenceAlignment:
    """Pair up elements of two ordered sequences of (position, label), preserving order in both.

    This is a longest-common-subsequence alignment keyed on label equality:
    it finds the largest number of pairs with equal labels such that pairs never cross.
    Among alignments with the same number of pairs, it prefers the one with the smallest
    total distance between paired positions.

    Positions only break ties, so the sequences may be offset from each other by any amount.

    Set max_cells to decline alignments whose table would have more than max_cells entries
    (len(first) * len(second)), returning AlignmentError.TOO_LARGE instead.
    """
    first_count = len(first_labels)
    second_count = len(second_labels)
    if first_count == 0 or second_count == 0:
        return SequenceAlignment(error=AlignmentError.EMPTY_INPUT)

    if max_cells and first_count * second_count > max_cells:
        return SequenceAlignment(error=AlignmentError.TOO_LARGE)

    first_positions = [float(position) for position in first_positions]
    first_labels = [float(label) for label in first_labels]
    second_positions = [float(position) for position in second_positions]
    second_labels = [float(label) for label in second_labels]

    # Each cell scores the best alignment of first[:i] with second[:j] as (pair count, total distance).
    previous_counts = [0] * (second_count + 1)
    previous_distances = [0.0] * (second_count + 1)
    moves = [bytearray(second_count + 1) for _ in range(first_count + 1)]
    for i in range(1, first_count + 1):
        current_counts = [0] * (second_count + 1)
        current_distances = [0.0] * (second_count + 1)
        first_position = first_positions[i - 1]
        first_label = first_labels[i - 1]
        move_row = moves[i]
        for j in range(1, second_count + 1):
            best_count = previous_counts[j]
            best_distance = previous_distances[j]
            best_move = SKIP_FIRST

            if (current_counts[j - 1] > best_count
                    or (current_counts[j - 1] == best_count and current_distances[j - 1] < best_distance)):
                best_count = current_counts[j - 1]
                best_distance = current_distances[j - 1]
                best_move = SKIP_SECOND

            if first_label == second_labels[j - 1]:
                match_count = previous_counts[j - 1] + 1
                match_distance = previous_distances[j - 1] + abs(first_position - second_positions[j - 1])
                if match_count > best_count or (match_count == best_count and match_distance <= best_distance):
                    best_count = match_count
                    best_distance = match_distance
                    best_move = MATCH

            current_counts[j] = best_count
            current_distances[j] = best_distance
            move_row[j] = best_move

        previous_counts = current_counts
        previous_distances = current_distances

    if previous_counts[second_count] == 0:
        return SequenceAlignment(error=AlignmentError.NO_MATCHES)

    pairs = []
    i = first_count
    j = second_count
    while i > 0 and j > 0:
        move = moves[i][j]
        if move == MATCH:
            pairs.append((i - 1, j - 1))
            i -= 1
            j -= 1
        elif move == SKIP_FIRST:
            i -= 1
        else:
            j -= 1
    pairs.reverse()
    return SequenceAlignment(pairs=pairs)
