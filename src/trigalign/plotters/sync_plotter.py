from typing import Any

import numpy as np
from matplotlib.figure import Figure

from trigalign.model.events import NumericEventList
from trigalign.model.recording import SyncResult


def format_offset(result: SyncResult) -> str:
    offset = result.offset
    if offset.issue:
        return f"no correction ({offset.issue.value})"
    elif offset.applied_offset:
        return f"shifted {offset.applied_offset} samples ({offset.method}, {offset.matched_pairs} pairs)"
    else:
        return "no shift needed"


class SyncPlotter():
    """Plot a trigger channel before and after synchronization, for a visual sanity check.

    The top axes show the trigger as read, with logged event table samples marked.
    The bottom axes show the canonical events: stimulus events as stems labelled with their codes,
    and trial boundaries as dashed vertical lines.

    This uses matplotlib Figure directly, instead of pyplot, so it works without any GUI.
    """

    def __init__(self, width: float = 12.0, height: float = 6.0, dpi: int = 100) -> None:
        self.width = width
        self.height = height
        self.dpi = dpi

    def plot(
        self,
        original_trigger: np.ndarray,
        event_table: NumericEventList,
        result: SyncResult,
        title: str = None
    ) -> Figure:
        fig = Figure(figsize=(self.width, self.height), dpi=self.dpi)
        (before_axes, after_axes) = fig.subplots(2, 1, sharex=True)

        sample_numbers = np.arange(original_trigger.size) + 1
        before_axes.step(sample_numbers, original_trigger, where="post", color="gray", linewidth=0.8, label="trigger")
        if event_table.event_count():
            before_axes.plot(
                event_table.get_samples(),
                event_table.get_codes(),
                linestyle="none",
                marker="v",
                color="tab:orange",
                label="logged events"
            )
        before_axes.set_ylabel("code")
        before_axes.set_title("trigger as read")
        before_axes.legend(loc="upper right")

        stimulus_events = [event for event in result.canonical_events if not event.is_boundary()]
        boundary_events = [event for event in result.canonical_events if event.is_boundary()]
        if stimulus_events:
            latencies = [event.latency for event in stimulus_events]
            codes = [event.type for event in stimulus_events]
            after_axes.stem(latencies, codes, linefmt="C0-", markerfmt="C0o", basefmt="k-")
            for latency, code in zip(latencies, codes):
                after_axes.annotate(f"{code:g}", (latency, code), textcoords="offset points", xytext=(0, 4), fontsize=7)
        for event in boundary_events:
            after_axes.axvline(event.latency, color="tab:red", linestyle="--", linewidth=0.8)
        after_axes.set_xlabel("sample")
        after_axes.set_ylabel("code")
        after_axes.set_title(f"canonical events: {format_offset(result)}")

        if title:
            fig.suptitle(title)
        return fig

    def save(
        self,
        file_name: str,
        original_trigger: np.ndarray,
        event_table: NumericEventList,
        result: SyncResult,
        title: str = None,
        **savefig_kwargs: Any
    ) -> Figure:
        fig = self.plot(original_trigger, event_table, result, title)
        fig.savefig(file_name, **savefig_kwargs)
        return fig
