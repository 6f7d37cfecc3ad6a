import logging
from types import TracebackType
from typing import Self, ContextManager
from collections.abc import Iterator
from pathlib import Path

import json

from trigalign.model.recording import SyncResult


class SyncFile(ContextManager):
    """Write and read trigalign SyncResults to and from a file.

    The SyncFile class itself is an abstract interface, to be implemented using various file formats.
    Each result written with append_result() should be recovered when returned from read_results(),
    such that original_result == recovered_result, as long as samples were included.
    """

    def __enter__(self) -> Self:
        """Create a new, empty file for writing results into."""
        raise NotImplementedError  # pragma: no cover

    def __exit__(
        self,
        __exc_type: type[BaseException] | None,
        __exc_value: BaseException | None,
        __traceback: TracebackType | None
    ) -> bool | None:
        """If needed, clean up resources used while writing results to disk."""
        pass

    def append_result(self, result: SyncResult) -> None:
        """Write the given result to the end of the file on disk."""
        raise NotImplementedError  # pragma: no cover

    def read_results(self) -> Iterator[SyncResult]:
        """Yield a sequence of results from the file on disk, one at a time, in order."""
        raise NotImplementedError  # pragma: no cover

    @classmethod
    def for_file_suffix(cls, file_name: str, include_samples: bool = False) -> Self:
        suffix = Path(file_name).suffix.lower()
        if suffix in {".json", ".jsonl"}:
            return JsonSyncFile(file_name, include_samples)
        else:
            raise NotImplementedError(f"Unsupported sync file suffix: {suffix}")


class JsonSyncFile(SyncFile):
    """Text-based sync file using one line of JSON per recording.

    This uses the concept of "JSON Lines" so that results for many recordings can go in one file.
    https://jsonlines.org/

    Corrected samples can be large, so they're only written when include_samples is True.
    """

    def __init__(self, file_name: str, include_samples: bool = False) -> None:
        self.file_name = file_name
        self.include_samples = include_samples

    def __enter__(self) -> Self:
        with open(self.file_name, "w", encoding="utf-8"):
            logging.info(f"Creating empty JSON sync file: {self.file_name}")
        return self

    def append_result(self, result: SyncResult) -> None:
        result_json = json.dumps(result.to_interop(include_samples=self.include_samples))
        with open(self.file_name, 'a', encoding="utf-8") as f:
            f.write(result_json + "\n")

    def read_results(self) -> Iterator[SyncResult]:
        with open(self.file_name, 'r', encoding="utf-8") as f:
            for json_line in f:
                if json_line.strip():
                    yield SyncResult.from_interop(json.loads(json_line))
