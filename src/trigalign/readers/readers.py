from types import TracebackType
from typing import Any, ContextManager

from trigalign.model.model import DynamicImport
from trigalign.model.recording import RawRecording


class RecordingReader(DynamicImport, ContextManager):
    """Interface for getting a RawRecording out of some data source, like files written by an amplifier.

    Each reader implementation should:
     - Encapsulate the details of how to find and parse a data source, which trigalign treats as opaque.
     - Implement __enter__() and __exit__() to conform to Python's "context manager protocol", which
       is how trigalign manages acquisition and release of system and library resources.
       See: https://peps.python.org/pep-0343/#standard-terminology
     - Implement read() to return the whole recording as arrays and tables in a RawRecording.

    Readers can be chosen at runtime from config, by dynamic import.
    Since config values may arrive as strings, reader constructors should convert their own kwargs.
    """

    def __enter__(self) -> Any:
        """Connect to a data source and acquire related system or library resources.

        Return an object that we can "read()" on -- probably return self.
        """
        raise NotImplementedError  # pragma: no cover

    def __exit__(
        self,
        __exc_type: type[BaseException] | None,
        __exc_value: BaseException | None,
        __traceback: TracebackType | None
    ) -> bool | None:
        """Release any resources acquired during __enter()__."""
        raise NotImplementedError  # pragma: no cover

    def read(self) -> RawRecording:
        """Read the whole recording from the connected source.

        Raise an error if the source is missing or unreadable -- there's no way to recover from that downstream.
        """
        raise NotImplementedError  # pragma: no cover
