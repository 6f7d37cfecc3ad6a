from typing import Self
import logging
import csv
import numpy as np

from trigalign.model.events import NumericEventList
from trigalign.model.recording import RawRecording
from trigalign.readers.readers import RecordingReader


def read_numeric_rows(csv_file: str, dialect: str = 'excel', **fmtparams) -> list[list[float]]:
    """Read all the rows of a CSV that parse as numbers.

    Skips lines that contain non-numeric values, like headers and comments.
    """
    numeric_rows = []
    # See https://docs.python.org/3/library/csv.html#id3 for why this has newline=''
    with open(csv_file, mode='r', newline='') as f:
        csv_reader = csv.reader(f, dialect, **fmtparams)
        for row in csv_reader:
            if not row:
                continue
            try:
                numeric_rows.append([float(element) for element in row])
            except ValueError as error:
                logging.info(f"Skipping CSV '{csv_file}' line {csv_reader.line_num} <{row}> because {error.args}")
    return numeric_rows


class CsvRecordingReader(RecordingReader):
    """Read a recording from CSV files of numbers.

    samples_csv is required.  It must have a header line with channel labels, then one line per sample,
    one column per channel.  Any other lines that contain non-numeric values are skipped.

    events_csv is optional.  Each numeric line should have the 1-based sample and code of one logged event.

    epochs_csv is optional.  Each numeric line describes one trial, with the trial's stimulus code in the third column.

    sampling_rate_hz, trial_count, and trial_offset_usec describe how the samples were acquired.
    For epoched recordings, samples_csv should contain all trials concatenated in trial order.

    dialect and any additional fmtparams are passed on to the .csv reader.
    """

    def __init__(
        self,
        samples_csv: str = None,
        sampling_rate_hz: float = 1.0,
        events_csv: str = None,
        epochs_csv: str = None,
        trial_count: int = 1,
        trial_offset_usec: float = 0.0,
        dialect: str = 'excel',
        **fmtparams
    ) -> None:
        self.samples_csv = samples_csv
        self.sampling_rate_hz = float(sampling_rate_hz)
        self.events_csv = events_csv
        self.epochs_csv = epochs_csv
        self.trial_count = int(trial_count)
        self.trial_offset_usec = float(trial_offset_usec)
        self.dialect = dialect
        self.fmtparams = fmtparams

        self.file_stream = None
        self.csv_reader = None

    def __eq__(self, other: object) -> bool:
        """Compare CSV readers field-wise, to support use of this class in tests."""
        if isinstance(other, self.__class__):
            return (
                self.samples_csv == other.samples_csv
                and self.sampling_rate_hz == other.sampling_rate_hz
                and self.events_csv == other.events_csv
                and self.epochs_csv == other.epochs_csv
                and self.trial_count == other.trial_count
                and self.trial_offset_usec == other.trial_offset_usec
                and self.dialect == other.dialect
                and self.fmtparams == other.fmtparams
            )
        else:  # pragma: no cover
            return False

    def __enter__(self) -> Self:
        # See https://docs.python.org/3/library/csv.html#id3 for why this has newline=''
        self.file_stream = open(self.samples_csv, mode='r', newline='')
        self.csv_reader = csv.reader(self.file_stream, self.dialect, **self.fmtparams)
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.file_stream:
            self.file_stream.close()
            self.file_stream = None
        self.csv_reader = None

    def read_samples(self) -> tuple[list[str], np.ndarray]:
        """Consume the samples CSV and return (channel_labels, samples) with samples as channels x time."""
        try:
            channel_labels = [label.strip() for label in self.csv_reader.__next__()]
        except StopIteration:
            raise ValueError(f"Samples CSV '{self.samples_csv}' is empty, expected a header line with channel labels.")

        rows = []
        for row in self.csv_reader:
            if not row:
                continue
            try:
                rows.append([float(element) for element in row])
            except ValueError as error:
                logging.info(
                    f"Skipping CSV '{self.samples_csv}' line {self.csv_reader.line_num} <{row}> because {error.args}")

        if rows:
            samples = np.array(rows).T
        else:
            samples = np.empty([len(channel_labels), 0])
        return (channel_labels, samples)

    def read(self) -> RawRecording:
        (channel_labels, samples) = self.read_samples()

        if self.events_csv:
            event_rows = [
                row[0:2]
                for row in read_numeric_rows(self.events_csv, self.dialect, **self.fmtparams)
                if len(row) >= 2
            ]
            event_table = NumericEventList.from_pairs(event_rows)
        else:
            event_table = NumericEventList.empty()

        if self.epochs_csv:
            epoch_rows = read_numeric_rows(self.epochs_csv, self.dialect, **self.fmtparams)
            epoch_info = np.array(epoch_rows) if epoch_rows else None
        else:
            epoch_info = None

        logging.info(
            f"Read {samples.shape[0]} channels x {samples.shape[1]} samples and "
            f"{event_table.event_count()} logged events from CSV.")

        return RawRecording(
            samples=samples,
            channel_labels=channel_labels,
            sampling_rate_hz=self.sampling_rate_hz,
            trial_count=self.trial_count,
            trial_offset_usec=self.trial_offset_usec,
            event_table=event_table,
            epoch_info=epoch_info
        )
