"""
Sinks for the controller data log.

A sink receives a header once per logging session and then one record per
flushed log entry. Two formats are provided:

- TextLogSink: fixed-width text, one row per entry, 16-character columns.
  This is the interchange format existing log consumers read:

      ID USER_TAG CONSTRAINT X_HAT_MINUS X_HAT P_MINUS H K P WORKLOAD XUP ERROR COST

- JsonlLogSink: one JSON object per line with the same fields, for tooling
  that prefers structured input.

Sinks write to a caller-owned text stream and never close it.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from copper.log.buffer import LogEntry

LOG_COLUMNS = (
    "ID", "USER_TAG", "CONSTRAINT",
    "X_HAT_MINUS", "X_HAT", "P_MINUS", "H", "K", "P",
    "WORKLOAD", "XUP", "ERROR", "COST",
)

_HEADER_FMT = " ".join(["%16s"] * len(LOG_COLUMNS)) + "\n"
_RECORD_FMT = "%16d %16d %16f %16f %16f %16f %16f %16f %16f %16f %16f %16f %16f\n"


class LogSink(Protocol):
    """
    Protocol for data log sinks.

    Either method may raise OSError, or ValueError once the stream is
    closed; the controller decides whether the
    failure reaches the caller.
    """

    def write_header(self) -> None:
        ...

    def write_record(self, entry: "LogEntry") -> None:
        ...


class TextLogSink:
    """Fixed-width text sink."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def write_header(self) -> None:
        self._stream.write(_HEADER_FMT % LOG_COLUMNS)

    def write_record(self, entry: "LogEntry") -> None:
        fs = entry.filter_state
        self._stream.write(_RECORD_FMT % (
            entry.id, entry.user_tag, entry.constraint_achieved,
            fs.x_hat_minus, fs.x_hat, fs.p_minus, fs.h, fs.k, fs.p,
            entry.workload, entry.u, entry.e, entry.cost,
        ))


class JsonlLogSink:
    """
    JSON Lines sink.

    The header is a single object listing the column names so that a
    reader can tell logging sessions apart in an appended file.
    """

    def __init__(self, stream: TextIO):
        self._stream = stream

    def write_header(self) -> None:
        json.dump({"columns": list(LOG_COLUMNS)}, self._stream)
        self._stream.write("\n")

    def write_record(self, entry: "LogEntry") -> None:
        json.dump(entry.as_record(), self._stream, sort_keys=True)
        self._stream.write("\n")
