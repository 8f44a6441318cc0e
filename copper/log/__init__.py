from __future__ import annotations

from copper.log.buffer import LogEntry, LogRecorder, LogState, new_log_buffer
from copper.log.sinks import LOG_COLUMNS, JsonlLogSink, LogSink, TextLogSink

__all__ = [
    "LOG_COLUMNS",
    "LogEntry",
    "LogRecorder",
    "LogSink",
    "LogState",
    "JsonlLogSink",
    "TextLogSink",
    "new_log_buffer",
]
