"""
Resource-owning wrapper around CopperController.

CopperController never allocates or closes its data log buffer and sink.
open_controller() is the convenience layer that does: it allocates the
buffer, opens the log file, wires a sink, and on exit flushes the tail of
the buffer and closes the file.

Example:
    >>> with open_controller(100.0, 10.0, 100.0, 60.0,
    ...                      log_capacity=64, log_path="copper.log") as ctl:
    ...     cap = ctl.step(0, measure())
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Iterator

from copper.config import ControllerConfig
from copper.control.copper import CopperController
from copper.errors import InvalidArgumentError, LogIOError
from copper.log.buffer import new_log_buffer
from copper.log.sinks import JsonlLogSink, TextLogSink

logger = logging.getLogger(__name__)

LOG_FORMATS = {
    "text": TextLogSink,
    "jsonl": JsonlLogSink,
}


@contextlib.contextmanager
def open_controller(
    performance_target: float,
    power_min: float,
    power_max: float,
    power_start: float,
    *,
    gain_limit: float = 0.0,
    log_capacity: int = 0,
    log_path: Path | str | None = None,
    log_format: str = "text",
) -> Iterator[CopperController]:
    """
    Create a controller that owns its data log buffer and file.

    The log file is only opened when log_capacity > 0 and log_path is set.
    With a capacity but no path, entries are kept in memory only.
    If the body raises, the tail is still flushed; a flush failure is then
    logged and the body's exception propagates.

    Args:
        performance_target: Desired performance (> 0)
        power_min: Minimum cap (> 0)
        power_max: Maximum cap (>= power_min)
        power_start: Cap currently applied
        gain_limit: Gain limiter strength in [0, 1)
        log_capacity: Data log buffer slots, 0 disables data logging
        log_path: File the data log is written to
        log_format: "text" (fixed width) or "jsonl"

    Yields:
        Configured CopperController

    Raises:
        InvalidArgumentError: a setting is out of range
        LogIOError: the log file cannot be opened, or written on a clean exit
    """
    config = ControllerConfig.from_args(
        performance_target=performance_target,
        power_min=power_min,
        power_max=power_max,
        power_start=power_start,
        gain_limit=gain_limit,
        log_capacity=log_capacity,
    )
    sink_cls = LOG_FORMATS.get(log_format)
    if sink_cls is None:
        raise InvalidArgumentError(f"unknown log format {log_format!r} (expected one of {sorted(LOG_FORMATS)})")

    with contextlib.ExitStack() as stack:
        buffer = None
        sink = None
        if config.log_capacity > 0:
            buffer = new_log_buffer(config.log_capacity)
            if log_path is not None:
                try:
                    stream = stack.enter_context(open(log_path, "w", encoding="utf-8"))
                except OSError as e:
                    raise LogIOError(f"failed to open data log {log_path}: {e}") from e
                sink = sink_cls(stream)

        ctl = CopperController.from_config(config, buffer=buffer, sink=sink)
        try:
            yield ctl
        except BaseException:
            # keep the body's exception; a flush failure is only reported
            try:
                ctl.finalize()
            except LogIOError as e:
                logger.warning("data log not flushed: %s", e)
            raise
        ctl.finalize()
