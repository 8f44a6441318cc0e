from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import MutableSequence, Optional

from copper.control.estimator import FilterState
from copper.errors import InvalidArgumentError, LogIOError
from copper.log.sinks import LOG_COLUMNS, LogSink

logger = logging.getLogger(__name__)

LogBuffer = MutableSequence[Optional["LogEntry"]]


@dataclass(frozen=True, slots=True)
class LogEntry:
    """
    Snapshot of the controller after one step.
    """
    id: int                        # Sequence id within the logging session
    user_tag: int                  # Caller-supplied tag
    constraint_achieved: float     # Measured performance
    filter_state: FilterState      # Copy of the Kalman filter state
    workload: float                # Estimated workload
    u: float                       # xup
    e: float                       # Error
    cost: float                    # Resulting cap

    def as_record(self) -> dict[str, float | int]:
        """Flatten into a mapping keyed by the data log column names."""
        fs = self.filter_state
        values = (
            self.id, self.user_tag, self.constraint_achieved,
            fs.x_hat_minus, fs.x_hat, fs.p_minus, fs.h, fs.k, fs.p,
            self.workload, self.u, self.e, self.cost,
        )
        return dict(zip(LOG_COLUMNS, values))


def new_log_buffer(capacity: int) -> LogBuffer:
    """Allocate an empty buffer with `capacity` slots."""
    if capacity < 0:
        raise InvalidArgumentError(f"capacity must be >= 0 (got {capacity})")
    return [None] * capacity


@dataclass(slots=True)
class LogState:
    """
    Data logging configuration and position.

    The buffer and sink belong to the caller; the controller only keeps
    references to them.
    """
    id: int = 0
    capacity: int = 0
    buffer: Optional[LogBuffer] = None
    sink: Optional[LogSink] = None
    # First slot not yet handed to the sink
    unflushed: int = field(default=0)

    @property
    def enabled(self) -> bool:
        return self.capacity > 0 and self.buffer is not None


class LogRecorder:
    """
    Circular data log of controller snapshots.

    Each record() writes slot `id % capacity`. Writing the last slot
    completes a wrap, and the buffer is handed to the sink in slot order,
    which is chronological at that point. Flush failures during record()
    are logged and dropped so the control loop keeps running; finalize()
    raises them.
    """

    def __init__(self) -> None:
        self.state = LogState()

    def configure(
        self,
        buffer: Optional[LogBuffer],
        capacity: int,
        sink: Optional[LogSink] = None,
    ) -> None:
        """
        Point the recorder at a new buffer and sink and restart ids at 0.

        Args:
            buffer: Caller-owned storage with at least `capacity` slots
            capacity: Slots to use, 0 disables recording
            sink: Optional destination for flushed entries

        Raises:
            InvalidArgumentError: capacity is negative or larger than buffer
            LogIOError: the sink failed to write the header
        """
        if capacity < 0:
            raise InvalidArgumentError(f"capacity must be >= 0 (got {capacity})")
        if capacity > 0 and (buffer is None or len(buffer) < capacity):
            raise InvalidArgumentError(
                f"buffer must provide at least {capacity} slots"
            )
        if sink is not None:
            try:
                sink.write_header()
            except (OSError, ValueError) as e:
                raise LogIOError(f"failed to write log header: {e}") from e

        self.state = LogState(id=0, capacity=capacity, buffer=buffer, sink=sink)
        logger.debug("data log configured: capacity=%d sink=%s", capacity, sink is not None)

    def record(
        self,
        *,
        tag: int,
        performance: float,
        filter_state: FilterState,
        workload: float,
        u: float,
        e: float,
        cost: float,
    ) -> Optional[LogEntry]:
        ls = self.state
        if not ls.enabled:
            return None

        i = ls.id % ls.capacity
        entry = LogEntry(
            id=ls.id,
            user_tag=tag,
            constraint_achieved=performance,
            filter_state=filter_state.copy(),
            workload=workload,
            u=u,
            e=e,
            cost=cost,
        )
        ls.buffer[i] = entry

        if i == ls.capacity - 1:
            try:
                self._flush(ls.capacity)
            except (OSError, ValueError) as e:
                logger.warning("dropping data log flush at id %d: %s", ls.id, e)
            ls.unflushed = 0
        ls.id += 1
        return entry

    def finalize(self) -> None:
        """
        Hand any entries written since the last wrap to the sink.

        Calling it again without new steps writes nothing.

        Raises:
            LogIOError: the sink failed while writing
        """
        ls = self.state
        if not ls.enabled:
            return
        end = ls.id % ls.capacity
        try:
            self._flush(end)
        except (OSError, ValueError) as e:
            raise LogIOError(f"failed to flush data log: {e}") from e

    def _flush(self, end: int) -> None:
        ls = self.state
        while ls.unflushed < end:
            if ls.sink is not None:
                ls.sink.write_record(ls.buffer[ls.unflushed])
            ls.unflushed += 1
