from __future__ import annotations


class CopperError(Exception):
    """Base class for controller failures."""


class InvalidArgumentError(CopperError, ValueError):
    """
    A configuration or per-step input was out of range.

    Always raised before the controller state is touched, so the failed
    call is a no-op and may be retried with corrected input.
    """


class LogIOError(CopperError, OSError):
    """Writing the data log header or flushing buffered entries failed."""
