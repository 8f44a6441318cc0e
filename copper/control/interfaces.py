from __future__ import annotations

from typing import Protocol


class PerformanceController(Protocol):
    """
    Protocol for controllers driven by a host application loop.

    The host measures its own performance, calls step() with it, and
    applies the returned cap. Controllers are deterministic: the same
    configuration and input sequence yields the same caps.
    """

    def step(self, tag: int, performance: float) -> float:
        """
        Compute a new cap from the latest performance measurement.

        Args:
            tag: Caller-chosen identifier recorded in the data log
            performance: Measured performance (>= 0)

        Returns:
            New cap in the caller's units
        """
        ...

    def finalize(self) -> None:
        """Flush any buffered state to external sinks."""
        ...
