from __future__ import annotations

import logging
import math
from typing import Optional

from copper.config import (
    ControllerConfig,
    validate_gain_limit,
    validate_target,
)
from copper.control.estimator import FilterState, estimate_workload
from copper.control.xup import XupState, calculate_xup, clamp
from copper.errors import InvalidArgumentError
from copper.log.buffer import LogBuffer, LogRecorder, LogState
from copper.log.sinks import LogSink

logger = logging.getLogger(__name__)


class CopperController:
    """
    Adaptive power-capping controller.

    Each step:
        workload = KalmanFilter(performance, previous xup)
        xup      = ControlLaw(target, performance, workload)
        cap      = xup * power_min

    The filter and control law state are owned by the controller. The data
    log buffer and sink are owned by the caller and only referenced here.

    Every cap returned lies in [power_min, power_max]. Invalid input raises
    InvalidArgumentError before any state changes. Instances share nothing,
    but a single instance must not be stepped from two threads at once.
    """

    def __init__(
        self,
        performance_target: float,
        power_min: float,
        power_max: float,
        power_start: float,
    ):
        """
        Initialize the controller. Data logging starts disabled.

        Args:
            performance_target: Desired performance (> 0)
            power_min: Minimum cap (> 0)
            power_max: Maximum cap (>= power_min)
            power_start: Cap currently applied (in [power_min, power_max])

        Raises:
            InvalidArgumentError: a bound or the target is out of range
        """
        cfg = ControllerConfig.from_args(
            performance_target=performance_target,
            power_min=power_min,
            power_max=power_max,
            power_start=power_start,
        )
        self._target = cfg.performance_target
        self._power_min = cfg.power_min
        self._power_max = cfg.power_max
        self._max_ratio = cfg.max_ratio

        self._fs = FilterState.initial()
        self._xs = XupState.initial(cfg.power_start / cfg.power_min)
        self._steps = 0
        self._log = LogRecorder()

    @classmethod
    def from_config(
        cls,
        config: ControllerConfig,
        buffer: Optional[LogBuffer] = None,
        sink: Optional[LogSink] = None,
    ) -> "CopperController":
        """Build a controller, applying gain limit and data log settings."""
        ctl = cls(
            config.performance_target,
            config.power_min,
            config.power_max,
            config.power_start,
        )
        ctl.set_gain_limit(config.gain_limit)
        if config.log_capacity > 0:
            ctl.configure_logging(buffer, config.log_capacity, sink)
        return ctl

    # ─────────────────────────────────────────────────────────────────
    # Control
    # ─────────────────────────────────────────────────────────────────

    def step(self, tag: int, performance: float) -> float:
        """
        Adapt the cap to the latest performance measurement.

        Args:
            tag: Caller-chosen identifier recorded in the data log
            performance: Performance achieved since the last step (>= 0)

        Returns:
            New cap in [power_min, power_max]

        Raises:
            InvalidArgumentError: performance is negative, infinite or NaN
        """
        if not (math.isfinite(performance) and performance >= 0):
            raise InvalidArgumentError(f"performance must be finite and >= 0 (got {performance})")

        workload = estimate_workload(self._fs, performance, self._xs.u)
        calculate_xup(
            self._xs,
            target=self._target,
            achieved=performance,
            workload=workload,
            step_id=self._steps,
            max_ratio=self._max_ratio,
        )
        # u is within [1, max_ratio]; clamp only absorbs rounding of
        # (power_max / power_min) * power_min
        cost = clamp(self._xs.u * self._power_min, self._power_min, self._power_max)
        assert self._power_min <= cost <= self._power_max, cost

        self._log.record(
            tag=tag,
            performance=performance,
            filter_state=self._fs,
            workload=workload,
            u=self._xs.u,
            e=self._xs.e,
            cost=cost,
        )
        self._steps += 1
        logger.debug(
            "step %d tag=%d performance=%f workload=%f xup=%f cap=%f",
            self._steps, tag, performance, workload, self._xs.u, cost,
        )
        return cost

    def finalize(self) -> None:
        """
        Flush data log entries not yet written to the sink.

        Safe to call more than once. Does not close the caller's sink.

        Raises:
            LogIOError: the sink failed while writing
        """
        self._log.finalize()

    # ─────────────────────────────────────────────────────────────────
    # Configuration
    # ─────────────────────────────────────────────────────────────────

    def set_target(self, performance_target: float) -> None:
        self._target = validate_target(performance_target)

    def set_gain_limit(self, gain_limit: float) -> None:
        """
        Set the gain limiter strength.

        0 disables gain limiting; values closer to 1 damp steady-state cap
        changes more strongly.

        Raises:
            InvalidArgumentError: gain_limit is outside [0, 1)
        """
        self._xs.gl = validate_gain_limit(gain_limit)

    def configure_logging(
        self,
        buffer: Optional[LogBuffer],
        capacity: int,
        sink: Optional[LogSink] = None,
    ) -> None:
        """
        Enable, reconfigure or disable (capacity=0) the data log.

        The sequence id restarts at 0 on every call. If a sink is given,
        its header is written immediately.

        Raises:
            InvalidArgumentError: capacity is negative or exceeds the buffer
            LogIOError: the sink failed to write the header
        """
        self._log.configure(buffer, capacity, sink)

    # ─────────────────────────────────────────────────────────────────
    # Inspection
    # ─────────────────────────────────────────────────────────────────

    @property
    def performance_target(self) -> float:
        return self._target

    @property
    def power_min(self) -> float:
        return self._power_min

    @property
    def power_max(self) -> float:
        return self._power_max

    @property
    def gain_limit(self) -> float:
        return self._xs.gl

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def xup(self) -> float:
        return self._xs.u

    @property
    def filter_state(self) -> FilterState:
        """Copy of the Kalman filter state (for inspection/testing)."""
        return self._fs.copy()

    @property
    def log_state(self) -> LogState:
        return self._log.state
