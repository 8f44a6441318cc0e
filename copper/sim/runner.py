"""
Closed-loop runner for CoPPer.

Drives a controller from a simulated host application loop, the same way
an embedding application would:

```
    for each iteration i:
        if i != 0 and i % window == 0:
            performance = application.measure(i, cap)
            cap = controller.step(i, performance)
        (application does its work under `cap`)
```

The runner is the timebase; the controller only sees (tag, performance)
pairs and never knows how often it is called.

Example usage:
    >>> from copper.config import SimConfig
    >>> from copper.control.copper import CopperController
    >>> from copper.scenarios import constant_rate
    >>> from copper.sim.application import SimulatedApplication
    >>> from copper.sim.runner import ClosedLoopRunner
    >>>
    >>> config = SimConfig.from_args(name="example", iterations=100, window=2, seed=42)
    >>> controller = CopperController(100.0, 10.0, 100.0, 60.0)
    >>> app = SimulatedApplication(constant_rate(2.0), seed=config.seed)
    >>> result = ClosedLoopRunner(config, controller, app, power_start=60.0).run()
    >>> print(f"Ran {result.metrics.total_steps} controller steps")
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone

from ..config import SimConfig
from ..control.interfaces import PerformanceController
from .application import SimulatedApplication
from .interfaces import RunMetrics, RunResult, TimeSeriesSample

logger = logging.getLogger(__name__)


class ClosedLoopRunner:
    """
    Runs a controller against a simulated application.

    Attributes:
        _cfg: Run configuration (name, iterations, window, seed).
        _controller: Controller under test.
        _app: Simulated application providing performance measurements.
        _cap: Cap currently applied to the application.
    """

    def __init__(
        self,
        config: SimConfig,
        controller: PerformanceController,
        application: SimulatedApplication,
        power_start: float,
        performance_target: float | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            config: Run configuration
            controller: Controller stepped every `config.window` iterations
            application: Source of performance measurements
            power_start: Cap applied before the first controller step
            performance_target: Recorded in the run metrics; read from the
                                controller when it exposes one
        """
        self._cfg = config
        self._controller = controller
        self._app = application
        self._cap = power_start
        if performance_target is None:
            performance_target = getattr(controller, "performance_target", 0.0)
        self._target = performance_target

    def run(self) -> RunResult:
        """
        Run all iterations, then finalize the controller.

        Returns:
            RunResult with run metrics and one sample per controller step.
        """
        start_time = datetime.now(timezone.utc).isoformat()
        window = self._cfg.window
        timeseries: list[TimeSeriesSample] = []

        for i in range(self._cfg.iterations):
            if i == 0 or i % window != 0:
                continue
            performance = self._app.measure(i, self._cap)
            cap = self._controller.step(i, performance)
            timeseries.append(TimeSeriesSample(
                iteration=i,
                rate=self._app.rate(i),
                performance=performance,
                cap_applied=self._cap,
                cap=cap,
            ))
            self._cap = cap

        self._controller.finalize()

        finish_time = datetime.now(timezone.utc).isoformat()
        metrics = RunMetrics(
            total_iterations=self._cfg.iterations,
            total_steps=len(timeseries),
            start_time=start_time,
            finish_time=finish_time,
            scenario_name=self._cfg.name,
            performance_target=self._target,
        )

        # Validate that metrics are serializable (fail-fast check)
        _ = asdict(metrics)
        logger.info("%s: %d steps over %d iterations", self._cfg.name, len(timeseries), self._cfg.iterations)

        return RunResult(metrics=metrics, timeseries=timeseries)
