from __future__ import annotations

from dataclasses import dataclass


# slots are used to enfore good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class RunMetrics:
    total_iterations: int
    total_steps: int
    start_time: str
    finish_time: str
    scenario_name: str
    performance_target: float


@dataclass(frozen=True, slots=True)
class TimeSeriesSample:
    """
    One controller step as seen by the host loop.

    Recorded each time the runner calls the controller and written to
    timeseries.json for offline analysis and regression testing.
    """
    iteration: int          # Host iteration the step ran at
    rate: float             # True performance per unit power (simulated)
    performance: float      # Measured performance for the last window
    cap_applied: float      # Cap in effect while performance was measured
    cap: float              # New cap returned by the controller


@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Complete results from a closed-loop run.

    Attributes:
        metrics: Run-level metadata (timing, scenario name, counts).
        timeseries: One sample per controller step.
    """
    metrics: RunMetrics
    timeseries: list[TimeSeriesSample]
