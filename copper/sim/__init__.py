from __future__ import annotations

from copper.sim.application import SimulatedApplication
from copper.sim.interfaces import RunMetrics, RunResult, TimeSeriesSample
from copper.sim.metrics import write_run_artifacts
from copper.sim.runner import ClosedLoopRunner

__all__ = [
    "ClosedLoopRunner",
    "RunMetrics",
    "RunResult",
    "SimulatedApplication",
    "TimeSeriesSample",
    "write_run_artifacts",
]
