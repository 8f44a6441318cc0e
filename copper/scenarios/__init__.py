from __future__ import annotations

from copper.scenarios.rates import (
    RateSchedule,
    constant_rate,
    step_rate,
    ramp_rate,
)

__all__ = [
    "RateSchedule",
    "constant_rate",
    "step_rate",
    "ramp_rate",
]
