from __future__ import annotations

from typing import Callable

# Type alias for schedule functions: iteration -> performance per unit power
RateSchedule = Callable[[int], float]


def constant_rate(rate: float) -> RateSchedule:
    """
    Fixed performance per unit of power.

    Args:
        rate: Performance delivered per unit of cap

    Returns:
        Schedule function: iteration -> rate
    """
    def schedule(iteration: int) -> float:
        return rate
    return schedule


def step_rate(
    rate_low: float = 1.0,
    rate_high: float = 2.0,
    step_at_iteration: int = 50,
) -> RateSchedule:
    """
    Step the rate from low to high at a specific iteration.

    Models a phase change in the application, e.g. a cheaper workload.
    Useful for testing how fast the workload estimate re-converges.
    """
    def schedule(iteration: int) -> float:
        return rate_low if iteration < step_at_iteration else rate_high
    return schedule


def ramp_rate(
    rate_start: float = 1.0,
    rate_end: float = 2.0,
    ramp_iterations: int = 100,
) -> RateSchedule:
    """
    Linear ramp of the rate over the given number of iterations.
    """
    def schedule(iteration: int) -> float:
        if iteration >= ramp_iterations:
            return rate_end
        t = iteration / ramp_iterations
        return rate_start + t * (rate_end - rate_start)
    return schedule
