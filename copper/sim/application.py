from __future__ import annotations

import random

from copper.errors import InvalidArgumentError
from copper.scenarios.rates import RateSchedule


class SimulatedApplication:
    """
    Stand-in for a host application whose performance scales with power.

    Performance for a window is rate(iteration) * cap, optionally perturbed
    by seeded multiplicative noise so runs are reproducible.
    """

    def __init__(self, schedule: RateSchedule, seed: int = 0, noise: float = 0.0):
        """
        Initialize the simulated application.

        Args:
            schedule: Performance per unit power at each iteration
            seed: Random seed for measurement noise
            noise: Relative noise amplitude in [0, 1)
        """
        if not 0.0 <= noise < 1.0:
            raise InvalidArgumentError(f"noise must be in [0, 1) (got {noise})")
        self._schedule = schedule
        self._noise = noise
        self._rng = random.Random(seed)

    def rate(self, iteration: int) -> float:
        return self._schedule(iteration)

    def measure(self, iteration: int, cap: float) -> float:
        performance = self._schedule(iteration) * cap
        if self._noise > 0.0:
            performance *= 1.0 + self._rng.uniform(-self._noise, self._noise)
        return performance
