from __future__ import annotations

from dataclasses import dataclass

from copper.config import FILTER_DEFAULTS, FilterDefaults


@dataclass(frozen=False, slots=True)
class FilterState:
    """
    State of the scalar Kalman filter that tracks the base workload.

    The tracked quantity x_hat is performance per unit of xup, so the
    workload (time per unit of work at minimum power) is 1 / x_hat.
    Mutable so the controller can update it in place each step.
    """
    x_hat_minus: float         # Prior estimate
    x_hat: float               # Posterior estimate
    p_minus: float             # Prior error covariance
    h: float                   # Observation coefficient (xup applied last step)
    k: float                   # Kalman gain
    p: float                   # Posterior error covariance
    q: float                   # Process noise
    r: float                   # Observation noise

    @classmethod
    def initial(cls, defaults: FilterDefaults = FILTER_DEFAULTS) -> "FilterState":
        return cls(
            x_hat_minus=defaults.x_hat_minus,
            x_hat=defaults.x_hat,
            p_minus=defaults.p_minus,
            h=defaults.h,
            k=defaults.k,
            p=defaults.p,
            q=defaults.q,
            r=defaults.r,
        )

    def copy(self) -> "FilterState":
        return FilterState(
            x_hat_minus=self.x_hat_minus,
            x_hat=self.x_hat,
            p_minus=self.p_minus,
            h=self.h,
            k=self.k,
            p=self.p,
            q=self.q,
            r=self.r,
        )


def estimate_workload(fs: FilterState, performance: float, last_xup: float) -> float:
    """
    Update the filter with a new observation and return the base workload.

    Model:
        predict:  x_hat_minus = x_hat,  p_minus = p + q
        observe:  performance = h * x,  h = last_xup
        k = p_minus * h / (h * p_minus * h + r)
        x_hat = x_hat_minus + k * (performance - h * x_hat_minus)
        p = (1 - k * h) * p_minus

    Args:
        fs: Filter state, updated in place
        performance: Observed performance for the last window
        last_xup: Control value that was in effect while it was measured

    Returns:
        Estimated workload, 1 / x_hat. Raises ZeroDivisionError if the
        estimate collapses to exactly zero.
    """
    fs.x_hat_minus = fs.x_hat
    fs.p_minus = fs.p + fs.q
    fs.h = last_xup
    fs.k = (fs.p_minus * fs.h) / ((fs.h * fs.p_minus * fs.h) + fs.r)
    fs.x_hat = fs.x_hat_minus + (fs.k * (performance - (fs.h * fs.x_hat_minus)))
    fs.p = (1.0 - (fs.k * fs.h)) * fs.p_minus
    return 1.0 / fs.x_hat
