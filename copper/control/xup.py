from __future__ import annotations

import math
import sys
from dataclasses import dataclass

from copper.config import XUP_DEFAULTS, XupDefaults


@dataclass(frozen=False, slots=True)
class XupState:
    """
    State and tuning of the xup (normalized control value) law.

    u is the multiplier applied to the minimum power to get the cap, so
    it always lies in [1, power_max / power_min] after a step.
    """
    u: float                   # Current xup
    uo: float                  # Previous xup
    uoo: float                 # Second previous xup
    e: float                   # Current error
    eo: float                  # Previous error
    p1: float                  # Dominant pole [0, 1)
    p2: float                  # Second pole
    z1: float                  # Zero, != 1
    mu: float                  # Adaptation rate
    epc: float                 # Confidence zone epsilon (0, 1)
    gl: float                  # Gain limit [0, 1)

    @classmethod
    def initial(cls, xup_start: float, defaults: XupDefaults = XUP_DEFAULTS) -> "XupState":
        """
        Seed the history with the starting xup so the first step begins
        at the operating point instead of at zero.
        """
        return cls(
            u=xup_start,
            uo=xup_start,
            uoo=xup_start,
            e=defaults.e,
            eo=defaults.eo,
            p1=defaults.p1,
            p2=defaults.p2,
            z1=defaults.z1,
            mu=defaults.mu,
            epc=defaults.epc,
            gl=defaults.gl,
        )


def clamp(val: float, lo: float, hi: float) -> float:
    return lo if val < lo else (hi if val > hi else val)


def confidence_zone(pole: float, epsilon: float) -> int:
    """
    Minimum number of steps before the dominant pole settles within
    epsilon of the goal. A pole of 0 settles instantaneously.
    """
    assert 0.0 <= pole < 1.0
    assert 0.0 < epsilon < 1.0
    if pole < sys.float_info.epsilon:
        return 0
    return math.ceil(math.log(epsilon) / math.log(pole))


def calculate_xup(
    xs: XupState,
    *,
    target: float,
    achieved: float,
    workload: float,
    step_id: int,
    max_ratio: float,
) -> float:
    """
    Compute the xup needed to reach the target and shift the history.

    The pole-placement coefficients depend on the workload estimate, so
    they are recomputed every step:

        u = F * (A*u[-1] + B*u[-2] + C*e + D*e[-1])

    u is clamped to [1, max_ratio] before the gain limiter, so a large
    error always gets a full-strength correction. Once step_id is past the
    confidence zone, u is scaled by

        gain = 1 - gl * dens * ens

    where ens grows with the normalized error and dens shrinks as the
    error changes between steps, then clamped again.

    Args:
        xs: Control law state, updated in place
        target: Performance target (> 0)
        achieved: Measured performance
        workload: Workload estimate from the Kalman filter
        step_id: Number of controller steps taken before this one. This is
            the controller's own count, not the data log sequence id, so
            gain limiting engages whether or not logging is enabled and is
            not restarted by reconfiguring the log
        max_ratio: power_max / power_min

    Returns:
        The new xup.
    """
    P1 = xs.p1
    P2 = xs.p2
    Z1 = xs.z1
    MU = xs.mu

    A = -(-(P1 * Z1) - (P2 * Z1) + (MU * P1 * P2) - (MU * P2) + P2 - (MU * P1) + P1 + MU)
    B = -(-(MU * P1 * P2 * Z1) + (P1 * P2 * Z1) + (MU * P2 * Z1) + (MU * P1 * Z1) - (MU * Z1) - (P1 * P2))
    C = (((MU - (MU * P1)) * P2) + (MU * P1) - MU) * workload
    D = ((((MU * P1) - MU) * P2) - (MU * P1) + MU) * workload * Z1
    F = 1.0 / (Z1 - 1.0)

    xs.e = target - achieved

    xs.u = F * ((A * xs.uo) + (B * xs.uoo) + (C * xs.e) + (D * xs.eo))
    xs.u = clamp(xs.u, 1.0, max_ratio)

    if step_id > confidence_zone(P1, xs.epc):
        en = abs(xs.e) / target
        eno = abs(xs.eo) / target
        den = abs(eno - en)
        # 0 <= ens < 1, small when already close to the target
        ens = 1.0 - (1.0 / (en + 1.0))
        # 0 < dens <= 1, small when the error is swinging
        dens = 1.0 / (den + 1.0)
        gain = 1.0 - (xs.gl * dens * ens)
        xs.u = clamp(gain * xs.u, 1.0, max_ratio)

    xs.uoo = xs.uo
    xs.uo = xs.u
    xs.eo = xs.e
    return xs.u
