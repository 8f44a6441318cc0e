from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from copper.errors import InvalidArgumentError


def _clean_path_name(path_name: str) -> str:
    # Remove unsafe characters from directory name
    cleaned = [c if (c.isalnum() or c in ("-", "_")) else "_" for c in path_name]
    return "".join(cleaned).strip("_")


@dataclass(frozen=True, slots=True)
class FilterDefaults:
    """
    Initial state and noise constants for the workload Kalman filter.
    """
    x_hat_minus: float = 0.0     # Prior workload estimate
    x_hat: float = 0.2           # Posterior workload estimate
    p_minus: float = 0.0         # Prior error covariance
    h: float = 0.0               # Observation coefficient (last xup)
    k: float = 0.0               # Kalman gain
    p: float = 1.0               # Posterior error covariance
    q: float = 0.00001           # Process noise
    r: float = 0.01              # Observation noise


@dataclass(frozen=True, slots=True)
class XupDefaults:
    """
    Tuning constants for the xup control law.
    """
    p1: float = 0.0              # Dominant closed-loop pole
    p2: float = 0.0              # Second closed-loop pole
    z1: float = 0.0              # Closed-loop zero
    mu: float = 1.0              # Adaptation rate
    e: float = 0.0               # Initial error
    eo: float = 0.0              # Initial previous error
    gl: float = 0.0              # Gain limit [0, 1)
    epc: float = 0.05            # Confidence zone epsilon (0, 1)


FILTER_DEFAULTS = FilterDefaults()
XUP_DEFAULTS = XupDefaults()


def validate_target(performance_target: float) -> float:
    if not (math.isfinite(performance_target) and performance_target > 0):
        raise InvalidArgumentError(
            f"performance target must be > 0 (got {performance_target})"
        )
    return float(performance_target)


def validate_gain_limit(gain_limit: float) -> float:
    if not 0 <= gain_limit < 1:
        raise InvalidArgumentError(f"gain limit must be in [0, 1) (got {gain_limit})")
    return float(gain_limit)


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """
    ControllerConfig

    Bounds and target for a CopperController.

    Params:
    - performance_target (float) : desired performance, > 0
    - power_min (float) : lowest cap the controller may return, > 0
    - power_max (float) : highest cap the controller may return, >= power_min
    - power_start (float) : operating point the control history is seeded with
    - gain_limit (float) : gain limiter strength in [0, 1), 0 disables it
    - log_capacity (int) : data log buffer slots, 0 disables data logging
    """
    performance_target: float
    power_min: float
    power_max: float
    power_start: float
    gain_limit: float = 0.0
    log_capacity: int = 0

    @property
    def max_ratio(self) -> float:
        return self.power_max / self.power_min

    @staticmethod
    def from_args(
        *,
        performance_target: float,
        power_min: float,
        power_max: float,
        power_start: float,
        gain_limit: float = 0.0,
        log_capacity: int = 0,
    ) -> "ControllerConfig":
        validate_target(performance_target)
        if not (math.isfinite(power_min) and power_min > 0):
            raise InvalidArgumentError(f"power_min must be > 0 (got {power_min})")
        if not (math.isfinite(power_max) and power_max >= power_min):
            raise InvalidArgumentError(
                f"power_max must be >= power_min (got {power_max} < {power_min})"
            )
        if not power_min <= power_start <= power_max:
            raise InvalidArgumentError(
                f"power_start must be in [{power_min}, {power_max}] (got {power_start})"
            )
        validate_gain_limit(gain_limit)
        if log_capacity < 0:
            raise InvalidArgumentError(f"log_capacity must be >= 0 (got {log_capacity})")

        return ControllerConfig(
            performance_target=float(performance_target),
            power_min=float(power_min),
            power_max=float(power_max),
            power_start=float(power_start),
            gain_limit=float(gain_limit),
            log_capacity=int(log_capacity),
        )


# slots are used to enfore good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class SimConfig:
    """
    SimConfig

    Configuration for a closed-loop harness run

    Params:
    - name (str) : run name
    - iterations (int) : total application iterations to run
    - window (int) : iterations between controller steps
    - seed (int) : random seed for the simulated measurement noise
    - out_dir (Path) : output directory for run artifacts
                       default: artifacts/runs/<timestamp>_<name>
    """
    name: str
    iterations: int
    window: int
    seed: int
    out_dir: Path

    @staticmethod
    def from_args(
        *,
        name: str,
        iterations: int,
        window: int,
        seed: int,
        out_dir: str | None = None,
    ) -> "SimConfig":
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("name must be a non-empty string")
        if iterations < 0:
            raise InvalidArgumentError("iterations must be >= 0")
        if window <= 0:
            raise InvalidArgumentError("window must be > 0")

        if out_dir is not None:
            out_dir = Path(out_dir)
        else:
            # artifacts/runs/<YYYYmmdd_HHMMSS UTC>_<name>
            ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            clean_name = _clean_path_name(name)
            if not clean_name:
                clean_name = "run"
            out_dir = Path("artifacts").joinpath(f"runs/{ts}_{clean_name}")

        return SimConfig(
            name=name,
            iterations=int(iterations),
            window=int(window),
            seed=int(seed),
            out_dir=out_dir,
        )
