"""
CoPPer: adaptive power-capping controller that meets performance targets.

Features:
- Kalman filter estimate of the application's base workload
- Pole-placement control law with clamping and error-sensitive gain limiting
- Fixed-capacity circular data log flushed to a pluggable sink
- Deterministic closed-loop harness with JSON run artifacts
"""

from __future__ import annotations

from copper.control.copper import CopperController
from copper.errors import CopperError, InvalidArgumentError, LogIOError

__all__ = [
    "__version__",
    "CopperController",
    "CopperError",
    "InvalidArgumentError",
    "LogIOError",
]

__version__ = "0.1.0"
