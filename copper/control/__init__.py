from __future__ import annotations

from copper.control.copper import CopperController
from copper.control.estimator import FilterState, estimate_workload
from copper.control.interfaces import PerformanceController
from copper.control.xup import XupState, calculate_xup, clamp, confidence_zone

__all__ = [
    "PerformanceController",
    "CopperController",
    "FilterState",
    "XupState",
    "calculate_xup",
    "clamp",
    "confidence_zone",
    "estimate_workload",
]
