#!/usr/bin/env python3
"""
Basic usage demo for the CoPPer controller.

Shows a host application loop that changes its power cap every few
iterations. Pass a log file path to also keep a data log.
"""

import sys

from copper import CopperController
from copper.managed import open_controller

ITERATIONS = 10
WINDOW_SIZE = 2
LOG_CAPACITY = 1
# the application measures its own performance
PERFORMANCE_TARGET = 100.0
# power can be in any units, e.g. watts or microwatts
POWER_MIN = 10.0
POWER_MAX = 100.0
POWER_START = 60.0


def apply_powercap(powercap):
    # hardware or cgroup knob goes here
    print(f"  applying cap {powercap:.3f}")


def application_do_work():
    pass


def application_loop(controller):
    for i in range(ITERATIONS):
        # only change power every WINDOW_SIZE iterations
        if i != 0 and i % WINDOW_SIZE == 0:
            # would use a real performance measurement here...
            performance = 200.0
            powercap = controller.step(i, performance)
            apply_powercap(powercap)
        application_do_work()


def basic_example():
    print("Caller-owned controller, no data log")
    controller = CopperController(PERFORMANCE_TARGET, POWER_MIN, POWER_MAX, POWER_START)
    application_loop(controller)
    controller.finalize()


def managed_example(log_path):
    print(f"Managed controller, data log -> {log_path}")
    with open_controller(
        PERFORMANCE_TARGET, POWER_MIN, POWER_MAX, POWER_START,
        log_capacity=LOG_CAPACITY, log_path=log_path,
    ) as controller:
        application_loop(controller)


def main():
    if len(sys.argv) > 1:
        managed_example(sys.argv[1])
    else:
        basic_example()


if __name__ == "__main__":
    main()
