from __future__ import annotations

import io
import random

import pytest

from copper.config import ControllerConfig
from copper.control.copper import CopperController
from copper.errors import InvalidArgumentError, LogIOError
from copper.log.buffer import new_log_buffer
from copper.log.sinks import TextLogSink

PERFORMANCE_TARGET = 1.0
POWER_MIN = 0.01
POWER_MAX = 100.0
POWER_START = 50.0


@pytest.fixture
def ctl() -> CopperController:
    return CopperController(PERFORMANCE_TARGET, POWER_MIN, POWER_MAX, POWER_START)


class BrokenStream(io.StringIO):
    def write(self, s):
        raise OSError("read-only sink")


class RecordFailingSink:
    def write_header(self) -> None:
        pass

    def write_record(self, entry) -> None:
        raise OSError("sink went away")


def test_standard_use_case(ctl):
    """First step uses the seeded history and returns an in-bounds cap."""
    cap = ctl.step(0, PERFORMANCE_TARGET)
    assert POWER_MIN <= cap <= POWER_MAX
    # on target, so the operating point is kept
    assert cap == pytest.approx(POWER_START, rel=1e-3)
    assert ctl.steps == 1


def test_initial_state(ctl):
    assert ctl.performance_target == PERFORMANCE_TARGET
    assert ctl.xup == pytest.approx(POWER_START / POWER_MIN)
    assert ctl.gain_limit == 0.0
    assert not ctl.log_state.enabled


@pytest.mark.parametrize(
    "target, pmin, pmax, pstart",
    [
        (0.0, 1.0, 10.0, 5.0),      # target == 0
        (-1.0, 1.0, 10.0, 5.0),     # target < 0
        (1.0, 0.0, 10.0, 5.0),      # power_min == 0
        (1.0, -1.0, 10.0, 5.0),     # power_min < 0
        (1.0, 10.0, 5.0, 5.0),      # power_max < power_min
        (1.0, 1.0, 10.0, 0.5),      # power_start below power_min
        (1.0, 1.0, 10.0, 11.0),     # power_start above power_max
        (float("nan"), 1.0, 10.0, 5.0),
        (float("inf"), 1.0, 10.0, 5.0),
        (1.0, 1.0, float("inf"), 5.0),   # unbounded power_max
        (1.0, float("inf"), float("inf"), float("inf")),
    ],
)
def test_init_rejects_invalid_arguments(target, pmin, pmax, pstart):
    with pytest.raises(InvalidArgumentError):
        CopperController(target, pmin, pmax, pstart)


def test_init_accepts_equal_bounds():
    ctl = CopperController(1.0, 5.0, 5.0, 5.0)
    for i in range(5):
        assert ctl.step(i, float(i)) == 5.0


def test_invalid_error_is_value_error():
    with pytest.raises(ValueError):
        CopperController(0.0, 1.0, 10.0, 5.0)


@pytest.mark.parametrize("performance", [-1.0, -1e-9, float("nan"), float("inf"), float("-inf")])
def test_step_rejects_invalid_performance_without_mutation(ctl, performance):
    pristine = CopperController(PERFORMANCE_TARGET, POWER_MIN, POWER_MAX, POWER_START)

    for _ in range(2):
        with pytest.raises(InvalidArgumentError):
            ctl.step(0, performance)

    assert ctl.steps == 0
    for i, perf in enumerate([0.5, 2.0, 1.0]):
        assert ctl.step(i, perf) == pristine.step(i, perf)
    assert ctl.filter_state == pristine.filter_state


def test_set_gain_limit(ctl):
    ctl.set_gain_limit(0.0)
    ctl.set_gain_limit(0.5)
    ctl.set_gain_limit(0.999)
    assert ctl.gain_limit == 0.999

    for bad in (1.0, 1.5, -0.1, -1.0):
        with pytest.raises(InvalidArgumentError):
            ctl.set_gain_limit(bad)
    assert ctl.gain_limit == 0.999


def test_set_target(ctl):
    ctl.set_target(2.5)
    assert ctl.performance_target == 2.5
    for bad in (0.0, -3.0):
        with pytest.raises(InvalidArgumentError):
            ctl.set_target(bad)
    assert ctl.performance_target == 2.5


@pytest.mark.parametrize("gain_limit", [0.0, 0.5, 0.9])
@pytest.mark.parametrize(
    "pmin, pmax, pstart",
    [(0.01, 100.0, 50.0), (10.0, 100.0, 60.0), (1.0, 2.0, 1.0)],
)
def test_caps_always_within_bounds(gain_limit, pmin, pmax, pstart):
    rng = random.Random(7)
    ctl = CopperController(100.0, pmin, pmax, pstart)
    ctl.set_gain_limit(gain_limit)
    for i in range(300):
        cap = ctl.step(i, rng.uniform(0.0, 300.0))
        assert pmin <= cap <= pmax


def test_deterministic_across_instances():
    rng = random.Random(3)
    inputs = [(i, rng.uniform(50.0, 150.0)) for i in range(50)]

    def run():
        out = io.StringIO()
        ctl = CopperController(100.0, 10.0, 100.0, 60.0)
        ctl.set_gain_limit(0.3)
        ctl.configure_logging(new_log_buffer(8), 8, TextLogSink(out))
        caps = [ctl.step(tag, perf) for tag, perf in inputs]
        ctl.finalize()
        return caps, out.getvalue()

    caps_a, log_a = run()
    caps_b, log_b = run()
    assert caps_a == caps_b
    assert log_a == log_b
    # header + one row per step
    assert len(log_a.splitlines()) == 1 + len(inputs)


def test_gain_limit_active_without_data_log():
    """Gain limiting depends on the step count, not the data log id."""
    a = CopperController(100.0, 10.0, 100.0, 60.0)
    b = CopperController(100.0, 10.0, 100.0, 60.0)
    b.set_gain_limit(0.9)
    caps_a = [a.step(i, 70.0) for i in range(3)]
    caps_b = [b.step(i, 70.0) for i in range(3)]
    assert caps_a[0] == caps_b[0]
    assert caps_a[1:] != caps_b[1:]


def test_configure_logging_disable_twice_is_idempotent(ctl):
    ctl.configure_logging(None, 0)
    ctl.configure_logging(None, 0)
    assert ctl.log_state.id == 0
    assert not ctl.log_state.enabled
    ctl.step(0, 1.0)
    ctl.finalize()
    assert ctl.log_state.id == 0


def test_configure_logging_resets_sequence_id(ctl):
    buf = new_log_buffer(4)
    ctl.configure_logging(buf, 4)
    for i in range(3):
        ctl.step(i, 1.0)
    assert ctl.log_state.id == 3
    assert [e.id for e in buf[:3]] == [0, 1, 2]

    ctl.configure_logging(buf, 4)
    ctl.step(3, 1.0)
    assert buf[0].id == 0
    assert buf[0].user_tag == 3


def test_configure_logging_writes_header_immediately(ctl):
    out = io.StringIO()
    ctl.configure_logging(new_log_buffer(2), 2, TextLogSink(out))
    assert out.getvalue().split() == [
        "ID", "USER_TAG", "CONSTRAINT",
        "X_HAT_MINUS", "X_HAT", "P_MINUS", "H", "K", "P",
        "WORKLOAD", "XUP", "ERROR", "COST",
    ]


def test_configure_logging_header_failure(ctl):
    with pytest.raises(LogIOError):
        ctl.configure_logging(new_log_buffer(2), 2, TextLogSink(BrokenStream()))
    assert not ctl.log_state.enabled


def test_log_entry_contents(ctl):
    buf = new_log_buffer(2)
    ctl.configure_logging(buf, 2)
    cap = ctl.step(99, 0.8)

    entry = buf[0]
    assert entry.id == 0
    assert entry.user_tag == 99
    assert entry.constraint_achieved == 0.8
    assert entry.cost == cap
    assert entry.u == pytest.approx(cap / POWER_MIN)
    assert entry.e == pytest.approx(PERFORMANCE_TARGET - 0.8)
    assert entry.filter_state == ctl.filter_state
    assert entry.workload == pytest.approx(1.0 / entry.filter_state.x_hat)


def test_step_survives_flush_failure(ctl):
    """A failing sink during a step is logged, never raised."""
    ctl.configure_logging(new_log_buffer(1), 1, RecordFailingSink())
    for i in range(3):
        cap = ctl.step(i, 1.0)
        assert POWER_MIN <= cap <= POWER_MAX
    assert ctl.log_state.id == 3


def test_finalize_is_idempotent(ctl):
    out = io.StringIO()
    ctl.configure_logging(new_log_buffer(4), 4, TextLogSink(out))
    for i in range(6):
        ctl.step(i, 1.0)
    ctl.finalize()
    lines = out.getvalue().splitlines()
    assert len(lines) == 1 + 6
    assert [int(line.split()[0]) for line in lines[1:]] == list(range(6))

    ctl.finalize()
    assert out.getvalue().splitlines() == lines


def test_from_config_applies_settings():
    cfg = ControllerConfig.from_args(
        performance_target=100.0,
        power_min=10.0,
        power_max=100.0,
        power_start=60.0,
        gain_limit=0.25,
        log_capacity=4,
    )
    buf = new_log_buffer(4)
    ctl = CopperController.from_config(cfg, buffer=buf)
    assert ctl.gain_limit == 0.25
    assert ctl.log_state.capacity == 4
    ctl.step(0, 100.0)
    assert buf[0] is not None


def test_set_target_rejects_infinite(ctl):
    with pytest.raises(InvalidArgumentError):
        ctl.set_target(float("inf"))
    assert ctl.performance_target == PERFORMANCE_TARGET


def test_gain_limit_unaffected_by_log_reconfiguration():
    """Restarting the data log does not restart the confidence zone."""
    a = CopperController(100.0, 10.0, 100.0, 60.0)
    b = CopperController(100.0, 10.0, 100.0, 60.0)
    for c in (a, b):
        c.set_gain_limit(0.9)
        c.configure_logging(new_log_buffer(2), 2)
    caps_a = []
    caps_b = []
    for i in range(6):
        if i == 3:
            b.configure_logging(new_log_buffer(2), 2)
        caps_a.append(a.step(i, 70.0))
        caps_b.append(b.step(i, 70.0))
    assert b.log_state.id == 3
    assert caps_a == caps_b


def test_step_survives_closed_log_stream(ctl):
    out = io.StringIO()
    ctl.configure_logging(new_log_buffer(1), 1, TextLogSink(out))
    out.close()
    for i in range(3):
        cap = ctl.step(i, 1.0)
        assert POWER_MIN <= cap <= POWER_MAX
    assert ctl.steps == 3
    assert ctl.log_state.id == 3
