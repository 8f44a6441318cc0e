from __future__ import annotations

import pytest

from copper.config import SimConfig
from copper.control.copper import CopperController
from copper.scenarios import step_rate
from copper.sim.application import SimulatedApplication
from copper.sim.metrics import write_run_artifacts
from copper.sim.runner import ClosedLoopRunner

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg")

from copper.sim.plotting import plot_from_artifacts, plot_run  # noqa: E402


@pytest.fixture
def result():
    cfg = SimConfig.from_args(name="plot", iterations=60, window=2, seed=1)
    controller = CopperController(100.0, 10.0, 100.0, 60.0)
    app = SimulatedApplication(step_rate(2.0, 3.0, 30), seed=1)
    return ClosedLoopRunner(cfg, controller, app, power_start=60.0).run()


def test_plot_run(result, tmp_path):
    out = tmp_path / "plot.png"
    plot_run(result, output_path=out, power_min=10.0, power_max=100.0)
    assert out.exists()


def test_plot_from_artifacts(result, tmp_path):
    write_run_artifacts(out_path=tmp_path, metrics=result.metrics, timeseries=result.timeseries)
    plot_from_artifacts(tmp_path)
    assert (tmp_path / "plot.png").exists()


def test_plot_from_missing_artifacts(tmp_path):
    with pytest.raises(FileNotFoundError):
        plot_from_artifacts(tmp_path)
