"""
Plotting utilities for CoPPer run artifacts.

Plots can be generated directly from RunResult objects or from artifact
files on disk.

Requires matplotlib: pip install copper[plot]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .interfaces import RunResult


def check_matplotlib_available() -> bool:
    """Check if matplotlib is available."""
    try:
        import matplotlib
        return True
    except ImportError:
        return False


def _require_matplotlib() -> None:
    if not check_matplotlib_available():
        raise RuntimeError(
            "matplotlib not installed. Install with: pip install copper[plot]"
        )


def _draw(
    samples: list[dict],
    *,
    scenario: str,
    target: float | None,
    power_min: float | None,
    power_max: float | None,
    title: str | None,
    output_path: Path,
    show: bool,
) -> None:
    import matplotlib.pyplot as plt

    iterations = [s["iteration"] for s in samples]
    performance = [s["performance"] for s in samples]
    caps = [s["cap"] for s in samples]
    rates = [s["rate"] for s in samples]

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 5), sharex=True)

    # Panel 1: Performance vs target
    ax1.plot(iterations, performance, "b-", linewidth=1.5, label="Performance")
    if target is not None:
        ax1.axhline(y=target, color="black", linestyle=":", linewidth=1.5,
                    label=f"Target ({target:g})")
    ax1.set_ylabel("Performance")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="upper right")

    # Panel 2: Cap with bounds, rate on a secondary axis
    ax2.step(iterations, caps, where="post", color="tab:red", linewidth=1.5, label="Cap")
    for bound in (power_min, power_max):
        if bound is not None:
            ax2.axhline(y=bound, color="gray", linestyle="--", linewidth=1)
    ax2.set_ylabel("Cap", color="tab:red")
    ax2.tick_params(axis="y", labelcolor="tab:red")

    ax2_twin = ax2.twinx()
    ax2_twin.plot(iterations, rates, color="tab:green", linewidth=1,
                  linestyle="--", label="Rate")
    ax2_twin.set_ylabel("Performance / power", color="tab:green")
    ax2_twin.tick_params(axis="y", labelcolor="tab:green")

    lines1, labels1 = ax2.get_legend_handles_labels()
    lines2, labels2 = ax2_twin.get_legend_handles_labels()
    ax2.legend(lines1 + lines2, labels1 + labels2, loc="upper right")
    ax2.grid(True, alpha=0.3)
    ax2.set_xlabel("Iteration")

    fig.suptitle(title or f"CoPPer run: {scenario} ({len(samples)} steps)",
                 fontsize=14, fontweight="bold")
    plt.tight_layout()

    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    print(f"Plot saved to: {output_path}")

    if show:
        plt.show()

    plt.close(fig)


def plot_run(
    result: "RunResult",
    output_path: Path | str = "copper_plot.png",
    show: bool = False,
    title: str | None = None,
    power_min: float | None = None,
    power_max: float | None = None,
) -> None:
    """
    Plot performance against target and the cap chosen at each step.

    Args:
        result: RunResult from ClosedLoopRunner.run().
        output_path: Path to save the figure (PNG, PDF, etc.).
        show: If True, also display the plot interactively.
        title: Optional title for the figure.
        power_min: Minimum cap, drawn as a reference line if given.
        power_max: Maximum cap, drawn as a reference line if given.

    Raises:
        RuntimeError: If matplotlib is not installed.
        ValueError: If the result has no samples.
    """
    _require_matplotlib()
    if not result.timeseries:
        raise ValueError("No timeseries data in result")

    samples = [
        {"iteration": s.iteration, "performance": s.performance, "cap": s.cap, "rate": s.rate}
        for s in result.timeseries
    ]
    _draw(
        samples,
        scenario=result.metrics.scenario_name,
        target=result.metrics.performance_target,
        power_min=power_min,
        power_max=power_max,
        title=title,
        output_path=Path(output_path),
        show=show,
    )


def plot_from_artifacts(
    artifact_dir: Path | str,
    output_path: Path | str | None = None,
    show: bool = False,
) -> None:
    """
    Generate a plot from metrics.json and timeseries.json on disk.

    Args:
        artifact_dir: Directory written by write_run_artifacts().
        output_path: Path to save the figure. If None, saves to artifact_dir/plot.png.
        show: If True, display the plot interactively.

    Raises:
        RuntimeError: If matplotlib is not installed.
        FileNotFoundError: If required artifact files are missing.
    """
    _require_matplotlib()
    artifact_dir = Path(artifact_dir)

    metrics_path = artifact_dir / "metrics.json"
    if not metrics_path.exists():
        raise FileNotFoundError(f"metrics.json not found in {artifact_dir}")
    with metrics_path.open() as f:
        run_info = json.load(f).get("run", {})

    timeseries_path = artifact_dir / "timeseries.json"
    if not timeseries_path.exists():
        raise FileNotFoundError(f"timeseries.json not found in {artifact_dir}")
    with timeseries_path.open() as f:
        samples = json.load(f).get("samples", [])
    if not samples:
        raise ValueError("No samples in timeseries.json")

    _draw(
        samples,
        scenario=run_info.get("scenario_name", "unknown"),
        target=run_info.get("performance_target"),
        power_min=None,
        power_max=None,
        title=None,
        output_path=Path(output_path) if output_path is not None else artifact_dir / "plot.png",
        show=show,
    )
