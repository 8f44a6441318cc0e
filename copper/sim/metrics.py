"""
Artifact writing for CoPPer closed-loop runs.

Artifact files produced:
- metrics.json: Run metadata
- timeseries.json: One sample per controller step

The controller's own data log (copper.log) is written separately by the
log sink configured on the controller.

Example artifact directory structure:
```
artifacts/runs/20240115_120000_example/
├── metrics.json       # Run metadata
├── timeseries.json    # Performance and cap history
└── copper.log         # Controller data log (optional)
```
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from .interfaces import RunMetrics, TimeSeriesSample


def write_run_artifacts(
    *,
    out_path: Path,
    metrics: RunMetrics,
    timeseries: list[TimeSeriesSample] | None = None,
) -> None:
    """
    Write run artifacts to disk.

    Args:
        out_path: Output directory, created with parents if missing.
        metrics: Run-level metadata. Always written.
        timeseries: Optional per-step samples. Written when non-empty.
    """
    out_path = Path(out_path)
    out_path.mkdir(parents=True, exist_ok=True)

    _write_metrics_json(out_path, metrics)

    if timeseries is not None and len(timeseries) > 0:
        _write_timeseries_json(out_path, timeseries)


def _write_metrics_json(out_path: Path, metrics: RunMetrics) -> None:
    """
    Write metrics.json artifact.

    Schema:
    {
        "run": {
            "total_iterations": int,
            "total_steps": int,
            "start_time": str (ISO 8601),
            "finish_time": str (ISO 8601),
            "scenario_name": str,
            "performance_target": float
        }
    }
    """
    payload = {"run": asdict(metrics)}
    metrics_path = out_path / "metrics.json"
    metrics_path.write_text(
        json.dumps(payload, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def _write_timeseries_json(out_path: Path, timeseries: list[TimeSeriesSample]) -> None:
    """
    Write timeseries.json artifact.

    Schema:
    {
        "samples": [
            {
                "iteration": int,
                "rate": float,
                "performance": float,
                "cap_applied": float,
                "cap": float
            },
            ...
        ]
    }
    """
    payload = {"samples": [asdict(s) for s in timeseries]}
    timeseries_path = out_path / "timeseries.json"
    timeseries_path.write_text(
        json.dumps(payload, indent=2) + "\n",
        encoding="utf-8",
    )
