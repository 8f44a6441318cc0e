"""
Command-line interface for CoPPer.

Runs the controller against a simulated application and writes run
artifacts, mirroring how a host application embeds the controller.

Usage:
    # Basic run
    copper --name smoke --iterations 100 --window 2 --seed 42

    # Rate step with data log and gain limiting
    copper --name phase --schedule step --rate 2 --rate-high 4 \
        --gain-limit 0.5 --log-capacity 16

Entry points:
    - copper: Direct CLI command (from pyproject.toml)
    - python -m copper.cli: Module execution
"""

from __future__ import annotations

import argparse
import logging
import sys

from .config import SimConfig
from .errors import CopperError, InvalidArgumentError
from .managed import LOG_FORMATS, open_controller
from .scenarios import constant_rate, ramp_rate, step_rate
from .sim.application import SimulatedApplication
from .sim.metrics import write_run_artifacts
from .sim.runner import ClosedLoopRunner

LOG_FILENAME = "copper.log"


def _build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser for the CLI.

    Returns:
        Configured ArgumentParser with all supported options.
    """
    p = argparse.ArgumentParser(
        prog="copper",
        description="CoPPer: adaptive power capping to meet performance targets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  copper --name smoke --iterations 10
      Run a short closed-loop simulation

  copper --name phase --schedule step --rate 2 --rate-high 4 --log-capacity 16
      Step the application's rate halfway through and keep a data log
""",
    )

    # ─────────────────────────────────────────────────────────────────
    # Run parameters
    # ─────────────────────────────────────────────────────────────────
    p.add_argument("--name", type=str, default="default",
                   help="Run name for artifact directory (default: %(default)s)")
    p.add_argument("--iterations", type=int, default=100,
                   help="Application iterations to run (>= 0) (default: %(default)s)")
    p.add_argument("--window", type=int, default=2,
                   help="Iterations between controller steps (> 0) (default: %(default)s)")
    p.add_argument("--seed", type=int, default=0,
                   help="Random seed for measurement noise (default: %(default)s)")
    p.add_argument("--out-dir", type=str, default=None,
                   help="Output directory (default: artifacts/runs/<timestamp>_<name>)")

    # ─────────────────────────────────────────────────────────────────
    # Controller parameters
    # ─────────────────────────────────────────────────────────────────
    p.add_argument("--target", type=float, default=100.0,
                   help="Performance target (> 0) (default: %(default)s)")
    p.add_argument("--power-min", type=float, default=10.0,
                   help="Minimum cap (default: %(default)s)")
    p.add_argument("--power-max", type=float, default=100.0,
                   help="Maximum cap (default: %(default)s)")
    p.add_argument("--power-start", type=float, default=60.0,
                   help="Starting cap (default: %(default)s)")
    p.add_argument("--gain-limit", type=float, default=0.0,
                   help="Gain limit in [0, 1) (default: %(default)s)")
    p.add_argument("--log-capacity", type=int, default=0,
                   help=f"Data log buffer slots, 0 disables {LOG_FILENAME} (default: %(default)s)")
    p.add_argument("--log-format", choices=sorted(LOG_FORMATS), default="text",
                   help="Data log format (default: %(default)s)")

    # ─────────────────────────────────────────────────────────────────
    # Simulated application
    # ─────────────────────────────────────────────────────────────────
    p.add_argument("--schedule", choices=("constant", "step", "ramp"), default="constant",
                   help="How the application's rate evolves (default: %(default)s)")
    p.add_argument("--rate", type=float, default=2.0,
                   help="Performance per unit power (default: %(default)s)")
    p.add_argument("--rate-high", type=float, default=4.0,
                   help="Final rate for step/ramp schedules (default: %(default)s)")
    p.add_argument("--noise", type=float, default=0.0,
                   help="Relative measurement noise in [0, 1) (default: %(default)s)")

    # ─────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────
    p.add_argument("--plot", action="store_true",
                   help="Write plot.png (requires matplotlib)")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="Increase diagnostic logging (-v info, -vv debug)")

    return p


def _build_schedule(args: argparse.Namespace):
    if args.schedule == "step":
        return step_rate(args.rate, args.rate_high, step_at_iteration=args.iterations // 2)
    if args.schedule == "ramp":
        return ramp_rate(args.rate, args.rate_high, ramp_iterations=max(1, args.iterations))
    return constant_rate(args.rate)


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 2 for invalid arguments, 1 for I/O errors
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = SimConfig.from_args(
            name=args.name,
            iterations=args.iterations,
            window=args.window,
            seed=args.seed,
            out_dir=args.out_dir,
        )
        app = SimulatedApplication(_build_schedule(args), seed=config.seed, noise=args.noise)

        config.out_dir.mkdir(parents=True, exist_ok=True)
        log_path = config.out_dir / LOG_FILENAME if args.log_capacity > 0 else None

        with open_controller(
            args.target,
            args.power_min,
            args.power_max,
            args.power_start,
            gain_limit=args.gain_limit,
            log_capacity=args.log_capacity,
            log_path=log_path,
            log_format=args.log_format,
        ) as controller:
            result = ClosedLoopRunner(config, controller, app, power_start=args.power_start).run()
    except InvalidArgumentError as e:
        print(f"copper: invalid argument: {e}", file=sys.stderr)
        return 2
    except (CopperError, OSError) as e:
        print(f"copper: {e}", file=sys.stderr)
        return 1

    write_run_artifacts(
        out_path=config.out_dir,
        metrics=result.metrics,
        timeseries=result.timeseries,
    )
    metrics_file = config.out_dir / "metrics.json"

    if args.plot:
        from .sim.plotting import plot_run
        try:
            plot_run(result, output_path=config.out_dir / "plot.png",
                     power_min=args.power_min, power_max=args.power_max)
        except RuntimeError as e:
            print(f"copper: {e}", file=sys.stderr)

    print(f"{result.metrics.scenario_name}: ", end="")
    print(f"iterations={result.metrics.total_iterations} ", end="")
    print(f"steps={result.metrics.total_steps}", end="")
    if result.timeseries:
        last = result.timeseries[-1]
        print(f" performance={last.performance:.3f} cap={last.cap:.3f}", end="")
    print(f" -> {metrics_file}")

    return 0


# Allow module execution: python -m copper.cli
if __name__ == "__main__":
    sys.exit(main())
