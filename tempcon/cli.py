"""
Command-line interface for TempCon.

This module provides the CLI entry point for running the oven training rig
headless: build the rig, wire some or all of it, switch the supply on,
optionally inject faults on a schedule, run N ticks and write artifacts.

Usage:
    # Fully wired rig in MANUAL at 50 % for 60 s
    tempcon --name smoke --ticks 600

    # AUTO control to 70 °C with a plot
    tempcon --name auto70 --ticks 3000 --auto --sv 70 --plot

    # Open the PT100 half way through
    tempcon --name open_pt --ticks 1000 --auto --fault open-sensor@500

Entry points:
    - tempcon: Direct CLI command (from pyproject.toml)
    - python -m tempcon: Module execution
"""

from __future__ import annotations

import argparse
import logging
import sys

from .circuit.faults import FaultKind
from .config import LoopLayout, SimConfig
from .control.interfaces import RunMode
from .control.pid import PIDParams
from .scenarios.rig import Stage, build_oven_rig, wire_stages
from .scenarios.scripts import ScriptedAction, fault_at
from .sim.context import SimulationContext
from .sim.kernel import SimulationKernel
from .sim.metrics import write_result

logger = logging.getLogger(__name__)

WIRING_LEVELS: dict[str, tuple[Stage, ...]] = {
    "none": (),
    "power": (Stage.POWER,),
    "sensor": (Stage.POWER, Stage.SENSOR_LOOP),
    "full": tuple(Stage),
}


def _default_target(kind: FaultKind, layout: LoopLayout) -> str:
    match kind:
        case FaultKind.OPEN_SENSOR | FaultKind.SHORT_SENSOR:
            return layout.sensor
        case FaultKind.OPEN_TRANSMITTER:
            return layout.transmitter
        case FaultKind.BREAK_OUTPUT_LOOP:
            return layout.controller
        case _:
            return layout.heater


def parse_fault(text: str, layout: LoopLayout | None = None) -> ScriptedAction:
    """
    Parse ``KIND[:DEVICE[:CHANNEL]]@TICK`` into a scripted fault injection.

    Raises:
        ValueError: If the text is malformed or names an unknown fault kind.
    """
    layout = layout or LoopLayout()
    body, sep, tick = text.rpartition("@")
    if not sep or not body:
        raise ValueError(f"fault must look like KIND[:DEVICE[:CHANNEL]]@TICK, got {text!r}")
    parts = body.split(":")
    if len(parts) > 3:
        raise ValueError(f"too many ':' fields in fault {text!r}")
    kind = FaultKind(parts[0])
    device = parts[1] if len(parts) > 1 and parts[1] else _default_target(kind, layout)
    channel = int(parts[2]) if len(parts) > 2 else None
    return fault_at(int(tick), kind, device, channel=channel)


def _fault_arg(text: str) -> ScriptedAction:
    try:
        return parse_fault(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser for the CLI.

    Returns:
        Configured ArgumentParser with all supported options.
    """
    p = argparse.ArgumentParser(
        prog="tempcon",
        description="TempCon: temperature control loop training simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Fault kinds: {", ".join(k.value for k in FaultKind)}

Examples:
  tempcon --name smoke --ticks 100
      Run a fully wired rig for 100 ticks

  tempcon --name auto --ticks 3000 --auto --sv 70
      Closed-loop run to 70 degrees

  tempcon --name brk --ticks 800 --auto --fault break-output-loop:pid:1@400
      Break heating output loop 1 at tick 400
""",
    )

    # ─────────────────────────────────────────────────────────────────
    # Core simulation parameters
    # ─────────────────────────────────────────────────────────────────
    p.add_argument(
        "--name",
        type=str,
        default="default",
        help="Scenario name for artifact directory (default: %(default)s)",
    )
    p.add_argument(
        "--ticks",
        type=int,
        default=600,
        help="Total ticks to simulate (>= 0) (default: %(default)s)",
    )
    p.add_argument(
        "--sample-every",
        type=int,
        default=10,
        help="Ticks between time-series samples (> 0) (default: %(default)s)",
    )
    p.add_argument(
        "--dt",
        type=float,
        default=0.1,
        help="Simulated seconds per tick (> 0) (default: %(default)s)",
    )
    p.add_argument(
        "--out-dir",
        type=str,
        default=None,
        help="Output directory (default: artifacts/runs/<timestamp>_<name>)",
    )

    # ─────────────────────────────────────────────────────────────────
    # Rig setup
    # ─────────────────────────────────────────────────────────────────
    p.add_argument(
        "--wiring",
        choices=sorted(WIRING_LEVELS),
        default="full",
        help="How much of the standard wiring to install (default: %(default)s)",
    )
    p.add_argument(
        "--fault",
        type=_fault_arg,
        action="append",
        default=[],
        metavar="KIND[:DEVICE[:CHANNEL]]@TICK",
        help="Inject a fault before the given tick (repeatable)",
    )
    p.add_argument(
        "--auto",
        action="store_true",
        help="Start the controller in AUTO (default: MANUAL at 50 %%)",
    )
    p.add_argument(
        "--sv",
        type=float,
        default=60.0,
        help="Controller setpoint (default: %(default)s)",
    )

    # ─────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────
    p.add_argument(
        "--plot",
        action="store_true",
        help="Write plot.png next to the artifacts (requires tempcon[plot])",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: %(default)s)",
    )

    return p


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point.

    Parses arguments, builds and wires the rig, runs it, and writes
    artifacts to disk.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, non-zero for errors
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ─────────────────────────────────────────────────────────────────
    # Create simulation configuration
    # ─────────────────────────────────────────────────────────────────
    try:
        config = SimConfig.from_args(
            name=args.name,
            ticks=args.ticks,
            sample_every=args.sample_every,
            dt_s=args.dt,
            out_dir=args.out_dir,
        )
    except ValueError as e:
        parser.error(str(e))

    # ─────────────────────────────────────────────────────────────────
    # Build and wire the rig, then switch the supply on
    # ─────────────────────────────────────────────────────────────────
    layout = LoopLayout()
    context = SimulationContext(build_oven_rig(layout))
    wire_stages(context, *WIRING_LEVELS[args.wiring], layout=layout)
    context.set_supply(layout.supply, on=True)

    pid_params = PIDParams(
        sv=args.sv,
        mode=RunMode.AUTO if args.auto else RunMode.MANUAL,
    )
    kernel = SimulationKernel(config, context, layout=layout, pid_params=pid_params)
    result = kernel.run(script=args.fault)

    # ─────────────────────────────────────────────────────────────────
    # Write artifacts to disk
    # ─────────────────────────────────────────────────────────────────
    write_result(config.out_dir, result)
    metrics_file = config.out_dir / "metrics.json"
    logger.info("artifacts written to %s", config.out_dir)

    if args.plot and result.timeseries:
        from .sim.plotting import plot_simulation_results

        try:
            plot_simulation_results(result, output_path=config.out_dir / "plot.png")
        except RuntimeError as e:
            logger.warning("plot skipped: %s", e)

    # ─────────────────────────────────────────────────────────────────
    # Print summary to stdout
    # ─────────────────────────────────────────────────────────────────
    m = result.metrics
    print(f"{m.scenario_name}: ", end="")
    print(f"ticks={m.total_ticks} ", end="")
    print(f"t={m.sim_time_s:.1f}s ", end="")
    print(f"sensed={m.final_sensed_c:.2f}C ", end="")
    if result.final is not None:
        print(f"power={result.final.power_status.value} ", end="")
    print(f"events={m.event_count}", end="")
    print(f" -> {metrics_file}")

    return 0


# Allow module execution: python -m tempcon
if __name__ == "__main__":
    sys.exit(main())
