"""
Plotting utilities for TempCon simulation artifacts.

This module provides functions for generating visualizations from simulation
results. Plots can be generated directly from RunResult objects or from
artifact files on disk.

Requires matplotlib: pip install tempcon[plot]
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .interfaces import RunResult

logger = logging.getLogger(__name__)


def check_matplotlib_available() -> bool:
    """Check if matplotlib is available."""
    try:
        import matplotlib  # noqa: F401
        return True
    except ImportError:
        return False


def _require_matplotlib() -> None:
    if not check_matplotlib_available():
        raise RuntimeError(
            "matplotlib not installed. Install with: pip install tempcon[plot]"
        )


def _draw(samples: list[dict[str, Any]], suptitle: str, output_path: Path | None, show: bool) -> None:
    """
    Three panels sharing the time axis:
    1. Core, delayed and sensed temperature
    2. PV against SV
    3. Controller output with heat/cool duties and actuator powers
    """
    import matplotlib

    if not show:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    t = [s["time_s"] for s in samples]

    fig, axes = plt.subplots(3, 1, figsize=(10, 7.5), sharex=True)

    # Panel 1: Plant temperatures
    ax1 = axes[0]
    ax1.plot(t, [s["core_c"] for s in samples], "r-", linewidth=1.5, label="Core")
    ax1.plot(t, [s["delayed_c"] for s in samples], "r:", linewidth=1.0, label="Delayed")
    ax1.plot(t, [s["sensed_c"] for s in samples], "k-", linewidth=1.0, label="Sensed")
    ax1.set_ylabel("Temperature (°C)")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="upper left")

    # Panel 2: PV / SV
    ax2 = axes[1]
    ax2.plot(t, [s["pv"] for s in samples], color="tab:blue", linewidth=1.5, label="PV")
    ax2.plot(t, [s["sv"] for s in samples], color="black", linestyle="--",
             linewidth=1.2, label="SV")
    ax2.set_ylabel("Process value")
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="upper left")

    # Panel 3: Output, duties and actuator power
    ax3 = axes[2]
    ax3.plot(t, [s["out_pct"] / 100.0 for s in samples], "k-", linewidth=1.2, label="OUT")
    ax3.plot(t, [s["heat_duty"] for s in samples], "tab:red", linestyle="--",
             linewidth=1.0, label="Heat duty")
    ax3.plot(t, [s["cool_duty"] for s in samples], "tab:cyan", linestyle="--",
             linewidth=1.0, label="Cool duty")
    ax3.plot(t, [s["heater_power"] for s in samples], "tab:red", alpha=0.5, label="Heater")
    ax3.plot(t, [s["fan_power"] for s in samples], "tab:cyan", alpha=0.5, label="Fan")
    ax3.set_ylabel("Fraction")
    ax3.set_ylim(-0.05, 1.05)
    ax3.set_xlabel("Time (s)")
    ax3.grid(True, alpha=0.3)
    ax3.legend(loc="upper left", ncol=2)

    fig.suptitle(suptitle, fontsize=14, fontweight="bold")
    plt.tight_layout()

    if output_path is not None:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        logger.info("plot saved to %s", output_path)

    if show:
        plt.show()

    plt.close(fig)


def plot_simulation_results(
    result: "RunResult",
    output_path: Path | str | None = None,
    show: bool = False,
    title: str | None = None,
) -> None:
    """
    Generate a multi-panel plot of simulation results.

    Args:
        result: RunResult from a simulation run.
        output_path: Path to save the figure (PNG, PDF, etc.).
                     If None and show=False, saves to 'simulation_plot.png'.
        show: If True, display the plot interactively.
        title: Optional title for the figure.

    Raises:
        RuntimeError: If matplotlib is not installed.
        ValueError: If the result holds no time-series samples.
    """
    _require_matplotlib()

    if not result.timeseries:
        raise ValueError("No timeseries data in result")

    if output_path is not None:
        output_path = Path(output_path)
    elif not show:
        output_path = Path("simulation_plot.png")

    if title is None:
        m = result.metrics
        title = f"TempCon Simulation: {m.scenario_name} ({m.total_ticks} ticks)"

    _draw([asdict(s) for s in result.timeseries], title, output_path, show)


def plot_from_artifacts(
    artifact_dir: Path | str,
    output_path: Path | str | None = None,
    show: bool = False,
) -> None:
    """
    Generate a plot from artifact files on disk.

    Args:
        artifact_dir: Path to the artifact directory containing JSON files.
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
        metrics_data = json.load(f)

    timeseries_path = artifact_dir / "timeseries.json"
    if not timeseries_path.exists():
        raise FileNotFoundError(f"timeseries.json not found in {artifact_dir}")
    with timeseries_path.open() as f:
        timeseries_data = json.load(f)

    samples = timeseries_data.get("samples", [])
    if not samples:
        raise ValueError("No samples in timeseries.json")

    run_info = metrics_data.get("run", {})
    scenario = run_info.get("scenario_name", "unknown")
    total_ticks = run_info.get("total_ticks", len(samples))

    output_path = artifact_dir / "plot.png" if output_path is None else Path(output_path)
    _draw(samples, f"TempCon Simulation: {scenario} ({total_ticks} ticks)", output_path, show)
