from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

def _clean_path_name(path_name: str) -> str:
    # Remove unsafe characters from directory name
    cleaned = [c if (c.isalnum() or c in ("-", "_")) else "_" for c in path_name]
    return "".join(cleaned).strip("_")

# slots are used to enforce good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class SimConfig:
    """
    SimConfig

    Definitions and configuration for a simulation run

    Params:
    - name (str) : simulation name
    - ticks (int) : total number of ticks to run the simulation for
    - sample_every (int) : ticks between recorded time-series samples
    - dt_s (float) : simulated seconds per tick
    - out_dir (str|None) : output directory for simulation artifacts
                           default: artifacts/runs/<timestamp>_<name>
    """
    name: str
    ticks: int
    sample_every: int
    dt_s: float
    out_dir: Path

    @staticmethod
    def from_args(
        *,
        name: str,
        ticks: int,
        sample_every: int = 1,
        dt_s: float = 0.1,
        out_dir: str | None = None,
    ) -> "SimConfig":
        if not isinstance(name, str) or not name:
            raise ValueError("name must be a non-empty string")
        if ticks < 0:
            raise ValueError("ticks must be >= 0")
        if sample_every <= 0:
            raise ValueError("sample_every must be > 0")
        if dt_s <= 0:
            raise ValueError("dt_s must be > 0")

        if out_dir is not None:
            out_dir = Path(out_dir)
        else:
            """
            Default output location:
            artifacts/runs/<timestamp>_<scenario>
            Timestamp is UTC in YYYYmmdd_HHMMSS format.
            """
            ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            clean_name = _clean_path_name(name)

            # Check if name is empty after cleaning
            if not clean_name:
                clean_name = "scenario"
            out_dir = Path("artifacts").joinpath(f"runs/{ts}_{clean_name}")

        return SimConfig(
            name=name,
            ticks=int(ticks),
            sample_every=int(sample_every),
            dt_s=float(dt_s),
            out_dir=out_dir,
        )


@dataclass(frozen=True, slots=True)
class PlantConfig:
    """
    Defaults for the training oven and its actuators.
    """
    # Heat balance
    ambient_c: float = 20.0             # Ambient temperature (°C)
    heat_gain: float = 7.0              # Heat input at full heater power
    exchange: float = 0.14              # Fan exchange coefficient
    loss: float = 0.0006                # Passive loss coefficient
    inertia: float = 0.05               # Heat balance fraction applied per tick

    # Transport delay and sensor
    delay_ticks: int = 20               # Transport delay (ticks)
    sensor_lag: float = 0.08            # Sensor lag fraction per tick
    min_c: float = 20.0                 # Temperature clamp (°C)
    max_c: float = 100.0

    # Actuator lag (1/s)
    heater_rise_per_s: float = 5.0
    heater_fall_per_s: float = 2.0
    fan_rise_per_s: float = 3.0
    fan_fall_per_s: float = 1.0

    # Electrical
    pwm_period_s: float = 5.0           # Time-proportioning output period (s)


@dataclass(frozen=True, slots=True)
class LoopLayout:
    """
    Device ids of the standard training rig.

    The electrical pass looks devices up by these ids; any that are absent
    from the registry are treated as not installed.
    """
    supply: str = "dcpower"
    controller: str = "pid"
    transmitter: str = "trans"
    sensor: str = "pt"
    monitor: str = "monitor"
    heater: str = "heater"
    fan: str = "fan"
    heat_relay: str = "plusrelay"
    cool_relay: str = "minusrelay"
    ammeter: str = "ampmeter"
    multimeter: str = "multimeter"
