from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ThermalParams:
    """
    Parameters for the oven heat-balance model.

    The plant is three stages in series: a lumped core temperature driven by
    heater and fan power, a pure transport delay, and a first-order sensor
    lag. Coefficients are per tick, not per second.
    """
    ambient_c: float = 20.0         # Ambient temperature (°C)
    heat_gain: float = 7.0          # Heat input at full heater power
    exchange: float = 0.14          # Fan heat exchange per °C above ambient
    loss: float = 0.0006            # Passive loss per °C above ambient
    inertia: float = 0.05           # Fraction of the heat balance applied per tick
    delay_ticks: int = 20           # Transport delay length (ticks)
    sensor_lag: float = 0.08        # Sensor first-order lag fraction per tick
    min_c: float = 20.0             # Lower clamp for every stage (°C)
    max_c: float = 100.0            # Upper clamp for every stage (°C)

    def __post_init__(self) -> None:
        if self.delay_ticks < 1:
            raise ValueError("delay_ticks must be >= 1")
        if self.min_c > self.max_c:
            raise ValueError("min_c must be <= max_c")
        if not 0.0 < self.sensor_lag <= 1.0:
            raise ValueError("sensor_lag must be in (0, 1]")


@dataclass(frozen=True, slots=True)
class ThermalState:
    """
    State of the oven.

    Immutable: every step returns a new state. ``delay_line`` holds the last
    ``delay_ticks`` core temperatures, oldest first.
    """
    core_c: float
    delay_line: tuple[float, ...]
    delayed_c: float
    sensed_c: float

    @classmethod
    def at_ambient(cls, p: ThermalParams) -> "ThermalState":
        t = max(p.min_c, min(p.max_c, p.ambient_c))
        return cls(
            core_c=t,
            delay_line=(t,) * p.delay_ticks,
            delayed_c=t,
            sensed_c=t,
        )


def _clamp(value: float, p: ThermalParams) -> float:
    return max(p.min_c, min(p.max_c, value))


def step_thermal(
    state: ThermalState,
    *,
    heater_power: float,
    fan_power: float,
    p: ThermalParams,
) -> ThermalState:
    """
    Step the oven forward by one tick.

    Physics:
    - Core: T += (heat_gain*heater - (T - T_amb)*fan*exchange
      - (T - T_amb)*loss) * inertia
    - Transport delay: T pushed into a FIFO, the value pushed
      delay_ticks ago comes out
    - Sensor lag: S += (T_delayed - S) * sensor_lag

    Every stage is clamped to [min_c, max_c].

    Args:
        state: Current thermal state
        heater_power: Heater power [0, 1]
        fan_power: Fan power [0, 1]
        p: Thermal parameters

    Returns:
        New thermal state (does not mutate input)
    """
    heater_power = max(0.0, min(1.0, heater_power))
    fan_power = max(0.0, min(1.0, fan_power))

    rise = state.core_c - p.ambient_c
    balance = p.heat_gain * heater_power - rise * fan_power * p.exchange - rise * p.loss
    core = _clamp(state.core_c + balance * p.inertia, p)

    line = state.delay_line
    if len(line) != p.delay_ticks:
        # Parameters changed under a live state: restart the line at the current core
        line = (state.core_c,) * p.delay_ticks
    delayed = _clamp(line[0], p)
    line = line[1:] + (core,)

    sensed = _clamp(state.sensed_c + (delayed - state.sensed_c) * p.sensor_lag, p)

    return ThermalState(core_c=core, delay_line=line, delayed_c=delayed, sensed_c=sensed)
