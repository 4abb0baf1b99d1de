from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from tempcon.circuit.interrogation import (
    BusStatus,
    LoopContinuity,
    OutputLoop,
    PowerStatus,
    SensorReading,
)
from tempcon.control.interfaces import ControlOutputs


class TransmitterFault(str, Enum):
    NONE = "NONE"
    OPEN = "OPEN"               # Element open, transmitter drives 21.6 mA
    SHORT = "SHORT"             # Element shorted, transmitter drives 3.6 mA
    LOOP_BREAK = "LOOP_BREAK"   # No loop current reaches the controller


# slots are used to enforce good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class FaultDiagnosis:
    """
    What the controller can infer about the rig this tick.

    Only meaningful while the controller is powered; an unpowered
    controller diagnoses nothing except the bus.
    """
    transmitter: TransmitterFault = TransmitterFault.NONE
    over_temp: bool = False         # PV at or above the over-temperature limit
    output1: bool = False           # Powered but output loop 1 not connected
    output2: bool = False           # Powered but output loop 2 not connected
    communication: bool = False     # Bus to the monitor station not connected

    @property
    def any(self) -> bool:
        return (
            self.transmitter is not TransmitterFault.NONE
            or self.over_temp
            or self.output1
            or self.output2
            or self.communication
        )


@dataclass(frozen=True, slots=True)
class MonitorFrame:
    """Data the monitor station receives over the bus."""
    pv: float
    sv: float
    out1_pct: float             # Heating channel duty (%)
    out2_pct: float             # Cooling channel duty (%)
    diagnosis: FaultDiagnosis


@dataclass(frozen=True, slots=True)
class PlantView:
    core_c: float               # Oven core temperature (°C)
    delayed_c: float            # Temperature at the sensor pocket (°C)
    sensed_c: float             # Temperature the sensor element reports (°C)


@dataclass(frozen=True, slots=True)
class TickSnapshot:
    """
    Immutable view of the rig after one tick.

    This is the only thing presentation layers read. Nothing in it aliases
    live engine state: clusters are tuples, voltages and currents are
    read-only mappings.
    """
    tick: int
    time_s: float
    power_status: PowerStatus
    controller_powered: bool
    sensor: SensorReading
    transmitter_loop: LoopContinuity
    output_loops: tuple[OutputLoop, OutputLoop]
    bus_status: BusStatus
    sensed_loop_currents: Mapping[str, float]   # mA: transmitter, output1, output2
    terminal_voltages: Mapping[str, float]      # V relative to supply negative
    clusters: tuple[tuple[str, ...], ...]
    controller: ControlOutputs
    plant: PlantView
    heater_power: float
    fan_power: float
    relays_energized: Mapping[str, bool]
    ammeter_ma: float | None                    # None when no ammeter is installed
    multimeter_value: float | None              # None when no multimeter is installed
    diagnosis: FaultDiagnosis
    monitor: MonitorFrame | None = None         # Only while the bus is connected

    @property
    def bus_connected(self) -> bool:
        return self.bus_status is BusStatus.CONNECTED


# Time-series recording

@dataclass(frozen=True, slots=True)
class TimeSeriesSample:
    """
    A single time-series sample recording plant, controller and loop state.

    These samples are recorded every ``sample_every`` ticks and written to
    timeseries.json for offline analysis and regression testing.
    """
    tick: int                   # Tick number
    time_s: float               # Simulated time (s)
    core_c: float               # Oven core temperature (°C)
    delayed_c: float            # Delayed temperature (°C)
    sensed_c: float             # Sensed temperature (°C)
    pv: float                   # Controller process value
    sv: float                   # Controller setpoint
    out_pct: float              # Controller output (%)
    heat_duty: float            # Heating channel duty [0, 1]
    cool_duty: float            # Cooling channel duty [0, 1]
    heater_power: float         # Heater power [0, 1]
    fan_power: float            # Fan power [0, 1]
    transmitter_ma: float       # Loop current (mA)
    power_status: str
    mode: str


# Event recording

@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """
    A change in a classified status between two ticks.

    ``kind`` names what changed (``power``, ``sensor``, ``output1``, ...),
    ``before`` and ``after`` are the status values.
    """
    tick: int
    time_s: float
    kind: str
    before: str
    after: str


# Run results

@dataclass(frozen=True, slots=True)
class RunMetrics:
    total_ticks: int
    dt_s: float
    sim_time_s: float
    start_time: str
    finish_time: str
    scenario_name: str
    final_sensed_c: float
    max_sensed_c: float
    event_count: int


@dataclass(frozen=True, slots=True)
class RunResult:
    """
    Complete results from a simulation run.

    Attributes:
        metrics: Run-level metadata (timing, scenario name, counts).
        timeseries: Sampled plant and controller state.
        events: Status changes observed during the run.
        final: Snapshot of the last tick, None for a zero-tick run.
    """
    metrics: RunMetrics
    timeseries: list[TimeSeriesSample]
    events: list[DiagnosticEvent]
    final: TickSnapshot | None = None
