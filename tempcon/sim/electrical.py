"""
Electrical pass over the standard loop layout.

Runs, from scratch each tick:

    clustering -> zero-resistance bridging -> resistance reduction
    -> interrogation (power, sensor, transmitter loop, outputs, bus)
    -> voltage propagation -> loop currents -> meter readings

The pass is a pure function of the connections, device fields, the
controller's current duties and the PWM phase. Terminal ids are derived
from the layout's device ids, so a device missing from the registry simply
leaves its terminals unclustered.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from tempcon.circuit.clustering import ClusterMap, resolve_clusters
from tempcon.circuit.devices import (
    Ammeter,
    Controller,
    DeviceRegistry,
    Multimeter,
    Source,
    Transmitter,
)
from tempcon.circuit.interrogation import (
    BusStatus,
    LoopContinuity,
    OutputLoop,
    PowerStatus,
    SensorReading,
    check_bus,
    check_current_loop,
    check_output_loop,
    check_power,
    check_sensor,
)
from tempcon.circuit.meters import LoopCurrent, read_ammeter, read_multimeter
from tempcon.circuit.reduction import ResistanceNetwork
from tempcon.circuit.terminals import Connection, terminal_id
from tempcon.circuit.voltage import VoltageMap, propagate_voltages
from tempcon.config import LoopLayout
from tempcon.plant.sensor import shunt_voltage, transmitter_current_ma


class PwmTimer:
    """
    Shared time-proportioning timer for both controller outputs.

    A channel is high while ``phase < duty``, where ``phase`` is the
    fraction of the current period already elapsed.
    """

    def __init__(self, period_s: float = 5.0) -> None:
        if period_s <= 0:
            raise ValueError("period_s must be > 0")
        self.period_s = period_s
        self.elapsed_s = 0.0

    def reset(self) -> None:
        self.elapsed_s = 0.0

    def advance(self, dt_s: float) -> None:
        self.elapsed_s += dt_s
        if self.elapsed_s >= self.period_s:
            self.elapsed_s = 0.0

    @property
    def phase(self) -> float:
        return self.elapsed_s / self.period_s

    def is_high(self, duty: float) -> bool:
        return self.phase < duty


@dataclass(frozen=True, slots=True)
class ElectricalState:
    """Everything the electrical pass resolved for one tick."""
    clusters: ClusterMap
    network: ResistanceNetwork
    power: PowerStatus
    supply_on: bool
    controller_powered: bool
    sensor: SensorReading
    transmitter_loop: LoopContinuity
    transmitter_ma: float
    outputs: tuple[OutputLoop, OutputLoop]
    outputs_high: tuple[bool, bool]
    bus: BusStatus
    voltages: VoltageMap
    loop_currents: Mapping[str, float]
    ammeter_ma: float | None
    multimeter_value: float | None

    def output_active(self, channel: int) -> bool:
        """Output channel (1 or 2) can drive its actuator this tick."""
        return self.controller_powered and self.outputs[channel - 1].connected


def _t(device_id: str, port: str) -> str:
    return terminal_id(device_id, port)


def compute_electrical_state(
    connections: Iterable[Connection],
    registry: DeviceRegistry,
    layout: LoopLayout,
    *,
    heat_duty: float = 0.0,
    cool_duty: float = 0.0,
    pwm: PwmTimer | None = None,
) -> ElectricalState:
    """
    Resolve the rig's electrical state for one tick.

    Args:
        connections: Current wiring
        registry: Devices (read only, nothing is mutated here)
        layout: Device ids of the standard loops
        heat_duty: Controller channel 1 duty [0, 1]
        cool_duty: Controller channel 2 duty [0, 1]
        pwm: PWM timer giving the phase for the output levels
             (None = both outputs low)

    Returns:
        ElectricalState for the tick
    """
    connections = list(connections)
    clusters = resolve_clusters(connections, registry)
    network = ResistanceNetwork(clusters, registry)

    sup, pid, trans = layout.supply, layout.controller, layout.transmitter

    # ─────────────────────────────────────────────────────────────────────
    # Power rail
    # ─────────────────────────────────────────────────────────────────────
    supply = registry.find(sup)
    supply_on = isinstance(supply, Source) and supply.is_on
    supply_v = supply.voltage if isinstance(supply, Source) else 0.0
    power = check_power(
        clusters,
        supply_pos=_t(sup, "p"),
        supply_neg=_t(sup, "n"),
        load_pos=_t(pid, "vcc"),
        load_neg=_t(pid, "gnd"),
    )
    controller = registry.find(pid)
    controller_powered = (
        supply_on and power is PowerStatus.POWER_ON and isinstance(controller, Controller)
    )

    # ─────────────────────────────────────────────────────────────────────
    # Sensor element and transmitter loop
    # ─────────────────────────────────────────────────────────────────────
    sensor = check_sensor(
        network,
        lead=_t(trans, "l"),
        common=_t(trans, "m"),
        compensation=_t(trans, "r"),
    )
    transmitter = registry.find(trans)
    is_transmitter = isinstance(transmitter, Transmitter)
    loop = check_current_loop(
        clusters,
        device_pos=_t(trans, "p"),
        device_neg=_t(trans, "n"),
        input_pos=_t(pid, "pi1"),
        input_neg=_t(pid, "ni1"),
        device_fault=is_transmitter and transmitter.is_open,
    )
    transmitter_ma = 0.0
    if controller_powered and is_transmitter:
        transmitter_ma = transmitter_current_ma(
            sensor,
            loop_active=loop.active,
            zero_adj=transmitter.zero_adj,
            span_adj=transmitter.span_adj,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Output loops
    # ─────────────────────────────────────────────────────────────────────
    faulted = controller.faulted_outputs if isinstance(controller, Controller) else set()
    outputs = tuple(
        check_output_loop(
            network,
            out_pos=_t(pid, f"po{ch}"),
            out_neg=_t(pid, f"no{ch}"),
            output_fault=ch in faulted,
        )
        for ch in Controller.OUTPUT_CHANNELS
    )
    duties = (heat_duty, cool_duty)
    outputs_high = tuple(
        controller_powered and pwm is not None and pwm.is_high(d) for d in duties
    )

    bus = check_bus(
        clusters,
        near_a=_t(pid, "a1"),
        near_b=_t(pid, "b1"),
        far_a=_t(layout.monitor, "a1"),
        far_b=_t(layout.monitor, "b1"),
    )

    # ─────────────────────────────────────────────────────────────────────
    # Voltages: supply rail, controller feed, input shunt, output levels
    # ─────────────────────────────────────────────────────────────────────
    seeds: list[tuple[str, float]] = []
    if supply_on:
        seeds.append((_t(sup, "p"), supply_v))
    if controller_powered:
        seeds.append((_t(pid, "pi1"), supply_v))
        seeds.append((_t(pid, "ni1"), shunt_voltage(transmitter_ma)))
        for ch, high in zip(Controller.OUTPUT_CHANNELS, outputs_high):
            seeds.append((_t(pid, f"po{ch}"), supply_v if high else 0.0))
    volts = propagate_voltages(clusters, registry.all_terminals(), seeds)

    # ─────────────────────────────────────────────────────────────────────
    # Loop currents (mA) and meters
    # ─────────────────────────────────────────────────────────────────────
    currents = {"transmitter": transmitter_ma}
    for ch, out, high in zip(Controller.OUTPUT_CHANNELS, outputs, outputs_high):
        ma = 0.0
        if high and out.connected and out.ohms > 0:
            ma = supply_v / out.ohms * 1000.0
        currents[f"output{ch}"] = ma

    loops = [
        LoopCurrent(
            "transmitter",
            transmitter_ma,
            sources=(_t(pid, "pi1"), _t(trans, "n")),
            sinks=(_t(trans, "p"), _t(pid, "ni1")),
        ),
    ] + [
        LoopCurrent(
            f"output{ch}",
            currents[f"output{ch}"],
            sources=(_t(pid, f"po{ch}"),),
            sinks=(_t(pid, f"no{ch}"),),
        )
        for ch in Controller.OUTPUT_CHANNELS
    ]

    ammeter = registry.find(layout.ammeter)
    ammeter_ma = (
        read_ammeter(ammeter, clusters, connections, loops)
        if isinstance(ammeter, Ammeter) else None
    )
    meter = registry.find(layout.multimeter)
    multimeter_value = (
        read_multimeter(meter, network, volts, connections, loops)
        if isinstance(meter, Multimeter) else None
    )

    return ElectricalState(
        clusters=clusters,
        network=network,
        power=power,
        supply_on=supply_on,
        controller_powered=controller_powered,
        sensor=sensor,
        transmitter_loop=loop,
        transmitter_ma=transmitter_ma,
        outputs=outputs,
        outputs_high=outputs_high,
        bus=bus,
        voltages=volts,
        loop_currents=MappingProxyType(currents),
        ammeter_ma=ammeter_ma,
        multimeter_value=multimeter_value,
    )
