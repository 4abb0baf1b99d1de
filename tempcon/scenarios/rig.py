from __future__ import annotations

from enum import Enum

from tempcon.circuit.devices import (
    Actuator,
    ActuatorKind,
    Ammeter,
    Controller,
    DeviceRegistry,
    Monitor,
    Multimeter,
    Relay,
    Sensor,
    Source,
    Transmitter,
)
from tempcon.circuit.terminals import Connection, terminal_id
from tempcon.config import LoopLayout
from tempcon.sim.context import SimulationContext


class Stage(str, Enum):
    """Wiring stages of the standard rig, in the order a student builds them."""
    POWER = "power"
    SENSOR_LOOP = "sensor"
    OUTPUT1 = "output1"
    OUTPUT2 = "output2"
    BUS = "bus"


def build_oven_rig(layout: LoopLayout | None = None) -> DeviceRegistry:
    """
    Device set of the oven training rig.

    Args:
        layout: Device ids to use (defaults to the standard ids)

    Returns:
        Registry with supply, controller, transmitter, PT100, monitor,
        heater, fan, both relays, panel ammeter and handheld multimeter.
        The supply starts switched off.
    """
    ids = layout or LoopLayout()
    return DeviceRegistry(
        [
            Source(ids.supply),
            Controller(ids.controller),
            Transmitter(ids.transmitter),
            Sensor(ids.sensor),
            Monitor(ids.monitor),
            Actuator(ids.heater, kind=ActuatorKind.HEATER),
            Actuator(ids.fan, kind=ActuatorKind.COOLER),
            Relay(ids.heat_relay),
            Relay(ids.cool_relay),
            Ammeter(ids.ammeter),
            Multimeter(ids.multimeter),
        ]
    )


def _wires(*pairs: tuple[str, str, str, str]) -> list[Connection]:
    return [Connection(terminal_id(a, pa), terminal_id(b, pb)) for a, pa, b, pb in pairs]


def standard_wiring(layout: LoopLayout | None = None) -> dict[Stage, list[Connection]]:
    """
    Correct wiring of the rig, grouped by stage.

    The sensor loop wires the PT100 three-wire (its ``r`` lead to both
    ``m`` and ``r`` on the transmitter) and splices the panel ammeter into
    the transmitter loop between the controller feed and the transmitter.
    """
    ids = layout or LoopLayout()
    sup, pid, tr, pt = ids.supply, ids.controller, ids.transmitter, ids.sensor
    hr, cr = ids.heat_relay, ids.cool_relay
    return {
        Stage.POWER: _wires(
            (pid, "vcc", sup, "p"),
            (pid, "gnd", sup, "n"),
        ),
        Stage.SENSOR_LOOP: _wires(
            (pt, "l", tr, "l"),
            (pt, "r", tr, "m"),
            (pt, "r", tr, "r"),
            (pid, "pi1", ids.ammeter, "p"),
            (ids.ammeter, "n", tr, "p"),
            (tr, "n", pid, "ni1"),
        ),
        Stage.OUTPUT1: _wires(
            (pid, "no1", hr, "r"),
            (pid, "po1", hr, "l"),
            (hr, "COM", ids.heater, "l"),
            (hr, "NO", ids.heater, "r"),
        ),
        Stage.OUTPUT2: _wires(
            (pid, "no2", cr, "r"),
            (pid, "po2", cr, "l"),
            (cr, "COM", ids.fan, "l"),
            (cr, "NO", ids.fan, "r"),
        ),
        Stage.BUS: _wires(
            (pid, "b1", ids.monitor, "b1"),
            (pid, "a1", ids.monitor, "a1"),
        ),
    }


def wire_stages(
    context: SimulationContext,
    *stages: Stage | str,
    layout: LoopLayout | None = None,
) -> int:
    """
    Add the standard wiring of the given stages to a context.

    Returns:
        Number of connections actually added (duplicates are skipped).
    """
    wiring = standard_wiring(layout)
    added = 0
    for stage in stages:
        for conn in wiring[Stage(stage)]:
            added += context.add_connection(conn)
    return added
