from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

from tempcon.circuit.interrogation import BusStatus
from tempcon.plant.sensor import OPEN_SENSOR_MA, SHORT_SENSOR_MA
from tempcon.sim.interfaces import DiagnosticEvent, FaultDiagnosis, TickSnapshot, TransmitterFault

logger = logging.getLogger(__name__)

# PV at or above this flags an over-temperature fault (°C)
OVER_TEMP_C = 95.0


def diagnose(
    *,
    controller_powered: bool,
    transmitter_ma: float,
    pv: float,
    output_active: tuple[bool, bool],
    bus: BusStatus,
) -> FaultDiagnosis:
    """
    Fault diagnosis the controller derives from its own inputs.

    The transmitter signals a fault with fixed loop currents (21.6 mA open
    element, 3.6 mA shorted element); no current at all means the loop is
    broken. Output faults are flagged for every channel that is not
    connected while the controller is powered.

    Args:
        controller_powered: Controller supply status is POWER_ON
        transmitter_ma: Measured input loop current (mA)
        pv: Controller process value
        output_active: Per channel, output loop connected
        bus: Bus status to the monitor station

    Returns:
        FaultDiagnosis for the tick
    """
    communication = bus is not BusStatus.CONNECTED
    if not controller_powered:
        return FaultDiagnosis(communication=communication)

    if transmitter_ma == OPEN_SENSOR_MA:
        transmitter = TransmitterFault.OPEN
    elif transmitter_ma == SHORT_SENSOR_MA:
        transmitter = TransmitterFault.SHORT
    elif transmitter_ma == 0.0:
        transmitter = TransmitterFault.LOOP_BREAK
    else:
        transmitter = TransmitterFault.NONE

    return FaultDiagnosis(
        transmitter=transmitter,
        over_temp=pv >= OVER_TEMP_C,
        output1=not output_active[0],
        output2=not output_active[1],
        communication=communication,
    )


def _watched(snapshot: TickSnapshot) -> dict[str, str]:
    """Status values whose changes are worth recording."""
    out1, out2 = snapshot.output_loops
    return {
        "power": snapshot.power_status.value,
        "sensor": snapshot.sensor.status.value,
        "transmitter_loop": snapshot.transmitter_loop.reason.value,
        "output1": f"{out1.status.value}/{out1.reason.value}",
        "output2": f"{out2.status.value}/{out2.reason.value}",
        "bus": snapshot.bus_status.value,
        "mode": snapshot.controller.mode.value,
        "alarm": snapshot.controller.alarm.value,
        "transmitter_fault": snapshot.diagnosis.transmitter.value,
    }


class DiagnosticTracker:
    """
    Turns a stream of snapshots into change events.

    The first snapshot establishes the baseline and produces no events.
    """

    def __init__(self) -> None:
        self._last: dict[str, str] | None = None

    def reset(self) -> None:
        self._last = None

    def observe(self, snapshot: TickSnapshot) -> list[DiagnosticEvent]:
        current = _watched(snapshot)
        previous, self._last = self._last, current
        if previous is None:
            return []
        events = []
        for kind, after in current.items():
            before = previous[kind]
            if before != after:
                logger.debug("tick %d: %s %s -> %s", snapshot.tick, kind, before, after)
                events.append(
                    DiagnosticEvent(
                        tick=snapshot.tick,
                        time_s=snapshot.time_s,
                        kind=kind,
                        before=before,
                        after=after,
                    )
                )
        return events


def write_events_jsonl(out_path: Path, events: list[DiagnosticEvent]) -> None:
    """
    Write events to JSONL format (one JSON object per line).

    Args:
        out_path: Output directory
        events: Events to write; nothing is written for an empty list
    """
    if len(events) == 0:
        return

    out_path = Path(out_path)
    out_path.mkdir(parents=True, exist_ok=True)

    events_file = out_path.joinpath("events.jsonl")
    with events_file.open("w", encoding="utf-8") as f:
        for event in events:
            json.dump(asdict(event), f, sort_keys=True)
            f.write("\n")
