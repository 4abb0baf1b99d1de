"""
Fault injection surface.

Faults are flags on device fields, nothing more. The engine re-derives every
consequence (sensor reading, loop current, output classification, plant
response) from flags plus topology on the next tick.
"""

from __future__ import annotations

import logging
from enum import Enum

from tempcon.circuit.devices import (
    Actuator,
    Controller,
    Device,
    DeviceRegistry,
    Sensor,
    Transmitter,
)

logger = logging.getLogger(__name__)


class FaultKind(str, Enum):
    OPEN_SENSOR = "open-sensor"
    SHORT_SENSOR = "short-sensor"
    OPEN_TRANSMITTER = "open-transmitter"
    BREAK_OUTPUT_LOOP = "break-output-loop"
    STICK_ACTUATOR = "stick-actuator"


class FaultNotApplicableError(ValueError):
    """Raised when a fault targets a device of the wrong kind."""


def _set_flag(device: Device, kind: FaultKind, active: bool, channel: int | None) -> None:
    match kind, device:
        case FaultKind.OPEN_SENSOR, Sensor():
            device.is_open = active
        case FaultKind.SHORT_SENSOR, Sensor():
            device.is_short = active
        case FaultKind.OPEN_TRANSMITTER, Transmitter():
            device.is_open = active
        case FaultKind.BREAK_OUTPUT_LOOP, Controller():
            channels = Controller.OUTPUT_CHANNELS if channel is None else (channel,)
            for ch in channels:
                if ch not in Controller.OUTPUT_CHANNELS:
                    raise ValueError(f"controller has no output channel {ch}")
                if active:
                    device.faulted_outputs.add(ch)
                else:
                    device.faulted_outputs.discard(ch)
        case FaultKind.STICK_ACTUATOR, Actuator():
            device.is_stuck = active
        case _:
            raise FaultNotApplicableError(
                f"{kind.value} does not apply to {type(device).__name__} {device.device_id!r}"
            )


def inject_fault(
    registry: DeviceRegistry,
    kind: FaultKind | str,
    device_id: str,
    *,
    channel: int | None = None,
) -> None:
    """
    Set a fault flag on a device.

    Args:
        registry: Device registry holding the target
        kind: Fault to inject (enum or its string value)
        device_id: Target device
        channel: Output channel for BREAK_OUTPUT_LOOP (None = all channels)

    Raises:
        UnknownDeviceError: If the device does not exist
        FaultNotApplicableError: If the fault does not apply to that device
    """
    kind = FaultKind(kind)
    _set_flag(registry.get(device_id), kind, True, channel)
    logger.info("fault injected: %s on %s%s", kind.value, device_id,
                f" ch{channel}" if channel is not None else "")


def clear_fault(
    registry: DeviceRegistry,
    kind: FaultKind | str,
    device_id: str,
    *,
    channel: int | None = None,
) -> None:
    kind = FaultKind(kind)
    _set_flag(registry.get(device_id), kind, False, channel)
    logger.info("fault cleared: %s on %s", kind.value, device_id)


def clear_all_faults(registry: DeviceRegistry) -> None:
    """Reset every fault flag in the registry."""
    for device in registry:
        match device:
            case Sensor():
                device.is_open = False
                device.is_short = False
            case Transmitter():
                device.is_open = False
            case Controller():
                device.faulted_outputs.clear()
            case Actuator():
                device.is_stuck = False
    logger.info("all faults cleared")
