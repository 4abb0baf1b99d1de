from __future__ import annotations

from tempcon.circuit.clustering import ClusterMap, UnionFind, resolve_clusters
from tempcon.circuit.devices import (
    Actuator,
    ActuatorKind,
    Ammeter,
    Controller,
    Device,
    DeviceRegistry,
    DuplicateDeviceError,
    MeterMode,
    Monitor,
    Multimeter,
    Relay,
    Resistor,
    Sensor,
    Source,
    Switch,
    Transmitter,
    UnknownDeviceError,
)
from tempcon.circuit.faults import FaultKind, clear_all_faults, clear_fault, inject_fault
from tempcon.circuit.reduction import OPEN_CIRCUIT, ResistanceNetwork, combine_parallel
from tempcon.circuit.terminals import Connection, Medium, Polarity, Terminal, WiringError, terminal_id

__all__ = [
    "Actuator",
    "ActuatorKind",
    "Ammeter",
    "ClusterMap",
    "Connection",
    "Controller",
    "Device",
    "DeviceRegistry",
    "DuplicateDeviceError",
    "FaultKind",
    "Medium",
    "MeterMode",
    "Monitor",
    "Multimeter",
    "OPEN_CIRCUIT",
    "Polarity",
    "Relay",
    "ResistanceNetwork",
    "Resistor",
    "Sensor",
    "Source",
    "Switch",
    "Terminal",
    "Transmitter",
    "UnionFind",
    "UnknownDeviceError",
    "WiringError",
    "clear_all_faults",
    "clear_fault",
    "combine_parallel",
    "inject_fault",
    "resolve_clusters",
    "terminal_id",
]
