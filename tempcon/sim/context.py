"""
Simulation context: the rig's mutable topology and device set.

Everything that changes between ticks goes through here (wiring edits,
supply switching, meter ranges, fault flags). The kernel reads the context
once per tick and never mutates it except for device behaviour (relay
energization, actuator power, sensor temperature).
"""

from __future__ import annotations

import logging
from typing import Iterable

from tempcon.circuit.devices import (
    DeviceRegistry,
    MeterMode,
    Multimeter,
    Source,
    Switch,
    Transmitter,
)
from tempcon.circuit.faults import FaultKind, clear_all_faults, clear_fault, inject_fault
from tempcon.circuit.terminals import Connection, Medium, WiringError, parse_terminal_id, terminal_id

logger = logging.getLogger(__name__)


class SimulationContext:
    """
    Connections plus device registry.

    Connections are kept in insertion order and deduplicated by their
    canonical key, so adding A-B after B-A is a no-op.
    """

    def __init__(
        self,
        registry: DeviceRegistry | None = None,
        connections: Iterable[Connection] = (),
    ) -> None:
        self.registry = registry if registry is not None else DeviceRegistry()
        self._connections: dict[tuple[str, str, str], Connection] = {}
        for conn in connections:
            self.add_connection(conn)

    @property
    def connections(self) -> tuple[Connection, ...]:
        return tuple(self._connections.values())

    def _check_endpoint(self, tid: str) -> None:
        device_id, medium, port = parse_terminal_id(tid)
        device = self.registry.get(device_id)
        if medium is Medium.ELECTRICAL and port not in device.port_names():
            raise WiringError(f"{type(device).__name__} {device_id!r} has no port {port!r}")

    # ──────────────────────────────────────────────────────────────────────
    # Wiring
    # ──────────────────────────────────────────────────────────────────────

    def add_connection(self, conn: Connection) -> bool:
        """
        Add a connection.

        Returns:
            False if an equal connection already exists.

        Raises:
            UnknownDeviceError: If an endpoint names a device not in the registry
            WiringError: If an endpoint names a port the device does not have
        """
        self._check_endpoint(conn.endpoint_a)
        self._check_endpoint(conn.endpoint_b)
        key = conn.key()
        if key in self._connections:
            return False
        self._connections[key] = conn
        logger.debug("connect %s <-> %s", conn.endpoint_a, conn.endpoint_b)
        return True

    def connect(self, device_a: str, port_a: str, device_b: str, port_b: str) -> bool:
        """Wire two electrical ports together."""
        return self.add_connection(
            Connection(terminal_id(device_a, port_a), terminal_id(device_b, port_b))
        )

    def remove_connection(self, conn: Connection) -> bool:
        """Remove a connection; returns False if it was not present."""
        removed = self._connections.pop(conn.key(), None)
        if removed is not None:
            logger.debug("disconnect %s <-> %s", conn.endpoint_a, conn.endpoint_b)
        return removed is not None

    def disconnect(self, device_a: str, port_a: str, device_b: str, port_b: str) -> bool:
        return self.remove_connection(
            Connection(terminal_id(device_a, port_a), terminal_id(device_b, port_b))
        )

    def disconnect_terminal(self, tid: str) -> int:
        """Remove every connection touching a terminal; returns how many."""
        doomed = [key for key, conn in self._connections.items() if conn.touches(tid)]
        for key in doomed:
            del self._connections[key]
        if doomed:
            logger.debug("disconnect %d wire(s) from %s", len(doomed), tid)
        return len(doomed)

    def clear_connections(self) -> None:
        self._connections.clear()
        logger.debug("all connections removed")

    # ──────────────────────────────────────────────────────────────────────
    # Device controls
    # ──────────────────────────────────────────────────────────────────────

    def set_supply(self, device_id: str, on: bool, voltage: float | None = None) -> None:
        """Switch a DC supply and optionally set its voltage (clamped to its maximum)."""
        supply = self.registry.require(device_id, Source)
        supply.is_on = bool(on)
        if voltage is not None:
            supply.voltage = max(0.0, min(supply.max_voltage, float(voltage)))
        logger.debug("supply %s %s at %.1f V", device_id, "on" if on else "off", supply.voltage)

    def set_switch(self, device_id: str, closed: bool) -> None:
        switch = self.registry.require(device_id, Switch)
        switch.is_open = not closed
        logger.debug("switch %s %s", device_id, "closed" if closed else "open")

    def set_meter_mode(self, device_id: str, mode: MeterMode | str) -> None:
        meter = self.registry.require(device_id, Multimeter)
        meter.mode = MeterMode(mode)
        logger.debug("meter %s mode %s", device_id, meter.mode.value)

    def set_transmitter_trim(
        self,
        device_id: str,
        *,
        zero_adj: float | None = None,
        span_adj: float | None = None,
    ) -> None:
        trans = self.registry.require(device_id, Transmitter)
        if zero_adj is not None:
            trans.zero_adj = float(zero_adj)
        if span_adj is not None:
            if span_adj <= 0:
                raise ValueError("span_adj must be > 0")
            trans.span_adj = float(span_adj)
        logger.debug("transmitter %s trim zero=%g span=%g", device_id, trans.zero_adj, trans.span_adj)

    # ──────────────────────────────────────────────────────────────────────
    # Faults
    # ──────────────────────────────────────────────────────────────────────

    def inject_fault(self, kind: FaultKind | str, device_id: str, *, channel: int | None = None) -> None:
        inject_fault(self.registry, kind, device_id, channel=channel)

    def clear_fault(self, kind: FaultKind | str, device_id: str, *, channel: int | None = None) -> None:
        clear_fault(self.registry, kind, device_id, channel=channel)

    def clear_all_faults(self) -> None:
        clear_all_faults(self.registry)
