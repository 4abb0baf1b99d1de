"""
Device model for the training rig.

Every device is one variant of a closed family of slotted dataclasses. Each
variant carries only the fields that matter for its kind and declares its
ports once in ``PORTS``. Engine code dispatches on the variant with ``match``
rather than on string type tags.

Devices are mutable: fault injection, the context mutation surface and a
device's own behaviour (relay pickup, actuator power lag) change their
fields between or at the end of ticks. Clustering, reduction and
interrogation only read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, Iterator, TypeVar

from tempcon.circuit.terminals import Polarity, Terminal, WiringError, terminal_id

# Resistance reported by a PT100 element with an open lead (ohm)
OPEN_SENSOR_OHMS = 1e9

_P = Polarity.POSITIVE


class UnknownDeviceError(KeyError):
    """Raised when a device id is not in the registry (or has the wrong kind)."""


class DuplicateDeviceError(ValueError):
    """Raised when a device id is registered twice."""


class ActuatorKind(str, Enum):
    HEATER = "heater"
    COOLER = "cooler"


class MeterMode(str, Enum):
    OFF = "OFF"
    DCV = "DCV"
    ACV = "ACV"
    RES = "RES"
    MA = "MA"
    CAP = "C"


@dataclass(slots=True)
class Device:
    """Base of the device family. Not registered on its own."""
    device_id: str

    PORTS: ClassVar[tuple[tuple[str, Polarity | None], ...]] = ()

    def terminal(self, port: str) -> str:
        """
        Terminal id of one of this device's electrical ports.

        Raises:
            WiringError: If the device has no such port.
        """
        if port not in self.port_names():
            raise WiringError(f"{type(self).__name__} {self.device_id!r} has no port {port!r}")
        return terminal_id(self.device_id, port)

    @classmethod
    def port_names(cls) -> tuple[str, ...]:
        return tuple(name for name, _ in cls.PORTS)

    def terminals(self) -> tuple[Terminal, ...]:
        return tuple(
            Terminal(terminal_id(self.device_id, name), polarity)
            for name, polarity in self.PORTS
        )


@dataclass(slots=True)
class Resistor(Device):
    """Fixed or adjustable resistor."""
    resistance: float = 100.0       # Ohm

    PORTS = (("l", None), ("r", None))


@dataclass(slots=True)
class Sensor(Device):
    """
    PT100 resistance thermometer.

    R = r0 + alpha * T, replaced by OPEN_SENSOR_OHMS when a lead is open and
    by 0 when the element is shorted (short wins).
    """
    temp_c: float = 20.0            # Temperature the element sits at (°C)
    r0_ohm: float = 100.0           # Resistance at 0 °C
    alpha_ohm_per_c: float = 0.3851
    is_open: bool = False
    is_short: bool = False

    PORTS = (("l", None), ("r", None))

    @property
    def resistance(self) -> float:
        if self.is_short:
            return 0.0
        if self.is_open:
            return OPEN_SENSOR_OHMS
        return max(0.0, self.r0_ohm + self.alpha_ohm_per_c * self.temp_c)


@dataclass(slots=True)
class Switch(Device):
    is_open: bool = True

    PORTS = (("l", None), ("r", None))


@dataclass(slots=True)
class Relay(Device):
    """
    Electromechanical relay: a resistive coil (l-r) and a changeover contact.

    COM is bonded to NO while energized and to NC otherwise. Pickup and
    release thresholds give the coil hysteresis.
    """
    coil_resistance: float = 120.0      # Ohm
    pickup_current_a: float = 0.18
    release_current_a: float = 0.05
    is_energized: bool = False
    coil_current_a: float = 0.0

    PORTS = (("l", None), ("r", None), ("COM", None), ("NO", None), ("NC", None))

    def sense_coil(self, coil_voltage: float) -> bool:
        """
        Update the coil current from the voltage across l-r.

        A coil of zero (or negative) resistance is shorted: no current flows
        through the winding and the contact drops out.

        Returns:
            True if the contact changed over.
        """
        if self.coil_resistance <= 0.0:
            self.coil_current_a = 0.0
        else:
            self.coil_current_a = abs(coil_voltage) / self.coil_resistance
        if not self.is_energized and self.coil_current_a >= self.pickup_current_a:
            self.is_energized = True
            return True
        if self.is_energized and self.coil_current_a <= self.release_current_a:
            self.is_energized = False
            return True
        return False


@dataclass(slots=True)
class Source(Device):
    """Bench DC supply."""
    voltage: float = 24.0           # Output voltage (V)
    max_voltage: float = 24.0
    is_on: bool = False

    PORTS = (("p", _P), ("n", Polarity.NEGATIVE))


@dataclass(slots=True)
class Transmitter(Device):
    """
    Two-wire 3-wire-RTD temperature transmitter.

    l/m/r take the RTD (m and r are bonded by the compensation lead), p/n sit
    in the controller's 4-20 mA feed loop. ``is_open`` models an internal
    break: the loop carries no current.
    """
    zero_adj: float = 0.0           # mA added before span
    span_adj: float = 1.0           # Span multiplier
    is_open: bool = False

    PORTS = (("l", None), ("m", None), ("r", None), ("p", _P), ("n", Polarity.NEGATIVE))


@dataclass(slots=True)
class Controller(Device):
    """Panel PID controller terminals: supply, 4-20 mA input, two outputs, RS-485."""
    faulted_outputs: set[int] = field(default_factory=set)

    OUTPUT_CHANNELS: ClassVar[tuple[int, ...]] = (1, 2)
    PORTS = (
        ("vcc", _P), ("gnd", None),
        ("pi1", _P), ("ni1", None),
        ("po1", _P), ("no1", None),
        ("po2", _P), ("no2", None),
        ("a1", _P), ("b1", None),
    )


@dataclass(slots=True)
class Actuator(Device):
    """Heater or cooling fan. ``power`` is the delivered fraction [0, 1]."""
    kind: ActuatorKind = ActuatorKind.HEATER
    power: float = 0.0
    is_stuck: bool = False

    PORTS = (("l", None), ("r", None))


@dataclass(slots=True)
class Monitor(Device):
    """Remote monitoring station on the RS-485 bus."""

    PORTS = (("a1", _P), ("b1", None))


@dataclass(slots=True)
class Ammeter(Device):
    """Ideal panel ammeter; p and n are always bonded."""

    PORTS = (("p", _P), ("n", None))


@dataclass(slots=True)
class Multimeter(Device):
    """Handheld multimeter; the mA jack is bonded to COM in current mode."""
    mode: MeterMode = MeterMode.OFF

    PORTS = (("v", _P), ("com", None), ("ma", None))


D = TypeVar("D", bound=Device)


class DeviceRegistry:
    """
    Owns the devices of one simulation, keyed by device id.

    Iteration order is registration order.
    """

    def __init__(self, devices: Iterable[Device] = ()) -> None:
        self._devices: dict[str, Device] = {}
        for device in devices:
            self.add(device)

    def add(self, device: D) -> D:
        if device.device_id in self._devices:
            raise DuplicateDeviceError(f"device {device.device_id!r} already registered")
        self._devices[device.device_id] = device
        return device

    def get(self, device_id: str) -> Device:
        try:
            return self._devices[device_id]
        except KeyError:
            raise UnknownDeviceError(device_id) from None

    def find(self, device_id: str) -> Device | None:
        return self._devices.get(device_id)

    def require(self, device_id: str, kind: type[D]) -> D:
        """Look up a device and check its variant."""
        device = self.get(device_id)
        if not isinstance(device, kind):
            raise UnknownDeviceError(
                f"{device_id!r} is a {type(device).__name__}, not a {kind.__name__}"
            )
        return device

    def of_type(self, kind: type[D]) -> list[D]:
        return [d for d in self._devices.values() if isinstance(d, kind)]

    def all_terminals(self) -> list[str]:
        return [t.id for device in self._devices.values() for t in device.terminals()]

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices.values())

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices
