from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WiringError(ValueError):
    """Raised for malformed terminal ids or connections that mix media."""


class Medium(str, Enum):
    """Connection medium. Wires and pipes are never joined to each other."""
    ELECTRICAL = "electrical"
    MECHANICAL = "mechanical"


class Polarity(str, Enum):
    POSITIVE = "+"
    NEGATIVE = "-"


def terminal_id(device_id: str, port: str, medium: Medium = Medium.ELECTRICAL) -> str:
    """
    Build a terminal identifier: ``<deviceId>.<medium>.<portName>``.

    Raises:
        WiringError: If the device id or port is empty or contains a dot.
    """
    for part in (device_id, port):
        if not part or "." in part:
            raise WiringError(f"invalid terminal component: {part!r}")
    return f"{device_id}.{Medium(medium).value}.{port}"


def parse_terminal_id(tid: str) -> tuple[str, Medium, str]:
    """
    Split a terminal identifier into (device_id, medium, port).

    Raises:
        WiringError: If the identifier does not have three non-empty parts
                     or names an unknown medium.
    """
    parts = tid.split(".")
    if len(parts) != 3 or not all(parts):
        raise WiringError(f"malformed terminal id: {tid!r}")
    device_id, medium, port = parts
    try:
        return device_id, Medium(medium), port
    except ValueError:
        raise WiringError(f"unknown medium in terminal id: {tid!r}") from None


@dataclass(frozen=True, slots=True)
class Terminal:
    """A named connection point on a device."""
    id: str                             # <deviceId>.<medium>.<portName>
    polarity: Polarity | None = None    # Optional polarity tag


@dataclass(frozen=True, slots=True, eq=False)
class Connection:
    """
    An unordered wire (or pipe) between two terminals.

    Connections are value objects: ``Connection(a, b) == Connection(b, a)``
    and both hash the same, so a connection set deduplicates reversed
    duplicates. They are never mutated in place; topology edits add or
    remove whole connections.
    """
    endpoint_a: str
    endpoint_b: str
    medium: Medium = Medium.ELECTRICAL

    def __post_init__(self) -> None:
        for tid in (self.endpoint_a, self.endpoint_b):
            _, medium, _ = parse_terminal_id(tid)
            if medium != self.medium:
                raise WiringError(
                    f"{tid} is {medium.value}, connection is {Medium(self.medium).value}"
                )

    def key(self) -> tuple[str, str, str]:
        """Canonical key: medium plus the endpoints in sorted order."""
        a, b = sorted((self.endpoint_a, self.endpoint_b))
        return (Medium(self.medium).value, a, b)

    def touches(self, tid: str) -> bool:
        return tid in (self.endpoint_a, self.endpoint_b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Connection):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())


def wire(a: str, b: str) -> Connection:
    """Shorthand for an electrical connection."""
    return Connection(a, b, Medium.ELECTRICAL)
