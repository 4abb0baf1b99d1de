from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from tempcon.circuit.faults import FaultKind
from tempcon.circuit.terminals import Connection, terminal_id
from tempcon.control.interfaces import OperatorAction, OperatorKey

if TYPE_CHECKING:
    from tempcon.sim.kernel import SimulationKernel

# Type alias for scripted effects
Effect = Callable[["SimulationKernel"], None]


@dataclass(frozen=True, slots=True)
class ScriptedAction:
    """
    A mutation applied between ticks, just before tick ``at_tick``.
    """
    at_tick: int
    effect: Effect
    label: str = ""

    def __post_init__(self) -> None:
        if self.at_tick < 0:
            raise ValueError("at_tick must be >= 0")

    def apply(self, kernel: "SimulationKernel") -> None:
        self.effect(kernel)


def connect_at(tick: int, a: tuple[str, str], b: tuple[str, str]) -> ScriptedAction:
    """
    Wire two ports together at a tick.

    Args:
        tick: Tick index before which the wire is added
        a: (device_id, port)
        b: (device_id, port)
    """
    conn = Connection(terminal_id(*a), terminal_id(*b))

    def effect(kernel: "SimulationKernel") -> None:
        kernel.context.add_connection(conn)

    return ScriptedAction(tick, effect, f"connect {conn.endpoint_a} {conn.endpoint_b}")


def disconnect_at(tick: int, a: tuple[str, str], b: tuple[str, str]) -> ScriptedAction:
    conn = Connection(terminal_id(*a), terminal_id(*b))

    def effect(kernel: "SimulationKernel") -> None:
        kernel.context.remove_connection(conn)

    return ScriptedAction(tick, effect, f"disconnect {conn.endpoint_a} {conn.endpoint_b}")


def fault_at(
    tick: int,
    kind: FaultKind | str,
    device_id: str,
    *,
    channel: int | None = None,
    clear: bool = False,
) -> ScriptedAction:
    """Inject (or with ``clear=True`` clear) a fault at a tick."""
    kind = FaultKind(kind)

    def effect(kernel: "SimulationKernel") -> None:
        if clear:
            kernel.context.clear_fault(kind, device_id, channel=channel)
        else:
            kernel.context.inject_fault(kind, device_id, channel=channel)

    verb = "clear" if clear else "inject"
    return ScriptedAction(tick, effect, f"{verb} {kind.value} {device_id}")


def operator_at(tick: int, key: OperatorKey | str, value: float | None = None) -> ScriptedAction:
    """Press a front-panel key (or enter a manual output) at a tick."""
    action = OperatorAction(OperatorKey(key), value)

    def effect(kernel: "SimulationKernel") -> None:
        kernel.queue_operator_action(action)

    return ScriptedAction(tick, effect, f"press {action.key.value}")


def supply_at(tick: int, device_id: str, on: bool, voltage: float | None = None) -> ScriptedAction:
    def effect(kernel: "SimulationKernel") -> None:
        kernel.context.set_supply(device_id, on, voltage)

    return ScriptedAction(tick, effect, f"supply {device_id} {'on' if on else 'off'}")
