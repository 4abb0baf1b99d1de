from __future__ import annotations

from tempcon.scenarios.rig import Stage, build_oven_rig, standard_wiring, wire_stages
from tempcon.scenarios.scripts import (
    ScriptedAction,
    connect_at,
    disconnect_at,
    fault_at,
    operator_at,
    supply_at,
)

__all__ = [
    "Stage",
    "build_oven_rig",
    "standard_wiring",
    "wire_stages",
    "ScriptedAction",
    "connect_at",
    "disconnect_at",
    "fault_at",
    "operator_at",
    "supply_at",
]
