from __future__ import annotations

from tempcon.control.interfaces import (
    AlarmStatus,
    ControlInputs,
    ControlOutputs,
    Direction,
    OperatorAction,
    OperatorKey,
    RunMode,
)
from tempcon.control.menu import MENU_GROUPS, MenuLevel, ParameterMenu
from tempcon.control.pid import PIDController, PIDParams, classify_alarm, split_range

__all__ = [
    "AlarmStatus",
    "ControlInputs",
    "ControlOutputs",
    "Direction",
    "OperatorAction",
    "OperatorKey",
    "RunMode",
    "MENU_GROUPS",
    "MenuLevel",
    "ParameterMenu",
    "PIDController",
    "PIDParams",
    "classify_alarm",
    "split_range",
]
