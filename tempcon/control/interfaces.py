from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RunMode(str, Enum):
    AUTO = "AUTO"
    MANUAL = "MAN"


class Direction(str, Enum):
    DIRECT = "DIR"      # error = SV - PV
    REVERSE = "REV"     # error = PV - SV


class AlarmStatus(str, Enum):
    NONE = "----"
    HH = "HH"
    H = "H"
    L = "L"
    LL = "LL"


class OperatorKey(str, Enum):
    """Front-panel keys plus a direct manual-output entry."""
    UP = "UP"
    DOWN = "DOWN"
    SET = "SET"
    SET_LONG = "SET_LONG"
    RUN = "RUN"                 # A/M toggle
    SET_OUTPUT = "SET_OUTPUT"   # Manual output value, carried in OperatorAction.value


@dataclass(frozen=True, slots=True)
class OperatorAction:
    """
    An operator intent queued between ticks.

    The controller consumes queued actions at the start of its next step,
    so panel presses never mutate controller state mid-tick.
    """
    key: OperatorKey
    value: float | None = None


@dataclass(frozen=True, slots=True)
class ControlInputs:
    """
    Inputs to the controller for one tick.

    The controller does not know about clusters or wiring; the orchestrator
    hands it the measured loop current and whether its supply is healthy.
    """
    dt_s: float                     # Time step (seconds)
    input_ma: float | None          # 4-20 mA input current, None = no signal
    powered: bool = True            # Controller supply status is POWER_ON


@dataclass(frozen=True, slots=True)
class ControlOutputs:
    """
    Outputs from the controller.

    ``out_pct`` is the 0-100 % control output; ``heat_duty`` and
    ``cool_duty`` are the split-range channel duties in [0, 1], never both
    non-zero.
    """
    out_pct: float
    heat_duty: float
    cool_duty: float
    pv: float
    sv: float
    error: float = 0.0              # Control error, sign already includes direction
    mode: RunMode = RunMode.MANUAL
    alarm: AlarmStatus = AlarmStatus.NONE
    powered: bool = True
    menu_text: str | None = None    # Parameter menu display, None on the run screen
