"""
Front-panel parameter menu of the PID controller.

Three levels:

- 0: run display (UP/DOWN belong to the controller: SV in AUTO, OUT in MAN)
- 1: parameter-group select
- 2: value edit

Entering a parameter snapshots its value as the pending edit. UP/DOWN only
touch the pending value; SET commits it. Long SET aborts to the run display
and discards the edit. Timers are elapsed-since-activity counters advanced
once per tick: 5 s without an edit discards the pending value, 20 s without
any key returns to the run display.
"""

from __future__ import annotations

import logging
from enum import Enum, IntEnum
from typing import Any, Protocol

from tempcon.control.interfaces import Direction, OperatorKey, RunMode

logger = logging.getLogger(__name__)

EDIT_TIMEOUT_S = 5.0
MENU_TIMEOUT_S = 20.0

MENU_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("PID", ("P", "I", "D", "OL", "OH")),
    ("ALARM", ("HH", "H", "L", "LL")),
    ("RANGE", ("SV", "LRV", "URV")),
    ("SYS", ("mode", "DIR")),
)

ENUM_CHOICES: dict[str, tuple[Enum, ...]] = {
    "mode": (RunMode.AUTO, RunMode.MANUAL),
    "DIR": (Direction.DIRECT, Direction.REVERSE),
}


class MenuLevel(IntEnum):
    RUN = 0
    GROUP = 1
    VALUE = 2


class ParameterTarget(Protocol):
    def get_parameter(self, name: str) -> Any:
        ...

    def set_parameter(self, name: str, value: Any) -> None:
        ...


class ParameterMenu:
    """Menu state machine over a controller's named parameters."""

    def __init__(self, target: ParameterTarget):
        self._target = target
        self.level = MenuLevel.RUN
        self.group_index = 0
        self.param_index = 0
        self.pending: Any = None
        self.is_modified = False
        self.idle_s = 0.0           # Since the last key press
        self.edit_idle_s = 0.0      # Since the last change to the pending value

    def reset(self) -> None:
        self.level = MenuLevel.RUN
        self.group_index = 0
        self.param_index = 0
        self._discard()
        self.idle_s = 0.0

    @property
    def group_name(self) -> str:
        return MENU_GROUPS[self.group_index][0]

    @property
    def parameter(self) -> str | None:
        """Parameter under edit, None outside level 2."""
        if self.level != MenuLevel.VALUE:
            return None
        return MENU_GROUPS[self.group_index][1][self.param_index]

    def handle(self, key: OperatorKey) -> bool:
        """
        Process a key press.

        Returns:
            True if the menu consumed the key, False if it belongs to the
            run display (UP/DOWN/SET at level 0, RUN at any level).
        """
        if key is OperatorKey.RUN or key is OperatorKey.SET_OUTPUT:
            return False
        self.idle_s = 0.0

        if self.level == MenuLevel.RUN:
            if key is OperatorKey.SET_LONG:
                self.level = MenuLevel.GROUP
                return True
            return False

        if self.level == MenuLevel.GROUP:
            n = len(MENU_GROUPS)
            if key is OperatorKey.UP:
                self.group_index = (self.group_index + 1) % n
            elif key is OperatorKey.DOWN:
                self.group_index = (self.group_index - 1) % n
            else:
                self.level = MenuLevel.VALUE
                self._select(0)
            return True

        # Value edit
        if key is OperatorKey.UP:
            self._adjust(+1)
        elif key is OperatorKey.DOWN:
            self._adjust(-1)
        elif key is OperatorKey.SET_LONG:
            self.level = MenuLevel.RUN
            self._discard()
        elif self.is_modified:
            self._target.set_parameter(self.parameter, self.pending)
            logger.debug("menu commit %s=%r", self.parameter, self.pending)
            self._snapshot()
        else:
            params = MENU_GROUPS[self.group_index][1]
            self._select((self.param_index + 1) % len(params))
        return True

    def advance(self, dt_s: float) -> None:
        """Advance the inactivity timers by one tick."""
        if self.level == MenuLevel.RUN:
            return
        self.idle_s += dt_s
        self.edit_idle_s += dt_s
        if self.idle_s > MENU_TIMEOUT_S:
            logger.debug("menu timeout: returning to run display")
            self.level = MenuLevel.RUN
            self._discard()
        elif self.is_modified and self.edit_idle_s > EDIT_TIMEOUT_S:
            logger.debug("edit timeout: discarding pending %s", self.parameter)
            self._snapshot()

    def display_value(self) -> Any:
        """Pending value while modified, otherwise the live value."""
        name = self.parameter
        if name is None:
            return None
        return self.pending if self.is_modified else self._target.get_parameter(name)

    def display_text(self) -> str | None:
        if self.level == MenuLevel.RUN:
            return None
        if self.level == MenuLevel.GROUP:
            return f"GRP:{self.group_name}"
        value = self.display_value()
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, float):
            value = f"{value:g}"
        return f"{self.parameter[:6]}:{value}"

    def _select(self, param_index: int) -> None:
        self.param_index = param_index
        self._snapshot()

    def _snapshot(self) -> None:
        self.pending = self._target.get_parameter(self.parameter)
        self.is_modified = False
        self.edit_idle_s = 0.0

    def _discard(self) -> None:
        self.pending = None
        self.is_modified = False
        self.edit_idle_s = 0.0

    def _adjust(self, step: int) -> None:
        name = self.parameter
        choices = ENUM_CHOICES.get(name)
        if choices is not None:
            try:
                idx = choices.index(self.pending)
            except ValueError:
                idx = -1
            self.pending = choices[(idx + step) % len(choices)]
        else:
            self.pending = self.pending + step
        self.is_modified = True
        self.edit_idle_s = 0.0
