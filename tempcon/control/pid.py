from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any

from tempcon.control.interfaces import (
    AlarmStatus,
    ControlInputs,
    ControlOutputs,
    Direction,
    OperatorAction,
    OperatorKey,
    RunMode,
)
from tempcon.control.menu import ParameterMenu

logger = logging.getLogger(__name__)

# Input assumed when no loop current is available (bottom of the 4-20 mA span)
LIVE_ZERO_MA = 4.0


@dataclass
class PIDParams:
    """
    Parameters for the PID controller.

    Mutable: the front-panel menu commits edits straight into this object.
    """
    p: float = 4.0                  # Proportional gain
    i_time_s: float = 0.0           # Integral time (s), 0 disables integral action
    d: float = 0.0                  # Derivative gain
    sv: float = 60.0                # Setpoint (engineering units)
    lrv: float = 0.0                # Lower range value, PV at 4 mA
    urv: float = 100.0              # Upper range value, PV at 20 mA
    out_low: float = 0.0            # Manual output limit OL (%)
    out_high: float = 100.0         # Manual output limit OH (%)
    bias: float = 50.0              # Output at zero error (%)
    integral_limit: float = 20.0    # Anti-windup: |integral| bound
    deadband: float = 2.0           # Split-range dead-band half width (%)
    alarm_hh: float = 95.0
    alarm_h: float = 90.0
    alarm_l: float = 30.0
    alarm_ll: float = 10.0
    mode: RunMode = RunMode.MANUAL
    direction: Direction = Direction.DIRECT
    initial_out: float = 50.0

    def __post_init__(self) -> None:
        if self.urv == self.lrv:
            raise ValueError("urv must differ from lrv")
        if self.p < 0 or self.i_time_s < 0 or self.d < 0:
            raise ValueError("gains must be >= 0")
        if not 0.0 <= self.out_low <= self.out_high <= 100.0:
            raise ValueError("need 0 <= out_low <= out_high <= 100")


# Menu parameter name -> PIDParams field
PARAMETER_FIELDS: dict[str, str] = {
    "P": "p",
    "I": "i_time_s",
    "D": "d",
    "OL": "out_low",
    "OH": "out_high",
    "HH": "alarm_hh",
    "H": "alarm_h",
    "L": "alarm_l",
    "LL": "alarm_ll",
    "SV": "sv",
    "LRV": "lrv",
    "URV": "urv",
    "mode": "mode",
    "DIR": "direction",
}


def split_range(out_pct: float, bias: float = 50.0, deadband: float = 2.0) -> tuple[float, float]:
    """
    Split a 0-100 % output into heating and cooling duties.

    Above ``bias + deadband`` the heat duty ramps linearly to 1 at 100 %;
    below ``bias - deadband`` the cool duty ramps to 1 at 0 %. Inside the
    dead-band both are 0. At most one of the two is ever non-zero.

    Returns:
        (heat_duty, cool_duty)
    """
    hi = bias + deadband
    lo = bias - deadband
    if out_pct > hi:
        return min(1.0, (out_pct - hi) / (100.0 - hi)), 0.0
    if out_pct < lo:
        return 0.0, min(1.0, (lo - out_pct) / lo)
    return 0.0, 0.0


def classify_alarm(pv: float, params: PIDParams) -> AlarmStatus:
    """Alarm level for a PV; high-high wins over high, low-low over low."""
    if pv > params.alarm_hh:
        return AlarmStatus.HH
    if pv > params.alarm_h:
        return AlarmStatus.H
    if pv < params.alarm_ll:
        return AlarmStatus.LL
    if pv < params.alarm_l:
        return AlarmStatus.L
    return AlarmStatus.NONE


class PIDController:
    """
    Positional PID controller with split-range output.

    Control law (AUTO):
        integral += e*dt/I          (0 when I = 0, clamped to ±integral_limit)
        OUT = bias + P*e + integral + D*de/dt

    Where e = SV - PV (DIRECT) or PV - SV (REVERSE) and PV is scaled from the
    4-20 mA input over [LRV, URV]. OUT is clamped to [0, 100].

    In MANUAL the law is skipped and OUT holds the operator value. Operator
    actions are queued with ``queue_action`` and consumed at the start of the
    next ``step``; the parameter menu overlays the run display.
    """

    def __init__(self, params: PIDParams | None = None):
        self.params = params or PIDParams()
        self.menu = ParameterMenu(self)
        self._actions: deque[OperatorAction] = deque()
        self.reset()

    def reset(self) -> None:
        """Reset controller state (parameters are kept)."""
        self.pv = self.params.lrv
        self.out = self.params.initial_out
        self.heat_duty = 0.0
        self.cool_duty = 0.0
        self.error = 0.0
        self.alarm = AlarmStatus.NONE
        self.powered = False
        self._integral = 0.0
        self._last_error = 0.0
        self._actions.clear()
        self.menu.reset()

    @property
    def integral(self) -> float:
        return self._integral

    @property
    def mode(self) -> RunMode:
        return self.params.mode

    # ──────────────────────────────────────────────────────────────────────
    # Parameter access (used by the menu)
    # ──────────────────────────────────────────────────────────────────────

    def get_parameter(self, name: str) -> Any:
        try:
            field = PARAMETER_FIELDS[name]
        except KeyError:
            raise KeyError(f"unknown controller parameter {name!r}") from None
        return getattr(self.params, field)

    def set_parameter(self, name: str, value: Any) -> None:
        try:
            field = PARAMETER_FIELDS[name]
        except KeyError:
            raise KeyError(f"unknown controller parameter {name!r}") from None
        if field == "mode":
            self._set_mode(RunMode(value))
            return
        if field == "direction":
            value = Direction(value)
        elif field in ("p", "i_time_s", "d"):
            value = max(0.0, float(value))
        elif field in ("out_low", "out_high"):
            value = max(0.0, min(100.0, float(value)))
        else:
            value = float(value)
        setattr(self.params, field, value)
        if field == "i_time_s" and value == 0.0:
            self._integral = 0.0

    def _set_mode(self, mode: RunMode) -> None:
        if mode is not self.params.mode:
            # OUT is carried over unchanged (bumpless in both directions)
            logger.debug("controller mode %s -> %s", self.params.mode.value, mode.value)
            self.params.mode = mode

    # ──────────────────────────────────────────────────────────────────────
    # Operator actions
    # ──────────────────────────────────────────────────────────────────────

    def queue_action(self, action: OperatorAction) -> None:
        self._actions.append(action)

    def press(self, key: OperatorKey | str, value: float | None = None) -> None:
        """Shorthand for queueing an OperatorAction."""
        self.queue_action(OperatorAction(OperatorKey(key), value))

    def _apply_action(self, action: OperatorAction) -> None:
        if self.menu.handle(action.key):
            return
        p = self.params
        match action.key:
            case OperatorKey.RUN:
                self._set_mode(RunMode.MANUAL if p.mode is RunMode.AUTO else RunMode.AUTO)
            case OperatorKey.SET_OUTPUT:
                if p.mode is RunMode.MANUAL and action.value is not None:
                    self.out = max(0.0, min(100.0, float(action.value)))
                else:
                    logger.debug("SET_OUTPUT ignored in %s", p.mode.value)
            case OperatorKey.UP | OperatorKey.DOWN:
                step = 1.0 if action.key is OperatorKey.UP else -1.0
                if p.mode is RunMode.AUTO:
                    p.sv += step
                else:
                    self.out = max(p.out_low, min(p.out_high, self.out + step))
            case _:
                pass  # short SET on the run display does nothing

    # ──────────────────────────────────────────────────────────────────────
    # Step
    # ──────────────────────────────────────────────────────────────────────

    def step(self, inputs: ControlInputs) -> ControlOutputs:
        """
        Advance the controller by one tick.

        Args:
            inputs: Time step, measured input current and supply status

        Returns:
            ControlOutputs with OUT, split-range duties, PV/SV and alarm
        """
        self.powered = inputs.powered
        if not inputs.powered:
            # A dead controller ignores its keys and drops to a neutral output
            self._actions.clear()
            self.out = 50.0
            self.heat_duty = 0.0
            self.cool_duty = 0.0
            return self._outputs()

        if inputs.dt_s <= 0:
            return self._outputs()

        while self._actions:
            self._apply_action(self._actions.popleft())
        self.menu.advance(inputs.dt_s)

        p = self.params
        ma = LIVE_ZERO_MA if inputs.input_ma is None else inputs.input_ma
        self.pv = p.lrv + (ma - 4.0) / 16.0 * (p.urv - p.lrv)

        error = p.sv - self.pv
        if p.direction is Direction.REVERSE:
            error = -error
        self.error = error

        if p.mode is RunMode.AUTO:
            if p.i_time_s > 0:
                self._integral += error * inputs.dt_s / p.i_time_s
                self._integral = max(-p.integral_limit, min(p.integral_limit, self._integral))
            else:
                self._integral = 0.0
            derivative = (error - self._last_error) / inputs.dt_s
            out = p.bias + p.p * error + self._integral + p.d * derivative
            self.out = max(0.0, min(100.0, out))
        self._last_error = error

        self.heat_duty, self.cool_duty = split_range(self.out, p.bias, p.deadband)
        self.alarm = classify_alarm(self.pv, p)
        return self._outputs()

    def _outputs(self) -> ControlOutputs:
        return ControlOutputs(
            out_pct=self.out,
            heat_duty=self.heat_duty,
            cool_duty=self.cool_duty,
            pv=self.pv,
            sv=self.params.sv,
            error=self.error,
            mode=self.params.mode,
            alarm=self.alarm,
            powered=self.powered,
            menu_text=self.menu.display_text(),
        )
