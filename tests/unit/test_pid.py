from __future__ import annotations

import pytest

from tempcon.control.interfaces import (
    AlarmStatus,
    ControlInputs,
    Direction,
    OperatorKey,
    RunMode,
)
from tempcon.control.pid import PIDController, PIDParams, classify_alarm, split_range


def ma_for(pv: float, lrv: float = 0.0, urv: float = 100.0) -> float:
    """Loop current that scales to ``pv`` over [lrv, urv]."""
    return 4.0 + 16.0 * (pv - lrv) / (urv - lrv)


@pytest.fixture
def auto_params() -> PIDParams:
    """Pure P controller in AUTO, SV 60."""
    return PIDParams(p=4.0, i_time_s=0.0, d=0.0, sv=60.0, mode=RunMode.AUTO)


def test_split_range_endpoints():
    """Full output heats, zero output cools, the dead-band does neither."""
    assert split_range(100.0) == (1.0, 0.0)
    assert split_range(0.0) == (0.0, 1.0)
    assert split_range(50.0) == (0.0, 0.0)
    assert split_range(52.0) == (0.0, 0.0)
    assert split_range(48.0) == (0.0, 0.0)


def test_split_range_is_linear_outside_deadband():
    heat, cool = split_range(76.0)
    assert abs(heat - 0.5) < 1e-9 and cool == 0.0
    heat, cool = split_range(24.0)
    assert heat == 0.0 and abs(cool - 0.5) < 1e-9


def test_split_range_never_both():
    for pct in range(0, 101):
        heat, cool = split_range(float(pct))
        assert heat == 0.0 or cool == 0.0
        assert 0.0 <= heat <= 1.0 and 0.0 <= cool <= 1.0


def test_alarm_priority():
    params = PIDParams()
    assert classify_alarm(96.0, params) is AlarmStatus.HH
    assert classify_alarm(91.0, params) is AlarmStatus.H
    assert classify_alarm(50.0, params) is AlarmStatus.NONE
    assert classify_alarm(20.0, params) is AlarmStatus.L
    assert classify_alarm(5.0, params) is AlarmStatus.LL


@pytest.mark.parametrize(
    "kwargs",
    [dict(lrv=10.0, urv=10.0), dict(p=-1.0), dict(out_low=60.0, out_high=40.0)],
)
def test_params_validation(kwargs):
    with pytest.raises(ValueError):
        PIDParams(**kwargs)


def test_pv_scaling_and_live_zero():
    ctrl = PIDController(PIDParams(lrv=-50.0, urv=150.0))
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=12.0))
    assert abs(out.pv - 50.0) < 1e-9
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=None))
    assert abs(out.pv + 50.0) < 1e-9


def test_proportional_heating(auto_params):
    """PV 10 below SV with P=4 gives OUT 90 and heat duty (90-52)/48."""
    ctrl = PIDController(auto_params)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(50.0)))
    assert abs(out.error - 10.0) < 1e-9
    assert abs(out.out_pct - 90.0) < 1e-9
    assert abs(out.heat_duty - 38.0 / 48.0) < 1e-9
    assert out.cool_duty == 0.0


def test_reverse_action_cools(auto_params):
    auto_params.direction = Direction.REVERSE
    ctrl = PIDController(auto_params)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(50.0)))
    assert abs(out.out_pct - 10.0) < 1e-9
    assert abs(out.cool_duty - 38.0 / 48.0) < 1e-9


@pytest.mark.parametrize(
    "p, i_time_s, d",
    [
        (4.0, 0.0, 0.0),
        (1000.0, 0.0, 0.0),
        (0.0, 0.01, 0.0),
        (0.0, 0.0, 1000.0),
        (1000.0, 0.01, 1000.0),
    ],
)
def test_output_is_clamped(p, i_time_s, d):
    """OUT stays within [0, 100] for any gains, including a derivative kick on a PV step."""
    ctrl = PIDController(PIDParams(p=p, i_time_s=i_time_s, d=d, sv=60.0, mode=RunMode.AUTO))
    for pv in (0.0, 0.0, 100.0, 100.0, 0.0, 60.0, -25.0, 110.0):
        out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(pv)))
        assert 0.0 <= out.out_pct <= 100.0
        assert 0.0 <= out.heat_duty <= 1.0
        assert 0.0 <= out.cool_duty <= 1.0
    if p > 0 or d > 0:
        assert out.out_pct == 0.0


def test_integral_accumulates_and_is_bounded(auto_params):
    auto_params.i_time_s = 10.0
    ctrl = PIDController(auto_params)
    out = ctrl.step(ControlInputs(dt_s=1.0, input_ma=ma_for(50.0)))
    assert abs(ctrl.integral - 1.0) < 1e-9
    assert abs(out.out_pct - 91.0) < 1e-9

    for _ in range(100):
        ctrl.step(ControlInputs(dt_s=1.0, input_ma=ma_for(50.0)))
    assert abs(ctrl.integral - auto_params.integral_limit) < 1e-9


def test_setting_integral_time_zero_resets_integral(auto_params):
    auto_params.i_time_s = 10.0
    ctrl = PIDController(auto_params)
    ctrl.step(ControlInputs(dt_s=1.0, input_ma=ma_for(50.0)))
    ctrl.set_parameter("I", 0)
    assert ctrl.integral == 0.0


def test_derivative_kick(auto_params):
    auto_params.p = 0.0
    auto_params.d = 1.0
    ctrl = PIDController(auto_params)
    out = ctrl.step(ControlInputs(dt_s=1.0, input_ma=ma_for(55.0)))
    assert abs(out.out_pct - 55.0) < 1e-9
    out = ctrl.step(ControlInputs(dt_s=1.0, input_ma=ma_for(55.0)))
    assert abs(out.out_pct - 50.0) < 1e-9


def test_unpowered_controller_is_neutral(auto_params):
    ctrl = PIDController(auto_params)
    ctrl.press(OperatorKey.UP)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(0.0), powered=False))
    assert not out.powered
    assert out.out_pct == 50.0
    assert out.heat_duty == 0.0 and out.cool_duty == 0.0
    # The queued key was dropped with the power
    ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(60.0)))
    assert ctrl.params.sv == 60.0


def test_zero_dt_changes_nothing(auto_params):
    ctrl = PIDController(auto_params)
    first = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(50.0)))
    again = ctrl.step(ControlInputs(dt_s=0.0, input_ma=ma_for(0.0)))
    assert again.out_pct == first.out_pct
    assert again.pv == first.pv


def test_manual_output_entry():
    ctrl = PIDController(PIDParams())
    ctrl.press(OperatorKey.SET_OUTPUT, 75.0)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(20.0)))
    assert out.mode is RunMode.MANUAL
    assert out.out_pct == 75.0
    assert abs(out.heat_duty - 23.0 / 48.0) < 1e-9

    ctrl.press(OperatorKey.SET_OUTPUT, 150.0)
    assert ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(20.0))).out_pct == 100.0


def test_manual_keys_respect_output_limits():
    ctrl = PIDController(PIDParams(out_high=50.0))
    ctrl.press(OperatorKey.UP)
    ctrl.press(OperatorKey.DOWN)
    ctrl.press(OperatorKey.DOWN)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(20.0)))
    assert out.out_pct == 48.0


def test_set_output_ignored_in_auto(auto_params):
    ctrl = PIDController(auto_params)
    ctrl.press(OperatorKey.SET_OUTPUT, 10.0)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(60.0)))
    assert abs(out.out_pct - 50.0) < 1e-9


def test_run_key_toggles_mode_bumplessly(auto_params):
    """Switching to MANUAL keeps the last AUTO output."""
    ctrl = PIDController(auto_params)
    before = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(50.0))).out_pct
    ctrl.press(OperatorKey.RUN)
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(0.0)))
    assert out.mode is RunMode.MANUAL
    assert out.out_pct == before


def test_up_in_auto_moves_setpoint(auto_params):
    ctrl = PIDController(auto_params)
    ctrl.press("UP")
    out = ctrl.step(ControlInputs(dt_s=0.1, input_ma=ma_for(61.0)))
    assert out.sv == 61.0
    assert abs(out.error) < 1e-9


def test_unknown_parameter():
    ctrl = PIDController()
    with pytest.raises(KeyError):
        ctrl.get_parameter("Q")
    with pytest.raises(KeyError):
        ctrl.set_parameter("Q", 1.0)


def test_parameter_clamping():
    ctrl = PIDController()
    ctrl.set_parameter("P", -3)
    ctrl.set_parameter("OH", 140)
    ctrl.set_parameter("DIR", "REV")
    assert ctrl.params.p == 0.0
    assert ctrl.params.out_high == 100.0
    assert ctrl.params.direction is Direction.REVERSE
