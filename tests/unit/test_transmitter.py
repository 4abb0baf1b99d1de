from __future__ import annotations

from tempcon.circuit.interrogation import SensorReading, SensorStatus
from tempcon.plant.sensor import (
    MAX_SIGNAL_MA,
    MIN_SIGNAL_MA,
    OPEN_SENSOR_MA,
    SHORT_SENSOR_MA,
    shunt_voltage,
    transmitter_current_ma,
)


def normal(ohms: float) -> SensorReading:
    return SensorReading(SensorStatus.NORMAL, ohms)


def test_range_endpoints():
    """100 ohm (0 C) is 4 mA, 138.51 ohm (100 C) is 20 mA."""
    assert abs(transmitter_current_ma(normal(100.0)) - 4.0) < 1e-9
    assert abs(transmitter_current_ma(normal(138.51)) - 20.0) < 1e-9
    assert abs(transmitter_current_ma(normal(107.702)) - 7.2) < 1e-9


def test_saturation():
    assert transmitter_current_ma(normal(150.0)) == MAX_SIGNAL_MA
    assert transmitter_current_ma(normal(90.0)) == MIN_SIGNAL_MA


def test_fault_currents():
    assert transmitter_current_ma(SensorReading(SensorStatus.OPEN, float("inf"))) == OPEN_SENSOR_MA
    assert transmitter_current_ma(SensorReading(SensorStatus.SHORT, 0.0)) == SHORT_SENSOR_MA


def test_broken_loop_carries_nothing():
    assert transmitter_current_ma(normal(120.0), loop_active=False) == 0.0
    open_reading = SensorReading(SensorStatus.OPEN, float("inf"))
    assert transmitter_current_ma(open_reading, loop_active=False) == 0.0


def test_zero_and_span_trim():
    assert abs(transmitter_current_ma(normal(100.0), zero_adj=1.0) - 5.0) < 1e-9
    assert abs(transmitter_current_ma(normal(100.0), span_adj=1.1) - 4.4) < 1e-9


def test_shunt_voltage():
    assert abs(shunt_voltage(20.0) - 5.0) < 1e-9
    assert abs(shunt_voltage(4.0) - 1.0) < 1e-9
