from __future__ import annotations

from tempcon.circuit.interrogation import SensorReading, SensorStatus

# Loop currents the transmitter drives to flag a sensor fault (mA)
SHORT_SENSOR_MA = 3.6
OPEN_SENSOR_MA = 21.6
# Saturation limits for a healthy element (mA)
MIN_SIGNAL_MA = 3.8
MAX_SIGNAL_MA = 20.8
# Element range mapped onto 4-20 mA: 100 ohm (0 °C) to 138.51 ohm (100 °C)
RANGE_LOW_OHM = 100.0
RANGE_SPAN_OHM = 38.51
# Controller input shunt converting loop current to volts
INPUT_SHUNT_OHMS = 250.0


def transmitter_current_ma(
    reading: SensorReading,
    *,
    loop_active: bool = True,
    zero_adj: float = 0.0,
    span_adj: float = 1.0,
) -> float:
    """
    Loop current a 3-wire RTD transmitter drives for a sensor reading.

    Args:
        reading: Sensor element classification
        loop_active: Whether the two-wire loop to the controller is closed
        zero_adj: Zero trim added before the span multiplier (mA)
        span_adj: Span trim multiplier

    Returns:
        Loop current in mA. 0 when the loop is not closed, the fixed
        fault currents for a shorted or open element, otherwise the linear
        4-20 mA signal clamped to [3.8, 20.8].
    """
    if not loop_active:
        return 0.0
    if reading.status is SensorStatus.SHORT:
        return SHORT_SENSOR_MA
    if reading.status is SensorStatus.OPEN:
        return OPEN_SENSOR_MA
    ma = 16.0 * (reading.ohms - RANGE_LOW_OHM) / RANGE_SPAN_OHM + 4.0
    ma = (ma + zero_adj) * span_adj
    return max(MIN_SIGNAL_MA, min(MAX_SIGNAL_MA, ma))


def shunt_voltage(ma: float) -> float:
    """Voltage across the controller input shunt for a loop current."""
    return ma * INPUT_SHUNT_OHMS / 1000.0
