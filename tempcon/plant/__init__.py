from __future__ import annotations

from tempcon.config import PlantConfig
from tempcon.plant.actuators import FAN_LAG, HEATER_LAG, ActuatorParams, step_actuator
from tempcon.plant.sensor import shunt_voltage, transmitter_current_ma
from tempcon.plant.thermal import ThermalParams, ThermalState, step_thermal

__all__ = [
    "ActuatorParams",
    "FAN_LAG",
    "HEATER_LAG",
    "ThermalParams",
    "ThermalState",
    "plant_params_from_config",
    "shunt_voltage",
    "step_actuator",
    "step_thermal",
    "transmitter_current_ma",
]


def plant_params_from_config(
    cfg: PlantConfig,
) -> tuple[ThermalParams, ActuatorParams, ActuatorParams]:
    """
    Build the plant model parameters from a PlantConfig.

    Returns:
        Tuple of (thermal_params, heater_lag, fan_lag)
    """
    thermal = ThermalParams(
        ambient_c=cfg.ambient_c,
        heat_gain=cfg.heat_gain,
        exchange=cfg.exchange,
        loss=cfg.loss,
        inertia=cfg.inertia,
        delay_ticks=cfg.delay_ticks,
        sensor_lag=cfg.sensor_lag,
        min_c=cfg.min_c,
        max_c=cfg.max_c,
    )
    heater = ActuatorParams(rise_per_s=cfg.heater_rise_per_s, fall_per_s=cfg.heater_fall_per_s)
    fan = ActuatorParams(rise_per_s=cfg.fan_rise_per_s, fall_per_s=cfg.fan_fall_per_s)
    return thermal, heater, fan
