from __future__ import annotations

from pathlib import Path

import pytest

from tempcon.config import PlantConfig, SimConfig
from tempcon.plant import plant_params_from_config


def test_from_args_with_out_dir(tmp_path):
    cfg = SimConfig.from_args(name="x", ticks=10, sample_every=2, dt_s=0.5, out_dir=str(tmp_path))
    assert cfg.out_dir == Path(tmp_path)
    assert cfg.ticks == 10
    assert cfg.dt_s == 0.5


def test_default_out_dir_uses_clean_name():
    cfg = SimConfig.from_args(name="open sensor/run", ticks=1)
    assert cfg.out_dir.parent == Path("artifacts/runs")
    assert cfg.out_dir.name.endswith("_open_sensor_run")


def test_default_out_dir_falls_back_for_unsafe_names():
    cfg = SimConfig.from_args(name="???", ticks=1)
    assert cfg.out_dir.name.endswith("_scenario")


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(name="", ticks=1),
        dict(name="x", ticks=-1),
        dict(name="x", ticks=1, sample_every=0),
        dict(name="x", ticks=1, dt_s=0.0),
    ],
)
def test_from_args_validation(kwargs):
    with pytest.raises(ValueError):
        SimConfig.from_args(**kwargs)


def test_plant_params_from_config():
    thermal, heater, fan = plant_params_from_config(PlantConfig(delay_ticks=5, fan_rise_per_s=4.0))
    assert thermal.delay_ticks == 5
    assert heater.rise_per_s == 5.0
    assert fan.rise_per_s == 4.0
