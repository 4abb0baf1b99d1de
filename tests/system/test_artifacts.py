from __future__ import annotations

import json
import logging

import pytest

from tempcon.cli import main, parse_fault
from tempcon.config import SimConfig
from tempcon.control.interfaces import RunMode
from tempcon.control.pid import PIDParams
from tempcon.scenarios import Stage, build_oven_rig, fault_at, wire_stages
from tempcon.sim.context import SimulationContext
from tempcon.sim.kernel import SimulationKernel
from tempcon.sim.metrics import write_result


def run_with_open_sensor(out_dir):
    ctx = SimulationContext(build_oven_rig())
    wire_stages(ctx, *Stage)
    ctx.set_supply("dcpower", on=True)
    cfg = SimConfig.from_args(name="artifacts", ticks=25, sample_every=10, out_dir=str(out_dir))
    kernel = SimulationKernel(cfg, ctx, pid_params=PIDParams(mode=RunMode.AUTO))
    return kernel.run(script=[fault_at(12, "open-sensor", "pt")])


def test_write_result_files(tmp_path):
    result = run_with_open_sensor(tmp_path)
    write_result(tmp_path, result)

    data = json.loads((tmp_path / "metrics.json").read_text(encoding="utf-8"))
    assert data["run"]["total_ticks"] == 25
    assert data["run"]["event_count"] == len(result.events)
    # Open circuits have no finite resistance
    assert data["final"]["sensor"] == {"status": "OPEN", "ohms": None}
    assert data["final"]["diagnosis"]["transmitter"] == "OPEN"

    samples = json.loads((tmp_path / "timeseries.json").read_text(encoding="utf-8"))["samples"]
    assert [s["tick"] for s in samples] == [0, 10, 20, 24]
    assert samples[0]["power_status"] == "POWER_ON"
    assert samples[0]["mode"] == "AUTO"

    lines = (tmp_path / "events.jsonl").read_text(encoding="utf-8").splitlines()
    events = [json.loads(line) for line in lines]
    assert {"tick", "time_s", "kind", "before", "after"} == set(events[0])
    assert any(e["kind"] == "sensor" and e["tick"] == 12 for e in events)


def test_parse_fault():
    action = parse_fault("break-output-loop:pid:1@400")
    assert action.at_tick == 400
    assert action.label == "inject break-output-loop pid"

    # Device defaults by fault kind
    assert parse_fault("open-sensor@5").label == "inject open-sensor pt"
    assert parse_fault("stick-actuator@5").label == "inject stick-actuator heater"
    assert parse_fault("stick-actuator:fan@5").label == "inject stick-actuator fan"


@pytest.mark.parametrize("text", ["open-sensor", "@5", "melt@5", "open-sensor@soon", "a:b:c:d@1"])
def test_parse_fault_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_fault(text)


def test_cli_main_writes_artifacts(tmp_path, capsys):
    rc = main([
        "--name", "cli",
        "--ticks", "50",
        "--sample-every", "5",
        "--out-dir", str(tmp_path),
        "--auto",
        "--fault", "open-sensor@10",
    ])
    assert rc == 0
    assert (tmp_path / "metrics.json").exists()
    assert (tmp_path / "timeseries.json").exists()
    assert (tmp_path / "events.jsonl").exists()

    out = capsys.readouterr().out
    assert out.startswith("cli: ticks=50")
    assert "power=POWER_ON" in out


def test_cli_partial_wiring(tmp_path):
    rc = main(["--ticks", "3", "--wiring", "none", "--out-dir", str(tmp_path)])
    assert rc == 0
    data = json.loads((tmp_path / "metrics.json").read_text(encoding="utf-8"))
    assert data["final"]["power_status"] == "OPEN"
    assert data["final"]["controller_powered"] is False


def test_cli_rejects_bad_arguments(tmp_path):
    with pytest.raises(SystemExit):
        main(["--ticks", "-1", "--out-dir", str(tmp_path)])
    with pytest.raises(SystemExit):
        main(["--fault", "melt@3", "--out-dir", str(tmp_path)])


def test_cli_logs_artifact_directory(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger="tempcon.cli")
    rc = main(["--ticks", "2", "--out-dir", str(tmp_path), "--log-level", "INFO"])
    assert rc == 0
    assert f"artifacts written to {tmp_path}" in caplog.text
