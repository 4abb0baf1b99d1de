from __future__ import annotations

import json
from pathlib import Path
from tempfile import TemporaryDirectory

from tempcon.config import SimConfig
from tempcon.scenarios import Stage, build_oven_rig, wire_stages
from tempcon.sim.context import SimulationContext
from tempcon.sim.kernel import SimulationKernel
from tempcon.sim.metrics import write_run_artifacts


def test_smoke_kernel_and_artifacts() -> None:
    cfg = SimConfig.from_args(
        name="smoke",
        ticks=10,
        sample_every=4,
        dt_s=0.1,
        out_dir=None
    )

    context = SimulationContext(build_oven_rig())
    wire_stages(context, *Stage)
    context.set_supply("dcpower", on=True)

    kernel = SimulationKernel(cfg, context)
    result = kernel.run()

    # ticks=10 with sample_every=4 -> ticks 0, 4, 8 and the last tick 9
    assert result.metrics.total_ticks == 10
    assert abs(result.metrics.sim_time_s - 1.0) < 1e-9
    assert [s.tick for s in result.timeseries] == [0, 4, 8, 9]

    # MANUAL at 50 % sits in the dead-band: nothing heats, nothing changes
    assert result.final is not None
    assert result.final.power_status.value == "POWER_ON"
    assert result.metrics.final_sensed_c == 20.0

    with TemporaryDirectory() as td:
        out_dir = Path(td).joinpath("run")
        write_run_artifacts(
            out_path=out_dir,
            metrics=result.metrics,
            timeseries=result.timeseries,
            events=result.events,
            final=result.final,
        )

        p = out_dir.joinpath("metrics.json")
        assert p.exists()

        data = json.loads(p.read_text(encoding="utf-8"))
        assert "run" in data
        assert "final" in data

        run = data["run"]
        assert set(run.keys()) >= {
            "total_ticks",
            "sim_time_s",
            "start_time",
            "finish_time",
            "scenario_name",
        }
        assert run["total_ticks"] == 10
        assert run["scenario_name"] == "smoke"

        final = data["final"]
        assert final["tick"] == 9
        assert final["sensor"]["status"] == "NORMAL"
        assert len(final["outputs"]) == 2

        ts = json.loads(out_dir.joinpath("timeseries.json").read_text(encoding="utf-8"))
        assert len(ts["samples"]) == 4
