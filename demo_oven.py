#!/usr/bin/env python3
"""
Oven rig demo: wiring, closed-loop control and a scripted fault.

Shows:
- Staged wiring of the standard rig
- PID in AUTO driving heater and fan through relays
- An open PT100 injected mid-run and the resulting diagnosis
- Artifact generation
"""

from tempcon.config import SimConfig
from tempcon.control import PIDParams, RunMode
from tempcon.scenarios import Stage, build_oven_rig, fault_at, wire_stages
from tempcon.sim import SimulationContext, SimulationKernel
from tempcon.sim.metrics import write_result


def main():
    print("=" * 70)
    print("TempCon: Oven Training Rig Demo")
    print("=" * 70)
    print()

    sim_cfg = SimConfig.from_args(
        name="demo_oven",
        ticks=4000,
        sample_every=50,
        dt_s=0.1,
        out_dir=None,
    )

    context = SimulationContext(build_oven_rig())
    added = wire_stages(context, *Stage)
    context.set_supply("dcpower", on=True)

    print("Configuration:")
    print(f"  Ticks: {sim_cfg.ticks} (dt={sim_cfg.dt_s}s)")
    print(f"  Wires: {added}")
    print("  Controller: PID AUTO, SV=70, P=4, I=60s")
    print("  Fault: open PT100 at tick 3000")
    print()

    kernel = SimulationKernel(
        sim_cfg,
        context,
        pid_params=PIDParams(sv=70.0, i_time_s=60.0, mode=RunMode.AUTO),
    )
    result = kernel.run(script=[fault_at(3000, "open-sensor", "pt")])
    write_result(sim_cfg.out_dir, result)

    print(f"✓ Simulation complete: {result.metrics.total_ticks} ticks, "
          f"{result.metrics.sim_time_s:.0f}s simulated")
    print()

    print("Time-Series (selected samples):")
    print(f"{'Time(s)':<9} {'Core':<8} {'Sensed':<8} {'PV':<8} {'OUT%':<8} {'Heat':<6} {'Cool':<6}")
    print("-" * 60)
    for s in result.timeseries[:: max(1, len(result.timeseries) // 10)]:
        print(f"{s.time_s:<9.1f} {s.core_c:<8.2f} {s.sensed_c:<8.2f} {s.pv:<8.2f} "
              f"{s.out_pct:<8.1f} {s.heat_duty:<6.2f} {s.cool_duty:<6.2f}")
    print()

    print("Events:")
    for e in result.events:
        print(f"  t={e.time_s:7.1f}s {e.kind:<18} {e.before} -> {e.after}")
    print()

    if result.final is not None:
        print(f"Final diagnosis: {result.final.diagnosis}")
    print()
    print("Artifacts written to:")
    print(f"  {sim_cfg.out_dir}")


if __name__ == "__main__":
    main()
