"""
Simulation Kernel for TempCon.

This module provides the SimulationKernel class, the tick orchestrator for
the training rig. Each tick it:
- Resolves the wiring into clusters and classifies every standard loop
- Propagates voltages and updates relay coils from them
- Steps the PID controller from the measured loop current
- Drives heater and fan through their output loops
- Steps the thermal plant and feeds the sensed temperature back to the PT100
- Publishes an immutable TickSnapshot

The kernel is the authoritative timebase: the controller, plant and PWM
timer are all advanced by the kernel's fixed dt, never by wall clock.

Architecture:
```
    SimulationKernel (Time Authority)
        |
        +-- SimulationContext
        |   |-- Connection set (wiring)
        |   |-- DeviceRegistry (device fields, fault flags)
        |
        +-- compute_electrical_state()
        |   |-- clustering -> bridging -> reduction
        |   |-- interrogation -> voltages -> meters
        |
        +-- PIDController
        |   |-- control law, split range, alarms
        |   |-- ParameterMenu (operator actions)
        |
        +-- step_actuator() / step_thermal()
        |
        +-- DiagnosticTracker
        |
        v
    TickSnapshot (per tick)
    RunResult (per run):
        |-- RunMetrics
        |-- TimeSeriesSample[]
        |-- DiagnosticEvent[]
```

Example usage:
    >>> from tempcon.config import SimConfig
    >>> from tempcon.scenarios import build_oven_rig, wire_stages, Stage
    >>> from tempcon.sim.context import SimulationContext
    >>> from tempcon.sim.kernel import SimulationKernel
    >>>
    >>> context = SimulationContext(build_oven_rig())
    >>> wire_stages(context, *Stage)
    >>> context.set_supply("dcpower", on=True)
    >>> config = SimConfig.from_args(name="example", ticks=600, sample_every=10)
    >>> kernel = SimulationKernel(config, context)
    >>> result = kernel.run()
    >>> print(f"Final temperature {result.metrics.final_sensed_c:.1f} C")
"""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Protocol

from ..circuit.devices import Actuator, Relay, Sensor
from ..circuit.interrogation import PowerStatus
from ..config import LoopLayout, PlantConfig, SimConfig
from ..control.interfaces import ControlInputs, OperatorAction, OperatorKey
from ..control.pid import PIDController, PIDParams
from ..plant import plant_params_from_config
from ..plant.actuators import step_actuator
from ..plant.thermal import ThermalState, step_thermal
from .context import SimulationContext
from .electrical import PwmTimer, compute_electrical_state
from .events import DiagnosticTracker, diagnose
from .interfaces import (
    DiagnosticEvent,
    MonitorFrame,
    PlantView,
    RunMetrics,
    RunResult,
    TickSnapshot,
    TimeSeriesSample,
)

logger = logging.getLogger(__name__)


class ScheduledAction(Protocol):
    """Anything with a tick index and an effect on the kernel."""
    at_tick: int

    def apply(self, kernel: "SimulationKernel") -> None:
        ...


class SimulationKernel:
    """
    Simulation Kernel - the tick orchestrator for TempCon.

    Mutations (wiring, faults, supply, operator keys) are applied between
    ticks, through the context, ``queue_operator_action`` or scripted
    actions passed to ``run``. A tick never observes a half-applied edit.

    Ticks are numbered from 0. ``TickSnapshot.time_s`` is the simulated
    time at the end of the tick.

    Attributes:
        context: Wiring and devices of the rig.
        layout: Device ids of the standard loops.
        controller: The PID controller.
        pwm: Shared output PWM timer.
        events: Every status-change event since the last reset.
    """

    def __init__(
        self,
        config: SimConfig,
        context: SimulationContext,
        *,
        layout: LoopLayout | None = None,
        plant_config: PlantConfig | None = None,
        pid_params: PIDParams | None = None,
    ) -> None:
        """
        Initialize the Simulation Kernel.

        Args:
            config: Simulation configuration (name, ticks, sample interval, dt)
            context: Wiring and device registry of the rig
            layout: Device ids of the standard loops (defaults to the
                    standard oven rig ids)
            plant_config: Plant, actuator and electrical defaults
            pid_params: Initial controller parameters
        """
        self._cfg = config
        self.context = context
        self.layout = layout or LoopLayout()
        self._plant_cfg = plant_config or PlantConfig()
        self._thermal_params, self._heater_lag, self._fan_lag = plant_params_from_config(
            self._plant_cfg
        )
        self.controller = PIDController(pid_params)
        self.pwm = PwmTimer(self._plant_cfg.pwm_period_s)
        self._tracker = DiagnosticTracker()
        self.reset()

    def reset(self) -> None:
        """Return time, controller, plant and device behaviour to their initial state."""
        self._tick = 0
        self._time_s = 0.0
        self._plant = ThermalState.at_ambient(self._thermal_params)
        self._last_power: PowerStatus | None = None
        self.last_snapshot: TickSnapshot | None = None
        self.events: list[DiagnosticEvent] = []
        self.controller.reset()
        self.pwm.reset()
        self._tracker.reset()

        registry = self.context.registry
        for relay in registry.of_type(Relay):
            relay.is_energized = False
            relay.coil_current_a = 0.0
        for actuator in registry.of_type(Actuator):
            actuator.power = 0.0
        for sensor in registry.of_type(Sensor):
            sensor.temp_c = self._plant.sensed_c

    @property
    def tick_index(self) -> int:
        """Index of the next tick to run."""
        return self._tick

    @property
    def time_s(self) -> float:
        return self._time_s

    @property
    def plant_state(self) -> ThermalState:
        return self._plant

    def queue_operator_action(
        self,
        action: OperatorAction | OperatorKey | str,
        value: float | None = None,
    ) -> None:
        """Queue a front-panel action for the controller's next step."""
        if not isinstance(action, OperatorAction):
            action = OperatorAction(OperatorKey(action), value)
        logger.debug("operator action %s%s", action.key.value,
                     f"={action.value}" if action.value is not None else "")
        self.controller.queue_action(action)

    def _actuator(self, device_id: str) -> Actuator | None:
        device = self.context.registry.find(device_id)
        return device if isinstance(device, Actuator) else None

    # ──────────────────────────────────────────────────────────────────────
    # One tick
    # ──────────────────────────────────────────────────────────────────────

    def step(self) -> TickSnapshot:
        """
        Run one tick and publish its snapshot.

        Order: PWM timer -> electrical pass -> relay coils -> controller
        -> actuators -> plant -> sensor temperature -> diagnosis.
        """
        dt = self._cfg.dt_s
        registry = self.context.registry
        layout = self.layout

        # ─────────────────────────────────────────────────────────────
        # Electrical pass with the duties from the previous tick
        # ─────────────────────────────────────────────────────────────
        self.pwm.advance(dt)
        elec = compute_electrical_state(
            self.context.connections,
            registry,
            layout,
            heat_duty=self.controller.heat_duty,
            cool_duty=self.controller.cool_duty,
            pwm=self.pwm,
        )

        if elec.power is not self._last_power:
            logger.info("tick %d: controller power %s", self._tick, elec.power.value)
            self._last_power = elec.power

        # ─────────────────────────────────────────────────────────────
        # Relay coils follow the propagated voltages; contacts take
        # effect on the next tick's clustering
        # ─────────────────────────────────────────────────────────────
        for relay in registry.of_type(Relay):
            coil_v = elec.voltages.between(relay.terminal("l"), relay.terminal("r"))
            if relay.sense_coil(coil_v):
                logger.debug("relay %s %s", relay.device_id,
                             "picked up" if relay.is_energized else "released")

        # ─────────────────────────────────────────────────────────────
        # Controller
        # ─────────────────────────────────────────────────────────────
        control = self.controller.step(
            ControlInputs(
                dt_s=dt,
                input_ma=elec.transmitter_ma if elec.controller_powered else None,
                powered=elec.controller_powered,
            )
        )

        # ─────────────────────────────────────────────────────────────
        # Actuators: driven only through a connected output loop
        # ─────────────────────────────────────────────────────────────
        heater = self._actuator(layout.heater)
        fan = self._actuator(layout.fan)
        if heater is not None:
            heater.power = step_actuator(
                heater.power,
                drive=control.heat_duty if elec.output_active(1) else 0.0,
                dt_s=dt,
                p=self._heater_lag,
                stuck=heater.is_stuck,
            )
        if fan is not None:
            fan.power = step_actuator(
                fan.power,
                drive=control.cool_duty if elec.output_active(2) else 0.0,
                dt_s=dt,
                p=self._fan_lag,
                stuck=fan.is_stuck,
            )
        heater_power = heater.power if heater is not None else 0.0
        fan_power = fan.power if fan is not None else 0.0

        # ─────────────────────────────────────────────────────────────
        # Plant, then the sensor element follows the sensed temperature
        # ─────────────────────────────────────────────────────────────
        self._plant = step_thermal(
            self._plant,
            heater_power=heater_power,
            fan_power=fan_power,
            p=self._thermal_params,
        )
        sensor = registry.find(layout.sensor)
        if isinstance(sensor, Sensor):
            sensor.temp_c = self._plant.sensed_c

        # ─────────────────────────────────────────────────────────────
        # Diagnosis and monitor frame
        # ─────────────────────────────────────────────────────────────
        diagnosis = diagnose(
            controller_powered=elec.controller_powered,
            transmitter_ma=elec.transmitter_ma,
            pv=control.pv,
            output_active=(elec.output_active(1), elec.output_active(2)),
            bus=elec.bus,
        )

        self._time_s = (self._tick + 1) * dt
        snapshot = TickSnapshot(
            tick=self._tick,
            time_s=self._time_s,
            power_status=elec.power,
            controller_powered=elec.controller_powered,
            sensor=elec.sensor,
            transmitter_loop=elec.transmitter_loop,
            output_loops=elec.outputs,
            bus_status=elec.bus,
            sensed_loop_currents=elec.loop_currents,
            terminal_voltages=elec.voltages.freeze(),
            clusters=elec.clusters.clusters,
            controller=control,
            plant=PlantView(
                core_c=self._plant.core_c,
                delayed_c=self._plant.delayed_c,
                sensed_c=self._plant.sensed_c,
            ),
            heater_power=heater_power,
            fan_power=fan_power,
            relays_energized=MappingProxyType(
                {r.device_id: r.is_energized for r in registry.of_type(Relay)}
            ),
            ammeter_ma=elec.ammeter_ma,
            multimeter_value=elec.multimeter_value,
            diagnosis=diagnosis,
            monitor=None,
        )
        if snapshot.bus_connected:
            snapshot = _with_monitor(snapshot)

        self.events.extend(self._tracker.observe(snapshot))
        self.last_snapshot = snapshot
        self._tick += 1
        return snapshot

    # ──────────────────────────────────────────────────────────────────────
    # Many ticks
    # ──────────────────────────────────────────────────────────────────────

    def run(
        self,
        ticks: int | None = None,
        script: Iterable[ScheduledAction] | None = None,
    ) -> RunResult:
        """
        Run the simulation for a number of ticks.

        Scripted actions are applied, in order, just before the tick whose
        index equals their ``at_tick``; actions scheduled before the current
        tick index are applied before the first tick of this run. The kernel
        is not reset, so consecutive runs continue where the last one ended.

        Args:
            ticks: Ticks to run (defaults to ``config.ticks``)
            script: Scheduled actions

        Returns:
            RunResult with metrics, sampled time series and events
        """
        start_time = datetime.now(timezone.utc).isoformat()
        ticks = self._cfg.ticks if ticks is None else ticks
        if ticks < 0:
            raise ValueError("ticks must be >= 0")
        every = self._cfg.sample_every

        pending = sorted(script or (), key=lambda a: a.at_tick)
        timeseries: list[TimeSeriesSample] = []
        first_event = len(self.events)
        max_sensed = self._plant.sensed_c

        logger.info("run %r: %d ticks at dt=%g s", self._cfg.name, ticks, self._cfg.dt_s)

        for i in range(ticks):
            while pending and pending[0].at_tick <= self._tick:
                pending.pop(0).apply(self)

            snap = self.step()
            max_sensed = max(max_sensed, snap.plant.sensed_c)

            if i % every == 0 or i == ticks - 1:
                timeseries.append(_sample(snap))

        finish_time = datetime.now(timezone.utc).isoformat()
        events = self.events[first_event:]
        metrics = RunMetrics(
            total_ticks=ticks,
            dt_s=self._cfg.dt_s,
            sim_time_s=self._time_s,
            start_time=start_time,
            finish_time=finish_time,
            scenario_name=self._cfg.name,
            final_sensed_c=self._plant.sensed_c,
            max_sensed_c=max_sensed,
            event_count=len(events),
        )

        # Validate that metrics are serializable (fail-fast check)
        _ = asdict(metrics)

        logger.info(
            "run %r finished: t=%.1f s, sensed %.2f C, %d event(s)",
            self._cfg.name, self._time_s, self._plant.sensed_c, len(events),
        )
        return RunResult(
            metrics=metrics,
            timeseries=timeseries,
            events=events,
            final=self.last_snapshot if ticks > 0 else None,
        )


def _with_monitor(snap: TickSnapshot) -> TickSnapshot:
    """Attach the frame the monitor station receives over a connected bus."""
    ctl = snap.controller
    frame = MonitorFrame(
        pv=ctl.pv,
        sv=ctl.sv,
        out1_pct=ctl.heat_duty * 100.0,
        out2_pct=ctl.cool_duty * 100.0,
        diagnosis=snap.diagnosis,
    )
    return replace(snap, monitor=frame)


def _sample(snap: TickSnapshot) -> TimeSeriesSample:
    ctl = snap.controller
    return TimeSeriesSample(
        tick=snap.tick,
        time_s=snap.time_s,
        core_c=snap.plant.core_c,
        delayed_c=snap.plant.delayed_c,
        sensed_c=snap.plant.sensed_c,
        pv=ctl.pv,
        sv=ctl.sv,
        out_pct=ctl.out_pct,
        heat_duty=ctl.heat_duty,
        cool_duty=ctl.cool_duty,
        heater_power=snap.heater_power,
        fan_power=snap.fan_power,
        transmitter_ma=snap.sensed_loop_currents["transmitter"],
        power_status=snap.power_status.value,
        mode=ctl.mode.value,
    )
