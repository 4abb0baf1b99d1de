from __future__ import annotations

import pytest

from tempcon.circuit.devices import Resistor, UnknownDeviceError
from tempcon.circuit.interrogation import (
    BusStatus,
    LoopReason,
    OutputReason,
    PowerStatus,
    SensorStatus,
)
from tempcon.circuit.terminals import WiringError, terminal_id
from tempcon.config import SimConfig
from tempcon.scenarios import Stage, build_oven_rig, standard_wiring, wire_stages
from tempcon.sim.context import SimulationContext
from tempcon.sim.interfaces import TransmitterFault
from tempcon.sim.kernel import SimulationKernel


@pytest.fixture
def context() -> SimulationContext:
    """Unwired oven rig with the supply switched on."""
    ctx = SimulationContext(build_oven_rig())
    ctx.set_supply("dcpower", on=True)
    return ctx


def first_tick(context: SimulationContext):
    cfg = SimConfig.from_args(name="wiring", ticks=1, out_dir=None)
    return SimulationKernel(cfg, context).step()


def test_unwired_rig_is_dead(context):
    snap = first_tick(context)
    assert snap.power_status is PowerStatus.OPEN
    assert not snap.controller_powered
    assert snap.controller.out_pct == 50.0
    assert snap.sensed_loop_currents["transmitter"] == 0.0
    assert snap.bus_status is BusStatus.NO_LINK
    assert snap.monitor is None
    # Unpowered: only the bus can be diagnosed
    assert snap.diagnosis.communication
    assert snap.diagnosis.transmitter is TransmitterFault.NONE
    assert not snap.diagnosis.output1


def test_power_stage_powers_controller(context):
    wire_stages(context, Stage.POWER)
    snap = first_tick(context)
    assert snap.power_status is PowerStatus.POWER_ON
    assert snap.controller_powered
    assert snap.terminal_voltages[terminal_id("pid", "vcc")] == 24.0


def test_supply_off_keeps_topology_status(context):
    wire_stages(context, Stage.POWER)
    context.set_supply("dcpower", on=False)
    snap = first_tick(context)
    assert snap.power_status is PowerStatus.POWER_ON
    assert not snap.controller_powered


def test_reversed_supply(context):
    context.connect("pid", "vcc", "dcpower", "n")
    context.connect("pid", "gnd", "dcpower", "p")
    snap = first_tick(context)
    assert snap.power_status is PowerStatus.REVERSE
    assert not snap.controller_powered


def test_shorted_supply(context):
    wire_stages(context, Stage.POWER)
    context.connect("dcpower", "p", "dcpower", "n")
    assert first_tick(context).power_status is PowerStatus.SHORT


def test_sensor_loop_at_ambient(context):
    """PT100 at 20 C is 107.702 ohm, which the transmitter turns into 7.2 mA."""
    wire_stages(context, Stage.POWER, Stage.SENSOR_LOOP)
    snap = first_tick(context)
    assert snap.sensor.status is SensorStatus.NORMAL
    assert abs(snap.sensor.ohms - 107.702) < 1e-6
    assert snap.transmitter_loop.reason is LoopReason.NORMAL
    assert abs(snap.sensed_loop_currents["transmitter"] - 7.2) < 1e-6
    assert abs(snap.controller.pv - 20.0) < 1e-6
    assert abs(snap.ammeter_ma - 7.2) < 1e-6
    assert abs(snap.terminal_voltages[terminal_id("pid", "ni1")] - 1.8) < 1e-6


@pytest.mark.parametrize("ohms, expected_ma", [(100.0, 4.0), (138.51, 20.0)])
def test_decade_box_on_transmitter_input(context, ohms, expected_ma):
    """A fixed resistor in place of the PT100: 0 C gives 4 mA, 100 C gives 20 mA."""
    context.registry.add(Resistor("rbox", resistance=ohms))
    wire_stages(context, Stage.POWER)
    for conn in standard_wiring()[Stage.SENSOR_LOOP][3:]:
        context.add_connection(conn)
    context.connect("rbox", "l", "trans", "l")
    context.connect("rbox", "r", "trans", "m")
    context.connect("rbox", "r", "trans", "r")
    snap = first_tick(context)
    assert snap.sensor.status is SensorStatus.NORMAL
    assert abs(snap.sensor.ohms - ohms) < 1e-9
    assert abs(snap.sensed_loop_currents["transmitter"] - expected_ma) < 1e-6


def test_ammeter_reversed_leads_read_negative(context):
    wire_stages(context, Stage.POWER, Stage.SENSOR_LOOP)
    context.disconnect("pid", "pi1", "ampmeter", "p")
    context.disconnect("ampmeter", "n", "trans", "p")
    context.connect("pid", "pi1", "ampmeter", "n")
    context.connect("ampmeter", "p", "trans", "p")
    snap = first_tick(context)
    assert snap.transmitter_loop.active
    assert abs(snap.ammeter_ma + 7.2) < 1e-6


def test_two_wire_sensor_reads_open(context):
    """Without the compensation lead the 3-wire input reads open."""
    wire_stages(context, Stage.POWER, Stage.SENSOR_LOOP)
    context.disconnect("pt", "r", "trans", "r")
    snap = first_tick(context)
    assert snap.sensor.status is SensorStatus.OPEN
    assert snap.sensed_loop_currents["transmitter"] == 21.6


def test_swapped_transmitter_loop(context):
    wire_stages(context, Stage.POWER)
    for conn in standard_wiring()[Stage.SENSOR_LOOP][:3]:
        context.add_connection(conn)
    context.connect("pid", "pi1", "trans", "n")
    context.connect("trans", "p", "pid", "ni1")
    snap = first_tick(context)
    assert snap.transmitter_loop.reason is LoopReason.NO_LOOP
    assert snap.sensed_loop_currents["transmitter"] == 0.0
    assert snap.diagnosis.transmitter is TransmitterFault.LOOP_BREAK
    # No current: PV reads 25 % below the range
    assert abs(snap.controller.pv + 25.0) < 1e-9


def test_output_loops_see_relay_coils(context):
    wire_stages(context, *Stage)
    snap = first_tick(context)
    out1, out2 = snap.output_loops
    assert out1.reason is OutputReason.LOAD_DETECTED
    assert abs(out1.ohms - 120.0) < 1e-9
    assert out2.connected
    assert not snap.diagnosis.output1
    assert not snap.diagnosis.output2


def test_missing_output_stage_is_diagnosed(context):
    wire_stages(context, Stage.POWER, Stage.SENSOR_LOOP, Stage.OUTPUT1, Stage.BUS)
    snap = first_tick(context)
    assert snap.output_loops[1].reason is OutputReason.NOT_WIRED
    assert snap.diagnosis.output2
    assert not snap.diagnosis.output1


def test_multimeter_across_supply(context):
    wire_stages(context, Stage.POWER)
    context.connect("multimeter", "v", "dcpower", "p")
    context.connect("multimeter", "com", "dcpower", "n")
    context.set_meter_mode("multimeter", "DCV")
    assert abs(first_tick(context).multimeter_value - 24.0) < 1e-9


def test_multimeter_measures_pt100(context):
    context.connect("multimeter", "v", "pt", "l")
    context.connect("multimeter", "com", "pt", "r")
    context.set_meter_mode("multimeter", "RES")
    assert abs(first_tick(context).multimeter_value - 107.702) < 1e-6


def test_bus_wiring(context):
    wire_stages(context, Stage.POWER, Stage.BUS)
    assert first_tick(context).bus_status is BusStatus.CONNECTED
    context.disconnect("pid", "a1", "monitor", "a1")
    context.disconnect("pid", "b1", "monitor", "b1")
    context.connect("pid", "a1", "monitor", "b1")
    context.connect("pid", "b1", "monitor", "a1")
    assert first_tick(context).bus_status is BusStatus.REVERSED


def test_context_rejects_bad_endpoints(context):
    with pytest.raises(UnknownDeviceError):
        context.connect("ghost", "p", "pid", "vcc")
    with pytest.raises(WiringError):
        context.connect("pid", "nope", "dcpower", "p")


def test_context_deduplicates_and_disconnects(context):
    assert context.connect("pid", "vcc", "dcpower", "p") is True
    assert context.connect("dcpower", "p", "pid", "vcc") is False
    context.connect("ampmeter", "p", "dcpower", "p")
    assert len(context.connections) == 2
    assert context.disconnect_terminal(terminal_id("dcpower", "p")) == 2
    assert context.connections == ()


def test_supply_voltage_is_clamped(context):
    context.set_supply("dcpower", on=True, voltage=48.0)
    assert context.registry.get("dcpower").voltage == 24.0
    with pytest.raises(ValueError):
        context.set_transmitter_trim("trans", span_adj=0.0)
