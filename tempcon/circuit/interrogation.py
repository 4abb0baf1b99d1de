"""
Electrical interrogation of the standard loops.

Each classifier is a pure function of the tick's cluster map, resistance
network and static device parameters. None of them raise for missing
wiring: a terminal that sits in no cluster is simply disconnected, and the
classifiers report OPEN / NO_LINK / NOT_WIRED instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from tempcon.circuit.clustering import ClusterMap
from tempcon.circuit.reduction import OPEN_CIRCUIT, ResistanceNetwork

# Bridge resistance below this reads as a shorted element (ohm)
SHORT_THRESHOLD_OHMS = 0.5
# Bridge resistance above this reads as an open element (ohm)
OPEN_THRESHOLD_OHMS = 1000.0


class PowerStatus(str, Enum):
    POWER_ON = "POWER_ON"
    REVERSE = "REVERSE"
    SHORT = "SHORT"
    OPEN = "OPEN"


class SensorStatus(str, Enum):
    NORMAL = "NORMAL"
    OPEN = "OPEN"
    SHORT = "SHORT"


class LoopReason(str, Enum):
    NORMAL = "NORMAL"
    NO_LOOP = "NO_LOOP"
    SHORT_LOOP = "SHORT_LOOP"
    DEVICE_FAULT = "DEVICE_FAULT"


class OutputStatus(str, Enum):
    CONNECTED = "CONNECTED"
    OPEN = "OPEN"
    SHORT = "SHORT"


class OutputReason(str, Enum):
    LOAD_DETECTED = "LOAD_DETECTED"
    NOT_WIRED = "NOT_WIRED"
    SHORT_CIRCUIT = "SHORT_CIRCUIT"
    OPEN_LOOP = "OPEN_LOOP"
    CONTROLLER_FAULT = "CONTROLLER_FAULT"


class BusStatus(str, Enum):
    CONNECTED = "CONNECTED"
    REVERSED = "REVERSED"
    SHORTED = "SHORTED"
    NO_LINK = "NO_LINK"


@dataclass(frozen=True, slots=True)
class SensorReading:
    status: SensorStatus
    ohms: float             # 0 when shorted, inf when open


@dataclass(frozen=True, slots=True)
class LoopContinuity:
    active: bool
    reason: LoopReason


@dataclass(frozen=True, slots=True)
class OutputLoop:
    status: OutputStatus
    reason: OutputReason
    ohms: float = OPEN_CIRCUIT

    @property
    def connected(self) -> bool:
        return self.status is OutputStatus.CONNECTED


def check_power(
    clusters: ClusterMap,
    *,
    supply_pos: str,
    supply_neg: str,
    load_pos: str,
    load_neg: str,
) -> PowerStatus:
    """
    Classify how a consumer's power pins are wired to a supply.

    SHORT when either side's two terminals are bonded; POWER_ON for
    +->pos / -->neg; REVERSE when swapped; OPEN otherwise (including any
    unwired terminal).
    """
    if clusters.same(supply_pos, supply_neg) or clusters.same(load_pos, load_neg):
        return PowerStatus.SHORT

    c_sp, c_sn = clusters.cluster_of(supply_pos), clusters.cluster_of(supply_neg)
    c_lp, c_ln = clusters.cluster_of(load_pos), clusters.cluster_of(load_neg)
    if None in (c_sp, c_sn, c_lp, c_ln):
        return PowerStatus.OPEN

    if c_lp == c_sp and c_ln == c_sn:
        return PowerStatus.POWER_ON
    if c_lp == c_sn and c_ln == c_sp:
        return PowerStatus.REVERSE
    return PowerStatus.OPEN


def check_sensor(
    network: ResistanceNetwork,
    *,
    lead: str,
    common: str,
    compensation: str | None = None,
) -> SensorReading:
    """
    Classify the element wired across a sensor input.

    For a 3-wire input the compensation terminal must be bonded to the
    common terminal by wiring, otherwise the input reads open.
    """
    clusters = network.clusters
    c_lead, c_common = clusters.cluster_of(lead), clusters.cluster_of(common)
    if c_lead is None or c_common is None:
        return SensorReading(SensorStatus.OPEN, OPEN_CIRCUIT)
    if compensation is not None and clusters.cluster_of(compensation) != c_common:
        return SensorReading(SensorStatus.OPEN, OPEN_CIRCUIT)

    if c_lead == c_common:
        return SensorReading(SensorStatus.SHORT, 0.0)

    bridge = network.bridge(c_lead, c_common)
    if bridge.count == 0 or bridge.ohms > OPEN_THRESHOLD_OHMS:
        return SensorReading(SensorStatus.OPEN, OPEN_CIRCUIT)
    if bridge.ohms < SHORT_THRESHOLD_OHMS:
        return SensorReading(SensorStatus.SHORT, bridge.ohms)
    return SensorReading(SensorStatus.NORMAL, bridge.ohms)


def check_current_loop(
    clusters: ClusterMap,
    *,
    device_pos: str,
    device_neg: str,
    input_pos: str,
    input_neg: str,
    device_fault: bool = False,
) -> LoopContinuity:
    """
    Two-wire loop continuity: the device must sit in series in the
    controller's feed loop (pos->input_pos, neg->input_neg) and report no
    internal break.
    """
    wired = (device_pos, device_neg, input_pos, input_neg)
    if not all(clusters.is_wired(t) for t in wired):
        return LoopContinuity(False, LoopReason.NO_LOOP)
    if clusters.same(input_pos, input_neg):
        return LoopContinuity(False, LoopReason.SHORT_LOOP)
    if not (clusters.same(device_pos, input_pos) and clusters.same(device_neg, input_neg)):
        return LoopContinuity(False, LoopReason.NO_LOOP)
    if device_fault:
        return LoopContinuity(False, LoopReason.DEVICE_FAULT)
    return LoopContinuity(True, LoopReason.NORMAL)


def check_output_loop(
    network: ResistanceNetwork,
    *,
    out_pos: str,
    out_neg: str,
    output_fault: bool = False,
) -> OutputLoop:
    """
    Classify a controller output pair by the load bridged across it.

    An explicit output fault reads OPEN whatever the wiring, modelling a
    broken downstream loop behind a healthy controller.
    """
    clusters = network.clusters
    c_pos, c_neg = clusters.cluster_of(out_pos), clusters.cluster_of(out_neg)
    if c_pos is None or c_neg is None:
        return OutputLoop(OutputStatus.OPEN, OutputReason.NOT_WIRED)
    if output_fault:
        return OutputLoop(OutputStatus.OPEN, OutputReason.CONTROLLER_FAULT)
    if c_pos == c_neg:
        return OutputLoop(OutputStatus.SHORT, OutputReason.SHORT_CIRCUIT, 0.0)

    bridge = network.bridge(c_pos, c_neg)
    if bridge.count == 0 or math.isinf(bridge.ohms) or bridge.ohms > OPEN_THRESHOLD_OHMS:
        return OutputLoop(OutputStatus.OPEN, OutputReason.OPEN_LOOP)
    return OutputLoop(OutputStatus.CONNECTED, OutputReason.LOAD_DETECTED, bridge.ohms)


def check_bus(
    clusters: ClusterMap,
    *,
    near_a: str,
    near_b: str,
    far_a: str,
    far_b: str,
) -> BusStatus:
    """Two-conductor bus continuity between a near and a far station."""
    if not all(clusters.is_wired(t) for t in (near_a, near_b, far_a, far_b)):
        return BusStatus.NO_LINK
    if clusters.same(near_a, near_b) or clusters.same(far_a, far_b):
        return BusStatus.SHORTED
    if clusters.same(near_a, far_a) and clusters.same(near_b, far_b):
        return BusStatus.CONNECTED
    if clusters.same(near_a, far_b) and clusters.same(near_b, far_a):
        return BusStatus.REVERSED
    return BusStatus.NO_LINK
