"""
Panel ammeter and handheld multimeter readings.

A meter on a current range is a zero-ohm bond, so it merges into the cluster
of the loop it is spliced into. The reading is that loop's current; its
sign comes from which way round the meter leads are wired, judged from the
wires directly attached to the meter terminals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from tempcon.circuit.clustering import ClusterMap
from tempcon.circuit.devices import Ammeter, MeterMode, Multimeter
from tempcon.circuit.reduction import ResistanceNetwork
from tempcon.circuit.terminals import Connection
from tempcon.circuit.voltage import VoltageMap

# Ohms range display value for an open circuit
OVERRANGE_OHMS = 1e8


@dataclass(frozen=True, slots=True)
class LoopCurrent:
    """
    Current flowing in one of the rig's loops.

    ``sources`` are terminals current leaves a device through, ``sinks`` are
    terminals it enters a device through.
    """
    name: str
    ma: float
    sources: tuple[str, ...]
    sinks: tuple[str, ...]


def _directly_wired(connections: Iterable[Connection], a: str, b: str) -> bool:
    return any(c.touches(a) and c.touches(b) for c in connections if a != b)


def read_series_current(
    clusters: ClusterMap,
    connections: list[Connection],
    *,
    meter_in: str,
    meter_out: str,
    loops: Iterable[LoopCurrent],
) -> float:
    """
    Current (mA) through a meter spliced in series, signed by lead polarity.

    Returns 0 when the meter is not bonded into any known loop.
    """
    if not clusters.same(meter_in, meter_out):
        return 0.0
    idx = clusters.cluster_of(meter_in)
    members = set(clusters.members(idx))
    for loop in loops:
        if members.isdisjoint(loop.sources) and members.isdisjoint(loop.sinks):
            continue
        reversed_leads = any(
            _directly_wired(connections, meter_in, t) for t in loop.sinks
        ) or any(
            _directly_wired(connections, meter_out, t) for t in loop.sources
        )
        return -loop.ma if reversed_leads else loop.ma
    return 0.0


def read_ammeter(
    meter: Ammeter,
    clusters: ClusterMap,
    connections: list[Connection],
    loops: Iterable[LoopCurrent],
) -> float:
    return read_series_current(
        clusters,
        connections,
        meter_in=meter.terminal("p"),
        meter_out=meter.terminal("n"),
        loops=loops,
    )


def read_multimeter(
    meter: Multimeter,
    network: ResistanceNetwork,
    volts: VoltageMap,
    connections: list[Connection],
    loops: Iterable[LoopCurrent],
) -> float:
    """
    Multimeter display value for the selected mode.

    MA: series loop current (mA). DCV: V(v) - V(com) when both leads are
    wired. RES: equivalent resistance between the leads, OVERRANGE_OHMS when
    open. Every other mode reads 0.
    """
    clusters = network.clusters
    v, com, ma = meter.terminal("v"), meter.terminal("com"), meter.terminal("ma")
    match meter.mode:
        case MeterMode.MA:
            return read_series_current(
                clusters, connections, meter_in=ma, meter_out=com, loops=loops
            )
        case MeterMode.DCV:
            if clusters.is_wired(v) and clusters.is_wired(com):
                return volts.between(v, com)
            return 0.0
        case MeterMode.RES:
            ohms = network.equivalent_between(com, v)
            return OVERRANGE_OHMS if ohms > OVERRANGE_OHMS else ohms
        case _:
            return 0.0
