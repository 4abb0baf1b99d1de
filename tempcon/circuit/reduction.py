"""
Resistance between clusters.

This is a bounded reduction, not a network solver. For two clusters A and B
it combines in parallel:

- every resistive device with one terminal in A and the other in B, and
- every one-hop series path A -> X -> B through a third cluster X.

Deeper meshes are not resolved. The rig only ever puts a sensor, a relay
coil or a load between two terminals, optionally through one intermediate
node (a meter in series), so one hop covers every supported loop.

A zero-ohm branch dominates any parallel combination. No branch at all
yields ``OPEN_CIRCUIT``; a zero conductance sum is never divided.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from tempcon.circuit.clustering import ClusterMap
from tempcon.circuit.devices import Device, DeviceRegistry, Relay, Resistor, Sensor

# Sentinel for "no conducting path"
OPEN_CIRCUIT = math.inf


def resistive_branch(device: Device) -> tuple[str, str, float] | None:
    """The (terminal, terminal, ohms) branch a device contributes, if any."""
    match device:
        case Resistor() | Sensor():
            return device.terminal("l"), device.terminal("r"), max(0.0, device.resistance)
        case Relay():
            return device.terminal("l"), device.terminal("r"), device.coil_resistance
        case _:
            return None


def combine_parallel(values: Iterable[float]) -> float:
    """
    Parallel combination with short dominance.

    Open branches (``inf``) are ignored; with nothing left the result is
    ``OPEN_CIRCUIT``.
    """
    conductance = 0.0
    for r in values:
        if r <= 0.0:
            return 0.0
        if math.isinf(r):
            continue
        conductance += 1.0 / r
    if conductance <= 0.0:
        return OPEN_CIRCUIT
    return 1.0 / conductance


@dataclass(frozen=True, slots=True)
class Bridge:
    """Direct parallel resistance between two clusters."""
    ohms: float
    count: int          # Number of devices bridging the pair


class ResistanceNetwork:
    """
    Cluster-level resistance graph for one tick.

    Built once from the cluster map and the registry; each resistive device
    with both terminals wired in different clusters becomes one edge.
    Devices with both terminals in the same cluster are bypassed and
    contribute nothing.
    """

    def __init__(self, clusters: ClusterMap, registry: DeviceRegistry) -> None:
        self._clusters = clusters
        branches: dict[tuple[int, int], list[float]] = {}
        for device in registry:
            branch = resistive_branch(device)
            if branch is None:
                continue
            a, b, ohms = branch
            ca, cb = clusters.cluster_of(a), clusters.cluster_of(b)
            if ca is None or cb is None or ca == cb:
                continue
            branches.setdefault(_pair(ca, cb), []).append(ohms)

        self._bridges = {
            pair: Bridge(ohms=combine_parallel(values), count=len(values))
            for pair, values in branches.items()
        }
        self._adjacent: dict[int, dict[int, float]] = {}
        for (i, j), bridge in self._bridges.items():
            self._adjacent.setdefault(i, {})[j] = bridge.ohms
            self._adjacent.setdefault(j, {})[i] = bridge.ohms

    @property
    def clusters(self) -> ClusterMap:
        return self._clusters

    def bridge(self, a: int, b: int) -> Bridge:
        """Direct parallel resistance between clusters a and b."""
        if a == b:
            return Bridge(ohms=0.0, count=0)
        return self._bridges.get(_pair(a, b), Bridge(ohms=OPEN_CIRCUIT, count=0))

    def bridge_between(self, tid_a: str, tid_b: str) -> Bridge:
        """Direct bridge between the clusters of two terminals; open if either is unwired."""
        ca, cb = self._clusters.cluster_of(tid_a), self._clusters.cluster_of(tid_b)
        if ca is None or cb is None:
            return Bridge(ohms=OPEN_CIRCUIT, count=0)
        return self.bridge(ca, cb)

    def neighbours(self, idx: int) -> dict[int, float]:
        return dict(self._adjacent.get(idx, {}))

    def equivalent(self, a: int, b: int) -> float:
        """Direct plus one-hop series paths between clusters a and b, in parallel."""
        if a == b:
            return 0.0
        paths: list[float] = []
        from_a = self._adjacent.get(a, {})
        if b in from_a:
            paths.append(from_a[b])
        for x, r_ax in from_a.items():
            if x == b:
                continue
            r_xb = self._adjacent.get(x, {}).get(b)
            if r_xb is not None:
                paths.append(r_ax + r_xb)
        return combine_parallel(paths)

    def equivalent_between(self, tid_a: str, tid_b: str) -> float:
        ca, cb = self._clusters.cluster_of(tid_a), self._clusters.cluster_of(tid_b)
        if ca is None or cb is None:
            return OPEN_CIRCUIT
        return self.equivalent(ca, cb)


def _pair(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)
