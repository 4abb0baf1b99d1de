"""
Equal-potential clustering of terminals.

Stage 1 unions the two endpoints of every electrical connection. Stage 2
(bridging) unions terminal pairs that a device holds at zero resistance:
a closed switch, a relay contact, an ammeter, a multimeter on its current
range, a resistor or sensor at (numerically) zero ohm.

Bridging only joins terminals that stage 1 already placed in a cluster, so
the final clusters cover exactly the terminals referenced by at least one
wire. Union is idempotent and commutative: the partition does not depend on
connection order, duplicates or device order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from tempcon.circuit.devices import (
    Ammeter,
    Device,
    DeviceRegistry,
    MeterMode,
    Multimeter,
    Relay,
    Resistor,
    Sensor,
    Switch,
)
from tempcon.circuit.terminals import Connection, Medium

# Resistances below this are treated as a bond rather than a resistor (ohm)
ZERO_OHM_THRESHOLD = 1e-6


class UnionFind:
    """Disjoint sets over hashable items, registered lazily on first use."""

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}

    def __contains__(self, item: object) -> bool:
        return item in self._parent

    def find(self, item: str) -> str:
        parent = self._parent
        if item not in parent:
            parent[item] = item
            return item
        root = item
        while parent[root] != root:
            root = parent[root]
        # Path compression
        while parent[item] != root:
            parent[item], item = root, parent[item]
        return root

    def union(self, a: str, b: str) -> bool:
        """Join the sets of a and b. Returns False if they were already joined."""
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return False
        self._parent[root_a] = root_b
        return True

    def groups(self) -> list[frozenset[str]]:
        members: dict[str, set[str]] = {}
        for item in self._parent:
            members.setdefault(self.find(item), set()).add(item)
        return [frozenset(m) for m in members.values()]


def zero_resistance_pairs(device: Device) -> list[tuple[str, str]]:
    """Terminal pairs a device currently holds at equal potential."""
    match device:
        case Switch(is_open=False):
            return [(device.terminal("l"), device.terminal("r"))]
        case Relay(is_energized=True):
            return [(device.terminal("COM"), device.terminal("NO"))]
        case Relay():
            return [(device.terminal("COM"), device.terminal("NC"))]
        case Ammeter():
            return [(device.terminal("p"), device.terminal("n"))]
        case Multimeter(mode=MeterMode.MA):
            return [(device.terminal("ma"), device.terminal("com"))]
        case Resistor() | Sensor() if device.resistance < ZERO_OHM_THRESHOLD:
            return [(device.terminal("l"), device.terminal("r"))]
        case _:
            return []


@dataclass(frozen=True, slots=True)
class ClusterMap:
    """
    The partition of wired terminals for one tick.

    Clusters are stored in a deterministic order: terminals sorted inside
    each cluster, clusters sorted by their first terminal. A cluster is
    addressed by its index in ``clusters``.
    """
    clusters: tuple[tuple[str, ...], ...]
    index: dict[str, int]

    @staticmethod
    def from_groups(groups: Iterable[Iterable[str]]) -> "ClusterMap":
        ordered = sorted((tuple(sorted(g)) for g in groups if g), key=lambda c: c[0])
        index = {tid: i for i, cluster in enumerate(ordered) for tid in cluster}
        return ClusterMap(clusters=tuple(ordered), index=index)

    def cluster_of(self, tid: str) -> int | None:
        """Index of the cluster holding ``tid``, or None if it is unwired."""
        return self.index.get(tid)

    def members(self, idx: int) -> tuple[str, ...]:
        return self.clusters[idx]

    def same(self, a: str, b: str) -> bool:
        """True if both terminals are wired and share a cluster."""
        ca = self.index.get(a)
        return ca is not None and ca == self.index.get(b)

    def is_wired(self, tid: str) -> bool:
        return tid in self.index

    def __len__(self) -> int:
        return len(self.clusters)

    def __iter__(self) -> Iterator[tuple[str, ...]]:
        return iter(self.clusters)


def build_clusters(connections: Iterable[Connection]) -> UnionFind:
    """Union the endpoints of every electrical connection."""
    uf = UnionFind()
    for conn in connections:
        if conn.medium != Medium.ELECTRICAL:
            continue
        uf.union(conn.endpoint_a, conn.endpoint_b)
    return uf


def bridge_zero_resistance(uf: UnionFind, registry: DeviceRegistry) -> int:
    """
    Fold device-internal bonds into an existing clustering.

    Returns:
        Number of unions that actually merged two clusters.
    """
    merged = 0
    for device in registry:
        for a, b in zero_resistance_pairs(device):
            if a in uf and b in uf and uf.union(a, b):
                merged += 1
    return merged


def resolve_clusters(
    connections: Iterable[Connection],
    registry: DeviceRegistry | None = None,
) -> ClusterMap:
    """Cluster the wiring and, if a registry is given, apply bridging."""
    uf = build_clusters(connections)
    if registry is not None:
        bridge_zero_resistance(uf, registry)
    return ClusterMap.from_groups(uf.groups())
