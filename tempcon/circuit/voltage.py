from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from tempcon.circuit.clustering import ClusterMap


class VoltageMap:
    """
    Terminal potentials for one tick, relative to the supply negative.

    Every known terminal starts at 0 V. ``seed`` broadcasts a fixed
    potential to the whole cluster of a terminal (or to the terminal alone
    when it is unwired). Later seeds overwrite earlier ones, which is how
    loop interior potentials refine the rail seeds.
    """

    def __init__(self, clusters: ClusterMap, terminals: Iterable[str]) -> None:
        self._clusters = clusters
        self._volts: dict[str, float] = {tid: 0.0 for tid in terminals}
        for cluster in clusters:
            for tid in cluster:
                self._volts.setdefault(tid, 0.0)

    def seed(self, tid: str, volts: float) -> None:
        idx = self._clusters.cluster_of(tid)
        if idx is None:
            self._volts[tid] = volts
            return
        for member in self._clusters.members(idx):
            self._volts[member] = volts

    def get(self, tid: str) -> float:
        return self._volts.get(tid, 0.0)

    def between(self, tid_a: str, tid_b: str) -> float:
        """Potential difference V(a) - V(b)."""
        return self.get(tid_a) - self.get(tid_b)

    def freeze(self) -> Mapping[str, float]:
        """Read-only copy for publishing in a snapshot."""
        return MappingProxyType(dict(self._volts))


def propagate_voltages(
    clusters: ClusterMap,
    terminals: Iterable[str],
    seeds: Iterable[tuple[str, float]],
) -> VoltageMap:
    """Build a VoltageMap and apply the seeds in order."""
    volts = VoltageMap(clusters, terminals)
    for tid, value in seeds:
        volts.seed(tid, value)
    return volts
