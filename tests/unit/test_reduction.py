from __future__ import annotations

import math

from tempcon.circuit.clustering import resolve_clusters
from tempcon.circuit.devices import DeviceRegistry, Monitor, Relay, Resistor
from tempcon.circuit.reduction import OPEN_CIRCUIT, ResistanceNetwork, combine_parallel
from tempcon.circuit.terminals import terminal_id, wire

A = terminal_id("probe", "a1")
B = terminal_id("probe", "b1")


def t(dev: str, port: str) -> str:
    return terminal_id(dev, port)


def network(devices, wires) -> ResistanceNetwork:
    registry = DeviceRegistry([Monitor("probe"), *devices])
    return ResistanceNetwork(resolve_clusters(wires, registry), registry)


def test_combine_parallel():
    assert abs(combine_parallel([100.0, 100.0]) - 50.0) < 1e-9
    assert combine_parallel([0.0, 100.0]) == 0.0
    assert combine_parallel([math.inf, 200.0]) == 200.0
    assert combine_parallel([]) == OPEN_CIRCUIT
    assert combine_parallel([math.inf]) == OPEN_CIRCUIT


def test_direct_parallel_branches():
    net = network(
        [Resistor("r1", resistance=100.0), Resistor("r2", resistance=300.0)],
        [
            wire(A, t("r1", "l")), wire(t("r1", "r"), B),
            wire(A, t("r2", "l")), wire(t("r2", "r"), B),
        ],
    )
    bridge = net.bridge_between(A, B)
    assert bridge.count == 2
    assert abs(bridge.ohms - 75.0) < 1e-9
    assert abs(net.equivalent_between(A, B) - 75.0) < 1e-9


def test_one_hop_series_path():
    """A -> X -> B through two resistors adds in series."""
    net = network(
        [Resistor("r1", resistance=120.0), Resistor("r2", resistance=80.0)],
        [wire(A, t("r1", "l")), wire(t("r1", "r"), t("r2", "l")), wire(t("r2", "r"), B)],
    )
    assert net.bridge_between(A, B).count == 0
    assert abs(net.equivalent_between(A, B) - 200.0) < 1e-9


def test_direct_and_one_hop_in_parallel():
    net = network(
        [
            Resistor("r1", resistance=100.0),
            Resistor("r2", resistance=100.0),
            Resistor("direct", resistance=200.0),
        ],
        [
            wire(A, t("r1", "l")), wire(t("r1", "r"), t("r2", "l")), wire(t("r2", "r"), B),
            wire(A, t("direct", "l")), wire(t("direct", "r"), B),
        ],
    )
    assert abs(net.equivalent_between(A, B) - 100.0) < 1e-9


def test_two_hops_are_not_resolved():
    """Paths deeper than one intermediate cluster read open."""
    net = network(
        [Resistor(f"r{i}", resistance=10.0) for i in range(3)],
        [
            wire(A, t("r0", "l")),
            wire(t("r0", "r"), t("r1", "l")),
            wire(t("r1", "r"), t("r2", "l")),
            wire(t("r2", "r"), B),
        ],
    )
    assert math.isinf(net.equivalent_between(A, B))


def test_relay_coil_is_resistive():
    net = network([Relay("k1")], [wire(A, t("k1", "l")), wire(t("k1", "r"), B)])
    assert abs(net.equivalent_between(A, B) - 120.0) < 1e-9


def test_bypassed_device_contributes_nothing():
    """A resistor with both ends in one cluster is not an edge."""
    net = network(
        [Resistor("r1", resistance=50.0)],
        [wire(A, t("r1", "l")), wire(A, t("r1", "r")), wire(t("x", "x"), B)],
    )
    ca = net.clusters.cluster_of(A)
    assert net.neighbours(ca) == {}


def test_same_cluster_and_unwired():
    net = network([], [wire(A, B)])
    assert net.equivalent_between(A, B) == 0.0
    assert math.isinf(net.equivalent_between(A, t("nowhere", "x")))
