from __future__ import annotations

from tempcon.sim.context import SimulationContext
from tempcon.sim.electrical import ElectricalState, PwmTimer, compute_electrical_state
from tempcon.sim.interfaces import (
    DiagnosticEvent,
    FaultDiagnosis,
    MonitorFrame,
    PlantView,
    RunMetrics,
    RunResult,
    TickSnapshot,
    TimeSeriesSample,
    TransmitterFault,
)
from tempcon.sim.kernel import SimulationKernel

__all__ = [
    "DiagnosticEvent",
    "ElectricalState",
    "FaultDiagnosis",
    "MonitorFrame",
    "PlantView",
    "PwmTimer",
    "RunMetrics",
    "RunResult",
    "SimulationContext",
    "SimulationKernel",
    "TickSnapshot",
    "TimeSeriesSample",
    "TransmitterFault",
    "compute_electrical_state",
]
