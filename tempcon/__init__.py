"""
TempCon: electrical-topology and closed-loop process engine for a temperature
control training rig.

Features:
- Union-find clustering of freeform wiring into equal-potential sets
- Zero-resistance bridging and bounded resistance network reduction
- Pure loop classifiers: power, sensor, transmitter loop, outputs, RS-485 bus
- PID controller with split-range output and a timeout-driven parameter menu
- Three-stage thermal plant (core inertia, transport delay, sensor lag)
- Deterministic tick orchestrator with JSON/JSONL run artifacts
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
