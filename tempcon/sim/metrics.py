"""
Artifact writing for TempCon simulation runs.

Artifacts are first-class outputs of the simulation, enabling:
- Regression testing (compare outputs across runs)
- Offline analysis (load and analyze without re-running)
- Integration with external tools (JSON/JSONL formats)

Artifact files produced:
- metrics.json: Run metadata and the final tick's classifications
- timeseries.json: Sampled plant and controller state
- events.jsonl: Status-change events, one per line

Example artifact directory structure:
```
artifacts/runs/20240115_120000_example/
├── metrics.json       # Run metadata
├── timeseries.json    # Plant and controller history
└── events.jsonl       # Status-change stream
```
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .events import write_events_jsonl
from .interfaces import DiagnosticEvent, RunMetrics, RunResult, TickSnapshot, TimeSeriesSample


def _finite(value: float) -> float | None:
    # JSON has no infinity; an open circuit is written as null
    return value if math.isfinite(value) else None


def summarize_snapshot(snap: TickSnapshot) -> dict[str, Any]:
    """JSON-ready summary of a tick's classifications."""
    return {
        "tick": snap.tick,
        "time_s": snap.time_s,
        "power_status": snap.power_status.value,
        "controller_powered": snap.controller_powered,
        "sensor": {"status": snap.sensor.status.value, "ohms": _finite(snap.sensor.ohms)},
        "transmitter_loop": {
            "active": snap.transmitter_loop.active,
            "reason": snap.transmitter_loop.reason.value,
        },
        "outputs": [
            {"status": o.status.value, "reason": o.reason.value, "ohms": _finite(o.ohms)}
            for o in snap.output_loops
        ],
        "bus_status": snap.bus_status.value,
        "loop_currents_ma": dict(snap.sensed_loop_currents),
        "diagnosis": asdict(snap.diagnosis),
    }


def write_run_artifacts(
    *,
    out_path: Path,
    metrics: RunMetrics,
    timeseries: list[TimeSeriesSample] | None = None,
    events: list[DiagnosticEvent] | None = None,
    final: TickSnapshot | None = None,
) -> None:
    """
    Write all simulation artifacts to disk.

    Creates the output directory (if needed) and writes each artifact file
    for which data is provided. metrics.json is always written.

    Args:
        out_path: Output directory path. Created with parents if missing.
        metrics: Run-level metrics. Always written.
        timeseries: Optional samples; written to timeseries.json when non-empty.
        events: Optional events; written to events.jsonl when non-empty.
        final: Optional last snapshot; summarized into metrics.json.
    """
    out_path = Path(out_path)
    out_path.mkdir(parents=True, exist_ok=True)

    _write_metrics_json(out_path, metrics, final)

    if timeseries is not None and len(timeseries) > 0:
        _write_timeseries_json(out_path, timeseries)

    if events is not None and len(events) > 0:
        write_events_jsonl(out_path, events)


def write_result(out_path: Path, result: RunResult) -> None:
    """Write every artifact of a RunResult."""
    write_run_artifacts(
        out_path=out_path,
        metrics=result.metrics,
        timeseries=result.timeseries,
        events=result.events,
        final=result.final,
    )


def _write_metrics_json(
    out_path: Path,
    metrics: RunMetrics,
    final: TickSnapshot | None,
) -> None:
    """
    Write metrics.json artifact.

    Schema:
    {
        "run": {
            "total_ticks": int,
            "dt_s": float,
            "sim_time_s": float,
            "start_time": str (ISO 8601),
            "finish_time": str (ISO 8601),
            "scenario_name": str,
            "final_sensed_c": float,
            "max_sensed_c": float,
            "event_count": int
        },
        "final": {...} | null
    }
    """
    payload = {
        "run": asdict(metrics),
        "final": summarize_snapshot(final) if final is not None else None,
    }

    metrics_path = out_path / "metrics.json"
    metrics_path.write_text(
        json.dumps(payload, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def _write_timeseries_json(
    out_path: Path,
    timeseries: list[TimeSeriesSample],
) -> None:
    """
    Write timeseries.json artifact.

    Schema:
    {
        "samples": [
            {"tick": int, "time_s": float, "core_c": float, ..., "mode": str},
            ...
        ]
    }
    """
    timeseries_payload = {
        "samples": [asdict(s) for s in timeseries],
    }
    timeseries_path = out_path / "timeseries.json"
    timeseries_path.write_text(
        json.dumps(timeseries_payload, indent=2) + "\n",
        encoding="utf-8",
    )
