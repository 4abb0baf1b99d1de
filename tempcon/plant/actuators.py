from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ActuatorParams:
    """
    First-order power lag of an actuator.

    Power approaches its drive at ``rise_per_s`` while increasing and at
    ``fall_per_s`` while decreasing.
    """
    rise_per_s: float
    fall_per_s: float
    snap: float = 0.001         # Power within this of 0 or 1 snaps to the bound

    def __post_init__(self) -> None:
        if self.rise_per_s <= 0 or self.fall_per_s <= 0:
            raise ValueError("actuator rates must be > 0")


HEATER_LAG = ActuatorParams(rise_per_s=5.0, fall_per_s=2.0)
FAN_LAG = ActuatorParams(rise_per_s=3.0, fall_per_s=1.0)


def step_actuator(
    power: float,
    *,
    drive: float,
    dt_s: float,
    p: ActuatorParams,
    stuck: bool = False,
) -> float:
    """
    Step an actuator's output power toward its drive.

    Args:
        power: Current power [0, 1]
        drive: Commanded power [0, 1] (clamped)
        dt_s: Time step in seconds
        p: Lag parameters
        stuck: A stuck actuator keeps its power whatever the drive

    Returns:
        New power in [0, 1]
    """
    if stuck or dt_s <= 0:
        return power
    drive = max(0.0, min(1.0, drive))
    rate = p.rise_per_s if drive > power else p.fall_per_s
    # Never overshoot the drive on a long step
    alpha = min(1.0, rate * dt_s)
    power += (drive - power) * alpha
    if power < p.snap:
        return 0.0
    if power > 1.0 - p.snap:
        return 1.0
    return power
