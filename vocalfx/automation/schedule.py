"""
Curve -> rate automation schedule, shared by the offline renderer and the
playback scheduler so both hear the same pitch at the same nominal time.

Automation is indexed against nominal duration (source duration / speed), so a
curve keeps its shape whatever the base speed.
"""
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from vocalfx.automation.curve import CurveSnapshot


@dataclass(frozen=True)
class RampEvent:
    """Linear ramp reaching `semitone` at `time_s` seconds after (re)start."""
    time_s: float
    semitone: float


def nominal_duration(source_duration: float, speed: float) -> float:
    return source_duration / speed


def ramp_schedule(
    curve: CurveSnapshot,
    nominal: float,
    start_position: float = 0.0,
) -> Tuple[float, List[RampEvent]]:
    """
    Initial semitone at start_position (0..1) and the ramps still ahead of it,
    shifted so t=0 is the (re)start instant.
    """
    start_s = start_position * nominal
    initial = curve.evaluate(start_position)
    ramps = [
        RampEvent(p.time * nominal - start_s, p.semitone)
        for p in curve.points
        if p.time * nominal > start_s
    ]
    return initial, ramps


def semitones_at(initial: float, ramps: List[RampEvent], times_s: np.ndarray) -> np.ndarray:
    """
    Value of the automation at each time: linear ramps between scheduled events,
    holding the last value afterwards.
    """
    event_times = np.array([0.0] + [r.time_s for r in ramps], dtype=np.float64)
    event_values = np.array([initial] + [r.semitone for r in ramps], dtype=np.float64)
    return np.interp(np.asarray(times_s, dtype=np.float64), event_times, event_values)
