"""
Worst-case render length under time-varying playback rate.

Bounds the output by the curve's global minimum rate (slowest point held for the
whole source), plus a safety tail for effect decay. Conservative for the curves
seen in practice, but not a path integral: a curve with several deep dips is
still bounded by its single lowest value.
"""
import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

from vocalfx.automation.curve import CurveSnapshot, rate_factor
from vocalfx.core.errors import RenderAllocationError
from vocalfx.core.types import EffectSettings

logger = logging.getLogger(__name__)

DRY_TAIL_S = 1.5
EFFECT_TAIL_S = 4.0
MAX_RENDER_SECONDS = float(os.environ.get("VOCALFX_MAX_RENDER_SECONDS", "3600"))


@dataclass(frozen=True)
class DurationEstimate:
    worst_case_s: float
    tail_s: float
    frames: int

    @property
    def total_s(self) -> float:
        return self.worst_case_s + self.tail_s


def safety_tail(effects: Optional[EffectSettings]) -> float:
    """1.5 s dry; 4.0 s when delay or reverb will ring past the source."""
    if effects is not None and effects.active_tail:
        return EFFECT_TAIL_S
    return DRY_TAIL_S


def worst_case_duration(source_duration: float, speed: float, curve: Optional[CurveSnapshot]) -> float:
    """source_duration / (speed * 2 ** (min_semitone / 12))."""
    if not math.isfinite(speed) or speed <= 0.0:
        raise RenderAllocationError(f"speed multiplier must be positive and finite, got {speed}")
    if not math.isfinite(source_duration) or source_duration < 0.0:
        raise RenderAllocationError(f"source duration must be non-negative and finite, got {source_duration}")
    min_semitone = curve.min_semitone if curve is not None else 0.0
    min_effective_speed = speed * rate_factor(min_semitone)
    if not math.isfinite(min_effective_speed) or min_effective_speed <= 0.0:
        raise RenderAllocationError(f"minimum effective speed is degenerate: {min_effective_speed}")
    return source_duration / min_effective_speed


def estimate_render_length(
    source_duration: float,
    speed: float,
    curve: Optional[CurveSnapshot],
    effects: Optional[EffectSettings],
    sample_rate: int,
) -> DurationEstimate:
    """
    Frames to allocate: ceil(worst_case * sr) + ceil(tail * sr).
    Raises RenderAllocationError instead of returning a pathological size.
    """
    if sample_rate <= 0:
        raise RenderAllocationError(f"sample rate must be positive, got {sample_rate}")
    worst_case = worst_case_duration(source_duration, speed, curve)
    tail = safety_tail(effects)
    if worst_case + tail > MAX_RENDER_SECONDS:
        raise RenderAllocationError(
            f"render of {worst_case + tail:.1f}s exceeds limit of {MAX_RENDER_SECONDS:.0f}s"
        )
    frames = int(math.ceil(worst_case * sample_rate)) + int(math.ceil(tail * sample_rate))
    logger.debug(
        "render length: worst_case=%.3fs tail=%.1fs frames=%d", worst_case, tail, frames
    )
    return DurationEstimate(worst_case_s=worst_case, tail_s=tail, frames=frames)
