"""
Offline renderer: variable-rate playback of the full source through a fresh
effect graph into a buffer sized by the worst-case duration estimate.

Synchronous and non-interruptible apart from the optional CancelToken, which is
checked between stages. The source buffer is never modified.
"""
import logging
from typing import Optional

import numpy as np
import torch

from vocalfx.automation.curve import CurveSnapshot
from vocalfx.automation.duration import estimate_render_length
from vocalfx.automation.schedule import nominal_duration, ramp_schedule, semitones_at
from vocalfx.core.types import CancelToken, RenderRequest, WaveformBuffer
from vocalfx.dsp.graph import build_effect_graph, render_graph
from vocalfx.dsp.reverb import DEFAULT_IR_SEED, cached_impulse_response

logger = logging.getLogger(__name__)


def playback_rates(request: RenderRequest, frames: int) -> np.ndarray:
    """Instantaneous rate per output frame: speed * 2 ** (semitone(t) / 12)."""
    source = request.source
    speed = float(request.speed)
    curve = request.curve if request.curve is not None else CurveSnapshot()
    nominal = nominal_duration(source.duration, speed)
    initial, ramps = ramp_schedule(curve, nominal, 0.0)
    times_s = np.arange(frames, dtype=np.float64) / source.sample_rate
    semitones = semitones_at(initial, ramps, times_s)
    return speed * np.power(2.0, semitones / 12.0)


def read_at_positions(samples: torch.Tensor, positions: np.ndarray) -> torch.Tensor:
    """
    Sample (channels, n) at fractional frame positions with linear interpolation.
    Positions at or past the end read silence.
    """
    channels, n = samples.shape
    # One zero past the end so the last frame interpolates toward silence
    padded = torch.nn.functional.pad(samples, (0, 1))
    pos = torch.from_numpy(np.ascontiguousarray(positions, dtype=np.float64))
    valid = pos < n
    idx0 = torch.floor(pos).long().clamp(0, n)
    idx1 = (idx0 + 1).clamp(max=n)
    frac = (pos - idx0.to(torch.float64)).to(samples.dtype)
    out = padded[:, idx0] * (1.0 - frac) + padded[:, idx1] * frac
    out[:, ~valid] = 0.0
    return out


class OfflineRenderer:
    """Renders RenderRequests to finished buffers, effect tails included."""

    def render(self, request: RenderRequest, cancel: Optional[CancelToken] = None) -> WaveformBuffer:
        source = request.source
        sr = source.sample_rate
        estimate = estimate_render_length(
            source.duration, float(request.speed), request.curve, request.effects, sr
        )
        logger.debug(
            "rendering %d ch, %.2fs source -> %d frames (speed=%.3f, effects=%s)",
            source.channels, source.duration, estimate.frames, request.speed, request.effects.to_dict(),
        )
        if cancel is not None:
            cancel.raise_if_cancelled()

        rates = playback_rates(request, estimate.frames)
        # Read position of frame n is the sum of the rates of frames before it
        positions = np.concatenate(([0.0], np.cumsum(rates[:-1]))) if estimate.frames else rates
        resampled = read_at_positions(source.samples, positions)
        if cancel is not None:
            cancel.raise_if_cancelled()

        ir = None
        if request.effects.reverb_active:
            seed = DEFAULT_IR_SEED if request.seed is None else int(request.seed)
            ir = cached_impulse_response(sr, float(request.ir_duration), float(request.ir_decay), seed)
        graph = build_effect_graph(request.effects, sr, impulse_response=ir)
        rendered = render_graph(graph, resampled)
        if cancel is not None:
            cancel.raise_if_cancelled()

        return WaveformBuffer(rendered, sr)
