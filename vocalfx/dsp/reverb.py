"""
Synthetic room reverb: a procedurally generated impulse response convolved
against the signal.
"""
import functools
import math
from typing import Optional

import torch
import torchaudio.functional as F

from vocalfx.dsp.envelopes import Envelope
from vocalfx.dsp.noise import Noise, make_generator

DEFAULT_IR_DURATION_S = 2.5
DEFAULT_IR_DECAY = 2.5

# Convolver loudness calibration: -58 dB at 44.1 kHz reference, power floor
GAIN_CALIBRATION_DB = -58.0
GAIN_CALIBRATION_SAMPLE_RATE = 44100.0
MIN_POWER = 0.000125


def synthesize_impulse_response(
    sample_rate: int,
    duration: float = DEFAULT_IR_DURATION_S,
    decay: float = DEFAULT_IR_DECAY,
    seed: Optional[int] = None,
    channels: int = 2,
) -> torch.Tensor:
    """
    Decaying stereo noise tail of int(sample_rate * duration) samples.
    Each channel draws independent uniform noise in [-1, 1) shaped by
    (1 - i/length) ^ decay. Same seed -> same response.
    """
    length = int(sample_rate * duration)
    if length <= 0:
        raise ValueError(f"impulse response length must be positive (sample_rate={sample_rate}, duration={duration})")
    generator = make_generator(seed)
    envelope = Envelope.power_decay(length, decay)
    return torch.stack([Noise.uniform(length, generator) * envelope for _ in range(channels)])


def normalization_scale(ir: torch.Tensor, sample_rate: int) -> float:
    """Gain that brings an arbitrary response to a consistent perceived loudness."""
    power = math.sqrt(float(torch.sum(ir.double() ** 2)) / ir.numel()) if ir.numel() else 0.0
    if not math.isfinite(power) or power < MIN_POWER:
        power = MIN_POWER
    scale = 1.0 / power
    scale *= 10.0 ** (GAIN_CALIBRATION_DB / 20.0)
    scale *= GAIN_CALIBRATION_SAMPLE_RATE / sample_rate
    return scale


def convolve_reverb(
    signal: torch.Tensor,
    ir: torch.Tensor,
    sample_rate: int,
    normalize: bool = True,
) -> torch.Tensor:
    """
    Convolve (channels, frames) signal with a (ir_channels, length) response.
    Channel c uses response channel c % ir_channels; a mono signal against a
    stereo response is rendered in stereo and down-mixed as 0.5 * (L + R).
    Output keeps the input length.
    """
    if signal.dim() == 1:
        signal = signal.unsqueeze(0)
    if ir.dim() == 1:
        ir = ir.unsqueeze(0)
    channels, n = signal.shape
    if n == 0:
        return signal.clone()

    if normalize:
        ir = ir * normalization_scale(ir, sample_rate)

    if channels == 1 and ir.shape[0] > 1:
        wet = F.fftconvolve(signal.expand(ir.shape[0], n), ir)[..., :n]
        return wet.mean(dim=0, keepdim=True)

    kernels = torch.stack([ir[c % ir.shape[0]] for c in range(channels)])
    return F.fftconvolve(signal, kernels)[..., :n]


# Responses are a pure function of their arguments, so they are built once and shared read-only
DEFAULT_IR_SEED = 0


@functools.lru_cache(maxsize=8)
def cached_impulse_response(
    sample_rate: int,
    duration: float = DEFAULT_IR_DURATION_S,
    decay: float = DEFAULT_IR_DECAY,
    seed: int = DEFAULT_IR_SEED,
) -> torch.Tensor:
    """Seeded response shared by the export and live-preview paths."""
    return synthesize_impulse_response(sample_rate, duration=duration, decay=decay, seed=seed)
