"""
Waveshaping distortion: static transfer curve lookup with oversampling.
curve(x) = (3 + k) * x * 20deg / (pi + k * |x|), a soft sigmoid whose knee
sharpens as k grows.
"""
import math
from typing import Optional

import torch

from vocalfx.dsp.oversample import oversample_distortion

CURVE_SAMPLES = 44100
# 20 degrees in radians
CURVE_ANGLE = 20.0 * math.pi / 180.0
# distortion 0..1 -> curve amount 0..400
DRIVE_SCALE = 400.0
BYPASS_THRESHOLD = 0.01
OVERSAMPLE_FACTOR = 4


def distortion_amount(distortion: float) -> Optional[float]:
    """Curve amount k for a distortion setting, or None when the stage is bypassed."""
    if distortion < BYPASS_THRESHOLD:
        return None
    return distortion * DRIVE_SCALE


def make_distortion_curve(amount: float, n_samples: int = CURVE_SAMPLES) -> torch.Tensor:
    """Lookup table of n_samples covering inputs x in [-1, 1). Pure function of amount."""
    k = float(amount)
    i = torch.arange(n_samples, dtype=torch.float64)
    x = (i * 2.0) / n_samples - 1.0
    curve = ((3.0 + k) * x * CURVE_ANGLE) / (math.pi + k * torch.abs(x))
    return curve.float()


def _lookup(signal: torch.Tensor, sample_rate: int, curve: torch.Tensor) -> torch.Tensor:
    n = curve.shape[-1]
    if n == 1:
        return torch.full_like(signal, float(curve[0]))
    pos = (torch.clamp(signal, -1.0, 1.0) + 1.0) * 0.5 * (n - 1)
    idx0 = torch.floor(pos).long().clamp(0, n - 1)
    idx1 = (idx0 + 1).clamp(max=n - 1)
    frac = pos - idx0.to(pos.dtype)
    return curve[idx0] * (1.0 - frac) + curve[idx1] * frac


def apply_waveshaper(
    signal: torch.Tensor,
    sample_rate: int,
    curve: torch.Tensor,
    oversample_factor: int = OVERSAMPLE_FACTOR,
) -> torch.Tensor:
    """
    Map signal through curve by linear interpolation across the table.
    Inputs outside [-1, 1] use the edge values.
    """
    if signal.shape[-1] == 0:
        return signal.clone()
    return oversample_distortion(signal, sample_rate, oversample_factor, _lookup, curve)
