"""
Oversampling wrapper for nonlinear stages.
Prevents aliasing by upsampling -> processing -> anti-alias filter -> downsampling.
"""

import torch
from vocalfx.dsp.filters import Filter


def oversample_distortion(
    signal: torch.Tensor,
    sample_rate: int,
    factor: int,
    process_fn,
    *args,
    **kwargs
) -> torch.Tensor:
    """
    Apply a nonlinearity with oversampling to prevent aliasing.

    Args:
        signal: Input signal at original sample rate, shape (..., frames)
        sample_rate: Original sample rate
        factor: Oversampling factor (2 or 4)
        process_fn: Function that applies distortion: (signal, oversampled_rate, *args, **kwargs) -> signal
        *args, **kwargs: Additional arguments passed to process_fn

    Returns:
        Processed signal at original sample rate (anti-aliased)
    """
    if factor <= 1:
        # No oversampling: process directly
        return process_fn(signal, sample_rate, *args, **kwargs)

    oversampled_sr = sample_rate * factor
    n_orig = signal.shape[-1]

    # Zero-order hold: [a, b] -> [a, a, a, a, b, b, b, b] for factor=4
    signal_upsampled = signal.repeat_interleave(factor, dim=-1)

    signal_processed = process_fn(signal_upsampled, oversampled_sr, *args, **kwargs)

    # Anti-alias filter slightly below the original Nyquist
    cutoff = sample_rate / 2.0 * 0.95
    signal_filtered = Filter.lowpass(signal_processed, oversampled_sr, cutoff, q=0.707)

    # Downsample: take every Nth sample
    signal_downsampled = signal_filtered[..., ::factor]

    # Trim to original length (in case of rounding)
    if signal_downsampled.shape[-1] > n_orig:
        signal_downsampled = signal_downsampled[..., :n_orig]
    elif signal_downsampled.shape[-1] < n_orig:
        signal_downsampled = torch.nn.functional.pad(signal_downsampled, (0, n_orig - signal_downsampled.shape[-1]))

    return signal_downsampled
