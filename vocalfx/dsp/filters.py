"""
Audio filters using torchaudio biquad implementations.
IIR (minimum-phase) so transients in speech are not smeared by pre-ringing.
"""

import torch
import torchaudio.functional as F


class Filter:
    @staticmethod
    def lowpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = 0.707) -> torch.Tensor:
        """
        Apply a LowPass Biquad filter (minimum-phase IIR).
        Accepts (..., frames); filters along the last dim.
        """
        # Ensure cutoff is within Nyquist
        cutoff_freq = min(cutoff_freq, sample_rate / 2 - 1)
        return F.lowpass_biquad(waveform, sample_rate, cutoff_freq, q)
