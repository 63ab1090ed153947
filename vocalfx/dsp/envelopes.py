import torch


# -----------------------------------------------------------------------------
# Helpers (reusable across envelopes and effects)
# -----------------------------------------------------------------------------

def ms_to_s(ms: float) -> float:
    """Convert milliseconds to seconds."""
    return ms / 1000.0


# -----------------------------------------------------------------------------
# Decay envelopes
# -----------------------------------------------------------------------------

class Envelope:
    @staticmethod
    def power_decay(length: int, decay: float) -> torch.Tensor:
        """
        Polynomial fade to zero over `length` samples.
        y[i] = (1 - i/length) ^ decay
        """
        if length <= 0:
            return torch.zeros(0)
        n = torch.arange(length, dtype=torch.float64) / length
        return torch.pow(1.0 - n, float(decay)).float()

