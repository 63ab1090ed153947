from typing import Optional

import torch


def make_generator(seed: Optional[int]) -> Optional[torch.Generator]:
    """CPU generator seeded for reproducible noise; None keeps torch's global RNG."""
    if seed is None:
        return None
    gen = torch.Generator()
    gen.manual_seed(int(seed))
    return gen


class Noise:
    @staticmethod
    def uniform(num_samples: int, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        """Generates white noise uniformly distributed in [-1, 1)."""
        return torch.rand(num_samples, generator=generator) * 2.0 - 1.0
