"""
Mix bus: additive summation of parallel branches with per-branch linear gain.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import torch


@dataclass
class BranchSpec:
    """Gain applied to a branch when summed at the bus."""
    name: str
    gain: float = 1.0


class MixBus:
    """
    Sum registered branches after applying gain.
    Shorter branches are zero-padded to the longest one.
    """

    def __init__(self):
        self._branches: Dict[str, Tuple[torch.Tensor, BranchSpec]] = {}

    def add(self, name: str, audio: torch.Tensor, spec: Optional[BranchSpec] = None) -> None:
        """Register a branch. Same name overwrites."""
        self._branches[name] = (audio, spec or BranchSpec(name))

    def __len__(self) -> int:
        return len(self._branches)

    def mix(self) -> torch.Tensor:
        """Sum of all branches; an empty bus yields an empty (1, 0) tensor."""
        if not self._branches:
            return torch.zeros(1, 0)

        ref_len = max(audio.shape[-1] for audio, _ in self._branches.values())
        master = None

        for audio, spec in self._branches.values():
            length = audio.shape[-1]
            if length < ref_len:
                audio = torch.nn.functional.pad(audio, (0, ref_len - length))

            # Unity gain adds the branch as-is so a lone dry branch stays bit-exact
            contribution = audio if spec.gain == 1.0 else audio * spec.gain

            if master is None:
                master = contribution.clone()
            else:
                master = master + contribution

        return master
