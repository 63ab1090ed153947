from dataclasses import dataclass, field
import threading
from typing import Optional, TYPE_CHECKING

import torch

from vocalfx.core.errors import RenderCancelledError

if TYPE_CHECKING:
    from vocalfx.automation.curve import CurveSnapshot

# Below this an effect amount is treated as off
EFFECT_EPSILON = 0.01


@dataclass
class WaveformBuffer:
    samples: torch.Tensor  # float32, (channels, frames), planar
    sample_rate: int

    def __post_init__(self):
        if self.samples.dim() == 1:
            self.samples = self.samples.unsqueeze(0)
        if self.samples.dim() != 2:
            raise ValueError(f"samples must be (channels, frames), got shape {tuple(self.samples.shape)}")
        self.samples = self.samples.float()
        self.sample_rate = int(self.sample_rate)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frames(self) -> int:
        return int(self.samples.shape[-1])

    @property
    def duration(self) -> float:
        return self.frames / self.sample_rate if self.sample_rate > 0 else 0.0

    @classmethod
    def silence(cls, channels: int, frames: int, sample_rate: int) -> "WaveformBuffer":
        return cls(torch.zeros(channels, frames), sample_rate)


def _clamp_amount(value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if v != v:  # NaN
        return 0.0
    return max(0.0, min(1.0, v))


@dataclass(frozen=True)
class EffectSettings:
    """Immutable per-render snapshot of the effect rack. Amounts clamped to [0, 1]."""
    distortion: float = 0.0
    delay: float = 0.0
    reverb: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "distortion", _clamp_amount(self.distortion))
        object.__setattr__(self, "delay", _clamp_amount(self.delay))
        object.__setattr__(self, "reverb", _clamp_amount(self.reverb))

    @property
    def distortion_active(self) -> bool:
        return self.distortion >= EFFECT_EPSILON

    @property
    def delay_active(self) -> bool:
        return self.delay >= EFFECT_EPSILON

    @property
    def reverb_active(self) -> bool:
        return self.reverb >= EFFECT_EPSILON

    @property
    def active_tail(self) -> bool:
        """True when a branch with a decay tail (delay or reverb) is active."""
        return self.delay_active or self.reverb_active

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EffectSettings":
        data = data or {}
        return cls(
            distortion=data.get("distortion", 0.0),
            delay=data.get("delay", 0.0),
            reverb=data.get("reverb", 0.0),
        )

    def to_dict(self) -> dict:
        return {"distortion": self.distortion, "delay": self.delay, "reverb": self.reverb}


class CancelToken:
    """Cooperative cancellation flag checked by the renderer between stages."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RenderCancelledError("render cancelled")


@dataclass(frozen=True)
class RenderRequest:
    """
    Everything that determines a render. curve is a CurveSnapshot, never the live
    editor curve; seed (None -> the shared default), ir_duration and ir_decay
    fix the reverb impulse response.
    """
    source: WaveformBuffer
    speed: float = 1.0
    curve: Optional["CurveSnapshot"] = None  # None means flat (0 semitones)
    effects: EffectSettings = field(default_factory=EffectSettings)
    seed: Optional[int] = None
    ir_duration: float = 2.5
    ir_decay: float = 2.5
