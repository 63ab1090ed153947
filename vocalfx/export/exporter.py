import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from vocalfx.core.types import CancelToken, RenderRequest, WaveformBuffer
from vocalfx.export.wav import encode_wav
from vocalfx.render.offline import OfflineRenderer
from vocalfx.render.trim import trim_silence

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    wav: bytes
    buffer: WaveformBuffer
    rendered_frames: int

    @property
    def duration_s(self) -> float:
        return self.buffer.duration


class Exporter:
    @staticmethod
    def render(
        request: RenderRequest,
        renderer: Optional[OfflineRenderer] = None,
        cancel: Optional[CancelToken] = None,
    ) -> ExportResult:
        """Offline render -> trim safety tail -> 16-bit WAV bytes."""
        renderer = renderer or OfflineRenderer()
        rendered = renderer.render(request, cancel=cancel)
        trimmed = trim_silence(rendered)
        wav = encode_wav(trimmed)
        logger.info(
            "exported %.2fs (%d ch @ %d Hz, %d bytes)",
            trimmed.duration, trimmed.channels, trimmed.sample_rate, len(wav),
        )
        return ExportResult(wav=wav, buffer=trimmed, rendered_frames=rendered.frames)

    @staticmethod
    def filename(voice: str = "voice", when: Optional[datetime] = None) -> str:
        """vocalfx_<voice>_<unix millis>.wav"""
        when = when or datetime.now()
        return f"vocalfx_{voice.lower()}_{int(when.timestamp() * 1000)}.wav"
