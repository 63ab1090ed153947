import io

import numpy as np
import soundfile as sf
import torch

from vocalfx.core.types import WaveformBuffer
from vocalfx.export.wav import encode_wav, write_wav

# Upstream speech service payload format
UPSTREAM_SAMPLE_RATE = 24000
UPSTREAM_CHANNELS = 1


class AudioIO:
    @staticmethod
    def load_wav(source) -> WaveformBuffer:
        """Reads a WAV (path, file-like or raw bytes) into a planar float buffer."""
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        data, sample_rate = sf.read(source, dtype="float32", always_2d=True)
        # soundfile returns (frames, channels)
        return WaveformBuffer(torch.from_numpy(np.ascontiguousarray(data.T)), sample_rate)

    @staticmethod
    def save_wav(buffer: WaveformBuffer, path: str) -> None:
        """Saves a buffer as 16-bit PCM WAV."""
        write_wav(buffer, path)

    @staticmethod
    def to_bytes(buffer: WaveformBuffer) -> bytes:
        """Returns audio file as bytes (for API responses)."""
        return encode_wav(buffer)

    @staticmethod
    def decode_pcm16(
        data: bytes,
        sample_rate: int = UPSTREAM_SAMPLE_RATE,
        channels: int = UPSTREAM_CHANNELS,
    ) -> WaveformBuffer:
        """Headerless interleaved little-endian int16 -> float buffer (x / 32768)."""
        usable = len(data) - len(data) % (2 * channels)
        pcm = np.frombuffer(data[:usable], dtype="<i2").astype(np.float32) / 32768.0
        planar = pcm.reshape(-1, channels).T
        return WaveformBuffer(torch.from_numpy(np.ascontiguousarray(planar)), sample_rate)
