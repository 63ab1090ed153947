"""
RIFF/WAVE 16-bit PCM encoder. Byte-exact and deterministic: 44-byte header,
then interleaved little-endian int16 frames.

Conversion per sample: clamp to [-1, 1], scale negatives by 32768 and the rest
by 32767, truncate toward zero.
"""
import struct

import numpy as np
import torch

from vocalfx.core.errors import EncodingError
from vocalfx.core.types import WaveformBuffer

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
PCM_FORMAT = 1
MAX_CHUNK_SIZE = 0xFFFFFFFF


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """float array -> int16 with asymmetric full-scale mapping."""
    clamped = np.clip(samples.astype(np.float64), -1.0, 1.0)
    scaled = np.where(clamped < 0.0, clamped * 32768.0, clamped * 32767.0)
    return np.trunc(scaled).astype(np.int16)


def wav_header(channels: int, sample_rate: int, data_size: int) -> bytes:
    byte_rate = sample_rate * channels * BYTES_PER_SAMPLE
    block_align = channels * BYTES_PER_SAMPLE
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        HEADER_SIZE - 8 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def encode_wav(buffer: WaveformBuffer) -> bytes:
    """Serialize buffer to a complete WAV byte string."""
    channels = buffer.channels
    if channels <= 0:
        raise EncodingError("buffer has no channels")
    if buffer.sample_rate <= 0:
        raise EncodingError(f"invalid sample rate {buffer.sample_rate}")
    data_size = buffer.frames * channels * BYTES_PER_SAMPLE
    if HEADER_SIZE - 8 + data_size > MAX_CHUNK_SIZE:
        raise EncodingError(f"{data_size} bytes of audio do not fit a RIFF chunk")

    if isinstance(buffer.samples, torch.Tensor):
        data = buffer.samples.detach().cpu().numpy()
    else:
        data = np.asarray(buffer.samples)
    if np.isnan(data).any():
        raise EncodingError("buffer contains NaN samples")

    # (channels, frames) -> frame-major interleave
    pcm = float_to_pcm16(data).T.astype("<i2")
    return wav_header(channels, buffer.sample_rate, data_size) + pcm.tobytes()


def write_wav(buffer: WaveformBuffer, path) -> None:
    with open(path, "wb") as f:
        f.write(encode_wav(buffer))
