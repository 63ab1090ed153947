"""
Tests for vocalfx/export/wav and the exporter.
Run from project root: python -m pytest tests/test_wav.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import io
import struct
from datetime import datetime, timezone

import numpy as np
import pytest
import soundfile as sf
import torch

from vocalfx.core.errors import EncodingError
from vocalfx.core.io import AudioIO
from vocalfx.core.types import RenderRequest, WaveformBuffer
from vocalfx.export.exporter import Exporter
from vocalfx.export.wav import HEADER_SIZE, encode_wav, float_to_pcm16, wav_header

SR = 24000


def test_header_layout():
    header = wav_header(2, 44100, 400)
    assert len(header) == HEADER_SIZE
    assert header[:4] == b"RIFF"
    assert struct.unpack("<I", header[4:8])[0] == 36 + 400
    assert header[8:16] == b"WAVEfmt "
    fmt = struct.unpack("<IHHIIHH", header[16:36])
    assert fmt == (16, 1, 2, 44100, 44100 * 4, 4, 16)
    assert header[36:40] == b"data"
    assert struct.unpack("<I", header[40:44])[0] == 400


def test_pcm_mapping_is_asymmetric_and_truncates():
    pcm = float_to_pcm16(np.array([-1.0, 1.0, 0.5, -0.5, 2.0, -2.0, -0.00001, 0.0]))
    assert pcm.tolist() == [-32768, 32767, 16383, -16384, 32767, -32768, 0, 0]


def test_frames_are_interleaved():
    buffer = WaveformBuffer(torch.tensor([[1.0, 0.0], [-1.0, 0.0]]), SR)
    wav = encode_wav(buffer)
    assert len(wav) == HEADER_SIZE + 2 * 2 * 2
    assert struct.unpack("<4h", wav[HEADER_SIZE:]) == (32767, -32768, 0, 0)


def test_silence_roundtrip_through_soundfile():
    wav = encode_wav(WaveformBuffer.silence(1, 1000, SR))
    data, sr = sf.read(io.BytesIO(wav), dtype="int16")
    assert sr == SR
    assert data.shape == (1000,)
    assert not data.any()


def test_encoding_is_deterministic():
    buffer = WaveformBuffer(torch.randn(2, 500) * 0.3, SR)
    assert encode_wav(buffer) == encode_wav(buffer)


def test_nan_and_bad_rate_rejected():
    with pytest.raises(EncodingError):
        encode_wav(WaveformBuffer(torch.tensor([[0.0, float("nan")]]), SR))
    with pytest.raises(EncodingError):
        encode_wav(WaveformBuffer(torch.zeros(1, 10), 0))


def test_load_wav_reads_encoded_bytes():
    buffer = WaveformBuffer(torch.tensor([[0.5, -0.5, 0.25], [0.0, 0.1, -0.1]]), SR)
    loaded = AudioIO.load_wav(AudioIO.to_bytes(buffer))
    assert loaded.channels == 2
    assert loaded.frames == 3
    assert loaded.sample_rate == SR
    torch.testing.assert_close(loaded.samples, buffer.samples, atol=1e-4, rtol=0)


def test_save_wav_writes_encoded_bytes(tmp_path):
    buffer = WaveformBuffer(torch.tensor([[0.25, -0.25, 0.0]]), SR)
    path = tmp_path / "out.wav"
    AudioIO.save_wav(buffer, str(path))
    assert path.read_bytes() == encode_wav(buffer)


def test_decode_pcm16():
    decoded = AudioIO.decode_pcm16(b"\x00\x80\xff\x7f\x00\x00\x01")
    assert decoded.sample_rate == 24000
    assert decoded.frames == 3
    torch.testing.assert_close(decoded.samples, torch.tensor([[-1.0, 32767 / 32768, 0.0]]))


# -----------------------------------------------------------------------------
# Exporter
# -----------------------------------------------------------------------------

def test_export_trims_and_encodes():
    t = torch.arange(SR, dtype=torch.float32) / SR
    source = WaveformBuffer(0.3 + 0.1 * torch.sin(2 * np.pi * 200 * t), SR)
    result = Exporter.render(RenderRequest(source=source))
    assert result.rendered_frames == SR + 36000
    assert result.buffer.frames == SR + 2400
    assert len(result.wav) == HEADER_SIZE + result.buffer.frames * 2
    assert result.duration_s == pytest.approx(1.1)


def test_export_filename():
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert Exporter.filename("Kore", when) == f"vocalfx_kore_{int(when.timestamp() * 1000)}.wav"
