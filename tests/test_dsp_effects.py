"""
Tests for the effect primitives: waveshaper curve, feedback delay, synthetic
reverb, oversampling wrapper.
Run from project root: python -m pytest tests/test_dsp_effects.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import math

import pytest
import torch

from vocalfx.dsp.delay import feedback_delay
from vocalfx.dsp.reverb import (
    cached_impulse_response,
    convolve_reverb,
    normalization_scale,
    synthesize_impulse_response,
)
from vocalfx.dsp.waveshaper import (
    CURVE_ANGLE,
    CURVE_SAMPLES,
    apply_waveshaper,
    distortion_amount,
    make_distortion_curve,
)

SR = 24000


# -----------------------------------------------------------------------------
# Waveshaper
# -----------------------------------------------------------------------------

def test_distortion_amount_bypass_and_scale():
    assert distortion_amount(0.0) is None
    assert distortion_amount(0.005) is None
    assert distortion_amount(0.5) == pytest.approx(200.0)
    assert distortion_amount(1.0) == pytest.approx(400.0)


def test_curve_matches_formula():
    k = 50.0
    curve = make_distortion_curve(k)
    assert curve.shape == (CURVE_SAMPLES,)
    for i in (0, 1000, 22050, 30000, CURVE_SAMPLES - 1):
        x = i * 2.0 / CURVE_SAMPLES - 1.0
        expected = (3.0 + k) * x * CURVE_ANGLE / (math.pi + k * abs(x))
        assert float(curve[i]) == pytest.approx(expected, abs=1e-6)


def test_curve_is_monotonic_and_odd():
    curve = make_distortion_curve(200.0)
    assert torch.all(curve[1:] >= curve[:-1])
    assert float(curve[CURVE_SAMPLES // 2]) == 0.0
    assert float(curve[0]) < 0.0 < float(curve[-1])


def test_curve_is_pure_function_of_amount():
    torch.testing.assert_close(make_distortion_curve(123.0), make_distortion_curve(123.0))


def test_waveshaper_preserves_sign_and_shape():
    curve = make_distortion_curve(100.0)
    x = torch.tensor([[-0.8, -0.2, 0.2, 0.8]])
    y = apply_waveshaper(x, SR, curve, oversample_factor=1)
    assert y.shape == x.shape
    assert torch.all(torch.sign(y) == torch.sign(x))
    # Out-of-range inputs use the edge values
    edge = apply_waveshaper(torch.tensor([[5.0, -5.0]]), SR, curve, oversample_factor=1)
    assert float(edge[0, 0]) == pytest.approx(float(curve[-1]))
    assert float(edge[0, 1]) == pytest.approx(float(curve[0]))


def test_oversampled_waveshaper_stays_finite_for_stereo():
    t = torch.arange(2400, dtype=torch.float32) / SR
    x = torch.stack([torch.sin(2 * math.pi * 220 * t), 0.5 * torch.sin(2 * math.pi * 330 * t)])
    y = apply_waveshaper(x, SR, make_distortion_curve(400.0))
    assert y.shape == x.shape
    assert torch.isfinite(y).all()
    assert float(y.abs().max()) > 0.0


# -----------------------------------------------------------------------------
# Feedback delay
# -----------------------------------------------------------------------------

def test_impulse_produces_decaying_echo_train():
    x = torch.zeros(1, 100)
    x[0, 0] = 1.0
    y = feedback_delay(x, 10, 0.6)
    expected = torch.zeros(1, 100)
    for i, tap in enumerate(range(10, 100, 10)):
        expected[0, tap] = 0.6 ** i
    torch.testing.assert_close(y, expected)


def test_delay_keeps_input_length_and_channels():
    x = torch.randn(2, 1234)
    y = feedback_delay(x, 100, 0.3)
    assert y.shape == x.shape
    torch.testing.assert_close(y[:, :100], torch.zeros(2, 100))
    torch.testing.assert_close(y[:, 100:200], x[:, :100])


def test_ring_buffer_wraps_without_corruption():
    # Long enough to wrap the ring buffer several times
    x = torch.randn(2, 10000)
    y = feedback_delay(x, 100, 0.0)
    torch.testing.assert_close(y[:, 100:], x[:, :-100])
    torch.testing.assert_close(y[:, :100], torch.zeros(2, 100))


@pytest.mark.parametrize("gain", [1.0, 1.5, -1.0])
def test_unstable_feedback_rejected(gain):
    with pytest.raises(ValueError):
        feedback_delay(torch.zeros(1, 10), 5, gain)


def test_zero_delay_rejected():
    with pytest.raises(ValueError):
        feedback_delay(torch.zeros(1, 10), 0, 0.3)


# -----------------------------------------------------------------------------
# Reverb
# -----------------------------------------------------------------------------

def test_impulse_response_shape_and_envelope():
    ir = synthesize_impulse_response(SR, duration=2.5, decay=2.5, seed=7)
    length = int(SR * 2.5)
    assert ir.shape == (2, length)
    envelope = (1.0 - torch.arange(length, dtype=torch.float32) / length) ** 2.5
    assert torch.all(ir.abs() <= envelope + 1e-6)
    assert float(ir[:, -100:].abs().max()) < 1e-6
    # Channels are independent noise
    assert not torch.equal(ir[0], ir[1])


def test_impulse_response_is_seeded():
    a = synthesize_impulse_response(SR, duration=0.5, seed=3)
    b = synthesize_impulse_response(SR, duration=0.5, seed=3)
    c = synthesize_impulse_response(SR, duration=0.5, seed=4)
    assert torch.equal(a, b)
    assert not torch.equal(a, c)


def test_cached_impulse_response_is_shared():
    assert cached_impulse_response(SR, 0.5, 2.5, 0) is cached_impulse_response(SR, 0.5, 2.5, 0)


def test_invalid_impulse_length_raises():
    with pytest.raises(ValueError):
        synthesize_impulse_response(SR, duration=0.0)


def test_convolution_without_normalization_is_plain_fir():
    signal = torch.zeros(1, 6)
    signal[0, 0] = 1.0
    ir = torch.tensor([[1.0, 0.5, 0.25]])
    out = convolve_reverb(signal, ir, SR, normalize=False)
    torch.testing.assert_close(out, torch.tensor([[1.0, 0.5, 0.25, 0.0, 0.0, 0.0]]), atol=1e-6, rtol=0)


def test_mono_signal_against_stereo_response_downmixes():
    signal = torch.zeros(1, 4)
    signal[0, 0] = 1.0
    ir = torch.tensor([[1.0, 0.0], [0.0, 1.0]])
    out = convolve_reverb(signal, ir, SR, normalize=False)
    assert out.shape == (1, 4)
    torch.testing.assert_close(out, torch.tensor([[0.5, 0.5, 0.0, 0.0]]), atol=1e-6, rtol=0)


def test_normalization_scale_handles_silence():
    silent = normalization_scale(torch.zeros(2, 100), 44100)
    loud = normalization_scale(torch.ones(2, 100), 44100)
    assert math.isfinite(silent)
    assert silent > loud
    # Same response at half the rate is scaled up by the rate ratio
    assert normalization_scale(torch.ones(2, 100), 22050) == pytest.approx(2.0 * loud)
