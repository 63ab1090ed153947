"""
Tests for vocalfx/dsp/mixer: gain, padding, unity pass-through.
Run from project root: python -m pytest tests/test_mixer.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch

from vocalfx.dsp.mixer import BranchSpec, MixBus


def test_empty_bus_returns_empty_master():
    assert MixBus().mix().shape[-1] == 0


def test_single_unity_branch_is_exact_copy():
    x = torch.randn(2, 500)
    bus = MixBus()
    bus.add("dry", x)
    master = bus.mix()
    assert torch.equal(master, x)
    assert master is not x


def test_gain_and_sum():
    bus = MixBus()
    bus.add("a", torch.ones(1, 4), BranchSpec("a", gain=0.5))
    bus.add("b", torch.ones(1, 4), BranchSpec("b", gain=2.0))
    torch.testing.assert_close(bus.mix(), torch.full((1, 4), 2.5))


def test_zero_gain_silences_branch():
    bus = MixBus()
    bus.add("a", torch.ones(1, 4))
    bus.add("b", torch.ones(1, 4), BranchSpec("b", gain=0.0))
    torch.testing.assert_close(bus.mix(), torch.ones(1, 4))


def test_shorter_branch_is_zero_padded():
    bus = MixBus()
    bus.add("long", torch.ones(1, 6))
    bus.add("short", torch.ones(1, 2), BranchSpec("short", gain=0.5))
    torch.testing.assert_close(bus.mix(), torch.tensor([[1.5, 1.5, 1.0, 1.0, 1.0, 1.0]]))


def test_same_name_overwrites():
    bus = MixBus()
    bus.add("a", torch.ones(1, 3))
    bus.add("a", torch.full((1, 3), 3.0))
    assert len(bus) == 1
    torch.testing.assert_close(bus.mix(), torch.full((1, 3), 3.0))
