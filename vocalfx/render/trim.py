"""
Trailing-silence trimmer. Removes the speculative safety tail allocated by the
renderer; the amplitude threshold follows the real decay of effect tails, so
ringing reverb/echo content is kept.
"""
import logging
import math

import torch

from vocalfx.core.types import WaveformBuffer

logger = logging.getLogger(__name__)

SILENCE_THRESHOLD = 0.001
PADDING_S = 0.1
MIN_SAVING_FRAMES = 100


def last_audible_index(channel: torch.Tensor, threshold: float = SILENCE_THRESHOLD) -> int:
    """Index of the last sample with |x| > threshold, or -1 if there is none."""
    loud = torch.nonzero(torch.abs(channel) > threshold)
    if loud.numel() == 0:
        return -1
    return int(loud[-1, 0])


def trim_silence(
    buffer: WaveformBuffer,
    threshold: float = SILENCE_THRESHOLD,
    padding_s: float = PADDING_S,
    min_saving: int = MIN_SAVING_FRAMES,
) -> WaveformBuffer:
    """
    Cut everything after the last audible sample of channel 0, keeping up to
    padding_s of trailing padding. Returns the input unchanged when it is
    silent or when the cut would save fewer than min_saving frames. Idempotent.
    """
    frames = buffer.frames
    if frames == 0:
        return buffer
    last = last_audible_index(buffer.samples[0], threshold)
    if last < 0:
        return buffer

    padding = min(frames - 1 - last, int(math.floor(buffer.sample_rate * padding_s)))
    new_length = last + 1 + padding
    if new_length >= frames - min_saving:
        return buffer

    logger.info("trimmed %d trailing frames (%d -> %d)", frames - new_length, frames, new_length)
    return WaveformBuffer(buffer.samples[:, :new_length].clone(), buffer.sample_rate)
