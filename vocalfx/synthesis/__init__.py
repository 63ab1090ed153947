"""
Upstream speech synthesis seam: voices, emotion prompts, retry policy.
"""
from vocalfx.synthesis.client import SpeechBackend, synthesize_with_retry
from vocalfx.synthesis.emotion import (
    EmotionVector,
    TONE_PRESETS,
    Voice,
    build_prompt,
    describe_emotion,
)

__all__ = [
    "SpeechBackend",
    "synthesize_with_retry",
    "EmotionVector",
    "TONE_PRESETS",
    "Voice",
    "build_prompt",
    "describe_emotion",
]
