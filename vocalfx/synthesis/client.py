"""
Seam to the upstream speech service and its retry policy.
The backend itself lives outside this package; anything with a matching
synthesize() can be plugged in.
"""
import logging
import time
from typing import Callable, Protocol

from vocalfx.core.errors import PermanentRequestError, TransientServiceError
from vocalfx.core.types import WaveformBuffer
from vocalfx.synthesis.emotion import EmotionVector, Voice

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_S = 0.5


class SpeechBackend(Protocol):
    def synthesize(self, text: str, voice: Voice, emotion: EmotionVector) -> WaveformBuffer:
        """Finished waveform, or TransientServiceError / PermanentRequestError."""
        ...


def synthesize_with_retry(
    backend: SpeechBackend,
    text: str,
    voice: Voice,
    emotion: EmotionVector,
    attempts: int = MAX_ATTEMPTS,
    backoff_s: float = BACKOFF_S,
    sleep: Callable[[float], None] = time.sleep,
) -> WaveformBuffer:
    """
    Call backend.synthesize, retrying only TransientServiceError.
    Waits attempt * backoff_s between attempts; the last transient error is
    re-raised once attempts are exhausted. Permanent errors surface at once.
    """
    if not text or not text.strip():
        raise PermanentRequestError("text is empty")
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            return backend.synthesize(text, voice, emotion)
        except TransientServiceError as exc:
            last_error = exc
            if attempt < attempts:
                delay = attempt * backoff_s
                logger.warning(
                    "speech synthesis attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt, attempts, exc, delay,
                )
                sleep(delay)

    logger.error("speech synthesis failed after %d attempts: %s", attempts, last_error)
    raise last_error
