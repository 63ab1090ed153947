"""
Voice catalogue, tone presets and the emotion -> prompt wording sent upstream.
"""
from dataclasses import dataclass
from enum import Enum


class Voice(str, Enum):
    PUCK = "Puck"
    CHARON = "Charon"
    KORE = "Kore"
    FENRIR = "Fenrir"
    ZEPHYR = "Zephyr"


VOICE_LABELS = {
    Voice.PUCK: "Puck (Neutral, Mid-range)",
    Voice.CHARON: "Charon (Deep, Authoritative)",
    Voice.KORE: "Kore (Calm, Soothing)",
    Voice.FENRIR: "Fenrir (Deep, Resonant)",
    Voice.ZEPHYR: "Zephyr (Soft, Gentle)",
}


@dataclass(frozen=True)
class EmotionVector:
    valence: float = 0.0  # -1 negative .. 1 positive
    arousal: float = 0.0  # -1 calm .. 1 intense

    def __post_init__(self):
        for name in ("valence", "arousal"):
            value = float(getattr(self, name))
            if not -1.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [-1, 1], got {value}")
            object.__setattr__(self, name, value)


@dataclass(frozen=True)
class TonePreset:
    name: str
    description: str
    emotion: EmotionVector


TONE_PRESETS = (
    TonePreset("Neutral", "Standard balanced delivery", EmotionVector(0.0, 0.0)),
    TonePreset("Cheerful", "Upbeat and energetic", EmotionVector(0.8, 0.5)),
    TonePreset("Professional", "Clear, concise, business-like", EmotionVector(0.2, 0.1)),
    TonePreset("Empathetic", "Warm and understanding", EmotionVector(0.5, -0.4)),
    TonePreset("Dramatic", "Intense and expressive", EmotionVector(-0.1, 0.9)),
    TonePreset("Whisper", "Soft, hushed tone", EmotionVector(0.0, -0.9)),
    TonePreset("Robotic", "Precise, staccato delivery", EmotionVector(-0.5, -0.5)),
)

PRESET_TOLERANCE = 0.1
NEUTRAL_DEADBAND = 0.05


def describe_emotion(emotion: EmotionVector) -> str:
    """Preset name when within 0.1 of one on both axes, else arousal + valence wording."""
    for preset in TONE_PRESETS:
        if (abs(preset.emotion.valence - emotion.valence) < PRESET_TOLERANCE
                and abs(preset.emotion.arousal - emotion.arousal) < PRESET_TOLERANCE):
            return preset.name.lower()

    arousal, valence = emotion.arousal, emotion.valence
    if arousal > 0.6:
        energy = "intense, excited"
    elif arousal > 0.2:
        energy = "energetic"
    elif arousal < -0.6:
        energy = "whispered, very calm"
    elif arousal < -0.2:
        energy = "relaxed, soft"
    else:
        energy = "moderate"

    if valence > 0.6:
        mood = "very happy, joyful"
    elif valence > 0.2:
        mood = "positive, cheerful"
    elif valence < -0.6:
        mood = "sad, somber"
    elif valence < -0.2:
        mood = "serious, concerned"
    else:
        mood = "neutral"
    return f"{energy} and {mood}"


def build_prompt(text: str, emotion: EmotionVector) -> str:
    """Text as sent to the speech model; near-neutral emotion leaves it untouched."""
    if abs(emotion.valence) > NEUTRAL_DEADBAND or abs(emotion.arousal) > NEUTRAL_DEADBAND:
        return f"Say in a {describe_emotion(emotion)} tone: {text}"
    return text
