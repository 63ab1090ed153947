"""
Render params contract: only params that pass through here reach the renderer.
Maps the editor's client fields onto render params:
- pitchPoints [{x, y}] -> curve [[time, semitone]]
- settings {pitch, speed} of a saved custom voice -> flat curve at pitch, speed
Explicit curve/speed always win. In dev mode, log which fields were mapped.
"""
from typing import Dict, Any, List
import os
import logging

logger = logging.getLogger("vocalfx")

CLIENT_FIELD_KEYS = frozenset({
    "pitchPoints",
    "settings",
})

DEV = os.environ.get("ENV", "development").lower() in ("development", "dev", "test")


def _pitch_point_pairs(raw) -> Any:
    """[{x, y}, ...] -> [[x, y], ...]; anything else is passed on for the curve parser to reject."""
    if not isinstance(raw, (list, tuple)):
        return raw
    pairs: List[Any] = []
    for point in raw:
        if isinstance(point, dict) and "x" in point and "y" in point:
            pairs.append([point["x"], point["y"]])
        else:
            pairs.append(point)
    return pairs


def to_render_params(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize raw request body to render params: map client fields onto
    curve/speed, then drop them.
    This is the single entry point for all params that reach resolve_params.
    """
    found = sorted(k for k in CLIENT_FIELD_KEYS if k in raw)
    if not found:
        return raw

    out = {k: v for k, v in raw.items() if k not in CLIENT_FIELD_KEYS}
    if "curve" not in out and "pitchPoints" in raw:
        out["curve"] = _pitch_point_pairs(raw["pitchPoints"])

    voice_settings = raw.get("settings")
    if isinstance(voice_settings, dict):
        if "curve" not in out and voice_settings.get("pitch") is not None:
            out["curve"] = [[0.0, voice_settings["pitch"]]]
        if "speed" not in out and voice_settings.get("speed") is not None:
            out["speed"] = voice_settings["speed"]

    if DEV:
        logger.info("[Parameter Contract] Client fields mapped before render: %s", found)
    return out
