"""
Parameter schema and defaults for render requests.
DEFAULT_RENDER_PARAMS is the merge base for resolve_params; PARAM_SCHEMA carries
bounds for clamping and UI metadata.
"""
from typing import Dict, Any, Literal

# Type definitions
ParamType = Literal["float", "int", "bool"]
ParamGroup = Literal["playback", "effects", "reverb"]

# Schema entry structure: type, default, min, max, group, description
ParamSchemaEntry = Dict[str, Any]


def _make_param(
    param_type: ParamType,
    default: Any,
    min_val: float,
    max_val: float,
    group: ParamGroup,
    description: str,
) -> ParamSchemaEntry:
    """Helper to create a schema entry."""
    return {
        "type": param_type,
        "default": default,
        "min": min_val,
        "max": max_val,
        "group": group,
        "description": description,
    }


# -----------------------------------------------------------------------------
# PARAM_SCHEMA: dotted key -> metadata (type, default, min, max, group, description)
# -----------------------------------------------------------------------------

PARAM_SCHEMA: Dict[str, ParamSchemaEntry] = {
    "speed": _make_param(
        "float", 1.0, 0.25, 4.0, "playback", "Base playback speed multiplier"
    ),
    "effects.distortion": _make_param(
        "float", 0.0, 0.0, 1.0, "effects", "Waveshaper drive (0 = bypass)"
    ),
    "effects.delay": _make_param(
        "float", 0.0, 0.0, 1.0, "effects", "Echo feedback and wet level"
    ),
    "effects.reverb": _make_param(
        "float", 0.0, 0.0, 1.0, "effects", "Convolution reverb wet level"
    ),
    "reverb.duration_s": _make_param(
        "float", 2.5, 0.1, 10.0, "reverb", "Synthetic impulse response length (s)"
    ),
    "reverb.decay": _make_param(
        "float", 2.5, 0.1, 10.0, "reverb", "Impulse response envelope exponent"
    ),
}


# -----------------------------------------------------------------------------
# DEFAULT_RENDER_PARAMS: nested merge base (matches PARAM_SCHEMA defaults)
# -----------------------------------------------------------------------------

DEFAULT_RENDER_PARAMS: Dict[str, Any] = {
    "speed": 1.0,
    "curve": [],
    "seed": None,
    "effects": {
        "distortion": 0.0,
        "delay": 0.0,
        "reverb": 0.0,
    },
    "reverb": {
        "duration_s": 2.5,
        "decay": 2.5,
    },
}
