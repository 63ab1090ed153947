"""
Parameter resolution: deep-merge DEFAULT_RENDER_PARAMS with incoming params,
then clamp to schema bounds.
Incoming params override defaults at any nesting level.
"""
import copy
from typing import Dict, Any

from vocalfx.params.schema import DEFAULT_RENDER_PARAMS
from vocalfx.params.clamp import clamp_params
from vocalfx.params.engine_params import to_render_params


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dicts. override values take precedence.
    Returns a new dict (does not mutate inputs).
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            # Recursively merge nested dicts
            result[key] = _deep_merge(result[key], value)
        else:
            # Override (or add new) key
            result[key] = copy.deepcopy(value)

    return result


def resolve_params(params: dict) -> dict:
    """
    Resolve params by:
    1. Mapping client fields onto curve/speed (to_render_params)
    2. Merging incoming params onto DEFAULT_RENDER_PARAMS (user params override defaults)
    3. Clamping schema-described values to their bounds

    Args:
        params: Incoming params dict (may be partial)

    Returns:
        Fully resolved params dict.
    """
    params = to_render_params(params or {})
    merged = _deep_merge(DEFAULT_RENDER_PARAMS, params)
    return clamp_params(merged)
