"""
Parameter clamping against PARAM_SCHEMA bounds.
Out-of-range numeric values are pulled to the nearest bound; unparseable values
fall back to the schema default.
"""
import copy
from typing import Dict, Any

from vocalfx.core.params import get_float, clamp_if_bounds
from vocalfx.params.schema import PARAM_SCHEMA


def _set_dotted(params: Dict[str, Any], name: str, value: Any) -> None:
    keys = name.split(".")
    current = params
    for key in keys[:-1]:
        nested = current.get(key)
        if not isinstance(nested, dict):
            nested = {}
            current[key] = nested
        current = nested
    current[keys[-1]] = value


def clamp_params(params: dict) -> dict:
    """
    Clamp every schema-described param to its [min, max].
    Returns a new dict (does not mutate input).
    """
    result = copy.deepcopy(params)
    for name, entry in PARAM_SCHEMA.items():
        value = get_float(result, name, float(entry["default"]))
        _set_dotted(result, name, clamp_if_bounds(value, entry["min"], entry["max"]))
    return result
