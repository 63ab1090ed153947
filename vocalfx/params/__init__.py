"""
Render parameter schema, defaults and resolution.
Default values: single source is schema.DEFAULT_RENDER_PARAMS; use resolve_params({}) for resolved defaults.
"""
from vocalfx.params.schema import PARAM_SCHEMA, DEFAULT_RENDER_PARAMS
from vocalfx.params.resolve import resolve_params
from vocalfx.params.clamp import clamp_params

__all__ = ["PARAM_SCHEMA", "DEFAULT_RENDER_PARAMS", "resolve_params", "clamp_params"]
