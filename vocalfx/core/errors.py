"""
Error taxonomy for the synthesis seam and the render path.
Render-path errors are local to one invocation; curves and settings are
read-only snapshots and are never left half-modified.
"""


class VocalFXError(Exception):
    """Base class for all engine errors."""


class TransientServiceError(VocalFXError):
    """Upstream speech service fault (5xx, timeout). Retried with backoff."""


class PermanentRequestError(VocalFXError):
    """Bad input or refusal from the speech service. Never retried."""


class RenderAllocationError(VocalFXError):
    """Duration estimate is degenerate or would allocate a pathological buffer."""


class RenderCancelledError(VocalFXError):
    """Render was cancelled through its CancelToken."""


class EncodingError(VocalFXError):
    """Buffer cannot be serialized. Should be unreachable for a valid buffer."""
