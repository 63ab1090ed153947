from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
import base64

import soundfile as sf

from vocalfx.automation.curve import CurveSnapshot, rate_factor
from vocalfx.core.errors import EncodingError, RenderAllocationError
from vocalfx.core.io import AudioIO
from vocalfx.core.types import EffectSettings, RenderRequest
from vocalfx.export.exporter import Exporter
from vocalfx.params.resolve import resolve_params
from vocalfx.synthesis.emotion import TONE_PRESETS, VOICE_LABELS

# Configure Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("vocalfx")

app = FastAPI(
    title="VocalFX Render Engine",
    version="1.0.0",
    description="Speech post-processing: pitch automation, effects, WAV export"
)

# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # Allow any local port
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "vocalfx-render-engine"}


@app.get("/voices")
async def list_voices():
    """Voice catalogue and tone presets for the synthesis front end."""
    return {
        "voices": [{"id": voice.value, "label": label} for voice, label in VOICE_LABELS.items()],
        "tones": [
            {
                "name": preset.name,
                "description": preset.description,
                "valence": preset.emotion.valence,
                "arousal": preset.emotion.arousal,
            }
            for preset in TONE_PRESETS
        ],
    }


def _parse_curve(raw) -> CurveSnapshot:
    try:
        return CurveSnapshot.from_points(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _decode_audio(body: dict):
    encoded = body.get("audio")
    if not encoded:
        raise HTTPException(status_code=400, detail="Missing 'audio' (base64 WAV)")
    try:
        return AudioIO.load_wav(base64.b64decode(encoded, validate=True))
    except (ValueError, sf.LibsndfileError) as exc:
        raise HTTPException(status_code=400, detail=f"Could not decode audio: {exc}")


def _build_request(body: dict):
    """Request body -> (RenderRequest snapshot, resolved params)."""
    params = {k: v for k, v in body.items() if k != "audio"}
    resolved = resolve_params(params)
    seed = resolved.get("seed")
    if seed is not None:
        try:
            seed = int(seed)
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail=f"Invalid seed: {seed!r}")
    source = _decode_audio(body)
    request = RenderRequest(
        source=source,
        speed=resolved["speed"],
        curve=_parse_curve(resolved.get("curve")),
        effects=EffectSettings.from_dict(resolved["effects"]),
        seed=seed,
        ir_duration=resolved["reverb"]["duration_s"],
        ir_decay=resolved["reverb"]["decay"],
    )
    return request, resolved


def _export(request: RenderRequest):
    try:
        return Exporter.render(request)
    except RenderAllocationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except EncodingError as exc:
        logger.error("Encoding failed: %s", exc)
        raise HTTPException(status_code=500, detail="Audio encoding failed")


@app.post("/render")
async def render(body: dict):
    """
    Renders speech with pitch automation and effects.
    Returns JSON with base64-encoded WAV and resolved_params.
    """
    request, resolved = _build_request(body)
    result = _export(request)
    return {
        "audio": base64.b64encode(result.wav).decode("utf-8"),
        "duration_s": result.duration_s,
        "rendered_frames": result.rendered_frames,
        "resolved_params": resolved,
    }


@app.post("/export")
async def export(body: dict):
    """
    Renders and returns the WAV file as a download.
    """
    request, _ = _build_request(body)
    result = _export(request)
    filename = Exporter.filename(str(body.get("voice", "voice")))
    return Response(
        content=result.wav,
        media_type="audio/wav",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@app.post("/curve/evaluate")
async def evaluate_curve(body: dict):
    """
    Evaluates a pitch curve at normalized times: { curve, times } -> semitones + rate factors.
    """
    curve = _parse_curve(body.get("curve"))
    try:
        times = [float(t) for t in body.get("times", [])]
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="'times' must be a list of numbers")
    semitones = [curve.evaluate(t) for t in times]
    return {
        "curve": curve.to_list(),
        "semitones": semitones,
        "rate_factors": [rate_factor(s) for s in semitones],
    }


if __name__ == "__main__":
    uvicorn.run("vocalfx.main:app", host="0.0.0.0", port=8000, reload=True)
