#!/usr/bin/env python3
"""
Offline render tool: applies pitch automation and effects to a WAV file and
writes the trimmed 16-bit result.

Usage:
    python tools/render.py <input.wav> [options]

Options:
    -o, --output <path>      Output WAV (default: <input>_fx.wav)
    --speed <float>          Base speed multiplier (default: 1.0)
    --point <t:semitones>    Curve point, repeatable (e.g. --point 0:0 --point 1:-12)
    --distortion <0..1>      Waveshaper drive
    --delay <0..1>           Echo amount
    --reverb <0..1>          Reverb amount
    --seed <int>             Impulse response seed
    --params <json>          JSON file with render params (flags override it)
"""
import sys
import os
import json
import argparse
import logging
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from vocalfx.automation.curve import CurveSnapshot
from vocalfx.core.errors import VocalFXError
from vocalfx.core.io import AudioIO
from vocalfx.core.types import EffectSettings, RenderRequest
from vocalfx.export.exporter import Exporter
from vocalfx.params.resolve import resolve_params


def parse_point(text: str):
    """'0.5:-3' -> (0.5, -3.0)"""
    try:
        t, s = text.split(":", 1)
        return float(t), float(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"curve point must look like TIME:SEMITONES, got '{text}'")


def build_params(args) -> dict:
    params = {}
    if args.params:
        with open(args.params, "r") as f:
            params = json.load(f)
    if args.speed is not None:
        params["speed"] = args.speed
    if args.point:
        params["curve"] = [list(p) for p in args.point]
    effects = dict(params.get("effects") or {})
    for name in ("distortion", "delay", "reverb"):
        value = getattr(args, name)
        if value is not None:
            effects[name] = value
    params["effects"] = effects
    if args.seed is not None:
        params["seed"] = args.seed
    return resolve_params(params)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Render pitch automation and effects onto a WAV file")
    parser.add_argument("input", help="Source WAV")
    parser.add_argument("-o", "--output", help="Output WAV path")
    parser.add_argument("--speed", type=float)
    parser.add_argument("--point", type=parse_point, action="append", help="TIME:SEMITONES (repeatable)")
    parser.add_argument("--distortion", type=float)
    parser.add_argument("--delay", type=float)
    parser.add_argument("--reverb", type=float)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--params", help="JSON file with render params")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    resolved = build_params(args)
    source = AudioIO.load_wav(args.input)
    request = RenderRequest(
        source=source,
        speed=resolved["speed"],
        curve=CurveSnapshot.from_points(resolved["curve"]),
        effects=EffectSettings.from_dict(resolved["effects"]),
        seed=resolved.get("seed"),
        ir_duration=resolved["reverb"]["duration_s"],
        ir_decay=resolved["reverb"]["decay"],
    )

    try:
        result = Exporter.render(request)
    except VocalFXError as exc:
        print(f"Render failed: {exc}", file=sys.stderr)
        return 1

    output = Path(args.output) if args.output else Path(args.input).with_name(Path(args.input).stem + "_fx.wav")
    output.write_bytes(result.wav)

    print(f"\n=== Render Complete ===")
    print(f"Output: {output}")
    print(f"Source: {source.duration:.2f}s @ {source.sample_rate} Hz, {source.channels} ch")
    print(f"Result: {result.duration_s:.2f}s ({result.rendered_frames} frames rendered before trim)")
    print(f"Effects: {request.effects.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
