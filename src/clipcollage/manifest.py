"""Collage manifest loader.

Parses a YAML manifest describing the canvas, output settings and the
clips to compose. Clip paths may use ${var} references into the
top-level 'paths' mapping.

Manifest schema:
  paths:
    raw: "/data/recordings"
  canvas:                   # optional; defaults to 540x960, 2 columns
    width: 540
    height: 960
    columns: 2
    padding: 20
    corner_radius: 15
    tile_aspect: "4:3"
    background: "#000000"
  output:                   # optional
    platform: desktop       # desktop | ios | android
    encoder: null           # override the platform encoder
    audio_bitrate: 192k
  clips:
    - path: "${raw}/a.mp4"
      start: 0.0
      end: 4.5
      volume: 1.0           # optional
      aspect: "16:9"        # optional; crop the source to this aspect first
      audio: true           # optional; false for sources without audio
      equalizer:            # optional; default five flat bands
        - {frequency: 1000, gain: 3}
"""

from pathlib import Path

import yaml

from .common import ffmpeg_color, parse_aspect, resolve_path_vars
from .edit import ClipSpec, EqBand, default_equalizer, validate_clip
from .encoders import VALID_PLATFORMS
from .layout import CanvasConfig


DEFAULT_OUTPUT = {"platform": "desktop", "encoder": None, "audio_bitrate": "192k"}

_CANVAS_KEYS = {
    "width": "output_width",
    "height": "output_height",
    "columns": "columns",
    "padding": "padding",
    "corner_radius": "corner_radius",
}


def _number(value, prefix: str, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{prefix}: '{field}' must be a number, got {value!r}")
    return float(value)


def parse_canvas(raw: dict | None) -> CanvasConfig:
    """Build a CanvasConfig from the manifest 'canvas' block."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValueError("Collage manifest: 'canvas' must be a mapping")

    unknown = set(raw) - set(_CANVAS_KEYS) - {"tile_aspect", "background"}
    if unknown:
        raise ValueError(f"Collage manifest: unknown canvas field(s) {sorted(unknown)}")

    kwargs = {}
    for key, attr in _CANVAS_KEYS.items():
        if key in raw:
            value = raw[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(
                    f"Collage manifest: canvas.{key} must be an integer, got {value!r}"
                )
            kwargs[attr] = value
    if "tile_aspect" in raw:
        kwargs["tile_aspect"] = parse_aspect(raw["tile_aspect"])
    if "background" in raw:
        background = str(raw["background"])
        ffmpeg_color(background)
        kwargs["background"] = background
    return CanvasConfig(**kwargs)


def parse_output(raw: dict | None) -> dict:
    output = dict(DEFAULT_OUTPUT)
    output.update(raw or {})
    if output["platform"] not in VALID_PLATFORMS:
        raise ValueError(
            f"Collage manifest: invalid output.platform '{output['platform']}'. "
            f"Valid: {sorted(VALID_PLATFORMS)}"
        )
    output["audio_bitrate"] = str(output["audio_bitrate"])
    return output


def _parse_equalizer(raw, prefix: str) -> tuple[EqBand, ...]:
    if raw is None:
        return default_equalizer()
    if not isinstance(raw, list):
        raise ValueError(f"{prefix}: 'equalizer' must be a list")
    bands = []
    for j, band in enumerate(raw):
        if not isinstance(band, dict) or "frequency" not in band:
            raise ValueError(f"{prefix}: equalizer band {j} missing 'frequency'")
        bands.append(EqBand(
            frequency_hz=_number(band["frequency"], prefix, f"equalizer[{j}].frequency"),
            gain_db=_number(band.get("gain", 0), prefix, f"equalizer[{j}].gain"),
        ))
    return tuple(bands)


def parse_clip(raw: dict, index: int) -> tuple[ClipSpec, str]:
    """Validate one clip entry. Returns (spec, source path)."""
    prefix = f"Clip {index}"
    if not isinstance(raw, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    for field in ("path", "start", "end"):
        if field not in raw:
            raise ValueError(f"{prefix}: missing required field '{field}'")

    aspect = raw.get("aspect")
    spec = ClipSpec(
        start_time=_number(raw["start"], prefix, "start"),
        end_time=_number(raw["end"], prefix, "end"),
        volume=_number(raw.get("volume", 1.0), prefix, "volume"),
        equalizer=_parse_equalizer(raw.get("equalizer"), prefix),
        target_aspect=parse_aspect(aspect) if aspect is not None else None,
        has_audio=bool(raw.get("audio", True)),
    )
    validate_clip(spec, index)
    return spec, str(raw["path"])


def load_collage_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a collage manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in every clip path.
      3. Build the CanvasConfig and output settings.
      4. Validate each clip (range, volume, EQ) into a ClipSpec.

    Returns:
        {"canvas": CanvasConfig, "output": dict,
         "clips": [ClipSpec], "paths": [str]}

    Raises:
        ValueError: Missing/invalid fields.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    if "clips" not in raw:
        raise ValueError("Collage manifest: missing required 'clips' field")
    if not isinstance(raw["clips"], list) or not raw["clips"]:
        raise ValueError("Collage manifest: 'clips' must be a non-empty list")

    path_vars = raw.get("paths", {})

    clips = []
    paths = []
    for i, clip in enumerate(raw["clips"]):
        if isinstance(clip, dict) and "path" in clip:
            clip = {**clip, "path": resolve_path_vars(str(clip["path"]), path_vars)}
        spec, path = parse_clip(clip, i)
        clips.append(spec)
        paths.append(path)

    return {
        "canvas": parse_canvas(raw.get("canvas")),
        "output": parse_output(raw.get("output")),
        "clips": clips,
        "paths": paths,
    }


def validate_sources(config: dict) -> None:
    """Check that every clip source exists on disk.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = [p for p in config["paths"] if not Path(p).exists()]
    if missing:
        msg = f"Missing {len(missing)} source file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
