"""Run a compiled collage program through ffmpeg.

ffmpeg does all demuxing, filtering and encoding; this module only builds
the command, runs it, and turns a non-zero exit into RenderError with the
full ffmpeg log attached. A rejected program means the compiler emitted
something ffmpeg can't wire up, so it is not retried.
"""

import logging
import subprocess
from pathlib import Path

import imageio_ffmpeg

from .encoders import encoder_params
from .filtergraph import build_ffmpeg_args
from .graph import CompiledProgram

log = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


class RenderError(RuntimeError):
    def __init__(self, message: str, returncode: int, log_text: str):
        self.returncode = returncode
        self.log = log_text
        super().__init__(f"{message} (ffmpeg exit {returncode})")


def collage_command(
    program: CompiledProgram,
    inputs: list[str],
    output: str,
    encoder: str = "libx264",
    audio_bitrate: str = "192k",
) -> list[str]:
    """Full ffmpeg command line for rendering program to output."""
    args = build_ffmpeg_args(
        program, inputs, output,
        encoder=encoder,
        encoder_params=encoder_params(encoder),
        audio_bitrate=audio_bitrate,
    )
    return [_FFMPEG, *args]


def render_collage(
    program: CompiledProgram,
    inputs: list[str],
    output: str,
    encoder: str = "libx264",
    audio_bitrate: str = "192k",
) -> str:
    """Render a collage program to an mp4.

    Args:
        program: Output of emitter.compile_collage.
        inputs: Local source paths, one per program source, in order.
        output: Output mp4 path (parent dirs are created).
        encoder: H.264 encoder name.
        audio_bitrate: AAC bitrate when the program has audio.

    Returns:
        The output path.

    Raises:
        RenderError: ffmpeg rejected the program or failed to encode.
    """
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    cmd = collage_command(program, inputs, output, encoder, audio_bitrate)
    log.debug("render: %s", " ".join(cmd))

    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise RenderError(
            "Compile produced an invalid program", result.returncode, result.stderr,
        )
    return str(output)


def extract_thumbnail(video: str, output: str, at: float = 1.0) -> str:
    """Grab a single high-quality JPEG frame at `at` seconds.

    Raises:
        RenderError: ffmpeg failed (e.g. video shorter than `at`).
    """
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        _FFMPEG, "-y",
        "-ss", f"{at:.3f}",
        "-i", str(video),
        "-vframes", "1",
        "-q:v", "2",
        str(output),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0 or not Path(output).exists():
        raise RenderError(
            f"Thumbnail extraction from {video} failed", result.returncode, result.stderr,
        )
    return str(output)
