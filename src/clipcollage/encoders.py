"""Video encoder selection per target platform.

Each platform has a preferred hardware H.264 encoder. Whether the local
ffmpeg build actually ships it is checked once against `ffmpeg -encoders`;
missing encoders fall back to libx264.
"""

import logging
import subprocess
from functools import lru_cache

import imageio_ffmpeg

log = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

VALID_PLATFORMS = {"desktop", "ios", "android"}

PLATFORM_ENCODERS = {
    "ios": "h264_videotoolbox",
    "android": "h264_mediacodec",
    "desktop": "libx264",
}

FALLBACK_ENCODER = "libx264"


@lru_cache(maxsize=None)
def available_encoders() -> frozenset[str]:
    """Names of the encoders the bundled ffmpeg supports."""
    try:
        result = subprocess.run(
            [_FFMPEG, "-hide_banner", "-encoders"],
            capture_output=True, text=True, check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        log.warning("could not list ffmpeg encoders: %s", exc)
        return frozenset()

    names = set()
    in_table = False
    for line in result.stdout.splitlines():
        parts = line.split()
        # The flag legend sits above a "------" rule; encoder rows follow it.
        if not in_table:
            in_table = bool(parts) and set(parts[0]) == {"-"}
            continue
        # " V....D libx264   libx264 H.264 ..."
        if len(parts) >= 2 and len(parts[0]) == 6 and parts[0][0] in "VAS":
            names.add(parts[1])
    return frozenset(names)


def choose_encoder(platform: str = "desktop", gpu: bool = False) -> str:
    """Pick the H.264 encoder for a platform, falling back to libx264.

    Raises:
        ValueError: Unknown platform.
    """
    if platform not in VALID_PLATFORMS:
        raise ValueError(
            f"Unknown platform '{platform}'. Valid: {sorted(VALID_PLATFORMS)}"
        )
    wanted = PLATFORM_ENCODERS[platform]
    if platform == "desktop" and gpu:
        wanted = "h264_nvenc"
    if wanted == FALLBACK_ENCODER:
        return wanted
    if wanted in available_encoders():
        return wanted
    log.info("encoder %s not available, using %s", wanted, FALLBACK_ENCODER)
    return FALLBACK_ENCODER


def encoder_params(codec: str) -> list[str]:
    """Quality/pixel-format flags that suit the given encoder."""
    if codec == "h264_nvenc":
        return ["-cq", "20", "-pix_fmt", "yuv420p"]
    if codec in ("h264_videotoolbox", "h264_mediacodec"):
        # Hardware encoders here are bitrate driven, no CRF.
        return ["-b:v", "6M", "-pix_fmt", "yuv420p"]
    return ["-crf", "20", "-pix_fmt", "yuv420p"]
