#!/usr/bin/env python3
"""Generate synthetic source videos for the demo collage manifest.

Creates 5 clips in examples/demo-clips/, each a moving test pattern with
its own tone so the mix is audible. One source is 4K wide on purpose so
`clipcollage compose` asks to optimize it first.

Usage:
    python examples/generate_demo_clips.py
    # Then render:
    clipcollage compose --manifest examples/demo-collage.yaml \
        --output examples/demo-renders/collage.mp4 --preview examples/demo-renders/layout.png
"""

import subprocess
from pathlib import Path

import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-clips"
FPS = 30

# (name, lavfi pattern, size, tone Hz, duration s)
CLIPS = [
    ("clip-01", "testsrc2", (640, 480), 220, 4.0),
    ("clip-02", "smptebars", (480, 640), 330, 5.0),
    ("clip-03", "smptehdbars", (640, 360), 440, 4.5),
    ("clip-04", "rgbtestsrc", (360, 640), 550, 6.0),
    ("clip-05", "testsrc", (3840, 2160), 660, 3.5),  # oversized
]


def make_clip(name: str, pattern: str, size: tuple[int, int], tone: int,
              duration: float) -> Path:
    out = OUTPUT_DIR / f"{name}.mp4"
    w, h = size
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"{pattern}=s={w}x{h}:r={FPS}:d={duration}",
        "-f", "lavfi", "-i", f"sine=frequency={tone}:duration={duration}",
        "-c:v", "libx264", "-preset", "veryfast", "-pix_fmt", "yuv420p",
        "-c:a", "aac", "-b:a", "96k", "-shortest",
        str(out),
    ]
    subprocess.run(cmd, check=True, capture_output=True)
    return out


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, pattern, size, tone, duration in CLIPS:
        out = make_clip(name, pattern, size, tone, duration)
        print(f"  {out.name}: {size[0]}x{size[1]}, {duration}s, {tone} Hz")
    print(f"\nGenerated {len(CLIPS)} clips in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
