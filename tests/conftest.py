"""Shared test fixtures for clipcollage tests."""

import subprocess

import pytest
import imageio_ffmpeg
import yaml

from clipcollage.encoders import available_encoders

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _make_video(path, size=(320, 240), duration=3.0, audio=True, fps=10):
    w, h = size
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"testsrc=s={w}x{h}:d={duration}:r={fps}",
    ]
    if audio:
        cmd += ["-f", "lavfi", "-i", f"sine=frequency=440:duration={duration}"]
    cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p"]
    if audio:
        cmd += ["-c:a", "aac", "-b:a", "32k", "-shortest"]
    cmd.append(str(path))
    subprocess.run(cmd, check=True, capture_output=True)
    return path


@pytest.fixture
def source_video(tmp_path):
    """A 3-second 320x240 test video with a sine tone, made with ffmpeg."""
    return _make_video(tmp_path / "source.mp4")


@pytest.fixture
def make_video(tmp_path):
    """Factory: make_video(name, size=(w, h), duration=s, audio=True)."""
    def _factory(name, **kwargs):
        return _make_video(tmp_path / name, **kwargs)
    return _factory


@pytest.fixture
def write_manifest(tmp_path):
    """Factory: write a manifest dict as YAML, return its path."""
    def _write(content: dict, name="collage.yaml"):
        path = tmp_path / name
        with open(path, "w") as f:
            yaml.dump(content, f)
        return str(path)
    return _write


@pytest.fixture(autouse=True)
def _fresh_encoder_cache():
    available_encoders.cache_clear()
    yield
    available_encoders.cache_clear()
