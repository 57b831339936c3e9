"""Source normalization advisor — decide whether a source needs a re-encode.

Runs before compilation on each raw source. A source is probed with
ffprobe and checked against three conditions:

  - downscale: either side larger than 1080 px.
  - audio:     linear PCM audio on android (the muxer rejects it).
  - video:     HEVC video on android (decoder support is spotty).

Any hit asks the caller's confirm(reason) callback. Accepting yields a
Reencode plan (scale to 1080p height, H.264, AAC, fast-start mp4);
declining yields Declined, which means "leave this clip out", never
"use it as is".

Diagnostic trouble (ffprobe missing, timeout, unreadable metadata) never
blocks the pipeline: the source passes through as Unknown with a
logged warning.

Decisions:
  PassThrough(path)          use the source as is
  Unknown(fallback_path)     probe failed; a PassThrough subclass
  Reencode(...)              confirmed plan, run with execute_reencode()
  Declined(source_path, ...) user said no; abort this clip
"""

import json
import logging
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable

import imageio_ffmpeg

from .encoders import choose_encoder, encoder_params

log = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

MAX_DIMENSION = 1080
TARGET_HEIGHT = 1080
AUDIO_BITRATE = "128k"
PROBE_TIMEOUT = 30.0

# (platform, codec prefix) pairs the target platform can't handle.
INCOMPATIBLE_AUDIO = {("android", "pcm_")}
INCOMPATIBLE_VIDEO = {("android", "hevc")}


# ── Errors ────────────────────────────────────────────────────────


class NormalizationError(RuntimeError):
    """A source could not be made safe for the collage."""


class ReencodeError(NormalizationError):
    def __init__(self, source: str, returncode: int, log_text: str):
        self.source = source
        self.returncode = returncode
        self.log = log_text
        super().__init__(
            f"Optimizing {source} failed (ffmpeg exit {returncode})"
        )


class ReencodeCancelled(NormalizationError):
    pass


class NormalizationDeclined(NormalizationError):
    pass


# ── Probe + assessment ────────────────────────────────────────────


@dataclass(frozen=True)
class ProbeResult:
    width: int | None
    height: int | None
    video_codec: str | None
    audio_codec: str | None
    duration: float | None

    @property
    def has_video(self) -> bool:
        return bool(self.width and self.height)

    @property
    def has_audio(self) -> bool:
        return self.audio_codec is not None


@dataclass(frozen=True)
class Assessment:
    needs_downscale: bool
    needs_audio_reencode: bool
    needs_video_conversion: bool
    reasons: tuple[str, ...]

    @property
    def needs_reencode(self) -> bool:
        return self.needs_downscale or self.needs_audio_reencode or self.needs_video_conversion


@dataclass(frozen=True)
class PassThrough:
    path: str


@dataclass(frozen=True)
class Unknown(PassThrough):
    reason: str = ""

    @property
    def fallback_path(self) -> str:
        return self.path


@dataclass(frozen=True)
class Reencode:
    source_path: str
    reasons: tuple[str, ...]
    planned_output_path: str
    command: tuple[str, ...]
    assessment: Assessment
    target_height: int | None


@dataclass(frozen=True)
class Declined:
    source_path: str
    reasons: tuple[str, ...]


def _to_int(value) -> int | None:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_probe(data: dict) -> ProbeResult:
    """Pick the first real video stream and first audio stream."""
    width = height = video_codec = audio_codec = None
    for stream in data.get("streams") or []:
        if not isinstance(stream, dict):
            continue
        kind = stream.get("codec_type")
        if kind == "video" and video_codec is None:
            disposition = stream.get("disposition") or {}
            if disposition.get("attached_pic") == 1:
                continue
            width = _to_int(stream.get("width"))
            height = _to_int(stream.get("height"))
            video_codec = stream.get("codec_name")
        elif kind == "audio" and audio_codec is None:
            audio_codec = stream.get("codec_name")

    duration = None
    raw = (data.get("format") or {}).get("duration")
    try:
        duration = float(raw) if raw is not None else None
    except (TypeError, ValueError):
        duration = None
    return ProbeResult(width, height, video_codec, audio_codec, duration)


def probe_source(path: str, timeout: float = PROBE_TIMEOUT) -> ProbeResult | None:
    """Probe a source with ffprobe. Returns None when probing fails."""
    cmd = [
        "ffprobe", "-v", "error", "-print_format", "json",
        "-show_streams", "-show_format", str(path),
    ]
    log.debug("probe: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=True, timeout=timeout,
        )
        data = json.loads(result.stdout or "{}")
    except subprocess.TimeoutExpired:
        log.warning("ffprobe timed out after %.0fs on %s", timeout, path)
        return None
    except subprocess.CalledProcessError as exc:
        log.warning("ffprobe failed on %s: %s", path, (exc.stderr or "").strip())
        return None
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("could not probe %s: %s", path, exc)
        return None
    return parse_probe(data)


def assess(probe: ProbeResult, platform: str = "desktop") -> Assessment:
    """Check a probed source against the re-encode conditions."""
    reasons = []

    needs_downscale = bool(
        probe.has_video
        and (probe.width > MAX_DIMENSION or probe.height > MAX_DIMENSION)
    )
    if needs_downscale:
        reasons.append(
            f"resolution {probe.width}x{probe.height} is larger than {MAX_DIMENSION}p"
        )

    audio = probe.audio_codec or ""
    needs_audio = any(
        platform == p and audio.startswith(prefix) for p, prefix in INCOMPATIBLE_AUDIO
    )
    if needs_audio:
        reasons.append(f"{audio} audio is not supported on {platform}")

    video = probe.video_codec or ""
    needs_video = any(
        platform == p and video.startswith(prefix) for p, prefix in INCOMPATIBLE_VIDEO
    )
    if needs_video:
        reasons.append(f"{video} video is not supported on {platform}")

    return Assessment(needs_downscale, needs_audio, needs_video, tuple(reasons))


def planned_output_path(
    source: str, output_dir: str | None = None, tag: str | None = None,
) -> str:
    src = Path(source)
    out_dir = Path(output_dir) if output_dir else src.parent
    stem = f"{src.stem}_{tag}" if tag else src.stem
    return str(out_dir / f"{stem}_normalized.mp4")


def reencode_command(
    source: str,
    output: str,
    assessment: Assessment,
    encoder: str,
) -> list[str]:
    """ffmpeg command that rewrites source into a collage-safe mp4."""
    cmd = [_FFMPEG, "-y", "-i", str(source)]
    if assessment.needs_downscale:
        cmd.extend(["-vf", f"scale=-2:{TARGET_HEIGHT}"])
    cmd.extend(["-c:v", encoder, *encoder_params(encoder)])
    cmd.extend(["-c:a", "aac", "-b:a", AUDIO_BITRATE])
    cmd.extend(["-movflags", "+faststart", str(output)])
    return cmd


# ── Advisor ───────────────────────────────────────────────────────


def advise(
    path: str,
    platform: str = "desktop",
    output_dir: str | None = None,
    encoder: str | None = None,
    probe: ProbeResult | None = None,
) -> PassThrough | Reencode:
    """Probe and plan without asking anyone.

    Returns PassThrough, Unknown, or an unconfirmed Reencode plan.
    """
    if probe is None:
        probe = probe_source(path)
    if probe is None:
        return Unknown(str(path), reason="probe failed")
    if not probe.has_video:
        if probe.has_audio:
            log.warning("%s is audio-only, passing through", path)
            return PassThrough(str(path))
        log.warning("%s has no usable stream info, passing through", path)
        return Unknown(str(path), reason="no usable streams")

    assessment = assess(probe, platform)
    if not assessment.needs_reencode:
        return PassThrough(str(path))

    if encoder is None:
        encoder = choose_encoder(platform)
    output = planned_output_path(path, output_dir)
    return Reencode(
        source_path=str(path),
        reasons=assessment.reasons,
        planned_output_path=output,
        command=tuple(reencode_command(path, output, assessment, encoder)),
        assessment=assessment,
        target_height=TARGET_HEIGHT if assessment.needs_downscale else None,
    )


def confirmation_prompt(plan: Reencode) -> str:
    name = Path(plan.source_path).name
    return f"{name}: {'; '.join(plan.reasons)}. Optimize it before composing?"


def _discard(path) -> None:
    p = Path(path)
    if p.exists():
        p.unlink()
        log.debug("removed %s", p)


def inspect_source(
    path: str,
    confirm: Callable[[str], bool],
    platform: str = "desktop",
    output_dir: str | None = None,
    staged: bool = False,
    encoder: str | None = None,
) -> PassThrough | Reencode | Declined:
    """Advise on one source, asking confirm() when a re-encode is needed.

    Args:
        path: Local source path.
        confirm: Called with a human-readable reason; True accepts the
            re-encode.
        platform: "desktop", "ios" or "android".
        output_dir: Where the re-encoded file goes (default: next to source).
        staged: path is a staging copy owned by the pipeline; it is
            deleted when the user declines.
        encoder: Force a video encoder instead of the platform default.

    Returns:
        PassThrough / Unknown, a confirmed Reencode, or Declined.
    """
    decision = advise(path, platform, output_dir, encoder)
    if not isinstance(decision, Reencode):
        return decision
    if confirm(confirmation_prompt(decision)):
        return decision
    log.info("optimization declined for %s", path)
    if staged:
        _discard(path)
    return Declined(str(path), decision.reasons)


def execute_reencode(
    plan: Reencode,
    cancel: threading.Event | None = None,
    poll_interval: float = 0.2,
) -> str:
    """Run a Reencode plan and return the rewritten path.

    The partial output is deleted if ffmpeg fails, the cancel event is
    set, or the wait is interrupted.

    Raises:
        ReencodeError: ffmpeg exited non-zero.
        ReencodeCancelled: cancel was set before ffmpeg finished.
    """
    out = Path(plan.planned_output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    log.info("optimizing %s -> %s", plan.source_path, out)
    log.debug("reencode: %s", " ".join(plan.command))

    proc = subprocess.Popen(
        list(plan.command),
        stdout=subprocess.DEVNULL, stderr=subprocess.PIPE, text=True,
    )
    try:
        while True:
            try:
                _, stderr = proc.communicate(timeout=poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    raise ReencodeCancelled(
                        f"Optimizing {plan.source_path} was cancelled"
                    ) from None
    except BaseException:
        if proc.poll() is None:
            proc.kill()
            proc.communicate()
        _discard(out)
        raise

    if proc.returncode != 0:
        _discard(out)
        raise ReencodeError(plan.source_path, proc.returncode, stderr or "")
    return str(out)


# ── Batch ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SourceResult:
    """Outcome for one source: the path to compile from, or why not."""

    source_path: str
    decision: PassThrough | Reencode | Declined
    path: str | None
    error: NormalizationError | None = None
    probe: ProbeResult | None = None

    @property
    def ok(self) -> bool:
        return self.path is not None


def resolve_path(decision: PassThrough | Reencode | Declined) -> str:
    """Path the compiler should read for a decision.

    Raises:
        NormalizationDeclined: decision is Declined.
    """
    if isinstance(decision, Declined):
        raise NormalizationDeclined(
            f"Optimization declined for {decision.source_path}"
        )
    if isinstance(decision, Reencode):
        return decision.planned_output_path
    return decision.path


def _claim_outputs(
    paths: list[str],
    decisions: list,
    encoder: str,
    output_dir: str | None,
) -> list:
    """Give every Reencode an output path no other source or plan uses.

    Two sources named clip.mp4 in different folders would otherwise both
    write clip_normalized.mp4 into a shared output_dir.
    """
    taken = {str(Path(p).resolve()) for p in paths}
    claimed = []
    for i, (path, d) in enumerate(zip(paths, decisions)):
        if isinstance(d, Reencode):
            output, n = d.planned_output_path, 0
            while str(Path(output).resolve()) in taken:
                tag = str(i) if n == 0 else f"{i}_{n}"
                output = planned_output_path(path, output_dir, tag=tag)
                n += 1
            if output != d.planned_output_path:
                log.debug("%s: output renamed to %s", path, output)
                d = replace(
                    d,
                    planned_output_path=output,
                    command=tuple(reencode_command(path, output, d.assessment, encoder)),
                )
            taken.add(str(Path(output).resolve()))
        claimed.append(d)
    return claimed


def normalize_sources(
    paths: list[str],
    confirm: Callable[[str], bool],
    platform: str = "desktop",
    output_dir: str | None = None,
    staged: bool = False,
    workers: int = 4,
    cancel: threading.Event | None = None,
) -> list[SourceResult]:
    """Normalize every source; returns only once all are settled.

    Probing runs concurrently, confirmations are asked one at a time in
    input order on the calling thread, then confirmed re-encodes run
    concurrently. Results come back in input order, each carrying the
    probe it was decided on (None when probing failed).
    """
    if not paths:
        return []
    workers = max(1, min(workers, len(paths)))
    encoder = choose_encoder(platform)

    def advise_one(path):
        probe = probe_source(path)
        if probe is None:
            return None, Unknown(str(path), reason="probe failed")
        return probe, advise(path, platform, output_dir, encoder, probe=probe)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        probes, advice = zip(*pool.map(advise_one, paths))

        decisions = []
        for path, decision in zip(paths, advice):
            if isinstance(decision, Reencode) and not confirm(confirmation_prompt(decision)):
                log.info("optimization declined for %s", path)
                if staged:
                    _discard(path)
                decision = Declined(str(path), decision.reasons)
            decisions.append(decision)
        decisions = _claim_outputs(paths, decisions, encoder, output_dir)

        futures = {
            i: pool.submit(execute_reencode, d, cancel)
            for i, d in enumerate(decisions)
            if isinstance(d, Reencode)
        }

        results = []
        for i, (path, decision) in enumerate(zip(paths, decisions)):
            probe = probes[i]
            if isinstance(decision, Declined):
                results.append(SourceResult(
                    str(path), decision, None,
                    NormalizationDeclined(f"Optimization declined for {path}"),
                    probe,
                ))
            elif i in futures:
                try:
                    new_path = futures[i].result()
                except NormalizationError as exc:
                    results.append(SourceResult(str(path), decision, None, exc, probe))
                else:
                    results.append(SourceResult(str(path), decision, new_path, probe=probe))
                if staged:
                    _discard(path)
            else:
                results.append(SourceResult(str(path), decision, decision.path, probe=probe))
    return results
