"""Per-clip edit description — what the editing surface hands the compiler.

A ClipSpec is one tile's intent: the trimmed range, a linear gain, and a
list of peaking EQ bands. Specs are frozen; nothing downstream mutates
them.
"""

from dataclasses import dataclass, field


# Five-band layout the editor starts every clip with, all flat.
DEFAULT_EQ_FREQUENCIES = (60, 250, 1000, 4000, 12000)


@dataclass(frozen=True)
class EqBand:
    frequency_hz: float
    gain_db: float = 0.0


def default_equalizer() -> tuple[EqBand, ...]:
    return tuple(EqBand(f, 0.0) for f in DEFAULT_EQ_FREQUENCIES)


@dataclass(frozen=True)
class ClipSpec:
    """One collage tile's edit intent.

    Attributes:
        start_time: Trim start in seconds (source timeline).
        end_time: Trim end in seconds, strictly after start_time.
        volume: Linear gain; 0 mutes but the clip still feeds the mix.
        equalizer: Ordered EQ bands. Zero-gain bands are no-ops.
        target_aspect: Framing ratio. The source is first cropped to its
            largest centred window of this aspect, then cover-scaled into
            the tile. None keeps the whole source frame.
        has_audio: False when the source has no audio stream at all.
        source_duration: Full source length if known, used for range checks.
    """

    start_time: float
    end_time: float
    volume: float = 1.0
    equalizer: tuple[EqBand, ...] = field(default_factory=default_equalizer)
    target_aspect: float | None = None
    has_audio: bool = True
    source_duration: float | None = None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def validate_clip(clip: ClipSpec, index: int) -> None:
    """Check one clip's preconditions.

    Raises:
        ValueError: Bad time range, negative volume, or bad EQ band.
    """
    prefix = f"Clip {index}"
    if clip.start_time < 0:
        raise ValueError(
            f"{prefix}: start must be >= 0, got {clip.start_time}. "
            "Select a time range inside the video."
        )
    if clip.start_time >= clip.end_time:
        raise ValueError(
            f"{prefix}: start ({clip.start_time}) must be < end ({clip.end_time}). "
            "Select a time range."
        )
    if clip.source_duration is not None and clip.end_time > clip.source_duration:
        raise ValueError(
            f"{prefix}: end ({clip.end_time}) is past the source duration "
            f"({clip.source_duration}). Select a time range inside the video."
        )
    if clip.volume < 0:
        raise ValueError(f"{prefix}: volume must be >= 0, got {clip.volume}")
    if clip.target_aspect is not None and clip.target_aspect <= 0:
        raise ValueError(
            f"{prefix}: target aspect must be > 0, got {clip.target_aspect}"
        )
    for j, band in enumerate(clip.equalizer):
        if band.frequency_hz <= 0:
            raise ValueError(
                f"{prefix}: EQ band {j} frequency must be > 0, got {band.frequency_hz}"
            )


def validate_clips(clips) -> None:
    """Reject an edit list before any graph node is built.

    Raises:
        ValueError: No clips, or any clip fails validate_clip.
    """
    if not clips:
        raise ValueError("No clips to compose. Select at least one video.")
    for i, clip in enumerate(clips):
        validate_clip(clip, i)
