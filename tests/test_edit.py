"""Tests for clip edit specs and their validation."""

import dataclasses

import pytest

from clipcollage.edit import (
    DEFAULT_EQ_FREQUENCIES,
    ClipSpec,
    EqBand,
    default_equalizer,
    validate_clip,
    validate_clips,
)


class TestClipSpec:
    def test_defaults(self):
        clip = ClipSpec(1.0, 4.0)
        assert clip.volume == 1.0
        assert clip.has_audio
        assert clip.target_aspect is None
        assert clip.duration == 3.0

    def test_default_equalizer_is_flat(self):
        bands = default_equalizer()
        assert [b.frequency_hz for b in bands] == list(DEFAULT_EQ_FREQUENCIES)
        assert all(b.gain_db == 0 for b in bands)

    def test_frozen(self):
        clip = ClipSpec(0, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            clip.volume = 2.0


class TestValidateClip:
    def test_valid_clip_passes(self):
        validate_clip(ClipSpec(0, 2, volume=0.0), 0)

    def test_start_equal_end_rejected(self):
        with pytest.raises(ValueError, match="Clip 2: .*Select a time range"):
            validate_clip(ClipSpec(3, 3), 2)

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError, match="must be < end"):
            validate_clip(ClipSpec(5, 3), 0)

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError, match="start must be >= 0"):
            validate_clip(ClipSpec(-1, 3), 0)

    def test_end_past_source_rejected(self):
        with pytest.raises(ValueError, match="past the source duration"):
            validate_clip(ClipSpec(0, 12, source_duration=10), 0)

    def test_end_at_source_duration_ok(self):
        validate_clip(ClipSpec(0, 10, source_duration=10), 0)

    def test_negative_volume_rejected(self):
        with pytest.raises(ValueError, match="volume"):
            validate_clip(ClipSpec(0, 1, volume=-0.5), 0)

    def test_bad_eq_frequency_rejected(self):
        clip = ClipSpec(0, 1, equalizer=(EqBand(0, 3),))
        with pytest.raises(ValueError, match="EQ band 0"):
            validate_clip(clip, 0)

    def test_bad_target_aspect_rejected(self):
        with pytest.raises(ValueError, match="target aspect"):
            validate_clip(ClipSpec(0, 1, target_aspect=0), 0)


class TestValidateClips:
    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="No clips to compose"):
            validate_clips([])

    def test_reports_offending_index(self):
        clips = [ClipSpec(0, 1), ClipSpec(0, 1), ClipSpec(2, 1)]
        with pytest.raises(ValueError, match="Clip 2"):
            validate_clips(clips)
