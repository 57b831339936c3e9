"""Tests for the video chain builder."""

import pytest

from clipcollage.edit import ClipSpec
from clipcollage.graph import NodeKind
from clipcollage.layout import CanvasConfig, plan_tiles
from clipcollage.video_chain import (
    BACKGROUND_LABEL,
    background_node,
    build_video_nodes,
    tile_nodes,
)


def _clips(n, duration=3.0):
    return [ClipSpec(0.0, duration) for _ in range(n)]


class TestBackgroundNode:
    def test_duration_is_shortest_clip(self):
        clips = [ClipSpec(0, 5), ClipSpec(1, 3), ClipSpec(2, 9)]
        node = background_node(clips, CanvasConfig())
        assert node.params["duration"] == 2
        assert node.output == BACKGROUND_LABEL
        assert node.inputs == ()

    def test_canvas_size_and_color(self):
        cfg = CanvasConfig(background="#101010")
        node = background_node(_clips(1), cfg)
        assert (node.params["width"], node.params["height"]) == (540, 960)
        assert node.params["color"] == "#101010"


class TestTileNodes:
    def test_rounded_tile_sequence(self):
        tile = plan_tiles(4)[1]
        nodes = tile_nodes(1, ClipSpec(1, 4), tile, "tmp0", "tmp1", CanvasConfig())
        assert [n.kind for n in nodes] == [
            NodeKind.TRIM, NodeKind.SCALE_CROP, NodeKind.MASK,
            NodeKind.ALPHA_MERGE, NodeKind.OVERLAY,
        ]
        assert nodes[0].inputs == ("1:v",)
        assert nodes[3].inputs == ("v1_scaled", "mask1")
        assert nodes[4].inputs == ("tmp0", "v1_rounded")
        assert nodes[4].output == "tmp1"
        assert (nodes[4].params["x"], nodes[4].params["y"]) == (280, 290)

    def test_scale_targets_tile_size(self):
        tile = plan_tiles(5)[4]
        nodes = tile_nodes(4, ClipSpec(0, 1), tile, "tmp3", "v", CanvasConfig())
        scale = nodes[1]
        assert (scale.params["width"], scale.params["height"]) == (500, 376)

    def test_clip_aspect_is_framing_only(self):
        tile = plan_tiles(1)[0]
        clip = ClipSpec(0, 1, target_aspect=9 / 16)
        nodes = tile_nodes(0, clip, tile, "bg", "v", CanvasConfig())
        assert nodes[1].params["aspect"] == pytest.approx(9 / 16)
        assert (nodes[1].params["width"], nodes[1].params["height"]) == (500, 376)

    def test_no_clip_aspect_means_no_framing(self):
        tile = plan_tiles(1)[0]
        nodes = tile_nodes(0, ClipSpec(0, 1), tile, "bg", "v", CanvasConfig())
        assert nodes[1].params["aspect"] is None

    def test_radius_clamped_to_half_short_side(self):
        cfg = CanvasConfig(corner_radius=500)
        tile = plan_tiles(4, cfg)[0]
        nodes = tile_nodes(0, ClipSpec(0, 1), tile, "bg", "tmp0", cfg)
        mask = next(n for n in nodes if n.kind == NodeKind.MASK)
        assert mask.params["radius"] == 90

    def test_no_radius_skips_mask(self):
        cfg = CanvasConfig(corner_radius=0)
        tile = plan_tiles(2, cfg)[0]
        nodes = tile_nodes(0, ClipSpec(0, 1), tile, "bg", "tmp0", cfg)
        assert [n.kind for n in nodes] == [
            NodeKind.TRIM, NodeKind.SCALE_CROP, NodeKind.OVERLAY,
        ]
        assert nodes[2].inputs == ("bg", "v0_scaled")


class TestBuildVideoNodes:
    def test_four_clip_node_count(self):
        nodes = build_video_nodes(_clips(4), plan_tiles(4))
        assert len(nodes) == 1 + 5 * 4
        assert nodes[0].kind == NodeKind.BACKGROUND_FILL

    @pytest.mark.parametrize("n", [1, 2, 3, 7])
    def test_square_corners_node_count(self, n):
        cfg = CanvasConfig(corner_radius=0)
        nodes = build_video_nodes(_clips(n), plan_tiles(n, cfg), cfg)
        assert len(nodes) == 1 + 3 * n

    def test_overlay_chain_folds_over_clips(self):
        nodes = build_video_nodes(_clips(4), plan_tiles(4))
        overlays = [n for n in nodes if n.kind == NodeKind.OVERLAY]
        assert [o.inputs[0] for o in overlays] == ["bg", "tmp0", "tmp1", "tmp2"]
        assert [o.output for o in overlays] == ["tmp0", "tmp1", "tmp2", "v"]
        assert all(o.params["shortest"] for o in overlays)

    def test_single_clip_overlays_straight_to_terminal(self):
        nodes = build_video_nodes(_clips(1), plan_tiles(1))
        overlay = nodes[-1]
        assert overlay.inputs[0] == "bg"
        assert overlay.output == "v"

    def test_outputs_unique(self):
        nodes = build_video_nodes(_clips(6), plan_tiles(6))
        outputs = [n.output for n in nodes]
        assert len(outputs) == len(set(outputs))

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="No clips"):
            build_video_nodes([], [])

    def test_count_mismatch_rejected(self):
        with pytest.raises(ValueError, match="must match"):
            build_video_nodes(_clips(3), plan_tiles(2))
