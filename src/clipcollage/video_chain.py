"""Video chain builder — trim, cover-scale, round, and overlay each tile.

Node layout for N clips with rounded corners:

  color ──────────────────────────────► [bg]
  [i:v] trim ─► [vi_trimmed] scalecrop ─► [vi_scaled] ─┐
  color+geq ─► [maski] ────────────────────────────────┴ alphamerge ─► [vi_rounded]
  [bg|tmp(i-1)][vi_rounded] overlay ─► [tmpi]   (last clip ─► [v])

The overlay chain is a fold over clip indices: each step takes the
previous overlay's label as its base and returns the new one. The
background lasts as long as the shortest clip, and every overlay uses
shortest=1, so the collage never outlives its shortest tile.
"""

from .edit import ClipSpec
from .graph import GraphNode, NodeKind, VIDEO_TERMINAL, source_pad
from .layout import CanvasConfig, TileRect


BACKGROUND_LABEL = "bg"


def background_node(clips: list[ClipSpec], cfg: CanvasConfig) -> GraphNode:
    """Solid canvas sized to the output, lasting min(clip durations)."""
    return GraphNode(
        NodeKind.BACKGROUND_FILL,
        inputs=(),
        output=BACKGROUND_LABEL,
        params={
            "color": cfg.background,
            "width": cfg.output_width,
            "height": cfg.output_height,
            "duration": min(c.duration for c in clips),
        },
    )


def _mask_radius(radius: int, tile: TileRect) -> int:
    # A radius past half the short side would eat the whole tile.
    return min(radius, tile.width // 2, tile.height // 2)


def tile_nodes(
    index: int,
    clip: ClipSpec,
    tile: TileRect,
    base_label: str,
    output_label: str,
    cfg: CanvasConfig,
) -> list[GraphNode]:
    """Nodes that place clip `index` onto the canvas labelled base_label."""
    trimmed = f"v{index}_trimmed"
    scaled = f"v{index}_scaled"

    nodes = [
        GraphNode(
            NodeKind.TRIM,
            inputs=(source_pad(index, "v"),),
            output=trimmed,
            params={"start": clip.start_time, "end": clip.end_time},
        ),
        GraphNode(
            NodeKind.SCALE_CROP,
            inputs=(trimmed,),
            output=scaled,
            params={
                "width": tile.width,
                "height": tile.height,
                "aspect": clip.target_aspect,
            },
        ),
    ]

    tile_label = scaled
    radius = _mask_radius(cfg.corner_radius, tile)
    if radius > 0:
        mask = f"mask{index}"
        rounded = f"v{index}_rounded"
        nodes.append(GraphNode(
            NodeKind.MASK,
            inputs=(),
            output=mask,
            params={"width": tile.width, "height": tile.height, "radius": radius},
        ))
        nodes.append(GraphNode(
            NodeKind.ALPHA_MERGE,
            inputs=(scaled, mask),
            output=rounded,
        ))
        tile_label = rounded

    nodes.append(GraphNode(
        NodeKind.OVERLAY,
        inputs=(base_label, tile_label),
        output=output_label,
        params={"x": tile.x, "y": tile.y, "shortest": True},
    ))
    return nodes


def build_video_nodes(
    clips: list[ClipSpec],
    tiles: list[TileRect],
    cfg: CanvasConfig | None = None,
) -> list[GraphNode]:
    """Build the full video chain ending in the terminal label 'v'.

    Args:
        clips: Edit specs in tile order; clip i reads source i.
        tiles: One rect per clip, from layout.plan_tiles.
        cfg: Canvas constants (corner radius, background, output size).

    Returns:
        Background node followed by each clip's nodes in index order.

    Raises:
        ValueError: No clips, or clip/tile counts differ.
    """
    if cfg is None:
        cfg = CanvasConfig()
    if not clips:
        raise ValueError("No clips to compose")
    if len(clips) != len(tiles):
        raise ValueError(
            f"Got {len(clips)} clips but {len(tiles)} tiles; they must match"
        )

    nodes = [background_node(clips, cfg)]
    base = BACKGROUND_LABEL
    last = len(clips) - 1
    for i, (clip, tile) in enumerate(zip(clips, tiles)):
        out = VIDEO_TERMINAL if i == last else f"tmp{i}"
        nodes.extend(tile_nodes(i, clip, tile, base, out, cfg))
        base = out
    return nodes
