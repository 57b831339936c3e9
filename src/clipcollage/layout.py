"""Geometry planner — tile rectangles for an N-clip collage.

The collage is a fixed-size vertical canvas holding a centered grid of
equally sized tiles, `columns` wide. When the clip count is odd, the
last tile spans two columns so the grid never has a hole:

  ┌───────────────────────┐
  │                       │  ← offset_y (grid centered vertically)
  │  ┌────────┐┌────────┐ │
  │  │   0    ││   1    │ │  ← base frame size
  │  └────────┘└────────┘ │
  │  ┌────────┐┌────────┐ │
  │  │   2    ││   3    │ │
  │  └────────┘└────────┘ │
  │  ┌──────────────────┐ │
  │  │        4         │ │  ← odd-count last tile, col pinned to 0
  │  │                  │ │
  │  └──────────────────┘ │
  │                       │
  └───────────────────────┘

Every derived pixel value goes through ensure_even() because h264/yuv420p
needs even dimensions. A single clip is just the odd rule with one row.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class CanvasConfig:
    """Collage canvas constants for one compile.

    tile_aspect is width / height of a base tile. background is an ffmpeg
    color (name or '#RRGGBB').
    """

    output_width: int = 540
    output_height: int = 960
    columns: int = 2
    padding: int = 20
    corner_radius: int = 15
    tile_aspect: float = 4 / 3
    background: str = "black"

    def __post_init__(self):
        if self.output_width <= 0 or self.output_height <= 0:
            raise ValueError(
                f"Canvas size must be positive, got "
                f"{self.output_width}x{self.output_height}"
            )
        if self.output_width % 2 or self.output_height % 2:
            raise ValueError(
                f"Canvas size must be even, got {self.output_width}x{self.output_height}"
            )
        if self.columns < 1:
            raise ValueError(f"Canvas columns must be >= 1, got {self.columns}")
        if self.padding < 0 or self.padding % 2:
            raise ValueError(f"Canvas padding must be even and >= 0, got {self.padding}")
        if self.corner_radius < 0:
            raise ValueError(
                f"Canvas corner_radius must be >= 0, got {self.corner_radius}"
            )
        if self.tile_aspect <= 0:
            raise ValueError(f"Canvas tile_aspect must be > 0, got {self.tile_aspect}")


@dataclass(frozen=True)
class TileRect:
    index: int
    x: int
    y: int
    width: int
    height: int
    row: int
    col: int
    spans: bool = False


@dataclass(frozen=True)
class GridPlan:
    """Tiles plus the intermediate sizes they were derived from."""

    tiles: tuple[TileRect, ...]
    frame_width: int
    frame_height: int
    grid_width: int
    grid_height: int
    offset_x: int
    offset_y: int
    num_rows: int


def ensure_even(n: float) -> int:
    """Round to the nearest even integer.

    2 * round(n / 2), with .5 rounded up rather than to even, so
    ensure_even(375) == 376 and ensure_even(5) == 6.
    """
    return 2 * math.floor(n / 2 + 0.5)


def plan_grid(clip_count: int, cfg: CanvasConfig | None = None) -> GridPlan:
    """Compute every tile rectangle for clip_count clips.

    Args:
        clip_count: Number of clips, >= 1.
        cfg: Canvas constants. Defaults to the 540x960 two-column canvas.

    Returns:
        GridPlan with one TileRect per clip index, in index order.

    Raises:
        ValueError: clip_count < 1.
    """
    if cfg is None:
        cfg = CanvasConfig()
    if clip_count < 1:
        raise ValueError(f"Need at least one clip to plan a grid, got {clip_count}")

    cols = cfg.columns
    pad = cfg.padding

    frame_w = ensure_even((cfg.output_width - pad * (cols + 1)) / cols)
    frame_h = ensure_even(frame_w / cfg.tile_aspect)

    is_odd = clip_count % 2 == 1
    num_rows = math.ceil(clip_count / cols)

    if is_odd:
        last_w = ensure_even(frame_w * 2 + pad)
        last_h = ensure_even(last_w / cfg.tile_aspect)
        grid_h = (num_rows - 1) * frame_h + last_h + (num_rows + 1) * pad
    else:
        last_w, last_h = frame_w, frame_h
        grid_h = num_rows * frame_h + (num_rows + 1) * pad
    grid_w = cols * frame_w + (cols + 1) * pad

    offset_x = ensure_even((cfg.output_width - grid_w) / 2)
    offset_y = ensure_even((cfg.output_height - grid_h) / 2)

    tiles = []
    for i in range(clip_count):
        row = i // cols
        col = i % cols
        spans = is_odd and i == clip_count - 1
        if spans:
            col = 0
            w, h = last_w, last_h
        else:
            w, h = frame_w, frame_h
        x = offset_x + pad + col * (frame_w + pad)
        y = offset_y + pad + row * (frame_h + pad)
        tiles.append(TileRect(i, x, y, w, h, row, col, spans))

    return GridPlan(
        tiles=tuple(tiles),
        frame_width=frame_w,
        frame_height=frame_h,
        grid_width=grid_w,
        grid_height=grid_h,
        offset_x=offset_x,
        offset_y=offset_y,
        num_rows=num_rows,
    )


def plan_tiles(clip_count: int, cfg: CanvasConfig | None = None) -> list[TileRect]:
    """Tile rectangles only. See plan_grid."""
    return list(plan_grid(clip_count, cfg).tiles)
