"""Static previews of a tile plan.

render_layout_preview() draws the canvas with numbered rounded tiles, so
a grid can be checked before any video is decoded. corner_mask()
evaluates the rounded-corner formula of the Mask node with numpy; it is
the same expression ffmpeg's geq runs per pixel.
"""

import numpy as np
from PIL import Image, ImageColor, ImageDraw

from .common import load_font
from .layout import CanvasConfig, GridPlan

# Tile fills, cycled by index.
TILE_COLORS = [
    (180, 60, 60),
    (60, 60, 180),
    (60, 160, 60),
    (200, 130, 40),
    (130, 60, 180),
    (40, 170, 170),
]


def corner_mask(width: int, height: int, radius: int) -> np.ndarray:
    """Rounded-rectangle luminance mask, shape (height, width), uint8.

    A pixel is 0 when its distance from the inner rectangle (the tile
    shrunk by `radius` on every side) exceeds `radius`, else 255.
    """
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    dx = xs - np.maximum(radius, np.minimum(width - radius, xs))
    dy = ys - np.maximum(radius, np.minimum(height - radius, ys))
    dist = np.hypot(dx[np.newaxis, :], dy[:, np.newaxis])
    return np.where(dist > radius, 0, 255).astype(np.uint8)


def _background_rgb(value: str) -> tuple[int, int, int]:
    try:
        return ImageColor.getrgb(value)[:3]
    except ValueError:
        raise ValueError(
            f"Unknown color: '{value}'. Use a CSS color name or '#RRGGBB'."
        ) from None


def render_layout_preview(plan: GridPlan, cfg: CanvasConfig | None = None) -> Image.Image:
    """Draw the canvas with one numbered rounded rectangle per tile."""
    if cfg is None:
        cfg = CanvasConfig()
    img = Image.new(
        "RGB", (cfg.output_width, cfg.output_height), _background_rgb(cfg.background),
    )
    draw = ImageDraw.Draw(img)
    font = load_font(max(12, plan.frame_height // 4))

    for tile in plan.tiles:
        box = [tile.x, tile.y, tile.x + tile.width - 1, tile.y + tile.height - 1]
        radius = min(cfg.corner_radius, tile.width // 2, tile.height // 2)
        color = TILE_COLORS[tile.index % len(TILE_COLORS)]
        draw.rounded_rectangle(box, radius=radius, fill=color)

        label = str(tile.index)
        bbox = draw.textbbox((0, 0), label, font=font)
        tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
        draw.text(
            (tile.x + (tile.width - tw) // 2, tile.y + (tile.height - th) // 2),
            label, fill=(255, 255, 255), font=font,
        )
    return img
