"""clipcollage.common — shared utilities for collage compilation.

Contains: color parsing, aspect parsing, path variable resolution,
filter argument formatting, font loading, and CLI logging setup.
"""

import logging
import re
import sys
from fractions import Fraction
from pathlib import Path

from PIL import ImageFont


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6 or not all(c in "0123456789abcdefABCDEF" for c in hex_str):
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


def ffmpeg_color(value: str) -> str:
    """Normalize a color for ffmpeg's color source.

    '#RRGGBB' becomes '0xRRGGBB'; bare names ('black', 'white') pass
    through unchanged since ffmpeg resolves them itself.
    """
    if value.startswith("#"):
        r, g, b = parse_hex_color(value)
        return f"0x{r:02X}{g:02X}{b:02X}"
    if not re.fullmatch(r"[A-Za-z]+", value):
        raise ValueError(f"Unknown color: '{value}'. Use a name or '#RRGGBB'.")
    return value


# ── Aspect ratios ──────────────────────────────────────────────────

def parse_aspect(value) -> float:
    """Parse an aspect ratio given as '4:3', '16/9', '1.777' or a number.

    Raises:
        ValueError: Unparseable or non-positive ratio.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ratio = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(":", "/")
        try:
            ratio = float(Fraction(text))
        except (ValueError, ZeroDivisionError):
            raise ValueError(f"Invalid aspect ratio: '{value}'") from None
    else:
        raise ValueError(f"Invalid aspect ratio: {value!r}")
    if ratio <= 0:
        raise ValueError(f"Aspect ratio must be > 0, got {value!r}")
    return ratio


# ── Filter argument formatting ─────────────────────────────────────

def format_number(value: float) -> str:
    """Render a number the way it should appear in filter arguments.

    Integral values drop the trailing '.0' (3.0 -> '3'); everything else
    uses the shortest round-tripping repr (0.1 -> '0.1').
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not filter numbers")
    if isinstance(value, int):
        return str(value)
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size."""
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default bitmap font.
    return ImageFont.load_default()


# ── Logging ────────────────────────────────────────────────────────

def configure_logging(verbose: int = 0) -> None:
    """Route library logs to stderr: WARNING by default, -v INFO, -vv DEBUG."""
    level = (
        logging.WARNING
        if verbose == 0
        else (logging.INFO if verbose == 1 else logging.DEBUG)
    )
    logging.basicConfig(
        level=level, stream=sys.stderr, format="%(levelname)s: %(message)s"
    )
