"""CLI for the geometry planner — print (and optionally draw) a tile plan.

Usage:
    clipcollage plan --count 5
    clipcollage plan --manifest collage.yaml --preview layout.png
"""

import argparse

from .layout import CanvasConfig, plan_grid
from .manifest import load_collage_manifest
from .preview import render_layout_preview


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Print the collage tile layout for a clip count.",
    )
    parser.add_argument(
        "--count", type=int, default=None,
        help="Number of clips (default: the manifest's clip count)",
    )
    parser.add_argument(
        "--manifest", default=None,
        help="Take canvas settings (and clip count) from this manifest",
    )
    parser.add_argument(
        "--preview", default=None,
        help="Write a PNG sketch of the layout",
    )
    parsed = parser.parse_args(args)

    cfg = CanvasConfig()
    count = parsed.count
    if parsed.manifest:
        config = load_collage_manifest(parsed.manifest)
        cfg = config["canvas"]
        if count is None:
            count = len(config["clips"])
    if count is None:
        parser.error("--count is required without --manifest")
    if count < 1:
        parser.error(f"--count must be >= 1, got {count}")

    plan = plan_grid(count, cfg)
    print(f"Canvas {cfg.output_width}x{cfg.output_height}, "
          f"grid {plan.grid_width}x{plan.grid_height} "
          f"at ({plan.offset_x}, {plan.offset_y})")
    for t in plan.tiles:
        span = "  (spans)" if t.spans else ""
        print(f"  {t.index}: row {t.row} col {t.col}  "
              f"{t.width}x{t.height} @ ({t.x}, {t.y}){span}")

    if parsed.preview:
        render_layout_preview(plan, cfg).save(parsed.preview)
        print(f"Preview: {parsed.preview}")


if __name__ == "__main__":
    main()
