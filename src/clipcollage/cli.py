"""CLI for collage composition.

Reads a YAML manifest, validates sources, runs the normalization
advisor on each one, compiles the collage program and renders it with
ffmpeg.

Usage:
    # Compose and render
    clipcollage compose --manifest collage.yaml --output /tmp/collage.mp4

    # Accept every optimization prompt, also grab a thumbnail
    clipcollage compose --manifest collage.yaml --output out.mp4 \
        --yes --thumbnail out.jpg

    # Print the ffmpeg command instead of running it
    clipcollage compose --manifest collage.yaml --output out.mp4 --dry-run

    # Draw the tile layout only
    clipcollage compose --manifest collage.yaml --preview layout.png --dry-run
"""

import argparse
import dataclasses
import shlex
import sys
import time

from .common import configure_logging
from .emitter import compile_collage
from .encoders import choose_encoder
from .layout import plan_grid
from .manifest import load_collage_manifest, validate_sources
from .normalize import NormalizationError, normalize_sources
from .preview import render_layout_preview
from .render import RenderError, collage_command, extract_thumbnail, render_collage


def terminal_confirm(reason: str) -> bool:
    """Ask on stdin; anything but y/yes is a decline."""
    answer = input(f"  {reason} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def _always_yes(reason: str) -> bool:
    print(f"  AUTO   {reason} -> yes")
    return True


def _normalize(config, confirm, work_dir, workers, skip_failed):
    """Swap each source for its normalized path; drop or abort on failures.

    Returns (clips, paths) for the compiler.
    """
    t0 = time.monotonic()
    results = normalize_sources(
        config["paths"], confirm,
        platform=config["output"]["platform"],
        output_dir=work_dir,
        workers=workers,
    )

    clips, paths, failed = [], [], []
    for i, (clip, res) in enumerate(zip(config["clips"], results)):
        if res.ok:
            if res.path != res.source_path:
                print(f"  OPT    [{i}] {res.source_path} -> {res.path}")
            if clip.has_audio and res.probe is not None and not res.probe.has_audio:
                print(f"  MUTE   [{i}] {res.source_path} has no audio stream")
                clip = dataclasses.replace(clip, has_audio=False)
            clips.append(clip)
            paths.append(res.path)
        else:
            failed.append((i, res))

    for i, res in failed:
        tag = "SKIP" if skip_failed else "FAIL"
        print(f"  {tag}   [{i}] {res.source_path}: {res.error}")
        log_text = getattr(res.error, "log", "")
        if log_text:
            print(log_text, file=sys.stderr)

    if failed and not skip_failed:
        raise NormalizationError(
            f"{len(failed)} source(s) could not be used; "
            "rerun with --skip-failed to leave them out"
        )
    print(f"Normalized {len(results)} sources ({time.monotonic() - t0:.1f}s)")
    return clips, paths


def compose(
    manifest_path: str,
    output_path: str | None,
    assume_yes: bool = False,
    dry_run: bool = False,
    preview_path: str | None = None,
    thumbnail_path: str | None = None,
    work_dir: str | None = None,
    workers: int = 4,
    skip_failed: bool = False,
    skip_normalize: bool = False,
    gpu: bool = False,
) -> None:
    """Load manifest, normalize sources, compile, render.

    Args:
        manifest_path: Path to YAML collage manifest.
        output_path: Output mp4 path (may be None with dry_run).
        assume_yes: Accept every optimization prompt.
        dry_run: Print the ffmpeg command instead of running it.
        preview_path: Write a PNG of the tile layout here.
        thumbnail_path: Extract a JPEG frame from the result here.
        work_dir: Where re-encoded sources go (default: next to source).
        workers: Concurrent probes/re-encodes.
        skip_failed: Leave declined/failed sources out instead of aborting.
        skip_normalize: Use sources as given, no probing.
        gpu: Prefer h264_nvenc on desktop.
    """
    config = load_collage_manifest(manifest_path)
    validate_sources(config)
    canvas = config["canvas"]
    output = config["output"]

    print(f"Collage: {len(config['clips'])} clips, "
          f"{canvas.output_width}x{canvas.output_height}, {output['platform']}")

    if skip_normalize:
        clips, paths = config["clips"], config["paths"]
    else:
        confirm = _always_yes if assume_yes else terminal_confirm
        clips, paths = _normalize(config, confirm, work_dir, workers, skip_failed)

    program = compile_collage(clips, canvas)
    print(f"Compiled {len(program.nodes)} filter nodes "
          f"(audio: {'yes' if program.has_audio else 'no'})")

    if preview_path:
        render_layout_preview(plan_grid(len(clips), canvas), canvas).save(preview_path)
        print(f"Layout preview: {preview_path}")

    encoder = output["encoder"] or choose_encoder(output["platform"], gpu=gpu)
    target = output_path or "collage.mp4"

    if dry_run:
        cmd = collage_command(program, paths, target, encoder, output["audio_bitrate"])
        print(shlex.join(cmd))
        return

    print(f"Rendering with {encoder} to {target}")
    t0 = time.monotonic()
    render_collage(program, paths, target, encoder, output["audio_bitrate"])
    print(f"\nDone: {target} ({time.monotonic() - t0:.1f}s)")

    if thumbnail_path:
        extract_thumbnail(target, thumbnail_path)
        print(f"Thumbnail: {thumbnail_path}")


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Compose trimmed clips into a vertical collage video.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML collage manifest",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path (required unless --dry-run)",
    )
    parser.add_argument(
        "--yes", action="store_true",
        help="Accept every source optimization prompt",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print the ffmpeg command, don't render",
    )
    parser.add_argument(
        "--preview", default=None,
        help="Write a PNG sketch of the tile layout",
    )
    parser.add_argument(
        "--thumbnail", default=None,
        help="Extract a JPEG frame from the rendered collage",
    )
    parser.add_argument(
        "--work-dir", default=None,
        help="Directory for optimized sources (default: next to each source)",
    )
    parser.add_argument(
        "--workers", type=int, default=4,
        help="Concurrent source probes/optimizations (default: 4)",
    )
    parser.add_argument(
        "--skip-failed", action="store_true",
        help="Leave out sources that were declined or failed to optimize",
    )
    parser.add_argument(
        "--skip-normalize", action="store_true",
        help="Use sources as given, without probing",
    )
    parser.add_argument(
        "--gpu", action="store_true",
        help="Use h264_nvenc on desktop when available",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v, -vv)",
    )
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    if not args.output and not args.dry_run:
        parser.error("--output is required (unless using --dry-run)")

    try:
        compose(
            args.manifest, args.output,
            assume_yes=args.yes,
            dry_run=args.dry_run,
            preview_path=args.preview,
            thumbnail_path=args.thumbnail,
            work_dir=args.work_dir,
            workers=args.workers,
            skip_failed=args.skip_failed,
            skip_normalize=args.skip_normalize,
            gpu=args.gpu,
        )
    except (ValueError, FileNotFoundError, NormalizationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except RenderError as exc:
        print(f"Collage rendering failed: {exc}", file=sys.stderr)
        print(exc.log, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
