"""CLI for the source normalization advisor.

Usage:
    clipcollage inspect a.mp4 b.mov
    clipcollage inspect big.mp4 --platform android --yes --output-dir opt/
"""

import argparse
import sys

from .common import configure_logging
from .encoders import VALID_PLATFORMS
from .normalize import (
    Declined,
    NormalizationError,
    Reencode,
    Unknown,
    execute_reencode,
    inspect_source,
)
from .cli import terminal_confirm


def _describe(decision) -> str:
    if isinstance(decision, Unknown):
        return f"pass-through (probe: {decision.reason})"
    if isinstance(decision, Reencode):
        return f"re-encode -> {decision.planned_output_path} ({'; '.join(decision.reasons)})"
    if isinstance(decision, Declined):
        return f"declined ({'; '.join(decision.reasons)})"
    return "pass-through"


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Check sources and optimize the ones a collage can't use as is.",
    )
    parser.add_argument(
        "sources", nargs="+",
        help="Source video paths",
    )
    parser.add_argument(
        "--platform", default="desktop", choices=sorted(VALID_PLATFORMS),
        help="Target platform (default: desktop)",
    )
    parser.add_argument(
        "--output-dir", default=None,
        help="Directory for optimized files (default: next to each source)",
    )
    parser.add_argument(
        "--yes", action="store_true",
        help="Accept every optimization prompt",
    )
    parser.add_argument(
        "--plan-only", action="store_true",
        help="Print decisions without running any re-encode",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v, -vv)",
    )
    parsed = parser.parse_args(args)
    configure_logging(parsed.verbose)

    # Nothing runs in plan-only mode, so there is nothing to confirm.
    if parsed.yes or parsed.plan_only:
        confirm = lambda reason: True  # noqa: E731
    else:
        confirm = terminal_confirm

    failed = 0
    for source in parsed.sources:
        decision = inspect_source(
            source, confirm,
            platform=parsed.platform,
            output_dir=parsed.output_dir,
        )
        print(f"  {source}: {_describe(decision)}")
        if isinstance(decision, Declined):
            print(f"  FAIL   {source} was not optimized and can't be used", file=sys.stderr)
            failed += 1
        elif isinstance(decision, Reencode) and not parsed.plan_only:
            try:
                out = execute_reencode(decision)
            except NormalizationError as exc:
                print(f"  FAIL   {exc}", file=sys.stderr)
                failed += 1
                continue
            print(f"  DONE   {out}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
