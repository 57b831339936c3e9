"""Subcommand dispatcher for clipcollage.

Usage:
    clipcollage compose  --manifest ... --output ...
    clipcollage inspect  source.mp4 [--platform android]
    clipcollage plan     --count 5 [--preview layout.png]
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipcollage",
        description="Compile trimmed clips into a vertical collage video.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Compile and render a collage from YAML manifest")
    subparsers.add_parser("inspect", help="Check sources and optimize oversized ones")
    subparsers.add_parser("plan", help="Print the tile layout for a clip count")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "inspect":
        from .inspect_cli import main as inspect_main
        inspect_main(remaining)
    elif parsed.command == "plan":
        from .plan_cli import main as plan_main
        plan_main(remaining)


if __name__ == "__main__":
    main()
