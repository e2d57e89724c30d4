"""
Darkroom - Entry Point

Run with: python -m darkroom <command> [options]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from darkroom import __version__
from darkroom.catalog.client import CatalogClient, CatalogError
from darkroom.commands import (
    AutoAlbumOptions,
    StackOptions,
    auto_album,
    stack,
    validate,
)
from darkroom.config import ConfigError, ConfigOverrides, load_config

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per tool."""
    # Shared by every sub-command so they may follow the command name.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--baseurl",
        type=str,
        default=None,
        help="Immich server URL (overrides IMMICH_URL)",
    )
    common.add_argument(
        "--apikey",
        type=str,
        default=None,
        help="Immich API key (overrides IMMICH_API_KEY)",
    )
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional TOML config file with an [immich] table",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress and enable debug logging",
    )

    parser = argparse.ArgumentParser(
        prog="darkroom",
        description="Darkroom - housekeeping tools for an Immich photo library",
        epilog=(
            "environment:\n"
            "  IMMICH_URL          Server URL (e.g., https://immich.example.com)\n"
            "  IMMICH_API_KEY      Your API key"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    sub.add_parser(
        "validate",
        parents=[common],
        help="Validate connection to the Immich server",
    )

    p_stack = sub.add_parser(
        "stack",
        parents=[common],
        help="Stack RAW+JPG pairs created by Google Pixel phones and other cameras",
        epilog=(
            "examples:\n"
            '  darkroom stack --cover "\\.(jpg|jpeg)$" --raw "\\.dng$" --dry-run\n'
            '  darkroom stack --cover "\\.jpg$" --raw "\\.dng$" --album abc123'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_stack.add_argument("--cover", required=True, metavar="REGEX", help="Regex pattern for cover/primary images")
    p_stack.add_argument("--raw", required=True, metavar="REGEX", help="Regex pattern for RAW/secondary images")
    p_stack.add_argument(
        "--stem-pattern",
        default=None,
        metavar="REGEX",
        help="Regex with capture group to extract matching stem",
    )
    p_stack.add_argument("--dry-run", action="store_true", help="Preview pairs without creating stacks")
    p_stack.add_argument("--after", default=None, metavar="DATE", help="Only process assets after this date (ISO format)")
    p_stack.add_argument("--before", default=None, metavar="DATE", help="Only process assets before this date (ISO format)")
    p_stack.add_argument("--album", default=None, metavar="ID", help="Only process assets in this album")
    p_stack.add_argument(
        "--skip-stacked",
        action="store_true",
        help="Skip pairs where either asset already belongs to a stack",
    )

    p_album = sub.add_parser(
        "auto-album",
        parents=[common],
        help="Create albums from assets matching date and location criteria",
        epilog=(
            "example:\n"
            '  darkroom auto-album --name "Rome Vacation" --after 2024-06-01 --before 2024-06-15 '
            '--location Rome --location "Vatican City"'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_album.add_argument("--name", required=True, help="Name for the album to create")
    p_album.add_argument("--after", required=True, metavar="DATE", help="Start date for asset filter (ISO format)")
    p_album.add_argument("--before", required=True, metavar="DATE", help="End date for asset filter (ISO format)")
    p_album.add_argument(
        "--location",
        action="append",
        default=[],
        dest="locations",
        metavar="LOC",
        help="Location to filter by (repeatable)",
    )
    p_album.add_argument("--dry-run", action="store_true", help="Preview without creating the album")

    return parser


async def run_command(args: argparse.Namespace) -> int:
    """Load configuration and dispatch to the selected command."""
    config = load_config(
        ConfigOverrides(url=args.baseurl, api_key=args.apikey),
        config_path=args.config,
    )

    if args.command == "validate":
        return await validate(config)

    async with CatalogClient.from_config(config) as client:
        if args.command == "stack":
            options = StackOptions(
                cover_pattern=args.cover,
                raw_pattern=args.raw,
                stem_pattern=args.stem_pattern,
                dry_run=args.dry_run,
                after=args.after,
                before=args.before,
                album_id=args.album,
                skip_stacked=args.skip_stacked,
                verbose=args.verbose,
            )
            return await stack(client, options, page_size=config.page_size)

        if args.command == "auto-album":
            options = AutoAlbumOptions(
                name=args.name,
                after=args.after,
                before=args.before,
                locations=list(args.locations),
                dry_run=args.dry_run,
                verbose=args.verbose,
            )
            return await auto_album(client, options, page_size=config.page_size)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose)

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except ConfigError as e:
        logger.error("%s", e)
        return 1
    except CatalogError as e:
        logger.error("Request failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
