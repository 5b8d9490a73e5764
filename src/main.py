# src/main.py — v2
"""CLI entry point — create, list, show, delete, clear commands.

Usage:
    ofrenda create <photo> "<food description>"
    ofrenda list
    ofrenda show <altar_id>
    ofrenda delete <altar_id>
    ofrenda clear
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ofrenda.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ofrenda",
        description=f"ofrenda v{__version__} — Altar creation from a photo and a food description",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- create ---
    p_create = subparsers.add_parser(
        "create", help="Upload a photo and generate an altar",
    )
    p_create.add_argument("photo", type=Path, help="Path to a JPEG, PNG or WEBP photo")
    p_create.add_argument("description", help="Food description (10-500 characters)")
    p_create.set_defaults(func=_cmd_create)

    # --- list ---
    p_list = subparsers.add_parser("list", help="List saved altars, newest first")
    p_list.set_defaults(func=_cmd_list)

    # --- show ---
    p_show = subparsers.add_parser("show", help="Show one saved altar")
    p_show.add_argument("altar_id", help="Altar ID")
    p_show.set_defaults(func=_cmd_show)

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Delete one saved altar")
    p_delete.add_argument("altar_id", help="Altar ID")
    p_delete.set_defaults(func=_cmd_delete)

    # --- clear ---
    p_clear = subparsers.add_parser("clear", help="Delete every saved altar")
    p_clear.set_defaults(func=_cmd_clear)

    return parser


async def _cmd_create(args: argparse.Namespace) -> int:
    """Validate inputs, then run the creation pipeline."""
    from ofrenda.config.settings import Settings
    from ofrenda.core.errors import AltarCreationError
    from ofrenda.core.models import CreateAltarRequest
    from ofrenda.pipeline.context import PipelineContext
    from ofrenda.pipeline.orchestrator import AltarOrchestrator
    from ofrenda.utils.files import format_file_size
    from ofrenda.validation.validators import validate_file, validate_food_description

    photo_path: Path = args.photo
    if not photo_path.is_file():
        logger.error("File not found: %s", photo_path)
        return 1

    settings = Settings()
    photo = photo_path.read_bytes()

    file_check = validate_file(photo, settings.max_file_size_mb)
    if not file_check.is_valid:
        logger.error("Invalid photo (%s): %s", file_check.code, file_check.error)
        return 1

    text_check = validate_food_description(
        args.description,
        settings.description_min_length,
        settings.description_max_length,
    )
    if not text_check.is_valid:
        logger.error("Invalid description (%s): %s", text_check.code, text_check.error)
        return 1

    logger.info("Creating altar from %s (%s)", photo_path.name, format_file_size(len(photo)))
    context = PipelineContext.from_settings(settings)
    orchestrator = AltarOrchestrator(context)
    try:
        orchestrator.load_altars()
        altar = await orchestrator.create_altar(
            CreateAltarRequest(
                photo=photo,
                filename=photo_path.name,
                food_description=args.description,
            )
        )
    except AltarCreationError as exc:
        print(f"\n{exc}", file=sys.stderr)
        return 1
    finally:
        await context.aclose()

    print("\nAltar created:")
    _print_altar(altar)
    if context.state.warning:
        print(f"\nWarning: {context.state.warning}", file=sys.stderr)
    return 0


async def _cmd_list(args: argparse.Namespace) -> int:
    """List stored altars."""
    store = _open_store()
    altars = store.get_all()
    if not altars:
        print("No altars saved.")
        return 0

    print(f"\n{len(altars)} altar(s):")
    for altar in altars:
        preview = altar.food_description[:50]
        if len(altar.food_description) > 50:
            preview += "..."
        print(f"  {altar.id}  {altar.created_at.isoformat()}  {preview}")
    return 0


async def _cmd_show(args: argparse.Namespace) -> int:
    """Print one stored altar."""
    altar = _open_store().get(args.altar_id)
    if altar is None:
        logger.error("Altar not found: %s", args.altar_id)
        return 1
    _print_altar(altar)
    return 0


async def _cmd_delete(args: argparse.Namespace) -> int:
    """Delete one stored altar (no-op for unknown IDs)."""
    _open_store().delete(args.altar_id)
    print(f"Deleted {args.altar_id}")
    return 0


async def _cmd_clear(args: argparse.Namespace) -> int:
    """Delete every stored altar."""
    _open_store().clear()
    print("All altars deleted.")
    return 0


def _open_store():
    from ofrenda.config.settings import Settings
    from ofrenda.store.local_store import LocalStore

    return LocalStore.from_settings(Settings())


def _print_altar(altar: object) -> None:
    """Print a human-readable summary of an AltarRecord."""
    print(f"  ID:           {altar.id}")
    print(f"  Created:      {altar.created_at.isoformat()}")
    print(f"  Photo:        {altar.photo_url}")
    print(f"  Altar image:  {altar.altar_image_url}")
    print(f"  Description:  {altar.food_description}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from ofrenda.config.settings import Settings
    from ofrenda.logging.logger import setup_logging_from_settings

    settings = Settings()
    setup_logging_from_settings(settings, level="DEBUG" if verbose else None)
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
