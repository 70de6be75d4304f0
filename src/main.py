# src/main.py — v1
"""CLI entry point — ingest, history commands.

Usage:
    examextractor ingest <directory> [options]
    examextractor history [--clear]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from examextractor.config.settings import ConfigurationError, Settings, load_settings
from examextractor.logging.logger import setup_logging
from examextractor.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    _quiet_libraries()

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="examextractor",
        description=f"examExtractor v{__version__} — Multilingual exam builder from question images",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- ingest ---
    p_ingest = subparsers.add_parser(
        "ingest", help="Analyze every question image in a directory",
    )
    p_ingest.add_argument("directory", type=Path, help="Directory to scan")
    p_ingest.add_argument(
        "--concurrency", type=int, default=None,
        help="Parallel analysis requests (default: MAX_CONCURRENT_REQUESTS)",
    )
    p_ingest.add_argument(
        "--spacing", type=float, default=None,
        help="Seconds between remote calls per worker (default: REQUEST_SPACING_S)",
    )
    p_ingest.add_argument(
        "--label", default=None,
        help="Session label (default: directory name)",
    )
    p_ingest.add_argument(
        "--no-recursive", action="store_true",
        help="Disable recursive scanning",
    )
    p_ingest.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the extracted questions to this JSON file",
    )
    p_ingest.set_defaults(func=_cmd_ingest)

    # --- history ---
    p_history = subparsers.add_parser(
        "history", help="List finalized exam sessions",
    )
    p_history.add_argument(
        "--clear", action="store_true",
        help="Delete every history entry",
    )
    p_history.set_defaults(func=_cmd_history)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if getattr(args, "concurrency", None) is not None:
        overrides["max_concurrent_requests"] = args.concurrency
    if getattr(args, "spacing", None) is not None:
        overrides["request_spacing_s"] = args.spacing
    return load_settings(**overrides)


async def _cmd_ingest(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a batch over a directory of question images."""
    from examextractor.api.facade import export_questions, ingest_directory

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    logger.info("Ingesting %s", directory)
    outcome = await ingest_directory(
        directory,
        recursive=not args.no_recursive,
        label=args.label,
        settings=settings,
    )
    result = outcome.result

    print("\nBatch complete:")
    print(f"  Label:         {result.label}")
    print(f"  Files:         {result.total_files}")
    print(f"  Questions:     {result.succeeded}")
    print(f"  Failed:        {result.failed}")
    print(f"  Cache hits:    {result.cache_hits}")
    print(f"  Remote calls:  {result.remote_calls}")
    print(f"  Duration:      {result.duration_seconds:.1f}s")
    if result.rate_limited:
        print("  Note:          the analysis service reported quota exhaustion")

    if args.output is not None:
        count = export_questions(outcome.session, args.output)
        print(f"  Output:        {args.output} ({count} questions)")
    return 0


async def _cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    """List or clear the exam history log."""
    from examextractor.storage.history_log import HistoryLog

    history = HistoryLog(settings.history_path)
    if args.clear:
        removed = await history.clear()
        print(f"Cleared {removed} history entries")
        return 0

    entries = await history.list_entries()
    if not entries:
        print("No exam history yet")
        return 0
    for entry in entries:
        print(
            f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.label:<30}  "
            f"{entry.score}/{entry.total}  {entry.accuracy}%"
        )
    return 0


def _quiet_libraries() -> None:
    for name in ("httpx", "httpcore", "urllib3", "google", "grpc"):
        logging.getLogger(name).setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
