"""Command line entry point for the presence sync job.

Meant to be triggered by an external scheduler every few minutes:

    presence-sync                     # Reconcile every user with configured defaults
    presence-sync --batch-size 1000   # Larger pages
    presence-sync --workers 4         # Up to four chunks in flight
    presence-sync -v                  # DEBUG logging

Exit code 0 on success, 1 on any unrecovered error.
"""
import argparse
import asyncio
import logging
import sys
import traceback
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from presence_sync.config import Settings, get_settings
from presence_sync.database import build_engine, build_session_factory
from presence_sync.services import PresenceSyncJob, PresenceSyncStats

logger = logging.getLogger("presence_sync")


def _print_summary(stats: PresenceSyncStats) -> None:
    print()
    print("=" * 10 + " Presence sync complete " + "=" * 10)
    print(f"Total users: {stats.total_users}")
    print(f"Online users: {stats.online_users}")
    print(f"Offline users: {stats.offline_users}")
    print(f"Execution time: {stats.execution_time} s")
    print("=" * 44)


def _error_context(exc: BaseException) -> dict:
    frames = traceback.extract_tb(exc.__traceback__)
    location = frames[-1] if frames else None
    return {
        "error": str(exc),
        "file": location.filename if location else None,
        "line": location.lineno if location else None,
        "trace": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


async def run_presence_sync(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Run one presence sync pass and report the outcome.

    Args:
        settings: Settings to use; defaults to the cached application settings
        session_factory: Session factory; defaults to the application's engine
        now: Reference time for the activity window

    Returns:
        Process exit code (0 success, 1 failure)
    """
    settings = settings or get_settings()
    owned_engine = None

    print("Starting user presence sync...")

    try:
        if session_factory is None:
            # Pool sized from these settings so CLI worker overrides apply
            owned_engine = build_engine(settings)
            session_factory = build_session_factory(owned_engine)

        job = PresenceSyncJob(session_factory=session_factory, settings=settings, progress=print)
        stats = await job.run(now=now)
        _print_summary(stats)
        return 0

    except Exception as e:
        print(f"Presence sync failed: {e}", file=sys.stderr)
        logger.error("Presence sync failed", exc_info=True, extra=_error_context(e))
        return 1

    finally:
        if owned_engine is not None:
            await owned_engine.dispose()


def build_settings(args: argparse.Namespace) -> Settings:
    """Apply command line overrides on top of the environment settings."""
    settings = get_settings()
    overrides = {
        "presence_batch_size": args.batch_size,
        "presence_window_minutes": args.window_minutes,
        "presence_chunk_workers": args.workers,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return settings
    return Settings(**{**settings.model_dump(), **overrides})


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the presence sync command."""
    parser = argparse.ArgumentParser(
        description="Reconcile user online/offline state from recent game and login activity",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Users per page (default: PRESENCE_BATCH_SIZE or 500)"
    )
    parser.add_argument(
        "--window-minutes",
        type=int,
        help="Activity window in minutes (default: PRESENCE_WINDOW_MINUTES or 5)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Chunks processed concurrently (default: PRESENCE_CHUNK_WORKERS or 1)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable DEBUG logging"
    )

    args = parser.parse_args(argv)

    try:
        settings = build_settings(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    from presence_sync.logging_config import configure_logging
    try:
        configure_logging(settings, verbose=args.verbose)
    except OSError as e:
        print(f"Logging setup failed: {e}", file=sys.stderr)
        return 1

    return asyncio.run(run_presence_sync(settings=settings))


if __name__ == "__main__":
    sys.exit(main())
