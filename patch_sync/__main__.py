"""
Entry point for the patch_sync component.
"""

import argparse
import asyncio
import logging
import sys

import uvicorn
from tqdm.contrib.logging import logging_redirect_tqdm

from .application.domain import SyncState
from .infrastructure.containers import Container

logger = logging.getLogger(__name__)


def setup_logging(level: str, fmt: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level, format=fmt)


def build_container(args: argparse.Namespace) -> Container:
    """Creates the DI container and applies logging settings."""
    container = Container()
    container.cli_args.from_dict(vars(args))
    config = container.config()
    setup_logging(level=config.logging.level, fmt=config.logging.format)
    return container


async def run_sync(container: Container) -> int:
    """Runs a single sync to completion and returns the exit code."""

    orchestrator = container.orchestrator()
    try:
        with logging_redirect_tqdm():
            outcome = await orchestrator.run(force=True)
    finally:
        await container.http_client().aclose()

    if outcome.state is SyncState.FAILED:
        logger.error(f"Patch sync failed: {outcome.error}")
        return 1

    logger.info(f"Patch sync finished: {outcome.state.value} ({outcome.version})")
    return 0


def run_server(container: Container, args: argparse.Namespace):
    """Serves the web app; the sync runs in the background on startup."""
    config = container.config()
    uvicorn.run(
        container.web_app(),
        host=args.host or config.web.host,
        port=args.port or config.web.port,
        log_level=str(config.logging.level).lower(),
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="LoL Quiz patch data sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser(
        "serve", help="Run the web server and sync patch data on startup."
    )
    serve.add_argument("--host", help="Interface to bind to.")
    serve.add_argument("--port", type=int, help="Port to listen on.")
    serve.add_argument(
        "--no-sync",
        action="store_true",
        help="Do not check for new patch data on startup.",
    )

    sync = subparsers.add_parser(
        "sync", help="Check for new patch data once and exit."
    )
    sync.add_argument(
        "--progress",
        action="store_true",
        help="Show a console progress bar while downloading.",
    )

    args = parser.parse_args(argv)
    container = build_container(args)

    if args.command == "serve":
        run_server(container, args)
    else:
        sys.exit(asyncio.run(run_sync(container)))


if __name__ == "__main__":
    main()
