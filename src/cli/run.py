import argparse
import asyncio
import logging
import sys
import time
from typing import List, Optional

from core.entities import Snapshot
from core.errors import FetchError
from services.config import Config, load_config
from services.logging import setup_logging
from workflows.pipeline_factory import build_runtime

logger = logging.getLogger(__name__)


async def build_first_snapshot(config: Config) -> Snapshot:
    """
    Run the startup refresh on a throwaway runtime. Raises FetchError when
    there is nothing to serve.
    """
    runtime = build_runtime(config)
    try:
        await runtime.refresher.refresh_once(initial=True)
    finally:
        await runtime.aclose()
    return runtime.store.current()


async def run_once(config: Config) -> int:
    """Build and publish a single snapshot, then exit."""
    start_time = time.perf_counter()

    try:
        snapshot = await build_first_snapshot(config)
    except FetchError as e:
        logger.error(f"Snapshot run failed: {e}")
        return 1

    for rank, item in enumerate(snapshot.items, start=1):
        print(f"{rank:>3}. [{item.score:>5}] {item.title} ({item.display_url})")

    logger.info(f"Total time: {time.perf_counter() - start_time:.2f}s")
    return 0


def serve(config: Config) -> int:
    from gui.app import create_app

    # The first snapshot is built before the server starts so a dead
    # upstream is reported here instead of inside the ASGI lifespan
    try:
        snapshot = asyncio.run(build_first_snapshot(config))
    except FetchError as e:
        logger.error(f"Startup aborted: {e}")
        return 1

    app = create_app(config, initial_snapshot=snapshot)
    logger.info(f"Starting to serve snapshot v{snapshot.version} on {config.server.host}:{config.server.port}")
    app.run(host=config.server.host, port=config.server.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hn-snapshot",
        description="Periodically refreshed ranked snapshot of Hacker News items",
    )
    parser.add_argument("command", nargs="?", default="serve", choices=["serve", "once"])
    parser.add_argument("--config", help="Path to config.yml")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level.upper(), logging.INFO))

    config = load_config(args.config)

    if args.command == "once":
        return asyncio.run(run_once(config))
    return serve(config)


if __name__ == "__main__":
    sys.exit(main())
