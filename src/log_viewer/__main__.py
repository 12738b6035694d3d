"""Entry point for the live log viewer."""

import asyncio
import logging
import signal
import sys

from .config import AppConfig
from .viewer import LogViewer

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level_name: str) -> None:
    """Configure logging to stdout."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    # Quiet noisy libraries
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


async def main() -> None:
    """Start all services and run until signalled to stop."""
    config = AppConfig.load()
    setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Live log viewer starting...")

    viewer = LogViewer(config)
    web_server = viewer.create_web_server()

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Received shutdown signal")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        # Web server first so clients can connect while the stream comes up
        await web_server.start()
        await viewer.start()
        logger.info("All services running. Waiting for shutdown signal...")
        await shutdown_event.wait()
    except OSError as e:
        logger.error("Fatal error: %s", e, exc_info=True)
    finally:
        await viewer.shutdown()
        await web_server.stop()
        logger.info("Goodbye.")


if __name__ == "__main__":
    asyncio.run(main())
