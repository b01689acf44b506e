"""ArchieTag entry point."""

import asyncio
import contextlib
import logging
import signal

from src.api.server import ApiServer
from src.app import PetApp
from src.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


async def _run() -> None:
    pets = PetApp()
    server = ApiServer(pets)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    await pets.start()
    await server.start()
    try:
        await stop.wait()
    finally:
        logger.info("Shutting down gracefully...")
        await server.stop()
        await pets.stop()


def main() -> None:
    """Start the monitor and the HTTP API, then run until signalled."""
    asyncio.run(_run())


if __name__ == "__main__":
    main()
