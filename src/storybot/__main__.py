"""Main entry point for the bot."""
import asyncio
import logging
import signal

from storybot.app import StoryBot
from storybot.config import ensure_directories
from storybot.logging_config import setup_logging

logger = logging.getLogger(__name__)


async def shutdown(sig, loop, stop_event: asyncio.Event):
    """Ask the main loop to stop."""
    print()  # Print newline before logging
    logger.info(f"Received exit signal {sig.name}...")
    stop_event.set()


async def main() -> None:
    """Run the bot."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    # Add signal handlers
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: asyncio.create_task(shutdown(s, loop, stop_event))
        )

    bot = StoryBot()
    try:
        logger.info("Starting bot...")
        await bot.start()
        await stop_event.wait()
    finally:
        logger.info("Cleaning up...")
        await bot.stop()


def run() -> None:
    """Console script entry point."""
    ensure_directories()
    setup_logging("Starting StoryBot ...")
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")


if __name__ == "__main__":
    run()
