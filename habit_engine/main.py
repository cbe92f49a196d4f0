from __future__ import annotations

import asyncio
import logging
import signal

from habit_engine.engine import HabitEngine
from habit_engine.logging_config import configure_logging
from habit_engine.settings import get_settings

logger = logging.getLogger(__name__)


async def run_forever(settings=None) -> None:
    settings = settings or get_settings()
    engine = HabitEngine.from_settings(settings)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            pass

    await engine.start()
    try:
        await stop_event.wait()
    finally:
        await engine.stop()
        engine.local_store.close()


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        asyncio.run(run_forever(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
