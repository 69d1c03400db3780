"""Run the management sync agent until interrupted."""

import asyncio
import logging
import signal

from client.database import create_session_factory
from client.scheduler import SyncScheduler
from client.settings import SyncSettings
from client.sync_client import SyncClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def run_agent(settings: SyncSettings) -> None:
    session_factory = create_session_factory(settings.database_url)
    sync_client = SyncClient(settings, session_factory)
    scheduler = SyncScheduler(settings, sync_client.run_once)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops lack signal handlers; KeyboardInterrupt still stops us
            pass

    scheduler.start()
    try:
        await stop_event.wait()
    finally:
        await scheduler.stop()
        await sync_client.close()


def main() -> None:
    settings = SyncSettings.from_env()
    if not settings.base_url or not settings.token:
        logger.warning("MANAGEMENT_URL or MANAGEMENT_SYNC_TOKEN is empty; every sync will fail")

    try:
        asyncio.run(run_agent(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
