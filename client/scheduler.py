"""
Sync Scheduler

Decides when a sync round runs:
- optionally once, a fixed delay after launch
- every day at a fixed wall-clock time in a fixed UTC offset

The daily delay is recomputed from the current time before every sleep, so
clock adjustments never accumulate into drift. Failed rounds are logged and
the loop carries on; the next occurrence is the only retry.

Usage:
    scheduler = SyncScheduler(settings, sync_client.run_once)
    scheduler.start()

    # Later:
    await scheduler.stop()
"""

import asyncio
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Awaitable, Callable, Optional

from client.errors import ManagementSyncError
from client.settings import SyncSettings

logger = logging.getLogger(__name__)


def next_occurrence_delay(
    now: datetime,
    at: time,
    utc_offset: timedelta,
) -> timedelta:
    """
    Time from ``now`` until the next ``at`` in the given fixed offset.

    If ``now`` is exactly ``at`` the next occurrence is tomorrow's.

    Args:
        now: Current time; naive values are taken as UTC
        at: Wall-clock time of day in ``utc_offset``
        utc_offset: Offset of the target timezone from UTC
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    tz = timezone(utc_offset)
    local_now = now.astimezone(tz)
    today = local_now.replace(
        hour=at.hour, minute=at.minute, second=at.second, microsecond=0
    )
    target = today if local_now < today else today + timedelta(days=1)
    return max(target - local_now, timedelta(0))


class SyncScheduler:
    """
    Runs the startup and daily triggers as asyncio tasks.

    The two triggers share an in-flight guard: if one fires while a round is
    still running, it skips its round instead of running concurrently.

    Attributes:
        run_count: Rounds that completed without error
        failure_count: Rounds that raised
        skipped_count: Rounds skipped because another was in flight
    """

    def __init__(
        self,
        settings: SyncSettings,
        run: Callable[[], Awaitable[object]],
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self._run = run
        self._clock = clock
        self._sleep = sleep

        self._lock = asyncio.Lock()
        self._tasks: list[asyncio.Task] = []

        self.run_count = 0
        self.failure_count = 0
        self.skipped_count = 0

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start the triggers. Must be called from a running event loop."""
        if self.running:
            return

        if self.settings.sync_on_start:
            self._tasks.append(
                asyncio.create_task(self._startup_trigger(), name="management-sync-startup")
            )
        self._tasks.append(
            asyncio.create_task(self._daily_trigger(), name="management-sync-daily")
        )
        logger.info(
            "Sync scheduler started",
            extra={
                "sync_on_start": self.settings.sync_on_start,
                "sync_time": self.settings.sync_time.isoformat(),
            },
        )

    async def stop(self) -> None:
        """Cancel both triggers, including any pending sleep or in-flight round."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Sync scheduler stopped")

    def next_delay(self) -> timedelta:
        return next_occurrence_delay(
            self._clock(), self.settings.sync_time, self.settings.utc_offset
        )

    async def _startup_trigger(self) -> None:
        await self._sleep(self.settings.startup_delay)
        await self.run_guarded("startup")

    async def _daily_trigger(self) -> None:
        while True:
            delay = self.next_delay()
            logger.debug("Next sync in %.0fs", delay.total_seconds())
            await self._sleep(delay.total_seconds())
            await self.run_guarded("daily")

    async def run_guarded(self, trigger: str = "manual") -> Optional[bool]:
        """
        Run one round unless another is in flight.

        Returns:
            True on success, False on failure, None if skipped
        """
        if self._lock.locked():
            self.skipped_count += 1
            logger.info("Sync already in flight, skipping", extra={"trigger": trigger})
            return None

        async with self._lock:
            try:
                await self._run()
            except ManagementSyncError as e:
                self.failure_count += 1
                logger.warning("Management %s sync failed: %s", trigger, e.message)
                return False
            except Exception as e:
                self.failure_count += 1
                logger.exception("Management %s sync failed: %s", trigger, e)
                return False

        self.run_count += 1
        return True
