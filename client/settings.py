"""
Sync agent settings.

Built once at process start and handed to the components that need them;
nothing reads the environment after that.
"""

import os
from dataclasses import dataclass
from datetime import time, timedelta
from typing import Mapping, Optional

from client import __version__

DEFAULT_STARTUP_DELAY_SECONDS = 60 * 60
DEFAULT_SYNC_TIME = time(4, 0)
DEFAULT_UTC_OFFSET_HOURS = 8
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_CLIENT_DB = "sqlite:///./client_state.db"


@dataclass(frozen=True)
class SyncSettings:
    """
    Configuration for the management sync agent.

    Attributes:
        base_url: Management service root, e.g. https://manage.example.com
        token: Shared secret sent as the sync bearer token
        sync_on_start: Run one extra sync shortly after launch
        startup_delay: Seconds to wait before the startup sync
        sync_time: Wall-clock time of the daily sync
        utc_offset: Fixed offset the daily time is expressed in
        request_timeout: Seconds before an HTTP request is abandoned
        app_version: Reported to the service on every sync
        database_url: SQLAlchemy URL of the local state database
    """

    base_url: str
    token: str
    sync_on_start: bool = False
    startup_delay: float = DEFAULT_STARTUP_DELAY_SECONDS
    sync_time: time = DEFAULT_SYNC_TIME
    utc_offset: timedelta = timedelta(hours=DEFAULT_UTC_OFFSET_HOURS)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    app_version: str = __version__
    database_url: str = DEFAULT_CLIENT_DB

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncSettings":
        """Build settings from MANAGEMENT_* environment variables."""
        env = os.environ if environ is None else environ

        hour, _, minute = env.get("MANAGEMENT_SYNC_TIME", "04:00").partition(":")

        return cls(
            base_url=env.get("MANAGEMENT_URL", "").strip(),
            token=env.get("MANAGEMENT_SYNC_TOKEN", "").strip(),
            sync_on_start=env.get("MANAGEMENT_SYNC_ON_START", "false").lower() in ("1", "true"),
            startup_delay=float(
                env.get("MANAGEMENT_STARTUP_DELAY", DEFAULT_STARTUP_DELAY_SECONDS)
            ),
            sync_time=time(int(hour), int(minute or 0)),
            utc_offset=timedelta(
                hours=float(env.get("MANAGEMENT_SYNC_UTC_OFFSET", DEFAULT_UTC_OFFSET_HOURS))
            ),
            request_timeout=float(
                env.get("MANAGEMENT_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
            ),
            app_version=env.get("MANAGEMENT_APP_VERSION", __version__),
            database_url=env.get("MANAGEMENT_CLIENT_DB", DEFAULT_CLIENT_DB),
        )
