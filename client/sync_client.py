"""
Management Sync Client

Executes one sync round against the management service:
collect the local snapshot, report it, adopt any admin config in the reply.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from client.applier import AdminConfigApplier
from client.errors import ManagementSyncError, SyncParseError, SyncTransportError
from client.identity import DeviceIdentity
from client.settings import SyncSettings
from client.snapshot import SnapshotCollector
from client.stores import (
    SETTINGS_APPLIED_ADMIN_VERSION,
    SETTINGS_LAST_SYNC_AT,
    SettingsStore,
)
from client.schemas import SyncReply

logger = logging.getLogger(__name__)

SYNC_ENDPOINT = "/api/v1/devices/sync"


class SyncClient:
    """
    Runs sync rounds for this device.

    Holds a single reusable HTTP client; call close() on shutdown.
    """

    def __init__(
        self,
        settings: SyncSettings,
        session_factory: sessionmaker,
        *,
        identity: Optional[DeviceIdentity] = None,
        collector: Optional[SnapshotCollector] = None,
        applier: Optional[AdminConfigApplier] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self._session_factory = session_factory
        self.identity = identity or DeviceIdentity(session_factory)
        self.collector = collector or SnapshotCollector(session_factory)
        self.applier = applier or AdminConfigApplier(session_factory)
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}{SYNC_ENDPOINT}"

    def applied_admin_version(self) -> Optional[int]:
        """Last applied admin version, or None when unset or unparsable."""
        with self._session_factory() as db:
            value = SettingsStore(db).get(SETTINGS_APPLIED_ADMIN_VERSION)
        try:
            version = int(value) if value is not None else None
        except ValueError:
            return None
        return version if version and version > 0 else None

    def build_payload(self) -> dict:
        return {
            "deviceId": self.identity.get_or_create(),
            "appVersion": self.settings.app_version,
            "appliedAdminVersion": self.applied_admin_version(),
            "snapshot": self.collector.collect().to_document(),
            "clientTime": datetime.now(timezone.utc).isoformat(),
        }

    async def run_once(self) -> SyncReply:
        """
        Perform one sync round.

        Returns:
            The parsed service reply

        Raises:
            ManagementSyncError (or a subclass) when the round fails
        """
        if not self.settings.base_url.strip():
            raise ManagementSyncError("Management base URL is not configured")
        if not self.settings.token.strip():
            raise ManagementSyncError("Management sync token is not configured")

        # Local database reads and the first-run fingerprint probe block
        payload = await asyncio.to_thread(self.build_payload)
        client = await self._get_client()

        try:
            response = await client.post(
                self.endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.token.strip()}"},
            )
        except httpx.HTTPError as e:
            raise SyncTransportError(f"Sync request failed: {e}") from e

        if not response.is_success:
            raise SyncTransportError(
                f"Sync failed with status: {response.status_code}",
                status=response.status_code,
            )

        try:
            reply = SyncReply.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SyncParseError(f"Sync response parse failed: {e}") from e

        if reply.ok:
            if reply.admin_config is not None:
                applied = await asyncio.to_thread(self.applier.apply, reply.admin_config)
                if reply.admin_version is not None:
                    await asyncio.to_thread(
                        self._set_setting, SETTINGS_APPLIED_ADMIN_VERSION, str(reply.admin_version)
                    )
                logger.info(
                    "Admin config adopted",
                    extra={
                        "admin_version": reply.admin_version,
                        "app_types": [app_type.value for app_type in applied],
                    },
                )
            await asyncio.to_thread(
                self._set_setting, SETTINGS_LAST_SYNC_AT, datetime.now(timezone.utc).isoformat()
            )

        logger.info(
            "Management sync completed",
            extra={"device_id": payload["deviceId"], "ok": reply.ok},
        )
        return reply

    def _set_setting(self, key: str, value: str) -> None:
        with self._session_factory.begin() as db:
            SettingsStore(db).set(key, value)
