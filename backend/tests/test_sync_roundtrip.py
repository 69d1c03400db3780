"""End-to-end: the client agent syncing against the real application.

The client talks to the FastAPI app in-process through httpx's ASGI
transport, so the whole request/response cycle is exercised without a
network.
"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from client.database import create_session_factory
from client.identity import DeviceIdentity
from client.schemas import AppType, Provider
from client.settings import SyncSettings
from client.snapshot import SnapshotCollector
from client.stores import SETTINGS_APPLIED_ADMIN_VERSION, SettingsStore, ProviderStore
from client.sync_client import SyncClient
from tests.conftest import SYNC_TOKEN, make_provider

BASE_URL = "http://management.test"


@pytest.fixture
def local_db(tmp_path):
    """Client-side state database with a few providers configured."""
    factory = create_session_factory(f"sqlite:///{tmp_path / 'client.db'}")
    with factory.begin() as db:
        store = ProviderStore(db)
        store.add(AppType.CLAUDE, Provider.model_validate(make_provider("main")))
        store.add(AppType.CLAUDE, Provider.model_validate(make_provider("backup", notes="spare")))
        store.switch_active(AppType.CLAUDE, "main")
        store.add(AppType.CODEX, Provider.model_validate(make_provider("openai")))
    yield factory
    factory.kw["bind"].dispose()


def run_sync(app, factory) -> dict:
    async def _run():
        http_client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url=BASE_URL
        )
        sync_client = SyncClient(
            SyncSettings(base_url=BASE_URL, token=SYNC_TOKEN, app_version="9.9.9"),
            factory,
            identity=DeviceIdentity(factory, fingerprint_reader=lambda: "machine-123"),
            http_client=http_client,
        )
        try:
            return await sync_client.run_once()
        finally:
            await sync_client.close()

    return asyncio.run(_run())


@pytest.mark.integration
def test_collected_snapshot_is_stored_verbatim(app, client: TestClient, admin_headers: dict, local_db):
    sent = SnapshotCollector(local_db).collect().to_document()

    reply = run_sync(app, local_db)
    assert reply.ok is True
    assert reply.admin_config is None

    device_id = DeviceIdentity(local_db).get_or_create()
    detail = client.get(f"/api/v1/admin/devices/{device_id}", headers=admin_headers).json()

    assert detail["device"]["appVersion"] == "9.9.9"
    assert detail["device"]["lastIp"] == "127.0.0.1"
    assert detail["snapshots"][0]["snapshot"] == sent
    assert set(sent) == {"claude", "codex"}
    assert sent["codex"]["currentId"] is None


@pytest.mark.integration
def test_admin_push_is_adopted_on_next_sync(app, client: TestClient, admin_headers: dict, local_db):
    run_sync(app, local_db)
    device_id = DeviceIdentity(local_db).get_or_create()

    pushed = {
        "claude": {
            "currentId": "corp",
            "providers": {"corp": make_provider("corp", name="Corporate")},
        }
    }
    response = client.post(
        f"/api/v1/admin/devices/{device_id}/config",
        json={"config": pushed},
        headers=admin_headers,
    )
    assert response.json() == {"ok": True, "version": 1}

    reply = run_sync(app, local_db)

    assert reply.admin_version == 1
    with local_db() as db:
        store = ProviderStore(db)
        assert list(store.list(AppType.CLAUDE)) == ["corp"]
        assert store.current(AppType.CLAUDE) == "corp"
        # App types absent from the push are left alone
        assert list(store.list(AppType.CODEX)) == ["openai"]
        assert SettingsStore(db).get(SETTINGS_APPLIED_ADMIN_VERSION) == "1"
