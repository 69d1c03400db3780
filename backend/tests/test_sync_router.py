"""Integration tests for POST /api/v1/devices/sync."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from services.admin_config_store import AdminConfigStore
from services.device_registry import DeviceRegistry
from services.snapshot_log import SnapshotLog
from tests.conftest import BASE_TIME, make_snapshot, sync_payload

SYNC_URL = "/api/v1/devices/sync"


@pytest.mark.integration
class TestSyncAuthorization:
    def test_missing_token_returns_401(self, client: TestClient):
        response = client.post(SYNC_URL, json=sync_payload())

        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "unauthorized"}

    def test_wrong_token_returns_401(self, client: TestClient):
        response = client.post(
            SYNC_URL, json=sync_payload(), headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    def test_admin_token_is_not_a_sync_token(self, client: TestClient, admin_headers: dict):
        response = client.post(SYNC_URL, json=sync_payload(), headers=admin_headers)
        assert response.status_code == 401


@pytest.mark.integration
class TestSyncValidation:
    def test_blank_device_id_returns_400(self, client: TestClient, sync_headers: dict):
        response = client.post(SYNC_URL, json=sync_payload(device_id="   "), headers=sync_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "device_id is required"

    def test_missing_snapshot_returns_422(self, client: TestClient, sync_headers: dict):
        payload = sync_payload()
        del payload["snapshot"]

        response = client.post(SYNC_URL, json=payload, headers=sync_headers)
        assert response.status_code == 422


@pytest.mark.integration
class TestSyncFlow:
    def test_first_sync_registers_device_and_logs_snapshot(
        self, client: TestClient, sync_headers: dict, db_session: Session
    ):
        response = client.post(SYNC_URL, json=sync_payload(), headers=sync_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["serverTime"]
        assert data["adminConfig"] is None
        assert data["adminVersion"] is None

        device = DeviceRegistry(db_session).get("device-abc")
        assert device.app_version == "1.2.3"
        assert device.fingerprint_hash == "device-abc"
        # TestClient reports "testclient" as its host, which is not an IP
        assert device.last_ip is None

        snapshots = SnapshotLog(db_session).list("device-abc")
        assert len(snapshots) == 1
        assert snapshots[0].snapshot == make_snapshot()

    def test_repeat_sync_updates_device_and_appends(
        self, client: TestClient, sync_headers: dict, db_session: Session
    ):
        client.post(SYNC_URL, json=sync_payload(appVersion="1.0.0"), headers=sync_headers)
        first_created = DeviceRegistry(db_session).get("device-abc").created_at

        client.post(SYNC_URL, json=sync_payload(appVersion="1.1.0"), headers=sync_headers)
        db_session.expire_all()

        device = DeviceRegistry(db_session).get("device-abc")
        assert device.app_version == "1.1.0"
        assert device.created_at == first_created
        assert SnapshotLog(db_session).stats("device-abc")[0] == 2

    def test_sync_returns_current_admin_config(
        self, client: TestClient, sync_headers: dict, db_session: Session, registered_device: str
    ):
        pushed = make_snapshot("backup", "backup")
        AdminConfigStore(db_session).upsert_increment(registered_device, pushed, BASE_TIME)
        AdminConfigStore(db_session).upsert_increment(registered_device, pushed, BASE_TIME)

        response = client.post(
            SYNC_URL,
            json=sync_payload(device_id=registered_device, appliedAdminVersion=1),
            headers=sync_headers,
        )

        data = response.json()
        assert data["adminVersion"] == 2
        assert data["adminConfig"] == pushed

    def test_forwarded_ip_ignored_without_trust_proxy(
        self, client: TestClient, sync_headers: dict, db_session: Session
    ):
        headers = {**sync_headers, "X-Forwarded-For": "203.0.113.9"}
        client.post(SYNC_URL, json=sync_payload(), headers=headers)

        assert DeviceRegistry(db_session).get("device-abc").last_ip is None

    def test_forwarded_ip_used_with_trust_proxy(
        self, client: TestClient, sync_headers: dict, db_session: Session, monkeypatch
    ):
        import config

        monkeypatch.setattr(config, "TRUST_PROXY", True)
        headers = {**sync_headers, "X-Forwarded-For": "203.0.113.9, 10.0.0.1"}
        client.post(SYNC_URL, json=sync_payload(), headers=headers)

        assert DeviceRegistry(db_session).get("device-abc").last_ip == "203.0.113.9"


@pytest.fixture
def rate_limited(monkeypatch):
    """Turn the sync rate limiter on with a tiny per-address budget."""
    import config
    from routers.devices import limiter

    monkeypatch.setattr(config, "SYNC_RATE_LIMIT", "2/minute")
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.reset()
    limiter.enabled = False


@pytest.mark.integration
class TestSyncRateLimit:
    def test_distinct_forwarded_clients_have_separate_budgets(
        self, client: TestClient, sync_headers: dict, rate_limited, monkeypatch
    ):
        import config

        monkeypatch.setattr(config, "TRUST_PROXY", True)

        statuses = [
            client.post(
                SYNC_URL,
                json=sync_payload(device_id=f"device-{i}"),
                headers={**sync_headers, "X-Forwarded-For": f"203.0.113.{i}, 10.0.0.1"},
            ).status_code
            for i in range(1, 6)
        ]

        assert statuses == [200] * 5

    def test_one_forwarded_client_is_throttled(
        self, client: TestClient, sync_headers: dict, rate_limited, monkeypatch
    ):
        import config

        monkeypatch.setattr(config, "TRUST_PROXY", True)
        headers = {**sync_headers, "X-Forwarded-For": "203.0.113.7"}

        statuses = [
            client.post(SYNC_URL, json=sync_payload(), headers=headers).status_code
            for _ in range(3)
        ]

        assert statuses == [200, 200, 429]

    def test_forwarded_header_ignored_without_trust_proxy(
        self, client: TestClient, sync_headers: dict, rate_limited
    ):
        statuses = [
            client.post(
                SYNC_URL,
                json=sync_payload(device_id=f"device-{i}"),
                headers={**sync_headers, "X-Forwarded-For": f"203.0.113.{i}"},
            ).status_code
            for i in range(1, 4)
        ]

        assert statuses == [200, 200, 429]
