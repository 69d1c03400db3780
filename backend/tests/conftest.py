"""Shared pytest fixtures for the management service tests.

Provides an in-memory database, a FastAPI test client wired to it, auth
headers for both secrets, and helpers for building sync payloads.
"""

import os

# CRITICAL: Set secrets BEFORE any other imports that might use config
os.environ["SYNC_TOKEN"] = "test-sync-token"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["ADMIN_BASIC_USER"] = "admin"
os.environ["ADMIN_BASIC_PASSWORD"] = "admin-pass"
os.environ["DATABASE_URL"] = "sqlite://"

import base64
from datetime import datetime, timedelta
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from services.device_registry import DeviceRegistry
from services.geoip import GeoIPLookup, get_geoip

SYNC_TOKEN = "test-sync-token"
ADMIN_TOKEN = "test-admin-token"

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def test_engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session bound to the per-test engine."""
    session_factory = sessionmaker(bind=test_engine, autoflush=False)
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def registered_device(db_session: Session) -> str:
    """A device that has synced once; returns its id."""
    device_id = "known-device"
    DeviceRegistry(db_session).upsert(
        device_id=device_id,
        fingerprint_hash=device_id,
        now=BASE_TIME,
        app_version="1.0.0",
    )
    db_session.commit()
    return device_id


# ============================================================================
# Authentication Fixtures
# ============================================================================

@pytest.fixture
def sync_headers() -> dict:
    return {"Authorization": f"Bearer {SYNC_TOKEN}"}


@pytest.fixture
def admin_headers() -> dict:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def basic_auth_header(user: str, password: str) -> dict:
    encoded = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {encoded}"}


# ============================================================================
# FastAPI Test Client
# ============================================================================

@pytest.fixture
def app(db_session: Session):
    """The FastAPI app with database and GeoIP dependencies overridden."""
    # Import app here to avoid loading it for unit tests
    from main import app as fastapi_app
    from routers.devices import limiter

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_geoip] = lambda: GeoIPLookup(None)
    limiter.enabled = False

    yield fastapi_app

    # Clean up
    limiter.enabled = True
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client using the test database session."""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Helper Functions
# ============================================================================

def make_provider(provider_id: str, name: Optional[str] = None, **extra) -> dict:
    """A provider document as sent on the wire."""
    provider = {
        "id": provider_id,
        "name": name or provider_id.title(),
        "settingsConfig": {"env": {"API_KEY": f"key-{provider_id}"}},
    }
    provider.update(extra)
    return provider


def make_snapshot(current_id: Optional[str] = "main", *provider_ids: str) -> dict:
    """A device config snapshot with one claude provider set."""
    provider_ids = provider_ids or ("main", "backup")
    return {
        "claude": {
            "currentId": current_id,
            "providers": {pid: make_provider(pid) for pid in provider_ids},
        }
    }


def sync_payload(device_id: str = "device-abc", **overrides) -> dict:
    payload = {
        "deviceId": device_id,
        "appVersion": "1.2.3",
        "appliedAdminVersion": None,
        "snapshot": make_snapshot(),
        "clientTime": (BASE_TIME + timedelta(minutes=5)).isoformat() + "Z",
    }
    payload.update(overrides)
    return payload
