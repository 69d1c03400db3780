"""Shared pytest fixtures for the sync agent tests."""

from typing import Optional

import pytest
from sqlalchemy.orm import sessionmaker

from client.database import create_session_factory
from client.schemas import AppType, Provider
from client.settings import SyncSettings
from client.stores import ProviderStore

BASE_URL = "http://management.test"
TOKEN = "sync-secret"


@pytest.fixture
def session_factory(tmp_path) -> sessionmaker:
    """Fresh local state database per test."""
    factory = create_session_factory(f"sqlite:///{tmp_path / 'client_state.db'}")
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(base_url=BASE_URL, token=TOKEN, app_version="3.1.0")


def provider(provider_id: str, name: Optional[str] = None, **extra) -> Provider:
    return Provider.model_validate(
        {
            "id": provider_id,
            "name": name or provider_id.title(),
            "settingsConfig": {"env": {"TOKEN": f"tok-{provider_id}"}},
            **extra,
        }
    )


def seed_providers(
    factory: sessionmaker,
    app_type: AppType,
    provider_ids: list[str],
    current: Optional[str] = None,
) -> None:
    with factory.begin() as db:
        store = ProviderStore(db)
        for provider_id in provider_ids:
            store.add(app_type, provider(provider_id))
        if current:
            store.switch_active(app_type, current)


def local_providers(factory: sessionmaker, app_type: AppType) -> tuple[list[str], Optional[str]]:
    with factory() as db:
        store = ProviderStore(db)
        return list(store.list(app_type)), store.current(app_type)
