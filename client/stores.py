"""Local stores backing the sync agent: settings and per-app providers."""

from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from client.models import ProviderRecord, Setting
from client.schemas import AppType, Provider

SETTINGS_DEVICE_ID = "management_device_id"
SETTINGS_APPLIED_ADMIN_VERSION = "management_admin_version"
SETTINGS_LAST_SYNC_AT = "management_last_sync_at"


class SettingsStore:
    """Persistent string key-value store."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        setting = self.db.get(Setting, key)
        return setting.value if setting else None

    def set(self, key: str, value: str) -> None:
        setting = self.db.get(Setting, key)
        if setting is None:
            self.db.add(Setting(key=key, value=value))
        else:
            setting.value = value
        self.db.flush()


class ProviderStore:
    """Providers per app type, kept in insertion order with one active entry."""

    def __init__(self, db: Session):
        self.db = db

    def list(self, app_type: AppType) -> dict[str, Provider]:
        records = self.db.execute(
            select(ProviderRecord)
            .where(ProviderRecord.app_type == app_type.value)
            .order_by(ProviderRecord.position, ProviderRecord.provider_id)
        ).scalars()
        return {record.provider_id: Provider.model_validate(record.body) for record in records}

    def current(self, app_type: AppType) -> Optional[str]:
        return self.db.execute(
            select(ProviderRecord.provider_id).where(
                ProviderRecord.app_type == app_type.value,
                ProviderRecord.is_current.is_(True),
            )
        ).scalar_one_or_none()

    def add(self, app_type: AppType, provider: Provider) -> None:
        position = self.db.execute(
            select(func.count()).select_from(ProviderRecord).where(
                ProviderRecord.app_type == app_type.value
            )
        ).scalar_one()
        self.db.add(
            ProviderRecord(
                app_type=app_type.value,
                provider_id=provider.id,
                position=position,
                is_current=False,
                body=provider.to_document(),
            )
        )
        self.db.flush()

    def delete_all(self, app_type: AppType) -> None:
        self.db.execute(delete(ProviderRecord).where(ProviderRecord.app_type == app_type.value))

    def switch_active(self, app_type: AppType, provider_id: str) -> None:
        """Make ``provider_id`` the only active provider of ``app_type``."""
        record = self.db.get(ProviderRecord, (app_type.value, provider_id))
        if record is None:
            raise KeyError(f"Provider not found: {app_type.value}/{provider_id}")

        self.db.execute(
            update(ProviderRecord)
            .where(ProviderRecord.app_type == app_type.value)
            .values(is_current=False)
        )
        record.is_current = True
        self.db.flush()
