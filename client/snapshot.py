"""Collects the local provider configuration into a transmissible snapshot."""

from sqlalchemy.orm import sessionmaker

from client.schemas import AppProviderSnapshot, AppType, DeviceConfigSnapshot
from client.stores import ProviderStore


class SnapshotCollector:
    """Read-only view of local providers, one entry per configured app type."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def collect(self) -> DeviceConfigSnapshot:
        with self._session_factory() as db:
            store = ProviderStore(db)
            snapshots = {}
            for app_type in AppType:
                providers = store.list(app_type)
                if not providers:
                    continue

                current_id = store.current(app_type)
                snapshots[app_type.value] = AppProviderSnapshot(
                    current_id=current_id if current_id and current_id.strip() else None,
                    providers=providers,
                )

        return DeviceConfigSnapshot(**snapshots)
