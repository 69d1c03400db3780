"""Adopts an admin-pushed config by replacing local providers per app type."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from client.errors import InvalidAdminConfigError, ManagementSyncError
from client.schemas import AppProviderSnapshot, AppType, DeviceConfigSnapshot
from client.stores import ProviderStore

logger = logging.getLogger(__name__)


class AdminConfigApplier:
    """
    Replaces the local provider set of every app type present in a pushed config.

    App types are handled in a fixed order. The first invalid app type stops
    processing; app types before it stay applied. Each app type is replaced
    inside its own transaction, so a failure leaves its previous providers in
    place.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def apply(self, config: DeviceConfigSnapshot) -> list[AppType]:
        """Apply ``config`` and return the app types that were replaced."""
        applied = []
        for app_type in AppType:
            snapshot = config.for_app(app_type)
            if snapshot is None:
                continue
            self._apply_app(app_type, snapshot)
            applied.append(app_type)
        return applied

    @staticmethod
    def _validate(app_type: AppType, snapshot: AppProviderSnapshot) -> str:
        current_id = snapshot.current_id
        if not current_id:
            raise InvalidAdminConfigError(
                f"Admin config missing current provider: {app_type.value}",
                app_type=app_type.value,
            )
        if current_id not in snapshot.providers:
            raise InvalidAdminConfigError(
                f"Admin config current provider not found: {current_id}",
                app_type=app_type.value,
            )
        for key, provider in snapshot.providers.items():
            if key != provider.id:
                raise InvalidAdminConfigError(
                    f"Admin config provider key {key!r} does not match id {provider.id!r}",
                    app_type=app_type.value,
                )
        return current_id

    def _apply_app(self, app_type: AppType, snapshot: AppProviderSnapshot) -> None:
        current_id = self._validate(app_type, snapshot)

        # Commits on success, rolls back to the previous providers on any error
        try:
            with self._session_factory.begin() as db:
                store = ProviderStore(db)
                store.delete_all(app_type)
                for provider in snapshot.providers.values():
                    store.add(app_type, provider)
                store.switch_active(app_type, current_id)
        except SQLAlchemyError as e:
            raise ManagementSyncError(
                f"Failed to apply admin config for {app_type.value}: {e}"
            ) from e

        logger.info(
            "Admin config applied",
            extra={
                "app_type": app_type.value,
                "provider_count": len(snapshot.providers),
                "current_id": current_id,
            },
        )
