"""Versioned admin config overrides, single-device and batch."""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import dialect_insert
from models.admin_config import AdminConfig
from services.device_registry import DeviceRegistry
from services.errors import StorageError

logger = logging.getLogger(__name__)


class AdminConfigStore:
    """One current config per device, with a monotonically increasing version."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, device_id: str) -> Optional[AdminConfig]:
        return self.db.get(AdminConfig, device_id, populate_existing=True)

    def upsert_increment(self, device_id: str, body: Any, now: datetime) -> int:
        """Store ``body`` as the device's config and return the new version.

        The first write creates version 1. Later writes bump the version inside
        the same INSERT ... ON CONFLICT statement, so concurrent pushes for one
        device serialize on the row instead of racing on a read. Commits.
        """
        try:
            version = self._upsert_increment(device_id, body, now)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Admin config upsert failed", extra={"device_id": device_id})
            raise StorageError()
        return version

    def _upsert_increment(self, device_id: str, body: Any, now: datetime) -> int:
        table = AdminConfig.__table__
        stmt = dialect_insert(self.db, table).values(
            device_id=device_id,
            version=1,
            config=body,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.device_id],
            set_={
                "version": table.c.version + 1,
                "config": stmt.excluded.config,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(table.c.version)
        return self.db.execute(stmt).scalar_one()


class BatchConfigStore:
    """Apply one config to many devices as a single transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.registry = DeviceRegistry(db)
        self.configs = AdminConfigStore(db)

    def apply_to_many(self, device_ids: Iterable[str], body: Any, now: datetime) -> int:
        """Upsert ``body`` for every registered id in ``device_ids``.

        Unknown ids are skipped. Either every surviving device gets a new
        version and the count is returned, or nothing is committed and
        ``StorageError`` is raised.
        """
        try:
            known_ids = self.registry.existing_ids(device_ids)
            for device_id in known_ids:
                self.configs._upsert_increment(device_id, body, now)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Batch admin config update rolled back")
            raise StorageError()

        logger.info(
            "Batch admin config applied",
            extra={"updated": len(known_ids)},
        )
        return len(known_ids)
