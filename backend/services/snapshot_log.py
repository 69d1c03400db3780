"""Append-only log of snapshots reported by devices."""

from datetime import datetime
from typing import Any, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from config import SNAPSHOT_LIST_LIMIT
from models.snapshot import ConfigSnapshot


class SnapshotLog:
    """Records every reported snapshot; nothing is deduplicated or pruned."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, device_id: str, body: Any, now: datetime) -> ConfigSnapshot:
        """Insert a snapshot row. Does not commit."""
        snapshot = ConfigSnapshot(device_id=device_id, snapshot=body, created_at=now)
        self.db.add(snapshot)
        self.db.flush()
        return snapshot

    def list(self, device_id: str, limit: int = SNAPSHOT_LIST_LIMIT) -> list[ConfigSnapshot]:
        """Most recent snapshots for a device, newest first."""
        query = (
            select(ConfigSnapshot)
            .where(ConfigSnapshot.device_id == device_id)
            .order_by(ConfigSnapshot.created_at.desc(), ConfigSnapshot.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars())

    def stats(self, device_id: str) -> Tuple[int, Optional[datetime]]:
        """Return (snapshot count, newest snapshot time) for a device."""
        count, last_created_at = self.db.execute(
            select(func.count(ConfigSnapshot.id), func.max(ConfigSnapshot.created_at))
            .where(ConfigSnapshot.device_id == device_id)
        ).one()
        return count or 0, last_created_at
