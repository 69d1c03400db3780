"""Device registry: last-seen metadata per device."""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from database import dialect_insert
from models.admin_config import AdminConfig
from models.device import Device
from models.snapshot import ConfigSnapshot
from services.geoip import EMPTY_GEO, GeoResult


class DeviceRegistry:
    """Insert-or-update device rows and build admin summaries."""

    def __init__(self, db: Session):
        self.db = db

    def upsert(
        self,
        device_id: str,
        fingerprint_hash: str,
        now: datetime,
        ip: Optional[str] = None,
        geo: Optional[GeoResult] = None,
        app_version: Optional[str] = None,
    ) -> None:
        """Record a sighting of ``device_id``.

        ``created_at`` is only written by the initial insert; every other
        column is overwritten on conflict. Does not commit.
        """
        geo = geo or EMPTY_GEO
        stmt = dialect_insert(self.db, Device.__table__).values(
            device_id=device_id,
            fingerprint_hash=fingerprint_hash,
            last_seen=now,
            last_ip=ip,
            geo_country=geo.country,
            geo_region=geo.region,
            geo_city=geo.city,
            app_version=app_version,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Device.device_id],
            set_={
                "fingerprint_hash": stmt.excluded.fingerprint_hash,
                "last_seen": stmt.excluded.last_seen,
                "last_ip": stmt.excluded.last_ip,
                "geo_country": stmt.excluded.geo_country,
                "geo_region": stmt.excluded.geo_region,
                "geo_city": stmt.excluded.geo_city,
                "app_version": stmt.excluded.app_version,
            },
        )
        self.db.execute(stmt)

    def get(self, device_id: str) -> Optional[Device]:
        return self.db.get(Device, device_id)

    def existing_ids(self, device_ids: Iterable[str]) -> list[str]:
        """Return the subset of ``device_ids`` that are registered, in input order."""
        wanted = list(dict.fromkeys(device_ids))
        if not wanted:
            return []
        rows = self.db.execute(
            select(Device.device_id).where(Device.device_id.in_(wanted))
        ).scalars()
        known = set(rows)
        return [device_id for device_id in wanted if device_id in known]

    def list_summaries(self) -> list[dict]:
        """All devices with snapshot and admin-config status, most recently seen first."""
        stats = (
            select(
                ConfigSnapshot.device_id.label("device_id"),
                func.count(ConfigSnapshot.id).label("snapshot_count"),
                func.max(ConfigSnapshot.created_at).label("last_snapshot_at"),
            )
            .group_by(ConfigSnapshot.device_id)
            .subquery()
        )

        query = (
            select(
                Device,
                stats.c.snapshot_count,
                stats.c.last_snapshot_at,
                AdminConfig.version,
                AdminConfig.updated_at,
            )
            .outerjoin(stats, stats.c.device_id == Device.device_id)
            .outerjoin(AdminConfig, AdminConfig.device_id == Device.device_id)
            .order_by(Device.last_seen.desc(), Device.device_id)
        )

        return [
            self._summary(
                device,
                snapshot_count=snapshot_count or 0,
                last_snapshot_at=last_snapshot_at,
                admin_version=admin_version,
                admin_updated_at=admin_updated_at,
            )
            for device, snapshot_count, last_snapshot_at, admin_version, admin_updated_at
            in self.db.execute(query).all()
        ]

    @staticmethod
    def _summary(
        device: Device,
        snapshot_count: int,
        last_snapshot_at: Optional[datetime],
        admin_version: Optional[int],
        admin_updated_at: Optional[datetime],
    ) -> dict:
        return {
            "device_id": device.device_id,
            "fingerprint_hash": device.fingerprint_hash,
            "last_seen": device.last_seen,
            "last_ip": device.last_ip,
            "geo_country": device.geo_country,
            "geo_region": device.geo_region,
            "geo_city": device.geo_city,
            "app_version": device.app_version,
            "created_at": device.created_at,
            "snapshot_count": snapshot_count,
            "last_snapshot_at": last_snapshot_at,
            "admin_version": admin_version,
            "admin_updated_at": admin_updated_at,
        }

    def summary(
        self,
        device: Device,
        snapshot_count: int,
        last_snapshot_at: Optional[datetime],
        admin_config: Optional[AdminConfig],
    ) -> dict:
        """Summary for a single device given its snapshot stats and admin row."""
        return self._summary(
            device,
            snapshot_count=snapshot_count,
            last_snapshot_at=last_snapshot_at,
            admin_version=admin_config.version if admin_config else None,
            admin_updated_at=admin_config.updated_at if admin_config else None,
        )
