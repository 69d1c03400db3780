"""Pydantic schemas for the admin endpoints."""

from datetime import datetime
from typing import Any, Optional

from schemas.base import CamelModel


class DeviceSummary(CamelModel):
    device_id: str
    fingerprint_hash: str
    last_seen: Optional[datetime] = None
    last_ip: Optional[str] = None
    geo_country: Optional[str] = None
    geo_region: Optional[str] = None
    geo_city: Optional[str] = None
    app_version: Optional[str] = None
    created_at: Optional[datetime] = None
    snapshot_count: int = 0
    last_snapshot_at: Optional[datetime] = None
    admin_version: Optional[int] = None
    admin_updated_at: Optional[datetime] = None


class DeviceListResponse(CamelModel):
    devices: list[DeviceSummary]


class SnapshotItem(CamelModel):
    id: int
    created_at: datetime
    snapshot: Any


class AdminConfigItem(CamelModel):
    version: int
    updated_at: datetime
    config: Any


class DeviceDetailResponse(CamelModel):
    device: DeviceSummary
    snapshots: list[SnapshotItem]
    admin_config: Optional[AdminConfigItem] = None


class AdminConfigRequest(CamelModel):
    """Config document to push to a single device."""

    config: Any


class AdminConfigResponse(CamelModel):
    ok: bool
    version: int


class BatchConfigRequest(CamelModel):
    """Config document to push to several devices at once."""

    device_ids: list[str]
    config: Any


class BatchConfigResponse(CamelModel):
    ok: bool
    updated: int
