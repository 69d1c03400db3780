"""Admin endpoints: inspect devices and push config overrides."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from schemas.admin import (
    AdminConfigRequest,
    AdminConfigResponse,
    BatchConfigRequest,
    BatchConfigResponse,
    DeviceDetailResponse,
    DeviceListResponse,
)
from services.admin_config_store import AdminConfigStore, BatchConfigStore
from services.auth import require_admin
from services.device_registry import DeviceRegistry
from services.errors import NotFoundError, StorageError, ValidationError
from services.snapshot_log import SnapshotLog

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/devices", response_model=DeviceListResponse)
def list_devices(db: Session = Depends(get_db)):
    """List every device with snapshot counts and admin-config status."""
    try:
        devices = DeviceRegistry(db).list_summaries()
    except SQLAlchemyError:
        logger.exception("Listing devices failed")
        raise StorageError()
    return {"devices": devices}


@router.get("/devices/{device_id}", response_model=DeviceDetailResponse)
def get_device_detail(device_id: str, db: Session = Depends(get_db)):
    """
    Device summary, its most recent snapshots (newest first) and current admin config.

    Raises: 404 if the device has never synced
    """
    registry = DeviceRegistry(db)
    snapshots = SnapshotLog(db)

    try:
        device = registry.get(device_id)
        if device is None:
            raise NotFoundError("device not found")

        snapshot_count, last_snapshot_at = snapshots.stats(device_id)
        recent = snapshots.list(device_id)
        admin = AdminConfigStore(db).get(device_id)
    except SQLAlchemyError:
        logger.exception("Loading device detail failed", extra={"device_id": device_id})
        raise StorageError()

    return {
        "device": registry.summary(device, snapshot_count, last_snapshot_at, admin),
        "snapshots": [
            {"id": item.id, "created_at": item.created_at, "snapshot": item.snapshot}
            for item in recent
        ],
        "admin_config": (
            {"version": admin.version, "updated_at": admin.updated_at, "config": admin.config}
            if admin
            else None
        ),
    }


@router.post("/devices/config/batch", response_model=BatchConfigResponse)
def batch_admin_config(payload: BatchConfigRequest, db: Session = Depends(get_db)):
    """
    Push one config to many devices.

    Unknown device ids are ignored. The update is all-or-nothing: `updated`
    is the number of devices that received a new version.
    """
    device_ids = [device_id.strip() for device_id in payload.device_ids if device_id.strip()]
    if not device_ids:
        raise ValidationError("device_ids is required")

    now = datetime.now(timezone.utc)
    updated = BatchConfigStore(db).apply_to_many(device_ids, payload.config, now)
    return BatchConfigResponse(ok=True, updated=updated)


@router.post("/devices/{device_id}/config", response_model=AdminConfigResponse)
def upsert_admin_config(
    device_id: str,
    payload: AdminConfigRequest,
    db: Session = Depends(get_db),
):
    """
    Replace a device's admin config and bump its version.

    Returns: the new version
    Raises: 400 for a blank id, 404 if the device has never synced
    """
    device_id = device_id.strip()
    if not device_id:
        raise ValidationError("device_id is required")

    try:
        device = DeviceRegistry(db).get(device_id)
    except SQLAlchemyError:
        logger.exception("Loading device failed", extra={"device_id": device_id})
        raise StorageError()
    if device is None:
        raise NotFoundError("device not found")

    now = datetime.now(timezone.utc)
    version = AdminConfigStore(db).upsert_increment(device_id, payload.config, now)

    logger.info(
        "Admin config updated",
        extra={"device_id": device_id, "version": version},
    )
    return AdminConfigResponse(ok=True, version=version)
