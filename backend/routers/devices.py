"""Device sync endpoint used by client installations."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import config
from database import get_db
from schemas.sync import SyncRequest, SyncResponse
from services.admin_config_store import AdminConfigStore
from services.auth import require_sync_token
from services.device_registry import DeviceRegistry
from services.errors import StorageError, ValidationError
from services.geoip import GeoIPLookup, extract_client_ip, get_geoip
from services.snapshot_log import SnapshotLog

logger = logging.getLogger(__name__)


def client_address_key(request: Request) -> str:
    """Rate-limit bucket: the same client address the device record stores."""
    return extract_client_ip(request, trust_proxy=config.TRUST_PROXY) or get_remote_address(request)


limiter = Limiter(key_func=client_address_key)
router = APIRouter()


@router.post("/sync", response_model=SyncResponse)
@limiter.limit(lambda: config.SYNC_RATE_LIMIT)
def sync_device(
    request: Request,
    payload: SyncRequest,
    _: None = Depends(require_sync_token),
    db: Session = Depends(get_db),
    geoip: GeoIPLookup = Depends(get_geoip),
):
    """
    Record a device report and hand back its current admin config.

    The server will:
    1. Upsert the device row (last seen, IP, geo, app version)
    2. Append the reported snapshot to the device's history
    3. Return the current admin config and version, if one exists
    """
    device_id = payload.device_id.strip()
    if not device_id:
        raise ValidationError("device_id is required")

    now = datetime.now(timezone.utc)
    ip = extract_client_ip(request, trust_proxy=config.TRUST_PROXY)
    geo = geoip.lookup(ip)

    try:
        DeviceRegistry(db).upsert(
            device_id=device_id,
            fingerprint_hash=device_id,
            now=now,
            ip=ip,
            geo=geo,
            app_version=payload.app_version,
        )
        SnapshotLog(db).append(device_id, payload.snapshot, now)
        db.commit()
        admin = AdminConfigStore(db).get(device_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Device sync failed", extra={"device_id": device_id})
        raise StorageError()

    logger.info(
        "Device synced",
        extra={
            "device_id": device_id,
            "app_version": payload.app_version,
            "applied_admin_version": payload.applied_admin_version,
            "admin_version": admin.version if admin else None,
        },
    )

    return SyncResponse(
        ok=True,
        server_time=now,
        admin_config=admin.config if admin else None,
        admin_version=admin.version if admin else None,
    )
