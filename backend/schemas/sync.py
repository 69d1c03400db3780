"""Pydantic schemas for the device sync endpoint."""

from datetime import datetime
from typing import Any, Optional

from schemas.base import CamelModel


class SyncRequest(CamelModel):
    """Report sent by a client on every sync."""

    device_id: str
    app_version: Optional[str] = None
    applied_admin_version: Optional[int] = None
    snapshot: Any
    client_time: Optional[str] = None


class SyncResponse(CamelModel):
    """Server time plus the device's current admin config, if any."""

    ok: bool
    server_time: datetime
    admin_config: Optional[Any] = None
    admin_version: Optional[int] = None
