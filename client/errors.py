"""
Error types raised by the sync agent.

Every failure of a sync round surfaces as a ManagementSyncError carrying a
human-readable message; the scheduler logs it and moves on.
"""

from typing import Optional


class ManagementSyncError(Exception):
    """Base exception for all sync agent errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SyncTransportError(ManagementSyncError):
    """The request failed or the service answered with a non-2xx status"""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class SyncParseError(ManagementSyncError):
    """The service answered with a body that is not a sync response"""


class InvalidAdminConfigError(ManagementSyncError):
    """A pushed admin config cannot be applied"""

    def __init__(self, message: str, app_type: Optional[str] = None):
        self.app_type = app_type
        super().__init__(message)


class HardwareFingerprintError(ManagementSyncError):
    """The machine fingerprint needed for the device id is unavailable"""
