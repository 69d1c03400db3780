"""Stable, hashed device identity."""

import hashlib
import logging
import platform
import re
import subprocess
from pathlib import Path
from typing import Callable

from sqlalchemy.orm import sessionmaker

from client.errors import HardwareFingerprintError
from client.stores import SETTINGS_DEVICE_ID, SettingsStore

logger = logging.getLogger(__name__)

LINUX_MACHINE_ID_PATHS = ("/etc/machine-id", "/var/lib/dbus/machine-id")


def _read_linux_machine_id() -> str:
    for path in LINUX_MACHINE_ID_PATHS:
        try:
            value = Path(path).read_text().strip()
        except OSError:
            continue
        if value:
            return value
    raise HardwareFingerprintError("No machine-id found")


def _read_macos_platform_uuid() -> str:
    output = subprocess.run(
        ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"],
        capture_output=True,
        text=True,
        check=True,
        timeout=10,
    ).stdout
    match = re.search(r'"IOPlatformUUID"\s*=\s*"([^"]+)"', output)
    if not match:
        raise HardwareFingerprintError("IOPlatformUUID not reported by ioreg")
    return match.group(1)


def _read_windows_machine_guid() -> str:
    import winreg

    with winreg.OpenKey(
        winreg.HKEY_LOCAL_MACHINE,
        r"SOFTWARE\Microsoft\Cryptography",
        0,
        winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
    ) as key:
        value, _ = winreg.QueryValueEx(key, "MachineGuid")
    return str(value)


def read_machine_fingerprint() -> str:
    """Return the OS-assigned machine identifier.

    Raises HardwareFingerprintError when it cannot be read.
    """
    system = platform.system()
    readers = {
        "Linux": _read_linux_machine_id,
        "Darwin": _read_macos_platform_uuid,
        "Windows": _read_windows_machine_guid,
    }
    reader = readers.get(system)
    if reader is None:
        raise HardwareFingerprintError(f"Unsupported platform: {system}")

    try:
        fingerprint = reader().strip()
    except HardwareFingerprintError:
        raise
    except (OSError, subprocess.SubprocessError) as e:
        raise HardwareFingerprintError(f"Failed to read hardware fingerprint: {e}") from e

    if not fingerprint:
        raise HardwareFingerprintError("Hardware fingerprint is empty")
    return fingerprint


class DeviceIdentity:
    """Derives the device id once and keeps it in the settings store."""

    def __init__(
        self,
        session_factory: sessionmaker,
        fingerprint_reader: Callable[[], str] = read_machine_fingerprint,
    ):
        self._session_factory = session_factory
        self._fingerprint_reader = fingerprint_reader

    def get_or_create(self) -> str:
        with self._session_factory.begin() as db:
            settings = SettingsStore(db)
            existing = settings.get(SETTINGS_DEVICE_ID)
            if existing and existing.strip():
                return existing

            raw_id = self._fingerprint_reader()
            device_id = hashlib.sha256(raw_id.encode("utf-8")).hexdigest()
            settings.set(SETTINGS_DEVICE_ID, device_id)

        logger.info("Device id created", extra={"device_id": device_id})
        return device_id
