from models.admin_config import AdminConfig
from models.device import Device
from models.snapshot import ConfigSnapshot

__all__ = ["AdminConfig", "ConfigSnapshot", "Device"]
