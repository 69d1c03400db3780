"""Devices known to the management service."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from database import Base


class Device(Base):
    """Last-seen metadata for one client installation.

    Every sync overwrites the row except for ``created_at``.
    """

    __tablename__ = "devices"

    device_id = Column(String(128), primary_key=True)
    fingerprint_hash = Column(String(128), nullable=False)
    last_seen = Column(DateTime(timezone=True), nullable=False)
    last_ip = Column(String(64), nullable=True)
    geo_country = Column(String(8), nullable=True)
    geo_region = Column(String(16), nullable=True)
    geo_city = Column(String(128), nullable=True)
    app_version = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    snapshots = relationship(
        "ConfigSnapshot",
        back_populates="device",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    admin_config = relationship(
        "AdminConfig",
        back_populates="device",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
