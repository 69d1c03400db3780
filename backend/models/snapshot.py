"""Append-only history of snapshots reported by devices."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from database import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")

# SQLite only autoincrements INTEGER PRIMARY KEY columns
SnapshotId = BigInteger().with_variant(Integer(), "sqlite")


class ConfigSnapshot(Base):
    """A device's self-reported provider configuration at a point in time."""

    __tablename__ = "config_snapshots"

    id = Column(SnapshotId, primary_key=True, autoincrement=True)
    device_id = Column(
        String(128),
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        nullable=False,
    )
    snapshot = Column(JSONDocument, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    device = relationship("Device", back_populates="snapshots")

    __table_args__ = (
        Index("ix_config_snapshots_device_created", "device_id", "created_at"),
    )
