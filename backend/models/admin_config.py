"""Current admin override per device."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base
from models.snapshot import JSONDocument


class AdminConfig(Base):
    """The versioned config an operator wants a device to adopt.

    ``version`` starts at 1 and grows by exactly one per write.
    """

    __tablename__ = "admin_configs"

    device_id = Column(
        String(128),
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        primary_key=True,
    )
    version = Column(BigInteger, nullable=False)
    config = Column(JSONDocument, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    device = relationship("Device", back_populates="admin_config")
