"""Tables of the local state database."""

from sqlalchemy import Boolean, Column, Integer, JSON, String, Text

from client.database import Base


class Setting(Base):
    """String key-value pair."""

    __tablename__ = "settings"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)


class ProviderRecord(Base):
    """A provider configured for one app type."""

    __tablename__ = "providers"

    app_type = Column(String(32), primary_key=True)
    provider_id = Column(String(255), primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    is_current = Column(Boolean, nullable=False, default=False)
    body = Column(JSON, nullable=False)
