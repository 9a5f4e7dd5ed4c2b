import uuid

from sqlalchemy import Column, String, Text, DateTime, Uuid
from sqlalchemy.sql import func

from fieldops.database import Base

SETTING_TYPES = ("boolean", "number", "string")


class AppSetting(Base):
    """Key/value application setting. Values are stored as strings and parsed by setting_type."""
    __tablename__ = "app_settings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    setting_key = Column(String(100), nullable=False, unique=True, index=True)
    setting_value = Column(Text, nullable=False)
    setting_type = Column(String(20), nullable=False, default="boolean")
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
