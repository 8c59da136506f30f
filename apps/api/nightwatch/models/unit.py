import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from sqlalchemy.sql import func

from nightwatch.core.database import Base


class Unit(Base):
    __tablename__ = "units"

    unit_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String, nullable=False)
    archived = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

