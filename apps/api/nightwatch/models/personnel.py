import uuid
from sqlalchemy import Column, String, Date, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func

from nightwatch.core.database import Base

# IMPORTANT: forces units table to be registered in SQLAlchemy metadata
from nightwatch.models.unit import Unit  # noqa: F401


class Personnel(Base):
    __tablename__ = "personnel"

    personnel_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    unit_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("units.unit_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)

    # free text from the staffing screens: "Noche", "Turno nocturno", "Día"...
    assigned_shift = Column(String, nullable=True)

    archived = Column(Boolean, nullable=False, default=False)
    personnel_status = Column(String, nullable=False, default="activo")  # activo | cesado | ...

    in_training = Column(Boolean, nullable=False, default=False)
    training_start_date = Column(Date, nullable=True)
    contract_generated = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

