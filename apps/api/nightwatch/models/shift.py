import enum
import uuid
from datetime import time

from sqlalchemy import Column, Date, DateTime, Enum, Integer, String, Text, Time, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from nightwatch.core.database import Base

# IMPORTANT: registers the child tables before the relationships below resolve
from nightwatch.models.alert import NightAlert  # noqa: F401
from nightwatch.models.call import NightCall  # noqa: F401
from nightwatch.models.camera_review import CameraReview  # noqa: F401


class ShiftStatus(str, enum.Enum):
    en_curso = "en_curso"
    completada = "completada"
    incompleta = "incompleta"
    cancelada = "cancelada"


class NightShift(Base):
    __tablename__ = "night_supervision_shifts"

    shift_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    date = Column(Date, nullable=False, index=True)

    unit_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    unit_name = Column(String, nullable=False)

    supervisor_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    supervisor_name = Column(String, nullable=False)

    shift_start = Column(Time, nullable=False, default=time(22, 0))
    shift_end = Column(Time, nullable=False, default=time(6, 0))

    status = Column(Enum(ShiftStatus, name="night_shift_status"), nullable=False, default=ShiftStatus.en_curso)
    completion_percentage = Column(Integer, nullable=False, default=0)

    notes = Column(Text, nullable=True)

    created_by = Column(Uuid(as_uuid=True), nullable=True)
    updated_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    calls = relationship(
        "NightCall",
        back_populates="shift",
        cascade="all, delete-orphan",
        order_by="NightCall.call_number",
    )
    camera_reviews = relationship(
        "CameraReview",
        back_populates="shift",
        cascade="all, delete-orphan",
        order_by="CameraReview.review_number",
    )
    alerts = relationship(
        "NightAlert",
        back_populates="shift",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("date", "unit_id", "supervisor_id", name="uq_night_shifts_date_unit_supervisor"),
    )
