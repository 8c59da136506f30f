import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    SmallInteger,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from nightwatch.core.database import Base


class NightCall(Base):
    __tablename__ = "night_supervision_calls"

    call_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    shift_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("night_supervision_shifts.shift_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    worker_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    worker_name = Column(String, nullable=False)
    worker_phone = Column(String, nullable=True)

    call_number = Column(SmallInteger, nullable=False)  # 1..3
    scheduled_time = Column(Time, nullable=False)
    actual_time = Column(Time, nullable=True)

    answered = Column(Boolean, nullable=False, default=False)
    photo_received = Column(Boolean, nullable=False, default=False)
    photo_url = Column(String, nullable=True)
    photo_timestamp = Column(DateTime(timezone=True), nullable=True)
    on_rest = Column(Boolean, nullable=False, default=False)

    notes = Column(Text, nullable=True)
    non_conformity = Column(Boolean, nullable=False, default=False)
    non_conformity_description = Column(Text, nullable=True)

    created_by = Column(Uuid(as_uuid=True), nullable=True)
    updated_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shift = relationship("NightShift", back_populates="calls")

    __table_args__ = (
        UniqueConstraint("shift_id", "worker_id", "call_number", name="uq_night_calls_shift_worker_number"),
        CheckConstraint("call_number BETWEEN 1 AND 3", name="ck_night_calls_number"),
    )
