import uuid

from sqlalchemy import (
    JSON,
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
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from nightwatch.core.database import Base


class CameraReview(Base):
    __tablename__ = "night_supervision_camera_reviews"

    review_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    shift_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("night_supervision_shifts.shift_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    unit_id = Column(Uuid(as_uuid=True), nullable=False)
    unit_name = Column(String, nullable=False)

    review_number = Column(SmallInteger, nullable=False)  # 1..3, position in the night
    scheduled_time = Column(Time, nullable=False)
    actual_time = Column(Time, nullable=True)

    screenshot_url = Column(String, nullable=True)
    screenshot_timestamp = Column(DateTime(timezone=True), nullable=True)
    cameras_reviewed = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)

    notes = Column(Text, nullable=True)
    non_conformity = Column(Boolean, nullable=False, default=False)
    non_conformity_description = Column(Text, nullable=True)

    created_by = Column(Uuid(as_uuid=True), nullable=True)
    updated_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shift = relationship("NightShift", back_populates="camera_reviews")

    __table_args__ = (
        UniqueConstraint("shift_id", "review_number", name="uq_night_reviews_shift_number"),
        CheckConstraint("review_number BETWEEN 1 AND 3", name="ck_night_reviews_number"),
    )
