import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from nightwatch.core.database import Base


class AlertType(str, enum.Enum):
    missing_call = "missing_call"
    missing_photo = "missing_photo"
    missing_camera_review = "missing_camera_review"
    non_conformity = "non_conformity"
    contract_alert = "contract_alert"


class AlertSeverity(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class RelatedEntityType(str, enum.Enum):
    call = "call"
    camera_review = "camera_review"
    resource = "resource"


# critical first when listing
SEVERITY_RANK = {
    AlertSeverity.critical: 0,
    AlertSeverity.high: 1,
    AlertSeverity.medium: 2,
    AlertSeverity.low: 3,
}


class NightAlert(Base):
    __tablename__ = "night_supervision_alerts"

    alert_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    shift_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("night_supervision_shifts.shift_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type = Column(Enum(AlertType, name="night_alert_type"), nullable=False)
    severity = Column(Enum(AlertSeverity, name="night_alert_severity"), nullable=False, default=AlertSeverity.medium)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)

    related_entity_type = Column(Enum(RelatedEntityType, name="night_alert_entity"), nullable=True)
    related_entity_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    resolved = Column(Boolean, nullable=False, default=False)
    resolved_by = Column(Uuid(as_uuid=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    shift = relationship("NightShift", back_populates="alerts")

    __table_args__ = (
        # one open alert per checkpoint and type; resolved ones pile up as history
        Index(
            "uq_night_alerts_open_key",
            "shift_id",
            "type",
            "related_entity_id",
            unique=True,
            postgresql_where=resolved.is_(False),
            sqlite_where=resolved.is_(False),
        ),
    )
