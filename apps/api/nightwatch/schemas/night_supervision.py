from datetime import date, datetime, time
from typing import Optional, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from nightwatch.models.alert import AlertSeverity, AlertType, RelatedEntityType
from nightwatch.models.shift import ShiftStatus


# ----------------------------
# Shifts
# ----------------------------
class ShiftCreate(BaseModel):
    date: str  # YYYY-MM-DD (anything after "T" or a space is ignored)
    unit_id: UUID
    shift_start: Optional[time] = None
    shift_end: Optional[time] = None
    notes: Optional[str] = None
    on_rest_worker_ids: list[UUID] = Field(default_factory=list)


class ShiftUpdate(BaseModel):
    shift_start: Optional[time] = None
    shift_end: Optional[time] = None
    notes: Optional[str] = None


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    shift_id: UUID
    date: date
    unit_id: UUID
    unit_name: str
    supervisor_id: UUID
    supervisor_name: str
    shift_start: time
    shift_end: time
    status: ShiftStatus
    completion_percentage: int
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    updated_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ----------------------------
# Calls
# ----------------------------
class CallCreate(BaseModel):
    worker_id: UUID
    worker_name: Optional[str] = None
    worker_phone: Optional[str] = None
    call_number: int = Field(ge=1, le=3)
    scheduled_time: Optional[time] = None
    on_rest: bool = False
    notes: Optional[str] = None


class CallUpdate(BaseModel):
    actual_time: Optional[time] = None
    answered: Optional[bool] = None
    photo_received: Optional[bool] = None
    photo_url: Optional[str] = None
    on_rest: Optional[bool] = None
    notes: Optional[str] = None
    non_conformity: Optional[bool] = None
    non_conformity_description: Optional[str] = None


class CallOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    call_id: UUID
    shift_id: UUID
    worker_id: UUID
    worker_name: str
    worker_phone: Optional[str] = None
    call_number: int
    scheduled_time: time
    actual_time: Optional[time] = None
    answered: bool
    photo_received: bool
    photo_url: Optional[str] = None
    photo_timestamp: Optional[datetime] = None
    on_rest: bool
    notes: Optional[str] = None
    non_conformity: bool
    non_conformity_description: Optional[str] = None
    created_by: Optional[UUID] = None
    updated_by: Optional[UUID] = None


# ----------------------------
# Camera reviews
# ----------------------------
class CameraReviewUpsert(BaseModel):
    scheduled_time: Optional[time] = None
    actual_time: Optional[time] = None
    screenshot_url: Optional[str] = None
    cameras_reviewed: Optional[list[str]] = None
    notes: Optional[str] = None
    non_conformity: Optional[bool] = None
    non_conformity_description: Optional[str] = None


class CameraReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: UUID
    shift_id: UUID
    unit_id: UUID
    unit_name: str
    review_number: int
    scheduled_time: time
    actual_time: Optional[time] = None
    screenshot_url: Optional[str] = None
    screenshot_timestamp: Optional[datetime] = None
    cameras_reviewed: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    non_conformity: bool
    non_conformity_description: Optional[str] = None
    created_by: Optional[UUID] = None
    updated_by: Optional[UUID] = None


# ----------------------------
# Alerts
# ----------------------------
class AlertResolve(BaseModel):
    # defaults to the caller
    resolved_by: Optional[UUID] = None


class AlertOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    alert_id: UUID
    shift_id: UUID
    type: AlertType
    severity: AlertSeverity
    title: str
    description: str
    related_entity_type: Optional[RelatedEntityType] = None
    related_entity_id: Optional[UUID] = None
    resolved: bool
    resolved_by: Optional[UUID] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ContractAlertOut(BaseModel):
    type: Literal["contract_alert"] = "contract_alert"
    severity: Literal["high"] = "high"
    related_entity_type: Literal["resource"] = "resource"
    personnel_id: UUID
    unit_id: UUID
    worker_name: str
    training_start_date: date
    alert_date: date
    days_in_training: int
    title: str
    description: str


class NightWorkerOut(BaseModel):
    personnel_id: UUID
    name: str
    phone: Optional[str] = None
    in_training: bool = False
    training_start_date: Optional[date] = None
    contract_generated: bool = False
