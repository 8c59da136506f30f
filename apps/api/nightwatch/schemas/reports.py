from datetime import date
from uuid import UUID

from pydantic import BaseModel

from nightwatch.schemas.night_supervision import AlertOut, CallOut, CameraReviewOut, ShiftOut


class WorkerShiftRow(BaseModel):
    shift_id: UUID
    date: date
    unit_name: str
    supervisor_name: str
    completion_percentage: int
    calls: list[CallOut]


class WorkerReport(BaseModel):
    worker_id: UUID
    worker_name: str
    total_shifts: int
    total_calls_required: int
    # answered or given an actual_time; unworked scheduled rows do not count
    total_calls_completed: int
    total_calls_answered: int
    total_photos_received: int
    # nights with at least one on-rest call, not the number of on-rest calls
    total_on_rest_days: int
    total_non_conformities: int
    # mean of the shift-level percentages (all workers of each shift), not a per-worker score
    average_completion_percentage: int
    shifts: list[WorkerShiftRow]


class UnitShiftRow(BaseModel):
    shift_id: UUID
    date: date
    supervisor_name: str
    completion_percentage: int
    calls_count: int
    camera_reviews_count: int


class UnitReport(BaseModel):
    unit_id: UUID
    unit_name: str
    total_shifts: int
    total_workers: int
    total_calls_required: int
    # answered or given an actual_time; unworked scheduled rows do not count
    total_calls_completed: int
    total_calls_answered: int
    total_photos_received: int
    total_camera_reviews_required: int
    total_camera_reviews_completed: int
    # calls plus camera reviews flagged as non-conforming
    total_non_conformities: int
    average_completion_percentage: int
    shifts: list[UnitShiftRow]


class ShiftReport(BaseModel):
    """Everything a PDF/Excel renderer needs for one night, already materialized."""

    shift: ShiftOut
    total_workers: int
    total_calls_required: int
    total_calls_completed: int
    total_calls_answered: int
    total_photos_received: int
    total_camera_reviews_required: int
    total_camera_reviews_completed: int
    non_conformities_count: int
    critical_events_count: int
    completion_percentage: int
    calls: list[CallOut]
    camera_reviews: list[CameraReviewOut]
    alerts: list[AlertOut]
