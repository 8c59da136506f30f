from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from nightwatch.core.database import get_db
from nightwatch.core.security import RequestContext, get_request_context
from nightwatch.schemas.night_supervision import ShiftCreate, ShiftOut, ShiftUpdate
from nightwatch.schemas.reports import ShiftReport
from nightwatch.services import shift_registry
from nightwatch.services.completion import recompute_completion
from nightwatch.services.personnel_directory import SqlPersonnelDirectory
from nightwatch.services.shift_report import get_shift_report

router = APIRouter()


@router.post("", response_model=ShiftOut, status_code=201)
def create_shift(
    payload: ShiftCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Opens tonight's shift for the caller and schedules the unit's night workers."""
    directory = SqlPersonnelDirectory(db)
    unit_name = directory.unit_name(payload.unit_id)
    workers = directory.list_night_workers(payload.unit_id)

    return shift_registry.create_shift(
        db,
        shift_date=payload.date,
        unit_id=payload.unit_id,
        unit_name=unit_name,
        supervisor_id=ctx.user_id,
        supervisor_name=ctx.name or "Supervisor",
        shift_start=payload.shift_start,
        shift_end=payload.shift_end,
        notes=payload.notes,
        created_by=ctx.user_id,
        workers=workers,
        on_rest_ids=payload.on_rest_worker_ids,
    )


@router.get("", response_model=list[ShiftOut])
def list_shifts(
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    unit_id: Optional[UUID] = Query(default=None),
    status: Optional[str] = Query(default=None),
    supervisor_id: Optional[UUID] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return shift_registry.list_shifts(
        db,
        date_from=date_from,
        date_to=date_to,
        unit_id=unit_id,
        status=status,
        supervisor_id=supervisor_id,
    )


@router.get("/{shift_id}", response_model=ShiftOut)
def get_shift(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return shift_registry.get_shift(db, shift_id)


@router.patch("/{shift_id}", response_model=ShiftOut)
def update_shift(
    shift_id: UUID,
    payload: ShiftUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    patch = payload.model_dump(exclude_unset=True)
    return shift_registry.update_shift(db, shift_id, patch, updated_by=ctx.user_id)


@router.post("/{shift_id}/cancel", response_model=ShiftOut)
def cancel_shift(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return shift_registry.cancel_shift(db, shift_id, updated_by=ctx.user_id)


@router.delete("/{shift_id}", status_code=204)
def delete_shift(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    shift_registry.delete_shift(db, shift_id)


@router.post("/{shift_id}/recompute", response_model=ShiftOut)
def recompute_shift(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    try:
        recompute_completion(db, shift_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return shift_registry.get_shift(db, shift_id)


@router.get("/{shift_id}/report", response_model=ShiftReport)
def shift_report(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return get_shift_report(db, shift_id)
