from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from nightwatch.core.database import get_db
from nightwatch.core.security import RequestContext, get_request_context
from nightwatch.schemas.night_supervision import AlertOut, AlertResolve, ContractAlertOut, NightWorkerOut
from nightwatch.services import alert_engine
from nightwatch.services.personnel_directory import SqlPersonnelDirectory
from nightwatch.services.shift_registry import get_shift

router = APIRouter()


@router.get("/shifts/{shift_id}/alerts", response_model=list[AlertOut])
def list_shift_alerts(
    shift_id: UUID,
    include_resolved: bool = Query(default=False),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    get_shift(db, shift_id)
    return alert_engine.list_alerts(db, shift_id, include_resolved=include_resolved)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertOut)
def resolve_alert(
    alert_id: UUID,
    payload: Optional[AlertResolve] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    resolved_by = (payload.resolved_by if payload else None) or ctx.user_id
    return alert_engine.resolve_alert(db, alert_id, resolved_by)


# ----------------------------
# Contract alerts (operations roles only)
# ----------------------------
@router.get("/contract-alerts", response_model=list[ContractAlertOut])
def list_contract_alerts(
    unit_id: Optional[UUID] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return alert_engine.contract_alerts(SqlPersonnelDirectory(db), ctx, unit_id=unit_id)


@router.post("/personnel/{personnel_id}/contract-generated", response_model=NightWorkerOut)
def mark_contract_generated(
    personnel_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    record = alert_engine.mark_contract_generated(SqlPersonnelDirectory(db), ctx, personnel_id)
    return NightWorkerOut(
        personnel_id=record.personnel_id,
        name=record.name,
        phone=record.phone,
        in_training=record.in_training,
        training_start_date=record.training_start_date,
        contract_generated=record.contract_generated,
    )


@router.get("/units/{unit_id}/night-workers", response_model=list[NightWorkerOut])
def list_night_workers(
    unit_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    directory = SqlPersonnelDirectory(db)
    directory.unit_name(unit_id)
    return [
        NightWorkerOut(
            personnel_id=w.personnel_id,
            name=w.name,
            phone=w.phone,
            in_training=w.in_training,
            training_start_date=w.training_start_date,
            contract_generated=w.contract_generated,
        )
        for w in directory.list_night_workers(unit_id)
    ]
