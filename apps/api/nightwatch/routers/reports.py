from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from nightwatch.core.database import get_db
from nightwatch.core.security import RequestContext, get_request_context
from nightwatch.schemas.reports import UnitReport, WorkerReport
from nightwatch.services.historical import report_by_unit, report_by_worker

router = APIRouter()


@router.get("/workers/{worker_id}", response_model=WorkerReport)
def worker_report(
    worker_id: UUID,
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return report_by_worker(db, worker_id, date_from=date_from, date_to=date_to)


@router.get("/units/{unit_id}", response_model=UnitReport)
def unit_report(
    unit_id: UUID,
    date_from: Optional[str] = Query(default=None),
    date_to: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return report_by_unit(db, unit_id, date_from=date_from, date_to=date_to)
