from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nightwatch.core.database import get_db
from nightwatch.core.security import RequestContext, get_request_context
from nightwatch.schemas.night_supervision import (
    CallCreate,
    CallOut,
    CallUpdate,
    CameraReviewOut,
    CameraReviewUpsert,
)
from nightwatch.services import checkpoint_tracker
from nightwatch.services.personnel_directory import SqlPersonnelDirectory

router = APIRouter()


# ----------------------------
# Calls
# ----------------------------
@router.get("/shifts/{shift_id}/calls", response_model=list[CallOut])
def list_calls(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return checkpoint_tracker.list_calls(db, shift_id)


@router.post("/shifts/{shift_id}/calls", response_model=CallOut, status_code=201)
def create_call(
    shift_id: UUID,
    payload: CallCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    worker_name = payload.worker_name
    worker_phone = payload.worker_phone
    if not worker_name:
        person = SqlPersonnelDirectory(db).get_person(payload.worker_id)
        worker_name = person.name
        worker_phone = worker_phone or person.phone

    return checkpoint_tracker.create_call(
        db,
        shift_id,
        worker_id=payload.worker_id,
        worker_name=worker_name,
        worker_phone=worker_phone,
        call_number=payload.call_number,
        scheduled_time=payload.scheduled_time,
        on_rest=payload.on_rest,
        notes=payload.notes,
        created_by=ctx.user_id,
    )


@router.patch("/calls/{call_id}", response_model=CallOut)
def update_call(
    call_id: UUID,
    payload: CallUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    patch = payload.model_dump(exclude_unset=True)
    return checkpoint_tracker.update_call(db, call_id, patch, updated_by=ctx.user_id)


@router.delete("/calls/{call_id}", status_code=204)
def delete_call(
    call_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    checkpoint_tracker.delete_call(db, call_id)


# ----------------------------
# Camera reviews
# ----------------------------
@router.get("/shifts/{shift_id}/camera-reviews", response_model=list[CameraReviewOut])
def list_camera_reviews(
    shift_id: UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return checkpoint_tracker.list_camera_reviews(db, shift_id)


@router.put("/shifts/{shift_id}/camera-reviews/{review_number}", response_model=CameraReviewOut)
def upsert_camera_review(
    shift_id: UUID,
    review_number: int,
    payload: CameraReviewUpsert,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    # fields left out of the body keep their stored value
    patch = payload.model_dump(exclude_unset=True)
    return checkpoint_tracker.upsert_camera_review(db, shift_id, review_number, patch, updated_by=ctx.user_id)
