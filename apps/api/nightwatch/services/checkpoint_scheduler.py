from __future__ import annotations

from datetime import time
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from nightwatch.core.errors import ValidationError
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.models.shift import NightShift
from nightwatch.services.personnel_directory import PersonnelRecord

# One entry per call/review number
CALL_TIMES = ("23:00", "02:00", "05:00")
REVIEW_TIMES = ("23:00", "02:00", "05:00")


def parse_time(value) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError("Invalid time format. Use HH:MM")


def default_call_time(call_number: int) -> time:
    return parse_time(CALL_TIMES[call_number - 1])


def default_review_time(review_number: int) -> time:
    return parse_time(REVIEW_TIMES[review_number - 1])


def materialize_calls(
    db: Session,
    shift: NightShift,
    workers: Iterable[PersonnelRecord],
    call_times: Sequence = CALL_TIMES,
    on_rest_ids: Iterable[UUID] = (),
    created_by: Optional[UUID] = None,
) -> list[NightCall]:
    """
    Three calls per worker (call_number 1..3 at call_times[0..2]).
    Workers resting tonight get nothing. Flushes, the caller commits.
    """
    if len(call_times) != 3:
        raise ValidationError("Exactly three call times are required")
    times = [parse_time(t) for t in call_times]
    resting = set(on_rest_ids)

    calls: list[NightCall] = []
    for worker in workers:
        if worker.personnel_id in resting:
            continue
        for i, scheduled in enumerate(times, start=1):
            calls.append(
                NightCall(
                    shift_id=shift.shift_id,
                    worker_id=worker.personnel_id,
                    worker_name=worker.name,
                    worker_phone=worker.phone,
                    call_number=i,
                    scheduled_time=scheduled,
                    answered=False,
                    photo_received=False,
                    on_rest=False,
                    non_conformity=False,
                    created_by=created_by,
                )
            )

    db.add_all(calls)
    db.flush()
    return calls


def find_review_slot(db: Session, shift_id: UUID, review_number: int) -> CameraReview | None:
    return db.execute(
        select(CameraReview).where(
            and_(CameraReview.shift_id == shift_id, CameraReview.review_number == review_number)
        )
    ).scalar_one_or_none()


def ensure_review_slot(
    db: Session,
    shift: NightShift,
    review_number: int,
    scheduled_time=None,
    created_by: Optional[UUID] = None,
) -> CameraReview:
    """
    Returns the review occupying this slot, inserting it on first use.
    A concurrent insert of the same slot surfaces as IntegrityError on flush.
    """
    if review_number not in (1, 2, 3):
        raise ValidationError("review_number must be 1, 2 or 3")

    existing = find_review_slot(db, shift.shift_id, review_number)
    if existing:
        return existing

    review = CameraReview(
        shift_id=shift.shift_id,
        unit_id=shift.unit_id,
        unit_name=shift.unit_name,
        review_number=review_number,
        scheduled_time=parse_time(scheduled_time) if scheduled_time else default_review_time(review_number),
        cameras_reviewed=[],
        non_conformity=False,
        created_by=created_by,
    )
    db.add(review)
    db.flush()
    return review
