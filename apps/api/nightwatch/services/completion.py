from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from nightwatch.core import dates
from nightwatch.core.errors import NotFoundError
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.models.shift import NightShift, ShiftStatus

logger = logging.getLogger(__name__)

CALLS_PER_WORKER = 3
CAMERA_REVIEWS_PER_SHIFT = 3


def compute_percentage(worker_count: int, answered_calls: int, completed_reviews: int) -> int:
    """
    Required = 3 calls per worker with calls + the 3 review slots (created or not).
    Done = answered calls + reviews that carry a screenshot.
    """
    required = CALLS_PER_WORKER * worker_count + CAMERA_REVIEWS_PER_SHIFT
    if required <= 0:
        return 0

    done = answered_calls + completed_reviews
    pct = (Decimal(100 * done) / Decimal(required)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))


def next_status(current: ShiftStatus, shift_date: date, percentage: int, today: str) -> ShiftStatus:
    if current == ShiftStatus.cancelada:
        return current
    if dates.to_date_key(shift_date) >= today:
        return ShiftStatus.en_curso
    return ShiftStatus.completada if percentage >= 100 else ShiftStatus.incompleta


def _counts(db: Session, shift_id: UUID) -> tuple[int, int, int]:
    worker_count = db.execute(
        select(func.count(func.distinct(NightCall.worker_id))).where(NightCall.shift_id == shift_id)
    ).scalar_one()

    answered = db.execute(
        select(func.count(NightCall.call_id)).where(
            and_(NightCall.shift_id == shift_id, NightCall.answered == True)  # noqa: E712
        )
    ).scalar_one()

    reviews = db.execute(
        select(func.count(CameraReview.review_id)).where(
            and_(
                CameraReview.shift_id == shift_id,
                CameraReview.screenshot_url.is_not(None),
                CameraReview.screenshot_url != "",
            )
        )
    ).scalar_one()

    return int(worker_count), int(answered), int(reviews)


def recompute_completion(db: Session, shift_id: UUID, today: str | None = None) -> int:
    """Recomputes and stores percentage + status on the shift. Caller commits."""
    shift = db.get(NightShift, shift_id)
    if not shift:
        raise NotFoundError("Shift not found")

    db.flush()
    pct = compute_percentage(*_counts(db, shift_id))
    status = next_status(shift.status, shift.date, pct, today or dates.today_key())

    if shift.completion_percentage != pct or shift.status != status:
        logger.debug("shift %s completion %s%% -> %s%%, status %s", shift_id, shift.completion_percentage, pct, status.value)
        shift.completion_percentage = pct
        shift.status = status
        db.flush()
    return pct


def close_past_shifts(db: Session, today: str | None = None) -> int:
    """Settles every en_curso shift dated before today. Returns how many changed status."""
    today = today or dates.today_key()
    stale = (
        db.execute(
            select(NightShift.shift_id).where(
                and_(
                    NightShift.status == ShiftStatus.en_curso,
                    NightShift.date < dates.parse_date_key(today),
                )
            )
        )
        .scalars()
        .all()
    )

    try:
        for shift_id in stale:
            recompute_completion(db, shift_id, today=today)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("closed %d past shift(s) before %s", len(stale), today)
    return len(stale)
