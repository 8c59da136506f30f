"""
Checkpoint writes: calls and camera reviews.

Every write runs as one transaction per shift:

    lock shift -> write checkpoint -> alert engine -> completion -> commit

so a later write always sees the alerts and percentage of the earlier ones,
and a rejected write leaves the shift exactly as it was.
"""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nightwatch.core import dates
from nightwatch.core.errors import DuplicateCallError, NotFoundError, ValidationError
from nightwatch.models.alert import NightAlert
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.services import alert_engine
from nightwatch.services.checkpoint_scheduler import (
    parse_time,
    default_call_time,
    ensure_review_slot,
    find_review_slot,
)
from nightwatch.services.completion import recompute_completion
from nightwatch.services.shift_registry import get_shift, lock_shift

logger = logging.getLogger(__name__)

CALL_PATCH_FIELDS = {
    "actual_time",
    "answered",
    "photo_received",
    "photo_url",
    "on_rest",
    "notes",
    "non_conformity",
    "non_conformity_description",
}

REVIEW_PATCH_FIELDS = {
    "scheduled_time",
    "actual_time",
    "screenshot_url",
    "cameras_reviewed",
    "notes",
    "non_conformity",
    "non_conformity_description",
}

# optimistic retry when a concurrent writer trips a unique constraint
MAX_ATTEMPTS = 2


def _check_fields(patch: dict, allowed: set[str]) -> None:
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def find_call(db: Session, shift_id: UUID, worker_id: UUID, call_number: int) -> NightCall | None:
    return db.execute(
        select(NightCall).where(
            and_(
                NightCall.shift_id == shift_id,
                NightCall.worker_id == worker_id,
                NightCall.call_number == call_number,
            )
        )
    ).scalar_one_or_none()


def get_call(db: Session, call_id: UUID) -> NightCall:
    call = db.get(NightCall, call_id)
    if not call:
        raise NotFoundError("Call not found")
    return call


def list_calls(db: Session, shift_id: UUID) -> list[NightCall]:
    get_shift(db, shift_id)
    return list(
        db.execute(
            select(NightCall)
            .where(NightCall.shift_id == shift_id)
            .order_by(NightCall.call_number.asc(), NightCall.worker_name.asc())
        )
        .scalars()
        .all()
    )


def list_camera_reviews(db: Session, shift_id: UUID) -> list[CameraReview]:
    get_shift(db, shift_id)
    return list(
        db.execute(
            select(CameraReview)
            .where(CameraReview.shift_id == shift_id)
            .order_by(CameraReview.review_number.asc())
        )
        .scalars()
        .all()
    )


# ---------- calls ----------
def create_call(
    db: Session,
    shift_id: UUID,
    *,
    worker_id: UUID,
    worker_name: str,
    call_number: int,
    scheduled_time=None,
    worker_phone: Optional[str] = None,
    on_rest: bool = False,
    notes: Optional[str] = None,
    created_by: Optional[UUID] = None,
) -> NightCall:
    """Unplanned call. Never overwrites: an existing (shift, worker, number) raises DuplicateCallError."""
    if call_number not in (1, 2, 3):
        raise ValidationError("call_number must be 1, 2 or 3")
    if not worker_name:
        raise ValidationError("worker_name is required")

    try:
        lock_shift(db, shift_id)
        existing = find_call(db, shift_id, worker_id, call_number)
        if existing:
            raise DuplicateCallError(existing.call_id)

        call = NightCall(
            shift_id=shift_id,
            worker_id=worker_id,
            worker_name=worker_name,
            worker_phone=worker_phone,
            call_number=call_number,
            scheduled_time=parse_time(scheduled_time) if scheduled_time else default_call_time(call_number),
            answered=False,
            photo_received=False,
            on_rest=on_rest,
            notes=_blank_to_none(notes),
            non_conformity=False,
            created_by=created_by,
        )
        db.add(call)
        db.flush()

        # a new worker raises the number of required checkpoints
        recompute_completion(db, shift_id)
        db.commit()
    except IntegrityError:
        db.rollback()
        winner = find_call(db, shift_id, worker_id, call_number)
        logger.warning("duplicate call blocked by constraint: shift=%s worker=%s #%s", shift_id, worker_id, call_number)
        if winner is None:
            raise
        raise DuplicateCallError(winner.call_id)
    except Exception:
        db.rollback()
        raise

    db.refresh(call)
    return call


def update_call(db: Session, call_id: UUID, patch: dict, updated_by: Optional[UUID] = None) -> NightCall:
    _check_fields(patch, CALL_PATCH_FIELDS)
    for flag in ("answered", "photo_received", "on_rest", "non_conformity"):
        if flag in patch and patch[flag] is None:
            raise ValidationError(f"{flag} must be true or false")

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            call = get_call(db, call_id)
            lock_shift(db, call.shift_id)

            for field, value in patch.items():
                if field == "actual_time" and value is not None:
                    value = parse_time(value)
                elif field in ("photo_url", "notes", "non_conformity_description"):
                    value = _blank_to_none(value)
                setattr(call, field, value)

            if "photo_url" in patch:
                call.photo_timestamp = dates.now() if call.photo_url else None
            call.updated_by = updated_by
            db.flush()

            alert_engine.evaluate_call(db, call, actor=updated_by)
            recompute_completion(db, call.shift_id)
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == MAX_ATTEMPTS:
                raise
            logger.warning("conflicting write on call %s, retrying", call_id)
            continue
        except Exception:
            db.rollback()
            raise

        db.refresh(call)
        return call

    raise RuntimeError("unreachable")


def delete_call(db: Session, call_id: UUID) -> None:
    """Removes the call and every alert pointing at it."""
    try:
        call = get_call(db, call_id)
        shift_id = call.shift_id
        lock_shift(db, shift_id)

        db.execute(delete(NightAlert).where(NightAlert.related_entity_id == call_id))
        db.execute(delete(NightCall).where(NightCall.call_id == call_id))
        recompute_completion(db, shift_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("call deleted: %s (shift %s)", call_id, shift_id)


# ---------- camera reviews ----------
def upsert_camera_review(
    db: Session,
    shift_id: UUID,
    review_number: int,
    patch: dict,
    updated_by: Optional[UUID] = None,
) -> CameraReview:
    """
    Saves review slot `review_number` (1..3) of the shift: creates it on first
    save, updates the same row afterwards. Omitting screenshot_url keeps the
    stored one. Once a screenshot is present the notes become mandatory.
    """
    if review_number not in (1, 2, 3):
        raise ValidationError("review_number must be 1, 2 or 3")
    _check_fields(patch, REVIEW_PATCH_FIELDS)
    if "non_conformity" in patch and patch["non_conformity"] is None:
        raise ValidationError("non_conformity must be true or false")

    patch = dict(patch)
    for field in ("screenshot_url", "notes", "non_conformity_description"):
        if field in patch:
            patch[field] = _blank_to_none(patch[field])
    if "cameras_reviewed" in patch:
        patch["cameras_reviewed"] = [c.strip() for c in (patch["cameras_reviewed"] or []) if c and c.strip()]

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            shift = lock_shift(db, shift_id)
            current = find_review_slot(db, shift_id, review_number)

            screenshot = patch["screenshot_url"] if "screenshot_url" in patch else (current.screenshot_url if current else None)
            notes = patch["notes"] if "notes" in patch else (current.notes if current else None)
            if screenshot and not notes:
                raise ValidationError("Notes are required once the camera review is completed")

            review = current or ensure_review_slot(
                db, shift, review_number, scheduled_time=patch.get("scheduled_time"), created_by=updated_by
            )
            previous_screenshot = review.screenshot_url

            for field, value in patch.items():
                if field in ("scheduled_time", "actual_time") and value is not None:
                    value = parse_time(value)
                if field == "scheduled_time" and value is None:
                    continue
                setattr(review, field, value)

            if review.screenshot_url != previous_screenshot:
                review.screenshot_timestamp = dates.now() if review.screenshot_url else None
            review.updated_by = updated_by
            db.flush()

            alert_engine.evaluate_camera_review(db, review, actor=updated_by)
            recompute_completion(db, shift_id)
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == MAX_ATTEMPTS:
                raise
            logger.warning("concurrent save of review slot %s on shift %s, retrying", review_number, shift_id)
            continue
        except Exception:
            db.rollback()
            raise

        db.refresh(review)
        return review

    raise RuntimeError("unreachable")
