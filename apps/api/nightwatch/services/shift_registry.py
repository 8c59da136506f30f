from __future__ import annotations

import logging
from datetime import time
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nightwatch.core import dates
from nightwatch.core.errors import DuplicateShiftError, NotFoundError, ValidationError
from nightwatch.models.alert import NightAlert
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.models.shift import NightShift, ShiftStatus
from nightwatch.services.checkpoint_scheduler import CALL_TIMES, materialize_calls
from nightwatch.services.personnel_directory import PersonnelRecord

logger = logging.getLogger(__name__)

DEFAULT_SHIFT_START = time(22, 0)
DEFAULT_SHIFT_END = time(6, 0)

SHIFT_PATCH_FIELDS = {"shift_start", "shift_end", "notes"}


def find_shift(db: Session, shift_date, unit_id: UUID, supervisor_id: UUID) -> NightShift | None:
    return db.execute(
        select(NightShift).where(
            and_(
                NightShift.date == dates.parse_date_key(shift_date),
                NightShift.unit_id == unit_id,
                NightShift.supervisor_id == supervisor_id,
            )
        )
    ).scalar_one_or_none()


def create_shift(
    db: Session,
    *,
    shift_date,
    unit_id: UUID,
    unit_name: str,
    supervisor_id: UUID,
    supervisor_name: str,
    shift_start: Optional[time] = None,
    shift_end: Optional[time] = None,
    notes: Optional[str] = None,
    created_by: Optional[UUID] = None,
    workers: Iterable[PersonnelRecord] = (),
    on_rest_ids: Iterable[UUID] = (),
    call_times: Sequence = CALL_TIMES,
) -> NightShift:
    """
    Opens the night for (date, unit, supervisor) and schedules the calls of
    every worker passed in, all in one transaction.

    Never merges: an existing shift for the same key raises
    DuplicateShiftError carrying its id so the caller can open it instead.
    """
    key = dates.to_date_key(shift_date)
    if not unit_name or not supervisor_name:
        raise ValidationError("unit_name and supervisor_name are required")

    existing = find_shift(db, key, unit_id, supervisor_id)
    if existing:
        raise DuplicateShiftError(existing.shift_id)

    shift = NightShift(
        date=dates.parse_date_key(key),
        unit_id=unit_id,
        unit_name=unit_name,
        supervisor_id=supervisor_id,
        supervisor_name=supervisor_name,
        shift_start=shift_start or DEFAULT_SHIFT_START,
        shift_end=shift_end or DEFAULT_SHIFT_END,
        status=ShiftStatus.en_curso,
        completion_percentage=0,
        notes=notes or None,
        created_by=created_by,
    )

    try:
        db.add(shift)
        db.flush()
    except IntegrityError:
        # lost the race against a concurrent create for the same key
        db.rollback()
        winner = find_shift(db, key, unit_id, supervisor_id)
        logger.warning("duplicate shift blocked by constraint: %s unit=%s supervisor=%s", key, unit_id, supervisor_id)
        if winner is None:
            raise
        raise DuplicateShiftError(winner.shift_id)

    try:
        materialize_calls(db, shift, workers, call_times=call_times, on_rest_ids=on_rest_ids, created_by=created_by)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(shift)
    logger.info("shift created: %s %s unit=%s supervisor=%s", shift.shift_id, key, unit_id, supervisor_id)
    return shift


def get_shift(db: Session, shift_id: UUID) -> NightShift:
    shift = db.get(NightShift, shift_id)
    if not shift:
        raise NotFoundError("Shift not found")
    return shift


def lock_shift(db: Session, shift_id: UUID) -> NightShift:
    """Row lock that serializes checkpoint writes for one shift (no-op on SQLite)."""
    shift = db.execute(
        select(NightShift).where(NightShift.shift_id == shift_id).with_for_update()
    ).scalar_one_or_none()
    if not shift:
        raise NotFoundError("Shift not found")
    return shift


def list_shifts(
    db: Session,
    date_from=None,
    date_to=None,
    unit_id: Optional[UUID] = None,
    status: Optional[str] = None,
    supervisor_id: Optional[UUID] = None,
) -> list[NightShift]:
    stmt = select(NightShift)

    if unit_id:
        stmt = stmt.where(NightShift.unit_id == unit_id)
    if supervisor_id:
        stmt = stmt.where(NightShift.supervisor_id == supervisor_id)
    if status:
        try:
            stmt = stmt.where(NightShift.status == ShiftStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status: {status}")
    if date_from:
        stmt = stmt.where(NightShift.date >= dates.parse_date_key(date_from))
    if date_to:
        stmt = stmt.where(NightShift.date <= dates.parse_date_key(date_to))

    stmt = stmt.order_by(NightShift.date.desc(), NightShift.created_at.desc())
    return list(db.execute(stmt).scalars().all())


def update_shift(db: Session, shift_id: UUID, patch: dict, updated_by: Optional[UUID] = None) -> NightShift:
    unknown = set(patch) - SHIFT_PATCH_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

    shift = get_shift(db, shift_id)
    try:
        for field, value in patch.items():
            if field in ("shift_start", "shift_end") and value is None:
                raise ValidationError(f"{field} cannot be empty")
            setattr(shift, field, value)
        shift.updated_by = updated_by
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(shift)
    return shift


def cancel_shift(db: Session, shift_id: UUID, updated_by: Optional[UUID] = None) -> NightShift:
    shift = get_shift(db, shift_id)
    if shift.status == ShiftStatus.cancelada:
        return shift

    try:
        shift.status = ShiftStatus.cancelada
        shift.updated_by = updated_by
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(shift)
    logger.info("shift cancelled: %s by %s", shift_id, updated_by)
    return shift


def delete_shift(db: Session, shift_id: UUID) -> None:
    """Irreversible. Takes the shift's calls, camera reviews and alerts with it."""
    shift = get_shift(db, shift_id)

    try:
        db.execute(delete(NightAlert).where(NightAlert.shift_id == shift_id))
        db.execute(delete(NightCall).where(NightCall.shift_id == shift_id))
        db.execute(delete(CameraReview).where(CameraReview.shift_id == shift_id))
        db.execute(delete(NightShift).where(NightShift.shift_id == shift.shift_id))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("shift deleted: %s", shift_id)
