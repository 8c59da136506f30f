from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from nightwatch.core import dates
from nightwatch.core.errors import NoDataError
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.models.shift import NightShift
from nightwatch.schemas.night_supervision import CallOut
from nightwatch.schemas.reports import UnitReport, UnitShiftRow, WorkerReport, WorkerShiftRow
from nightwatch.services.completion import CALLS_PER_WORKER, CAMERA_REVIEWS_PER_SHIFT


def _mean(values: list[int]) -> int:
    if not values:
        return 0
    return int((Decimal(sum(values)) / Decimal(len(values))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _in_range(stmt, date_from, date_to):
    if date_from:
        stmt = stmt.where(NightShift.date >= dates.parse_date_key(date_from))
    if date_to:
        stmt = stmt.where(NightShift.date <= dates.parse_date_key(date_to))
    return stmt


def _call_completed(call: NightCall) -> bool:
    # a call counts as made once it was answered or an actual time was logged
    return bool(call.answered or call.actual_time is not None)


def report_by_worker(
    db: Session,
    worker_id: UUID,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> WorkerReport:
    stmt = (
        select(NightCall, NightShift)
        .join(NightShift, NightShift.shift_id == NightCall.shift_id)
        .where(NightCall.worker_id == worker_id)
    )
    stmt = _in_range(stmt, date_from, date_to).order_by(
        NightShift.date.desc(), NightShift.created_at.desc(), NightCall.call_number.asc()
    )
    rows = db.execute(stmt).all()
    if not rows:
        raise NoDataError("No supervision shifts for this worker in the selected range")

    grouped: "OrderedDict[UUID, tuple[NightShift, list[NightCall]]]" = OrderedDict()
    for call, shift in rows:
        grouped.setdefault(shift.shift_id, (shift, []))[1].append(call)

    calls = [c for c, _ in rows]
    shifts = list(grouped.values())

    return WorkerReport(
        worker_id=worker_id,
        worker_name=calls[0].worker_name,
        total_shifts=len(shifts),
        total_calls_required=CALLS_PER_WORKER * len(shifts),
        total_calls_completed=sum(1 for c in calls if _call_completed(c)),
        total_calls_answered=sum(1 for c in calls if c.answered),
        total_photos_received=sum(1 for c in calls if c.photo_received),
        total_on_rest_days=sum(1 for _, shift_calls in shifts if any(c.on_rest for c in shift_calls)),
        total_non_conformities=sum(1 for c in calls if c.non_conformity),
        # shift-level figure (every worker of the night), kept as the approximation the dashboard shows
        average_completion_percentage=_mean([s.completion_percentage or 0 for s, _ in shifts]),
        shifts=[
            WorkerShiftRow(
                shift_id=s.shift_id,
                date=s.date,
                unit_name=s.unit_name,
                supervisor_name=s.supervisor_name,
                completion_percentage=s.completion_percentage or 0,
                calls=[CallOut.model_validate(c) for c in shift_calls],
            )
            for s, shift_calls in shifts
        ],
    )


def report_by_unit(
    db: Session,
    unit_id: UUID,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> UnitReport:
    stmt = _in_range(select(NightShift).where(NightShift.unit_id == unit_id), date_from, date_to)
    shifts = db.execute(stmt.order_by(NightShift.date.desc(), NightShift.created_at.desc())).scalars().all()
    if not shifts:
        raise NoDataError("No supervision shifts for this unit in the selected range")

    shift_ids = [s.shift_id for s in shifts]
    calls = db.execute(select(NightCall).where(NightCall.shift_id.in_(shift_ids))).scalars().all()
    reviews = db.execute(select(CameraReview).where(CameraReview.shift_id.in_(shift_ids))).scalars().all()

    calls_by_shift: dict[UUID, list[NightCall]] = {sid: [] for sid in shift_ids}
    for c in calls:
        calls_by_shift[c.shift_id].append(c)
    reviews_by_shift: dict[UUID, list[CameraReview]] = {sid: [] for sid in shift_ids}
    for r in reviews:
        reviews_by_shift[r.shift_id].append(r)

    calls_required = sum(
        CALLS_PER_WORKER * len({c.worker_id for c in calls_by_shift[sid]}) for sid in shift_ids
    )

    return UnitReport(
        unit_id=unit_id,
        unit_name=shifts[0].unit_name,
        total_shifts=len(shifts),
        total_workers=len({c.worker_id for c in calls}),
        total_calls_required=calls_required,
        total_calls_completed=sum(1 for c in calls if _call_completed(c)),
        total_calls_answered=sum(1 for c in calls if c.answered),
        total_photos_received=sum(1 for c in calls if c.photo_received),
        total_camera_reviews_required=CAMERA_REVIEWS_PER_SHIFT * len(shifts),
        total_camera_reviews_completed=sum(1 for r in reviews if r.screenshot_url),
        total_non_conformities=sum(1 for c in calls if c.non_conformity) + sum(1 for r in reviews if r.non_conformity),
        average_completion_percentage=_mean([s.completion_percentage or 0 for s in shifts]),
        shifts=[
            UnitShiftRow(
                shift_id=s.shift_id,
                date=s.date,
                supervisor_name=s.supervisor_name,
                completion_percentage=s.completion_percentage or 0,
                calls_count=len(calls_by_shift[s.shift_id]),
                camera_reviews_count=len(reviews_by_shift[s.shift_id]),
            )
            for s in shifts
        ],
    )
