from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from nightwatch.models.alert import AlertSeverity, AlertType
from nightwatch.schemas.night_supervision import AlertOut, CallOut, CameraReviewOut, ShiftOut
from nightwatch.schemas.reports import ShiftReport
from nightwatch.services.alert_engine import list_alerts
from nightwatch.services.checkpoint_tracker import list_calls, list_camera_reviews
from nightwatch.services.completion import CALLS_PER_WORKER, CAMERA_REVIEWS_PER_SHIFT, compute_percentage
from nightwatch.services.shift_registry import get_shift


def get_shift_report(db: Session, shift_id: UUID) -> ShiftReport:
    """Read-only snapshot of one night for the document renderers."""
    shift = get_shift(db, shift_id)
    calls = list_calls(db, shift_id)
    reviews = list_camera_reviews(db, shift_id)
    alerts = list_alerts(db, shift_id, include_resolved=True)
    open_alerts = [a for a in alerts if not a.resolved]

    workers = len({c.worker_id for c in calls})
    answered = sum(1 for c in calls if c.answered)
    reviews_done = sum(1 for r in reviews if r.screenshot_url)

    return ShiftReport(
        shift=ShiftOut.model_validate(shift),
        total_workers=workers,
        total_calls_required=CALLS_PER_WORKER * workers,
        total_calls_completed=sum(1 for c in calls if c.answered or c.actual_time is not None),
        total_calls_answered=answered,
        total_photos_received=sum(1 for c in calls if c.photo_received),
        total_camera_reviews_required=CAMERA_REVIEWS_PER_SHIFT,
        total_camera_reviews_completed=reviews_done,
        non_conformities_count=sum(1 for a in open_alerts if a.type == AlertType.non_conformity),
        critical_events_count=sum(1 for a in open_alerts if a.severity == AlertSeverity.critical),
        # computed from the rows, the stored value may lag a write made outside the service
        completion_percentage=compute_percentage(workers, answered, reviews_done),
        calls=[CallOut.model_validate(c) for c in calls],
        camera_reviews=[CameraReviewOut.model_validate(r) for r in reviews],
        alerts=[AlertOut.model_validate(a) for a in alerts],
    )
