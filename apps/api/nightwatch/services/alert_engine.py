"""
Alert engine.

Checkpoint alerts are derived from the single checkpoint that was just
written (never a full rescan of the shift):

  missing_call           answered is false            high      auto-resolves
  missing_photo          photo_received is false      medium    auto-resolves
  missing_camera_review  no screenshot_url            high      auto-resolves
  non_conformity         non_conformity flag is set   high /    only resolved by
                                                      critical  a person

At most one unresolved alert exists per (shift, type, checkpoint). The partial
unique index on night_supervision_alerts backs that up at the storage level.

Contract alerts are not stored: they are recomputed from the personnel
directory on every read.
"""
from __future__ import annotations

import logging
import unicodedata
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from nightwatch.core import dates
from nightwatch.core.config import settings
from nightwatch.core.errors import NotFoundError, PermissionDeniedError
from nightwatch.core.security import RequestContext
from nightwatch.models.alert import SEVERITY_RANK, AlertSeverity, AlertType, NightAlert, RelatedEntityType
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.schemas.night_supervision import ContractAlertOut
from nightwatch.services.personnel_directory import PersonnelDirectory

logger = logging.getLogger(__name__)

CRITICAL_KEYWORD = "critico"


def _fold(text: str) -> str:
    # "Crítico" / "CRITICO" / "crítico" all fold to "critico"
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def non_conformity_severity(description: Optional[str]) -> AlertSeverity:
    if CRITICAL_KEYWORD in _fold(description or ""):
        return AlertSeverity.critical
    return AlertSeverity.high


def find_open_alert(db: Session, shift_id: UUID, alert_type: AlertType, entity_id: UUID) -> NightAlert | None:
    return db.execute(
        select(NightAlert).where(
            and_(
                NightAlert.shift_id == shift_id,
                NightAlert.type == alert_type,
                NightAlert.related_entity_id == entity_id,
                NightAlert.resolved == False,  # noqa: E712
            )
        )
    ).scalar_one_or_none()


def raise_alert(
    db: Session,
    *,
    shift_id: UUID,
    alert_type: AlertType,
    severity: AlertSeverity,
    title: str,
    description: str,
    entity_type: RelatedEntityType,
    entity_id: UUID,
) -> NightAlert | None:
    """Creates the alert unless an unresolved one already covers it. Returns the new alert or None."""
    if find_open_alert(db, shift_id, alert_type, entity_id):
        return None

    alert = NightAlert(
        shift_id=shift_id,
        type=alert_type,
        severity=severity,
        title=title,
        description=description,
        related_entity_type=entity_type,
        related_entity_id=entity_id,
        resolved=False,
    )
    db.add(alert)
    db.flush()
    logger.info("alert raised: %s (%s) shift=%s entity=%s", alert_type.value, severity.value, shift_id, entity_id)
    return alert


def _mark_resolved(alert: NightAlert, resolved_by: Optional[UUID]) -> None:
    alert.resolved = True
    alert.resolved_by = resolved_by
    alert.resolved_at = dates.now()


def clear_alert(
    db: Session, shift_id: UUID, alert_type: AlertType, entity_id: UUID, resolved_by: Optional[UUID]
) -> NightAlert | None:
    alert = find_open_alert(db, shift_id, alert_type, entity_id)
    if not alert:
        return None
    _mark_resolved(alert, resolved_by)
    db.flush()
    logger.info("alert auto-resolved: %s shift=%s entity=%s", alert_type.value, shift_id, entity_id)
    return alert


def evaluate_call(db: Session, call: NightCall, actor: Optional[UUID] = None) -> None:
    if not call.answered:
        raise_alert(
            db,
            shift_id=call.shift_id,
            alert_type=AlertType.missing_call,
            severity=AlertSeverity.high,
            title=f"Llamada no contestada - {call.worker_name}",
            description=(
                f"El trabajador {call.worker_name} no contestó la llamada {call.call_number} "
                f"programada para las {call.scheduled_time.strftime('%H:%M')}"
            ),
            entity_type=RelatedEntityType.call,
            entity_id=call.call_id,
        )
    else:
        clear_alert(db, call.shift_id, AlertType.missing_call, call.call_id, actor)

    if not call.photo_received:
        raise_alert(
            db,
            shift_id=call.shift_id,
            alert_type=AlertType.missing_photo,
            severity=AlertSeverity.medium,
            title=f"Foto no recibida - {call.worker_name}",
            description=(
                f"No se recibió la foto del trabajador {call.worker_name} para la llamada {call.call_number}"
            ),
            entity_type=RelatedEntityType.call,
            entity_id=call.call_id,
        )
    else:
        clear_alert(db, call.shift_id, AlertType.missing_photo, call.call_id, actor)

    if call.non_conformity:
        raise_alert(
            db,
            shift_id=call.shift_id,
            alert_type=AlertType.non_conformity,
            severity=non_conformity_severity(call.non_conformity_description),
            title=f"No conformidad - {call.worker_name}",
            description=call.non_conformity_description
            or f"No conformidad detectada en la llamada {call.call_number} del trabajador {call.worker_name}",
            entity_type=RelatedEntityType.call,
            entity_id=call.call_id,
        )


def evaluate_camera_review(db: Session, review: CameraReview, actor: Optional[UUID] = None) -> None:
    n = review.review_number
    if not review.screenshot_url:
        raise_alert(
            db,
            shift_id=review.shift_id,
            alert_type=AlertType.missing_camera_review,
            severity=AlertSeverity.high,
            title=f"Revisión de cámaras faltante - Revisión #{n}",
            description=(
                f"No se ha cargado el screenshot de la revisión #{n} "
                f"programada para las {review.scheduled_time.strftime('%H:%M')}"
            ),
            entity_type=RelatedEntityType.camera_review,
            entity_id=review.review_id,
        )
    else:
        clear_alert(db, review.shift_id, AlertType.missing_camera_review, review.review_id, actor)

    if review.non_conformity:
        raise_alert(
            db,
            shift_id=review.shift_id,
            alert_type=AlertType.non_conformity,
            severity=non_conformity_severity(review.non_conformity_description),
            title=f"No conformidad en revisión de cámaras - Revisión #{n}",
            description=review.non_conformity_description or f"No conformidad detectada en la revisión #{n}",
            entity_type=RelatedEntityType.camera_review,
            entity_id=review.review_id,
        )


# ---------- explicit actions ----------
def resolve_alert(db: Session, alert_id: UUID, resolved_by: Optional[UUID]) -> NightAlert:
    """Resolving twice is a no-op: the first resolver and timestamp are kept."""
    alert = db.get(NightAlert, alert_id)
    if not alert:
        raise NotFoundError("Alert not found")
    if alert.resolved:
        return alert

    try:
        _mark_resolved(alert, resolved_by)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(alert)
    logger.info("alert resolved: %s by %s", alert_id, resolved_by)
    return alert


def list_alerts(db: Session, shift_id: UUID, include_resolved: bool = False) -> list[NightAlert]:
    stmt = select(NightAlert).where(NightAlert.shift_id == shift_id)
    if not include_resolved:
        stmt = stmt.where(NightAlert.resolved == False)  # noqa: E712
    rows = db.execute(stmt.order_by(NightAlert.created_at.desc())).scalars().all()
    # stable sort keeps newest-first inside each severity
    return sorted(rows, key=lambda a: SEVERITY_RANK[a.severity])


# ---------- contract alerts (read-time only) ----------
def contract_alerts(
    directory: PersonnelDirectory,
    ctx: RequestContext,
    unit_id: Optional[UUID] = None,
    today: Optional[str] = None,
) -> list[ContractAlertOut]:
    if not ctx.is_operations:
        raise PermissionDeniedError("Contract alerts are restricted to operations roles")

    threshold = settings.contract_alert_threshold_days
    today = today or dates.today_key()

    out: list[ContractAlertOut] = []
    for person in directory.list_trainees(unit_id):
        if not person.in_training or person.contract_generated or not person.training_start_date:
            continue

        elapsed = dates.days_between(person.training_start_date, today)
        if elapsed < threshold:
            continue

        # anchored to the day the threshold was crossed, so it doesn't move day to day
        alert_date = date.fromisoformat(dates.add_days(person.training_start_date, threshold))
        out.append(
            ContractAlertOut(
                personnel_id=person.personnel_id,
                unit_id=person.unit_id,
                worker_name=person.name,
                training_start_date=person.training_start_date,
                alert_date=alert_date,
                days_in_training=elapsed,
                title=f"Contrato pendiente - {person.name}",
                description=(
                    f"{person.name} lleva {elapsed} días en capacitación "
                    f"(desde {person.training_start_date.isoformat()}) sin contrato generado"
                ),
            )
        )
    return out


def mark_contract_generated(directory: PersonnelDirectory, ctx: RequestContext, personnel_id: UUID):
    if not ctx.is_operations:
        raise PermissionDeniedError("Only operations roles can confirm contracts")
    record = directory.mark_contract_generated(personnel_id)
    logger.info("contract generated for %s by %s", personnel_id, ctx.user_id)
    return record
