import uuid
from datetime import date

import pytest

from nightwatch.core.errors import NotFoundError, PermissionDeniedError
from nightwatch.core.security import RequestContext
from nightwatch.models.alert import AlertSeverity, AlertType
from nightwatch.services import alert_engine, checkpoint_tracker
from nightwatch.services.personnel_directory import SqlPersonnelDirectory


@pytest.mark.parametrize(
    "description, expected",
    [
        ("Evento crítico en garita", AlertSeverity.critical),
        ("CRITICO: intrusión", AlertSeverity.critical),
        ("Crítico", AlertSeverity.critical),
        ("Observación menor", AlertSeverity.high),
        (None, AlertSeverity.high),
    ],
)
def test_non_conformity_severity(description, expected):
    assert alert_engine.non_conformity_severity(description) == expected


def test_resolve_is_idempotent(db, night_unit, make_shift, supervisor, operations):
    unit, _, _ = night_unit
    shift = make_shift(unit)
    call = checkpoint_tracker.list_calls(db, shift.shift_id)[0]
    checkpoint_tracker.update_call(db, call.call_id, {"non_conformity": True})
    alert = next(a for a in alert_engine.list_alerts(db, shift.shift_id) if a.type == AlertType.non_conformity)

    first = alert_engine.resolve_alert(db, alert.alert_id, supervisor.user_id)
    resolved_at = first.resolved_at
    again = alert_engine.resolve_alert(db, alert.alert_id, operations.user_id)

    assert again.resolved
    assert again.resolved_by == supervisor.user_id
    assert again.resolved_at == resolved_at
    assert alert.alert_id not in {a.alert_id for a in alert_engine.list_alerts(db, shift.shift_id)}
    assert alert.alert_id in {a.alert_id for a in alert_engine.list_alerts(db, shift.shift_id, include_resolved=True)}


def test_resolve_unknown_alert(db, supervisor):
    with pytest.raises(NotFoundError):
        alert_engine.resolve_alert(db, uuid.uuid4(), supervisor.user_id)


def test_alerts_listed_by_severity(db, night_unit, make_shift):
    unit, _, _ = night_unit
    shift = make_shift(unit)
    call = checkpoint_tracker.list_calls(db, shift.shift_id)[0]
    checkpoint_tracker.update_call(
        db, call.call_id, {"non_conformity": True, "non_conformity_description": "robo crítico"}
    )

    ranks = [a.severity for a in alert_engine.list_alerts(db, shift.shift_id)]
    assert ranks == [AlertSeverity.critical, AlertSeverity.high, AlertSeverity.medium]


# ---------- contract alerts ----------
@pytest.fixture()
def trainees(make_unit, make_person):
    unit = make_unit("U1")
    overdue = make_person(unit, "Elena Soto", in_training=True, training_start_date=date(2025, 1, 1))
    recent = make_person(unit, "Fabio Rojas", in_training=True, training_start_date=date(2025, 1, 3))
    make_person(
        unit, "Gina Luna", in_training=True, training_start_date=date(2024, 12, 1), contract_generated=True
    )
    make_person(unit, "Hugo Paz", in_training=True, training_start_date=date(2024, 12, 1), personnel_status="cesado")
    return unit, overdue, recent


def test_contract_alert_anchors_to_the_threshold_day(db, trainees, operations):
    unit, overdue, _ = trainees
    alerts = alert_engine.contract_alerts(SqlPersonnelDirectory(db), operations, today="2025-01-05")

    assert [a.personnel_id for a in alerts] == [overdue.personnel_id]
    alert = alerts[0]
    assert alert.type == "contract_alert"
    assert alert.days_in_training == 4
    assert alert.alert_date == date(2025, 1, 4)
    assert alert.unit_id == unit.unit_id


def test_contract_alert_date_does_not_move(db, trainees, operations):
    directory = SqlPersonnelDirectory(db)
    later = alert_engine.contract_alerts(directory, operations, today="2025-01-20")

    assert {a.alert_date for a in later} == {date(2025, 1, 4), date(2025, 1, 6)}


def test_contract_alerts_need_an_operations_role(db, trainees, supervisor):
    with pytest.raises(PermissionDeniedError):
        alert_engine.contract_alerts(SqlPersonnelDirectory(db), supervisor)


def test_role_match_ignores_case(db, trainees):
    ctx = RequestContext(user_id=uuid.uuid4(), name="Admin", role="ADMIN")
    assert alert_engine.contract_alerts(SqlPersonnelDirectory(db), ctx, today="2025-01-05")


def test_generating_the_contract_clears_the_alert(db, trainees, operations, supervisor):
    _, overdue, _ = trainees
    directory = SqlPersonnelDirectory(db)

    with pytest.raises(PermissionDeniedError):
        alert_engine.mark_contract_generated(directory, supervisor, overdue.personnel_id)

    record = alert_engine.mark_contract_generated(directory, operations, overdue.personnel_id)
    assert record.contract_generated

    assert alert_engine.contract_alerts(directory, operations, today="2025-01-05") == []
