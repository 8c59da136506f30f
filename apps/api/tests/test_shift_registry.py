import uuid
from datetime import time

import pytest

from nightwatch.core.errors import DuplicateShiftError, NotFoundError, ValidationError
from nightwatch.models.alert import NightAlert
from nightwatch.models.call import NightCall
from nightwatch.models.camera_review import CameraReview
from nightwatch.models.shift import NightShift, ShiftStatus
from nightwatch.services import checkpoint_tracker, shift_registry
from nightwatch.services.checkpoint_scheduler import CALL_TIMES


def test_create_schedules_three_calls_per_night_worker(db, night_unit, make_shift):
    unit, ana, bruno = night_unit
    shift = make_shift(unit)

    assert shift.status == ShiftStatus.en_curso
    assert shift.completion_percentage == 0
    assert shift.shift_start == time(22, 0)
    assert shift.shift_end == time(6, 0)

    calls = checkpoint_tracker.list_calls(db, shift.shift_id)
    assert len(calls) == 6
    assert {c.worker_id for c in calls} == {ana.personnel_id, bruno.personnel_id}
    for worker in (ana, bruno):
        mine = sorted((c for c in calls if c.worker_id == worker.personnel_id), key=lambda c: c.call_number)
        assert [c.call_number for c in mine] == [1, 2, 3]
        assert [c.scheduled_time.strftime("%H:%M") for c in mine] == list(CALL_TIMES)
        assert all(not c.answered and not c.photo_received for c in mine)


def test_workers_on_rest_get_no_calls(db, night_unit, make_shift):
    unit, ana, bruno = night_unit
    shift = make_shift(unit, on_rest_ids=[bruno.personnel_id])

    calls = checkpoint_tracker.list_calls(db, shift.shift_id)
    assert {c.worker_id for c in calls} == {ana.personnel_id}


def test_duplicate_shift_carries_the_existing_id(db, night_unit, make_shift):
    unit, _, _ = night_unit
    first = make_shift(unit, shift_date="2025-03-10")

    with pytest.raises(DuplicateShiftError) as exc:
        make_shift(unit, shift_date="2025-03-10T23:15:00Z")

    assert exc.value.existing_id == first.shift_id
    assert db.query(NightShift).count() == 1
    # the losing attempt must not leave extra calls behind
    assert db.query(NightCall).count() == 6


def test_constraint_stops_a_shift_the_pre_check_missed(db, night_unit, make_shift, miss_once):
    unit, _, _ = night_unit
    winner = make_shift(unit)
    lookups = miss_once(shift_registry, "find_shift")

    with pytest.raises(DuplicateShiftError) as exc:
        make_shift(unit)

    # pre-check missed, the constraint fired, the winner was read back
    assert len(lookups) == 2
    assert exc.value.existing_id == winner.shift_id
    assert db.query(NightShift).count() == 1
    assert db.query(NightCall).count() == 6


def test_other_supervisor_can_open_the_same_night(night_unit, make_shift, operations):
    unit, _, _ = night_unit
    a = make_shift(unit)
    b = make_shift(unit, ctx=operations)
    assert a.shift_id != b.shift_id


def test_list_shifts_filters_and_orders(db, night_unit, make_unit, make_shift, supervisor):
    unit, _, _ = night_unit
    other = make_unit("U2")
    older = make_shift(unit, shift_date="2025-03-08")
    newer = make_shift(unit, shift_date="2025-03-10")
    make_shift(other, shift_date="2025-03-09")

    rows = shift_registry.list_shifts(db, unit_id=unit.unit_id)
    assert [s.shift_id for s in rows] == [newer.shift_id, older.shift_id]

    rows = shift_registry.list_shifts(db, date_from="2025-03-09", date_to="2025-03-09")
    assert [s.unit_id for s in rows] == [other.unit_id]

    rows = shift_registry.list_shifts(db, supervisor_id=supervisor.user_id, status="en_curso")
    assert len(rows) == 3

    with pytest.raises(ValidationError):
        shift_registry.list_shifts(db, status="abierto")


def test_get_unknown_shift_is_not_found(db):
    with pytest.raises(NotFoundError):
        shift_registry.get_shift(db, uuid.uuid4())


def test_update_only_touches_editable_fields(db, night_unit, make_shift, supervisor):
    unit, _, _ = night_unit
    shift = make_shift(unit)

    updated = shift_registry.update_shift(
        db, shift.shift_id, {"notes": "Lluvia fuerte", "shift_end": time(7, 0)}, updated_by=supervisor.user_id
    )
    assert updated.notes == "Lluvia fuerte"
    assert updated.shift_end == time(7, 0)
    assert updated.updated_by == supervisor.user_id

    with pytest.raises(ValidationError):
        shift_registry.update_shift(db, shift.shift_id, {"status": "completada"})


def test_cancel_is_sticky(db, night_unit, make_shift, supervisor):
    unit, _, _ = night_unit
    shift = make_shift(unit)

    cancelled = shift_registry.cancel_shift(db, shift.shift_id, updated_by=supervisor.user_id)
    assert cancelled.status == ShiftStatus.cancelada

    call = checkpoint_tracker.list_calls(db, shift.shift_id)[0]
    checkpoint_tracker.update_call(db, call.call_id, {"answered": True}, updated_by=supervisor.user_id)
    assert shift_registry.get_shift(db, shift.shift_id).status == ShiftStatus.cancelada


def test_delete_takes_every_child_row_with_it(db, night_unit, make_shift, supervisor):
    unit, _, _ = night_unit
    shift = make_shift(unit)
    call = checkpoint_tracker.list_calls(db, shift.shift_id)[0]
    checkpoint_tracker.update_call(db, call.call_id, {"answered": False}, updated_by=supervisor.user_id)
    checkpoint_tracker.upsert_camera_review(db, shift.shift_id, 1, {"cameras_reviewed": ["Cam 1"]})

    shift_registry.delete_shift(db, shift.shift_id)

    assert db.query(NightShift).count() == 0
    assert db.query(NightCall).count() == 0
    assert db.query(CameraReview).count() == 0
    assert db.query(NightAlert).count() == 0
