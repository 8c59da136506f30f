from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from nightwatch.core.errors import NotFoundError
from nightwatch.models.personnel import Personnel
from nightwatch.models.unit import Unit

# Matched as lowercase substrings of the free-text shift label
NIGHT_SHIFT_LABELS = ("night", "nocturno", "nocturna", "noche")

TERMINATED_STATUS = "cesado"


@dataclass(frozen=True)
class PersonnelRecord:
    personnel_id: UUID
    unit_id: UUID
    name: str
    phone: Optional[str] = None
    in_training: bool = False
    training_start_date: Optional[date] = None
    contract_generated: bool = False


class PersonnelDirectory(Protocol):
    """What the supervision engine needs from the unit/personnel screens."""

    def unit_name(self, unit_id: UUID) -> str: ...

    def get_person(self, personnel_id: UUID) -> PersonnelRecord: ...

    def list_night_workers(self, unit_id: UUID) -> list[PersonnelRecord]: ...

    def list_trainees(self, unit_id: Optional[UUID] = None) -> list[PersonnelRecord]: ...

    def mark_contract_generated(self, personnel_id: UUID) -> PersonnelRecord: ...


def is_night_shift(label: Optional[str]) -> bool:
    s = (label or "").strip().lower()
    if not s:
        return False
    return any(variant in s for variant in NIGHT_SHIFT_LABELS)


def _to_record(p: Personnel) -> PersonnelRecord:
    return PersonnelRecord(
        personnel_id=p.personnel_id,
        unit_id=p.unit_id,
        name=p.name,
        phone=p.phone,
        in_training=bool(p.in_training),
        training_start_date=p.training_start_date,
        contract_generated=bool(p.contract_generated),
    )


class SqlPersonnelDirectory:
    def __init__(self, db: Session):
        self.db = db

    def unit_name(self, unit_id: UUID) -> str:
        unit = self.db.get(Unit, unit_id)
        if not unit:
            raise NotFoundError("Unit not found")
        return unit.name

    def get_person(self, personnel_id: UUID) -> PersonnelRecord:
        p = self.db.get(Personnel, personnel_id)
        if not p:
            raise NotFoundError("Personnel not found")
        return _to_record(p)

    def _active(self):
        return and_(
            Personnel.archived == False,  # noqa: E712
            Personnel.personnel_status != TERMINATED_STATUS,
        )

    def list_night_workers(self, unit_id: UUID) -> list[PersonnelRecord]:
        rows = (
            self.db.execute(
                select(Personnel)
                .where(and_(Personnel.unit_id == unit_id, self._active()))
                .order_by(Personnel.name.asc())
            )
            .scalars()
            .all()
        )
        return [_to_record(p) for p in rows if is_night_shift(p.assigned_shift)]

    def list_trainees(self, unit_id: Optional[UUID] = None) -> list[PersonnelRecord]:
        stmt = select(Personnel).where(
            and_(
                self._active(),
                Personnel.in_training == True,  # noqa: E712
                Personnel.training_start_date.is_not(None),
                Personnel.contract_generated == False,  # noqa: E712
            )
        )
        if unit_id:
            stmt = stmt.where(Personnel.unit_id == unit_id)
        rows = self.db.execute(stmt.order_by(Personnel.training_start_date.asc())).scalars().all()
        return [_to_record(p) for p in rows]

    def mark_contract_generated(self, personnel_id: UUID) -> PersonnelRecord:
        p = self.db.get(Personnel, personnel_id)
        if not p:
            raise NotFoundError("Personnel not found")

        p.contract_generated = True
        self.db.commit()
        self.db.refresh(p)
        return _to_record(p)
