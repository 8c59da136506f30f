import os

# Settings() needs a URL at import time; tests swap the engine below.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nightwatch.core import dates
from nightwatch.core.config import settings
from nightwatch.core.database import Base, get_db
from nightwatch.core.security import ALGORITHM, RequestContext
from nightwatch.main import app
from nightwatch.models.personnel import Personnel
from nightwatch.models.unit import Unit
from nightwatch.services import shift_registry
from nightwatch.services.personnel_directory import SqlPersonnelDirectory

TODAY = "2025-03-10"


@pytest.fixture()
def engine():
    """Single in-memory database shared by every session of the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def fixed_today(monkeypatch):
    monkeypatch.setattr(dates, "today_key", lambda tz=None: TODAY)
    return TODAY


@pytest.fixture()
def supervisor():
    return RequestContext(user_id=uuid.uuid4(), name="Rosa Quispe", role="supervisor")


@pytest.fixture()
def operations():
    return RequestContext(user_id=uuid.uuid4(), name="Luis Paredes", role="operations")


@pytest.fixture()
def make_unit(db):
    def _make(name="U1", archived=False):
        unit = Unit(name=name, archived=archived)
        db.add(unit)
        db.commit()
        db.refresh(unit)
        return unit

    return _make


@pytest.fixture()
def make_person(db):
    def _make(unit, name, assigned_shift="Noche", **fields):
        person = Personnel(unit_id=unit.unit_id, name=name, assigned_shift=assigned_shift, **fields)
        db.add(person)
        db.commit()
        db.refresh(person)
        return person

    return _make


@pytest.fixture()
def make_shift(db, supervisor):
    """Creates a shift the way POST /shifts does, scheduling the unit's night workers."""

    def _make(unit, shift_date=TODAY, ctx=None, on_rest_ids=()):
        ctx = ctx or supervisor
        directory = SqlPersonnelDirectory(db)
        return shift_registry.create_shift(
            db,
            shift_date=shift_date,
            unit_id=unit.unit_id,
            unit_name=unit.name,
            supervisor_id=ctx.user_id,
            supervisor_name=ctx.name,
            created_by=ctx.user_id,
            workers=directory.list_night_workers(unit.unit_id),
            on_rest_ids=on_rest_ids,
        )

    return _make


@pytest.fixture()
def miss_once(monkeypatch):
    """
    Makes a lookup return None on its first call only, the way a concurrent
    writer that has not committed yet looks to the pre-check. The unique
    constraint is then the only thing that can stop the duplicate.
    """

    def _patch(module, name):
        real = getattr(module, name)
        seen = []

        def lookup(*args, **kwargs):
            seen.append(args)
            if len(seen) == 1:
                return None
            return real(*args, **kwargs)

        monkeypatch.setattr(module, name, lookup)
        return seen

    return _patch


def token_for(ctx: RequestContext) -> str:
    return jwt.encode(
        {"sub": str(ctx.user_id), "name": ctx.name, "role": ctx.role},
        settings.jwt_secret_key,
        algorithm=ALGORITHM,
    )


@pytest.fixture()
def auth(supervisor):
    def _headers(ctx=None):
        return {"Authorization": f"Bearer {token_for(ctx or supervisor)}"}

    return _headers


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def night_unit(make_unit, make_person):
    """Unit U1 with two night workers (and a day worker that must be ignored)."""
    unit = make_unit("U1")
    ana = make_person(unit, "Ana Torres", phone="999111222")
    bruno = make_person(unit, "Bruno Díaz", assigned_shift="Turno nocturno")
    make_person(unit, "Carla Ruiz", assigned_shift="Día")
    return unit, ana, bruno
