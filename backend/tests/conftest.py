# tests/conftest.py
# Each test gets a fresh in-memory SQLite database, a frozen clock and a
# stub PDF renderer, wired into the app through dependency overrides.

from datetime import date, datetime
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import parish_office.models  # noqa: F401
from parish_office.api.deps import get_clock, get_renderer
from parish_office.db import Base, get_db
from parish_office.main import app
from parish_office.models.sacrament_record import SacramentRecord, SacramentType
from parish_office.schemas.service_request import ServiceRequestCreate
from parish_office.services import requests as request_svc
from parish_office.services.clock import FixedClock

FAKE_PDF = b"%PDF-1.4\n% stub certificate\n%%EOF"


class StubRenderer:
    """Stands in for Chromium; remembers the HTML it was given."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[str] = []

    def __call__(self, html: str) -> bytes:
        self.calls.append(html)
        if self.fail:
            raise RuntimeError("chromium crashed")
        return FAKE_PDF


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock():
    return FixedClock(datetime(2025, 1, 15, 9, 0))


@pytest.fixture()
def renderer():
    return StubRenderer()


@pytest.fixture()
def client(session_factory, clock, renderer):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_renderer] = lambda: renderer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────

def make_record(db, type=SacramentType.BAPTISM, name="Juan Dela Cruz", date_=date(1995, 6, 4), **fields):
    record = SacramentRecord(
        type=type,
        name=name,
        date=date_,
        officiant=fields.pop("officiant", "Rev. Fr. Jose Reyes"),
        details=fields.pop("details", "Parish register entry"),
        is_archived=fields.pop("is_archived", False),
        **fields,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def submit(db, clock, **fields):
    payload = {
        "requester_name": "Maria Dela Cruz",
        "contact_info": "09171234567",
        "details": "Needed for school enrollment",
    }
    payload.update(fields)
    return request_svc.submit_request(db, ServiceRequestCreate(**payload), clock=clock)


def baptism_certificate(**fields):
    payload = {
        "category": "CERTIFICATE",
        "service_type": "Baptismal Certificate",
        "certificate_recipient_name": "Juan Dela Cruz",
        "certificate_recipient_birth_date": date(1995, 5, 1),
    }
    payload.update(fields)
    return payload
