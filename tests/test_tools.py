"""
Tests for the base seed, the demo data helpers and the reference check tool.
"""

from contextlib import contextmanager
from datetime import date, datetime, timedelta

from sqlalchemy import func, select

from dental_clinic import demo_data, seed
from dental_clinic.models import Category, DentalSession, Personnel, Room, SessionStatus, SessionType, Tooth
from dental_clinic.tools.check_session_refs import run_checks


def test_seed_is_idempotent(db_session, monkeypatch):
    @contextmanager
    def test_session():
        yield db_session
        db_session.commit()

    monkeypatch.setattr(seed, "db_session", test_session)

    seed.seed_base()
    seed.seed_base()

    assert db_session.scalar(select(func.count()).select_from(Room)) == len(seed.ROOMS)
    assert db_session.scalar(select(func.count()).select_from(Personnel)) == len(seed.PERSONNEL)
    assert db_session.scalar(select(func.count()).select_from(Category)) == len(seed.CATEGORIES)
    assert db_session.scalar(select(func.count()).select_from(Tooth)) == 32


def test_demo_slots_cover_opening_hours():
    slots = demo_data._slots_for_day(date(2024, 1, 1))
    assert len(slots) == 16
    assert slots[0] == datetime(2024, 1, 1, 8, 0)
    assert slots[-1] == datetime(2024, 1, 1, 17, 0)


def test_demo_status_today_is_scheduled():
    assert demo_data._status_for(date.today()) == SessionStatus.SCHEDULED
    assert demo_data._status_for(date.today() - timedelta(days=3)) in {SessionStatus.DONE, SessionStatus.CANCELLED}


def test_reference_checks(db_engine, db_session, clinic):
    db_session.add(
        DentalSession(
            patient_id=clinic.patient.id,
            dentist_id=clinic.dentist.id,
            room_id=clinic.rooms[0].id,
            time=datetime(2024, 1, 1, 9, 0),
            type=SessionType.EXAMINATION,
        )
    )
    # dangling room reference (SQLite does not enforce foreign keys here)
    db_session.add(
        DentalSession(
            patient_id=clinic.patient.id,
            dentist_id=clinic.staff.id,
            room_id=999,
            time=datetime(2024, 1, 1, 10, 0),
            type=SessionType.EXAMINATION,
        )
    )
    db_session.commit()

    with db_engine.connect() as conn:
        results = run_checks(conn)

    # any personnel row may run a session, so the staff dentist is not flagged
    assert results == {
        "missing patient": 0,
        "missing dentist": 0,
        "missing assistant": 0,
        "missing room": 1,
    }
