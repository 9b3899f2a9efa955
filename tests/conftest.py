"""
Shared fixtures for the dental clinic test suite.

Every test runs against a fresh in-memory SQLite database: tables are
created before the test and dropped after it.
"""

from types import SimpleNamespace
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dental_clinic import auth_models, models  # noqa: F401  (register tables)
from dental_clinic.api_main import app, get_current_user
from dental_clinic.auth_models import User
from dental_clinic.db import Base, get_db
from dental_clinic.models import Patient, Personnel, PersonnelType, Room


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # one connection shared by the test and the TestClient thread
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    """Database session bound to the in-memory engine."""
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False, future=True)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    """Test client using the test session; auth is left in place."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def staff_client(client):
    """Test client with an authenticated user on the admin and staff routes."""
    app.dependency_overrides[get_current_user] = lambda: User(id=1, username="frontdesk", is_active=True)
    yield client
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def clinic(db_session):
    """
    Base rows with predictable ids:
    - patient 1
    - personnel 1 (assistant), 2 (dentist), 3 (staff), 4 (dentist)
    - rooms 1, 2, 3
    """
    patient = Patient(name="Nguyen Van An", phone="0901234567")
    assistant = Personnel(name="Linh Pham", type=PersonnelType.ASSISTANT)
    dentist = Personnel(name="Anna Tran", type=PersonnelType.DENTIST)
    staff = Personnel(name="Sara Bianchi", type=PersonnelType.STAFF)
    dentist2 = Personnel(name="Marco Rossi", type=PersonnelType.DENTIST)
    rooms = [Room(name="Room 1"), Room(name="Room 2"), Room(name="X-Ray")]

    db_session.add(patient)
    db_session.add_all([assistant, dentist, staff, dentist2])
    db_session.add_all(rooms)
    db_session.commit()

    return SimpleNamespace(
        patient=patient,
        assistant=assistant,
        dentist=dentist,
        staff=staff,
        dentist2=dentist2,
        rooms=rooms,
    )
