"""
Test configuration for the hospital backend.
"""
import itertools
import os
from datetime import date, time

import pytest

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hospital_api.database import Base, get_db
from hospital_api.main import app
from hospital_api.doctors.models import Doctor, DoctorSpecialty, ExperienceLevel
from hospital_api.medical_records.models import MedicalRecord
from hospital_api.patients.models import Patient
from hospital_api.reference.models import Specialty
from hospital_api.schedules.models import WorkDay
from hospital_api.schedules import service as schedule_service
from hospital_api.users.models import User, UserRole

# 2024-06-03 is a Monday
MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)

# Create test database engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_sequence = itertools.count(1)


def new_user(role: UserRole, **overrides) -> User:
    """Build an unsaved user with unique identifiers."""
    n = next(_sequence)
    values = dict(
        document_number=f"DOC{n:05d}",
        email=f"person{n}@example.com",
        first_name="Test",
        last_name=f"Person{n}",
        password_hash="not-a-real-hash",
        role=role,
        is_active=True,
    )
    values.update(overrides)
    return User(**values)


def seed_patient(session, **user_fields) -> Patient:
    patient = Patient(user=new_user(UserRole.PATIENT, **user_fields))
    session.add(patient)
    session.add(MedicalRecord(patient=patient))
    session.commit()
    session.refresh(patient)
    return patient


def seed_doctor(session, specialties=(), **user_fields) -> Doctor:
    doctor = Doctor(user=new_user(UserRole.DOCTOR, **user_fields), license_number=f"LIC{next(_sequence):05d}")
    session.add(doctor)
    for specialty in specialties:
        session.add(DoctorSpecialty(
            doctor=doctor,
            specialty_id=specialty.id,
            certification_date=date(2015, 1, 1),
            experience_level=ExperienceLevel.SENIOR
        ))
    session.commit()
    session.refresh(doctor)
    return doctor


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def specialty(db):
    specialty = Specialty(name="Cardiology", description="Heart and blood vessels")
    db.add(specialty)
    db.commit()
    db.refresh(specialty)
    return specialty


@pytest.fixture
def make_patient(db):
    return lambda **user_fields: seed_patient(db, **user_fields)


@pytest.fixture
def make_doctor(db):
    return lambda specialties=(), **user_fields: seed_doctor(db, specialties, **user_fields)


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def doctor(make_doctor, specialty):
    return make_doctor(specialties=[specialty])


@pytest.fixture
def schedule(db, doctor):
    """Monday 09:00-12:00 with two slots per date."""
    return schedule_service.create_weekly_template(
        db, doctor.id, WorkDay.MONDAY, time(9, 0), time(12, 0), max_appointments=2
    )


@pytest.fixture
def schedule_date(db, schedule):
    return schedule_service.materialize_date(db, schedule.id, MONDAY)
