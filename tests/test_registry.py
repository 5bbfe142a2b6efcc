"""
Tests for patient and doctor registration and lookup.
"""
from datetime import date

import pytest

from hospital_api.core.security import verify_password
from hospital_api.doctors import service as doctor_service
from hospital_api.doctors.models import Doctor, DoctorSpecialty, ExperienceLevel
from hospital_api.doctors.schemas import DoctorCreate, SpecialtyLink
from hospital_api.exceptions import ConflictError, NotFoundError, ValidationError
from hospital_api.medical_records.models import MedicalRecord
from hospital_api.patients import service as patient_service
from hospital_api.patients.models import Gender
from hospital_api.patients.schemas import PatientCreate, PatientUpdate
from hospital_api.reference.models import Country, City
from hospital_api.users import service as user_service
from hospital_api.users.models import User, UserRole


def patient_data(**overrides):
    values = dict(
        document_number="12345678",
        email="juan.perez@example.com",
        first_name="Juan",
        last_name="Perez",
        phone="555-1234",
        password="Password123!",
        birth_date=date(1990, 4, 12),
        gender=Gender.MALE,
    )
    values.update(overrides)
    return PatientCreate(**values)


def doctor_data(specialty_ids=(), **overrides):
    values = dict(
        document_number="1020304050",
        email="ana.torres@example.com",
        first_name="Ana",
        last_name="Torres",
        password="Password123!",
        license_number="LIC12345",
        specialties=[SpecialtyLink(specialty_id=s, experience_level=ExperienceLevel.SENIOR) for s in specialty_ids],
    )
    values.update(overrides)
    return DoctorCreate(**values)


class TestPatientRegistration:
    def test_register_creates_empty_medical_record(self, db):
        patient = patient_service.register_patient(db, patient_data())
        assert patient.user.role == UserRole.PATIENT
        assert patient.user.full_name == "Juan Perez"
        assert verify_password("Password123!", patient.user.password_hash)
        record = db.query(MedicalRecord).filter(MedicalRecord.patient_id == patient.id).one()
        assert record.id is not None

    def test_register_with_address(self, db):
        country = Country(name="Colombia", iso_code="COL")
        db.add(country)
        db.commit()
        city = City(name="Bogota", country_id=country.id)
        db.add(city)
        db.commit()

        patient = patient_service.register_patient(db, patient_data(address={
            "street": "Calle 10 # 5-20", "postal_code": "110111", "city_id": city.id
        }))
        assert patient.user.address.city_id == city.id

    @pytest.mark.parametrize("clash", [
        {"document_number": "12345678", "email": "other@example.com"},
        {"document_number": "777", "email": "JUAN.PEREZ@example.com"},
    ])
    def test_duplicate_identity_rejected(self, db, clash):
        patient_service.register_patient(db, patient_data())
        with pytest.raises(ConflictError):
            patient_service.register_patient(db, patient_data(**clash))
        assert db.query(User).count() == 1
        assert db.query(MedicalRecord).count() == 1

    def test_find_by_identifier(self, db):
        patient = patient_service.register_patient(db, patient_data())
        assert patient_service.find_patient_by_identifier(db, "12345678").id == patient.id
        assert patient_service.find_patient_by_identifier(db, "Juan.Perez@Example.com").id == patient.id
        with pytest.raises(NotFoundError):
            patient_service.find_patient_by_identifier(db, "nobody@example.com")

    def test_update_patient(self, db):
        patient = patient_service.register_patient(db, patient_data())
        updated = patient_service.update_patient(db, patient.id, PatientUpdate(phone="555-9999", gender=Gender.OTHER))
        assert updated.user.phone == "555-9999"
        assert updated.gender == Gender.OTHER
        assert updated.birth_date == date(1990, 4, 12)

    def test_list_patients_search(self, db, make_patient):
        make_patient(first_name="Maria", last_name="Gomez")
        make_patient(first_name="Pedro", last_name="Ruiz")
        found = patient_service.list_patients(db, "gom").all()
        assert [p.user.first_name for p in found] == ["Maria"]
        assert patient_service.list_patients(db).count() == 2


class TestDoctorRegistration:
    def test_register_doctor_with_specialties(self, db, specialty):
        doctor = doctor_service.register_doctor(db, doctor_data([specialty.id]))
        assert doctor.user.role == UserRole.DOCTOR
        links = doctor_service.list_doctor_specialties(db, doctor.id)
        assert [link.specialty_id for link in links] == [specialty.id]
        assert links[0].experience_level == ExperienceLevel.SENIOR
        assert doctor_service.doctor_has_specialty(db, doctor.id, specialty.id)

    def test_duplicate_license_rejected(self, db, specialty):
        doctor_service.register_doctor(db, doctor_data([specialty.id]))
        with pytest.raises(ConflictError):
            doctor_service.register_doctor(db, doctor_data(
                [specialty.id], document_number="555", email="other@example.com"
            ))
        assert db.query(Doctor).count() == 1

    def test_unknown_specialty_persists_nothing(self, db):
        with pytest.raises(NotFoundError):
            doctor_service.register_doctor(db, doctor_data([404]))
        assert db.query(Doctor).count() == 0
        assert db.query(User).count() == 0
        assert db.query(DoctorSpecialty).count() == 0

    def test_repeated_specialty_rejected(self, db, specialty):
        with pytest.raises(ValidationError):
            doctor_service.register_doctor(db, doctor_data([specialty.id, specialty.id]))
        assert db.query(Doctor).count() == 0

    def test_find_by_license(self, db, specialty):
        doctor = doctor_service.register_doctor(db, doctor_data([specialty.id]))
        assert doctor_service.find_doctor_by_license(db, "LIC12345").id == doctor.id
        with pytest.raises(NotFoundError):
            doctor_service.find_doctor_by_license(db, "LIC00000")

    def test_search_doctors(self, db, make_doctor, specialty):
        cardiologist = make_doctor(specialties=[specialty], last_name="Heart")
        make_doctor(last_name="Skin")
        inactive = make_doctor(specialties=[specialty], last_name="Retired", is_active=False)

        assert [d.id for d in doctor_service.search_doctors(db, specialty_id=specialty.id)] == [cardiologist.id]
        assert [d.id for d in doctor_service.search_doctors(db, name="heart")] == [cardiologist.id]
        everyone = doctor_service.search_doctors(db, active_only=False).all()
        assert inactive.id in [d.id for d in everyone]


class TestUsers:
    def test_list_users_filters(self, db, make_patient, make_doctor):
        make_patient(first_name="Laura")
        make_doctor(first_name="Carlos")
        assert [u.first_name for u in user_service.list_users(db, role=UserRole.DOCTOR)] == ["Carlos"]
        assert [u.first_name for u in user_service.list_users(db, name="laur")] == ["Laura"]

    def test_update_user_status(self, db, patient):
        user = user_service.update_user_status(db, patient.user_id, False)
        assert user.is_active is False
        assert user_service.list_users(db, is_active=False)[0].id == user.id

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            user_service.get_user(db, 404)


class TestRegistryApi:
    def test_register_patient(self, client):
        payload = patient_data().model_dump(mode="json")
        response = client.post("/api/v1/patients/", json=payload)
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "juan.perez@example.com"
        assert "password_hash" not in data["user"]

        assert client.post("/api/v1/patients/", json=payload).status_code == 409

        response = client.get("/api/v1/patients/lookup", params={"identifier": "12345678"})
        assert response.status_code == 200
        assert response.json()["id"] == data["id"]

    def test_weak_password_is_422(self, client):
        payload = patient_data().model_dump(mode="json")
        payload["password"] = "short"
        assert client.post("/api/v1/patients/", json=payload).status_code == 422

    def test_register_doctor_twice(self, client, specialty):
        payload = doctor_data([specialty.id]).model_dump(mode="json")
        assert client.post("/api/v1/doctors/", json=payload).status_code == 201
        payload.update(document_number="555", email="other@example.com")
        assert client.post("/api/v1/doctors/", json=payload).status_code == 409

    def test_list_doctors_paginated(self, client, make_doctor, specialty):
        for _ in range(3):
            make_doctor(specialties=[specialty])
        response = client.get("/api/v1/doctors/", params={"page": 1, "size": 2})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert len(data["items"]) == 2
        assert data["has_next"] is True
