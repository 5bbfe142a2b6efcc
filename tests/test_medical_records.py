"""
Tests for the append-only clinical record store.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from hospital_api.appointments import service as appointment_service
from hospital_api.exceptions import NotFoundError, ValidationError
from hospital_api.medical_records import service
from hospital_api.reference.models import Diagnosis, Treatment

from .conftest import MONDAY


@pytest.fixture
def appointment(db, schedule, schedule_date, patient, specialty):
    return appointment_service.book_appointment(db, patient.id, specialty.id, MONDAY, schedule_id=schedule.id)


@pytest.fixture
def treatment(db, specialty):
    treatment = Treatment(name="Beta blockers", specialty_id=specialty.id)
    db.add(treatment)
    db.commit()
    db.refresh(treatment)
    return treatment


@pytest.fixture
def diagnosis(db, specialty):
    diagnosis = Diagnosis(name="Hypertension", specialty_id=specialty.id)
    db.add(diagnosis)
    db.commit()
    db.refresh(diagnosis)
    return diagnosis


class TestRecordItems:
    def test_record_exists_after_patient_creation(self, db, patient):
        assert service.get_medical_record(db, patient.id).patient_id == patient.id
        assert service.list_record_items(db, patient.id) == []

    def test_unknown_patient(self, db):
        with pytest.raises(NotFoundError):
            service.get_medical_record(db, 404)

    def test_add_item_with_diagnoses(self, db, patient, doctor, diagnosis):
        item = service.add_record_item(
            db, patient.id, doctor.id, notes="Elevated pressure", diagnosis_ids=[diagnosis.id, diagnosis.id]
        )
        assert [d.name for d in item.diagnoses] == ["Hypertension"]
        assert service.list_record_items(db, patient.id)[0].id == item.id

    def test_unknown_diagnosis_adds_nothing(self, db, patient, doctor):
        with pytest.raises(NotFoundError):
            service.add_record_item(db, patient.id, doctor.id, diagnosis_ids=[404])
        assert service.list_record_items(db, patient.id) == []

    def test_appointment_must_belong_to_patient(self, db, appointment, make_patient, doctor):
        other = make_patient()
        with pytest.raises(ValidationError):
            service.add_record_item(db, other.id, doctor.id, appointment_id=appointment.id)

    def test_completion_listener_appends_item(self, db, appointment, patient):
        appointment_service.complete_appointment(
            db, appointment.id, 65, notes="Partial response",
            listeners=[service.record_appointment_completion]
        )
        items = service.list_record_items(db, patient.id)
        assert len(items) == 1
        assert items[0].appointment_id == appointment.id
        assert items[0].doctor_id == appointment.doctor_id
        assert items[0].effectiveness == 65
        assert items[0].notes == "Partial response"


class TestPrescriptions:
    def test_issue_prescription(self, db, appointment, patient, treatment):
        prescription = service.issue_prescription(
            db, appointment.id, [treatment.id], notes="50mg daily",
            expires_at=datetime.now(timezone.utc) + timedelta(days=30)
        )
        assert prescription.patient_id == patient.id
        assert prescription.doctor_id == appointment.doctor_id
        assert [t.name for t in prescription.treatments] == ["Beta blockers"]

    @pytest.mark.parametrize("finish", ["cancel", "no_show"])
    def test_refused_for_cancelled_or_missed(self, db, appointment, treatment, finish):
        if finish == "cancel":
            appointment_service.cancel_appointment(db, appointment.id)
        else:
            appointment_service.mark_no_show(db, appointment.id)
        with pytest.raises(ValidationError):
            service.issue_prescription(db, appointment.id, [treatment.id])

    def test_expiry_must_follow_issue(self, db, appointment, treatment):
        with pytest.raises(ValidationError):
            service.issue_prescription(
                db, appointment.id, [treatment.id], expires_at=datetime.now(timezone.utc) - timedelta(minutes=1)
            )

    def test_needs_treatment(self, db, appointment):
        with pytest.raises(ValidationError):
            service.issue_prescription(db, appointment.id, [])

    def test_active_only_hides_expired(self, db, appointment, patient, treatment):
        lasting = service.issue_prescription(db, appointment.id, [treatment.id])
        short = service.issue_prescription(
            db, appointment.id, [treatment.id], expires_at=datetime.now(timezone.utc) + timedelta(days=1)
        )
        assert len(service.list_prescriptions(db, patient.id)) == 2

        later = datetime.now(timezone.utc) + timedelta(days=2)
        active = service.list_prescriptions(db, patient.id, active_only=True, now=later)
        assert [p.id for p in active] == [lasting.id]
        assert short.id not in [p.id for p in active]


class TestSessions:
    def test_record_and_list_sessions(self, db, patient, treatment):
        first = service.record_session(db, patient.id, treatment.id, date(2024, 6, 3), effectiveness=40)
        second = service.record_session(db, patient.id, treatment.id, date(2024, 6, 10), observations="Better")
        assert [s.id for s in service.list_sessions(db, patient.id)] == [second.id, first.id]

    @pytest.mark.parametrize("effectiveness", [-5, 120])
    def test_effectiveness_range(self, db, patient, treatment, effectiveness):
        with pytest.raises(ValidationError):
            service.record_session(db, patient.id, treatment.id, date(2024, 6, 3), effectiveness=effectiveness)

    def test_unknown_treatment(self, db, patient):
        with pytest.raises(NotFoundError):
            service.record_session(db, patient.id, 404, date(2024, 6, 3))

    def test_session_linked_to_own_appointment(self, db, appointment, patient, treatment):
        session = service.record_session(db, patient.id, treatment.id, MONDAY, appointment_id=appointment.id)
        assert session.appointment_id == appointment.id

    def test_appointment_of_other_patient_rejected(self, db, appointment, make_patient, treatment):
        other = make_patient()
        with pytest.raises(ValidationError):
            service.record_session(db, other.id, treatment.id, MONDAY, appointment_id=appointment.id)
        assert service.list_sessions(db, other.id) == []


class TestMedicalRecordApi:
    def test_prescription_endpoints(self, client, appointment, patient, treatment):
        response = client.post("/api/v1/medical-records/prescriptions", json={
            "appointment_id": appointment.id,
            "treatment_ids": [treatment.id],
            "notes": "Twice a day"
        })
        assert response.status_code == 201
        assert response.json()["treatments"][0]["id"] == treatment.id

        response = client.get(f"/api/v1/medical-records/patient/{patient.id}/prescriptions")
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_session_with_bad_score_is_422(self, client, patient, treatment):
        response = client.post("/api/v1/medical-records/sessions", json={
            "patient_id": patient.id,
            "treatment_id": treatment.id,
            "session_date": "2024-06-03",
            "effectiveness": 101
        })
        assert response.status_code == 422
