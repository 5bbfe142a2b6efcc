"""
Tests for the allergy catalogue and the allergies recorded for patients.
"""
from datetime import date

import pytest

from hospital_api.exceptions import ConflictError, NotFoundError
from hospital_api.patients import service as patient_service
from hospital_api.patients.schemas import PatientAllergyCreate
from hospital_api.reference import service
from hospital_api.reference.models import AllergySeverity
from hospital_api.reference.schemas import AllergyCreate


@pytest.fixture
def penicillin(db):
    return service.create_allergy(db, AllergyCreate(
        name="Penicillin", severity=AllergySeverity.SEVERE, notes="Beta-lactam antibiotics"
    ))


class TestAllergyCatalogue:
    def test_names_are_unique_ignoring_case(self, db, penicillin):
        with pytest.raises(ConflictError):
            service.create_allergy(db, AllergyCreate(name="PENICILLIN", severity=AllergySeverity.MILD))

    def test_filter_by_severity_and_text(self, db, penicillin):
        service.create_allergy(db, AllergyCreate(name="Pollen", severity=AllergySeverity.MILD, notes="Seasonal"))
        service.create_allergy(db, AllergyCreate(name="Peanut", severity=AllergySeverity.LIFE_THREATENING))

        assert [a.name for a in service.list_allergies(db, severity=AllergySeverity.MILD)] == ["Pollen"]
        assert [a.name for a in service.list_allergies(db, search="lactam")] == ["Penicillin"]
        assert [a.name for a in service.list_allergies(db, search="pe")] == ["Peanut", "Penicillin"]
        assert len(service.list_allergies(db)) == 3

    def test_update_allergy(self, db, penicillin):
        updated = service.update_allergy(db, penicillin.id, AllergyCreate(
            name="Penicillin", severity=AllergySeverity.LIFE_THREATENING
        ))
        assert updated.severity == AllergySeverity.LIFE_THREATENING
        assert updated.notes is None

        other = service.create_allergy(db, AllergyCreate(name="Latex", severity=AllergySeverity.MODERATE))
        with pytest.raises(ConflictError):
            service.update_allergy(db, other.id, AllergyCreate(name="penicillin", severity=AllergySeverity.MILD))

    def test_unknown_allergy(self, db):
        with pytest.raises(NotFoundError):
            service.get_allergy(db, 404)


class TestPatientAllergies:
    def test_catalogue_severity_is_the_default(self, db, patient, penicillin):
        link = patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(allergy_id=penicillin.id))
        assert link.severity == AllergySeverity.SEVERE
        assert link.allergy.name == "Penicillin"

    def test_patient_specific_severity(self, db, patient, penicillin):
        link = patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(
            allergy_id=penicillin.id,
            severity=AllergySeverity.MILD,
            diagnosed_on=date(2019, 5, 2)
        ))
        assert link.severity == AllergySeverity.MILD
        assert link.diagnosed_on == date(2019, 5, 2)

    def test_allergy_recorded_once_per_patient(self, db, patient, penicillin):
        patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(allergy_id=penicillin.id))
        with pytest.raises(ConflictError):
            patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(allergy_id=penicillin.id))
        assert len(patient_service.list_patient_allergies(db, patient.id)) == 1

    def test_unknown_patient_or_allergy(self, db, patient, penicillin):
        with pytest.raises(NotFoundError):
            patient_service.add_patient_allergy(db, 404, PatientAllergyCreate(allergy_id=penicillin.id))
        with pytest.raises(NotFoundError):
            patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(allergy_id=404))

    def test_patients_with_allergy(self, db, make_patient, penicillin):
        first, second, _ = make_patient(), make_patient(), make_patient()
        for patient in (second, first):
            patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(allergy_id=penicillin.id))
        assert [p.id for p in patient_service.list_patients_with_allergy(db, penicillin.id)] == [first.id, second.id]

    def test_remove_allergy(self, db, patient, penicillin):
        patient_service.add_patient_allergy(db, patient.id, PatientAllergyCreate(allergy_id=penicillin.id))
        patient_service.remove_patient_allergy(db, patient.id, penicillin.id)
        assert patient_service.list_patient_allergies(db, patient.id) == []
        with pytest.raises(NotFoundError):
            patient_service.remove_patient_allergy(db, patient.id, penicillin.id)


class TestAllergyApi:
    def test_catalogue_and_patient_endpoints(self, client, patient):
        response = client.post("/api/v1/allergies", json={"name": "Peanut", "severity": "LIFE_THREATENING"})
        assert response.status_code == 201
        allergy_id = response.json()["id"]

        response = client.get("/api/v1/allergies", params={"severity": "LIFE_THREATENING"})
        assert [a["name"] for a in response.json()] == ["Peanut"]

        response = client.post(f"/api/v1/patients/{patient.id}/allergies", json={
            "allergy_id": allergy_id, "notes": "Carries an auto-injector"
        })
        assert response.status_code == 201
        assert response.json()["severity"] == "LIFE_THREATENING"
        assert response.json()["allergy"]["name"] == "Peanut"

        response = client.post(f"/api/v1/patients/{patient.id}/allergies", json={"allergy_id": allergy_id})
        assert response.status_code == 409

        response = client.get(f"/api/v1/patients/with-allergy/{allergy_id}")
        assert [p["id"] for p in response.json()] == [patient.id]

        response = client.delete(f"/api/v1/patients/{patient.id}/allergies/{allergy_id}")
        assert response.status_code == 204
        assert client.get(f"/api/v1/patients/{patient.id}/allergies").json() == []

    def test_unknown_severity_is_422(self, client):
        response = client.post("/api/v1/allergies", json={"name": "Dust", "severity": "EXTREME"})
        assert response.status_code == 422
