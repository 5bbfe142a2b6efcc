"""
Patient Router - API endpoints for patient registration and management.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.pagination import PageParams, PageResponse, paginate
from ..database import get_db
from .schemas import (
    PatientCreate,
    PatientUpdate,
    PatientResponse,
    PatientAllergyCreate,
    PatientAllergyResponse,
)
from . import service

router = APIRouter()

@router.post("/", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def register_patient(data: PatientCreate, db: Session = Depends(get_db)):
    """
    Register a patient

    An empty medical record is created with the patient.
    """
    return service.register_patient(db, data)

@router.get("/", response_model=PageResponse[PatientResponse])
def list_patients(
    search: Optional[str] = Query(None, description="Search by name, email or document number"),
    page_params: PageParams = Depends(),
    db: Session = Depends(get_db)
):
    return paginate(service.list_patients(db, search), page_params, PatientResponse)

@router.get("/lookup", response_model=PatientResponse)
def find_patient(identifier: str = Query(..., description="Document number or email"), db: Session = Depends(get_db)):
    return service.find_patient_by_identifier(db, identifier)

@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
    return service.get_patient(db, patient_id)

@router.put("/{patient_id}", response_model=PatientResponse)
def update_patient(patient_id: int, data: PatientUpdate, db: Session = Depends(get_db)):
    return service.update_patient(db, patient_id, data)

@router.get("/with-allergy/{allergy_id}", response_model=List[PatientResponse])
def list_patients_with_allergy(allergy_id: int, db: Session = Depends(get_db)):
    return service.list_patients_with_allergy(db, allergy_id)

@router.post("/{patient_id}/allergies", response_model=PatientAllergyResponse, status_code=status.HTTP_201_CREATED)
def add_patient_allergy(patient_id: int, data: PatientAllergyCreate, db: Session = Depends(get_db)):
    """
    Record an allergy for a patient

    The catalogue severity is used unless a patient-specific one is given.
    """
    return service.add_patient_allergy(db, patient_id, data)

@router.get("/{patient_id}/allergies", response_model=List[PatientAllergyResponse])
def list_patient_allergies(patient_id: int, db: Session = Depends(get_db)):
    return service.list_patient_allergies(db, patient_id)

@router.delete("/{patient_id}/allergies/{allergy_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_patient_allergy(patient_id: int, allergy_id: int, db: Session = Depends(get_db)):
    service.remove_patient_allergy(db, patient_id, allergy_id)
