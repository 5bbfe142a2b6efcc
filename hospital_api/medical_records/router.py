"""
Medical Record Router - API endpoints for the clinical history of a patient.
"""
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from .schemas import (
    MedicalRecordResponse,
    RecordItemCreate,
    RecordItemResponse,
    PrescriptionCreate,
    PrescriptionResponse,
    SessionCreate,
    SessionResponse,
)
from . import service

router = APIRouter()

@router.get("/patient/{patient_id}", response_model=MedicalRecordResponse)
def get_medical_record(patient_id: int, db: Session = Depends(get_db)):
    return service.get_medical_record(db, patient_id)

@router.get("/patient/{patient_id}/items", response_model=List[RecordItemResponse])
def list_record_items(patient_id: int, db: Session = Depends(get_db)):
    return service.list_record_items(db, patient_id)

@router.post("/patient/{patient_id}/items", response_model=RecordItemResponse, status_code=status.HTTP_201_CREATED)
def add_record_item(patient_id: int, data: RecordItemCreate, db: Session = Depends(get_db)):
    return service.add_record_item(
        db,
        patient_id,
        data.doctor_id,
        notes=data.notes,
        diagnosis_ids=data.diagnosis_ids,
        appointment_id=data.appointment_id
    )

@router.post("/prescriptions", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
def issue_prescription(data: PrescriptionCreate, db: Session = Depends(get_db)):
    """
    Issue a prescription at an appointment

    Cancelled and missed appointments are rejected with 422.
    """
    return service.issue_prescription(
        db, data.appointment_id, data.treatment_ids, notes=data.notes, expires_at=data.expires_at
    )

@router.get("/patient/{patient_id}/prescriptions", response_model=List[PrescriptionResponse])
def list_prescriptions(
    patient_id: int,
    active_only: bool = Query(False, description="Hide expired prescriptions"),
    db: Session = Depends(get_db)
):
    return service.list_prescriptions(db, patient_id, active_only=active_only)

@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def record_session(data: SessionCreate, db: Session = Depends(get_db)):
    return service.record_session(
        db,
        data.patient_id,
        data.treatment_id,
        data.session_date,
        effectiveness=data.effectiveness,
        observations=data.observations,
        appointment_id=data.appointment_id
    )

@router.get("/patient/{patient_id}/sessions", response_model=List[SessionResponse])
def list_sessions(patient_id: int, db: Session = Depends(get_db)):
    return service.list_sessions(db, patient_id)
