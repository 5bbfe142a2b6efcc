"""
Medical Record Schemas - Pydantic models for record items, prescriptions and sessions.
"""
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, Field

from ..reference.schemas import CatalogueEntryResponse

class MedicalRecordResponse(BaseModel):
    id: int
    patient_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RecordItemCreate(BaseModel):
    """
    Record Item Create Schema
    
    Fields:
    - doctor_id: Doctor writing the entry
    - notes: Clinical notes
    - diagnosis_ids: Diagnoses to attach
    - appointment_id: Appointment the entry belongs to (optional)
    """
    doctor_id: int
    notes: Optional[str] = None
    diagnosis_ids: List[int] = []
    appointment_id: Optional[int] = None

class RecordItemResponse(BaseModel):
    id: int
    medical_record_id: int
    doctor_id: Optional[int] = None
    appointment_id: Optional[int] = None
    entry_date: datetime
    effectiveness: Optional[int] = None
    notes: Optional[str] = None
    diagnoses: List[CatalogueEntryResponse] = []

    class Config:
        from_attributes = True

class PrescriptionCreate(BaseModel):
    """
    Prescription Create Schema
    
    Fields:
    - appointment_id: Appointment the prescription is issued at
    - notes: Dosage and instructions
    - treatment_ids: Prescribed treatments (at least one)
    - expires_at: When the prescription stops being active (optional)
    """
    appointment_id: int
    notes: Optional[str] = None
    treatment_ids: List[int] = Field(..., min_length=1)
    expires_at: Optional[datetime] = None

class PrescriptionResponse(BaseModel):
    id: int
    appointment_id: int
    patient_id: int
    doctor_id: Optional[int] = None
    notes: Optional[str] = None
    issued_at: datetime
    expires_at: Optional[datetime] = None
    treatments: List[CatalogueEntryResponse] = []

    class Config:
        from_attributes = True

class SessionCreate(BaseModel):
    patient_id: int
    treatment_id: int
    session_date: date
    effectiveness: Optional[int] = None
    observations: Optional[str] = None
    appointment_id: Optional[int] = None

class SessionResponse(BaseModel):
    id: int
    patient_id: int
    treatment_id: int
    appointment_id: Optional[int] = None
    session_date: date
    effectiveness: Optional[int] = None
    observations: Optional[str] = None

    class Config:
        from_attributes = True
