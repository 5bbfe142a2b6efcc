"""
Appointment Schemas - Pydantic models for booking, transitions and responses.
"""
from typing import Optional, Dict
from datetime import date, datetime
from pydantic import BaseModel, Field

from .models import AppointmentStatus

class AppointmentCreate(BaseModel):
    """
    Booking Schema
    
    Fields:
    - patient_id: The patient booking the visit
    - schedule_id: Book on this schedule; or
    - doctor_id: Book on the first schedule of this doctor with a free slot
    - date: Date of the visit
    - specialty_id: Specialty the visit is for
    - reason: Reason for the visit (optional)
    """
    patient_id: int
    schedule_id: Optional[int] = None
    doctor_id: Optional[int] = None
    date: date
    specialty_id: int
    reason: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "patient_id": 1,
                "schedule_id": 5,
                "date": "2025-06-02",
                "specialty_id": 2,
                "reason": "Follow-up"
            }
        }

class AppointmentCancel(BaseModel):
    reason: Optional[str] = None

class AppointmentComplete(BaseModel):
    """Completion Schema - effectiveness is checked against 0..100 by the service"""
    effectiveness: int
    notes: Optional[str] = None

class AppointmentResponse(BaseModel):
    """
    Appointment Response Schema - Used when returning appointment data
    """
    id: int
    patient_id: int
    doctor_id: int
    schedule_id: int
    schedule_date_id: int
    appointment_date: date
    specialty_id: int
    slot_number: Optional[int] = None
    status: AppointmentStatus
    effectiveness: Optional[int] = None
    reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class AppointmentCompleted(BaseModel):
    """
    Event passed to completion listeners when an appointment is completed
    """
    appointment_id: int
    patient_id: int
    doctor_id: int
    effectiveness: int = Field(..., ge=0, le=100)
    timestamp: datetime
    notes: Optional[str] = None

class AppointmentStatistics(BaseModel):
    start_date: date
    end_date: date
    counts: Dict[AppointmentStatus, int]
    total: int
