"""
Appointment Router - API endpoints for booking and appointment status changes.
"""
from typing import List, Optional
from datetime import date
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import AppException
from ..medical_records.service import record_appointment_completion
from ..notifications.service import (
    notify_appointment_booked,
    notify_appointment_cancelled,
    notify_appointment_completed,
)
from .models import AppointmentStatus
from .schemas import (
    AppointmentCreate,
    AppointmentCancel,
    AppointmentComplete,
    AppointmentResponse,
    AppointmentStatistics,
)
from . import service

router = APIRouter()

# Set up logging
logger = logging.getLogger(__name__)

# Run inside the completion transaction
COMPLETION_LISTENERS = (record_appointment_completion, notify_appointment_completed)

def _notify(hook, db: Session, appointment) -> None:
    """
    Run a notification hook after the appointment change has committed.

    The appointment change stands even if the hook fails, so the failure
    is logged and the hook's partial writes are rolled back.
    """
    appointment_id = appointment.id
    try:
        hook(db, appointment)
    except (AppException, SQLAlchemyError) as e:
        db.rollback()
        logger.error(f"Notification hook {hook.__name__} failed for appointment {appointment_id}: {str(e)}")

@router.post("/", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(data: AppointmentCreate, db: Session = Depends(get_db)):
    """
    Book an appointment on a schedule or with a doctor

    Returns 409 when no slot remains on the date.
    """
    appointment = service.book_appointment(
        db,
        patient_id=data.patient_id,
        specialty_id=data.specialty_id,
        on_date=data.date,
        schedule_id=data.schedule_id,
        doctor_id=data.doctor_id,
        reason=data.reason
    )
    _notify(notify_appointment_booked, db, appointment)
    return appointment

@router.get("/", response_model=List[AppointmentResponse])
def query_appointments(
    on_date: date = Query(..., alias="date"),
    doctor_id: Optional[int] = Query(None),
    specialty_id: Optional[int] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    db: Session = Depends(get_db)
):
    return service.query_by_date_and_filters(
        db, on_date, doctor_id=doctor_id, specialty_id=specialty_id, status=status
    )

@router.get("/statistics", response_model=AppointmentStatistics)
def appointment_statistics(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db)
):
    counts = service.count_appointments_by_status(db, start_date, end_date)
    return AppointmentStatistics(
        start_date=start_date,
        end_date=end_date,
        counts=counts,
        total=sum(counts.values())
    )

@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
def list_patient_appointments(
    patient_id: int,
    status: Optional[AppointmentStatus] = Query(None),
    db: Session = Depends(get_db)
):
    return service.list_patient_appointments(db, patient_id, status=status)

@router.get("/patient/{patient_id}/upcoming", response_model=List[AppointmentResponse])
def list_upcoming_appointments(patient_id: int, db: Session = Depends(get_db)):
    return service.list_upcoming_for_patient(db, patient_id)

@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return service.get_appointment(db, appointment_id)

@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return service.confirm_appointment(db, appointment_id)

@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, data: AppointmentCancel, db: Session = Depends(get_db)):
    """Cancel an appointment and release its slot"""
    appointment = service.cancel_appointment(db, appointment_id, reason=data.reason)
    _notify(notify_appointment_cancelled, db, appointment)
    return appointment

@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(appointment_id: int, data: AppointmentComplete, db: Session = Depends(get_db)):
    """
    Complete an appointment with its outcome score

    The outcome is appended to the patient's medical record and the
    patient is notified in the same transaction.
    """
    return service.complete_appointment(
        db, appointment_id, data.effectiveness, notes=data.notes, listeners=COMPLETION_LISTENERS
    )

@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
def mark_no_show(appointment_id: int, db: Session = Depends(get_db)):
    return service.mark_no_show(db, appointment_id)
