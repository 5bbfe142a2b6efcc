"""
Medical Record Service - Append-only clinical history.

Entries are never updated or deleted. Completed appointments are appended
through record_appointment_completion, which runs inside the completion
transaction and therefore only flushes.
"""
from typing import Iterable, List, Optional
from datetime import date, datetime, timezone
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..appointments.models import AppointmentStatus
from ..appointments.schemas import AppointmentCompleted
from ..appointments.service import get_appointment, validate_effectiveness
from ..core.persistence import commit_changes
from ..doctors.service import get_doctor
from ..exceptions import NotFoundError, ValidationError
from ..patients.service import get_patient
from ..reference.service import get_diagnosis, get_treatment
from .models import MedicalRecord, MedicalRecordItem, Prescription, TreatmentSession

# Set up logging
logger = logging.getLogger(__name__)

def _utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def get_medical_record(db: Session, patient_id: int) -> MedicalRecord:
    """
    Get the medical record of a patient.
    
    Raises:
        NotFoundError: If the patient or its record does not exist
    """
    get_patient(db, patient_id)
    record = db.query(MedicalRecord).filter(MedicalRecord.patient_id == patient_id).first()
    if not record:
        raise NotFoundError(f"Medical record for patient {patient_id} not found")
    return record

def list_record_items(db: Session, patient_id: int) -> List[MedicalRecordItem]:
    """List the entries of a patient's record, newest first."""
    record = get_medical_record(db, patient_id)
    return db.query(MedicalRecordItem).filter(
        MedicalRecordItem.medical_record_id == record.id
    ).order_by(MedicalRecordItem.entry_date.desc(), MedicalRecordItem.id.desc()).all()

def _append_item(
    db: Session,
    patient_id: int,
    doctor_id: int,
    notes: Optional[str],
    diagnosis_ids: Iterable[int] = (),
    appointment_id: Optional[int] = None,
    effectiveness: Optional[int] = None
) -> MedicalRecordItem:
    record = get_medical_record(db, patient_id)
    item = MedicalRecordItem(
        medical_record_id=record.id,
        doctor_id=doctor_id,
        appointment_id=appointment_id,
        effectiveness=effectiveness,
        notes=notes,
        diagnoses=[get_diagnosis(db, diagnosis_id) for diagnosis_id in dict.fromkeys(diagnosis_ids)]
    )
    db.add(item)
    db.flush()
    return item

def add_record_item(
    db: Session,
    patient_id: int,
    doctor_id: int,
    notes: Optional[str] = None,
    diagnosis_ids: Iterable[int] = (),
    appointment_id: Optional[int] = None
) -> MedicalRecordItem:
    """
    Append an entry to a patient's medical record.
    
    Args:
        db: Database session
        patient_id: Owner of the record
        doctor_id: Doctor writing the entry
        notes: Clinical notes
        diagnosis_ids: Diagnoses to attach (duplicates are ignored)
        appointment_id: Appointment the entry belongs to
        
    Returns:
        MedicalRecordItem: The new entry
        
    Raises:
        NotFoundError: If the patient, doctor, a diagnosis or the appointment is missing
        ValidationError: If the appointment belongs to another patient
    """
    get_doctor(db, doctor_id)
    if appointment_id is not None:
        appointment = get_appointment(db, appointment_id)
        if appointment.patient_id != patient_id:
            raise ValidationError(f"Appointment {appointment_id} does not belong to patient {patient_id}")
    try:
        item = _append_item(db, patient_id, doctor_id, notes, diagnosis_ids, appointment_id)
    except NotFoundError:
        db.rollback()
        raise
    commit_changes(db)
    db.refresh(item)
    logger.info(f"Record item {item.id} added for patient {patient_id} by doctor {doctor_id}")
    return item

def record_appointment_completion(db: Session, event: AppointmentCompleted) -> MedicalRecordItem:
    """
    Completion listener: append the outcome of a completed appointment.
    
    Only flushes; the caller commits together with the completion.
    """
    item = _append_item(
        db,
        event.patient_id,
        event.doctor_id,
        event.notes,
        appointment_id=event.appointment_id,
        effectiveness=event.effectiveness
    )
    logger.info(f"Appointment {event.appointment_id} recorded in the history of patient {event.patient_id}")
    return item

def issue_prescription(
    db: Session,
    appointment_id: int,
    treatment_ids: Iterable[int],
    notes: Optional[str] = None,
    expires_at: Optional[datetime] = None
) -> Prescription:
    """
    Issue a prescription at an appointment.
    
    Args:
        db: Database session
        appointment_id: Appointment the prescription is issued at
        treatment_ids: Prescribed treatments (at least one)
        notes: Dosage and instructions
        expires_at: When the prescription stops being active
        
    Returns:
        Prescription: The new prescription
        
    Raises:
        NotFoundError: If the appointment or a treatment is missing
        ValidationError: If the appointment was cancelled or missed, no
            treatment is given, or expires_at is not after the issue time
    """
    appointment = get_appointment(db, appointment_id)
    if appointment.status in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW):
        raise ValidationError(
            f"Cannot prescribe for appointment {appointment_id} in status {appointment.status.value}"
        )

    treatment_ids = list(dict.fromkeys(treatment_ids))
    if not treatment_ids:
        raise ValidationError("A prescription needs at least one treatment")

    issued_at = datetime.now(timezone.utc)
    if expires_at is not None:
        expires_at = _utc(expires_at)
        if expires_at <= issued_at:
            raise ValidationError("expires_at must be after the issue time")

    prescription = Prescription(
        appointment_id=appointment.id,
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        notes=notes,
        issued_at=issued_at,
        expires_at=expires_at,
        treatments=[get_treatment(db, treatment_id) for treatment_id in treatment_ids]
    )
    db.add(prescription)
    commit_changes(db)
    db.refresh(prescription)
    logger.info(f"Prescription {prescription.id} issued at appointment {appointment_id}")
    return prescription

def list_prescriptions(
    db: Session,
    patient_id: int,
    active_only: bool = False,
    now: Optional[datetime] = None
) -> List[Prescription]:
    """
    List a patient's prescriptions, newest first.
    
    With active_only, prescriptions whose expires_at has passed are left out.
    """
    get_patient(db, patient_id)
    query = db.query(Prescription).filter(Prescription.patient_id == patient_id)
    if active_only:
        now = _utc(now or datetime.now(timezone.utc))
        query = query.filter(or_(Prescription.expires_at.is_(None), Prescription.expires_at > now))
    return query.order_by(Prescription.issued_at.desc(), Prescription.id.desc()).all()

def record_session(
    db: Session,
    patient_id: int,
    treatment_id: int,
    session_date: date,
    effectiveness: Optional[int] = None,
    observations: Optional[str] = None,
    appointment_id: Optional[int] = None
) -> TreatmentSession:
    """
    Record a treatment session.
    
    Raises:
        NotFoundError: If the patient, treatment or appointment is missing
        ValidationError: If effectiveness is outside [0, 100] or the
            appointment belongs to another patient
    """
    get_patient(db, patient_id)
    get_treatment(db, treatment_id)
    if effectiveness is not None:
        validate_effectiveness(effectiveness)
    if appointment_id is not None:
        appointment = get_appointment(db, appointment_id)
        if appointment.patient_id != patient_id:
            raise ValidationError(f"Appointment {appointment_id} does not belong to patient {patient_id}")

    session = TreatmentSession(
        patient_id=patient_id,
        treatment_id=treatment_id,
        appointment_id=appointment_id,
        session_date=session_date,
        effectiveness=effectiveness,
        observations=observations
    )
    db.add(session)
    commit_changes(db)
    db.refresh(session)
    logger.info(f"Session {session.id} of treatment {treatment_id} recorded for patient {patient_id}")
    return session

def list_sessions(db: Session, patient_id: int) -> List[TreatmentSession]:
    get_patient(db, patient_id)
    return db.query(TreatmentSession).filter(
        TreatmentSession.patient_id == patient_id
    ).order_by(TreatmentSession.session_date.desc(), TreatmentSession.id.desc()).all()
