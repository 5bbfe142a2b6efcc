"""
Patient Service - Business logic for patient registration, lookup, updates
and the allergies recorded for each patient.
"""
from typing import List, Optional
from datetime import datetime, timezone
import logging
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.persistence import commit_changes, contains
from ..exceptions import NotFoundError, ConflictError
from ..medical_records.models import MedicalRecord
from ..reference.service import get_allergy
from ..users.models import User, UserRole
from ..users.service import build_user
from .models import Patient, PatientAllergy
from .schemas import PatientCreate, PatientUpdate, PatientAllergyCreate

# Set up logging
logger = logging.getLogger(__name__)

USER_FIELDS = ("first_name", "last_name", "phone")

def get_patient(db: Session, patient_id: int) -> Patient:
    """
    Get a patient profile by ID.
    
    Raises:
        NotFoundError: If the patient does not exist
    """
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFoundError(f"Patient {patient_id} not found")
    return patient

def find_patient_by_identifier(db: Session, identifier: str) -> Patient:
    """
    Find a patient by document number or email address.
    
    Args:
        db: Database session
        identifier: Document number, or email (matched case-insensitively)
        
    Returns:
        Patient: The matching patient
        
    Raises:
        NotFoundError: If no patient matches
    """
    patient = db.query(Patient).join(User, Patient.user_id == User.id).filter(or_(
        User.document_number == identifier,
        func.lower(User.email) == identifier.lower()
    )).first()
    if not patient:
        raise NotFoundError(f"No patient matches identifier {identifier}")
    return patient

def register_patient(db: Session, data: PatientCreate) -> Patient:
    """
    Register a new patient with an empty medical record.
    
    The user, the patient profile and the medical record are committed
    together; a failure leaves none of them behind.
    
    Args:
        db: Database session
        data: Registration data
        
    Returns:
        Patient: The new patient profile
        
    Raises:
        ConflictError: If the email or document number is already registered
    """
    logger.info(f"Patient registration attempt for email: {data.email}")
    user = build_user(db, data, UserRole.PATIENT)
    patient = Patient(
        user=user,
        birth_date=data.birth_date,
        gender=data.gender,
        blood_type=data.blood_type
    )
    db.add(patient)
    db.add(MedicalRecord(patient=patient))
    commit_changes(db, "Email or document number already registered")
    db.refresh(patient)
    logger.info(f"Patient {patient.id} registered with an empty medical record")
    return patient

def update_patient(db: Session, patient_id: int, data: PatientUpdate) -> Patient:
    """
    Update a patient's contact and demographic data.
    
    Raises:
        NotFoundError: If the patient does not exist
    """
    patient = get_patient(db, patient_id)
    now = datetime.now(timezone.utc)

    for field, value in data.model_dump(exclude_unset=True).items():
        if field in USER_FIELDS:
            setattr(patient.user, field, value)
            patient.user.updated_at = now
        else:
            setattr(patient, field, value)
    patient.updated_at = now

    commit_changes(db)
    db.refresh(patient)
    logger.info(f"Patient {patient_id} updated")
    return patient

def list_patients(db: Session, search: Optional[str] = None):
    """
    Build a query of patients, optionally filtered by a case-insensitive
    fragment of name, email or document number.
    """
    query = db.query(Patient).join(User, Patient.user_id == User.id)
    if search:
        query = query.filter(or_(
            contains(User.first_name, search),
            contains(User.last_name, search),
            contains(User.email, search),
            contains(User.document_number, search)
        ))
    return query.order_by(Patient.id)

def add_patient_allergy(db: Session, patient_id: int, data: PatientAllergyCreate) -> PatientAllergy:
    """
    Record that a patient has a catalogued allergy.
    
    Args:
        db: Database session
        patient_id: ID of the patient
        data: Allergy reference, optional patient-specific severity and notes
        
    Returns:
        PatientAllergy: The new link
        
    Raises:
        NotFoundError: If the patient or the allergy does not exist
        ConflictError: If the allergy is already recorded for the patient
    """
    get_patient(db, patient_id)
    allergy = get_allergy(db, data.allergy_id)
    detail = f"Allergy {allergy.id} already recorded for patient {patient_id}"
    existing = db.query(PatientAllergy).filter(
        PatientAllergy.patient_id == patient_id,
        PatientAllergy.allergy_id == allergy.id
    ).first()
    if existing:
        raise ConflictError(detail)

    link = PatientAllergy(
        patient_id=patient_id,
        allergy_id=allergy.id,
        severity=data.severity or allergy.severity,
        notes=data.notes,
        diagnosed_on=data.diagnosed_on
    )
    db.add(link)
    commit_changes(db, detail)
    db.refresh(link)
    logger.info(f"Allergy {allergy.id} recorded for patient {patient_id} ({link.severity.value})")
    return link

def list_patient_allergies(db: Session, patient_id: int) -> List[PatientAllergy]:
    get_patient(db, patient_id)
    return db.query(PatientAllergy).filter(
        PatientAllergy.patient_id == patient_id
    ).order_by(PatientAllergy.id).all()

def remove_patient_allergy(db: Session, patient_id: int, allergy_id: int) -> None:
    """
    Remove an allergy from a patient.
    
    Raises:
        NotFoundError: If the patient does not have that allergy recorded
    """
    get_patient(db, patient_id)
    link = db.query(PatientAllergy).filter(
        PatientAllergy.patient_id == patient_id,
        PatientAllergy.allergy_id == allergy_id
    ).first()
    if not link:
        raise NotFoundError(f"Allergy {allergy_id} is not recorded for patient {patient_id}")
    db.delete(link)
    commit_changes(db)
    logger.info(f"Allergy {allergy_id} removed from patient {patient_id}")

def list_patients_with_allergy(db: Session, allergy_id: int) -> List[Patient]:
    """Patients who have the given allergy recorded."""
    get_allergy(db, allergy_id)
    return db.query(Patient).join(
        PatientAllergy, PatientAllergy.patient_id == Patient.id
    ).filter(PatientAllergy.allergy_id == allergy_id).order_by(Patient.id).all()
