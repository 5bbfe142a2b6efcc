"""
Doctor Service - Business logic for doctor registration and lookup.

Registration creates the base User, the Doctor profile and its specialty
links in a single transaction.
"""
from typing import List, Optional
from datetime import date
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.persistence import commit_changes, contains
from ..exceptions import NotFoundError, ConflictError, ValidationError
from ..reference.service import get_specialty
from ..users.models import User, UserRole
from ..users.service import build_user
from .models import Doctor, DoctorSpecialty
from .schemas import DoctorCreate

# Set up logging
logger = logging.getLogger(__name__)

def get_doctor(db: Session, doctor_id: int) -> Doctor:
    """
    Get a doctor profile by ID.
    
    Args:
        db: Database session
        doctor_id: ID of the doctor profile
        
    Returns:
        Doctor: Doctor profile
        
    Raises:
        NotFoundError: If doctor profile not found
    """
    doctor = db.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError(f"Doctor {doctor_id} not found")
    return doctor

def find_doctor_by_license(db: Session, license_number: str) -> Doctor:
    """
    Get a doctor by license number.
    
    Raises:
        NotFoundError: If no doctor holds the license number
    """
    doctor = db.query(Doctor).filter(Doctor.license_number == license_number).first()
    if not doctor:
        raise NotFoundError(f"No doctor with license number {license_number}")
    return doctor

def register_doctor(db: Session, data: DoctorCreate) -> Doctor:
    """
    Register a doctor together with its specialty links.
    
    Args:
        db: Database session
        data: Person data, license number and specialties
        
    Returns:
        Doctor: The new doctor profile
        
    Raises:
        ConflictError: If the license number, email or document number is taken
        NotFoundError: If a specialty does not exist (nothing is persisted)
        ValidationError: If a specialty is listed more than once
    """
    logger.info(f"Doctor registration attempt for license {data.license_number}")

    if db.query(Doctor).filter(Doctor.license_number == data.license_number).first():
        logger.warning(f"Doctor registration refused: license {data.license_number} already registered")
        raise ConflictError(f"License number {data.license_number} already registered")

    seen = set()
    for link in data.specialties:
        if link.specialty_id in seen:
            raise ValidationError(f"Specialty {link.specialty_id} listed more than once")
        seen.add(link.specialty_id)
        get_specialty(db, link.specialty_id)

    user = build_user(db, data, UserRole.DOCTOR)
    doctor = Doctor(user=user, license_number=data.license_number)
    db.add(doctor)
    today = date.today()
    for link in data.specialties:
        db.add(DoctorSpecialty(
            doctor=doctor,
            specialty_id=link.specialty_id,
            experience_level=link.experience_level,
            certification_date=link.certification_date or today
        ))

    # The unique index on license_number settles concurrent registrations
    commit_changes(db, f"License number {data.license_number} already registered")
    db.refresh(doctor)
    logger.info(f"Doctor {doctor.id} registered with {len(data.specialties)} specialties")
    return doctor

def list_doctor_specialties(db: Session, doctor_id: int) -> List[DoctorSpecialty]:
    get_doctor(db, doctor_id)
    return db.query(DoctorSpecialty).filter(DoctorSpecialty.doctor_id == doctor_id).order_by(DoctorSpecialty.id).all()

def doctor_has_specialty(db: Session, doctor_id: int, specialty_id: int) -> bool:
    return db.query(DoctorSpecialty.id).filter(
        DoctorSpecialty.doctor_id == doctor_id,
        DoctorSpecialty.specialty_id == specialty_id
    ).first() is not None

def search_doctors(
    db: Session,
    name: Optional[str] = None,
    specialty_id: Optional[int] = None,
    active_only: bool = True
):
    """
    Build a query of doctors with optional filtering.
    
    Args:
        db: Database session
        name: Case-insensitive fragment of first name, last name or email
        specialty_id: Only doctors certified in this specialty
        active_only: Hide doctors whose user account is deactivated
        
    Returns:
        Query: Doctor query, ready to paginate
    """
    query = db.query(Doctor).join(User, Doctor.user_id == User.id)
    if active_only:
        query = query.filter(User.is_active.is_(True))
    if name:
        query = query.filter(or_(
            contains(User.first_name, name),
            contains(User.last_name, name),
            contains(User.email, name)
        ))
    if specialty_id is not None:
        query = query.join(DoctorSpecialty, DoctorSpecialty.doctor_id == Doctor.id).filter(
            DoctorSpecialty.specialty_id == specialty_id
        )
    return query.order_by(Doctor.id)
