"""
Patient Model - Stores patient-specific information.

This model extends the base User record with demographic and blood-type data.
PatientAllergy links a patient to entries of the allergy catalogue.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Date, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base
from ..reference.models import AllergySeverity

class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    NOT_SPECIFIED = "NOT_SPECIFIED"

class BloodType(str, enum.Enum):
    A_POSITIVE = "A_POSITIVE"
    A_NEGATIVE = "A_NEGATIVE"
    B_POSITIVE = "B_POSITIVE"
    B_NEGATIVE = "B_NEGATIVE"
    AB_POSITIVE = "AB_POSITIVE"
    AB_NEGATIVE = "AB_NEGATIVE"
    O_POSITIVE = "O_POSITIVE"
    O_NEGATIVE = "O_NEGATIVE"

class Patient(Base):
    """
    Patient Model - Stores patient-specific information
    
    Fields:
    - id: Primary key for patient profile
    - user_id: Foreign key to User model
    - birth_date: Patient's date of birth
    - gender: Patient's gender
    - blood_type: Patient's blood type (optional)
    - created_at: When the patient profile was created
    - updated_at: When the patient profile was last updated
    """
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    birth_date = Column(Date, nullable=True)
    gender = Column(Enum(Gender), nullable=False, default=Gender.NOT_SPECIFIED)
    blood_type = Column(Enum(BloodType), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", lazy="joined")

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, user_id={self.user_id})>"

    @property
    def full_name(self) -> str:
        """Get patient's full name from associated user"""
        return self.user.full_name if self.user else None

    @property
    def email(self) -> str:
        """Get patient's email from associated user"""
        return self.user.email if self.user else None


class PatientAllergy(Base):
    """
    PatientAllergy Model - A known allergy of a patient
    
    Fields:
    - id: Primary key
    - patient_id: Foreign key to Patient
    - allergy_id: Foreign key to the Allergy catalogue
    - severity: Reaction severity for this patient (the catalogue severity when not given)
    - notes: Free-text notes (optional)
    - diagnosed_on: When the allergy was identified (optional)
    - created_at: When the link was recorded
    """
    __tablename__ = "patient_allergies"
    __table_args__ = (
        UniqueConstraint("patient_id", "allergy_id", name="uq_patient_allergy"),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    allergy_id = Column(Integer, ForeignKey("allergies.id", ondelete="RESTRICT"), nullable=False, index=True)
    severity = Column(Enum(AllergySeverity), nullable=False)
    notes = Column(Text, nullable=True)
    diagnosed_on = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    allergy = relationship("Allergy", lazy="joined")

    def __repr__(self):
        return f"<PatientAllergy(patient_id={self.patient_id}, allergy_id={self.allergy_id})>"
