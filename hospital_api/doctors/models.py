"""
Doctor Model - Stores doctor-specific information and specialty certifications.

This model extends the base User record with the license number; specialty
links live in their own table.
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class ExperienceLevel(str, enum.Enum):
    """Seniority of a doctor within one specialty"""
    INTERN = "INTERN"
    JUNIOR = "JUNIOR"
    MID = "MID"
    SENIOR = "SENIOR"
    CONSULTANT = "CONSULTANT"

class Doctor(Base):
    """
    Doctor Model - Stores doctor-specific information
    
    Fields:
    - id: Primary key for doctor profile
    - user_id: Foreign key to User model
    - license_number: Unique professional license number
    - created_at: When the doctor profile was created
    - updated_at: When the doctor profile was last updated
    """
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    license_number = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", lazy="joined")

    def __repr__(self):
        """String representation of the Doctor model"""
        return f"<Doctor(id={self.id}, user_id={self.user_id}, license_number='{self.license_number}')>"

    @property
    def full_name(self) -> str:
        """Get doctor's full name from associated user"""
        return self.user.full_name if self.user else None

    @property
    def email(self) -> str:
        """Get doctor's email from associated user"""
        return self.user.email if self.user else None


class DoctorSpecialty(Base):
    """
    Doctor Specialty Model - Certification of one doctor in one specialty
    
    Fields:
    - id: Primary key
    - doctor_id: Foreign key to Doctor
    - specialty_id: Foreign key to Specialty
    - certification_date: When the certification was granted
    - experience_level: Seniority in this specialty
    """
    __tablename__ = "doctor_specialties"
    __table_args__ = (
        UniqueConstraint("doctor_id", "specialty_id", name="uq_doctor_specialty"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    specialty_id = Column(Integer, ForeignKey("specialties.id", ondelete="CASCADE"), nullable=False, index=True)
    certification_date = Column(Date, nullable=False)
    experience_level = Column(Enum(ExperienceLevel), nullable=False, default=ExperienceLevel.INTERN)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    doctor = relationship("Doctor")
    specialty = relationship("Specialty", lazy="joined")

    def __repr__(self):
        return f"<DoctorSpecialty(doctor_id={self.doctor_id}, specialty_id={self.specialty_id})>"
