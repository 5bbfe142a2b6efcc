"""
Medical Record Models - Append-only clinical history of a patient.

A patient owns exactly one MedicalRecord. Entries are added as
MedicalRecordItems (one per consultation, including each completed
appointment), prescriptions are issued against appointments and treatment
sessions track how a treatment is working.
"""
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text, Table,
    CheckConstraint, func
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base

record_item_diagnoses = Table(
    "record_item_diagnoses",
    Base.metadata,
    Column("record_item_id", Integer, ForeignKey("medical_record_items.id", ondelete="CASCADE"), primary_key=True),
    Column("diagnosis_id", Integer, ForeignKey("diagnoses.id", ondelete="RESTRICT"), primary_key=True),
)

prescription_treatments = Table(
    "prescription_treatments",
    Base.metadata,
    Column("prescription_id", Integer, ForeignKey("prescriptions.id", ondelete="CASCADE"), primary_key=True),
    Column("treatment_id", Integer, ForeignKey("treatments.id", ondelete="RESTRICT"), primary_key=True),
)

class MedicalRecord(Base):
    """
    Medical Record Model - One per patient, created at registration
    
    Fields:
    - id: Primary key for medical record
    - patient_id: Foreign key to Patient model (unique)
    - created_at: When the record was created
    """
    __tablename__ = "medical_records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    patient = relationship("Patient")

    def __repr__(self):
        """String representation of the MedicalRecord model"""
        return f"<MedicalRecord(id={self.id}, patient_id={self.patient_id})>"


class MedicalRecordItem(Base):
    """
    Medical Record Item Model - A single entry in a patient's history
    
    Fields:
    - id: Primary key
    - medical_record_id: Foreign key to the owning MedicalRecord
    - doctor_id: Doctor who wrote the entry
    - appointment_id: Appointment the entry belongs to, if any
    - entry_date: When the entry was recorded
    - effectiveness: Outcome score of the appointment (0-100), if any
    - notes: Clinical notes
    - diagnoses: Diagnoses attached to the entry
    """
    __tablename__ = "medical_record_items"
    __table_args__ = (
        CheckConstraint(
            "effectiveness IS NULL OR (effectiveness >= 0 AND effectiveness <= 100)",
            name="ck_record_item_effectiveness"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    medical_record_id = Column(Integer, ForeignKey("medical_records.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, index=True)
    entry_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    effectiveness = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    medical_record = relationship("MedicalRecord")
    doctor = relationship("Doctor")
    diagnoses = relationship("Diagnosis", secondary=record_item_diagnoses, lazy="selectin")

    def __repr__(self):
        return f"<MedicalRecordItem(id={self.id}, medical_record_id={self.medical_record_id})>"


class Prescription(Base):
    """
    Prescription Model - Treatments prescribed at an appointment
    
    Fields:
    - id: Primary key
    - appointment_id: Appointment the prescription was issued at
    - patient_id / doctor_id: Copied from the appointment for lookups
    - notes: Dosage and instructions
    - issued_at: When the prescription was issued
    - expires_at: When it stops being active (never, if NULL)
    - treatments: Prescribed treatments
    """
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    appointment = relationship("Appointment")
    treatments = relationship("Treatment", secondary=prescription_treatments, lazy="selectin")

    def __repr__(self):
        return f"<Prescription(id={self.id}, appointment_id={self.appointment_id})>"


class TreatmentSession(Base):
    """
    Treatment Session Model - One session of a treatment and how it went
    
    Fields:
    - id: Primary key
    - patient_id: Patient who received the treatment
    - treatment_id: Treatment applied
    - appointment_id: Appointment the session took place at, if any
    - session_date: Date of the session
    - effectiveness: Score 0-100, if assessed
    - observations: Free-text observations
    """
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint(
            "effectiveness IS NULL OR (effectiveness >= 0 AND effectiveness <= 100)",
            name="ck_session_effectiveness"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    treatment_id = Column(Integer, ForeignKey("treatments.id", ondelete="RESTRICT"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)
    session_date = Column(Date, nullable=False)
    effectiveness = Column(Integer, nullable=True)
    observations = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    treatment = relationship("Treatment")

    def __repr__(self):
        return f"<TreatmentSession(id={self.id}, patient_id={self.patient_id}, treatment_id={self.treatment_id})>"
