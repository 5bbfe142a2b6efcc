"""
Appointment Model - Binds a patient to a slot on a doctor's schedule date.

The status follows a small state machine:

    SCHEDULED -> CONFIRMED -> COMPLETED
    SCHEDULED -> COMPLETED
    SCHEDULED | CONFIRMED -> CANCELLED
    SCHEDULED | CONFIRMED -> NO_SHOW

COMPLETED, CANCELLED and NO_SHOW are terminal.
"""
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Enum,
    UniqueConstraint, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
from ..database import Base
from ..exceptions import InvalidStateTransitionError

class AppointmentStatus(str, enum.Enum):
    """Enum for appointment status"""
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

class Appointment(Base):
    """
    Appointment Model - Stores appointment information
    
    Fields:
    - id: Primary key for appointment
    - patient_id: Foreign key to Patient model
    - schedule_date_id: Foreign key to the booked DoctorScheduleDate
    - specialty_id: Foreign key to the Specialty the visit is for
    - slot_number: Capacity slot held on the schedule date (1..max_appointments);
      cleared when the appointment is cancelled
    - status: Current status of the appointment
    - effectiveness: Outcome score 0-100, set on completion
    - reason: Reason for the visit
    - cancellation_reason: Why the appointment was cancelled
    - created_at: When the appointment was created
    - updated_at: When the appointment was last updated
    """
    __tablename__ = "appointments"
    __table_args__ = (
        # NULL slot numbers (cancelled appointments) never collide
        UniqueConstraint("schedule_date_id", "slot_number", name="uq_appointment_slot"),
        CheckConstraint("slot_number IS NULL OR slot_number >= 1", name="ck_appointment_slot"),
        CheckConstraint(
            "effectiveness IS NULL OR (effectiveness >= 0 AND effectiveness <= 100)",
            name="ck_appointment_effectiveness"
        ),
        Index("ix_appointments_schedule_date_status", "schedule_date_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_date_id = Column(Integer, ForeignKey("doctor_schedule_dates.id", ondelete="RESTRICT"), nullable=False)
    specialty_id = Column(Integer, ForeignKey("specialties.id", ondelete="RESTRICT"), nullable=False, index=True)
    slot_number = Column(Integer, nullable=True)
    status = Column(Enum(AppointmentStatus, name="appointment_status"), nullable=False, default=AppointmentStatus.SCHEDULED)
    effectiveness = Column(Integer, nullable=True)
    reason = Column(String, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    patient = relationship("Patient")
    schedule_date = relationship("DoctorScheduleDate", lazy="joined")
    specialty = relationship("Specialty")

    def __repr__(self):
        """String representation of the Appointment model"""
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, "
            f"schedule_date_id={self.schedule_date_id}, status='{self.status}')>"
        )

    @property
    def schedule_id(self) -> int:
        return self.schedule_date.schedule_id

    @property
    def doctor_id(self) -> int:
        return self.schedule_date.doctor_id

    @property
    def appointment_date(self):
        return self.schedule_date.date

    def can_transition_to(self, status: AppointmentStatus) -> bool:
        return AppointmentStatus(status) in ALLOWED_TRANSITIONS[self.status]

    def update_status(self, status: AppointmentStatus) -> None:
        """
        Move the appointment to a new status
        
        Args:
            status: Target status
            
        Raises:
            InvalidStateTransitionError: If the state machine forbids the change
        """
        status = AppointmentStatus(status)
        if not self.can_transition_to(status):
            raise InvalidStateTransitionError(self.status, status)
        self.status = status
        if status == AppointmentStatus.CANCELLED:
            self.slot_number = None
        self.updated_at = datetime.now(timezone.utc)
