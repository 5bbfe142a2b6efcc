"""
Schedule Models - Weekly availability templates and their per-date instances.

A DoctorSchedule is a recurring window on one day of the week with a capacity
ceiling. A DoctorScheduleDate instantiates it on one calendar date and carries
the status that decides whether the date can be booked.
"""
from sqlalchemy import (
    Column, Integer, Text, Date, Time, DateTime, ForeignKey, Enum,
    UniqueConstraint, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class WorkDay(str, enum.Enum):
    """Day of the week a schedule repeats on, in date.weekday() order"""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def for_date(cls, day) -> "WorkDay":
        """Return the work day a calendar date falls on"""
        return list(cls)[day.weekday()]

class ScheduleDateStatus(str, enum.Enum):
    """
    Status of a schedule on one date.
    
    - ACTIVE: Open for booking
    - INACTIVE: Closed for booking
    - VACATION: Doctor on leave
    - HOLIDAY: Public holiday
    """
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    VACATION = "VACATION"
    HOLIDAY = "HOLIDAY"

class DoctorSchedule(Base):
    """
    Doctor Schedule Model - One recurring weekly availability window
    
    Fields:
    - id: Primary key
    - doctor_id: Foreign key to Doctor (owner)
    - work_day: Day of the week the window repeats on
    - start_time / end_time: The window, start strictly before end
    - break_start / break_end: Optional break inside the window
    - max_appointments: Capacity ceiling for each instantiated date
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "doctor_schedules"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_schedule_window"),
        CheckConstraint("max_appointments >= 1", name="ck_schedule_capacity"),
        Index("ix_doctor_schedules_doctor_day", "doctor_id", "work_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    work_day = Column(Enum(WorkDay), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)
    max_appointments = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    doctor = relationship("Doctor")

    def __repr__(self):
        return (
            f"<DoctorSchedule(id={self.id}, doctor_id={self.doctor_id}, work_day='{self.work_day}', "
            f"{self.start_time}-{self.end_time}, max={self.max_appointments})>"
        )

    def overlaps(self, start_time, end_time) -> bool:
        """Check whether this window intersects [start_time, end_time)"""
        return self.start_time < end_time and start_time < self.end_time

class DoctorScheduleDate(Base):
    """
    Doctor Schedule Date Model - A schedule instantiated on one calendar date
    
    Fields:
    - id: Primary key
    - schedule_id: Foreign key to the parent DoctorSchedule
    - date: The calendar date (weekday matches the schedule's work day)
    - status: Whether the date is open for booking
    - notes: Free-text notes (e.g. reason for a closure)
    - created_at / updated_at: Audit timestamps

    At most one row exists per (schedule, date).
    """
    __tablename__ = "doctor_schedule_dates"
    __table_args__ = (
        UniqueConstraint("schedule_id", "date", name="uq_schedule_date"),
        Index("ix_doctor_schedule_dates_date_status", "date", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(Integer, ForeignKey("doctor_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    status = Column(Enum(ScheduleDateStatus), nullable=False, default=ScheduleDateStatus.ACTIVE)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    schedule = relationship("DoctorSchedule", lazy="joined")

    def __repr__(self):
        return f"<DoctorScheduleDate(id={self.id}, schedule_id={self.schedule_id}, date='{self.date}', status='{self.status}')>"

    @property
    def doctor_id(self) -> int:
        return self.schedule.doctor_id

    @property
    def is_bookable(self) -> bool:
        return self.status == ScheduleDateStatus.ACTIVE

    # The time window is inherited from the parent schedule
    @property
    def start_time(self):
        return self.schedule.start_time

    @property
    def end_time(self):
        return self.schedule.end_time

    @property
    def max_appointments(self) -> int:
        return self.schedule.max_appointments
