"""
Schedule Schemas - Pydantic models for schedule templates, schedule dates and slots.
"""
from typing import Optional
from datetime import date, time, datetime
from pydantic import BaseModel, Field

from .models import WorkDay, ScheduleDateStatus

class ScheduleCreate(BaseModel):
    """
    Weekly Template Create Schema
    
    Fields:
    - doctor_id: Owner of the schedule
    - work_day: Day of the week (MONDAY..SUNDAY)
    - start_time / end_time: Availability window (HH:MM[:SS])
    - break_start / break_end: Optional break inside the window; both or neither
    - max_appointments: Capacity per instantiated date
    """
    doctor_id: int
    work_day: WorkDay
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_appointments: int

    class Config:
        json_schema_extra = {
            "example": {
                "doctor_id": 1,
                "work_day": "MONDAY",
                "start_time": "09:00",
                "end_time": "13:00",
                "break_start": "11:00",
                "break_end": "11:15",
                "max_appointments": 8
            }
        }

class ScheduleUpdate(BaseModel):
    """Weekly Template Update Schema - Only the fields present are changed"""
    work_day: Optional[WorkDay] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_appointments: Optional[int] = None

class ScheduleResponse(BaseModel):
    id: int
    doctor_id: int
    work_day: WorkDay
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_appointments: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ScheduleDateCreate(BaseModel):
    """
    Schedule Date Schema - Materialize (or, with update, change) one date
    
    Fields:
    - date: Calendar date on the schedule's work day
    - status: ACTIVE, INACTIVE, VACATION or HOLIDAY
    - notes: Optional free-text notes
    - update: Update an existing schedule date instead of failing with 409
    """
    date: date
    status: ScheduleDateStatus = ScheduleDateStatus.ACTIVE
    notes: Optional[str] = None
    update: bool = False

class ScheduleRangeCreate(BaseModel):
    """Materialize every matching weekday between two dates (inclusive)"""
    start_date: date
    end_date: date
    status: ScheduleDateStatus = ScheduleDateStatus.ACTIVE

class ScheduleDateResponse(BaseModel):
    id: int
    schedule_id: int
    doctor_id: int
    date: date
    status: ScheduleDateStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AvailableSlot(BaseModel):
    """
    A bookable schedule date and the number of appointments it can still take
    """
    schedule_id: int
    schedule_date_id: int
    doctor_id: int
    date: date
    work_day: WorkDay
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_appointments: int
    booked: int
    remaining: int = Field(..., ge=0)

class AvailabilityResponse(BaseModel):
    doctor_id: int
    date: date
    available: bool
