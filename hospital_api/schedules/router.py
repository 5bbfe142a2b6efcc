"""
Schedule Router - API endpoints for weekly templates, schedule dates and availability.
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from .schemas import (
    ScheduleCreate,
    ScheduleUpdate,
    ScheduleResponse,
    ScheduleDateCreate,
    ScheduleRangeCreate,
    ScheduleDateResponse,
    AvailableSlot,
    AvailabilityResponse,
)
from . import service

router = APIRouter()

@router.post("/", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(data: ScheduleCreate, db: Session = Depends(get_db)):
    """
    Create a weekly availability template for a doctor

    Overlapping windows on the same work day are rejected with 409.
    """
    return service.create_weekly_template(
        db,
        doctor_id=data.doctor_id,
        work_day=data.work_day,
        start_time=data.start_time,
        end_time=data.end_time,
        break_start=data.break_start,
        break_end=data.break_end,
        max_appointments=data.max_appointments
    )

@router.get("/doctor/{doctor_id}", response_model=List[ScheduleResponse])
def list_doctor_schedules(doctor_id: int, db: Session = Depends(get_db)):
    return service.list_doctor_schedules(db, doctor_id)

@router.get("/doctor/{doctor_id}/slots", response_model=List[AvailableSlot])
def list_available_slots(doctor_id: int, on_date: date = Query(..., alias="date"), db: Session = Depends(get_db)):
    """Bookable schedules of a doctor on a date, with remaining capacity"""
    return service.list_available_slots(db, doctor_id, on_date)

@router.get("/doctor/{doctor_id}/availability", response_model=AvailabilityResponse)
def get_doctor_availability(doctor_id: int, on_date: date = Query(..., alias="date"), db: Session = Depends(get_db)):
    return AvailabilityResponse(
        doctor_id=doctor_id,
        date=on_date,
        available=service.is_doctor_available(db, doctor_id, on_date)
    )

@router.get("/doctor/{doctor_id}/active-dates", response_model=List[ScheduleDateResponse])
def find_active_dates(
    doctor_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db)
):
    return service.find_active_dates(db, doctor_id, start_date, end_date)

@router.get("/dates/search", response_model=List[ScheduleDateResponse])
def search_schedule_dates(text: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return service.search_schedule_dates_by_notes(db, text)

@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(schedule_id: int, db: Session = Depends(get_db)):
    return service.get_schedule(db, schedule_id)

@router.put("/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(schedule_id: int, data: ScheduleUpdate, db: Session = Depends(get_db)):
    return service.update_schedule(db, schedule_id, data)

@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(schedule_id: int, db: Session = Depends(get_db)):
    service.delete_schedule(db, schedule_id)

@router.post("/{schedule_id}/dates", response_model=ScheduleDateResponse, status_code=status.HTTP_201_CREATED)
def materialize_date(schedule_id: int, data: ScheduleDateCreate, db: Session = Depends(get_db)):
    """
    Instantiate the schedule on a calendar date

    Returns 409 when the date already exists unless `update` is set.
    """
    return service.materialize_date(
        db, schedule_id, data.date, status=data.status, notes=data.notes, update=data.update
    )

@router.post("/{schedule_id}/dates/range", response_model=List[ScheduleDateResponse], status_code=status.HTTP_201_CREATED)
def materialize_range(schedule_id: int, data: ScheduleRangeCreate, db: Session = Depends(get_db)):
    return service.materialize_range(db, schedule_id, data.start_date, data.end_date, status=data.status)

@router.get("/{schedule_id}/dates", response_model=List[ScheduleDateResponse])
def list_schedule_dates(
    schedule_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    return service.list_schedule_dates(db, schedule_id, start_date, end_date)
