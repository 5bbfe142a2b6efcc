"""
Schedule Service - Weekly templates, per-date materialization and availability.

Answers "is doctor D available on date T, and how many slots remain?".
Remaining capacity on a schedule date is max_appointments minus the number
of non-cancelled appointments booked on it.
"""
from typing import List, Optional
from datetime import date, time, timedelta, datetime, timezone
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..appointments.models import Appointment, AppointmentStatus
from ..core.persistence import commit_changes, contains
from ..doctors.service import get_doctor
from ..exceptions import NotFoundError, ValidationError, ConflictError
from .models import DoctorSchedule, DoctorScheduleDate, WorkDay, ScheduleDateStatus
from .schemas import ScheduleUpdate, AvailableSlot

# Set up logging
logger = logging.getLogger(__name__)

# Only the break may be set back to null on update
REQUIRED_SCHEDULE_FIELDS = ("work_day", "start_time", "end_time", "max_appointments")

def validate_schedule_window(
    start_time: time,
    end_time: time,
    break_start: Optional[time],
    break_end: Optional[time],
    max_appointments: int
) -> None:
    """
    Check a schedule's time window, break and capacity.
    
    Times are wall-clock times of the doctor's working day, so a time that
    carries a UTC offset is refused rather than compared against naive ones.

    Raises:
        ValidationError: If a bound is missing or carries a timezone, start
            is not before end, the break is half-set, inverted or outside
            the window, or capacity is below one
    """
    if start_time is None or end_time is None:
        raise ValidationError("start_time and end_time are required")
    for value in (start_time, end_time, break_start, break_end):
        if value is not None and value.tzinfo is not None:
            raise ValidationError("Schedule times must not carry a timezone offset")
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time")
    if (break_start is None) != (break_end is None):
        raise ValidationError("break_start and break_end must be set together")
    if break_start is not None:
        if break_start >= break_end:
            raise ValidationError("break_start must be before break_end")
        if break_start < start_time or break_end > end_time:
            raise ValidationError("The break must lie within the schedule window")
    if max_appointments is None or max_appointments < 1:
        raise ValidationError("max_appointments must be at least 1")

def _ensure_no_overlap(
    db: Session,
    doctor_id: int,
    work_day: WorkDay,
    start_time: time,
    end_time: time,
    exclude_id: Optional[int] = None
) -> None:
    query = db.query(DoctorSchedule).filter(
        DoctorSchedule.doctor_id == doctor_id,
        DoctorSchedule.work_day == work_day
    )
    if exclude_id is not None:
        query = query.filter(DoctorSchedule.id != exclude_id)
    for other in query.all():
        if other.overlaps(start_time, end_time):
            logger.warning(f"Schedule for doctor {doctor_id} on {work_day.value} overlaps schedule {other.id}")
            raise ConflictError(
                f"Schedule overlaps schedule {other.id} on {work_day.value} "
                f"({other.start_time}-{other.end_time})"
            )

def create_weekly_template(
    db: Session,
    doctor_id: int,
    work_day: WorkDay,
    start_time: time,
    end_time: time,
    break_start: Optional[time] = None,
    break_end: Optional[time] = None,
    max_appointments: int = 1
) -> DoctorSchedule:
    """
    Create a recurring weekly availability window for a doctor.
    
    Args:
        db: Database session
        doctor_id: Owner of the schedule
        work_day: Day of the week the window repeats on
        start_time / end_time: The window
        break_start / break_end: Optional break inside the window
        max_appointments: Capacity of each instantiated date
        
    Returns:
        DoctorSchedule: The new schedule
        
    Raises:
        NotFoundError: If the doctor does not exist
        ValidationError: If the times or capacity are inconsistent
        ConflictError: If it overlaps another schedule of the doctor on the same day
    """
    get_doctor(db, doctor_id)
    work_day = WorkDay(work_day)
    validate_schedule_window(start_time, end_time, break_start, break_end, max_appointments)
    _ensure_no_overlap(db, doctor_id, work_day, start_time, end_time)

    schedule = DoctorSchedule(
        doctor_id=doctor_id,
        work_day=work_day,
        start_time=start_time,
        end_time=end_time,
        break_start=break_start,
        break_end=break_end,
        max_appointments=max_appointments
    )
    db.add(schedule)
    commit_changes(db)
    db.refresh(schedule)
    logger.info(f"Schedule {schedule.id} created for doctor {doctor_id} on {work_day.value} {start_time}-{end_time}")
    return schedule

def get_schedule(db: Session, schedule_id: int) -> DoctorSchedule:
    """
    Get a schedule by ID.
    
    Raises:
        NotFoundError: If the schedule does not exist
    """
    schedule = db.get(DoctorSchedule, schedule_id)
    if not schedule:
        raise NotFoundError(f"Schedule {schedule_id} not found")
    return schedule

def list_doctor_schedules(db: Session, doctor_id: int) -> List[DoctorSchedule]:
    get_doctor(db, doctor_id)
    schedules = db.query(DoctorSchedule).filter(DoctorSchedule.doctor_id == doctor_id).all()
    # Enum columns sort by name in SQL, so order by weekday here
    day_order = list(WorkDay)
    return sorted(schedules, key=lambda s: (day_order.index(s.work_day), s.start_time))

def _max_booked_per_date(db: Session, schedule_id: int) -> int:
    counts = db.query(func.count(Appointment.id)).join(
        DoctorScheduleDate, Appointment.schedule_date_id == DoctorScheduleDate.id
    ).filter(
        DoctorScheduleDate.schedule_id == schedule_id,
        Appointment.status != AppointmentStatus.CANCELLED
    ).group_by(DoctorScheduleDate.id).all()
    return max((count for (count,) in counts), default=0)

def update_schedule(db: Session, schedule_id: int, data: ScheduleUpdate) -> DoctorSchedule:
    """
    Update a weekly template.
    
    The merged result is validated like a new template. The work day cannot
    change while dates are materialized, and the capacity cannot drop below
    the appointments already booked on any date.
    
    Raises:
        NotFoundError: If the schedule does not exist
        ValidationError: If the merged window is invalid or capacity too low
        ConflictError: If the merged window overlaps another schedule
    """
    schedule = get_schedule(db, schedule_id)
    changes = data.model_dump(exclude_unset=True)
    for field in REQUIRED_SCHEDULE_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be cleared")
    merged = {
        field: changes.get(field, getattr(schedule, field))
        for field in ("work_day", "start_time", "end_time", "break_start", "break_end", "max_appointments")
    }

    validate_schedule_window(
        merged["start_time"], merged["end_time"],
        merged["break_start"], merged["break_end"],
        merged["max_appointments"]
    )

    if merged["work_day"] != schedule.work_day:
        has_dates = db.query(DoctorScheduleDate.id).filter(
            DoctorScheduleDate.schedule_id == schedule_id
        ).first() is not None
        if has_dates:
            raise ValidationError("Cannot change the work day of a schedule with materialized dates")

    booked = _max_booked_per_date(db, schedule_id)
    if merged["max_appointments"] < booked:
        raise ValidationError(
            f"max_appointments cannot drop below {booked}, the number already booked on one date"
        )

    _ensure_no_overlap(
        db, schedule.doctor_id, merged["work_day"],
        merged["start_time"], merged["end_time"], exclude_id=schedule_id
    )

    for field, value in merged.items():
        setattr(schedule, field, value)
    schedule.updated_at = datetime.now(timezone.utc)
    commit_changes(db)
    db.refresh(schedule)
    logger.info(f"Schedule {schedule_id} updated")
    return schedule

def delete_schedule(db: Session, schedule_id: int) -> None:
    """
    Delete a schedule and its materialized dates.
    
    Raises:
        NotFoundError: If the schedule does not exist
        ConflictError: If any appointment references one of its dates
    """
    schedule = get_schedule(db, schedule_id)
    referenced = db.query(Appointment.id).join(
        DoctorScheduleDate, Appointment.schedule_date_id == DoctorScheduleDate.id
    ).filter(DoctorScheduleDate.schedule_id == schedule_id).first()
    if referenced is not None:
        raise ConflictError(f"Schedule {schedule_id} has appointments and cannot be deleted")

    db.query(DoctorScheduleDate).filter(
        DoctorScheduleDate.schedule_id == schedule_id
    ).delete(synchronize_session=False)
    db.delete(schedule)
    commit_changes(db)
    logger.info(f"Schedule {schedule_id} deleted")

def get_schedule_date(db: Session, schedule_date_id: int) -> DoctorScheduleDate:
    schedule_date = db.get(DoctorScheduleDate, schedule_date_id)
    if not schedule_date:
        raise NotFoundError(f"Schedule date {schedule_date_id} not found")
    return schedule_date

def find_schedule_date(
    db: Session,
    schedule_id: int,
    on_date: date,
    lock: bool = False
) -> Optional[DoctorScheduleDate]:
    """
    Get the schedule date for a (schedule, date) pair, if materialized.
    
    Args:
        lock: Take a row lock (SELECT ... FOR UPDATE) until the transaction ends
    """
    query = db.query(DoctorScheduleDate).filter(
        DoctorScheduleDate.schedule_id == schedule_id,
        DoctorScheduleDate.date == on_date
    )
    if lock:
        query = query.with_for_update(of=DoctorScheduleDate)
    return query.first()

def _check_work_day(schedule: DoctorSchedule, on_date: date) -> None:
    if WorkDay.for_date(on_date) != schedule.work_day:
        raise ValidationError(
            f"{on_date.isoformat()} is a {WorkDay.for_date(on_date).value}, "
            f"schedule {schedule.id} runs on {schedule.work_day.value}"
        )

def materialize_date(
    db: Session,
    schedule_id: int,
    on_date: date,
    status: ScheduleDateStatus = ScheduleDateStatus.ACTIVE,
    notes: Optional[str] = None,
    update: bool = False
) -> DoctorScheduleDate:
    """
    Instantiate a schedule on one calendar date, or change an existing instance.
    
    Args:
        db: Database session
        schedule_id: Parent schedule
        on_date: Calendar date; must fall on the schedule's work day
        status: Status of the date
        notes: Optional notes (kept as they are on update when None)
        update: Update the existing instance instead of failing
        
    Returns:
        DoctorScheduleDate: The created or updated instance
        
    Raises:
        NotFoundError: If the schedule does not exist
        ValidationError: If the date is on another day of the week
        ConflictError: If the date already exists and update is False
    """
    schedule = get_schedule(db, schedule_id)
    _check_work_day(schedule, on_date)
    status = ScheduleDateStatus(status)

    existing = find_schedule_date(db, schedule_id, on_date)
    if existing is not None:
        if not update:
            logger.warning(f"Schedule {schedule_id} already materialized on {on_date}")
            raise ConflictError(f"Schedule {schedule_id} already has an entry for {on_date.isoformat()}")
        existing.status = status
        if notes is not None:
            existing.notes = notes
        existing.updated_at = datetime.now(timezone.utc)
        commit_changes(db)
        db.refresh(existing)
        logger.info(f"Schedule date {existing.id} set to {status.value}")
        return existing

    schedule_date = DoctorScheduleDate(schedule_id=schedule_id, date=on_date, status=status, notes=notes)
    db.add(schedule_date)
    # uq_schedule_date catches a concurrent materialization of the same pair
    commit_changes(db, f"Schedule {schedule_id} already has an entry for {on_date.isoformat()}")
    db.refresh(schedule_date)
    logger.info(f"Schedule {schedule_id} materialized on {on_date} as {status.value}")
    return schedule_date

def materialize_range(
    db: Session,
    schedule_id: int,
    start_date: date,
    end_date: date,
    status: ScheduleDateStatus = ScheduleDateStatus.ACTIVE
) -> List[DoctorScheduleDate]:
    """
    Instantiate a schedule on every matching weekday in [start_date, end_date].
    
    Dates that are already materialized are left untouched and not returned.
    
    Raises:
        NotFoundError: If the schedule does not exist
        ValidationError: If the range is inverted
    """
    schedule = get_schedule(db, schedule_id)
    if start_date > end_date:
        raise ValidationError("start_date must not be after end_date")

    existing = {
        row.date for row in db.query(DoctorScheduleDate.date).filter(
            DoctorScheduleDate.schedule_id == schedule_id,
            DoctorScheduleDate.date.between(start_date, end_date)
        )
    }
    weekday = list(WorkDay).index(schedule.work_day)
    current = start_date + timedelta(days=(weekday - start_date.weekday()) % 7)
    created = []
    while current <= end_date:
        if current not in existing:
            schedule_date = DoctorScheduleDate(schedule_id=schedule_id, date=current, status=ScheduleDateStatus(status))
            db.add(schedule_date)
            created.append(schedule_date)
        current += timedelta(days=7)

    commit_changes(db, f"Schedule {schedule_id} was materialized concurrently")
    for schedule_date in created:
        db.refresh(schedule_date)
    logger.info(f"Schedule {schedule_id} materialized on {len(created)} dates between {start_date} and {end_date}")
    return created

def list_schedule_dates(
    db: Session,
    schedule_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> List[DoctorScheduleDate]:
    get_schedule(db, schedule_id)
    query = db.query(DoctorScheduleDate).filter(DoctorScheduleDate.schedule_id == schedule_id)
    if start_date is not None:
        query = query.filter(DoctorScheduleDate.date >= start_date)
    if end_date is not None:
        query = query.filter(DoctorScheduleDate.date <= end_date)
    return query.order_by(DoctorScheduleDate.date).all()

def find_active_dates(db: Session, doctor_id: int, start_date: date, end_date: date) -> List[DoctorScheduleDate]:
    """List a doctor's ACTIVE schedule dates in a date range, in date order."""
    return db.query(DoctorScheduleDate).join(
        DoctorSchedule, DoctorScheduleDate.schedule_id == DoctorSchedule.id
    ).filter(
        DoctorSchedule.doctor_id == doctor_id,
        DoctorScheduleDate.date.between(start_date, end_date),
        DoctorScheduleDate.status == ScheduleDateStatus.ACTIVE
    ).order_by(DoctorScheduleDate.date, DoctorSchedule.start_time).all()

def search_schedule_dates_by_notes(db: Session, text: str) -> List[DoctorScheduleDate]:
    return db.query(DoctorScheduleDate).filter(
        contains(DoctorScheduleDate.notes, text)
    ).order_by(DoctorScheduleDate.date).all()

def count_non_cancelled_appointments(db: Session, schedule_date_id: int) -> int:
    """Count the appointments holding a slot on a schedule date."""
    return db.query(func.count(Appointment.id)).filter(
        Appointment.schedule_date_id == schedule_date_id,
        Appointment.status != AppointmentStatus.CANCELLED
    ).scalar()

def list_available_slots(db: Session, doctor_id: int, on_date: date) -> List[AvailableSlot]:
    """
    List a doctor's bookable schedules on a date with their remaining capacity.
    
    Only ACTIVE schedule dates with at least one free slot are returned,
    ordered by start time.
    
    Raises:
        NotFoundError: If the doctor does not exist
    """
    get_doctor(db, doctor_id)

    booked = db.query(
        Appointment.schedule_date_id.label("schedule_date_id"),
        func.count(Appointment.id).label("booked")
    ).filter(
        Appointment.status != AppointmentStatus.CANCELLED
    ).group_by(Appointment.schedule_date_id).subquery()

    rows = db.query(
        DoctorScheduleDate, DoctorSchedule, func.coalesce(booked.c.booked, 0)
    ).join(
        DoctorSchedule, DoctorScheduleDate.schedule_id == DoctorSchedule.id
    ).outerjoin(
        booked, booked.c.schedule_date_id == DoctorScheduleDate.id
    ).filter(
        DoctorSchedule.doctor_id == doctor_id,
        DoctorScheduleDate.date == on_date,
        DoctorScheduleDate.status == ScheduleDateStatus.ACTIVE
    ).order_by(DoctorSchedule.start_time).all()

    slots = []
    for schedule_date, schedule, booked_count in rows:
        remaining = schedule.max_appointments - booked_count
        if remaining > 0:
            slots.append(AvailableSlot(
                schedule_id=schedule.id,
                schedule_date_id=schedule_date.id,
                doctor_id=doctor_id,
                date=schedule_date.date,
                work_day=schedule.work_day,
                start_time=schedule.start_time,
                end_time=schedule.end_time,
                break_start=schedule.break_start,
                break_end=schedule.break_end,
                max_appointments=schedule.max_appointments,
                booked=booked_count,
                remaining=remaining
            ))
    return slots

def is_doctor_available(db: Session, doctor_id: int, on_date: date) -> bool:
    """Whether the doctor has at least one free slot on the date."""
    return bool(list_available_slots(db, doctor_id, on_date))
