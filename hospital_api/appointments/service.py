"""
Appointment Service - Capacity-checked booking and status transitions.

Booking claims a numbered slot on the schedule date. The schedule date row is
locked while the slot is chosen, and the unique (schedule_date_id, slot_number)
constraint rejects a slot claimed by a concurrent booking, so two requests can
never both take the last slot.
"""
from typing import Callable, Dict, Iterable, List, Optional
from datetime import date, datetime, timezone
import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.persistence import commit_changes
from ..doctors.service import get_doctor, doctor_has_specialty
from ..exceptions import (
    NotFoundError,
    ValidationError,
    ConflictError,
    CapacityExceededError,
)
from ..patients.service import get_patient
from ..reference.service import get_specialty
from ..schedules.models import DoctorSchedule, DoctorScheduleDate, WorkDay
from ..schedules.service import get_schedule, find_schedule_date
from .models import Appointment, AppointmentStatus
from .schemas import AppointmentCompleted

# Set up logging
logger = logging.getLogger(__name__)

CompletionListener = Callable[[Session, AppointmentCompleted], None]

ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

def get_appointment(db: Session, appointment_id: int, lock: bool = False) -> Appointment:
    """
    Get an appointment by ID.
    
    Args:
        lock: Take a row lock until the transaction ends
        
    Raises:
        NotFoundError: If the appointment does not exist
    """
    query = db.query(Appointment).filter(Appointment.id == appointment_id)
    if lock:
        query = query.with_for_update(of=Appointment)
    appointment = query.first()
    if not appointment:
        raise NotFoundError(f"Appointment {appointment_id} not found")
    return appointment

def _is_slot_collision(error: IntegrityError) -> bool:
    message = str(error.orig)
    return "uq_appointment_slot" in message or "slot_number" in message

def _claim_slot(
    db: Session,
    schedule_id: int,
    on_date: date,
    patient_id: int,
    specialty_id: int,
    reason: Optional[str]
) -> Appointment:
    """
    Book one slot on a (schedule, date) pair inside a single transaction.

    Raises:
        NotFoundError: If the schedule is not materialized on the date
        CapacityExceededError: If the date is not bookable or is full
        ConflictError: If the patient already holds a slot on the date
    """
    attempt = 0
    while True:
        attempt += 1
        schedule_date = find_schedule_date(db, schedule_id, on_date, lock=True)
        if schedule_date is None:
            db.rollback()
            raise NotFoundError(f"Schedule {schedule_id} has no entry for {on_date.isoformat()}")
        if not schedule_date.is_bookable:
            db.rollback()
            raise CapacityExceededError(
                f"Schedule {schedule_id} is {schedule_date.status.value} on {on_date.isoformat()}"
            )

        capacity = schedule_date.max_appointments
        held = db.query(Appointment.slot_number, Appointment.patient_id).filter(
            Appointment.schedule_date_id == schedule_date.id,
            Appointment.status != AppointmentStatus.CANCELLED
        ).all()

        if any(holder == patient_id for _, holder in held):
            db.rollback()
            raise ConflictError(
                f"Patient {patient_id} already has an appointment on schedule {schedule_id} for {on_date.isoformat()}"
            )

        taken = {slot for slot, _ in held}
        slot_number = next((n for n in range(1, capacity + 1) if n not in taken), None)
        if len(held) >= capacity or slot_number is None:
            db.rollback()
            logger.warning(f"Schedule {schedule_id} is full on {on_date} ({len(held)}/{capacity})")
            raise CapacityExceededError(
                f"No slots remain on schedule {schedule_id} for {on_date.isoformat()}"
            )

        now = datetime.now(timezone.utc)
        appointment = Appointment(
            patient_id=patient_id,
            schedule_date_id=schedule_date.id,
            specialty_id=specialty_id,
            slot_number=slot_number,
            status=AppointmentStatus.SCHEDULED,
            reason=reason,
            created_at=now,
            updated_at=now
        )
        db.add(appointment)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            # Every lost race means a concurrent booking took a slot,
            # so after capacity + 1 attempts the date must be full
            if not _is_slot_collision(e) or attempt > capacity:
                raise
            logger.info(f"Slot {slot_number} on schedule date {schedule_date.id} taken concurrently, retrying")
            continue
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while booking schedule {schedule_id} on {on_date}: {str(e)}")
            raise

        db.refresh(appointment)
        return appointment

def book_appointment(
    db: Session,
    patient_id: int,
    specialty_id: int,
    on_date: date,
    schedule_id: Optional[int] = None,
    doctor_id: Optional[int] = None,
    reason: Optional[str] = None
) -> Appointment:
    """
    Book an appointment on a schedule, or on any schedule of a doctor.
    
    Capacity is re-checked at write time: the count of non-cancelled
    appointments on the schedule date must be below max_appointments.
    
    Args:
        db: Database session
        patient_id: The patient booking the visit
        specialty_id: Specialty the visit is for
        on_date: Date of the visit
        schedule_id: Book on this schedule (exclusive with doctor_id)
        doctor_id: Try this doctor's schedules on the date in start-time order
        reason: Reason for the visit
        
    Returns:
        Appointment: The new appointment, in state SCHEDULED
        
    Raises:
        ValidationError: If neither or both of schedule_id/doctor_id are given,
            an account is inactive, or the doctor lacks the specialty
        NotFoundError: If the patient, specialty, schedule or doctor is missing,
            or no schedule is materialized on the date
        CapacityExceededError: If no slot remains
        ConflictError: If the patient already holds a slot on the schedule date
    """
    if (schedule_id is None) == (doctor_id is None):
        raise ValidationError("Provide exactly one of schedule_id or doctor_id")

    patient = get_patient(db, patient_id)
    if not patient.user.is_active:
        raise ValidationError(f"Patient {patient_id} account is inactive")
    get_specialty(db, specialty_id)

    if schedule_id is not None:
        schedule = get_schedule(db, schedule_id)
        doctor = get_doctor(db, schedule.doctor_id)
        candidate_ids = [schedule.id]
    else:
        doctor = get_doctor(db, doctor_id)
        candidate_ids = [
            row_id for (row_id,) in db.query(DoctorSchedule.id).filter(
                DoctorSchedule.doctor_id == doctor.id,
                DoctorSchedule.work_day == WorkDay.for_date(on_date)
            ).order_by(DoctorSchedule.start_time)
        ]

    if not doctor.user.is_active:
        raise ValidationError(f"Doctor {doctor.id} account is inactive")
    if not doctor_has_specialty(db, doctor.id, specialty_id):
        raise ValidationError(f"Doctor {doctor.id} does not practice specialty {specialty_id}")

    materialized = {
        row_id for (row_id,) in db.query(DoctorScheduleDate.schedule_id).filter(
            DoctorScheduleDate.schedule_id.in_(candidate_ids),
            DoctorScheduleDate.date == on_date
        )
    } if candidate_ids else set()
    candidate_ids = [row_id for row_id in candidate_ids if row_id in materialized]
    if not candidate_ids:
        raise NotFoundError(f"Doctor {doctor.id} has no schedule entry for {on_date.isoformat()}")

    last_error = None
    for candidate_id in candidate_ids:
        try:
            appointment = _claim_slot(db, candidate_id, on_date, patient_id, specialty_id, reason)
        except CapacityExceededError as e:
            last_error = e
            continue
        logger.info(
            f"Appointment {appointment.id} booked for patient {patient_id} on schedule {candidate_id} "
            f"{on_date} slot {appointment.slot_number}"
        )
        return appointment

    raise last_error

def _apply_transition(db: Session, appointment: Appointment, status: AppointmentStatus) -> None:
    try:
        appointment.update_status(status)
    except Exception:
        db.rollback()
        logger.warning(f"Appointment {appointment.id}: refused transition {appointment.status.value} -> {status.value}")
        raise

def confirm_appointment(db: Session, appointment_id: int) -> Appointment:
    """
    Confirm a scheduled appointment.
    
    Raises:
        NotFoundError: If the appointment does not exist
        InvalidStateTransitionError: If it is not SCHEDULED
    """
    appointment = get_appointment(db, appointment_id, lock=True)
    _apply_transition(db, appointment, AppointmentStatus.CONFIRMED)
    commit_changes(db)
    db.refresh(appointment)
    logger.info(f"Appointment {appointment_id} confirmed")
    return appointment

def cancel_appointment(db: Session, appointment_id: int, reason: Optional[str] = None) -> Appointment:
    """
    Cancel an appointment, releasing its slot.
    
    Args:
        db: Database session
        appointment_id: ID of the appointment
        reason: Optional cancellation reason
        
    Raises:
        NotFoundError: If the appointment does not exist
        InvalidStateTransitionError: If the appointment is already terminal
    """
    appointment = get_appointment(db, appointment_id, lock=True)
    _apply_transition(db, appointment, AppointmentStatus.CANCELLED)
    appointment.cancellation_reason = reason
    commit_changes(db)
    db.refresh(appointment)
    logger.info(f"Appointment {appointment_id} cancelled" + (f": {reason}" if reason else ""))
    return appointment

def mark_no_show(db: Session, appointment_id: int) -> Appointment:
    """
    Record that the patient did not attend.
    
    Raises:
        NotFoundError: If the appointment does not exist
        InvalidStateTransitionError: If the appointment is already terminal
    """
    appointment = get_appointment(db, appointment_id, lock=True)
    _apply_transition(db, appointment, AppointmentStatus.NO_SHOW)
    commit_changes(db)
    db.refresh(appointment)
    logger.info(f"Appointment {appointment_id} marked as no-show")
    return appointment

def validate_effectiveness(effectiveness) -> int:
    """
    Check an outcome score.
    
    Raises:
        ValidationError: If the score is not an integer in [0, 100]
    """
    if isinstance(effectiveness, bool) or not isinstance(effectiveness, int):
        raise ValidationError("effectiveness must be an integer between 0 and 100")
    if not 0 <= effectiveness <= 100:
        raise ValidationError(f"effectiveness must be between 0 and 100, got {effectiveness}")
    return effectiveness

def complete_appointment(
    db: Session,
    appointment_id: int,
    effectiveness: int,
    notes: Optional[str] = None,
    listeners: Iterable[CompletionListener] = ()
) -> Appointment:
    """
    Complete an appointment and record its outcome score.
    
    Each listener receives the AppointmentCompleted event inside the same
    transaction; if one raises, the completion is rolled back too.
    
    Args:
        db: Database session
        appointment_id: ID of the appointment
        effectiveness: Outcome score in [0, 100]
        notes: Optional clinical notes handed to listeners
        listeners: Callables taking (db, event)
        
    Returns:
        Appointment: The completed appointment
        
    Raises:
        ValidationError: If effectiveness is out of range
        NotFoundError: If the appointment does not exist
        InvalidStateTransitionError: If the appointment is already terminal
    """
    validate_effectiveness(effectiveness)
    appointment = get_appointment(db, appointment_id, lock=True)
    _apply_transition(db, appointment, AppointmentStatus.COMPLETED)
    appointment.effectiveness = effectiveness

    event = AppointmentCompleted(
        appointment_id=appointment.id,
        patient_id=appointment.patient_id,
        doctor_id=appointment.doctor_id,
        effectiveness=effectiveness,
        timestamp=appointment.updated_at,
        notes=notes
    )
    try:
        for listener in listeners:
            listener(db, event)
    except Exception:
        db.rollback()
        logger.error(f"Completion listener failed for appointment {appointment_id}; completion rolled back")
        raise

    commit_changes(db)
    db.refresh(appointment)
    logger.info(f"Appointment {appointment_id} completed with effectiveness {effectiveness}")
    return appointment

def query_by_date_and_filters(
    db: Session,
    on_date: date,
    doctor_id: Optional[int] = None,
    specialty_id: Optional[int] = None,
    status: Optional[AppointmentStatus] = None
) -> List[Appointment]:
    """
    List the appointments on a date; None filters are ignored.
    """
    query = db.query(Appointment).join(
        DoctorScheduleDate, Appointment.schedule_date_id == DoctorScheduleDate.id
    ).join(
        DoctorSchedule, DoctorScheduleDate.schedule_id == DoctorSchedule.id
    ).filter(DoctorScheduleDate.date == on_date)
    if doctor_id is not None:
        query = query.filter(DoctorSchedule.doctor_id == doctor_id)
    if specialty_id is not None:
        query = query.filter(Appointment.specialty_id == specialty_id)
    if status is not None:
        query = query.filter(Appointment.status == status)
    return query.order_by(DoctorSchedule.start_time, Appointment.slot_number, Appointment.id).all()

def list_patient_appointments(
    db: Session,
    patient_id: int,
    status: Optional[AppointmentStatus] = None
) -> List[Appointment]:
    get_patient(db, patient_id)
    query = db.query(Appointment).join(
        DoctorScheduleDate, Appointment.schedule_date_id == DoctorScheduleDate.id
    ).filter(Appointment.patient_id == patient_id)
    if status is not None:
        query = query.filter(Appointment.status == status)
    return query.order_by(DoctorScheduleDate.date.desc(), Appointment.id.desc()).all()

def list_upcoming_for_patient(db: Session, patient_id: int, today: Optional[date] = None) -> List[Appointment]:
    """List a patient's scheduled or confirmed appointments from today on, soonest first."""
    get_patient(db, patient_id)
    today = today or date.today()
    return db.query(Appointment).join(
        DoctorScheduleDate, Appointment.schedule_date_id == DoctorScheduleDate.id
    ).join(
        DoctorSchedule, DoctorScheduleDate.schedule_id == DoctorSchedule.id
    ).filter(
        Appointment.patient_id == patient_id,
        Appointment.status.in_(ACTIVE_STATUSES),
        DoctorScheduleDate.date >= today
    ).order_by(DoctorScheduleDate.date, DoctorSchedule.start_time).all()

def count_appointments_by_status(db: Session, start_date: date, end_date: date) -> Dict[AppointmentStatus, int]:
    """
    Count appointments per status for schedule dates in [start_date, end_date].
    
    Raises:
        ValidationError: If the range is inverted
    """
    if start_date > end_date:
        raise ValidationError("start_date must not be after end_date")
    rows = db.query(Appointment.status, func.count(Appointment.id)).join(
        DoctorScheduleDate, Appointment.schedule_date_id == DoctorScheduleDate.id
    ).filter(
        DoctorScheduleDate.date.between(start_date, end_date)
    ).group_by(Appointment.status).all()
    counts = {status: 0 for status in AppointmentStatus}
    for status, count in rows:
        counts[AppointmentStatus(status)] = count
    return counts
