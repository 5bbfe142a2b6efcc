"""
Notification Service - Fan-out of notifications and per-user read state.

The completion listener only flushes, so it joins the transaction that
completes the appointment. The booked and cancelled hooks run after the
appointment change has committed and commit on their own; the router logs
and rolls back their failures without undoing the appointment change.
"""
from typing import Iterable, List, Optional
from datetime import datetime, timezone
import logging
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..appointments.models import Appointment
from ..appointments.schemas import AppointmentCompleted
from ..core.persistence import commit_changes
from ..doctors.service import get_doctor
from ..exceptions import NotFoundError, ValidationError
from ..patients.service import get_patient
from ..users.service import get_user
from .models import Notification, NotificationType, UserNotification

# Set up logging
logger = logging.getLogger(__name__)

def _fan_out(
    db: Session,
    title: str,
    message: str,
    type: NotificationType,
    user_ids: Iterable[int],
    scheduled_at: Optional[datetime] = None
) -> Notification:
    user_ids = list(dict.fromkeys(user_ids))
    if not user_ids:
        raise ValidationError("A notification needs at least one recipient")
    for user_id in user_ids:
        get_user(db, user_id)

    notification = Notification(
        title=title,
        message=message,
        type=NotificationType(type),
        scheduled_at=scheduled_at
    )
    db.add(notification)
    db.flush()
    db.add_all([
        UserNotification(user_id=user_id, notification_id=notification.id)
        for user_id in user_ids
    ])
    db.flush()
    return notification

def send_notification(
    db: Session,
    title: str,
    message: str,
    type: NotificationType,
    user_ids: Iterable[int],
    scheduled_at: Optional[datetime] = None
) -> Notification:
    """
    Create a notification and deliver it to each user.
    
    Args:
        db: Database session
        title: Short title
        message: Body of the notification
        type: Kind of notification
        user_ids: Recipients; duplicates are delivered once
        scheduled_at: When it should be shown
        
    Returns:
        Notification: The created notification
        
    Raises:
        ValidationError: If there are no recipients
        NotFoundError: If a recipient does not exist; nothing is delivered
    """
    try:
        notification = _fan_out(db, title, message, type, user_ids, scheduled_at)
    except (NotFoundError, ValidationError):
        db.rollback()
        raise
    commit_changes(db)
    db.refresh(notification)
    logger.info(f"Notification {notification.id} sent")
    return notification

def _get_user_notification(db: Session, user_id: int, user_notification_id: int) -> UserNotification:
    entry = db.query(UserNotification).filter(
        UserNotification.id == user_notification_id,
        UserNotification.user_id == user_id,
        UserNotification.is_deleted.is_(False)
    ).first()
    if not entry:
        raise NotFoundError(f"Notification {user_notification_id} not found for user {user_id}")
    return entry

def list_user_notifications(db: Session, user_id: int, unread_only: bool = False) -> List[UserNotification]:
    """List a user's notifications, newest first; deleted entries are hidden."""
    get_user(db, user_id)
    query = db.query(UserNotification).filter(
        UserNotification.user_id == user_id,
        UserNotification.is_deleted.is_(False)
    )
    if unread_only:
        query = query.filter(UserNotification.is_read.is_(False))
    return query.order_by(UserNotification.delivered_at.desc(), UserNotification.id.desc()).all()

def mark_as_read(db: Session, user_id: int, user_notification_id: int) -> UserNotification:
    """
    Mark a notification as read; reading it again keeps the first read time.
    
    Raises:
        NotFoundError: If the entry does not exist, belongs to another user or was deleted
    """
    entry = _get_user_notification(db, user_id, user_notification_id)
    if not entry.is_read:
        entry.is_read = True
        entry.read_at = datetime.now(timezone.utc)
        commit_changes(db)
        db.refresh(entry)
    return entry

def delete_user_notification(db: Session, user_id: int, user_notification_id: int) -> None:
    """
    Hide a notification from a user.
    
    Raises:
        NotFoundError: If the entry does not exist, belongs to another user or was deleted
    """
    entry = _get_user_notification(db, user_id, user_notification_id)
    entry.is_deleted = True
    commit_changes(db)
    logger.info(f"Notification {user_notification_id} deleted by user {user_id}")

def count_unread(db: Session, user_id: int) -> int:
    get_user(db, user_id)
    return db.query(func.count(UserNotification.id)).filter(
        UserNotification.user_id == user_id,
        UserNotification.is_read.is_(False),
        UserNotification.is_deleted.is_(False)
    ).scalar()

def _appointment_recipients(db: Session, patient_id: int, doctor_id: int) -> List[int]:
    return [get_patient(db, patient_id).user_id, get_doctor(db, doctor_id).user_id]

def notify_appointment_booked(db: Session, appointment: Appointment) -> Notification:
    """Tell the patient and the doctor about a new appointment."""
    notification = _fan_out(
        db,
        "Appointment booked",
        f"Appointment {appointment.id} is booked for {appointment.appointment_date.isoformat()} "
        f"(slot {appointment.slot_number}).",
        NotificationType.APPOINTMENT,
        _appointment_recipients(db, appointment.patient_id, appointment.doctor_id)
    )
    commit_changes(db)
    return notification

def notify_appointment_cancelled(db: Session, appointment: Appointment) -> Notification:
    """Tell the patient and the doctor that an appointment was cancelled."""
    message = f"Appointment {appointment.id} on {appointment.appointment_date.isoformat()} was cancelled."
    if appointment.cancellation_reason:
        message += f" Reason: {appointment.cancellation_reason}"
    notification = _fan_out(
        db,
        "Appointment cancelled",
        message,
        NotificationType.APPOINTMENT,
        _appointment_recipients(db, appointment.patient_id, appointment.doctor_id)
    )
    commit_changes(db)
    return notification

def notify_appointment_completed(db: Session, event: AppointmentCompleted) -> Notification:
    """
    Completion listener: tell the patient the appointment is complete.
    
    Only flushes; the caller commits together with the completion.
    """
    return _fan_out(
        db,
        "Appointment completed",
        f"Appointment {event.appointment_id} was completed.",
        NotificationType.APPOINTMENT,
        [get_patient(db, event.patient_id).user_id]
    )
