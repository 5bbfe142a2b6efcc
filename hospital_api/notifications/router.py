"""
Notification Router - API endpoints for sending and reading notifications.
"""
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from .schemas import NotificationCreate, NotificationResponse, UserNotificationResponse, UnreadCount
from . import service

router = APIRouter()

@router.post("/", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def send_notification(data: NotificationCreate, db: Session = Depends(get_db)):
    return service.send_notification(
        db, data.title, data.message, data.type, data.user_ids, scheduled_at=data.scheduled_at
    )

@router.get("/user/{user_id}", response_model=List[UserNotificationResponse])
def list_user_notifications(
    user_id: int,
    unread_only: bool = Query(False),
    db: Session = Depends(get_db)
):
    return service.list_user_notifications(db, user_id, unread_only=unread_only)

@router.get("/user/{user_id}/unread-count", response_model=UnreadCount)
def count_unread(user_id: int, db: Session = Depends(get_db)):
    return UnreadCount(user_id=user_id, unread=service.count_unread(db, user_id))

@router.post("/user/{user_id}/{user_notification_id}/read", response_model=UserNotificationResponse)
def mark_as_read(user_id: int, user_notification_id: int, db: Session = Depends(get_db)):
    return service.mark_as_read(db, user_id, user_notification_id)

@router.delete("/user/{user_id}/{user_notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_notification(user_id: int, user_notification_id: int, db: Session = Depends(get_db)):
    service.delete_user_notification(db, user_id, user_notification_id)
