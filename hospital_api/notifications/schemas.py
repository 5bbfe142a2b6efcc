"""
Notification Schemas - Pydantic models for sending and reading notifications.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from .models import NotificationType

class NotificationCreate(BaseModel):
    """
    Notification Create Schema
    
    Fields:
    - title / message: Content
    - type: Kind of notification
    - user_ids: Recipients (at least one)
    - scheduled_at: When it should be shown (optional)
    """
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.GENERAL
    user_ids: List[int] = Field(..., min_length=1)
    scheduled_at: Optional[datetime] = None

class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: NotificationType
    scheduled_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class UserNotificationResponse(BaseModel):
    id: int
    user_id: int
    notification: NotificationResponse
    is_read: bool
    read_at: Optional[datetime] = None
    delivered_at: datetime

    class Config:
        from_attributes = True

class UnreadCount(BaseModel):
    user_id: int
    unread: int
