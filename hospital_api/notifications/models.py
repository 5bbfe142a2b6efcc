"""
Notification Models - Messages fanned out to users, with per-user read state.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
from ..database import Base

class NotificationType(str, enum.Enum):
    """Enum for notification types"""
    GENERAL = "GENERAL"
    APPOINTMENT = "APPOINTMENT"
    REMINDER = "REMINDER"
    SYSTEM = "SYSTEM"

class Notification(Base):
    """
    Notification Model - The message itself
    
    Fields:
    - id: Primary key
    - title: Short title
    - message: Body of the notification
    - type: Kind of notification
    - scheduled_at: When it should be shown (immediately if NULL)
    - created_at: When it was created
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False, default=NotificationType.GENERAL)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Notification(id={self.id}, type='{self.type}', title='{self.title}')>"


class UserNotification(Base):
    """
    User Notification Model - Delivery of a notification to one user
    
    Fields:
    - id: Primary key
    - user_id: Recipient
    - notification_id: The delivered notification
    - is_read / read_at: Read state
    - is_deleted: Hidden by the recipient (soft delete)
    - delivered_at: When the notification was delivered
    """
    __tablename__ = "user_notifications"
    __table_args__ = (
        UniqueConstraint("user_id", "notification_id", name="uq_user_notification"),
        Index("ix_user_notifications_user_read", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    notification = relationship("Notification", lazy="joined")

    def __repr__(self):
        return f"<UserNotification(id={self.id}, user_id={self.user_id}, read={self.is_read})>"
