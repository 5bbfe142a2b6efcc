"""
User Service - Lookups and activation management for base identity records.
"""
from typing import List, Optional
import logging
from datetime import datetime, timezone
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.persistence import commit_changes, contains
from ..core.security import hash_password
from ..exceptions import NotFoundError, ConflictError
from ..reference.service import build_address
from .models import User, UserRole
from .schemas import PersonCreate

# Set up logging
logger = logging.getLogger(__name__)

def get_user(db: Session, user_id: int) -> User:
    """
    Get a user by ID.
    
    Raises:
        NotFoundError: If the user does not exist
    """
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user

def list_users(
    db: Session,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    name: Optional[str] = None
) -> List[User]:
    """
    List users, optionally filtered by role, activation flag and a
    case-insensitive name/email fragment.
    """
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    if name:
        query = query.filter(or_(
            contains(User.first_name, name),
            contains(User.last_name, name),
            contains(User.email, name)
        ))
    return query.order_by(User.id).all()

def update_user_status(db: Session, user_id: int, is_active: bool) -> User:
    """
    Activate or deactivate a user account.
    
    Args:
        db: Database session
        user_id: ID of the user
        is_active: New activation flag
        
    Returns:
        User: The updated user
        
    Raises:
        NotFoundError: If the user does not exist
    """
    user = get_user(db, user_id)
    user.is_active = is_active
    user.updated_at = datetime.now(timezone.utc)
    commit_changes(db)
    db.refresh(user)
    logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
    return user

def ensure_identity_available(db: Session, email: str, document_number: str) -> None:
    """
    Reject registration data that clashes with an existing user.
    
    Raises:
        ConflictError: If the email or document number is already registered
    """
    if db.query(User).filter(func.lower(User.email) == email.lower()).first():
        logger.warning(f"Registration refused: email {email} already registered")
        raise ConflictError("Email already registered")
    if db.query(User).filter(User.document_number == document_number).first():
        logger.warning(f"Registration refused: document {document_number} already registered")
        raise ConflictError("Document number already registered")

def build_user(db: Session, data: PersonCreate, role: UserRole) -> User:
    """
    Build an unsaved User (and its address) from registration data.

    The caller adds the profile record and commits, so identity and profile
    are persisted in one transaction.
    """
    ensure_identity_available(db, data.email, data.document_number)
    user = User(
        document_number=data.document_number,
        email=data.email,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        password_hash=hash_password(data.password),
        role=role,
        is_active=True
    )
    if data.address is not None:
        user.address = build_address(db, data.address)
    return user
