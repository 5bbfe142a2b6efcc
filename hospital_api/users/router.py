"""
User Router - API endpoints for base identity records.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from .models import UserRole
from .schemas import UserResponse, UserStatusUpdate
from . import service

router = APIRouter()

@router.get("/", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    is_active: Optional[bool] = Query(None, description="Filter by activation flag"),
    name: Optional[str] = Query(None, description="Search by name or email"),
    db: Session = Depends(get_db)
):
    return service.list_users(db, role, is_active, name)

@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return service.get_user(db, user_id)

@router.patch("/{user_id}/status", response_model=UserResponse)
def update_user_status(user_id: int, data: UserStatusUpdate, db: Session = Depends(get_db)):
    """
    Activate or deactivate a user account
    """
    return service.update_user_status(db, user_id, data.is_active)
