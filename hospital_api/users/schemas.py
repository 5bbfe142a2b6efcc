"""
User Schemas - Pydantic models shared by the person registry.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from ..reference.schemas import AddressCreate
from .models import UserRole

class PersonCreate(BaseModel):
    """
    Base registration data shared by patients and doctors
    
    Fields:
    - document_number: National identity document number
    - email: Email address (unique)
    - first_name / last_name: Person's name
    - phone: Contact number (optional)
    - password: Plain password, stored hashed
    - address: Optional new address to attach
    """
    document_number: str = Field(..., min_length=1)
    email: EmailStr
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    password: str = Field(..., min_length=8)
    address: Optional[AddressCreate] = None

class UserResponse(BaseModel):
    """
    User Response Schema - Used when returning user data
    """
    id: int
    document_number: str
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    address_id: Optional[int] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class UserStatusUpdate(BaseModel):
    """Schema for activating or deactivating a user"""
    is_active: bool

    class Config:
        json_schema_extra = {
            "example": {
                "is_active": False
            }
        }
