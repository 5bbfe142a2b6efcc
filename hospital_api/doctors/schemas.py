"""
Doctor Schemas - Pydantic models for doctor registration and responses.
"""
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, Field

from ..users.schemas import PersonCreate, UserResponse
from .models import ExperienceLevel

class SpecialtyLink(BaseModel):
    """
    A specialty the doctor is certified in
    
    Fields:
    - specialty_id: ID of an existing specialty
    - experience_level: Seniority in the specialty (defaults to INTERN)
    - certification_date: Defaults to the registration date
    """
    specialty_id: int
    experience_level: ExperienceLevel = ExperienceLevel.INTERN
    certification_date: Optional[date] = None

class DoctorCreate(PersonCreate):
    """
    Doctor Registration Schema
    
    Fields (in addition to the person fields):
    - license_number: Unique professional license number
    - specialties: Specialties to link at registration
    """
    license_number: str = Field(..., min_length=1)
    specialties: List[SpecialtyLink] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "document_number": "1020304050",
                "email": "ana.torres@example.com",
                "first_name": "Ana",
                "last_name": "Torres",
                "phone": "555-1234",
                "password": "Password123!",
                "license_number": "LIC12345",
                "specialties": [{"specialty_id": 1, "experience_level": "SENIOR"}]
            }
        }

class DoctorSpecialtyResponse(BaseModel):
    id: int
    specialty_id: int
    experience_level: ExperienceLevel
    certification_date: date

    class Config:
        from_attributes = True

class DoctorResponse(BaseModel):
    """
    Doctor Response Schema - Used when returning doctor data
    """
    id: int
    user: UserResponse
    license_number: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True
