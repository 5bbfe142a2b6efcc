"""
Patient Schemas - Pydantic models for patient registration, updates and responses.
"""
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field

from ..reference.models import AllergySeverity
from ..reference.schemas import AllergyResponse
from ..users.schemas import PersonCreate, UserResponse
from .models import Gender, BloodType

class PatientCreate(PersonCreate):
    """
    Patient Registration Schema
    
    Fields (in addition to the person fields):
    - birth_date: Date of birth (optional)
    - gender: Gender (defaults to NOT_SPECIFIED)
    - blood_type: Blood type (optional)
    """
    birth_date: Optional[date] = None
    gender: Gender = Gender.NOT_SPECIFIED
    blood_type: Optional[BloodType] = None

    class Config:
        json_schema_extra = {
            "example": {
                "document_number": "12345678",
                "email": "juan.perez@example.com",
                "first_name": "Juan",
                "last_name": "Perez",
                "phone": "555-1234",
                "password": "Password123!",
                "birth_date": "1990-04-12",
                "gender": "MALE",
                "blood_type": "O_POSITIVE"
            }
        }

class PatientUpdate(BaseModel):
    """
    Patient Update Schema - Only the fields present are changed
    """
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    blood_type: Optional[BloodType] = None

class PatientResponse(BaseModel):
    """
    Patient Response Schema - Used when returning patient data
    """
    id: int
    user: UserResponse
    birth_date: Optional[date] = None
    gender: Gender
    blood_type: Optional[BloodType] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class PatientAllergyCreate(BaseModel):
    """
    Schema for linking an allergy to a patient

    The catalogue severity is used when severity is omitted.
    """
    allergy_id: int
    severity: Optional[AllergySeverity] = None
    notes: Optional[str] = Field(None, max_length=500)
    diagnosed_on: Optional[date] = None

class PatientAllergyResponse(BaseModel):
    id: int
    patient_id: int
    allergy: AllergyResponse
    severity: AllergySeverity
    notes: Optional[str] = None
    diagnosed_on: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
