"""
Reference Schemas - Pydantic models for lookup table input and output.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from .models import AllergySeverity

class CountryCreate(BaseModel):
    """Schema for creating a country"""
    name: str = Field(..., min_length=1)
    iso_code: Optional[str] = Field(None, max_length=3)

class CountryResponse(BaseModel):
    id: int
    name: str
    iso_code: Optional[str] = None

    class Config:
        from_attributes = True

class CityCreate(BaseModel):
    """Schema for creating a city"""
    name: str = Field(..., min_length=1)
    country_id: int

class CityResponse(BaseModel):
    id: int
    name: str
    country_id: int

    class Config:
        from_attributes = True

class AddressCreate(BaseModel):
    """
    Address Create Schema
    
    Fields:
    - street: Street and number
    - postal_code: Postal code (optional)
    - city_id: ID of an existing city
    """
    street: str = Field(..., min_length=1)
    postal_code: Optional[str] = None
    city_id: int

class AddressResponse(BaseModel):
    id: int
    street: str
    postal_code: Optional[str] = None
    city_id: int

    class Config:
        from_attributes = True

class SpecialtyCreate(BaseModel):
    """Schema for creating or replacing a specialty"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class SpecialtyResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CatalogueEntryCreate(BaseModel):
    """Schema shared by diagnosis and treatment creation"""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    specialty_id: Optional[int] = None

class CatalogueEntryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    specialty_id: Optional[int] = None

    class Config:
        from_attributes = True

class AllergyCreate(BaseModel):
    """
    Allergy Create Schema
    
    Fields:
    - name: Unique allergy name
    - severity: MILD, MODERATE, SEVERE or LIFE_THREATENING
    - notes: Free-text notes (optional)
    """
    name: str = Field(..., min_length=1, max_length=100)
    severity: AllergySeverity
    notes: Optional[str] = Field(None, max_length=500)

class AllergyResponse(BaseModel):
    id: int
    name: str
    severity: AllergySeverity
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
