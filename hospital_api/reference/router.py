"""
Reference Router - API endpoints for lookup tables.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from . import service
from .schemas import (
    CountryCreate, CountryResponse,
    CityCreate, CityResponse,
    AddressCreate, AddressResponse,
    SpecialtyCreate, SpecialtyResponse,
    CatalogueEntryCreate, CatalogueEntryResponse,
    AllergyCreate, AllergyResponse
)
from .models import AllergySeverity

router = APIRouter()

@router.post("/countries", response_model=CountryResponse, status_code=status.HTTP_201_CREATED)
def create_country(data: CountryCreate, db: Session = Depends(get_db)):
    return service.create_country(db, data)

@router.get("/countries", response_model=List[CountryResponse])
def list_countries(name: Optional[str] = Query(None, description="Case-insensitive name filter"), db: Session = Depends(get_db)):
    return service.list_countries(db, name)

@router.post("/cities", response_model=CityResponse, status_code=status.HTTP_201_CREATED)
def create_city(data: CityCreate, db: Session = Depends(get_db)):
    return service.create_city(db, data)

@router.get("/cities", response_model=List[CityResponse])
def list_cities(
    country_id: Optional[int] = Query(None, description="Only cities of this country"),
    name: Optional[str] = Query(None, description="Case-insensitive name filter"),
    db: Session = Depends(get_db)
):
    return service.list_cities(db, country_id, name)

@router.post("/addresses", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
def create_address(data: AddressCreate, db: Session = Depends(get_db)):
    return service.create_address(db, data)

@router.get("/addresses/{address_id}", response_model=AddressResponse)
def get_address(address_id: int, db: Session = Depends(get_db)):
    return service.get_address(db, address_id)

@router.post("/specialties", response_model=SpecialtyResponse, status_code=status.HTTP_201_CREATED)
def create_specialty(data: SpecialtyCreate, db: Session = Depends(get_db)):
    """
    Create a medical specialty

    Specialty names are unique regardless of case.
    """
    return service.create_specialty(db, data)

@router.get("/specialties", response_model=List[SpecialtyResponse])
def list_specialties(name: Optional[str] = Query(None, description="Case-insensitive name filter"), db: Session = Depends(get_db)):
    return service.list_specialties(db, name)

@router.get("/specialties/{specialty_id}", response_model=SpecialtyResponse)
def get_specialty(specialty_id: int, db: Session = Depends(get_db)):
    return service.get_specialty(db, specialty_id)

@router.put("/specialties/{specialty_id}", response_model=SpecialtyResponse)
def update_specialty(specialty_id: int, data: SpecialtyCreate, db: Session = Depends(get_db)):
    return service.update_specialty(db, specialty_id, data)

@router.post("/diagnoses", response_model=CatalogueEntryResponse, status_code=status.HTTP_201_CREATED)
def create_diagnosis(data: CatalogueEntryCreate, db: Session = Depends(get_db)):
    return service.create_diagnosis(db, data)

@router.get("/diagnoses", response_model=List[CatalogueEntryResponse])
def list_diagnoses(
    specialty_id: Optional[int] = Query(None),
    name: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    return service.list_diagnoses(db, specialty_id, name)

@router.post("/treatments", response_model=CatalogueEntryResponse, status_code=status.HTTP_201_CREATED)
def create_treatment(data: CatalogueEntryCreate, db: Session = Depends(get_db)):
    return service.create_treatment(db, data)

@router.get("/treatments", response_model=List[CatalogueEntryResponse])
def list_treatments(
    specialty_id: Optional[int] = Query(None),
    name: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    return service.list_treatments(db, specialty_id, name)

@router.post("/allergies", response_model=AllergyResponse, status_code=status.HTTP_201_CREATED)
def create_allergy(data: AllergyCreate, db: Session = Depends(get_db)):
    """
    Add an allergy to the catalogue

    Allergy names are unique regardless of case.
    """
    return service.create_allergy(db, data)

@router.get("/allergies", response_model=List[AllergyResponse])
def list_allergies(
    severity: Optional[AllergySeverity] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or notes"),
    db: Session = Depends(get_db)
):
    return service.list_allergies(db, severity, search)

@router.get("/allergies/{allergy_id}", response_model=AllergyResponse)
def get_allergy(allergy_id: int, db: Session = Depends(get_db)):
    return service.get_allergy(db, allergy_id)

@router.put("/allergies/{allergy_id}", response_model=AllergyResponse)
def update_allergy(allergy_id: int, data: AllergyCreate, db: Session = Depends(get_db)):
    return service.update_allergy(db, allergy_id, data)
