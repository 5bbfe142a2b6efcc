"""
Doctor Router - API endpoints for doctor registration and lookup.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.pagination import PageParams, PageResponse, paginate
from ..database import get_db
from .schemas import DoctorCreate, DoctorResponse, DoctorSpecialtyResponse
from . import service

router = APIRouter()

@router.post("/", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def register_doctor(data: DoctorCreate, db: Session = Depends(get_db)):
    """
    Register a doctor with its specialties

    Duplicate license numbers are rejected with 409.
    """
    return service.register_doctor(db, data)

@router.get("/", response_model=PageResponse[DoctorResponse])
def list_doctors(
    name: Optional[str] = Query(None, description="Search by doctor name or email"),
    specialty_id: Optional[int] = Query(None, description="Filter by specialty"),
    page_params: PageParams = Depends(),
    db: Session = Depends(get_db)
):
    query = service.search_doctors(db, name=name, specialty_id=specialty_id)
    return paginate(query, page_params, DoctorResponse)

@router.get("/license/{license_number}", response_model=DoctorResponse)
def get_doctor_by_license(license_number: str, db: Session = Depends(get_db)):
    return service.find_doctor_by_license(db, license_number)

@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    return service.get_doctor(db, doctor_id)

@router.get("/{doctor_id}/specialties", response_model=List[DoctorSpecialtyResponse])
def list_doctor_specialties(doctor_id: int, db: Session = Depends(get_db)):
    return service.list_doctor_specialties(db, doctor_id)
