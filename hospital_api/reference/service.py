"""
Reference Service - Lookups and creation for the reference data tables.

None of these tables carries business rules beyond name uniqueness; filters
are plain optional predicates.
"""
from typing import List, Optional
import logging
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.persistence import commit_changes, contains
from ..exceptions import NotFoundError, ConflictError
from .models import Country, City, Address, Specialty, Diagnosis, Treatment, Allergy, AllergySeverity
from .schemas import CountryCreate, CityCreate, AddressCreate, SpecialtyCreate, CatalogueEntryCreate, AllergyCreate

# Set up logging
logger = logging.getLogger(__name__)

def create_country(db: Session, data: CountryCreate) -> Country:
    """
    Create a country.
    
    Raises:
        ConflictError: If a country with the same name exists
    """
    if db.query(Country).filter(func.lower(Country.name) == data.name.lower()).first():
        raise ConflictError(f"Country '{data.name}' already exists")
    country = Country(name=data.name, iso_code=data.iso_code)
    db.add(country)
    commit_changes(db, f"Country '{data.name}' already exists")
    db.refresh(country)
    return country

def get_country(db: Session, country_id: int) -> Country:
    country = db.get(Country, country_id)
    if not country:
        raise NotFoundError(f"Country {country_id} not found")
    return country

def list_countries(db: Session, name: Optional[str] = None) -> List[Country]:
    query = db.query(Country)
    if name:
        query = query.filter(contains(Country.name, name))
    return query.order_by(Country.name).all()

def create_city(db: Session, data: CityCreate) -> City:
    """
    Create a city inside an existing country.
    
    Raises:
        NotFoundError: If the country does not exist
    """
    get_country(db, data.country_id)
    city = City(name=data.name, country_id=data.country_id)
    db.add(city)
    commit_changes(db)
    db.refresh(city)
    return city

def get_city(db: Session, city_id: int) -> City:
    city = db.get(City, city_id)
    if not city:
        raise NotFoundError(f"City {city_id} not found")
    return city

def list_cities(db: Session, country_id: Optional[int] = None, name: Optional[str] = None) -> List[City]:
    query = db.query(City)
    if country_id is not None:
        query = query.filter(City.country_id == country_id)
    if name:
        query = query.filter(contains(City.name, name))
    return query.order_by(City.name).all()

def build_address(db: Session, data: AddressCreate) -> Address:
    """
    Build an unsaved Address after checking its city, so callers can
    persist it in their own transaction.
    """
    get_city(db, data.city_id)
    return Address(street=data.street, postal_code=data.postal_code, city_id=data.city_id)

def create_address(db: Session, data: AddressCreate) -> Address:
    address = build_address(db, data)
    db.add(address)
    commit_changes(db)
    db.refresh(address)
    return address

def get_address(db: Session, address_id: int) -> Address:
    address = db.get(Address, address_id)
    if not address:
        raise NotFoundError(f"Address {address_id} not found")
    return address

def create_specialty(db: Session, data: SpecialtyCreate) -> Specialty:
    """
    Create a specialty.
    
    Args:
        db: Database session
        data: Specialty name and description
        
    Returns:
        Specialty: The created specialty
        
    Raises:
        ConflictError: If the name is already taken (case-insensitive)
    """
    if db.query(Specialty).filter(func.lower(Specialty.name) == data.name.lower()).first():
        logger.warning(f"Specialty creation refused: '{data.name}' already exists")
        raise ConflictError(f"Specialty '{data.name}' already exists")
    specialty = Specialty(name=data.name, description=data.description)
    db.add(specialty)
    commit_changes(db, f"Specialty '{data.name}' already exists")
    db.refresh(specialty)
    logger.info(f"Specialty {specialty.id} '{specialty.name}' created")
    return specialty

def get_specialty(db: Session, specialty_id: int) -> Specialty:
    """
    Get a specialty by ID.
    
    Raises:
        NotFoundError: If the specialty does not exist
    """
    specialty = db.get(Specialty, specialty_id)
    if not specialty:
        raise NotFoundError(f"Specialty {specialty_id} not found")
    return specialty

def list_specialties(db: Session, name: Optional[str] = None) -> List[Specialty]:
    query = db.query(Specialty)
    if name:
        query = query.filter(contains(Specialty.name, name))
    return query.order_by(Specialty.name).all()

def update_specialty(db: Session, specialty_id: int, data: SpecialtyCreate) -> Specialty:
    """
    Replace a specialty's name and description.
    
    Raises:
        NotFoundError: If the specialty does not exist
        ConflictError: If another specialty already uses the new name
    """
    specialty = get_specialty(db, specialty_id)
    clash = db.query(Specialty).filter(
        func.lower(Specialty.name) == data.name.lower(),
        Specialty.id != specialty_id
    ).first()
    if clash:
        raise ConflictError(f"Specialty '{data.name}' already exists")
    specialty.name = data.name
    specialty.description = data.description
    commit_changes(db, f"Specialty '{data.name}' already exists")
    db.refresh(specialty)
    return specialty

def _create_catalogue_entry(db: Session, model, data: CatalogueEntryCreate):
    if data.specialty_id is not None:
        get_specialty(db, data.specialty_id)
    entry = model(name=data.name, description=data.description, specialty_id=data.specialty_id)
    db.add(entry)
    commit_changes(db)
    db.refresh(entry)
    return entry

def _list_catalogue(db: Session, model, specialty_id: Optional[int], name: Optional[str]):
    query = db.query(model)
    if specialty_id is not None:
        query = query.filter(model.specialty_id == specialty_id)
    if name:
        query = query.filter(contains(model.name, name))
    return query.order_by(model.name).all()

def create_diagnosis(db: Session, data: CatalogueEntryCreate) -> Diagnosis:
    return _create_catalogue_entry(db, Diagnosis, data)

def get_diagnosis(db: Session, diagnosis_id: int) -> Diagnosis:
    diagnosis = db.get(Diagnosis, diagnosis_id)
    if not diagnosis:
        raise NotFoundError(f"Diagnosis {diagnosis_id} not found")
    return diagnosis

def list_diagnoses(db: Session, specialty_id: Optional[int] = None, name: Optional[str] = None) -> List[Diagnosis]:
    return _list_catalogue(db, Diagnosis, specialty_id, name)

def create_treatment(db: Session, data: CatalogueEntryCreate) -> Treatment:
    return _create_catalogue_entry(db, Treatment, data)

def get_treatment(db: Session, treatment_id: int) -> Treatment:
    treatment = db.get(Treatment, treatment_id)
    if not treatment:
        raise NotFoundError(f"Treatment {treatment_id} not found")
    return treatment

def list_treatments(db: Session, specialty_id: Optional[int] = None, name: Optional[str] = None) -> List[Treatment]:
    return _list_catalogue(db, Treatment, specialty_id, name)

def create_allergy(db: Session, data: AllergyCreate) -> Allergy:
    """
    Add an allergy to the catalogue.
    
    Raises:
        ConflictError: If the name is already taken (case-insensitive)
    """
    if db.query(Allergy).filter(func.lower(Allergy.name) == data.name.lower()).first():
        raise ConflictError(f"Allergy '{data.name}' already exists")
    allergy = Allergy(name=data.name, severity=data.severity, notes=data.notes)
    db.add(allergy)
    commit_changes(db, f"Allergy '{data.name}' already exists")
    db.refresh(allergy)
    logger.info(f"Allergy {allergy.id} '{allergy.name}' created with severity {allergy.severity.value}")
    return allergy

def get_allergy(db: Session, allergy_id: int) -> Allergy:
    allergy = db.get(Allergy, allergy_id)
    if not allergy:
        raise NotFoundError(f"Allergy {allergy_id} not found")
    return allergy

def update_allergy(db: Session, allergy_id: int, data: AllergyCreate) -> Allergy:
    """
    Replace an allergy's name, severity and notes.
    
    Raises:
        NotFoundError: If the allergy does not exist
        ConflictError: If another allergy already uses the new name
    """
    allergy = get_allergy(db, allergy_id)
    clash = db.query(Allergy).filter(
        func.lower(Allergy.name) == data.name.lower(),
        Allergy.id != allergy_id
    ).first()
    if clash:
        raise ConflictError(f"Allergy '{data.name}' already exists")
    allergy.name = data.name
    allergy.severity = data.severity
    allergy.notes = data.notes
    commit_changes(db, f"Allergy '{data.name}' already exists")
    db.refresh(allergy)
    return allergy

def list_allergies(
    db: Session,
    severity: Optional[AllergySeverity] = None,
    search: Optional[str] = None
) -> List[Allergy]:
    """List allergies, optionally by severity and by a fragment of name or notes."""
    query = db.query(Allergy)
    if severity is not None:
        query = query.filter(Allergy.severity == severity)
    if search:
        query = query.filter(or_(contains(Allergy.name, search), contains(Allergy.notes, search)))
    return query.order_by(Allergy.name).all()
