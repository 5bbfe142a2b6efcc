"""
Reference Data Models - Flat lookup tables shared by the rest of the system.

Countries, cities and addresses locate people; specialties, diagnoses,
treatments and allergies classify clinical work.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class Country(Base):
    """
    Country Model
    
    Fields:
    - id: Primary key
    - name: Unique country name
    - iso_code: Two or three letter ISO code (optional)
    """
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    iso_code = Column(String(3), nullable=True)

    def __repr__(self):
        return f"<Country(id={self.id}, name='{self.name}')>"


class City(Base):
    """City Model - A city inside a country"""
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    country_id = Column(Integer, ForeignKey("countries.id", ondelete="CASCADE"), nullable=False, index=True)

    country = relationship("Country")

    def __repr__(self):
        return f"<City(id={self.id}, name='{self.name}', country_id={self.country_id})>"


class Address(Base):
    """
    Address Model
    
    Fields:
    - id: Primary key
    - street: Street and number
    - postal_code: Postal code (optional)
    - city_id: Foreign key to City
    """
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    street = Column(String, nullable=False)
    postal_code = Column(String, nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id", ondelete="RESTRICT"), nullable=False)

    city = relationship("City")

    def __repr__(self):
        return f"<Address(id={self.id}, street='{self.street}', city_id={self.city_id})>"


class Specialty(Base):
    """
    Specialty Model - A medical specialty doctors can be certified in
    
    Fields:
    - id: Primary key
    - name: Unique specialty name
    - description: Free-text description
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "specialties"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Specialty(id={self.id}, name='{self.name}')>"


class Diagnosis(Base):
    """Diagnosis Model - Catalogue entry for a diagnosis, optionally tied to a specialty"""
    __tablename__ = "diagnoses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    specialty_id = Column(Integer, ForeignKey("specialties.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    specialty = relationship("Specialty")

    def __repr__(self):
        return f"<Diagnosis(id={self.id}, name='{self.name}')>"


class Treatment(Base):
    """Treatment Model - Catalogue entry for a treatment, optionally tied to a specialty"""
    __tablename__ = "treatments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    specialty_id = Column(Integer, ForeignKey("specialties.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    specialty = relationship("Specialty")

    def __repr__(self):
        return f"<Treatment(id={self.id}, name='{self.name}')>"


class AllergySeverity(str, enum.Enum):
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"
    LIFE_THREATENING = "LIFE_THREATENING"


class Allergy(Base):
    """
    Allergy Model - Catalogue entry for an allergy patients can be linked to
    
    Fields:
    - id: Primary key
    - name: Unique allergy name
    - severity: Typical severity of a reaction
    - notes: Free-text notes (optional)
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "allergies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    severity = Column(Enum(AllergySeverity), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Allergy(id={self.id}, name='{self.name}', severity={self.severity})>"
