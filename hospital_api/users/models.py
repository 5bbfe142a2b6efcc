"""
User Model - The base identity record shared by patients, doctors, staff and admins.

Doctor and Patient profiles each point at exactly one User; the role column
says which profile, if any, completes the record.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the hospital system.
    
    Roles:
    - PATIENT: People who book appointments and own a medical record
    - DOCTOR: Medical practitioners with schedules
    - STAFF: Administrative staff who manage appointments and operations
    - ADMIN: System administrators with full access
    """
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    STAFF = "STAFF"
    ADMIN = "ADMIN"

class User(Base):
    """
    User Model - Stores the identity part of every person in the system
    
    Fields:
    - id: Primary key for user identification
    - document_number: Unique national identity document number
    - email: Unique email address for login and communication
    - first_name / last_name: User's name
    - phone: Contact number (optional)
    - password_hash: Securely hashed password (never store raw passwords)
    - role: Discriminator (patient, doctor, staff, admin)
    - is_active: Activation flag; inactive users cannot book or be booked
    - address_id: Optional foreign key to Address
    - last_login: Timestamp of the last successful login
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    document_number = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.PATIENT)
    is_active = Column(Boolean, nullable=False, default=True)
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    address = relationship("Address")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
