"""
Imports every model module so the declarative registry is complete
before tables are created or relationships are resolved.
"""
from .database import Base
from .reference.models import Country, City, Address, Specialty, Diagnosis, Treatment, Allergy, AllergySeverity
from .users.models import User, UserRole
from .doctors.models import Doctor, DoctorSpecialty
from .patients.models import Patient, PatientAllergy
from .schedules.models import DoctorSchedule, DoctorScheduleDate
from .appointments.models import Appointment
from .medical_records.models import MedicalRecord, MedicalRecordItem, Prescription, TreatmentSession
from .notifications.models import Notification, UserNotification

__all__ = [
    "Base",
    "Country", "City", "Address", "Specialty", "Diagnosis", "Treatment", "Allergy", "AllergySeverity",
    "User", "UserRole",
    "Doctor", "DoctorSpecialty",
    "Patient", "PatientAllergy",
    "DoctorSchedule", "DoctorScheduleDate",
    "Appointment",
    "MedicalRecord", "MedicalRecordItem", "Prescription", "TreatmentSession",
    "Notification", "UserNotification",
]
