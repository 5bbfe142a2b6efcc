"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from . import __version__
from .config import settings
from .database import engine
from .models import Base  # Registers every model before create_all
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .reference.router import router as reference_router
from .users.router import router as users_router
from .doctors.router import router as doctors_router
from .patients.router import router as patients_router
from .schedules.router import router as schedules_router
from .appointments.router import router as appointments_router
from .medical_records.router import router as medical_records_router
from .notifications.router import router as notifications_router

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
Base.metadata.create_all(bind=engine)
logger.info("Starting Hospital API...")

# Create FastAPI application
app = FastAPI(
    title="Hospital API",
    description="API for hospital appointment scheduling and clinical records",
    version=__version__
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(reference_router, prefix="/api/v1", tags=["reference"])
app.include_router(users_router, prefix="/api/v1/users", tags=["users"])
app.include_router(doctors_router, prefix="/api/v1/doctors", tags=["doctors"])
app.include_router(patients_router, prefix="/api/v1/patients", tags=["patients"])
app.include_router(schedules_router, prefix="/api/v1/schedules", tags=["schedules"])
app.include_router(appointments_router, prefix="/api/v1/appointments", tags=["appointments"])
app.include_router(medical_records_router, prefix="/api/v1/medical-records", tags=["medical records"])
app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.
    
    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to Hospital API", "version": __version__}

# Health check endpoint
@app.get("/health")
def health_check():
    """
    Health check endpoint for monitoring.
    
    Returns:
        dict: Health status information
    """
    return {"status": "healthy"}
