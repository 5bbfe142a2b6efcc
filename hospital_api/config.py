"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.
    
    Attributes:
        database_url: SQLAlchemy connection string (PostgreSQL in production)
        sql_echo: Whether SQLAlchemy should log every statement
        log_level: Root logging level
        cors_origins: Origins allowed by the CORS middleware
        default_page_size: Page size used when a list request gives none
        max_page_size: Upper bound accepted for page sizes
    """
    # Database settings
    database_url: str
    sql_echo: bool = False

    # Logging
    log_level: str = "INFO"

    # HTTP settings
    cors_origins: List[str] = ["http://localhost:3000"]
    default_page_size: int = 10
    max_page_size: int = 100

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
