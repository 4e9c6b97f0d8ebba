"""Configuration settings for the directory application."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Database
    database_url: str = "sqlite:///eco_directory.db"
    
    # Geocoding (Nominatim)
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    geocoder_user_agent: str = "EcoDirectory/1.0"
    geocode_delay: float = 1.1
    
    # HTTP
    request_timeout: int = 10
    
    # Verification settings
    verification_threshold_days: int = 30
    verification_delay: float = 1.0
    
    # Legacy JSON data (pre-database layout)
    legacy_data_dir: str = "data"
    
    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
