"""
API Configuration

Manages environment-based configuration for the results API.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Settings can be overridden with environment variables or .env file.
    """
    
    # API Settings
    app_name: str = "Multigenerational Household Estimates API"
    app_version: str = "1.0.0"
    debug: bool = False
    
    # Database holding multigen_county_{year} / multigen_state_{year} tables
    database_url: str
    
    # CORS Settings
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]
    
    # Response Limits
    max_rows_per_request: int = 5000
    
    # Logging
    log_level: str = "INFO"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Using lru_cache ensures settings are loaded once and reused.
    """
    return Settings()
