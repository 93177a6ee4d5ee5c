"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Database
    DATABASE_URL: str
    
    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    CACHE_ENABLED: bool = True
    STREAK_CACHE_TTL: int = 300  # 5 minutes
    
    # Application
    APP_NAME: str = "Reading Tracker"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    
    # Reading Settings
    COMPLETION_THRESHOLD_PERCENT: float = 90.0
    STREAK_RETENTION_DAYS: int = 90
    CONTINUE_READING_LIMIT: int = 5
    TIMEZONE: str = "UTC"  # defines "today" for the streak ledger
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
