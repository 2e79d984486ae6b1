# config/settings.py

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, validator
import os
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Attendance Integrity"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")

    # CORS
    CORS_ORIGINS: str = ""

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        if not self.CORS_ORIGINS:
            return ["*"] if self.DEBUG else []
        return [s.strip() for s in self.CORS_ORIGINS.split(",") if s.strip()]

    # Database
    DATABASE_URL: str = "sqlite:///./attendance.db"
    DB_POOL_SIZE: int = Field(default=20, ge=5, le=100)
    DB_MAX_OVERFLOW: int = Field(default=30, ge=5, le=100)
    DB_POOL_RECYCLE: int = Field(default=3600, ge=300)

    # Security (bearer tokens are minted upstream, we only verify them)
    SECRET_KEY: str = Field(default="dev-secret-change-me", min_length=8)
    ALGORITHM: str = "HS256"

    # Background ticks
    SCHEDULER_ENABLED: bool = True
    LIFECYCLE_TICK_SECONDS: int = Field(default=30, ge=1, le=3600)
    ROTATION_INTERVAL_SECONDS: int = Field(default=20, ge=1, le=3600)

    # Meetings / proofs
    DEFAULT_MEETING_DURATION_MINUTES: int = Field(default=60, ge=5, le=720)
    PROOF_TOKEN_BYTES: int = Field(default=16, ge=16, le=64)
    LINK_TOKEN_BYTES: int = Field(default=24, ge=16, le=64)

    # Monitoring
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Server
    PORT: Optional[int] = Field(default=8000, ge=1, le=65535)

    @validator('SECRET_KEY')
    def validate_secrets(cls, v):
        """Ensure secrets are strong enough"""
        if len(v) < 32:
            import warnings
            warnings.warn(f"Secret key is only {len(v)} characters. Consider using at least 32 characters for production.", UserWarning)
        return v

    @validator('DATABASE_URL')
    def validate_database_url(cls, v):
        """Validate database URL format"""
        if not v.startswith(('postgresql://', 'postgresql+psycopg2://', 'sqlite://')):
            raise ValueError('Unsupported database URL format')
        return v

    @validator('CORS_ORIGINS')
    def validate_cors_origins(cls, v):
        """Validate CORS origins in production"""
        environment = os.getenv('ENVIRONMENT', 'development')
        if environment == 'production' and ('*' in v or not v):
            raise ValueError('Wildcard CORS origins not allowed in production')
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
