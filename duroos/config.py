from pydantic_settings import BaseSettings
from pydantic import Field, validator
from dotenv import load_dotenv
from typing import Optional
import logging
import sys

load_dotenv()
logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    # Required environment variables
    MONGO_URI: str = Field(..., description="MongoDB connection URI")
    JWT_SECRET: str = Field(..., min_length=32, description="JWT secret key (minimum 32 characters)")

    # Optional with defaults
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1, le=1440)

    # Public site
    SITE_URL: str = Field(default="https://rasmihassan.com")
    AUDIO_PUBLIC_BASE_URL: Optional[str] = Field(default=None, description="Public prefix of the audio bucket")

    # Cache lifetimes (seconds)
    HOMEPAGE_CACHE_TTL: int = Field(default=300, ge=1)
    SITEMAP_CACHE_TTL: int = Field(default=3600, ge=1)

    # Background jobs
    STATS_REFRESH_MINUTES: int = Field(default=60, ge=1)

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    @validator('JWT_SECRET')
    def validate_jwt_secret(cls, v):
        if len(v) < 32:
            raise ValueError('JWT_SECRET must be at least 32 characters long')
        return v

    @validator('MONGO_URI')
    def validate_mongo_uri(cls, v):
        if not v.startswith(('mongodb://', 'mongodb+srv://')):
            raise ValueError('MONGO_URI must be a valid MongoDB connection string')
        return v

    @validator('SITE_URL')
    def validate_site_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('SITE_URL must be an absolute http(s) URL')
        return v.rstrip('/')

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

try:
    settings = Settings()
    logger.info("Configuration loaded successfully")
except Exception as e:
    logger.critical(f"Failed to load configuration: {str(e)}")
    sys.exit(1)
