"""
config.py — LandLedger Global Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "LandLedger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # API Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5500",
        "http://127.0.0.1:5500",
    ]

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./landledger.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Cryptography
    ENCRYPTION_KEY: str = ""
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 30

    # Registry
    AUTHORITY_ALLOWLIST: List[str] = []     # empty = any caller may register as an authority
    LEDGER_MAX_BLOCKS_RETURNED: int = 500

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "landledger.log"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
