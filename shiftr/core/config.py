# shiftr/core/config.py
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional


DEFAULT_SECRET_KEY = "changemeohgodplease"


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./shiftr.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 30

    # === JWT ===
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 72 * 60

    @field_validator("SECRET_KEY")
    @classmethod
    def validate_secret_key(cls, v):
        """Refuse the shipped default secret outside development"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and v == DEFAULT_SECRET_KEY:
            raise ValueError("🚨 Production environment cannot use the default SECRET_KEY!")
        return v

    # === HTTP server ===
    HOST: str = "localhost"
    PORT: int = 8080
    TIMEOUT_KEEP_ALIVE: int = 10

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["*"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === System ===
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = "logs"

    # === Security ===
    BCRYPT_ROUNDS: int = 12

    # === Business Rules ===
    SHIFT_ID_LENGTH: int = 10
    USER_ID_LENGTH: int = 8
    USER_NAME_MAX_LENGTH: int = 30

    # === Demo data ===
    SEED_DEMO_DATA: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# Create a global settings instance
settings = Settings()
