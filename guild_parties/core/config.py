# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration - all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "guild-parties")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8010"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./guild_parties.db")
    POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

    SEED_DEFAULT_PARTIES: bool = (
        os.getenv("SEED_DEFAULT_PARTIES", "true").lower() == "true"
    )
    DEFAULT_PARTIES_PER_TYPE: int = int(os.getenv("DEFAULT_PARTIES_PER_TYPE", "20"))
    MAX_PARTIES_PER_GROUP: int = int(os.getenv("MAX_PARTIES_PER_GROUP", "5"))

    PARTY_STORE_URL: str = os.getenv("PARTY_STORE_URL", "http://localhost:8010")
    PARTY_STORE_TIMEOUT: float = float(os.getenv("PARTY_STORE_TIMEOUT", "5.0"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
