from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Annotated, List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # App
    APP_NAME: str = "EZYeats Pickup API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"

    # Durable order store
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./ezyeats.db",
        description="Database connection URL"
    )

    # Security
    SECRET_KEY: str = Field(
        default="dev-secret-key-change-me-in-production-environments-please",
        min_length=32,
        description="Secret key for JWT tokens"
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    # Raw env strings go to the validator below
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:19006",
        "http://127.0.0.1:19006"
    ])

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: str = "120/minute"
    ORDER_RATE_LIMIT: str = "10/minute"  # Checkout double-taps

    # Live-sync mirror (Redis)
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the live-sync mirror"
    )
    LIVE_SYNC_KEY_PREFIX: str = "live"

    # Shop QR codes look like "ezyeats-shop:<shop_id>"
    QR_PREFIX: str = "ezyeats-shop"

    # Mirror reconciliation job, 0 disables it
    MIRROR_SYNC_INTERVAL_MINUTES: int = 15

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, value):
        """Ensure CORS origins env value always becomes a list of strings."""
        if isinstance(value, str):
            # Support JSON-style lists or simple comma-separated strings
            value = value.strip()
            if value.startswith("[") and value.endswith("]"):
                import json
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, (list, tuple)):
            return list(value)
        return value


settings = Settings()
