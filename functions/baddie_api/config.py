"""
Configuration and settings for the Daily Baddie API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    api_prefix: str = Field(default="/api")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    # Record store (any SQLAlchemy URL, Postgres expected)
    database_url: Optional[str] = Field(default=None)

    # Firebase service account
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_private_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @field_validator("firebase_private_key")
    @classmethod
    def _unescape_private_key(cls, value: Optional[str]) -> Optional[str]:
        # Keys pasted into .env files usually carry literal "\n" sequences.
        if value:
            return value.replace("\\n", "\n")
        return value

    @property
    def has_firebase_credentials(self) -> bool:
        return bool(
            self.firebase_project_id
            and self.firebase_client_email
            and self.firebase_private_key
        )

    def firebase_service_account(self) -> dict:
        return {
            "type": "service_account",
            "project_id": self.firebase_project_id,
            "private_key": self.firebase_private_key,
            "client_email": self.firebase_client_email,
            "token_uri": "https://oauth2.googleapis.com/token",
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
