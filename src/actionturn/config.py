"""Configuration management for actionturn."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Diagnostics
    debug: bool = Field(default=False, description="Log request and response dumps at INFO instead of DEBUG")
    log_level: str = Field(default="INFO", description="Log level used by the CLI sink")

    # Verification
    client_id: Optional[str] = Field(None, description="Actions client id used to verify user profile tokens")
    verification_status: int = Field(default=403, description="Status code returned when verification fails")

    # Transactions
    orders_v3: bool = Field(default=False, description="Emit orders v3 transaction payloads")

    model_config = SettingsConfigDict(
        env_prefix="ACTIONTURN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Args:
        **overrides: Explicit values that win over the environment

    Returns:
        Settings instance
    """
    # pydantic-settings reads the environment and .env, explicit kwargs take precedence
    return Settings(**{key: value for key, value in overrides.items() if value is not None})
