"""
Controller configuration using Pydantic Settings.
All configuration is loaded from ``DSC_``-prefixed environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Controller settings loaded from environment variables.

    Values describe the local Dataspace Connector this process drives; remote
    connectors are always addressed per call by their endpoint URL.
    """

    model_config = SettingsConfigDict(
        env_prefix="DSC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Core Settings
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    setup_logging: bool = Field(
        default=False,
        description="Configure structlog output when a controller is built from settings",
    )

    # ==========================================================================
    # Local Connector
    # ==========================================================================
    hostname: str = Field(default="localhost:8080")
    base_url: str | None = Field(
        default=None,
        description="Full connector URL; overrides https://{hostname} when set",
    )
    username: str = Field(default="admin")
    password: str = Field(default="password")
    ids_path: str = Field(
        default="/api/ids/data",
        description="Path of the IDS messaging endpoint on remote connectors",
    )
    timeout_seconds: float = Field(default=30.0, gt=0)
    verify_tls: bool = Field(default=True)

    # Camel routes run inside the connector, so they reach it on its own address
    camel_artifact_base_url: str = Field(default="https://localhost:8080")

    @property
    def connector_url(self) -> str:
        """Resolve the local connector's base URL."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"https://{self.hostname}"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached controller settings.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated environment variable parsing.
    """
    return Settings()
