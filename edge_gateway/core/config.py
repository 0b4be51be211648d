"""
Client configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables prefixed with ``EDGE_GATEWAY_``.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # vCloud API settings
    API_VERSION: str = Field(
        default="5.6",
        description="vCloud API version sent in the default Accept header",
    )
    AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Pre-issued x-vcloud-authorization session token",
    )
    REQUEST_TIMEOUT: float = Field(
        default=30.0,
        description="Per-request timeout in seconds, applied by the transport",
    )
    VERIFY_SSL: bool = Field(default=True)

    # Diagnostics
    XML_DEBUG: bool = Field(
        default=False,
        description="Trace every outbound XML document before it is submitted",
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_FILE: Optional[str] = Field(
        default=None,
        description="Optional path of a rotating log file",
    )

    @field_validator("XML_DEBUG", mode="before")
    @classmethod
    def parse_xml_debug(cls, v):
        """Only the literal string "true" switches the XML trace on."""
        if isinstance(v, str):
            return v == "true"
        return bool(v)

    def has_auth_token(self) -> bool:
        """Check if a session token is configured and not empty."""
        return self.AUTH_TOKEN is not None and self.AUTH_TOKEN.strip() != ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
