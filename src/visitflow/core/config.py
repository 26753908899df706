"""
Configuration management for visitflow.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

from typing import List, Optional

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VisitAttributeTypeConfig(BaseModel):
    """A visit attribute type shown on the start-visit form."""

    uuid: str = Field(..., description="Visit attribute type UUID")
    required: bool = Field(default=False, description="Whether a value must be supplied")
    display: Optional[str] = Field(default=None, description="Label override")


class OpenMRSSettings(BaseSettings):
    """OpenMRS REST API connection settings."""

    model_config = SettingsConfigDict(env_prefix="OPENMRS_")

    base_url: str = Field(
        default="http://localhost:8080/openmrs", description="OpenMRS server root URL"
    )
    username: str = Field(default="admin", description="REST API user")
    password: str = Field(default="", description="REST API password")
    timeout_seconds: float = Field(default=30.0, description="Per-request transport timeout")
    session_location_uuid: str = Field(
        default="", description="Location used as the default visit location"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate OpenMRS base URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("OpenMRS base URL must start with 'http://' or 'https://'")
        return v.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate transport timeout."""
        if v <= 0:
            raise ValueError("Timeout must be greater than zero")
        return v


class VisitFormSettings(BaseSettings):
    """Start-visit form feature toggles."""

    model_config = SettingsConfigDict(env_prefix="VISIT_FORM_")

    show_recommended_visit_type_tab: bool = Field(
        default=False,
        description="Offer visit types recommended from the patient's program enrollment",
    )
    show_service_queue_fields: bool = Field(
        default=False,
        description="Admit the new visit to a service queue after it is created",
    )
    visit_queue_number_attribute_uuid: Optional[str] = Field(
        default=None,
        description="Visit attribute type that receives the generated queue number",
    )
    visit_attribute_types: List[VisitAttributeTypeConfig] = Field(
        default_factory=list,
        description="Visit attribute types collected by the form (JSON list)",
    )
    visit_type_page_size: int = Field(default=5, description="Visit types per page")
    session_idle_timeout_seconds: float = Field(
        default=1800, description="Open forms idle longer than this are discarded"
    )

    @field_validator("visit_type_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Validate page size."""
        if not 1 <= v <= 50:
            raise ValueError("Visit type page size must be between 1 and 50")
        return v

    @field_validator("session_idle_timeout_seconds")
    @classmethod
    def validate_idle_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Session idle timeout must be positive")
        return v


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )
    allowed_methods: List[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    allowed_headers: List[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in ["json", "text"]:
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="visitflow", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings
    openmrs: OpenMRSSettings = Field(default_factory=OpenMRSSettings)
    visit_form: VisitFormSettings = Field(default_factory=VisitFormSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Best-effort load of .env by searching current and parent directories.

    Already-set environment variables are never overridden.
    """
    from dotenv import load_dotenv

    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
