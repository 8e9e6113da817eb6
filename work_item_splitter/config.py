"""
Configuration management for the work item splitter.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITTER_", env_file=".env", env_file_encoding="utf-8"
    )

    # Azure DevOps
    organization_url: str = Field(
        default="https://dev.azure.com/your-organization",
        description="Collection URL, e.g. https://dev.azure.com/contoso",
    )
    project: str = Field(default="", description="Team project name")
    team: str = Field(default="", description="Team whose iteration schedule is used")
    personal_access_token: Optional[str] = Field(default=None)
    api_version: str = Field(default="7.1")
    http_timeout_seconds: float = Field(default=30.0)

    # Audit comments
    split_reference_url: str = Field(default="http://aka.ms/split")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="'json' or 'console'")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
