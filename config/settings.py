"""
Configuration management using Pydantic Settings.

Environment variables are loaded from .env file or system environment.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings"""

    # Loop Configuration
    layout_path: str | None = Field(default=None, description="YAML layout file, built-in basic loop if unset")
    tun_base: int = Field(default=10000, description="Transport unit numbers are assigned above this base")

    # Logging
    log_level: str = Field(default="INFO", description="Loguru sink level")

    # Server Configuration
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=True, description="Enable auto-reload in development")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Singleton instance
settings = Settings()
