"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file and override existing env vars
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False  # exposes /docs and 5xx error detail

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 10000
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:8050",
            "https://ntando-computer.onrender.com",
        ]
    )

    # Authentication
    jwt_secret: str = Field(default="dev-secret-key-change-in-production")
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60

    # Storage
    storage_backend: Literal["memory", "mongodb"] = "mongodb"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "ntando-computer"

    # Hosting provider
    hosting_provider: Literal["simulated", "render"] = "simulated"
    render_api_key: str = Field(default="")
    render_base_url: str = "https://api.render.com/v1"
    render_template_repo: str = "https://github.com/ntando-computer/template-static-site"
    simulated_build_seconds: float = 15.0

    # Status polling
    poll_interval_seconds: float = 5.0
    poll_max_attempts: int = 30

    # Rate limiting, per client address on /api
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # Uploads
    upload_dir: str = "uploads"
    max_upload_files: int = 50
    max_upload_bytes: int = 100 * 1024 * 1024

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_directory: str = "logs"
    log_file_name: str = "ntando.log"  # empty disables the file handler
    log_file_max_bytes: int = 10 * 1024 * 1024
    log_file_backups: int = 5

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
