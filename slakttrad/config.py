"""Configuration management for Släktträd.

Loads settings from environment variables and provides validated configuration.
"""

from pathlib import Path
from urllib.parse import urlsplit

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists
load_dotenv()

DEFAULT_FRONTEND_ORIGIN = "http://localhost:5173"


def normalize_origin(value: str) -> str:
    """Reduce a configured CORS value to a bare origin.

    A full URL (with path) is cut down to scheme://host[:port]; anything that
    does not parse as a URL only loses its trailing slashes.
    """
    value = (value or "").strip()
    if not value:
        return ""
    parts = urlsplit(value)
    if parts.scheme and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}"
    return value.rstrip("/")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str | None = None
    db_path: Path = Path("./slakttrad.db")

    # Access tokens
    jwt_access_secret: str | None = None
    jwt_access_ttl_seconds: int = 3600

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 4000
    cors_origin: str = DEFAULT_FRONTEND_ORIGIN
    log_level: str = "INFO"

    # CLI client
    api_base: str = "http://localhost:4000"
    api_token: str | None = None

    @field_validator("jwt_access_ttl_seconds")
    @classmethod
    def _positive_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("JWT_ACCESS_TTL_SECONDS måste vara ett positivt tal.")
        return value

    def get_database_url(self) -> str:
        """Get the SQLAlchemy URL, falling back to the SQLite file at db_path."""
        return self.database_url or f"sqlite:///{self.db_path}"

    def get_cors_origins(self) -> list[str]:
        """Get the allowed CORS origins.

        CORS_ORIGIN may hold a comma-separated list. The local Vite dev server
        is always allowed.
        """
        origins = [normalize_origin(part) for part in self.cors_origin.split(",")]
        origins.append(DEFAULT_FRONTEND_ORIGIN)
        return list(dict.fromkeys(origin for origin in origins if origin))


# Global settings instance
settings = Settings()
