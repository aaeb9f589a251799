"""Backend configuration for the Släktträd web app."""

from slakttrad.config import settings


class Config:
    """Base configuration."""

    # App settings
    DEBUG = False
    TESTING = False
    LOG_LEVEL = settings.log_level

    # CORS settings
    CORS_ORIGINS = settings.get_cors_origins()

    # Request size limit for JSON bodies
    MAX_CONTENT_LENGTH = 200 * 1024

    # Database
    DATABASE_URL = settings.get_database_url()

    # Access tokens
    JWT_ACCESS_SECRET = settings.jwt_access_secret
    JWT_ACCESS_TTL_SECONDS = settings.jwt_access_ttl_seconds


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    JWT_ACCESS_SECRET = settings.jwt_access_secret or "dev-secret-change-in-production"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    # In production, JWT_ACCESS_SECRET must come from the environment


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_ACCESS_SECRET = "test-secret"
    JWT_ACCESS_TTL_SECONDS = 3600


# Config factory
def get_config(env: str = "development") -> Config:
    """Get configuration based on environment.

    Args:
        env: Environment name (development, production, testing)

    Returns:
        Configuration object
    """
    configs = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }
    return configs.get(env, DevelopmentConfig)()
