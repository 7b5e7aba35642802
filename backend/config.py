"""Configuration objects for the intake backend."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Type

basedir = Path(__file__).resolve().parent


class Config:
    """Base configuration shared by all environments."""

    SQLALCHEMY_DATABASE_URI: str | None = os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "database")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Expose configuration values for debugging and introspection."""

        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}


class DevelopmentConfig(Config):
    """Configuration suitable for local development."""

    _db_path = basedir / "dev.db"
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URL", f"sqlite:///{_db_path}")
    STORAGE_BACKEND = "database"
    LOG_LEVEL = "DEBUG"
    DEBUG = True


class TestingConfig(Config):
    """Isolated in-memory SQLite database for the test suite."""

    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STORAGE_BACKEND = "database"
    TESTING = True


class EphemeralConfig(Config):
    """Keep records in process memory; nothing survives a restart."""

    SQLALCHEMY_DATABASE_URI = None
    STORAGE_BACKEND = "memory"


class ProductionConfig(Config):
    """Configuration tailored for production deployments.

    ``DATABASE_URL`` has no fallback here: a missing value surfaces as a
    storage configuration error on the first request that touches records.
    """

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    STORAGE_BACKEND = "database"
    DEBUG = False


CONFIG_MAP: Dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "ephemeral": EphemeralConfig,
    "production": ProductionConfig,
}


def get_config(name: str | None) -> Type[Config]:
    """Retrieve the configuration class matching the supplied name."""

    if not name:
        return DevelopmentConfig
    return CONFIG_MAP.get(name.lower(), DevelopmentConfig)
