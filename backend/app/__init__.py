"""Application factory for the intake backend."""
from __future__ import annotations

from typing import Any, Mapping

from flask import Flask
from flask_cors import CORS

from backend.config import get_config
from backend.app.middleware import register_audit_middleware
from backend.app.services.storage import STORAGE_EXTENSION_KEY, build_storage
from backend.extensions import db, migrate


def create_app(
    config_name: str | None = None, config_overrides: Mapping[str, Any] | None = None
) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)
    config_cls = get_config(config_name or app.config.get("ENV"))
    app.config.from_object(config_cls)
    if config_overrides:
        app.config.update(config_overrides)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    register_extensions(app)
    register_blueprints(app)

    if app.config.get("DEBUG") and app.config.get("SQLALCHEMY_DATABASE_URI"):
        _create_dev_tables(app)

    register_audit_middleware(app)

    CORS(app)
    return app


def register_extensions(app: Flask) -> None:
    """Initialize Flask extensions and the record storage backend."""

    # Without a database URL only the memory backend can serve requests.
    if app.config.get("SQLALCHEMY_DATABASE_URI"):
        db.init_app(app)
        migrate.init_app(app, db)
    app.extensions[STORAGE_EXTENSION_KEY] = build_storage(app)


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""

    from backend.app.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")


def _create_dev_tables(app: Flask) -> None:
    """Create missing tables so a fresh checkout runs without migrations."""
    with app.app_context():
        db.create_all()
        app.logger.debug("Development tables ready at %s", app.config["SQLALCHEMY_DATABASE_URI"])
