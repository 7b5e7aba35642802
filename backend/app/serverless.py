"""WSGI entrypoint for serverless hosts that import a module-level ``app``."""
from __future__ import annotations
import os

from backend.app import create_app

# Defaults to production, which has no SQLite fallback for DATABASE_URL.
app = create_app(os.getenv("APP_CONFIG") or os.getenv("FLASK_ENV") or "production")
