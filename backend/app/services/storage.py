"""Record storage backends for appointments and contact submissions."""
from __future__ import annotations

import logging
import threading
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Callable, Protocol
from uuid import uuid4

from flask import Flask, current_app
from sqlalchemy.exc import SQLAlchemyError

from backend.app.models import Appointment, ContactSubmission
from backend.extensions import db

LOGGER = logging.getLogger(__name__)

STORAGE_EXTENSION_KEY = "record_storage"

Record = dict[str, Any]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return a naive UTC timestamp, matching what the database stores."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class StorageError(RuntimeError):
    """Raised when a storage backend fails to read or write."""


class StorageConfigurationError(StorageError):
    """Raised when the configured backend cannot be used."""


class RecordStorage(Protocol):
    """Insert-only store for appointment and contact records."""

    def create_appointment(self, fields: Record) -> Record:
        ...

    def get_appointments(self) -> list[Record]:
        ...

    def get_appointment(self, record_id: str) -> Record | None:
        ...

    def create_contact_submission(self, fields: Record) -> Record:
        ...

    def get_contact_submissions(self) -> list[Record]:
        ...

    def get_contact_submission(self, record_id: str) -> Record | None:
        ...


class _Collection:
    """Lock-guarded map from identity to record."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._records: dict[str, Record] = {}
        self._lock = threading.Lock()

    def insert(self, fields: Record) -> Record:
        with self._lock:
            record_id = str(uuid4())
            while record_id in self._records:
                record_id = str(uuid4())
            record = {"id": record_id, **deepcopy(fields), "createdAt": self._clock()}
            self._records[record_id] = record
            return deepcopy(record)

    def newest_first(self) -> list[Record]:
        with self._lock:
            # Later inserts win ties on identical timestamps.
            records = list(reversed(self._records.values()))
            records.sort(key=lambda record: record["createdAt"], reverse=True)
            return deepcopy(records)

    def get(self, record_id: str) -> Record | None:
        with self._lock:
            record = self._records.get(record_id)
            return deepcopy(record) if record is not None else None


class MemoryStorage:
    """Keep records in process memory; used for ephemeral deployments and tests."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._appointments = _Collection(clock)
        self._contact_submissions = _Collection(clock)

    def create_appointment(self, fields: Record) -> Record:
        return self._appointments.insert(fields)

    def get_appointments(self) -> list[Record]:
        return self._appointments.newest_first()

    def get_appointment(self, record_id: str) -> Record | None:
        return self._appointments.get(record_id)

    def create_contact_submission(self, fields: Record) -> Record:
        return self._contact_submissions.insert(fields)

    def get_contact_submissions(self) -> list[Record]:
        return self._contact_submissions.newest_first()

    def get_contact_submission(self, record_id: str) -> Record | None:
        return self._contact_submissions.get(record_id)


class DatabaseStorage:
    """Persist records through SQLAlchemy."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock

    def create_appointment(self, fields: Record) -> Record:
        return self._insert(Appointment, fields)

    def get_appointments(self) -> list[Record]:
        return self._newest_first(Appointment)

    def get_appointment(self, record_id: str) -> Record | None:
        return self._get(Appointment, record_id)

    def create_contact_submission(self, fields: Record) -> Record:
        return self._insert(ContactSubmission, fields)

    def get_contact_submissions(self) -> list[Record]:
        return self._newest_first(ContactSubmission)

    def get_contact_submission(self, record_id: str) -> Record | None:
        return self._get(ContactSubmission, record_id)

    def _insert(self, model, fields: Record) -> Record:
        _require_database()
        instance = model.from_fields(
            record_id=str(uuid4()), created_at=self._clock(), fields=fields
        )
        db.session.add(instance)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f"Failed to store {model.__tablename__} record.") from exc
        return instance.to_dict()

    def _newest_first(self, model) -> list[Record]:
        _require_database()
        try:
            rows = db.session.scalars(
                db.select(model).order_by(model.created_at.desc(), model.seq.desc())
            ).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {model.__tablename__} records.") from exc
        return [row.to_dict() for row in rows]

    def _get(self, model, record_id: str) -> Record | None:
        _require_database()
        try:
            instance = db.session.scalars(db.select(model).filter_by(id=record_id)).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {model.__tablename__} record.") from exc
        return instance.to_dict() if instance is not None else None


def _require_database() -> None:
    if not current_app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise StorageConfigurationError("DATABASE_URL environment variable is required")


_BACKENDS: dict[str, Callable[[], RecordStorage]] = {
    "memory": MemoryStorage,
    "database": DatabaseStorage,
}


def build_storage(app: Flask) -> RecordStorage:
    """Instantiate the backend named by ``STORAGE_BACKEND``."""

    name = (app.config.get("STORAGE_BACKEND") or "database").lower()
    try:
        factory = _BACKENDS[name]
    except KeyError as exc:
        raise StorageConfigurationError(f"Unknown STORAGE_BACKEND {name!r}.") from exc
    LOGGER.debug("Using %s record storage", name)
    return factory()


def get_storage() -> RecordStorage:
    """Return the storage bound to the current application."""

    return current_app.extensions[STORAGE_EXTENSION_KEY]
