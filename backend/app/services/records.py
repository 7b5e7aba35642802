"""Server-side validation and normalisation of incoming records."""
from __future__ import annotations

from typing import Any

from intake.forms.fields import CONTACT_SCHEMA, RECORD_SCHEMA
from intake.forms.schema import FieldError, Schema


class RecordValidationError(ValueError):
    """Raised when a payload fails schema validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__("; ".join(f"{error.field}: {error.message}" for error in errors))
        self.errors = errors

    def details(self) -> list[dict[str, str]]:
        return [error.as_dict() for error in self.errors]


def _prepare(schema: Schema, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise RecordValidationError([FieldError("body", "Request body must be a JSON object.")])

    errors = schema.validate(payload)
    if errors:
        raise RecordValidationError(errors)

    # Every stored record carries the full field set so both backends agree on shape.
    known = schema.persistable(payload)
    return {name: known.get(name) for name in schema.names}


def prepare_appointment(payload: Any) -> dict[str, Any]:
    """Validate an appointment body and return its storable fields.

    Client-side validation is never trusted; the full record schema is applied
    again here. Unknown keys and UI-only answers such as the passcode are
    dropped.
    """

    return _prepare(RECORD_SCHEMA, payload)


def prepare_contact_submission(payload: Any) -> dict[str, Any]:
    return _prepare(CONTACT_SCHEMA, payload)
