"""Appointment record endpoints."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request
from flask.typing import ResponseReturnValue

from backend.app.services.records import RecordValidationError, prepare_appointment
from backend.app.services.storage import StorageError, get_storage

appointments_bp = Blueprint("appointments", __name__)


def serialize_record(record: dict[str, Any]) -> dict[str, Any]:
    """Return the JSON representation of a stored record."""

    payload = dict(record)
    created_at = payload.get("createdAt")
    if created_at is not None:
        payload["createdAt"] = created_at.isoformat()
    return payload


@appointments_bp.post("")
def create_appointment() -> ResponseReturnValue:
    """Validate and store a new appointment request."""

    payload = request.get_json(silent=True)
    try:
        fields = prepare_appointment(payload)
    except RecordValidationError as exc:
        return (
            jsonify(error="Invalid appointment data", details=exc.details()),
            HTTPStatus.BAD_REQUEST,
        )

    try:
        record = get_storage().create_appointment(fields)
    except StorageError:
        current_app.logger.exception("Failed to create appointment")
        return jsonify(error="Failed to create appointment"), HTTPStatus.INTERNAL_SERVER_ERROR

    current_app.logger.info(
        "Stored %s appointment %s", record.get("appointmentType"), record["id"]
    )
    return jsonify(serialize_record(record)), HTTPStatus.CREATED


@appointments_bp.get("")
def list_appointments() -> ResponseReturnValue:
    """Return every appointment, newest first."""

    try:
        records = get_storage().get_appointments()
    except StorageError:
        current_app.logger.exception("Failed to fetch appointments")
        return jsonify(error="Failed to fetch appointments"), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify([serialize_record(record) for record in records]), HTTPStatus.OK


@appointments_bp.get("/<string:appointment_id>")
def get_appointment(appointment_id: str) -> ResponseReturnValue:
    try:
        record = get_storage().get_appointment(appointment_id)
    except StorageError:
        current_app.logger.exception("Failed to fetch appointment %s", appointment_id)
        return jsonify(error="Failed to fetch appointment"), HTTPStatus.INTERNAL_SERVER_ERROR
    if record is None:
        return jsonify(error="Appointment not found"), HTTPStatus.NOT_FOUND
    return jsonify(serialize_record(record)), HTTPStatus.OK
