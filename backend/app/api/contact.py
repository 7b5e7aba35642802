"""General enquiry endpoints."""
from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask.typing import ResponseReturnValue

from backend.app.services.records import RecordValidationError, prepare_contact_submission
from backend.app.services.storage import StorageError, get_storage

from .appointments import serialize_record

contact_bp = Blueprint("contact", __name__)


@contact_bp.post("")
def create_contact_submission() -> ResponseReturnValue:
    """Store a message sent through the contact form."""

    payload = request.get_json(silent=True)
    try:
        fields = prepare_contact_submission(payload)
    except RecordValidationError as exc:
        return (
            jsonify(error="Invalid contact data", details=exc.details()),
            HTTPStatus.BAD_REQUEST,
        )

    try:
        record = get_storage().create_contact_submission(fields)
    except StorageError:
        current_app.logger.exception("Failed to submit contact form")
        return jsonify(error="Failed to submit contact form"), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(serialize_record(record)), HTTPStatus.CREATED


@contact_bp.get("")
def list_contact_submissions() -> ResponseReturnValue:
    try:
        records = get_storage().get_contact_submissions()
    except StorageError:
        current_app.logger.exception("Failed to fetch contact submissions")
        return (
            jsonify(error="Failed to fetch contact submissions"),
            HTTPStatus.INTERNAL_SERVER_ERROR,
        )
    return jsonify([serialize_record(record) for record in records]), HTTPStatus.OK


@contact_bp.get("/<string:submission_id>")
def get_contact_submission(submission_id: str) -> ResponseReturnValue:
    try:
        record = get_storage().get_contact_submission(submission_id)
    except StorageError:
        current_app.logger.exception("Failed to fetch contact submission %s", submission_id)
        return (
            jsonify(error="Failed to fetch contact submission"),
            HTTPStatus.INTERNAL_SERVER_ERROR,
        )
    if record is None:
        return jsonify(error="Contact submission not found"), HTTPStatus.NOT_FOUND
    return jsonify(serialize_record(record)), HTTPStatus.OK
