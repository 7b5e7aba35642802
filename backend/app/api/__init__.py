"""API blueprint registration."""
from flask import Blueprint, jsonify

api_bp = Blueprint("api", __name__)


@api_bp.get("/")
def health():
    return jsonify(message="API is running")


# Import endpoints to ensure they are registered with the blueprint.
from .appointments import appointments_bp  # noqa: E402
from .contact import contact_bp  # noqa: E402

api_bp.register_blueprint(appointments_bp, url_prefix="/appointments")
api_bp.register_blueprint(contact_bp, url_prefix="/contact")
