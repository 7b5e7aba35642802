"""Application middleware utilities such as audit logging."""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any

from flask import Flask, g, request

AUDIT_LOGGER = logging.getLogger("backend.audit")


@dataclass(slots=True)
class _AuditConfig:
    action: str
    entity_type: str


SIGNIFICANT_ACTIONS: dict[tuple[str, str], _AuditConfig] = {
    ("POST", "/api/appointments"): _AuditConfig(
        action="appointment.created",
        entity_type="appointment",
    ),
    ("POST", "/api/contact"): _AuditConfig(
        action="contact.submitted",
        entity_type="contact_submission",
    ),
}


def register_audit_middleware(app: Flask) -> None:
    """Attach middleware that writes an audit line for every stored record.

    Only hashes of the request and response bodies are logged; answers carry
    health information and never reach the log.
    """

    @app.before_request
    def _capture_audit_context() -> None:
        method = request.method.upper()
        normalized_path = _normalize_path(request.path)
        config = SIGNIFICANT_ACTIONS.get((method, normalized_path))
        if not config:
            g.audit_context = None
            return

        g.audit_context = {
            "config": config,
            "method": method,
            "path": normalized_path,
            "request_bytes": request.get_data(cache=True) or b"",
        }

    @app.after_request
    def _log_audit_entry(response):
        context: dict[str, Any] | None = getattr(g, "audit_context", None)
        if not context:
            return response

        if response.status_code >= 400:
            return response

        config: _AuditConfig = context["config"]
        AUDIT_LOGGER.info(
            "%s %s=%s method=%s path=%s request_hash=%s response_hash=%s",
            config.action,
            config.entity_type,
            _determine_entity_id(response),
            context["method"],
            context["path"],
            _hash_request(context["method"], context["path"], context["request_bytes"]),
            _hash_response(response),
        )
        return response


def _normalize_path(path: str) -> str:
    """Drop a trailing slash so ``/api/contact/`` audits like ``/api/contact``."""

    if path != "/" and path.endswith("/"):
        return path[:-1]
    return path


def _determine_entity_id(response) -> str | None:
    if not getattr(response, "is_json", False):
        return None
    data = response.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data.get("id")


def _hash_request(method: str, path: str, body: bytes) -> str:
    """Fingerprint the request so the audit line can be matched without its answers."""

    payload = f"{method}\n{path}\n".encode("utf-8") + body
    return hashlib.sha256(payload).hexdigest()


def _hash_response(response) -> str:
    """SHA-256 over the status line and the returned record."""

    body = response.get_data() or b""
    payload = f"{response.status_code}\n".encode("utf-8") + body
    return hashlib.sha256(payload).hexdigest()
