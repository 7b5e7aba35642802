"""Send completed wizard answers to the appointment API."""
from __future__ import annotations

import http.client
import json
import logging
import os
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from intake.forms.fields import RECORD_SCHEMA
from intake.forms.schema import FieldError

LOGGER = logging.getLogger(__name__)

DEFAULT_CLINIC_PHONE = os.getenv("CLINIC_PHONE", "(716) 526-4041")

SUCCESS = "success"
FAILURE = "failure"
SUPPRESSED = "suppressed"

Transport = Callable[[str, str, Mapping[str, Any]], tuple[int, Any]]
"""``(method, path, payload) -> (status_code, decoded_body)``."""


class TransportError(RuntimeError):
    """Raised when the API cannot be reached at all."""


@dataclass(slots=True)
class SubmissionResult:
    """Outcome of a single submit attempt."""

    status: str
    record: dict[str, Any] | None = None
    message: str | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


class HttpTransport:
    """JSON-over-HTTP transport backed by ``urllib``."""

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def __call__(self, method: str, path: str, payload: Mapping[str, Any]) -> tuple[int, Any]:
        request = urllib.request.Request(
            self.base_url + path,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method=method,
        )
        kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            with urllib.request.urlopen(request, **kwargs) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            body = exc.read()
        except urllib.error.URLError as exc:
            raise TransportError(f"Unable to reach {self.base_url}: {exc.reason}") from exc
        # Timeouts and dropped connections surface from getresponse()/read() unwrapped.
        except (OSError, http.client.HTTPException) as exc:
            raise TransportError(f"Request to {self.base_url} failed: {exc}") from exc

        return status, _decode(body)


def _decode(body: bytes) -> Any:
    if not body:
        return None
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def build_payload(answers: Mapping[str, Any], appointment_type: str) -> dict[str, Any]:
    """Return the request body for ``answers``, dropping UI-only state."""

    payload = RECORD_SCHEMA.persistable(answers)
    payload["appointmentType"] = appointment_type
    return payload


class SubmissionPipeline:
    """Create appointment records, allowing one request in flight at a time."""

    def __init__(
        self,
        transport: Transport,
        *,
        clinic_phone: str = DEFAULT_CLINIC_PHONE,
        path: str = "/appointments",
    ) -> None:
        self.transport = transport
        self.clinic_phone = clinic_phone
        self.path = path
        self._lock = threading.Lock()
        self._in_flight = False

    @property
    def default_failure_message(self) -> str:
        return f"Please try again or call us at {self.clinic_phone}."

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def submit(self, answers: Mapping[str, Any], appointment_type: str) -> SubmissionResult:
        """Send ``answers`` tagged with ``appointment_type``.

        A call made while another is pending returns a ``suppressed`` result
        without touching the network.
        """

        with self._lock:
            if self._in_flight:
                LOGGER.info("Submission already in flight; ignoring duplicate submit")
                return SubmissionResult(SUPPRESSED)
            self._in_flight = True

        try:
            return self._send(build_payload(answers, appointment_type))
        finally:
            with self._lock:
                self._in_flight = False

    def _send(self, payload: dict[str, Any]) -> SubmissionResult:
        try:
            status, body = self.transport("POST", self.path, payload)
        except TransportError:
            LOGGER.exception("Appointment submission could not reach the API")
            return SubmissionResult(FAILURE, message=self.default_failure_message)

        if status == 201 and isinstance(body, dict):
            LOGGER.info("Appointment %s created", body.get("id"))
            return SubmissionResult(SUCCESS, record=body)

        LOGGER.warning("Appointment submission failed with status %s", status)
        return SubmissionResult(
            FAILURE,
            message=self._failure_message(body),
            errors=_details(body),
        )

    def _failure_message(self, body: Any) -> str:
        if isinstance(body, dict):
            reason = body.get("error")
            if isinstance(reason, str) and reason.strip():
                return f"{reason}. {self.default_failure_message}"
        return self.default_failure_message


def _details(body: Any) -> list[FieldError]:
    if not isinstance(body, dict):
        return []
    details = body.get("details")
    if not isinstance(details, list):
        return []
    return [
        FieldError(str(item.get("field", "")), str(item.get("message", "")))
        for item in details
        if isinstance(item, dict)
    ]
