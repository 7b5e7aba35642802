"""Parameterised wizard engine shared by every booking flow."""
from __future__ import annotations

import logging
import threading
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable

from intake.forms.drafts import DraftStore
from intake.forms.flows import FlowDefinition, StepDefinition
from intake.forms.schema import FieldError, Schema
from intake.services.submission import (
    FAILURE,
    SUPPRESSED,
    SubmissionPipeline,
    SubmissionResult,
)

LOGGER = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]
"""Receives ``(verification_method, contact)`` when a code is "sent"."""


class WizardError(RuntimeError):
    """Raised for transitions the wizard does not allow."""


@dataclass(slots=True)
class StepResult:
    """Outcome of an ``advance`` attempt."""

    advanced: bool
    errors: list[FieldError] = field(default_factory=list)
    verification_sent: bool = False
    notice: str | None = None

    @property
    def ok(self) -> bool:
        return not self.errors


def _log_notification(method: str, contact: str) -> None:
    LOGGER.info("Simulated %s verification code dispatched", method)


class Wizard:
    """Step pointer, validation gate and draft bookkeeping for one flow.

    Steps are numbered from 1. Every mutation writes the full draft to the
    injected store; a confirmed submission clears it and moves the wizard to
    its terminal confirmation state, from which only :meth:`restart` leads
    back.
    """

    def __init__(
        self,
        flow: FlowDefinition,
        drafts: DraftStore,
        *,
        answers: dict[str, Any] | None = None,
        current_step: int = 1,
        otp_sent: bool = False,
        notifier: Notifier | None = None,
    ) -> None:
        self.flow = flow
        self.drafts = drafts
        self.notifier = notifier or _log_notification
        self.answers: dict[str, Any] = flow.initial_answers()
        if answers:
            self.answers.update(answers)
        self.answers["appointmentType"] = flow.appointment_type
        self.otp_sent = otp_sent
        self.errors: dict[str, str] = {}
        self.record: dict[str, Any] | None = None
        self.confirmed = False
        self.current_step = 1
        self._submit_lock = threading.Lock()
        self._submitting = False
        self._set_step(current_step)

    @classmethod
    def resume(
        cls, flow: FlowDefinition, drafts: DraftStore, *, notifier: Notifier | None = None
    ) -> "Wizard":
        """Rebuild a wizard from the saved draft, or start fresh without one."""

        draft = drafts.load(flow.key)
        if draft is None:
            return cls(flow, drafts, notifier=notifier)
        LOGGER.debug("Resuming %s at step %s", flow.key, draft["currentStep"])
        return cls(
            flow,
            drafts,
            answers=draft["answers"],
            current_step=draft["currentStep"],
            otp_sent=bool(draft.get("otpSent", False)),
            notifier=notifier,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def key(self) -> str:
        return self.flow.key

    @property
    def steps(self) -> tuple[StepDefinition, ...]:
        return self.flow.steps_for(self.answers)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def step(self) -> StepDefinition:
        return self.steps[self.current_step - 1]

    @property
    def step_title(self) -> str:
        return self.step.title

    @property
    def is_final_step(self) -> bool:
        return self.current_step == self.total_steps

    @property
    def progress(self) -> str:
        if self.confirmed:
            return "Confirmation"
        return f"Step {self.current_step} of {self.total_steps}: {self.step_title}"

    @property
    def confirmation(self) -> dict[str, Any] | None:
        """Summary shown once the submission succeeded."""

        if not self.confirmed:
            return None
        summary = {
            name: self.answers.get(name)
            for name in (
                "firstName",
                "appointmentDate",
                "appointmentTime",
                "visitType",
                "preferredProvider",
            )
        }
        summary["id"] = (self.record or {}).get("id")
        return summary

    def snapshot(self) -> dict[str, Any]:
        """Return the draft document for the current state."""

        return {
            "answers": deepcopy(self.answers),
            "currentStep": self.current_step,
            "otpSent": self.otp_sent,
        }

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------
    def set_answer(self, name: str, value: Any) -> None:
        self.update(**{name: value})

    def update(self, **answers: Any) -> None:
        """Record answers and persist the draft."""

        self._ensure_active()
        kind = answers.get("appointmentType", self.flow.appointment_type)
        if kind != self.flow.appointment_type:
            raise WizardError("The appointment type of a flow cannot change.")
        self.answers.update(answers)
        for name in answers:
            self.errors.pop(name, None)
        self._set_step(self.current_step)
        self._save()

    # ------------------------------------------------------------------
    # Verification placeholder
    # ------------------------------------------------------------------
    def send_verification_code(self) -> str | None:
        """Pretend to send a one-time passcode to the entered contact.

        Nothing is issued or checked server side; the flag only gates the
        first step. Returns the notice to display, or ``None`` when no
        contact has been entered yet.
        """

        self._ensure_active()
        contact = (self.answers.get("verifiedContact") or "").strip()
        if not contact:
            return None
        self.notifier(self.answers.get("verificationMethod") or "email", contact)
        self.otp_sent = True
        self._save()
        return f"We've sent a one-time passcode to {contact}"

    def resend_verification_code(self) -> str | None:
        return self.send_verification_code()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def validate_step(self, step: StepDefinition | None = None) -> list[FieldError]:
        step = step or self.step
        return Schema(step.fields).validate(self.answers)

    def advance(self) -> StepResult:
        """Move to the next step if the current one validates."""

        self._ensure_active()
        if self.is_final_step:
            return StepResult(advanced=False)

        errors = self.validate_step()
        self.errors = {error.field: error.message for error in errors}
        if errors:
            LOGGER.debug("%s step %s blocked by %d errors", self.key, self.current_step, len(errors))
            return StepResult(advanced=False, errors=errors)

        if self.flow.requires_verification and self.current_step == 1 and not self.otp_sent:
            notice = self.send_verification_code()
            return StepResult(advanced=False, verification_sent=notice is not None, notice=notice)

        self.current_step += 1
        self._save()
        return StepResult(advanced=True)

    def retreat(self) -> bool:
        """Go back one step; no validation is involved."""

        self._ensure_active()
        if self.current_step <= 1:
            return False
        self.current_step -= 1
        self.errors = {}
        self._save()
        return True

    @property
    def submitting(self) -> bool:
        return self._submitting

    def submit(self, pipeline: SubmissionPipeline) -> SubmissionResult:
        """Validate every step and hand the answers to ``pipeline``.

        Only one submission runs per wizard; a call made while another is
        pending returns a ``suppressed`` result, whichever pipeline it uses.
        """

        self._ensure_active()
        if not self.is_final_step:
            raise WizardError("Submission is only available from the final step.")

        with self._submit_lock:
            if self._submitting:
                LOGGER.info("%s submission already pending; ignoring duplicate submit", self.key)
                return SubmissionResult(SUPPRESSED)
            self._submitting = True

        try:
            return self._submit(pipeline)
        finally:
            with self._submit_lock:
                self._submitting = False

    def _submit(self, pipeline: SubmissionPipeline) -> SubmissionResult:
        errors = [error for step in self.steps for error in self.validate_step(step)]
        self.errors = {error.field: error.message for error in errors}
        if errors:
            return SubmissionResult(
                FAILURE, message="Please correct the highlighted fields.", errors=errors
            )

        result = pipeline.submit(self.answers, self.flow.appointment_type)
        if result.ok:
            self.drafts.clear(self.key)
            self.record = result.record
            self.confirmed = True
        return result

    def restart(self) -> None:
        """Discard the current answers and start the flow again."""

        self.drafts.clear(self.key)
        self.answers = self.flow.initial_answers()
        self.current_step = 1
        self.otp_sent = False
        self.errors = {}
        self.record = None
        self.confirmed = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ensure_active(self) -> None:
        if self.confirmed:
            raise WizardError("This flow has already been submitted.")

    def _set_step(self, step: int) -> None:
        self.current_step = min(max(int(step), 1), self.total_steps)

    def _save(self) -> None:
        self.drafts.save(self.key, self.snapshot())
