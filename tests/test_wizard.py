"""Tests for the wizard state machine and its end-to-end submission."""
from __future__ import annotations

import threading
import unittest

from backend.app import create_app
from intake.forms.drafts import MemoryDraftStore
from intake.forms.flows import (
    EXISTING_PATIENT_FLOW,
    FLOWS,
    NEW_PATIENT_FLOW,
    appointment_form_flow,
)
from intake.forms.wizard import Wizard, WizardError
from intake.services.submission import FAILURE, SUCCESS, SUPPRESSED, SubmissionPipeline

NEW_PATIENT_STEPS = [
    {"verificationMethod": "email", "verifiedContact": "ada@example.com"},
    {"seekingHelpFor": "myself"},
    {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "dateOfBirth": "1990-04-12",
        "cellNumber": "(716) 555-0100",
        "streetName": "12 Elm Street",
        "city": "Buffalo",
        "state": "NY",
        "zipCode": "14201",
        "howHeardAboutUs": "google_search",
    },
    {"concerns": ["Anxiety / Panic Symptoms"]},
    {
        "insuranceMemberFirstName": "Ada",
        "insuranceMemberLastName": "Lovelace",
        "insuranceMemberDOB": "1990-04-12",
        "insuranceName": "Aetna",
        "insuranceMemberId": "A123456",
        "policyHolder": "me",
    },
    {
        "mentalHealthInfoConsent": True,
        "hospitalizedPastYear": False,
        "selfHarmRisk": False,
        "alcoholRelationship": "none",
        "drugUse": False,
    },
    {
        "emergencyFirstName": "Charles",
        "emergencyLastName": "Babbage",
        "emergencyRelationship": "friend",
        "emergencyPhone": "716-555-0111",
    },
    {
        "visitType": "telehealth",
        "appointmentDate": "2024-06-03",
        "appointmentTime": "10:30 AM",
        "preferredProvider": "first_available",
    },
    {"termsAgreed": True, "privacyAgreed": True},
]


class RecordingTransport:
    """Transport double that records payloads and replays a canned response."""

    def __init__(self, status: int = 201, body=None) -> None:
        self.status = status
        self.body = body if body is not None else {"id": "abc-123", "createdAt": "2024-05-01T09:00:00"}
        self.calls = []

    def __call__(self, method, path, payload):
        self.calls.append((method, path, dict(payload)))
        return self.status, self.body


def _walk_to_final_step(wizard: Wizard) -> None:
    for answers in NEW_PATIENT_STEPS:
        wizard.update(**answers)
        result = wizard.advance()
        if result.verification_sent:
            result = wizard.advance()
        assert result.advanced, result.errors


class WizardNavigationTestCase(unittest.TestCase):
    """Validate step gating, verification and draft bookkeeping."""

    def setUp(self) -> None:
        self.drafts = MemoryDraftStore()
        self.notifications = []
        self.wizard = Wizard(
            NEW_PATIENT_FLOW,
            self.drafts,
            notifier=lambda method, contact: self.notifications.append((method, contact)),
        )

    def test_starts_on_first_step(self) -> None:
        self.assertEqual(self.wizard.current_step, 1)
        self.assertEqual(self.wizard.total_steps, 10)
        self.assertEqual(self.wizard.progress, "Step 1 of 10: Verify your contact")

    def test_invalid_step_blocks_advance(self) -> None:
        result = self.wizard.advance()
        self.assertFalse(result.advanced)
        self.assertIn("verifiedContact", {error.field for error in result.errors})
        self.assertEqual(self.wizard.current_step, 1)
        self.assertEqual(self.wizard.errors["verifiedContact"], "Required")

    def test_first_advance_sends_verification_code(self) -> None:
        self.wizard.set_answer("verifiedContact", "ada@example.com")
        result = self.wizard.advance()
        self.assertFalse(result.advanced)
        self.assertTrue(result.verification_sent)
        self.assertEqual(result.notice, "We've sent a one-time passcode to ada@example.com")
        self.assertEqual(self.notifications, [("email", "ada@example.com")])
        self.assertTrue(self.wizard.otp_sent)

        self.assertTrue(self.wizard.advance().advanced)
        self.assertEqual(self.wizard.current_step, 2)

    def test_verification_needs_a_contact(self) -> None:
        self.assertIsNone(self.wizard.send_verification_code())
        self.assertFalse(self.wizard.otp_sent)

    def test_resend_repeats_notice(self) -> None:
        self.wizard.set_answer("verifiedContact", "716-555-0100")
        self.wizard.set_answer("verificationMethod", "phone")
        self.wizard.send_verification_code()
        notice = self.wizard.resend_verification_code()
        self.assertEqual(notice, "We've sent a one-time passcode to 716-555-0100")
        self.assertEqual(len(self.notifications), 2)

    def test_every_change_saves_the_draft(self) -> None:
        self.wizard.set_answer("verifiedContact", "ada@example.com")
        draft = self.drafts.load(NEW_PATIENT_FLOW.key)
        self.assertEqual(draft["answers"]["verifiedContact"], "ada@example.com")
        self.assertEqual(draft["currentStep"], 1)

    def test_resume_restores_answers_and_step(self) -> None:
        for answers in NEW_PATIENT_STEPS[:4]:
            self.wizard.update(**answers)
            result = self.wizard.advance()
            if result.verification_sent:
                self.wizard.advance()
        self.assertEqual(self.wizard.current_step, 5)

        resumed = Wizard.resume(NEW_PATIENT_FLOW, self.drafts)
        self.assertEqual(resumed.current_step, 5)
        self.assertEqual(resumed.answers, self.wizard.answers)
        self.assertTrue(resumed.otp_sent)

    def test_resume_without_draft_starts_fresh(self) -> None:
        resumed = Wizard.resume(EXISTING_PATIENT_FLOW, self.drafts)
        self.assertEqual(resumed.current_step, 1)
        self.assertEqual(resumed.answers["appointmentType"], "existing")

    def test_resume_clamps_out_of_range_step(self) -> None:
        self.drafts.save(NEW_PATIENT_FLOW.key, {"answers": {}, "currentStep": 42})
        self.assertEqual(Wizard.resume(NEW_PATIENT_FLOW, self.drafts).current_step, 10)
        self.drafts.save(NEW_PATIENT_FLOW.key, {"answers": {}, "currentStep": -3})
        self.assertEqual(Wizard.resume(NEW_PATIENT_FLOW, self.drafts).current_step, 1)

    def test_retreat(self) -> None:
        self.assertFalse(self.wizard.retreat())
        self.wizard.set_answer("verifiedContact", "ada@example.com")
        self.wizard.advance()
        self.wizard.advance()
        self.assertTrue(self.wizard.retreat())
        self.assertEqual(self.wizard.current_step, 1)

    def test_appointment_type_is_fixed(self) -> None:
        with self.assertRaises(WizardError):
            self.wizard.set_answer("appointmentType", "intake")
        self.assertEqual(self.wizard.answers["appointmentType"], "new")

    def test_submit_only_from_final_step(self) -> None:
        pipeline = SubmissionPipeline(RecordingTransport())
        with self.assertRaises(WizardError):
            self.wizard.submit(pipeline)

    def test_quick_form_steps_follow_type(self) -> None:
        wizard = Wizard(appointment_form_flow("existing"), self.drafts)
        self.assertEqual(wizard.total_steps, 4)
        self.assertEqual(
            [step.title for step in wizard.steps],
            ["Personal Information", "Insurance Information", "Appointment Details", "Review & Submit"],
        )


class WizardSubmissionTestCase(unittest.TestCase):
    """Validate submission outcomes and the confirmation state."""

    def setUp(self) -> None:
        self.drafts = MemoryDraftStore()
        self.wizard = Wizard(NEW_PATIENT_FLOW, self.drafts)
        _walk_to_final_step(self.wizard)

    def test_walk_reaches_final_step(self) -> None:
        self.assertTrue(self.wizard.is_final_step)
        self.assertEqual(self.wizard.progress, "Step 10 of 10: Confirmation")
        self.assertFalse(self.wizard.advance().advanced)

    def test_success_clears_draft_and_confirms(self) -> None:
        transport = RecordingTransport()
        result = self.wizard.submit(SubmissionPipeline(transport))

        self.assertEqual(result.status, SUCCESS)
        self.assertIsNone(self.drafts.load(NEW_PATIENT_FLOW.key))
        self.assertTrue(self.wizard.confirmed)
        self.assertEqual(self.wizard.progress, "Confirmation")
        self.assertEqual(self.wizard.confirmation["id"], "abc-123")
        self.assertEqual(self.wizard.confirmation["appointmentTime"], "10:30 AM")

        method, path, payload = transport.calls[0]
        self.assertEqual((method, path), ("POST", "/appointments"))
        self.assertEqual(payload["appointmentType"], "new")
        self.assertNotIn("otpCode", payload)

    def test_confirmation_is_terminal_until_restart(self) -> None:
        self.wizard.submit(SubmissionPipeline(RecordingTransport()))
        with self.assertRaises(WizardError):
            self.wizard.advance()
        with self.assertRaises(WizardError):
            self.wizard.retreat()
        with self.assertRaises(WizardError):
            self.wizard.set_answer("firstName", "Grace")
        with self.assertRaises(WizardError):
            self.wizard.submit(SubmissionPipeline(RecordingTransport()))

        self.wizard.restart()
        self.assertFalse(self.wizard.confirmed)
        self.assertEqual(self.wizard.current_step, 1)
        self.assertEqual(self.wizard.answers["firstName"], "")

    def test_failure_keeps_draft_and_step(self) -> None:
        transport = RecordingTransport(500, {"error": "Failed to create appointment"})
        result = self.wizard.submit(SubmissionPipeline(transport))

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(
            result.message,
            "Failed to create appointment. Please try again or call us at (716) 526-4041.",
        )
        self.assertFalse(self.wizard.confirmed)
        self.assertEqual(self.wizard.current_step, 10)
        draft = self.drafts.load(NEW_PATIENT_FLOW.key)
        self.assertEqual(draft["answers"]["firstName"], "Ada")

        transport.status, transport.body = 201, {"id": "retry-1"}
        self.assertTrue(self.wizard.submit(SubmissionPipeline(transport)).ok)

    def test_invalid_answers_block_submission(self) -> None:
        self.wizard.answers["termsAgreed"] = False
        transport = RecordingTransport()
        result = self.wizard.submit(SubmissionPipeline(transport))
        self.assertEqual(result.status, FAILURE)
        self.assertEqual([error.field for error in result.errors], ["termsAgreed"])
        self.assertEqual(transport.calls, [])

    def test_second_submit_while_pending_is_suppressed(self) -> None:
        entered = threading.Event()
        release = threading.Event()
        calls = []

        def slow_transport(method, path, payload):
            calls.append(payload)
            entered.set()
            release.wait(timeout=5)
            return 201, {"id": "first"}

        results = {}
        worker = threading.Thread(
            target=lambda: results.setdefault(
                "first", self.wizard.submit(SubmissionPipeline(slow_transport))
            )
        )
        worker.start()
        self.assertTrue(entered.wait(timeout=5))
        self.assertTrue(self.wizard.submitting)

        second = self.wizard.submit(SubmissionPipeline(slow_transport))
        release.set()
        worker.join(timeout=5)

        self.assertEqual(second.status, SUPPRESSED)
        self.assertEqual(results["first"].status, SUCCESS)
        self.assertEqual(len(calls), 1)
        self.assertFalse(self.wizard.submitting)
        self.assertTrue(self.wizard.confirmed)


class WizardFlowTableTestCase(unittest.TestCase):
    """Every required field gates its step in every flow."""

    def test_blank_required_field_blocks_its_step(self) -> None:
        for flow in FLOWS.values():
            steps = flow.steps_for(flow.initial_answers())
            for number, step in enumerate(steps, start=1):
                for spec in step.fields:
                    if not spec.required or spec.name == "appointmentType":
                        continue
                    with self.subTest(flow=flow.key, step=number, field=spec.name):
                        wizard = Wizard(
                            flow,
                            MemoryDraftStore(),
                            answers={spec.name: None},
                            current_step=number,
                        )
                        if number < len(steps):
                            result = wizard.advance()
                            self.assertFalse(result.advanced)
                            self.assertIn(spec.name, {error.field for error in result.errors})
                        else:
                            transport = RecordingTransport()
                            result = wizard.submit(SubmissionPipeline(transport))
                            self.assertEqual(result.status, FAILURE)
                            self.assertIn(spec.name, {error.field for error in result.errors})
                            self.assertEqual(transport.calls, [])
                        self.assertEqual(wizard.current_step, number)
                        self.assertIn(spec.name, wizard.errors)

    def test_retreat_from_every_later_step(self) -> None:
        for flow in FLOWS.values():
            total = len(flow.steps_for(flow.initial_answers()))
            for number in range(2, total + 1):
                with self.subTest(flow=flow.key, step=number):
                    wizard = Wizard(flow, MemoryDraftStore(), current_step=number)
                    self.assertTrue(wizard.retreat())
                    self.assertEqual(wizard.current_step, number - 1)


class WizardApiTestCase(unittest.TestCase):
    """Drive a full flow against the Flask API through the test client."""

    def setUp(self) -> None:
        self.app = create_app("ephemeral")
        self.client = self.app.test_client()

    def _transport(self, method, path, payload):
        response = self.client.open(f"/api{path}", method=method, json=payload)
        return response.status_code, response.get_json(silent=True)

    def test_new_patient_flow_creates_record(self) -> None:
        wizard = Wizard(NEW_PATIENT_FLOW, MemoryDraftStore())
        _walk_to_final_step(wizard)
        wizard.set_answer("otpCode", "123456")

        result = wizard.submit(SubmissionPipeline(self._transport))

        self.assertTrue(result.ok, result.message)
        record = self.client.get(f"/api/appointments/{result.record['id']}").get_json()
        self.assertEqual(record["appointmentType"], "new")
        self.assertEqual(record["concerns"], ["Anxiety / Panic Symptoms"])
        self.assertNotIn("otpCode", record)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
