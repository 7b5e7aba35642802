"""Step tables for every booking flow.

Each flow is a :class:`FlowDefinition`: an ordered list of steps, each step
owning the subset of fields it validates before the wizard may move on. The
wizard engine reads these tables; no flow has its own navigation code.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, Iterable, Mapping

from intake.forms.fields import APPOINTMENT_TYPES, catalog
from intake.forms.schema import (
    CHOICE,
    FieldError,
    FieldSpec,
    Schema,
    merge_schemas,
    optional,
    required,
)

StepPredicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class StepDefinition:
    """One screen of a wizard."""

    title: str
    fields: tuple[FieldSpec, ...] = ()
    include_when: StepPredicate | None = None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def applies_to(self, answers: Mapping[str, Any]) -> bool:
        return self.include_when is None or bool(self.include_when(answers))


@dataclass(frozen=True)
class FlowDefinition:
    """Declarative description of a booking flow."""

    key: str
    title: str
    appointment_type: str
    steps: tuple[StepDefinition, ...]
    requires_verification: bool = False
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.appointment_type not in APPOINTMENT_TYPES:
            raise ValueError(f"Unknown appointment type {self.appointment_type!r}.")
        if not self.steps:
            raise ValueError("A flow needs at least one step.")

    @cached_property
    def schema(self) -> Schema:
        return merge_schemas([step.fields for step in self.steps])

    def steps_for(self, answers: Mapping[str, Any]) -> tuple[StepDefinition, ...]:
        """Return the steps that apply to the supplied answers, in order."""

        return tuple(step for step in self.steps if step.applies_to(answers))

    def initial_answers(self) -> dict[str, Any]:
        answers = self.schema.defaults()
        answers.update(self.defaults)
        answers["appointmentType"] = self.appointment_type
        return answers


def _req(name: str, message: str | None = None, **changes: Any) -> FieldSpec:
    return required(catalog(name), message, **changes)


def _opt(name: str, **changes: Any) -> FieldSpec:
    return optional(catalog(name), **changes)


_VERIFY_STEP = StepDefinition(
    "Verify your contact",
    (
        _req("verificationMethod"),
        _req("verifiedContact", "Required"),
        _opt("otpCode"),
    ),
)

_MENTAL_HEALTH_FIELDS = (
    _req("mentalHealthInfoConsent", "Consent is required"),
    _req("hospitalizedPastYear"),
    _req("selfHarmRisk"),
    _req("alcoholRelationship", "Required"),
    _req("drugUse"),
    _opt("drugUseFrequency"),
)

_SCHEDULE_FIELDS = (
    _req("visitType"),
    _req("appointmentDate", "Required"),
    _req("appointmentTime", "Required"),
    _req("preferredProvider", "Required"),
)

_VERIFICATION_DEFAULTS = {"verificationMethod": "email", "visitType": "in-person"}


NEW_PATIENT_FLOW = FlowDefinition(
    key="new-patient-flow",
    title="New Patient Appointment",
    appointment_type="new",
    requires_verification=True,
    defaults={**_VERIFICATION_DEFAULTS, "seekingHelpFor": "myself", "gender": "male"},
    steps=(
        _VERIFY_STEP,
        StepDefinition("Who are you seeking help for?", (_req("seekingHelpFor"),)),
        StepDefinition(
            "Your Information",
            (
                _req("firstName", "First name is required"),
                _opt("middleName"),
                _req("lastName", "Last name is required"),
                _req("dateOfBirth", "Date of birth is required"),
                _req("cellNumber", "Valid phone number is required"),
                _req("gender"),
                _req("streetName", "Street name is required"),
                _opt("aptSuite"),
                _req("city", "City is required"),
                _req("state", "State is required"),
                _req("zipCode", "ZIP code is required"),
                _req("howHeardAboutUs", "Please select an option"),
            ),
        ),
        StepDefinition(
            "Your concern or reason for consultation",
            (
                _req("concerns", "Please select at least one concern"),
                _opt("otherConcernDetails"),
            ),
        ),
        StepDefinition(
            "Insurance Information",
            (
                _req("insuranceMemberFirstName", "Required"),
                _req("insuranceMemberLastName", "Required"),
                _req("insuranceMemberDOB", "Required"),
                _req("insuranceName", "Required"),
                _req("insuranceMemberId", "Required"),
                _req("policyHolder", "Required"),
                _opt("policyHolderOther"),
            ),
        ),
        StepDefinition("Mental Health Questions", _MENTAL_HEALTH_FIELDS),
        StepDefinition(
            "Emergency Contact Details",
            (
                _req("emergencyFirstName", "Required"),
                _opt("emergencyMiddleName"),
                _req("emergencyLastName", "Required"),
                _req("emergencyRelationship", "Required"),
                _opt("emergencyRelationshipOther"),
                _req("emergencyPhone", "Valid phone number is required"),
            ),
        ),
        StepDefinition("Schedule your appointment", _SCHEDULE_FIELDS),
        StepDefinition(
            "Review your details",
            (_req("termsAgreed"), _req("privacyAgreed"), _opt("reminderConsent")),
        ),
        StepDefinition("Confirmation"),
    ),
)

EXISTING_PATIENT_FLOW = FlowDefinition(
    key="existing-patient-flow",
    title="Existing Patient Appointment",
    appointment_type="existing",
    requires_verification=True,
    defaults=_VERIFICATION_DEFAULTS,
    steps=(
        _VERIFY_STEP,
        StepDefinition(
            "Confirm your information",
            (
                _req("firstName", "First name is required"),
                _req("lastName", "Last name is required"),
                _req("dateOfBirth", "Date of birth is required"),
                _req("cellNumber", "Valid phone number is required"),
            ),
        ),
        StepDefinition(
            "Reason for visit",
            (
                _req(
                    "reasonForVisit",
                    "Please describe your reason for visit (min 10 characters)",
                    min_length=10,
                ),
                _opt("currentSymptoms"),
                _opt("medicationChanges"),
            ),
        ),
        StepDefinition(
            "Insurance verification",
            (
                _req("insuranceName", "Required"),
                _req("insuranceMemberId", "Required"),
                _req("insuranceChanged"),
            ),
        ),
        StepDefinition("Schedule your appointment", _SCHEDULE_FIELDS),
        StepDefinition("Review & confirm", (_req("termsAgreed"), _opt("reminderConsent"))),
    ),
)

INTAKE_FORM_FLOW = FlowDefinition(
    key="intake-form-flow",
    title="Intake Assessment",
    appointment_type="intake",
    defaults={"visitType": "in-person"},
    steps=(
        StepDefinition(
            "Personal Information",
            (
                _req("firstName", "First name is required"),
                _opt("middleName"),
                _req("lastName", "Last name is required"),
                _req("dateOfBirth", "Date of birth is required"),
                _req("cellNumber", "Valid phone number is required"),
                _req("email", "Valid email is required."),
            ),
        ),
        StepDefinition(
            "Primary Concerns",
            (
                _req("concerns", "Please select at least one concern"),
                _opt("otherConcernDetails"),
            ),
        ),
        StepDefinition(
            "Symptoms Assessment",
            (
                _req(
                    "symptomsDescription",
                    "Please describe your symptoms (min 10 characters)",
                    min_length=10,
                ),
                _req("symptomsDuration", "Required"),
                _req("symptomsImpact", "Required"),
            ),
        ),
        StepDefinition(
            "Treatment History",
            (
                _req("previousTherapy", "Required", kind=CHOICE, choices=("yes", "no")),
                _opt("previousTherapyDetails"),
                _opt("currentMedications"),
                _opt("allergies"),
                _opt("medicalHistory"),
            ),
        ),
        StepDefinition("Mental Health Questions", _MENTAL_HEALTH_FIELDS),
        StepDefinition(
            "Emergency Contact",
            (
                _req("emergencyFirstName", "Required"),
                _req("emergencyLastName", "Required"),
                _req(
                    "emergencyRelationship",
                    "Required",
                    choices=("parent", "spouse", "sibling", "friend", "other"),
                ),
                _opt("emergencyRelationshipOther"),
                _req("emergencyPhone", "Valid phone number is required"),
            ),
        ),
        StepDefinition(
            "Insurance Information",
            (
                _req("insuranceMemberFirstName", "Required"),
                _req("insuranceMemberLastName", "Required"),
                _req("insuranceMemberDOB", "Required"),
                _req("insuranceName", "Required"),
                _req("insuranceMemberId", "Required"),
            ),
        ),
        StepDefinition(
            "Review & Submit",
            (
                _req("visitType"),
                _opt("preferredDate"),
                _req("termsAgreed"),
                _req("privacyAgreed"),
                _opt("reminderConsent"),
            ),
        ),
    ),
)


def _for_types(*types: str) -> StepPredicate:
    def predicate(answers: Mapping[str, Any]) -> bool:
        return answers.get("appointmentType") in types

    return predicate


# One table for the short booking form; which steps appear depends on the
# appointmentType answer carried in the draft.
_APPOINTMENT_FORM_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(
        "Personal Information",
        (
            _req("firstName", "First name is required"),
            _req("lastName", "Last name is required"),
            _req("email", "Valid email is required."),
            _req("cellNumber", "Valid phone number is required"),
            _req("dateOfBirth", "Date of birth is required"),
            _opt("address"),
            _opt("city"),
            _opt("state"),
            _opt("zipCode"),
        ),
    ),
    StepDefinition(
        "Insurance Information",
        (_opt("insuranceProvider"), _opt("insuranceMemberId"), _opt("insuranceGroupNumber")),
    ),
    StepDefinition(
        "Medical History",
        (
            _opt("medicalHistory"),
            _opt("currentMedications"),
            _opt("allergies"),
            _opt("emergencyContactName"),
            _opt("emergencyContactPhone"),
        ),
        include_when=_for_types("new", "intake"),
    ),
    StepDefinition(
        "Symptoms & History",
        (_opt("previousTherapy"), _opt("symptoms")),
        include_when=_for_types("intake"),
    ),
    StepDefinition(
        "Appointment Details",
        (
            _req("reasonForVisit", "Reason for visit is required"),
            _opt("serviceType"),
            _opt("preferredLocation"),
            _opt("appointmentMode"),
            _opt("preferredDate"),
            _opt("preferredTime"),
            _opt("additionalNotes"),
        ),
    ),
    StepDefinition("Review & Submit"),
)

_APPOINTMENT_FORM_TITLES = {
    "new": "New Patient Appointment",
    "existing": "Existing Patient Appointment",
    "intake": "Intake Form",
}


def appointment_form_flow(appointment_type: str) -> FlowDefinition:
    """Return the short booking form for ``appointment_type``."""

    if appointment_type not in APPOINTMENT_TYPES:
        raise ValueError(f"Unknown appointment type {appointment_type!r}.")
    return FlowDefinition(
        key=f"appointment-form-{appointment_type}",
        title=_APPOINTMENT_FORM_TITLES[appointment_type],
        appointment_type=appointment_type,
        steps=_APPOINTMENT_FORM_STEPS,
    )


FLOWS: dict[str, FlowDefinition] = {
    flow.key: flow
    for flow in (
        NEW_PATIENT_FLOW,
        EXISTING_PATIENT_FLOW,
        INTAKE_FORM_FLOW,
        *(appointment_form_flow(kind) for kind in APPOINTMENT_TYPES),
    )
}

_CANONICAL_FLOWS = {
    "new": NEW_PATIENT_FLOW,
    "existing": EXISTING_PATIENT_FLOW,
    "intake": INTAKE_FORM_FLOW,
}


def flow_for(appointment_type: str) -> FlowDefinition:
    """Return the full booking flow for ``appointment_type``."""

    try:
        return _CANONICAL_FLOWS[appointment_type]
    except KeyError as exc:
        raise ValueError(f"Unknown appointment type {appointment_type!r}.") from exc


def get_flow(key: str) -> FlowDefinition:
    try:
        return FLOWS[key]
    except KeyError as exc:
        raise ValueError(f"Unknown flow {key!r}.") from exc


def validate_appointment(
    candidate: Mapping[str, Any],
    appointment_type: str,
    only: Iterable[str] | None = None,
) -> list[FieldError]:
    """Validate ``candidate`` against the full flow for ``appointment_type``.

    Pass ``only`` to check a subset of fields, as a single step does.
    """

    return flow_for(appointment_type).schema.validate(candidate, only=only)
