"""Catalogue of every answer an appointment record can hold."""
from __future__ import annotations

from intake.forms.schema import (
    BOOLEAN,
    CHOICE,
    CONSENT,
    DATE,
    EMAIL,
    MULTI_CHOICE,
    PHONE,
    TEXT,
    Condition,
    FieldSpec,
    Schema,
    required,
)

APPOINTMENT_TYPES: tuple[str, ...] = ("new", "existing", "intake")

# Upper bounds for free-text answers; they match the record column sizes.
NAME_LENGTH = 255
SHORT_LENGTH = 100
PHONE_LENGTH = 50
CODE_LENGTH = 20

OTHER_CONCERN = "Any Other"

CONCERN_OPTIONS: tuple[str, ...] = (
    "Anxiety / Panic Symptoms",
    "Obsessive-Compulsive Disorder (OCD)",
    "Bipolar Mood Disorder",
    "Post-Traumatic Stress Disorder (PTSD)",
    "Depressive Symptoms / Major Depression",
    "Attention-Deficit/Hyperactivity Disorder (ADHD)",
    "Postpartum Depression / Perinatal Mood Concerns",
    "I'm Not Sure – I would like an assessment",
    "Eating Disorder / Disordered Eating Concerns",
    "Personality Disorder or Personality-Related Difficulties",
    "Substance Use / Addiction Concerns",
    "Self-Harm Thoughts or Behaviors",
    OTHER_CONCERN,
)

STATE_OPTIONS: tuple[str, ...] = (
    "NY", "CA", "TX", "FL", "PA", "IL", "OH", "GA", "NC", "MI",
    "NJ", "VA", "WA", "AZ", "MA", "TN", "IN", "MO", "MD", "WI",
    "CO", "MN", "SC", "AL", "LA", "KY", "OR", "OK", "CT", "UT",
    "IA", "NV", "AR", "MS", "KS", "NM", "NE", "ID", "WV", "HI",
    "NH", "ME", "RI", "MT", "DE", "SD", "ND", "AK", "VT", "WY",
)

REFERRAL_SOURCES = (
    "social_media", "friend_family", "doctor_referral",
    "insurance_directory", "google_search", "other",
)
POLICY_HOLDERS = ("me", "spouse", "parent", "step_parent", "other")
ALCOHOL_RELATIONSHIPS = ("healthy", "unhealthy", "unsure", "none")
DRUG_USE_FREQUENCIES = ("daily", "weekly", "monthly", "occasionally", "past")
EMERGENCY_RELATIONSHIPS = (
    "caregiver", "friend", "parent", "spouse", "child", "sibling", "other",
)
VISIT_TYPES = ("in-person", "telehealth")
APPOINTMENT_TIMES = ("9:00 AM", "10:30 AM", "2:00 PM", "3:30 PM")
PROVIDERS = (
    "your_previous_provider", "first_available", "dr_smith", "dr_johnson", "dr_williams",
)
SYMPTOM_DURATIONS = (
    "less_than_month", "1-3_months", "3-6_months", "6-12_months", "more_than_year",
)
SYMPTOM_IMPACTS = ("minimal", "moderate", "significant", "severe")
PREFERRED_TIMES = ("morning", "afternoon", "evening")

# Ordered as the record is presented to staff.
FIELD_CATALOG: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("appointmentType", CHOICE, "Appointment type", choices=APPOINTMENT_TYPES),
        # Contact verification
        FieldSpec("verificationMethod", CHOICE, "Verification method", choices=("email", "phone")),
        FieldSpec("verifiedContact", TEXT, "Email or phone", max_length=NAME_LENGTH),
        FieldSpec("otpCode", TEXT, "Verification code", exact_length=6,
                  message="Code must be 6 digits", transient=True),
        FieldSpec("seekingHelpFor", CHOICE, "Seeking help for", choices=("myself", "someone_else")),
        # Personal information
        FieldSpec("firstName", TEXT, "First name", max_length=NAME_LENGTH),
        FieldSpec("middleName", TEXT, "Middle name", max_length=NAME_LENGTH),
        FieldSpec("lastName", TEXT, "Last name", max_length=NAME_LENGTH),
        FieldSpec("dateOfBirth", DATE, "Date of birth"),
        FieldSpec("cellNumber", PHONE, "Cell number", max_length=PHONE_LENGTH),
        FieldSpec("phone", PHONE, "Phone", max_length=PHONE_LENGTH),
        FieldSpec("email", EMAIL, "Email", max_length=NAME_LENGTH),
        FieldSpec("gender", CHOICE, "Gender", choices=("male", "female")),
        FieldSpec("streetName", TEXT, "Street name", max_length=NAME_LENGTH),
        FieldSpec("aptSuite", TEXT, "Apt / suite", max_length=SHORT_LENGTH),
        FieldSpec("address", TEXT, "Address", max_length=NAME_LENGTH),
        FieldSpec("city", TEXT, "City", max_length=SHORT_LENGTH),
        FieldSpec("state", CHOICE, "State", choices=STATE_OPTIONS),
        FieldSpec("zipCode", TEXT, "ZIP code", min_length=5, max_length=CODE_LENGTH,
                  message="ZIP code is required"),
        FieldSpec("howHeardAboutUs", CHOICE, "How you heard about us", choices=REFERRAL_SOURCES),
        # Concerns and symptoms
        FieldSpec("concerns", MULTI_CHOICE, "Concerns", choices=CONCERN_OPTIONS),
        FieldSpec("otherConcernDetails", TEXT, "Other concern details",
                  required_when=Condition("concerns", contains=OTHER_CONCERN),
                  message="Please describe your concern"),
        FieldSpec("symptomsDescription", TEXT, "Symptoms description"),
        FieldSpec("symptomsDuration", CHOICE, "Symptoms duration", choices=SYMPTOM_DURATIONS),
        FieldSpec("symptomsImpact", CHOICE, "Symptoms impact", choices=SYMPTOM_IMPACTS),
        FieldSpec("symptoms", TEXT, "Symptoms"),
        FieldSpec("currentSymptoms", TEXT, "Current symptoms"),
        FieldSpec("medicationChanges", TEXT, "Medication changes"),
        FieldSpec("reasonForVisit", TEXT, "Reason for visit"),
        # Insurance
        FieldSpec("insuranceMemberFirstName", TEXT, "Member first name", max_length=NAME_LENGTH),
        FieldSpec("insuranceMemberLastName", TEXT, "Member last name", max_length=NAME_LENGTH),
        FieldSpec("insuranceMemberDOB", DATE, "Member date of birth"),
        FieldSpec("insuranceName", TEXT, "Insurance name", max_length=NAME_LENGTH),
        FieldSpec("insuranceProvider", TEXT, "Insurance provider", max_length=NAME_LENGTH),
        FieldSpec("insuranceMemberId", TEXT, "Member ID", max_length=SHORT_LENGTH),
        FieldSpec("insuranceGroupNumber", TEXT, "Group number", max_length=SHORT_LENGTH),
        FieldSpec("insuranceChanged", BOOLEAN, "Insurance changed"),
        FieldSpec("policyHolder", CHOICE, "Policy holder", choices=POLICY_HOLDERS),
        FieldSpec("policyHolderOther", TEXT, "Policy holder details", max_length=NAME_LENGTH,
                  required_when=Condition("policyHolder", equals="other"),
                  message="Please describe the policy holder"),
        # Mental health screening
        FieldSpec("mentalHealthInfoConsent", CONSENT, "Mental health information consent"),
        FieldSpec("hospitalizedPastYear", BOOLEAN, "Hospitalized in the past year"),
        FieldSpec("selfHarmRisk", BOOLEAN, "Self-harm risk"),
        FieldSpec("alcoholRelationship", CHOICE, "Relationship with alcohol",
                  choices=ALCOHOL_RELATIONSHIPS),
        FieldSpec("drugUse", BOOLEAN, "Drug use"),
        FieldSpec("drugUseFrequency", CHOICE, "Drug use frequency", choices=DRUG_USE_FREQUENCIES,
                  required_when=Condition("drugUse", equals=True),
                  message="Please select how often"),
        # Treatment history
        FieldSpec("previousTherapy", TEXT, "Previous therapy"),
        FieldSpec("previousTherapyDetails", TEXT, "Previous therapy details",
                  required_when=Condition("previousTherapy", equals="yes"),
                  message="Please describe your previous treatment"),
        FieldSpec("currentMedications", TEXT, "Current medications"),
        FieldSpec("allergies", TEXT, "Allergies"),
        FieldSpec("medicalHistory", TEXT, "Medical history"),
        # Emergency contact
        FieldSpec("emergencyFirstName", TEXT, "Emergency contact first name",
                  max_length=NAME_LENGTH),
        FieldSpec("emergencyMiddleName", TEXT, "Emergency contact middle name",
                  max_length=NAME_LENGTH),
        FieldSpec("emergencyLastName", TEXT, "Emergency contact last name", max_length=NAME_LENGTH),
        FieldSpec("emergencyRelationship", CHOICE, "Emergency contact relationship",
                  choices=EMERGENCY_RELATIONSHIPS),
        FieldSpec("emergencyRelationshipOther", TEXT, "Emergency contact relationship details",
                  max_length=NAME_LENGTH,
                  required_when=Condition("emergencyRelationship", equals="other"),
                  message="Please describe the relationship"),
        FieldSpec("emergencyPhone", PHONE, "Emergency contact phone", max_length=PHONE_LENGTH),
        FieldSpec("emergencyContactName", TEXT, "Emergency contact name", max_length=NAME_LENGTH),
        FieldSpec("emergencyContactPhone", PHONE, "Emergency contact phone", max_length=PHONE_LENGTH),
        # Visit preferences
        FieldSpec("visitType", CHOICE, "Visit type", choices=VISIT_TYPES),
        FieldSpec("appointmentDate", DATE, "Appointment date"),
        FieldSpec("appointmentTime", CHOICE, "Appointment time", choices=APPOINTMENT_TIMES),
        FieldSpec("preferredProvider", CHOICE, "Preferred provider", choices=PROVIDERS),
        FieldSpec("preferredDate", DATE, "Preferred date"),
        FieldSpec("preferredTime", CHOICE, "Preferred time", choices=PREFERRED_TIMES),
        FieldSpec("preferredLocation", TEXT, "Preferred location", max_length=NAME_LENGTH),
        FieldSpec("appointmentMode", CHOICE, "Appointment mode", choices=VISIT_TYPES),
        FieldSpec("serviceType", TEXT, "Service type", max_length=NAME_LENGTH),
        FieldSpec("additionalNotes", TEXT, "Additional notes"),
        # Consents
        FieldSpec("termsAgreed", CONSENT, "Terms agreement", message="You must agree to terms"),
        FieldSpec("privacyAgreed", CONSENT, "Privacy agreement",
                  message="You must agree to privacy policy"),
        FieldSpec("reminderConsent", BOOLEAN, "Reminder consent"),
    )
}


def catalog(name: str) -> FieldSpec:
    """Return the catalogued spec for ``name``."""

    return FIELD_CATALOG[name]


_RECORD_REQUIRED = {
    "appointmentType": "Appointment type is required.",
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "dateOfBirth": "Date of birth is required",
    "cellNumber": "Valid phone number is required",
}

RECORD_SCHEMA = Schema(
    tuple(
        required(spec, _RECORD_REQUIRED[name]) if name in _RECORD_REQUIRED else spec
        for name, spec in FIELD_CATALOG.items()
        if not spec.transient
    )
)
"""Full field schema the API enforces on every stored appointment."""

RECORD_FIELDS: tuple[str, ...] = RECORD_SCHEMA.names

CONTACT_SCHEMA = Schema(
    (
        FieldSpec("name", TEXT, "Name", max_length=NAME_LENGTH, required=True,
                  message="Name is required"),
        FieldSpec("email", EMAIL, "Email", max_length=NAME_LENGTH, required=True,
                  message="Valid email is required."),
        FieldSpec("phone", PHONE, "Phone", max_length=PHONE_LENGTH, required=True),
        FieldSpec("message", TEXT, "Message", required=True, message="Message is required"),
    )
)

CONTACT_FIELDS: tuple[str, ...] = CONTACT_SCHEMA.names
