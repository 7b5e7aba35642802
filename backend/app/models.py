"""Database models for stored intake records."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.extensions import db
from intake.forms.fields import CONTACT_FIELDS, RECORD_FIELDS

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def column_name(field_name: str) -> str:
    """Map a wire field name such as ``insuranceMemberDOB`` to its column."""

    return _CAMEL_BOUNDARY.sub(r"\1_\2", field_name).lower()


class CreatedAtMixin:
    """Insert-only timestamp; records are never updated."""

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class RecordMixin(CreatedAtMixin):
    """Conversion between wire dictionaries and mapped columns.

    ``seq`` is a database-assigned insert counter used only to order records
    that share a timestamp; the public identity is the uuid in ``id``.
    """

    wire_fields = ()

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    @classmethod
    def from_fields(cls, *, record_id: str, created_at: datetime, fields: dict[str, Any]):
        values = {column_name(name): fields.get(name) for name in cls.wire_fields}
        return cls(id=record_id, created_at=created_at, **values)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id}
        for name in self.wire_fields:
            payload[name] = getattr(self, column_name(name))
        payload["createdAt"] = self.created_at
        return payload


class Appointment(db.Model, RecordMixin):
    """A submitted booking or intake request."""

    __tablename__ = "appointments"
    wire_fields = RECORD_FIELDS

    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    appointment_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    verification_method: Mapped[str | None] = mapped_column(String(20))
    verified_contact: Mapped[str | None] = mapped_column(String(255))
    seeking_help_for: Mapped[str | None] = mapped_column(String(50))

    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(255))
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[str] = mapped_column(String(20), nullable=False)
    cell_number: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    gender: Mapped[str | None] = mapped_column(String(20))

    street_name: Mapped[str | None] = mapped_column(String(255))
    apt_suite: Mapped[str | None] = mapped_column(String(100))
    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(20))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    how_heard_about_us: Mapped[str | None] = mapped_column(String(50))

    concerns: Mapped[list[str] | None] = mapped_column(db.JSON)
    other_concern_details: Mapped[str | None] = mapped_column(Text)
    symptoms_description: Mapped[str | None] = mapped_column(Text)
    symptoms_duration: Mapped[str | None] = mapped_column(String(50))
    symptoms_impact: Mapped[str | None] = mapped_column(String(50))
    symptoms: Mapped[str | None] = mapped_column(Text)
    current_symptoms: Mapped[str | None] = mapped_column(Text)
    medication_changes: Mapped[str | None] = mapped_column(Text)
    reason_for_visit: Mapped[str | None] = mapped_column(Text)

    insurance_member_first_name: Mapped[str | None] = mapped_column(String(255))
    insurance_member_last_name: Mapped[str | None] = mapped_column(String(255))
    insurance_member_dob: Mapped[str | None] = mapped_column(String(20))
    insurance_name: Mapped[str | None] = mapped_column(String(255))
    insurance_provider: Mapped[str | None] = mapped_column(String(255))
    insurance_member_id: Mapped[str | None] = mapped_column(String(100))
    insurance_group_number: Mapped[str | None] = mapped_column(String(100))
    insurance_changed: Mapped[bool | None] = mapped_column(Boolean)
    policy_holder: Mapped[str | None] = mapped_column(String(50))
    policy_holder_other: Mapped[str | None] = mapped_column(String(255))

    mental_health_info_consent: Mapped[bool | None] = mapped_column(Boolean)
    hospitalized_past_year: Mapped[bool | None] = mapped_column(Boolean)
    self_harm_risk: Mapped[bool | None] = mapped_column(Boolean)
    alcohol_relationship: Mapped[str | None] = mapped_column(String(50))
    drug_use: Mapped[bool | None] = mapped_column(Boolean)
    drug_use_frequency: Mapped[str | None] = mapped_column(String(50))

    previous_therapy: Mapped[str | None] = mapped_column(Text)
    previous_therapy_details: Mapped[str | None] = mapped_column(Text)
    current_medications: Mapped[str | None] = mapped_column(Text)
    allergies: Mapped[str | None] = mapped_column(Text)
    medical_history: Mapped[str | None] = mapped_column(Text)

    emergency_first_name: Mapped[str | None] = mapped_column(String(255))
    emergency_middle_name: Mapped[str | None] = mapped_column(String(255))
    emergency_last_name: Mapped[str | None] = mapped_column(String(255))
    emergency_relationship: Mapped[str | None] = mapped_column(String(50))
    emergency_relationship_other: Mapped[str | None] = mapped_column(String(255))
    emergency_phone: Mapped[str | None] = mapped_column(String(50))
    emergency_contact_name: Mapped[str | None] = mapped_column(String(255))
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(50))

    visit_type: Mapped[str | None] = mapped_column(String(20))
    appointment_date: Mapped[str | None] = mapped_column(String(20))
    appointment_time: Mapped[str | None] = mapped_column(String(20))
    preferred_provider: Mapped[str | None] = mapped_column(String(100))
    preferred_date: Mapped[str | None] = mapped_column(String(20))
    preferred_time: Mapped[str | None] = mapped_column(String(20))
    preferred_location: Mapped[str | None] = mapped_column(String(255))
    appointment_mode: Mapped[str | None] = mapped_column(String(20))
    service_type: Mapped[str | None] = mapped_column(String(255))
    additional_notes: Mapped[str | None] = mapped_column(Text)

    terms_agreed: Mapped[bool | None] = mapped_column(Boolean)
    privacy_agreed: Mapped[bool | None] = mapped_column(Boolean)
    reminder_consent: Mapped[bool | None] = mapped_column(Boolean)

    def __repr__(self) -> str:
        return f"<Appointment id={self.id} type={self.appointment_type!r}>"


class ContactSubmission(db.Model, RecordMixin):
    """A general enquiry sent through the contact form."""

    __tablename__ = "contact_submissions"
    wire_fields = CONTACT_FIELDS

    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<ContactSubmission id={self.id} email={self.email!r}>"
