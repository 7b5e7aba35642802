"""Declarative field definitions and validation for intake answers."""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

TEXT = "text"
EMAIL = "email"
PHONE = "phone"
DATE = "date"
CHOICE = "choice"
MULTI_CHOICE = "multi_choice"
BOOLEAN = "boolean"
CONSENT = "consent"

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_MIN_PHONE_DIGITS = 10


@dataclass(frozen=True)
class Condition:
    """Predicate over a sibling answer that switches a field to required."""

    field: str
    equals: Any = None
    contains: str | None = None

    def holds(self, answers: Mapping[str, Any]) -> bool:
        """Return whether the triggering answer is present."""

        value = answers.get(self.field)
        if self.contains is not None:
            return isinstance(value, (list, tuple)) and self.contains in value
        return value == self.equals


@dataclass(frozen=True)
class FieldError:
    """A single field-level violation."""

    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class FieldSpec:
    """Describes one answer: its primitive kind and constraints."""

    name: str
    kind: str = TEXT
    label: str = ""
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    exact_length: int | None = None
    choices: tuple[str, ...] | None = None
    required_when: Condition | None = None
    message: str | None = None
    transient: bool = False

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def default(self) -> Any:
        """Return the blank value a fresh form starts with."""

        if self.kind in (BOOLEAN, CONSENT):
            return False
        if self.kind == MULTI_CHOICE:
            return []
        return ""

    def is_required(self, answers: Mapping[str, Any]) -> bool:
        if self.required:
            return True
        return self.required_when is not None and self.required_when.holds(answers)

    def check(self, answers: Mapping[str, Any]) -> str | None:
        """Return an error message for this field or ``None`` when it passes."""

        value = answers.get(self.name)
        required = self.is_required(answers)

        if self.kind in (BOOLEAN, CONSENT):
            return self._check_flag(value, required)

        if _is_blank(value):
            if required:
                return self.message or f"{self.display_name} is required."
            return None

        if self.kind == MULTI_CHOICE:
            return self._check_multi_choice(value)

        if not isinstance(value, str):
            return f"{self.display_name} must be text."

        stripped = value.strip()
        if self.min_length is not None and len(stripped) < self.min_length:
            return self.message or (
                f"{self.display_name} must be at least {self.min_length} characters."
            )
        # Measured on the unstripped value, which is what gets stored.
        if self.max_length is not None and len(value) > self.max_length:
            return f"{self.display_name} must be at most {self.max_length} characters."
        if self.exact_length is not None and len(stripped) != self.exact_length:
            return self.message or (
                f"{self.display_name} must be exactly {self.exact_length} characters."
            )

        if self.kind == EMAIL and not _EMAIL_PATTERN.match(stripped):
            return "Valid email is required."
        if self.kind == PHONE and sum(ch.isdigit() for ch in stripped) < _MIN_PHONE_DIGITS:
            return self.message or "Valid phone number is required."
        if self.kind == DATE:
            try:
                date.fromisoformat(stripped)
            except ValueError:
                return f"{self.display_name} must be a date in YYYY-MM-DD format."
        if self.kind == CHOICE and self.choices and stripped not in self.choices:
            return f"{self.display_name} must be one of: {', '.join(self.choices)}."
        return None

    def _check_flag(self, value: Any, required: bool) -> str | None:
        if value is None:
            if required:
                return self.message or f"{self.display_name} is required."
            return None
        if not isinstance(value, bool):
            return f"{self.display_name} must be true or false."
        # A required consent box must be ticked, not merely answered.
        if self.kind == CONSENT and required and value is not True:
            return self.message or f"{self.display_name} is required."
        return None

    def _check_multi_choice(self, value: Any) -> str | None:
        if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
            return f"{self.display_name} must be a list of options."
        if self.choices:
            unknown = [item for item in value if item not in self.choices]
            if unknown:
                return f"{self.display_name} contains unknown options: {', '.join(unknown)}."
        return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class Schema:
    """An ordered collection of field specs validated together."""

    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        names = [spec.name for spec in self.fields]
        if len(names) != len(set(names)):
            raise ValueError("Schema field names must be unique.")

    def __contains__(self, name: object) -> bool:
        return any(spec.name == name for spec in self.fields)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def get(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def validate(
        self, answers: Mapping[str, Any], only: Iterable[str] | None = None
    ) -> list[FieldError]:
        """Validate ``answers`` and return every violation found.

        When ``only`` is supplied just those fields are checked, which lets a
        single wizard step be validated while the rest of the record is still
        incomplete. Conditional requirements still read their trigger from the
        full answer set.
        """

        selected = set(only) if only is not None else None
        errors: list[FieldError] = []
        for spec in self.fields:
            if selected is not None and spec.name not in selected:
                continue
            message = spec.check(answers)
            if message:
                errors.append(FieldError(spec.name, message))
        return errors

    def defaults(self) -> dict[str, Any]:
        return {spec.name: spec.default() for spec in self.fields}

    def persistable(self, answers: Mapping[str, Any]) -> dict[str, Any]:
        """Return the known, non-transient answers."""

        return {
            spec.name: answers[spec.name]
            for spec in self.fields
            if not spec.transient and spec.name in answers
        }


def required(spec: FieldSpec, message: str | None = None, **changes: Any) -> FieldSpec:
    """Return a copy of ``spec`` marked as required."""

    if message is not None:
        changes["message"] = message
    return replace(spec, required=True, **changes)


def optional(spec: FieldSpec, **changes: Any) -> FieldSpec:
    return replace(spec, required=False, **changes)


def merge_schemas(groups: Sequence[Sequence[FieldSpec]]) -> Schema:
    """Combine field groups, keeping the first definition of each name."""

    seen: dict[str, FieldSpec] = {}
    for group in groups:
        for spec in group:
            seen.setdefault(spec.name, spec)
    return Schema(tuple(seen.values()))
