"""
Input normalization for the student aggregate.

Form clients send optional fields as "", "null" or "undefined"; those mean
absent (NULL). Numeric foreign keys are parsed and become absent when they are
not integers. Dates accept `date` objects or ISO strings.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Mapping

ABSENT_TOKENS = frozenset({"", "null", "undefined"})

PHOTO_FIELD = "profile_picture_url"

PERSONAL_FIELDS = (
    "first_name",
    "middle_name",
    "last_name",
    "suffix",
    "gender",
    "citizenship",
    "place_of_birth",
    "religion",
    "civil_status",
    PHOTO_FIELD,
    "program_id",
    "major_id",
    "year_level",
    "academic_status",
    "enrollment_status",
    "date_of_admission",
    "expected_graduation_date",
    "scholarship_type",
    "blood_type",
    "known_allergies",
    "medical_conditions",
)
INTEGER_FIELDS = frozenset({"program_id", "major_id", "year_level"})
DATE_FIELDS = frozenset({"date_of_admission", "expected_graduation_date"})

ADDRESS_TYPES = ("current", "permanent")
ADDRESS_PARTS = ("street", "city", "province", "zip_code")

CONTACT_FIELDS = ("school_email", "alternate_email", "mobile_phone", "home_phone")

# request field -> guardians column
GUARDIAN_FIELDS = {
    "guardian_full_name": "guardian_full_name",
    "guardian_relationship": "guardian_relationship",
    "guardian_phone": "guardian_phone_number",
    "guardian_email": "guardian_email",
    "guardian_address": "guardian_address",
}


def is_absent(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip() in ABSENT_TOKENS


def clean_optional(value: Any) -> Any:
    if is_absent(value):
        return None
    if isinstance(value, str):
        return value.strip()
    return value


def parse_int(value: Any) -> int | None:
    if is_absent(value) or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_date(value: Any) -> date | None:
    if is_absent(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def normalize_field(name: str, value: Any) -> Any:
    if name in INTEGER_FIELDS:
        return parse_int(value)
    if name in DATE_FIELDS:
        return parse_date(value)
    return clean_optional(value)


def personal_values(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recognized personal fields present in `payload`, normalized.

    An empty photo value is dropped rather than nulled: a stored photo is only
    ever replaced by a new reference.
    """
    values: dict[str, Any] = {}
    for name in PERSONAL_FIELDS:
        if name not in payload:
            continue
        if name == PHOTO_FIELD and is_absent(payload[name]):
            continue
        values[name] = normalize_field(name, payload[name])
    return values


def any_present(payload: Mapping[str, Any], fields: Iterable[str]) -> bool:
    return any(not is_absent(payload.get(name)) for name in fields)


def address_fields(address_type: str) -> tuple[str, ...]:
    return tuple(f"{address_type}_{part}" for part in ADDRESS_PARTS)


def address_values(payload: Mapping[str, Any], address_type: str) -> dict[str, Any] | None:
    fields = address_fields(address_type)
    if not any_present(payload, fields):
        return None
    return {part: clean_optional(payload.get(f"{address_type}_{part}")) for part in ADDRESS_PARTS}


def contact_values(payload: Mapping[str, Any]) -> dict[str, Any] | None:
    if not any_present(payload, CONTACT_FIELDS):
        return None
    # mobile is the primary number; home is the fallback.
    phone = clean_optional(payload.get("mobile_phone")) or clean_optional(payload.get("home_phone"))
    return {
        "school_email": clean_optional(payload.get("school_email")),
        "alternate_email": clean_optional(payload.get("alternate_email")),
        "phone_number": phone,
    }


def guardian_values(payload: Mapping[str, Any]) -> dict[str, Any] | None:
    if not any_present(payload, GUARDIAN_FIELDS):
        return None
    return {column: clean_optional(payload.get(field)) for field, column in GUARDIAN_FIELDS.items()}
