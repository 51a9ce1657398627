"""
Student request schemas.

Optional fields stay loosely typed (`str`, `int | str`): form clients send
"", "null" or "undefined" for blanks and the writer normalizes them.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

IntLike = int | str | None
DateLike = date | str | None


class StudentFields(BaseModel):
    middle_name: str | None = None
    suffix: str | None = None
    gender: str | None = None
    citizenship: str | None = None
    place_of_birth: str | None = None
    religion: str | None = None
    civil_status: str | None = None
    profile_picture_url: str | None = None

    program_id: IntLike = None
    major_id: IntLike = None
    year_level: IntLike = None
    academic_status: str | None = None
    enrollment_status: str | None = None
    date_of_admission: DateLike = None
    expected_graduation_date: DateLike = None
    scholarship_type: str | None = None

    blood_type: str | None = None
    known_allergies: str | None = None
    medical_conditions: str | None = None

    current_street: str | None = None
    current_city: str | None = None
    current_province: str | None = None
    current_zip_code: str | None = None
    permanent_street: str | None = None
    permanent_city: str | None = None
    permanent_province: str | None = None
    permanent_zip_code: str | None = None

    school_email: str | None = None
    alternate_email: str | None = None
    mobile_phone: str | None = None
    home_phone: str | None = None

    guardian_full_name: str | None = None
    guardian_relationship: str | None = None
    guardian_phone: str | None = None
    guardian_email: str | None = None
    guardian_address: str | None = None


class StudentCreate(StudentFields):
    student_number: str = Field(min_length=1, max_length=50)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class StudentUpdate(StudentFields):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
