"""
Enrollment request schemas.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class EnrollmentCreate(BaseModel):
    student_id: int
    course_id: int
    academic_year: str = Field(min_length=1, max_length=20)
    semester: str = Field(min_length=1, max_length=20)
    status: str | None = Field(default=None, max_length=30)


class EnrollmentUpdate(BaseModel):
    student_id: int | None = None
    course_id: int | None = None
    academic_year: str | None = Field(default=None, min_length=1, max_length=20)
    semester: str | None = Field(default=None, min_length=1, max_length=20)
    date_enrolled: datetime | None = None
    status: str | None = Field(default=None, max_length=30)
