"""
Course request schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    course_code: str = Field(min_length=1, max_length=20)
    course_name: str = Field(min_length=1, max_length=200)
    units: float | None = Field(default=None, gt=0, le=12)
    program_id: int | None = None
    semester: str | None = Field(default=None, max_length=20)
    year_level: int | None = Field(default=None, ge=1, le=6)


class CourseUpdate(BaseModel):
    course_code: str | None = Field(default=None, min_length=1, max_length=20)
    course_name: str | None = Field(default=None, min_length=1, max_length=200)
    units: float | None = Field(default=None, gt=0, le=12)
    program_id: int | None = None
    semester: str | None = Field(default=None, max_length=20)
    year_level: int | None = Field(default=None, ge=1, le=6)
