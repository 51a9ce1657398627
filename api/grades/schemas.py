"""
Grade request schemas.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Remarks = Literal["Passed", "Failed", "Incomplete", "Dropped"]


class GradeCreate(BaseModel):
    enrollment_id: int
    midterm_grade: float | None = Field(default=None, ge=0, le=100)
    final_grade: float | None = Field(default=None, ge=0, le=100)
    remarks: Remarks | None = None


class GradeUpdate(BaseModel):
    midterm_grade: float | None = Field(default=None, ge=0, le=100)
    final_grade: float | None = Field(default=None, ge=0, le=100)
    remarks: Remarks | None = None
