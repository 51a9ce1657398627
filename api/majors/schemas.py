"""
Major request schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MajorCreate(BaseModel):
    major_name: str = Field(min_length=1, max_length=200)
    major_code: str = Field(min_length=1, max_length=20)
    program_id: int | None = None
    description: str | None = None


class MajorUpdate(BaseModel):
    major_name: str | None = Field(default=None, min_length=1, max_length=200)
    major_code: str | None = Field(default=None, min_length=1, max_length=20)
    program_id: int | None = None
    description: str | None = None
