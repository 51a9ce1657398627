"""
Program request schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProgramCreate(BaseModel):
    program_name: str = Field(min_length=1, max_length=200)
    program_code: str = Field(min_length=1, max_length=20)
    degree_type: str | None = Field(default=None, max_length=50)


class ProgramUpdate(BaseModel):
    program_name: str | None = Field(default=None, min_length=1, max_length=200)
    program_code: str | None = Field(default=None, min_length=1, max_length=20)
    degree_type: str | None = Field(default=None, max_length=50)
