"""
User management request schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from auth.schemas import Role


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=128)
    role: Role = "Staff"


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50)
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role: Role | None = None
