"""
Program create/update rules.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import ErrorCode, Result
from core.sql import pick

from . import repository

PROGRAM_FIELDS = ("program_name", "program_code", "degree_type")

DUPLICATE_CODE = "Program code already exists."


async def create_program(db: QueryExecutor, payload: dict[str, Any], *, actor_id: int | None) -> Result:
    existing = await repository.find_by_code(db, payload["program_code"])
    if not existing.success:
        return existing
    if existing.rows:
        return Result.fail(ErrorCode.DUPLICATE, DUPLICATE_CODE)

    inserted = await repository.insert_program(
        db,
        program_name=payload["program_name"],
        program_code=payload["program_code"],
        degree_type=payload.get("degree_type"),
        actor_id=actor_id,
    )
    if not inserted.success:
        return inserted
    return Result.ok({"program_id": inserted.data.generated_id, **pick(payload, PROGRAM_FIELDS)})


async def update_program(
    db: QueryExecutor,
    program_id: int,
    payload: dict[str, Any],
    *,
    actor_id: int | None,
) -> Result:
    values = pick(payload, PROGRAM_FIELDS)
    if not values:
        return Result.fail(ErrorCode.INPUT_REJECTED, "No fields to update.")

    if values.get("program_code"):
        clash = await repository.find_by_code(db, values["program_code"], exclude_id=program_id)
        if not clash.success:
            return clash
        if clash.rows:
            return Result.fail(ErrorCode.DUPLICATE, DUPLICATE_CODE)

    updated = await repository.update_program(db, program_id, values, actor_id=actor_id)
    if not updated.success:
        return updated
    if updated.data.rows_affected == 0:
        return Result.fail(ErrorCode.NOT_FOUND, "Program not found.")
    return Result.ok({"program_id": program_id})
