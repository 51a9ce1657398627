"""
Major create/update rules on top of the probed schema capabilities.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import ErrorCode, Result
from core.schema import SchemaCapabilities

from . import repository

EDITABLE_COLUMNS = ("major_name", "major_code", "program_id", "description")

DUPLICATE_CODE = "Major code already exists."


def _supported(capabilities: SchemaCapabilities, payload: dict[str, Any]) -> dict[str, Any]:
    return {name: payload[name] for name in EDITABLE_COLUMNS if name in payload and capabilities.major_has(name)}


async def _code_taken(db: QueryExecutor, capabilities: SchemaCapabilities, code: Any, *, exclude_id: int | None) -> Result | None:
    if not code or not capabilities.major_has("major_code"):
        return None
    clash = await repository.find_by_code(db, code, exclude_id=exclude_id)
    if not clash.success:
        return clash
    if clash.rows:
        return Result.fail(ErrorCode.DUPLICATE, DUPLICATE_CODE)
    return None


async def create_major(
    db: QueryExecutor,
    capabilities: SchemaCapabilities,
    payload: dict[str, Any],
    *,
    actor_id: int | None,
) -> Result:
    blocked = await _code_taken(db, capabilities, payload.get("major_code"), exclude_id=None)
    if blocked is not None:
        return blocked

    values = _supported(capabilities, payload)
    if capabilities.major_archivable:
        values["is_active"] = True
    if capabilities.major_has("created_by"):
        values["created_by"] = actor_id

    inserted = await repository.insert_major(db, values)
    if not inserted.success:
        return inserted
    return Result.ok({"major_id": inserted.data.generated_id})


async def update_major(
    db: QueryExecutor,
    capabilities: SchemaCapabilities,
    major_id: int,
    payload: dict[str, Any],
    *,
    actor_id: int | None,
) -> Result:
    current = await repository.get_major(db, capabilities, major_id)
    if not current.success:
        return current
    if not current.rows:
        return Result.fail(ErrorCode.NOT_FOUND, "Major not found.")

    blocked = await _code_taken(db, capabilities, payload.get("major_code"), exclude_id=major_id)
    if blocked is not None:
        return blocked

    values = _supported(capabilities, payload)
    if not values:
        return Result.fail(ErrorCode.INPUT_REJECTED, "No fields to update.")
    if capabilities.major_has("last_updated_by"):
        values["last_updated_by"] = actor_id

    updated = await repository.update_major(db, major_id, values)
    if not updated.success:
        return updated
    return Result.ok({"major_id": major_id})
