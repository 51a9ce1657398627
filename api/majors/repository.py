"""
Major persistence (raw SQL).

Every statement is built from the `SchemaCapabilities` probed at startup, so
it only names columns the live `majors` table actually has.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import Result
from core.schema import SchemaCapabilities
from core.sql import insert_clause, set_clause

OPTIONAL_COLUMNS = ("major_code", "program_id", "description", "is_active")


def _select_columns(capabilities: SchemaCapabilities) -> str:
    columns = ["m.major_id", "m.major_name"]
    columns += [f"m.{name}" for name in OPTIONAL_COLUMNS if capabilities.major_has(name)]
    if capabilities.major_has("program_id"):
        columns += ["p.program_name", "p.program_code"]
    return ", ".join(columns)


def _from(capabilities: SchemaCapabilities) -> str:
    if capabilities.major_has("program_id"):
        return "FROM majors m LEFT JOIN programs p ON m.program_id = p.program_id"
    return "FROM majors m"


async def list_majors(
    db: QueryExecutor,
    capabilities: SchemaCapabilities,
    *,
    program_id: int | None = None,
    active: bool = True,
) -> Result:
    filters: list[str] = []
    params: list[Any] = []
    if capabilities.major_archivable:
        filters.append(f"m.is_active = {'true' if active else 'false'}")
    if program_id is not None and capabilities.major_has("program_id"):
        params.append(program_id)
        filters.append(f"m.program_id = ${len(params)}")

    where = f"WHERE {' AND '.join(filters)}" if filters else ""
    return await db.execute(
        f"""
        SELECT {_select_columns(capabilities)}
        {_from(capabilities)}
        {where}
        ORDER BY m.major_name
        """,
        params,
    )


async def get_major(db: QueryExecutor, capabilities: SchemaCapabilities, major_id: int) -> Result:
    return await db.execute(
        f"""
        SELECT {_select_columns(capabilities)}
        {_from(capabilities)}
        WHERE m.major_id = $1
        """,
        [major_id],
    )


async def find_by_code(db: QueryExecutor, major_code: str, *, exclude_id: int | None = None) -> Result:
    if exclude_id is None:
        return await db.execute("SELECT major_id FROM majors WHERE major_code = $1", [major_code])
    return await db.execute(
        "SELECT major_id FROM majors WHERE major_code = $1 AND major_id <> $2",
        [major_code, exclude_id],
    )


async def insert_major(db: QueryExecutor, values: dict[str, Any]) -> Result:
    columns, placeholders = insert_clause(values)
    return await db.execute(
        f"INSERT INTO majors ({columns}) VALUES ({placeholders}) RETURNING major_id",
        list(values.values()),
    )


async def update_major(db: QueryExecutor, major_id: int, values: dict[str, Any]) -> Result:
    clause, params = set_clause(values)
    return await db.execute(
        f"UPDATE majors SET {clause} WHERE major_id = ${len(params) + 1}",
        [*params, major_id],
    )
