"""
Program persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import Result
from core.sql import set_clause

_PROGRAM_WITH_COUNT = """
    SELECT p.*, COUNT(s.student_id) AS student_count
    FROM programs p
    LEFT JOIN students s ON p.program_id = s.program_id AND s.is_active = true
"""


async def list_programs(db: QueryExecutor) -> Result:
    return await db.execute(
        f"""
        {_PROGRAM_WITH_COUNT}
        WHERE p.is_active = true
        GROUP BY p.program_id
        ORDER BY p.program_name
        """
    )


async def list_archived_programs(db: QueryExecutor) -> Result:
    return await db.execute(
        """
        SELECT *
        FROM programs
        WHERE is_active = false
        ORDER BY last_updated_at DESC, program_id DESC
        """
    )


async def get_program(db: QueryExecutor, program_id: int) -> Result:
    return await db.execute(
        f"""
        {_PROGRAM_WITH_COUNT}
        WHERE p.program_id = $1 AND p.is_active = true
        GROUP BY p.program_id
        """,
        [program_id],
    )


async def find_by_code(db: QueryExecutor, program_code: str, *, exclude_id: int | None = None) -> Result:
    """
    Archived programs count too: a code is never reused.
    """
    if exclude_id is None:
        return await db.execute("SELECT program_id FROM programs WHERE program_code = $1", [program_code])
    return await db.execute(
        "SELECT program_id FROM programs WHERE program_code = $1 AND program_id <> $2",
        [program_code, exclude_id],
    )


async def insert_program(
    db: QueryExecutor,
    *,
    program_name: str,
    program_code: str,
    degree_type: str | None,
    actor_id: int | None,
) -> Result:
    return await db.execute(
        """
        INSERT INTO programs (program_name, program_code, degree_type, is_active, last_updated_by)
        VALUES ($1, $2, $3, true, $4)
        RETURNING program_id
        """,
        [program_name, program_code, degree_type, actor_id],
    )


async def update_program(db: QueryExecutor, program_id: int, values: dict[str, Any], *, actor_id: int | None) -> Result:
    clause, params = set_clause({**values, "last_updated_by": actor_id})
    return await db.execute(
        f"""
        UPDATE programs
        SET {clause}, last_updated_at = CURRENT_TIMESTAMP
        WHERE program_id = ${len(params) + 1}
          AND is_active = true
        """,
        [*params, program_id],
    )
