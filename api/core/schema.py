"""
Schema capabilities detected once at startup.

Older deployments created `majors` without the archive/code/description
columns. Instead of asking `information_schema` on every request, the app
probes once in the lifespan and injects the resulting value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from .db import QueryExecutor

logger = logging.getLogger(__name__)

MAJOR_BASE_COLUMNS = frozenset({"major_id", "major_name"})
MAJOR_ALL_COLUMNS = frozenset(
    {
        "major_id",
        "major_name",
        "major_code",
        "program_id",
        "description",
        "is_active",
        "created_by",
        "last_updated_by",
    }
)


@dataclass(frozen=True)
class SchemaCapabilities:
    major_columns: frozenset[str] = MAJOR_ALL_COLUMNS

    def major_has(self, column: str) -> bool:
        return column in self.major_columns

    @property
    def major_archivable(self) -> bool:
        return self.major_has("is_active")


async def probe_capabilities(executor: QueryExecutor) -> SchemaCapabilities:
    result = await executor.execute(
        """
        SELECT column_name
        FROM information_schema.columns
        WHERE table_schema = current_schema()
          AND table_name = $1
        """,
        ["majors"],
    )
    if not result.success:
        # Only a probe that answered may switch majors to hard delete.
        logger.warning("schema_probe_failed table=majors error=%s", result.error)
        return SchemaCapabilities()

    columns = frozenset(str(row["column_name"]) for row in result.rows) | MAJOR_BASE_COLUMNS
    missing = sorted(MAJOR_ALL_COLUMNS - columns)
    if missing:
        logger.warning("schema_probe_majors_missing_columns columns=%s", ",".join(missing))
    return SchemaCapabilities(major_columns=columns)


def get_capabilities(request: Request) -> SchemaCapabilities:
    return request.app.state.capabilities
