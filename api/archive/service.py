"""
Archive lifecycle (soft delete) shared by every archivable entity.

States: Active (`is_active = true`) and Archived (`is_active = false`).
Both transitions are state-checked: archiving an archived row, or restoring an
active one, reports NOT_FOUND instead of silently succeeding. Guards run
before Active -> Archived only.

Courses and grades have no archive state; their repositories delete rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import Request

from core.db import MutationResult, QueryExecutor
from core.errors import ErrorCode, Result
from core.schema import SchemaCapabilities

logger = logging.getLogger(__name__)

Guard = Callable[[QueryExecutor, int, int | None], Awaitable[Result | None]]


@dataclass(frozen=True)
class ArchivableEntity:
    name: str
    label: str
    table: str
    id_column: str
    display: str
    stamp_updated_by: bool = False
    stamp_updated_at: bool = False


PROGRAM = ArchivableEntity(
    name="program",
    label="Program",
    table="programs",
    id_column="program_id",
    display="program_name",
    stamp_updated_by=True,
    stamp_updated_at=True,
)
MAJOR = ArchivableEntity(name="major", label="Major", table="majors", id_column="major_id", display="major_name")
STUDENT = ArchivableEntity(
    name="student",
    label="Student",
    table="students",
    id_column="student_id",
    display="first_name || ' ' || last_name",
    stamp_updated_by=True,
    stamp_updated_at=True,
)
ENROLLMENT = ArchivableEntity(
    name="enrollment",
    label="Enrollment",
    table="enrollments",
    id_column="enrollment_id",
    display="enrollment_id",
)
USER = ArchivableEntity(name="user", label="User", table="users", id_column="user_id", display="username")


async def _active_students_guard(db: QueryExecutor, column: str, entity_id: int, message: str) -> Result | None:
    result = await db.execute(
        f"SELECT COUNT(*) AS count FROM students WHERE {column} = $1 AND is_active = true",
        [entity_id],
    )
    if not result.success:
        return result
    row = result.first() or {}
    if int(row.get("count") or 0) > 0:
        return Result.fail(ErrorCode.REFERENTIAL_GUARD, message)
    return None


async def _program_guard(db: QueryExecutor, entity_id: int, _actor_id: int | None) -> Result | None:
    return await _active_students_guard(
        db, "program_id", entity_id, "Cannot archive program: active students remain enrolled."
    )


async def _major_guard(db: QueryExecutor, entity_id: int, _actor_id: int | None) -> Result | None:
    return await _active_students_guard(
        db, "major_id", entity_id, "Cannot archive major: it is assigned to active students."
    )


async def _self_archive_guard(_db: QueryExecutor, entity_id: int, actor_id: int | None) -> Result | None:
    if actor_id is not None and int(actor_id) == int(entity_id):
        return Result.fail(ErrorCode.REFERENTIAL_GUARD, "Cannot archive your own account.")
    return None


GUARDS: dict[str, tuple[Guard, ...]] = {
    PROGRAM.name: (_program_guard,),
    MAJOR.name: (_major_guard,),
    USER.name: (_self_archive_guard,),
}


class ArchiveManager:
    def __init__(self, db: QueryExecutor, capabilities: SchemaCapabilities) -> None:
        self._db = db
        self._capabilities = capabilities

    def _stamps(self, entity: ArchivableEntity) -> tuple[bool, bool]:
        if entity is MAJOR:
            return self._capabilities.major_has("last_updated_by"), False
        return entity.stamp_updated_by, entity.stamp_updated_at

    async def _find_in_state(self, entity: ArchivableEntity, entity_id: int, *, active: bool | None) -> Result:
        state_filter = "" if active is None else " AND is_active = $2"
        params: list = [entity_id] if active is None else [entity_id, active]
        return await self._db.execute(
            f"""
            SELECT {entity.id_column} AS id, {entity.display} AS display_name
            FROM {entity.table}
            WHERE {entity.id_column} = $1{state_filter}
            """,
            params,
        )

    async def _run_guards(self, entity: ArchivableEntity, entity_id: int, actor_id: int | None) -> Result | None:
        for guard in GUARDS.get(entity.name, ()):
            blocked = await guard(self._db, entity_id, actor_id)
            if blocked is not None:
                return blocked
        return None

    async def _transition(
        self,
        entity: ArchivableEntity,
        entity_id: int,
        *,
        to_active: bool,
        actor_id: int | None,
    ) -> Result:
        stamp_by, stamp_at = self._stamps(entity)
        assignments = ["is_active = $1"]
        params: list = [to_active, entity_id, not to_active]
        if stamp_by:
            params.append(actor_id)
            assignments.append(f"last_updated_by = ${len(params)}")
        if stamp_at:
            assignments.append("last_updated_at = CURRENT_TIMESTAMP")

        return await self._db.execute(
            f"""
            UPDATE {entity.table}
            SET {", ".join(assignments)}
            WHERE {entity.id_column} = $2
              AND is_active = $3
            """,
            params,
        )

    def _not_in_state(self, entity: ArchivableEntity, *, archiving: bool) -> Result:
        if archiving:
            return Result.fail(ErrorCode.NOT_FOUND, f"{entity.label} not found or already archived.")
        return Result.fail(ErrorCode.NOT_FOUND, f"Archived {entity.label.lower()} not found.")

    async def archive(self, entity: ArchivableEntity, entity_id: int, *, actor_id: int | None = None) -> Result:
        if entity is MAJOR and not self._capabilities.major_archivable:
            return await self._delete_major(entity_id, actor_id=actor_id)

        found = await self._find_in_state(entity, entity_id, active=True)
        if not found.success:
            return found
        row = found.first()
        if row is None:
            return self._not_in_state(entity, archiving=True)

        blocked = await self._run_guards(entity, entity_id, actor_id)
        if blocked is not None:
            logger.info(
                "archive_blocked entity=%s id=%s actor_id=%s reason=%s",
                entity.name,
                entity_id,
                actor_id,
                blocked.error,
            )
            return blocked

        updated = await self._transition(entity, entity_id, to_active=False, actor_id=actor_id)
        if not updated.success:
            return updated
        if not isinstance(updated.data, MutationResult) or updated.data.rows_affected == 0:
            # Lost a race with a concurrent archive.
            return self._not_in_state(entity, archiving=True)

        logger.info("archived entity=%s id=%s actor_id=%s", entity.name, entity_id, actor_id)
        return Result.ok(
            {
                entity.id_column: entity_id,
                "name": str(row["display_name"]),
                "is_active": False,
                "hard_deleted": False,
            }
        )

    async def restore(self, entity: ArchivableEntity, entity_id: int, *, actor_id: int | None = None) -> Result:
        if entity is MAJOR and not self._capabilities.major_archivable:
            return self._not_in_state(entity, archiving=False)

        found = await self._find_in_state(entity, entity_id, active=False)
        if not found.success:
            return found
        row = found.first()
        if row is None:
            return self._not_in_state(entity, archiving=False)

        updated = await self._transition(entity, entity_id, to_active=True, actor_id=actor_id)
        if not updated.success:
            return updated
        if not isinstance(updated.data, MutationResult) or updated.data.rows_affected == 0:
            return self._not_in_state(entity, archiving=False)

        logger.info("restored entity=%s id=%s actor_id=%s", entity.name, entity_id, actor_id)
        return Result.ok(
            {
                entity.id_column: entity_id,
                "name": str(row["display_name"]),
                "is_active": True,
            }
        )

    async def _delete_major(self, major_id: int, *, actor_id: int | None) -> Result:
        """
        Compatibility path for `majors` tables without an archive column.
        """
        found = await self._find_in_state(MAJOR, major_id, active=None)
        if not found.success:
            return found
        row = found.first()
        if row is None:
            return self._not_in_state(MAJOR, archiving=True)

        blocked = await self._run_guards(MAJOR, major_id, actor_id)
        if blocked is not None:
            return blocked

        deleted = await self._db.execute("DELETE FROM majors WHERE major_id = $1", [major_id])
        if not deleted.success:
            return deleted
        if not isinstance(deleted.data, MutationResult) or deleted.data.rows_affected == 0:
            return self._not_in_state(MAJOR, archiving=True)

        logger.warning("major_hard_deleted id=%s actor_id=%s reason=no_archive_column", major_id, actor_id)
        return Result.ok(
            {
                "major_id": major_id,
                "name": str(row["display_name"]),
                "is_active": False,
                "hard_deleted": True,
            }
        )


def get_archive_manager(request: Request) -> ArchiveManager:
    return request.app.state.archive
