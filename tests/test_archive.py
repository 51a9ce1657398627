from __future__ import annotations

import pytest

from archive.service import ENROLLMENT, MAJOR, PROGRAM, STUDENT, USER, ArchiveManager
from core.db import Database, QueryExecutor
from core.errors import ErrorCode
from core.schema import probe_capabilities

import seed


def is_active(pool, table: str, id_column: str, entity_id: int) -> bool:
    rows = pool.query(f"SELECT is_active FROM {table} WHERE {id_column} = ?", (entity_id,))
    return bool(rows[0]["is_active"])


async def test_archive_program_without_students_then_again(archive, pool, sqlite_db, admin_id):
    program_id = seed.add_program(sqlite_db, "BSCS", "Computer Science")

    first = await archive.archive(PROGRAM, program_id, actor_id=admin_id)
    second = await archive.archive(PROGRAM, program_id, actor_id=admin_id)

    assert first.success is True
    assert first.data == {"program_id": program_id, "name": "Computer Science", "is_active": False, "hard_deleted": False}
    assert second.error_code is ErrorCode.NOT_FOUND
    assert second.error == "Program not found or already archived."
    assert pool.query("SELECT is_active, last_updated_by FROM programs") == [{"is_active": 0, "last_updated_by": admin_id}]


@pytest.mark.parametrize("active_students", [1, 3])
async def test_archive_program_with_active_students_is_blocked(archive, pool, sqlite_db, active_students):
    program_id = seed.add_program(sqlite_db)
    for n in range(active_students):
        seed.add_student(sqlite_db, f"2024-000{n}", program_id=program_id)

    result = await archive.archive(PROGRAM, program_id)

    assert result.error_code is ErrorCode.REFERENTIAL_GUARD
    assert result.error == "Cannot archive program: active students remain enrolled."
    assert is_active(pool, "programs", "program_id", program_id)


async def test_archived_students_do_not_block_program_archive(archive, sqlite_db):
    program_id = seed.add_program(sqlite_db)
    seed.add_student(sqlite_db, program_id=program_id, is_active=False)

    result = await archive.archive(PROGRAM, program_id)

    assert result.success is True


async def test_archive_major_with_active_students_is_blocked(archive, pool, sqlite_db):
    program_id = seed.add_program(sqlite_db)
    major_id = seed.add_major(sqlite_db, program_id)
    seed.add_student(sqlite_db, program_id=program_id, major_id=major_id)

    result = await archive.archive(MAJOR, major_id)

    assert result.error_code is ErrorCode.REFERENTIAL_GUARD
    assert is_active(pool, "majors", "major_id", major_id)


@pytest.mark.parametrize("role", ["Admin", "Registrar", "Staff"])
async def test_user_cannot_archive_itself(archive, pool, sqlite_db, role):
    user_id = seed.add_user(sqlite_db, "self", role=role)

    result = await archive.archive(USER, user_id, actor_id=user_id)

    assert result.error_code is ErrorCode.REFERENTIAL_GUARD
    assert result.error == "Cannot archive your own account."
    assert is_active(pool, "users", "user_id", user_id)


async def test_admin_can_archive_another_user(archive, pool, sqlite_db, admin_id):
    clerk_id = seed.add_user(sqlite_db, "clerk", role="Staff")

    result = await archive.archive(USER, clerk_id, actor_id=admin_id)

    assert result.success is True
    assert result.data["name"] == "clerk"
    assert not is_active(pool, "users", "user_id", clerk_id)


async def test_restore_student_then_restore_again(archive, pool, sqlite_db, admin_id):
    student_id = seed.add_student(sqlite_db, first="Ana", last="Reyes", is_active=False)

    first = await archive.restore(STUDENT, student_id, actor_id=admin_id)
    second = await archive.restore(STUDENT, student_id, actor_id=admin_id)

    assert first.data == {"student_id": student_id, "name": "Ana Reyes", "is_active": True}
    assert second.error_code is ErrorCode.NOT_FOUND
    assert second.error == "Archived student not found."
    assert pool.query("SELECT is_active, last_updated_by FROM students") == [{"is_active": 1, "last_updated_by": admin_id}]


async def test_archive_missing_row_is_not_found(archive):
    result = await archive.archive(STUDENT, 404)

    assert result.error_code is ErrorCode.NOT_FOUND
    assert result.error == "Student not found or already archived."


async def test_archived_enrollment_keeps_its_grade(archive, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db)
    enrollment_id = seed.add_enrollment(sqlite_db, student_id, seed.add_course(sqlite_db))
    seed.add_grade(sqlite_db, enrollment_id, 90, "Passed")

    result = await archive.archive(ENROLLMENT, enrollment_id)

    assert result.success is True
    joined = pool.query(
        "SELECT g.final_grade FROM grades g JOIN enrollments e ON g.enrollment_id = e.enrollment_id WHERE e.enrollment_id = ?",
        (enrollment_id,),
    )
    assert joined == [{"final_grade": 90.0}]


async def test_guard_failure_is_reported_not_raised(archive, pool, sqlite_db):
    program_id = seed.add_program(sqlite_db)
    pool.fail_on("SELECT COUNT", OSError("connection reset by peer"))

    result = await archive.archive(PROGRAM, program_id)

    assert result.error_code is ErrorCode.DATABASE_ERROR
    assert is_active(pool, "programs", "program_id", program_id)
    assert pool.in_use == 0


async def test_major_without_archive_column_is_hard_deleted(legacy_archive, legacy_pool):
    legacy_pool.db.execute("INSERT INTO majors (major_name) VALUES ('Data Science')")

    result = await legacy_archive.archive(MAJOR, 1)

    assert result.data == {"major_id": 1, "name": "Data Science", "is_active": False, "hard_deleted": True}
    assert legacy_pool.query("SELECT COUNT(*) AS n FROM majors") == [{"n": 0}]


async def test_major_without_archive_column_still_honors_guard(legacy_archive, legacy_pool):
    legacy_pool.db.execute("INSERT INTO majors (major_name) VALUES ('Data Science')")
    legacy_pool.db.execute(
        "INSERT INTO students (student_number, first_name, last_name, major_id) VALUES ('2024-0001', 'Ana', 'Reyes', 1)"
    )

    result = await legacy_archive.archive(MAJOR, 1)

    assert result.error_code is ErrorCode.REFERENTIAL_GUARD
    assert legacy_pool.query("SELECT COUNT(*) AS n FROM majors") == [{"n": 1}]


async def test_major_without_archive_column_cannot_be_restored(legacy_archive, legacy_pool):
    legacy_pool.db.execute("INSERT INTO majors (major_name) VALUES ('Data Science')")

    result = await legacy_archive.restore(MAJOR, 1)

    assert result.error_code is ErrorCode.NOT_FOUND
    assert legacy_pool.statements == []


async def test_capabilities_read_live_major_columns(executor, legacy_pool):
    current = await probe_capabilities(executor)
    legacy = await probe_capabilities(QueryExecutor(Database(pool=legacy_pool)))

    assert current.major_archivable is True
    assert legacy.major_archivable is False
    assert not legacy.major_has("major_code")


async def test_unreadable_schema_keeps_majors_soft_archived(executor, pool, sqlite_db):
    major_id = seed.add_major(sqlite_db, seed.add_program(sqlite_db))
    pool.fail_on("information_schema", OSError("connection reset by peer"))

    capabilities = await probe_capabilities(executor)
    pool.faults.clear()
    result = await ArchiveManager(executor, capabilities).archive(MAJOR, major_id)

    assert capabilities.major_archivable is True
    assert result.data["hard_deleted"] is False
    assert pool.query("SELECT is_active FROM majors") == [{"is_active": 0}]

    restored = await ArchiveManager(executor, capabilities).restore(MAJOR, major_id)
    assert restored.success is True
