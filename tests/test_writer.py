from __future__ import annotations

import asyncpg
import pytest

from core.errors import ErrorCode, TransactionAborted
from students import writer

import seed


def count(pool, table: str) -> int:
    return pool.query(f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]


def student_payload(**extra):
    return {"student_number": "2024-0001", "first_name": "Ana", "last_name": "Reyes", **extra}


async def test_create_with_only_current_address_writes_one_address(executor, pool):
    payload = student_payload(current_street="12 Rizal St", current_city="Quezon City")

    result = await writer.create_student(executor, payload)

    assert result.success is True
    addresses = pool.query("SELECT student_id, type, street, city, province FROM addresses")
    assert addresses == [
        {
            "student_id": result.data["student_id"],
            "type": "current",
            "street": "12 Rizal St",
            "city": "Quezon City",
            "province": None,
        }
    ]
    assert count(pool, "contact_info") == 0
    assert count(pool, "guardians") == 0


async def test_create_full_aggregate_in_one_transaction(executor, pool, admin_id):
    payload = student_payload(
        middle_name="Cruz",
        current_city="Quezon City",
        permanent_city="Baguio",
        school_email="ana.reyes@school.edu",
        home_phone="02-555-0101",
        guardian_full_name="Maria Reyes",
        guardian_relationship="Mother",
        guardian_phone="0917-555-0101",
    )

    result = await writer.create_student(executor, payload, actor_id=admin_id)

    assert result.success is True
    student_id = result.data["student_id"]
    assert sorted(row["type"] for row in pool.query("SELECT type FROM addresses")) == ["current", "permanent"]
    assert pool.query("SELECT school_email, phone_number FROM contact_info") == [
        {"school_email": "ana.reyes@school.edu", "phone_number": "02-555-0101"}
    ]
    assert pool.query("SELECT student_id, guardian_full_name, guardian_phone_number FROM guardians") == [
        {"student_id": student_id, "guardian_full_name": "Maria Reyes", "guardian_phone_number": "0917-555-0101"}
    ]
    assert pool.query("SELECT last_updated_by FROM students") == [{"last_updated_by": admin_id}]
    # One connection for the whole unit.
    assert pool.acquired == 1
    assert pool.in_use == 0


async def test_create_normalizes_blank_tokens_and_foreign_keys(executor, pool):
    payload = student_payload(middle_name="undefined", suffix="null", program_id="abc", year_level="2", religion="  ")

    result = await writer.create_student(executor, payload)

    assert result.success is True
    row = pool.query("SELECT middle_name, suffix, program_id, year_level, religion FROM students")[0]
    assert row == {"middle_name": None, "suffix": None, "program_id": None, "year_level": 2, "religion": None}


async def test_create_duplicate_student_number(executor, pool, sqlite_db):
    seed.add_student(sqlite_db, "2024-0001")

    result = await writer.create_student(executor, student_payload(current_city="Quezon City"))

    assert result.error_code is ErrorCode.DUPLICATE
    assert result.error == writer.DUPLICATE_STUDENT_NUMBER
    assert count(pool, "students") == 1
    assert count(pool, "addresses") == 0


async def test_create_duplicate_caught_by_constraint(executor, pool, sqlite_db):
    # The pre-check misses (e.g. a concurrent insert); the unique key still decides.
    exc = asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
    exc.constraint_name = "students_student_number_key"
    pool.fail_on("SELECT student_id FROM students WHERE student_number", exc)

    result = await writer.create_student(executor, student_payload())

    assert result.error_code is ErrorCode.DUPLICATE
    assert result.error == writer.DUPLICATE_STUDENT_NUMBER
    assert pool.in_use == 0


@pytest.mark.parametrize(
    "guardian",
    [
        {"guardian_full_name": "x'; DROP TABLE students; --"},
        {"guardian_full_name": "Maria Reyes", "guardian_relationship": "Mother -- aunt"},
        {"guardian_email": "x' OR 1=1"},
        {"guardian_address": "/* lot 4 */"},
    ],
)
async def test_rejected_guardian_rolls_back_the_student(executor, pool, guardian):
    payload = student_payload(current_city="Quezon City", school_email="ana.reyes@school.edu", **guardian)

    result = await writer.create_student(executor, payload)

    assert result.success is False
    assert result.error_code is ErrorCode.INPUT_REJECTED
    assert count(pool, "students") == 0
    assert count(pool, "addresses") == 0
    assert count(pool, "contact_info") == 0
    assert pool.in_use == 0


async def test_failed_guardian_insert_aborts_the_whole_create(executor, pool):
    pool.fail_on("INSERT INTO guardians", asyncpg.exceptions.DeadlockDetectedError("deadlock detected"))
    payload = student_payload(current_city="Quezon City", guardian_full_name="Maria Reyes")

    with pytest.raises(TransactionAborted):
        await writer.create_student(executor, payload)

    assert count(pool, "students") == 0
    assert count(pool, "addresses") == 0
    assert pool.in_use == 0
    assert pool.acquired == pool.released


async def test_create_with_unknown_program_is_a_constraint_violation(executor, pool):
    result = await writer.create_student(executor, student_payload(program_id=999))

    assert result.error_code is ErrorCode.CONSTRAINT_VIOLATION
    assert count(pool, "students") == 0


async def test_create_requires_student_number(executor, pool):
    result = await writer.create_student(executor, {"student_number": "", "first_name": "Ana", "last_name": "Reyes"})

    assert result.error_code is ErrorCode.INPUT_REJECTED
    assert pool.acquired == 0


async def test_update_blank_field_stores_null_but_keeps_photo(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db, middle="Cruz", photo="/uploads/students/ana.png")

    result = await writer.update_student(executor, student_id, {"middle_name": "", "profile_picture_url": ""})

    assert result.success is True
    row = pool.query("SELECT middle_name, profile_picture_url FROM students WHERE student_id = ?", (student_id,))[0]
    assert row == {"middle_name": None, "profile_picture_url": "/uploads/students/ana.png"}


async def test_update_new_photo_supersedes_stored_one(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db, photo="/uploads/students/old.png")

    result = await writer.update_student(executor, student_id, {}, photo_url="/uploads/students/new.png")

    assert result.success is True
    assert pool.query("SELECT profile_picture_url FROM students") == [{"profile_picture_url": "/uploads/students/new.png"}]


async def test_update_without_recognized_fields_is_a_no_op(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db, middle="Cruz")
    before = pool.query("SELECT * FROM students")

    result = await writer.update_student(executor, student_id, {"nickname": "Annie"})

    assert result.success is True
    assert result.data == {"student_id": student_id}
    assert pool.query("SELECT * FROM students") == before


async def test_update_missing_or_archived_student_is_not_found(executor, sqlite_db):
    archived_id = seed.add_student(sqlite_db, is_active=False)

    missing = await writer.update_student(executor, 999, {"middle_name": "Cruz"})
    archived = await writer.update_student(executor, archived_id, {"middle_name": "Cruz"})

    assert missing.error_code is ErrorCode.NOT_FOUND
    assert archived.error_code is ErrorCode.NOT_FOUND


async def test_update_upserts_addresses_by_type(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db)
    sqlite_db.execute("INSERT INTO addresses (student_id, type, city) VALUES (?, 'current', 'Manila')", (student_id,))

    result = await writer.update_student(
        executor,
        student_id,
        {"current_city": "Quezon City", "permanent_city": "Baguio"},
    )

    assert result.success is True
    rows = pool.query("SELECT type, city FROM addresses ORDER BY type")
    assert rows == [{"type": "current", "city": "Quezon City"}, {"type": "permanent", "city": "Baguio"}]


async def test_update_inserts_contact_when_missing_then_updates_it(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db)

    await writer.update_student(executor, student_id, {"mobile_phone": "0917-555-0101"})
    await writer.update_student(executor, student_id, {"school_email": "ana.reyes@school.edu", "mobile_phone": "0917-555-0202"})

    assert pool.query("SELECT school_email, phone_number FROM contact_info") == [
        {"school_email": "ana.reyes@school.edu", "phone_number": "0917-555-0202"}
    ]


async def test_update_targets_the_lowest_id_guardian(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db)
    for name in ("Maria Reyes", "Jose Reyes"):
        sqlite_db.execute("INSERT INTO guardians (student_id, guardian_full_name) VALUES (?, ?)", (student_id, name))

    result = await writer.update_student(executor, student_id, {"guardian_full_name": "Maria Santos"})

    assert result.success is True
    names = [row["guardian_full_name"] for row in pool.query("SELECT guardian_full_name FROM guardians ORDER BY guardian_id")]
    assert names == ["Maria Santos", "Jose Reyes"]


async def test_update_stamps_actor(executor, pool, sqlite_db, admin_id):
    student_id = seed.add_student(sqlite_db)

    await writer.update_student(executor, student_id, {"year_level": "3"}, actor_id=admin_id)

    assert pool.query("SELECT year_level, last_updated_by FROM students") == [{"year_level": 3, "last_updated_by": admin_id}]


async def test_failed_sub_write_leaves_update_unapplied(executor, pool, sqlite_db):
    student_id = seed.add_student(sqlite_db, middle="Cruz")
    pool.fail_on("INSERT INTO contact_info", asyncpg.exceptions.DeadlockDetectedError("deadlock detected"))

    with pytest.raises(TransactionAborted):
        await writer.update_student(executor, student_id, {"middle_name": "Santos", "school_email": "ana@school.edu"})

    assert pool.query("SELECT middle_name FROM students") == [{"middle_name": "Cruz"}]
    assert pool.in_use == 0
