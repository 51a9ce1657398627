"""
Atomic writes for the student aggregate.

A student is one `students` row plus up to two `addresses` (current,
permanent), one `contact_info` row and a primary guardian. Create and update
run every statement on one borrowed connection inside one transaction: either
the whole aggregate changes or nothing does.

Sub-writes happen after the `students` row exists (they need its id) and
before commit; among themselves they are independent.

Outcomes:
- duplicate student_number       -> Result DUPLICATE
- rejected parameter              -> Result INPUT_REJECTED (rolled back)
- other constraint failures       -> Result CONSTRAINT_VIOLATION (rolled back)
- any other statement failure     -> raises TransactionAborted (rolled back)
- pool exhaustion                 -> raises ResourceExhausted
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import asyncpg

from core.db import MutationResult, QueryExecutor, Transaction
from core.errors import ErrorCode, InputRejected, Result, TransactionAborted
from core.sql import insert_clause, set_clause

from . import normalize

logger = logging.getLogger(__name__)

DUPLICATE_STUDENT_NUMBER = "Student number already exists."


def _rollback_result(exc: Exception, *, operation: str, student_id: int | None = None) -> Result:
    """
    Map an exception that rolled the unit back to a structured failure, or
    re-raise it as TransactionAborted.
    """
    if isinstance(exc, InputRejected):
        logger.warning("student_%s_rejected student_id=%s reason=%s", operation, student_id, exc)
        return Result.fail(ErrorCode.INPUT_REJECTED, str(exc))

    if isinstance(exc, asyncpg.UniqueViolationError):
        constraint = getattr(exc, "constraint_name", None) or ""
        message = DUPLICATE_STUDENT_NUMBER if "student_number" in (constraint or str(exc)) else None
        return Result.fail(ErrorCode.DUPLICATE, message, sqlstate=exc.sqlstate)

    if isinstance(exc, asyncpg.IntegrityConstraintViolationError):
        logger.warning("student_%s_constraint student_id=%s error=%s", operation, student_id, exc)
        return Result.fail(ErrorCode.CONSTRAINT_VIOLATION, str(exc), sqlstate=exc.sqlstate)

    logger.exception("student_%s_aborted student_id=%s", operation, student_id)
    raise TransactionAborted(f"Student {operation} failed and was rolled back.") from exc


async def _insert_student(tx: Transaction, values: Mapping[str, Any], *, actor_id: int | None) -> int:
    row = {**values, "last_updated_by": actor_id}
    columns, placeholders = insert_clause(row)
    inserted = await tx.execute(
        f"""
        INSERT INTO students ({columns})
        VALUES ({placeholders})
        RETURNING student_id
        """,
        list(row.values()),
    )
    if not isinstance(inserted, MutationResult) or inserted.generated_id is None:
        raise TransactionAborted("Failed to insert student.")
    return inserted.generated_id


async def _insert_address(tx: Transaction, student_id: int, address_type: str, values: Mapping[str, Any]) -> None:
    await tx.execute(
        """
        INSERT INTO addresses (student_id, type, street, city, province, zip_code)
        VALUES ($1, $2, $3, $4, $5, $6)
        """,
        [student_id, address_type, values["street"], values["city"], values["province"], values["zip_code"]],
    )


async def _upsert_address(tx: Transaction, student_id: int, address_type: str, values: Mapping[str, Any]) -> None:
    existing = await tx.fetch_one(
        "SELECT address_id FROM addresses WHERE student_id = $1 AND type = $2",
        [student_id, address_type],
    )
    if existing is None:
        await _insert_address(tx, student_id, address_type, values)
        return
    await tx.execute(
        """
        UPDATE addresses
        SET street = $1, city = $2, province = $3, zip_code = $4
        WHERE address_id = $5
        """,
        [values["street"], values["city"], values["province"], values["zip_code"], existing["address_id"]],
    )


async def _insert_contact(tx: Transaction, student_id: int, values: Mapping[str, Any]) -> None:
    await tx.execute(
        """
        INSERT INTO contact_info (student_id, school_email, alternate_email, phone_number)
        VALUES ($1, $2, $3, $4)
        """,
        [student_id, values["school_email"], values["alternate_email"], values["phone_number"]],
    )


async def _upsert_contact(tx: Transaction, student_id: int, values: Mapping[str, Any]) -> None:
    existing = await tx.fetch_one("SELECT contact_id FROM contact_info WHERE student_id = $1", [student_id])
    if existing is None:
        await _insert_contact(tx, student_id, values)
        return
    await tx.execute(
        """
        UPDATE contact_info
        SET school_email = $1, alternate_email = $2, phone_number = $3
        WHERE contact_id = $4
        """,
        [values["school_email"], values["alternate_email"], values["phone_number"], existing["contact_id"]],
    )


async def _insert_guardian(tx: Transaction, student_id: int, values: Mapping[str, Any]) -> None:
    row = {"student_id": student_id, **values}
    columns, placeholders = insert_clause(row)
    await tx.execute(f"INSERT INTO guardians ({columns}) VALUES ({placeholders})", list(row.values()))


async def _upsert_guardian(tx: Transaction, student_id: int, values: Mapping[str, Any]) -> None:
    # Several guardians may exist; the primary one is the lowest id.
    primary = await tx.fetch_one(
        """
        SELECT guardian_id
        FROM guardians
        WHERE student_id = $1
        ORDER BY guardian_id
        LIMIT 1
        """,
        [student_id],
    )
    if primary is None:
        await _insert_guardian(tx, student_id, values)
        return
    clause, params = set_clause(values)
    await tx.execute(
        f"UPDATE guardians SET {clause} WHERE guardian_id = ${len(params) + 1}",
        [*params, primary["guardian_id"]],
    )


async def create_student(
    db: QueryExecutor,
    payload: Mapping[str, Any],
    *,
    actor_id: int | None = None,
) -> Result:
    student_number = normalize.clean_optional(payload.get("student_number"))
    if student_number is None:
        return Result.fail(ErrorCode.INPUT_REJECTED, "student_number is required.")

    values = {"student_number": student_number, **normalize.personal_values(payload)}
    addresses = {kind: normalize.address_values(payload, kind) for kind in normalize.ADDRESS_TYPES}
    contact = normalize.contact_values(payload)
    guardian = normalize.guardian_values(payload)

    try:
        async with db.transaction() as tx:
            # The unique constraint is authoritative; this only gives a clean answer early.
            existing = await tx.fetch_one(
                "SELECT student_id FROM students WHERE student_number = $1",
                [student_number],
            )
            if existing is not None:
                return Result.fail(ErrorCode.DUPLICATE, DUPLICATE_STUDENT_NUMBER)

            student_id = await _insert_student(tx, values, actor_id=actor_id)

            for address_type, address in addresses.items():
                if address is not None:
                    await _insert_address(tx, student_id, address_type, address)
            if contact is not None:
                await _insert_contact(tx, student_id, contact)
            if guardian is not None:
                await _insert_guardian(tx, student_id, guardian)
    except (InputRejected, asyncpg.PostgresError) as exc:
        return _rollback_result(exc, operation="create")

    logger.info("student_created student_id=%s actor_id=%s", student_id, actor_id)
    return Result.ok({"student_id": student_id, "student_number": student_number})


async def update_student(
    db: QueryExecutor,
    student_id: int,
    payload: Mapping[str, Any],
    *,
    actor_id: int | None = None,
    photo_url: str | None = None,
) -> Result:
    """
    Update the personal fields present in `payload` and upsert the related
    rows whose fields are present. A payload with no recognized field is a
    valid no-op. `photo_url`, when given, replaces the stored photo.
    """
    values = normalize.personal_values(payload)
    if photo_url:
        values[normalize.PHOTO_FIELD] = photo_url
    addresses = {kind: normalize.address_values(payload, kind) for kind in normalize.ADDRESS_TYPES}
    contact = normalize.contact_values(payload)
    guardian = normalize.guardian_values(payload)

    try:
        async with db.transaction() as tx:
            existing = await tx.fetch_one(
                "SELECT student_id FROM students WHERE student_id = $1 AND is_active = true",
                [student_id],
            )
            if existing is None:
                return Result.fail(ErrorCode.NOT_FOUND, "Student not found.")

            if values:
                clause, params = set_clause({**values, "last_updated_by": actor_id})
                await tx.execute(
                    f"""
                    UPDATE students
                    SET {clause}, last_updated_at = CURRENT_TIMESTAMP
                    WHERE student_id = ${len(params) + 1}
                    """,
                    [*params, student_id],
                )

            for address_type, address in addresses.items():
                if address is not None:
                    await _upsert_address(tx, student_id, address_type, address)
            if contact is not None:
                await _upsert_contact(tx, student_id, contact)
            if guardian is not None:
                await _upsert_guardian(tx, student_id, guardian)
    except (InputRejected, asyncpg.PostgresError) as exc:
        return _rollback_result(exc, operation="update", student_id=student_id)

    logger.info(
        "student_updated student_id=%s actor_id=%s fields=%s",
        student_id,
        actor_id,
        ",".join(sorted(values)),
    )
    return Result.ok({"student_id": student_id})
