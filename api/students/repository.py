"""
Student reads (raw SQL). Writes live in `writer.py`.
"""

from __future__ import annotations

import math
from typing import Any

from core.db import QueryExecutor
from core.errors import ErrorCode, Result

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_LIST_COLUMNS = """
    s.student_id,
    s.student_number,
    s.first_name,
    s.middle_name,
    s.last_name,
    s.suffix,
    s.year_level,
    s.academic_status,
    s.enrollment_status,
    s.gpa,
    s.profile_picture_url,
    s.is_active,
    s.program_id,
    s.major_id,
    p.program_name,
    p.program_code,
    m.major_name
"""

_FROM = """
    FROM students s
    LEFT JOIN programs p ON s.program_id = p.program_id
    LEFT JOIN majors m ON s.major_id = m.major_id
"""


def _filters(
    *,
    active: bool,
    search: str | None,
    program_id: int | None,
    year_level: int | None,
    enrollment_status: str | None,
) -> tuple[str, list[Any]]:
    clauses = [f"s.is_active = {'true' if active else 'false'}"]
    params: list[Any] = []

    if search:
        params.append(f"%{search.strip().lower()}%")
        n = len(params)
        clauses.append(
            f"(LOWER(s.student_number) LIKE ${n}"
            f" OR LOWER(s.first_name) LIKE ${n}"
            f" OR LOWER(s.last_name) LIKE ${n}"
            f" OR LOWER(s.first_name || ' ' || s.last_name) LIKE ${n})"
        )
    if program_id is not None:
        params.append(program_id)
        clauses.append(f"s.program_id = ${len(params)}")
    if year_level is not None:
        params.append(year_level)
        clauses.append(f"s.year_level = ${len(params)}")
    if enrollment_status:
        params.append(enrollment_status)
        clauses.append(f"s.enrollment_status = ${len(params)}")

    return " AND ".join(clauses), params


async def list_students(
    db: QueryExecutor,
    *,
    active: bool = True,
    search: str | None = None,
    program_id: int | None = None,
    year_level: int | None = None,
    enrollment_status: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Result:
    """
    One page of students plus pagination metadata.

    `active=False` lists the archive instead of the roster.
    """
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    where, params = _filters(
        active=active,
        search=search,
        program_id=program_id,
        year_level=year_level,
        enrollment_status=enrollment_status,
    )

    counted = await db.execute(f"SELECT COUNT(*) AS total {_FROM} WHERE {where}", params)
    if not counted.success:
        return counted
    total = int((counted.first() or {}).get("total") or 0)

    order = "s.last_name, s.first_name" if active else "s.last_updated_at DESC, s.student_id DESC"
    n = len(params)
    listed = await db.execute(
        f"""
        SELECT {_LIST_COLUMNS}
        {_FROM}
        WHERE {where}
        ORDER BY {order}
        LIMIT ${n + 1} OFFSET ${n + 2}
        """,
        [*params, limit, (page - 1) * limit],
    )
    if not listed.success:
        return listed

    return Result.ok(
        {
            "students": listed.rows,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }
    )


async def get_student(db: QueryExecutor, student_id: int) -> Result:
    """
    Full student record: personal fields, program/major names, addresses,
    contact info and guardians (primary guardian first).
    """
    found = await db.execute(
        f"""
        SELECT s.*, p.program_name, p.program_code, m.major_name
        {_FROM}
        WHERE s.student_id = $1
        """,
        [student_id],
    )
    if not found.success:
        return found
    student = found.first()
    if student is None:
        return Result.fail(ErrorCode.NOT_FOUND, "Student not found.")

    addresses = await db.execute(
        """
        SELECT address_id, type, street, city, province, zip_code
        FROM addresses
        WHERE student_id = $1
        ORDER BY type
        """,
        [student_id],
    )
    contact = await db.execute(
        "SELECT contact_id, school_email, alternate_email, phone_number FROM contact_info WHERE student_id = $1",
        [student_id],
    )
    guardians = await db.execute(
        """
        SELECT guardian_id, guardian_full_name, guardian_relationship,
               guardian_phone_number, guardian_email, guardian_address
        FROM guardians
        WHERE student_id = $1
        ORDER BY guardian_id
        """,
        [student_id],
    )
    for related in (addresses, contact, guardians):
        if not related.success:
            return related

    return Result.ok(
        {
            **student,
            "addresses": {row["type"]: row for row in addresses.rows},
            "contact_info": contact.first(),
            "guardians": guardians.rows,
        }
    )
