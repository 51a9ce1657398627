from __future__ import annotations

import sqlite3

import pytest
from fastapi.testclient import TestClient

from archive.service import ArchiveManager
from auth import security
from core.db import Database, QueryExecutor
from core.schema import MAJOR_BASE_COLUMNS, SchemaCapabilities
from fakes import FakePool

import seed

SCHEMA = """
CREATE TABLE users (
  user_id INTEGER PRIMARY KEY,
  username TEXT NOT NULL UNIQUE,
  password_hash TEXT NOT NULL,
  role TEXT NOT NULL DEFAULT 'Staff',
  is_active BOOLEAN NOT NULL DEFAULT 1,
  created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE programs (
  program_id INTEGER PRIMARY KEY,
  program_name TEXT NOT NULL,
  program_code TEXT NOT NULL UNIQUE,
  degree_type TEXT,
  is_active BOOLEAN NOT NULL DEFAULT 1,
  last_updated_by INTEGER REFERENCES users(user_id),
  last_updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE majors (
  major_id INTEGER PRIMARY KEY,
  major_name TEXT NOT NULL,
  major_code TEXT UNIQUE,
  program_id INTEGER REFERENCES programs(program_id),
  description TEXT,
  is_active BOOLEAN NOT NULL DEFAULT 1,
  created_by INTEGER REFERENCES users(user_id),
  last_updated_by INTEGER REFERENCES users(user_id)
);

CREATE TABLE students (
  student_id INTEGER PRIMARY KEY,
  student_number TEXT NOT NULL UNIQUE,
  first_name TEXT NOT NULL,
  middle_name TEXT,
  last_name TEXT NOT NULL,
  suffix TEXT,
  gender TEXT,
  citizenship TEXT,
  place_of_birth TEXT,
  religion TEXT,
  civil_status TEXT,
  profile_picture_url TEXT,
  program_id INTEGER REFERENCES programs(program_id),
  major_id INTEGER REFERENCES majors(major_id),
  year_level INTEGER,
  academic_status TEXT,
  enrollment_status TEXT,
  date_of_admission TEXT,
  expected_graduation_date TEXT,
  scholarship_type TEXT,
  blood_type TEXT,
  known_allergies TEXT,
  medical_conditions TEXT,
  gpa REAL,
  is_active BOOLEAN NOT NULL DEFAULT 1,
  last_updated_by INTEGER REFERENCES users(user_id),
  last_updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE addresses (
  address_id INTEGER PRIMARY KEY,
  student_id INTEGER NOT NULL REFERENCES students(student_id),
  type TEXT NOT NULL,
  street TEXT,
  city TEXT,
  province TEXT,
  zip_code TEXT,
  UNIQUE (student_id, type)
);

CREATE TABLE contact_info (
  contact_id INTEGER PRIMARY KEY,
  student_id INTEGER NOT NULL UNIQUE REFERENCES students(student_id),
  school_email TEXT,
  alternate_email TEXT,
  phone_number TEXT
);

CREATE TABLE guardians (
  guardian_id INTEGER PRIMARY KEY,
  student_id INTEGER NOT NULL REFERENCES students(student_id),
  guardian_full_name TEXT,
  guardian_relationship TEXT,
  guardian_phone_number TEXT,
  guardian_email TEXT,
  guardian_address TEXT
);

CREATE TABLE courses (
  course_id INTEGER PRIMARY KEY,
  program_id INTEGER REFERENCES programs(program_id),
  course_code TEXT NOT NULL,
  course_name TEXT NOT NULL,
  units REAL,
  semester TEXT,
  year_level INTEGER
);

CREATE TABLE enrollments (
  enrollment_id INTEGER PRIMARY KEY,
  student_id INTEGER NOT NULL REFERENCES students(student_id),
  course_id INTEGER NOT NULL REFERENCES courses(course_id),
  academic_year TEXT NOT NULL,
  semester TEXT NOT NULL,
  date_enrolled TEXT,
  status TEXT NOT NULL DEFAULT 'Enrolled',
  is_active BOOLEAN NOT NULL DEFAULT 1
);

CREATE TABLE grades (
  grade_id INTEGER PRIMARY KEY,
  enrollment_id INTEGER NOT NULL REFERENCES enrollments(enrollment_id),
  midterm_grade REAL,
  final_grade REAL,
  remarks TEXT,
  date_recorded TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

# Deployments created before majors had codes or an archive flag.
LEGACY_MAJORS = """
DROP TABLE majors;
CREATE TABLE majors (
  major_id INTEGER PRIMARY KEY,
  major_name TEXT NOT NULL
);
"""


def _open(script: str) -> sqlite3.Connection:
    db = sqlite3.connect(":memory:", check_same_thread=False, isolation_level=None)
    db.execute("PRAGMA foreign_keys = ON")
    db.executescript(script)
    return db


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")


@pytest.fixture
def sqlite_db():
    db = _open(SCHEMA)
    yield db
    db.close()


@pytest.fixture
def pool(sqlite_db) -> FakePool:
    return FakePool(sqlite_db)


@pytest.fixture
def executor(pool) -> QueryExecutor:
    return QueryExecutor(Database(pool=pool))


@pytest.fixture
def capabilities() -> SchemaCapabilities:
    return SchemaCapabilities()


@pytest.fixture
def archive(executor, capabilities) -> ArchiveManager:
    return ArchiveManager(executor, capabilities)


@pytest.fixture
def legacy_pool():
    # Foreign keys off: students.major_id still points at the dropped table.
    db = sqlite3.connect(":memory:", check_same_thread=False, isolation_level=None)
    db.executescript(SCHEMA + LEGACY_MAJORS)
    yield FakePool(db)
    db.close()


@pytest.fixture
def legacy_archive(legacy_pool) -> ArchiveManager:
    return ArchiveManager(QueryExecutor(Database(pool=legacy_pool)), SchemaCapabilities(major_columns=MAJOR_BASE_COLUMNS))


@pytest.fixture
def admin_id(sqlite_db) -> int:
    return seed.add_user(sqlite_db, "admin", role="Admin")


@pytest.fixture
def staff_id(sqlite_db) -> int:
    return seed.add_user(sqlite_db, "clerk", role="Staff")


def bearer(user_id: int, username: str, role: str) -> dict[str, str]:
    token = security.build_access_token(user_id=user_id, username=username, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_id) -> dict[str, str]:
    return bearer(admin_id, "admin", "Admin")


@pytest.fixture
def staff_headers(staff_id) -> dict[str, str]:
    return bearer(staff_id, "clerk", "Staff")


@pytest.fixture
def client(pool, tmp_path, monkeypatch):
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    from main import create_app

    app = create_app(Database(pool=pool))
    with TestClient(app) as test_client:
        yield test_client
