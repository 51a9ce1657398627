"""
Async database access (raw SQL) using asyncpg.

`Database` owns the connection pool. `create_app()` builds one per process,
opens it in the lifespan startup and closes it on shutdown (see `api/main.py`).

`QueryExecutor` is the only way feature code talks to the database:
- `execute()` runs one statement on a borrowed connection and always returns
  a `Result`, never raising for expected failures.
- `transaction()` borrows one connection for a composite write. Statements
  inside it raise, so the surrounding `conn.transaction()` rolls back.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
- templates are developer-authored; parameters are scalars only.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, AsyncIterator, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg
from fastapi import Request

from .errors import ErrorCode, InputRejected, ResourceExhausted, Result

logger = logging.getLogger(__name__)

DEFAULT_POOL_MIN_SIZE = 1
DEFAULT_POOL_MAX_SIZE = 10
DEFAULT_COMMAND_TIMEOUT = 30.0
DEFAULT_ACQUIRE_TIMEOUT = 10.0

# Defense in depth only; binding is what keeps values out of the SQL text.
_DANGEROUS_PATTERNS = (
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|EXECUTE|UNION|SCRIPT)\b", re.IGNORECASE),
    re.compile(r"--|/\*|\*/"),
    re.compile(r"\bOR\s+1\s*=\s*1\b|\bOR\s+'1'\s*=\s*'1'", re.IGNORECASE),
    re.compile(r"'\s*;?\s*(DROP|DELETE|INSERT|UPDATE|CREATE|ALTER)\b", re.IGNORECASE),
    re.compile(r"\b;\b"),
)

_SCALAR_TYPES = (bool, int, float, Decimal, str, date, datetime, time, uuid.UUID)

_MUTATION_VERBS = {"INSERT", "UPDATE", "DELETE", "MERGE"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


@dataclass(frozen=True)
class PoolSettings:
    dsn: str
    min_size: int = DEFAULT_POOL_MIN_SIZE
    max_size: int = DEFAULT_POOL_MAX_SIZE
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT


def pool_settings_from_env() -> PoolSettings:
    max_size = max(1, _env_int("DB_POOL_MAX_SIZE", DEFAULT_POOL_MAX_SIZE))
    min_size = min(max(0, _env_int("DB_POOL_MIN_SIZE", DEFAULT_POOL_MIN_SIZE)), max_size)
    return PoolSettings(
        dsn=database_url(),
        min_size=min_size,
        max_size=max_size,
        command_timeout=_env_float("DB_COMMAND_TIMEOUT", DEFAULT_COMMAND_TIMEOUT),
        acquire_timeout=_env_float("DB_ACQUIRE_TIMEOUT", DEFAULT_ACQUIRE_TIMEOUT),
    )


class Database:
    """
    Explicitly constructed pool holder with a start/stop lifetime.

    Pass `pool=` to wrap an already-open pool (the pool is then owned by the
    caller and `connect()` is a no-op).
    """

    def __init__(self, settings: PoolSettings | None = None, *, pool: Any = None) -> None:
        self._settings = settings
        self._pool = pool
        self._owns_pool = pool is None

    @property
    def acquire_timeout(self) -> float:
        return self._settings.acquire_timeout if self._settings else DEFAULT_ACQUIRE_TIMEOUT

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        settings = self._settings or pool_settings_from_env()
        self._settings = settings
        self._pool = await asyncpg.create_pool(
            dsn=settings.dsn,
            min_size=settings.min_size,
            max_size=settings.max_size,
            command_timeout=settings.command_timeout,
        )
        logger.info("db_pool_opened min_size=%s max_size=%s", settings.min_size, settings.max_size)

    async def close(self) -> None:
        if self._pool is None or not self._owns_pool:
            return None
        await self._pool.close()
        self._pool = None
        logger.info("db_pool_closed")

    @property
    def pool(self) -> Any:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call Database.connect() on startup.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow one connection; it goes back to the pool on every exit path.
        """
        pool = self.pool
        try:
            conn = await pool.acquire(timeout=self.acquire_timeout)
        except asyncio.TimeoutError as exc:
            raise ResourceExhausted("Timed out waiting for a database connection.") from exc
        try:
            yield conn
        finally:
            await pool.release(conn)


@dataclass(frozen=True)
class MutationResult:
    rows_affected: int
    generated_id: int | None = None
    rows: list[dict[str, Any]] = field(default_factory=list)


def check_statement(template: Any, params: Sequence[Any]) -> str | None:
    """
    Return a rejection reason, or None when the statement may run.
    """
    if not isinstance(template, str) or not template.strip():
        return "Invalid query parameter."

    if params:
        for param in params:
            if param is None:
                continue
            if not isinstance(param, _SCALAR_TYPES):
                return "Invalid input detected: parameters must be scalar values."
            if isinstance(param, str):
                for pattern in _DANGEROUS_PATTERNS:
                    if pattern.search(param):
                        return "Invalid input detected: potentially dangerous SQL pattern."
    elif template.count(";") > 1:
        return "Multiple statements detected - not allowed."

    return None


def _affected_count(status: str) -> int:
    last = status.rsplit(" ", 1)[-1] if status else ""
    return int(last) if last.isdigit() else 0


async def _run(conn: asyncpg.Connection, template: str, params: Sequence[Any]) -> list[dict[str, Any]] | MutationResult:
    logger.debug("executing_query sql=%s", " ".join(template.split())[:100])
    stmt = await conn.prepare(template)
    records = await stmt.fetch(*params)
    rows = [dict(r) for r in records]
    status = stmt.get_statusmsg() or ""
    verb = status.split(" ", 1)[0].upper()
    if verb in _MUTATION_VERBS:
        # RETURNING <table>_id: the first column of the first row.
        generated = next(iter(rows[0].values()), None) if rows else None
        return MutationResult(
            rows_affected=_affected_count(status),
            generated_id=int(generated) if isinstance(generated, int) else None,
            rows=rows,
        )
    return rows


def database_failure(exc: BaseException) -> Result:
    """
    Classify a driver exception into the error taxonomy, keeping the SQLSTATE.
    """
    sqlstate = getattr(exc, "sqlstate", None)
    message = str(exc) or exc.__class__.__name__
    if isinstance(exc, asyncpg.UniqueViolationError):
        return Result.fail(ErrorCode.DUPLICATE, message, sqlstate=sqlstate)
    if isinstance(exc, asyncpg.IntegrityConstraintViolationError):
        return Result.fail(ErrorCode.CONSTRAINT_VIOLATION, message, sqlstate=sqlstate)
    return Result.fail(ErrorCode.DATABASE_ERROR, message, sqlstate=sqlstate)


class Transaction:
    """
    Statement runner bound to the single connection of one transaction.
    """

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def execute(self, template: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]] | MutationResult:
        values = list(params or [])
        reason = check_statement(template, values)
        if reason is not None:
            logger.warning("query_rejected in_transaction=true reason=%s", reason)
            raise InputRejected(reason)
        return await _run(self._conn, template, values)

    async def fetch_one(self, template: str, params: Sequence[Any] | None = None) -> dict[str, Any] | None:
        rows = await self.execute(template, params)
        if isinstance(rows, MutationResult):
            rows = rows.rows
        return rows[0] if rows else None


class QueryExecutor:
    def __init__(self, database: Database) -> None:
        self._database = database

    @property
    def database(self) -> Database:
        return self._database

    async def execute(self, template: str, params: Sequence[Any] | None = None) -> Result:
        """
        Run one parameterized statement.

        Reads come back as `Result.ok(list_of_row_dicts)`; INSERT/UPDATE/DELETE
        as `Result.ok(MutationResult)`. Failures are classified, never raised.
        """
        values = list(params) if isinstance(params, (list, tuple)) else ([] if params is None else None)
        if values is None:
            return Result.fail(ErrorCode.INPUT_REJECTED, "Invalid params: expected a list.")

        reason = check_statement(template, values)
        if reason is not None:
            logger.warning("query_rejected reason=%s", reason)
            return Result.fail(ErrorCode.INPUT_REJECTED, reason)

        try:
            async with self._database.acquire() as conn:
                outcome = await _run(conn, template, values)
        except ResourceExhausted as exc:
            logger.warning("db_pool_exhausted timeout=%s", self._database.acquire_timeout)
            return Result.fail(ErrorCode.RESOURCE_EXHAUSTED, str(exc))
        except asyncpg.PostgresError as exc:
            logger.warning("query_failed sqlstate=%s error=%s", getattr(exc, "sqlstate", None), exc)
            return database_failure(exc)
        except (asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
            logger.error("query_connection_failed error=%r", exc)
            return Result.fail(ErrorCode.DATABASE_ERROR, str(exc) or "Database connection failed.")

        return Result.ok(outcome)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """
        One borrowed connection, one transaction: commit on clean exit,
        roll back when anything raises inside the block.
        """
        async with self._database.acquire() as conn:
            async with conn.transaction():
                yield Transaction(conn)


def get_executor(request: Request) -> QueryExecutor:
    return request.app.state.executor
