"""
Error taxonomy and the uniform result value returned by the record core.

Components return `Result` for expected failures instead of raising. Only
faults that the caller cannot act on (pool exhaustion, an aborted composite
write) are raised as `RecordsError` subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INPUT_REJECTED = "INPUT_REJECTED"
    DUPLICATE = "DUPLICATE"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    NOT_FOUND = "NOT_FOUND"
    REFERENTIAL_GUARD = "REFERENTIAL_GUARD"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    TRANSACTION_ABORTED = "TRANSACTION_ABORTED"
    DATABASE_ERROR = "DATABASE_ERROR"


MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INPUT_REJECTED: "Invalid input detected.",
    ErrorCode.DUPLICATE: "Record already exists.",
    ErrorCode.CONSTRAINT_VIOLATION: "Operation violates a data constraint.",
    ErrorCode.NOT_FOUND: "Record not found or not in the expected state.",
    ErrorCode.REFERENTIAL_GUARD: "Record still has active dependents.",
    ErrorCode.RESOURCE_EXHAUSTED: "Database is busy. Try again shortly.",
    ErrorCode.TRANSACTION_ABORTED: "The change could not be saved. Nothing was written.",
    ErrorCode.DATABASE_ERROR: "Database error.",
}


@dataclass(frozen=True)
class Result:
    success: bool
    data: Any = None
    error: str | None = None
    error_code: ErrorCode | None = None
    sqlstate: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> Result:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, error: str | None = None, *, sqlstate: str | None = None) -> Result:
        return cls(success=False, error=error or MESSAGES[code], error_code=code, sqlstate=sqlstate)

    @property
    def rows(self) -> list[dict[str, Any]]:
        """
        Row-set data of a successful read; empty for failures and mutations.
        """
        if self.success and isinstance(self.data, list):
            return self.data
        return []

    def first(self) -> dict[str, Any] | None:
        rows = self.rows
        return rows[0] if rows else None

    def single(self, not_found: str) -> Result:
        """
        Narrow a row-set read to its first row, or NOT_FOUND when empty.
        """
        if not self.success:
            return self
        row = self.first()
        if row is None:
            return Result.fail(ErrorCode.NOT_FOUND, not_found)
        return Result.ok(row)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        payload: dict[str, Any] = {
            "success": False,
            "error": self.error,
            "errorCode": self.error_code.value if self.error_code else None,
        }
        if self.sqlstate:
            payload["sqlState"] = self.sqlstate
        return payload


class RecordsError(RuntimeError):
    code = ErrorCode.DATABASE_ERROR


class InputRejected(RecordsError):
    code = ErrorCode.INPUT_REJECTED


class ResourceExhausted(RecordsError):
    code = ErrorCode.RESOURCE_EXHAUSTED


class TransactionAborted(RecordsError):
    code = ErrorCode.TRANSACTION_ABORTED
