"""
Mapping from `Result` values to HTTP responses.

Routers call `unwrap()` so that the transport status is chosen here, from the
error code alone, without looking into component internals.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from .errors import MESSAGES, ErrorCode, RecordsError, Result

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INPUT_REJECTED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DUPLICATE: status.HTTP_409_CONFLICT,
    ErrorCode.CONSTRAINT_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REFERENTIAL_GUARD: status.HTTP_409_CONFLICT,
    ErrorCode.RESOURCE_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.TRANSACTION_ABORTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Driver messages for these codes stay in the logs.
_GENERIC_CODES = {
    ErrorCode.CONSTRAINT_VIOLATION,
    ErrorCode.RESOURCE_EXHAUSTED,
    ErrorCode.TRANSACTION_ABORTED,
    ErrorCode.DATABASE_ERROR,
}


def public_message(result: Result) -> str:
    code = result.error_code or ErrorCode.DATABASE_ERROR
    if code in _GENERIC_CODES or not result.error:
        return MESSAGES[code]
    return result.error


def failure_body(code: ErrorCode, message: str) -> dict[str, Any]:
    return {"success": False, "error": message, "errorCode": code.value}


def unwrap(result: Result, *, message: str | None = None) -> dict[str, Any]:
    if result.success:
        body: dict[str, Any] = {"success": True, "data": result.data}
        if message:
            body["message"] = message
        return body

    code = result.error_code or ErrorCode.DATABASE_ERROR
    raise HTTPException(
        status_code=STATUS_BY_CODE[code],
        detail=failure_body(code, public_message(result)),
    )


async def records_error_handler(_: Request, exc: RecordsError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=failure_body(exc.code, MESSAGES[exc.code]),
    )
