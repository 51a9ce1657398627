"""
Student photo uploads.

Validation is by filename extension (clients often send a missing or wrong
`content_type`). Files are stored under `UPLOAD_DIR/students/` and referenced
by their public path, `/uploads/students/<name>`.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

DEFAULT_MAX_PHOTO_BYTES = 5 * 1024 * 1024  # 5 MiB
DEFAULT_UPLOAD_DIR = "uploads"

PUBLIC_PREFIX = "/uploads/students"


def max_photo_bytes_from_env() -> int:
    raw = os.environ.get("MAX_PHOTO_BYTES", "").strip()
    if not raw:
        return DEFAULT_MAX_PHOTO_BYTES
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_MAX_PHOTO_BYTES
    return value if value > 0 else DEFAULT_MAX_PHOTO_BYTES


def upload_dir() -> Path:
    return Path(os.environ.get("UPLOAD_DIR", "").strip() or DEFAULT_UPLOAD_DIR)


def validate_photo(file: UploadFile) -> str:
    """
    Return the normalized extension if this upload is an accepted image type.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing filename.")

    ext = Path(file.filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext}'. Allowed: {sorted(ALLOWED_EXTENSIONS)}",
        )
    return ext


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    chunk_size = 1024 * 1024
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Max is {max_bytes} bytes.",
            )

    if not buf:
        raise HTTPException(status_code=400, detail="Empty file.")
    return bytes(buf)


async def save_photo(file: UploadFile, *, student_id: int) -> str:
    """
    Validate and store an uploaded photo; return its public reference.
    """
    ext = validate_photo(file)
    data = await read_upload_bytes(file, max_bytes=max_photo_bytes_from_env())

    target_dir = upload_dir() / "students"
    target_dir.mkdir(parents=True, exist_ok=True)
    name = f"student-{student_id}-{uuid.uuid4().hex}{ext}"
    (target_dir / name).write_bytes(data)

    return f"{PUBLIC_PREFIX}/{name}"


def discard_photo(reference: str) -> None:
    """
    Remove a stored photo that never made it into a committed record.
    """
    if not reference.startswith(f"{PUBLIC_PREFIX}/"):
        return None
    path = upload_dir() / "students" / Path(reference).name
    path.unlink(missing_ok=True)
