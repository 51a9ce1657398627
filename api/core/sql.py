"""
Small SQL-text helpers. Column names passed here are always developer
constants; values only ever travel as bound parameters.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping


def set_clause(values: Mapping[str, Any], *, start: int = 1) -> tuple[str, list[Any]]:
    """
    Build `col_a = $1, col_b = $2` for an UPDATE, numbering from `start`.
    """
    parts: list[str] = []
    params: list[Any] = []
    for index, (column, value) in enumerate(values.items(), start=start):
        parts.append(f"{column} = ${index}")
        params.append(value)
    return ", ".join(parts), params


def insert_clause(columns: Iterable[str], *, start: int = 1) -> tuple[str, str]:
    """
    Return (`col_a, col_b`, `$1, $2`) for an INSERT.
    """
    names = list(columns)
    placeholders = ", ".join(f"${i}" for i in range(start, start + len(names)))
    return ", ".join(names), placeholders


def pick(payload: Mapping[str, Any], allowed: Iterable[str]) -> dict[str, Any]:
    return {name: payload[name] for name in allowed if name in payload}


def to_decimal(value: Any) -> Decimal | None:
    """
    numeric columns take Decimal; floats are converted through their repr.
    """
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))
