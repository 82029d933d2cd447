"""
Derived views over scan results.

Pure functions: they take records already read from a store and hold no state.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

R = TypeVar("R")


def filter_by(records: Iterable[R], field: str, value: int) -> list[R]:
    """Records whose ``field`` equals ``value``, input order preserved."""
    return [record for record in records if getattr(record, field) == value]


def top_by(records: Iterable[R], field: str, limit: int) -> list[R]:
    """Records ordered by ``field`` descending, truncated to ``limit``.

    Ties keep their input order (the sort is stable).
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative: {limit}")
    return sorted(records, key=lambda record: getattr(record, field), reverse=True)[:limit]
