"""
Result Types

Every remote call (database, storage, allow-list lookup) returns either
``Ok(value)`` or ``Err(kind, detail)`` so callers decide how to surface
the failure instead of catching arbitrary exceptions.
"""

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    """Why a remote call failed."""

    PERSISTENCE = "persistence"
    STORAGE = "storage"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    kind: ErrorKind
    detail: str

    @property
    def ok(self) -> bool:
        return False


Result = Ok[T] | Err
