"""Explicit success/failure values for engine operations.

``Result[T, E]`` is either ``Ok(value)`` or ``Err(error)``.  Callers branch
with ``isinstance`` (or ``result.is_ok``) and must handle every error kind
of the operation's closed error union.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]
