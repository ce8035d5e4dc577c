from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the field violations that prevented producing it."""

    value: Optional[T] = None
    errors: Tuple[FieldError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: Optional[T]) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, *errors: FieldError) -> "Result[T]":
        if not errors:
            raise ValueError("a failed result needs at least one error")
        return cls(errors=tuple(errors))

    def as_dict(self) -> dict:
        return {"errors": [{"field": e.field, "message": e.message} for e in self.errors]}
