"""
Result Type
===========

Explicit success/failure values returned across service seams.

Services return ``Ok(value)`` or ``Err(error)`` instead of raising, and the
call site decides whether a failure is log-only or aborts the request.

Usage:
    result = await creation_service.create_incident(fields)
    if isinstance(result, Err):
        return error_response(result.error)
    ticket = result.value
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying an error value."""
    error: E

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True


Result = Union[Ok[T], Err[E]]
