"""
Explicit results for service operations whose failure is an expected outcome
(wrong password, stale refresh token, expired reset token).

    result = auth_service.login(...)
    if isinstance(result, Err):
        ...
    session = unwrap(result)   # raises the carried ServiceError
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from app.core.errors import ServiceError

T = TypeVar("T")
E = TypeVar("E", bound=ServiceError)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E


Result = Union[Ok[T], Err[ServiceError]]


def unwrap(result: "Result[T]") -> T:
    """Return the value of an Ok, raise the error of an Err."""
    if isinstance(result, Err):
        raise result.error
    return result.value
