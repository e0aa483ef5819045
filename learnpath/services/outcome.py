"""Tagged results returned by the progression engine.

엔진은 도메인 오류를 예외로 던지지 않고 ``Outcome`` 으로 돌려준다.
HTTP 계층에서만 ``unwrap`` 으로 HTTPException 으로 바꾼다.
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from fastapi import HTTPException, status

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION = "VALIDATION"
    INVALID_STATE = "INVALID_STATE"
    INTERNAL = "INTERNAL"


HTTP_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Outcome[T]":
        return cls(error=kind, message=message)


def not_found(message: str) -> Outcome:
    return Outcome.failure(ErrorKind.NOT_FOUND, message)


def forbidden(message: str) -> Outcome:
    return Outcome.failure(ErrorKind.FORBIDDEN, message)


def invalid(message: str) -> Outcome:
    return Outcome.failure(ErrorKind.VALIDATION, message)


def invalid_state(message: str) -> Outcome:
    return Outcome.failure(ErrorKind.INVALID_STATE, message)


def unwrap(outcome: Outcome[T]) -> T:
    """Return the value or raise the matching HTTPException."""
    if outcome.ok:
        return outcome.value
    raise HTTPException(
        status_code=HTTP_STATUS[outcome.error],
        detail={"message": outcome.message, "code": outcome.error.value},
    )
