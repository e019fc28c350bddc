"""
Error taxonomy and result type shared by aggregates, services and the API layer.

Expected business-rule violations travel as ``Result`` failures. Exceptions are
reserved for infrastructure problems (lost optimistic-concurrency races,
unique-constraint violations) and for the HTTP boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorType(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    FAILURE = "failure"


@dataclass(frozen=True)
class Error:
    code: str
    message: str
    type: ErrorType = ErrorType.FAILURE

    @classmethod
    def validation(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.VALIDATION)

    @classmethod
    def not_found(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.NOT_FOUND)

    @classmethod
    def conflict(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.CONFLICT)

    @classmethod
    def unauthorized(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.UNAUTHORIZED)

    @classmethod
    def forbidden(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.FORBIDDEN)

    @classmethod
    def failure(cls, code: str, message: str) -> "Error":
        return cls(code, message, ErrorType.FAILURE)


class Result(Generic[T]):
    """Outcome of a domain or application operation"""

    __slots__ = ("_value", "error")

    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        self._value = value
        self.error = error

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @property
    def value(self) -> T:
        if self.error is not None:
            raise ValueError(
                f"Cannot access the value of a failed result ({self.error.code})"
            )
        return self._value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: Any = None) -> "Result[Any]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Error) -> "Result[Any]":
        return cls(error=error)

    def __repr__(self) -> str:
        if self.error is not None:
            return f"Result(failure={self.error.code!r})"
        return f"Result(success={self._value!r})"


class StoreException(Exception):
    """Base exception carrying a typed ``Error``"""

    error_type = ErrorType.FAILURE

    def __init__(self, message: str, code: str = "Store.Failure"):
        super().__init__(message)
        self.error = Error(code, message, self.error_type)

    @classmethod
    def from_error(cls, error: Error) -> "StoreException":
        exc_class = _EXCEPTIONS_BY_TYPE.get(error.type, StoreException)
        return exc_class(error.message, error.code)


class ValidationError(StoreException):
    error_type = ErrorType.VALIDATION


class NotFoundError(StoreException):
    error_type = ErrorType.NOT_FOUND


class ConflictError(StoreException):
    error_type = ErrorType.CONFLICT


class UnauthorizedError(StoreException):
    error_type = ErrorType.UNAUTHORIZED


class ForbiddenError(StoreException):
    error_type = ErrorType.FORBIDDEN


_EXCEPTIONS_BY_TYPE = {
    ErrorType.VALIDATION: ValidationError,
    ErrorType.NOT_FOUND: NotFoundError,
    ErrorType.CONFLICT: ConflictError,
    ErrorType.UNAUTHORIZED: UnauthorizedError,
    ErrorType.FORBIDDEN: ForbiddenError,
}
