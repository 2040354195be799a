from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    PRICING = "pricing"
    PAYMENT_ISSUANCE = "payment_issuance"
    PERSISTENCE = "persistence"
    NOT_FOUND = "not_found"
    AUTHORIZATION = "authorization"


CALLER_FIXABLE = {ErrorKind.VALIDATION, ErrorKind.PRICING}


@dataclass(frozen=True)
class OrderError:
    kind: ErrorKind
    message: str
    address_issued: bool = False

    @property
    def caller_fixable(self) -> bool:
        return self.kind in CALLER_FIXABLE


def validation_error(message: str) -> OrderError:
    return OrderError(ErrorKind.VALIDATION, message)


def pricing_error(message: str) -> OrderError:
    return OrderError(ErrorKind.PRICING, message)


def payment_issuance_error() -> OrderError:
    return OrderError(ErrorKind.PAYMENT_ISSUANCE, "Payment address could not be issued")


def persistence_error(*, address_issued: bool) -> OrderError:
    return OrderError(
        ErrorKind.PERSISTENCE,
        "Order could not be saved",
        address_issued=address_issued,
    )


def retrieval_error() -> OrderError:
    return OrderError(ErrorKind.PERSISTENCE, "Orders could not be retrieved")


def not_found_error(message: str = "Order not found") -> OrderError:
    return OrderError(ErrorKind.NOT_FOUND, message)


def authorization_error(message: str = "Not allowed") -> OrderError:
    return OrderError(ErrorKind.AUTHORIZATION, message)


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[OrderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: OrderError) -> "Result[T]":
        return cls(error=error)
